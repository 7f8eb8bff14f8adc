import sys
import os
from datetime import timedelta
import pytest
from flask import g

# ensure repository root is on sys.path so `dashboard_app` package can be imported
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

# Ensure tests have a DATABASE_URL so importing app.config doesn't raise
os.environ.setdefault('DATABASE_URL', 'sqlite:///:memory:')
from dashboard_app.app import create_app, db
from dashboard_app.app.config import Config
from dashboard_app.app.models import (
    Invitation,
    Organization,
    OrganizationMember,
    User,
    INVITATION_PENDING,
    utcnow,
)

# The parent Config uses Final annotations, so the test config is a standalone class.
class TestConfig:
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    WTF_CSRF_ENABLED = False
    SECRET_KEY = getattr(Config, "SECRET_KEY", "test-secret")
    SECURITY_PASSWORD_SALT = "test-salt"
    INVITATION_EXPIRY_DAYS = 7
    INVITATION_EMAIL_ASYNC = False
    EMAIL_PROVIDER = "smtp"
    APP_BASE_URL = "http://testserver"

@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()

@pytest.fixture
def client(app):
    return app.test_client()

@pytest.fixture(autouse=True)
def no_outbound_email(monkeypatch):
    # invitation emails go through this name; individual tests re-patch to inspect calls
    sent = []

    def fake_send_email(subject, recipient, body, html=None):
        sent.append({"subject": subject, "recipient": recipient, "body": body})
        return True

    monkeypatch.setattr('dashboard_app.app.notifications.send_email', fake_send_email)
    return sent


def create_user(email, name=None, password='pw123456'):
    u = User()
    u.email = email
    u.name = name or email.split('@')[0]
    u.set_password(password)
    db.session.add(u)
    db.session.commit()
    return u


def create_org(name='Acme', slug=None):
    org = Organization(name=name, slug=slug or name.lower())
    db.session.add(org)
    db.session.commit()
    return org


def add_member(org, user, role, joined_offset=0):
    mem = OrganizationMember(
        user_id=user.id,
        organization_id=org.id,
        role=role,
        joined_at=utcnow() + timedelta(seconds=joined_offset),
    )
    db.session.add(mem)
    db.session.commit()
    return mem


def add_invitation(org, inviter, email, role='member', expires_in=timedelta(days=7), status=INVITATION_PENDING):
    now = utcnow()
    inv = Invitation(
        email=email,
        organization_id=org.id,
        invited_by=inviter.id,
        role=role,
        status=status,
        created_at=now,
        expires_at=now + expires_in,
    )
    db.session.add(inv)
    db.session.commit()
    return inv


def login(client, user, password='pw123456'):
    # requests reuse the fixture's app context, so drop Flask-Login's cached user first
    g.pop('_login_user', None)
    return client.post('/api/v1/auth/login', json={'email': user.email, 'password': password})
