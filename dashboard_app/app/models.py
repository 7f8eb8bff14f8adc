from __future__ import annotations
from datetime import datetime, timezone
from werkzeug.security import generate_password_hash, check_password_hash
from flask_login import UserMixin
from . import db

# Roles are stored as plain strings; order is highest privilege first.
ROLE_OWNER = "owner"
ROLE_ADMIN = "admin"
ROLE_MEMBER = "member"
ROLE_VIEWER = "viewer"
ROLES = (ROLE_OWNER, ROLE_ADMIN, ROLE_MEMBER, ROLE_VIEWER)
# Ownership is only ever granted through an explicit role update.
INVITABLE_ROLES = (ROLE_ADMIN, ROLE_MEMBER, ROLE_VIEWER)

INVITATION_PENDING = "pending"
INVITATION_ACCEPTED = "accepted"
INVITATION_CANCELLED = "cancelled"
INVITATION_EXPIRED = "expired"
INVITATION_STATUSES = (INVITATION_PENDING, INVITATION_ACCEPTED, INVITATION_CANCELLED, INVITATION_EXPIRED)

SUBSCRIPTION_TIERS = ("free", "pro", "business", "enterprise")


def utcnow() -> datetime:
    """Naive UTC timestamp, matching what the DateTime columns store."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def in_values(column: str, values) -> str:
    """SQL fragment restricting ``column`` to ``values`` for a CHECK constraint."""
    return "{} IN ({})".format(column, ",".join("'%s'" % v for v in values))


def normalize_email(email: "str | None") -> str:
    return (email or "").strip().lower()


class User(UserMixin, db.Model):
    __tablename__ = "users"
    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    name = db.Column(db.String(255), nullable=True)
    password_hash = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    memberships = db.relationship("OrganizationMember", back_populates="user", cascade="all, delete-orphan")

    def set_password(self, password: str) -> None:
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        return check_password_hash(self.password_hash, password)

    def to_profile(self) -> dict:
        return {"id": self.id, "email": self.email, "name": self.name}


class Organization(db.Model):
    __tablename__ = "organizations"
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False)
    slug = db.Column(db.String(128), unique=True, nullable=False, index=True)
    subscription_tier = db.Column(db.String(20), nullable=False, default="free")
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    memberships = db.relationship(
        "OrganizationMember",
        back_populates="organization",
        cascade="all, delete-orphan",
        order_by="OrganizationMember.joined_at",
    )
    invitations = db.relationship("Invitation", back_populates="organization", cascade="all, delete-orphan")

    __table_args__ = (
        db.CheckConstraint(
            in_values("subscription_tier", SUBSCRIPTION_TIERS),
            name="ck_organizations_subscription_tier",
        ),
    )


# Association object for organization memberships with role.
# The composite primary key keeps one membership per (user, organization).
class OrganizationMember(db.Model):
    __tablename__ = "organization_members"
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), primary_key=True)
    organization_id = db.Column(db.Integer, db.ForeignKey("organizations.id"), primary_key=True)
    role = db.Column(db.String(20), nullable=False, default=ROLE_MEMBER)
    joined_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    user = db.relationship("User", back_populates="memberships")
    organization = db.relationship("Organization", back_populates="memberships")

    __table_args__ = (
        db.CheckConstraint(
            in_values("role", ROLES),
            name="ck_organization_members_role",
        ),
    )


class Invitation(db.Model):
    __tablename__ = "invitations"
    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), nullable=False, index=True)
    organization_id = db.Column(db.Integer, db.ForeignKey("organizations.id"), nullable=False, index=True)
    invited_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    role = db.Column(db.String(20), nullable=False, default=ROLE_MEMBER)
    status = db.Column(db.String(20), nullable=False, default=INVITATION_PENDING)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    expires_at = db.Column(db.DateTime, nullable=False)
    accepted_at = db.Column(db.DateTime, nullable=True)
    cancelled_at = db.Column(db.DateTime, nullable=True)

    organization = db.relationship("Organization", back_populates="invitations")
    inviter = db.relationship("User", foreign_keys=[invited_by])

    __table_args__ = (
        db.CheckConstraint(in_values("status", INVITATION_STATUSES), name="ck_invitations_status"),
        # At most one pending invitation per (organization, email), enforced by the database.
        db.Index(
            "uq_invitations_org_email_pending",
            "organization_id",
            "email",
            unique=True,
            sqlite_where=db.text("status = 'pending'"),
            postgresql_where=db.text("status = 'pending'"),
        ),
    )

    def is_expired(self, now: "datetime | None" = None) -> bool:
        return self.expires_at <= (now or utcnow())

    def is_active(self, now: "datetime | None" = None) -> bool:
        return self.status == INVITATION_PENDING and not self.is_expired(now)
