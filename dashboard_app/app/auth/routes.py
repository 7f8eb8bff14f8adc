from __future__ import annotations
from flask import Blueprint, current_app, jsonify
from flask_login import login_user, logout_user, login_required, current_user
from .. import db
from ..models import User, normalize_email
from ..forms import RegisterForm, LoginForm
from typing import cast
import smtplib
from email.message import EmailMessage
from sqlalchemy.exc import IntegrityError
import requests

auth_bp = Blueprint("auth", __name__)


def send_email(subject: str, recipient: str, body: str, html: str | None = None) -> bool:
    provider = current_app.config.get("EMAIL_PROVIDER", "smtp")
    # Resend (API) provider
    if provider == "resend":
        try:
            api_key = current_app.config.get("RESEND_API_KEY")
            if not api_key:
                current_app.logger.error("RESEND_API_KEY not configured")
                return False
            payload = {
                "from": current_app.config.get("MAIL_DEFAULT_SENDER"),
                "to": [recipient],
                "subject": subject,
                "text": body,
            }
            if html:
                payload["html"] = html
            resp = requests.post(
                "https://api.resend.com/emails",
                headers={"Authorization": f"Bearer {api_key}", "Content-Type": "application/json"},
                json=payload,
                timeout=10,
            )
            if resp.status_code in (200, 202):
                return True
            current_app.logger.error("Resend API returned non-success: %s %s", resp.status_code, resp.text)
            return False
        except requests.RequestException:
            current_app.logger.exception("Failed to send email via Resend API")
            return False

    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = current_app.config.get("MAIL_DEFAULT_SENDER")
    msg["To"] = recipient
    msg.set_content(body)
    if html:
        msg.add_alternative(html, subtype="html")
    try:
        mail_server: str = str(current_app.config.get("MAIL_SERVER"))
        mail_port: int = int(current_app.config.get("MAIL_PORT") or 0)
        with smtplib.SMTP(mail_server, mail_port, timeout=10) as server:
            if bool(current_app.config.get("MAIL_USE_TLS")):
                server.starttls()
            username = str(current_app.config.get("MAIL_USERNAME") or "")
            password = str(current_app.config.get("MAIL_PASSWORD") or "")
            if username and password:
                server.login(username, password)
            server.send_message(msg)
        return True
    except (smtplib.SMTPException, OSError):
        current_app.logger.exception("Failed to send email via SMTP")
        return False


def current_identity() -> dict | None:
    """The authenticated identity passed into team operations, or None."""
    if not current_user.is_authenticated:
        return None
    return {"userId": current_user.id, "email": current_user.email, "name": current_user.name}


@auth_bp.route("/auth/register", methods=["POST"])
def register():
    form = RegisterForm()
    if not form.validate_on_submit():
        return jsonify({"success": False, "error": form.first_error(), "category": "validation"}), 400
    email = normalize_email(form.email.data)
    if User.query.filter_by(email=email).first():
        return jsonify({"success": False, "error": "User already exists with this email", "category": "conflict"}), 409
    user = User()
    user.email = email
    user.name = (form.name.data or "").strip()
    user.set_password(cast(str, form.password.data))
    try:
        db.session.add(user)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        current_app.logger.info("Registration raced on unique email")
        return jsonify({"success": False, "error": "User already exists with this email", "category": "conflict"}), 409
    current_app.logger.info("User %s registered", user.id)
    return jsonify({"success": True, "message": "User created successfully", "user": user.to_profile()}), 201


@auth_bp.route("/auth/login", methods=["POST"])
def login():
    form = LoginForm()
    if not form.validate_on_submit():
        return jsonify({"success": False, "error": form.first_error(), "category": "validation"}), 400
    user = User.query.filter_by(email=normalize_email(form.email.data)).first()
    if user and user.check_password(cast(str, form.password.data)):
        login_user(user)
        return jsonify({"success": True, "user": current_identity()})
    return jsonify({"success": False, "error": "Invalid email or password", "category": "unauthorized"}), 401


@auth_bp.route("/auth/logout", methods=["POST"])
@login_required
def logout():
    logout_user()
    return jsonify({"success": True})


@auth_bp.route("/auth/me", methods=["GET"])
@login_required
def me():
    return jsonify({"user": current_identity()})
