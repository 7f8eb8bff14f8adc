import os
from typing import Final

basedir = os.path.abspath(os.path.dirname(__file__))

class Config:
    SECRET_KEY: Final[str] = os.getenv("SECRET_KEY", "change-me-in-production")
    try:
        SQLALCHEMY_DATABASE_URI: Final[str] = os.environ["DATABASE_URL"]
    except KeyError:
        raise RuntimeError("DATABASE_URL environment variable is required (no sqlite fallback)")
    SQLALCHEMY_TRACK_MODIFICATIONS: Final[bool] = False
    SESSION_COOKIE_HTTPONLY: Final[bool] = True
    SESSION_COOKIE_SECURE: Final[bool] = os.getenv("FLASK_ENV") == "production"
    SESSION_COOKIE_SAMESITE: Final[str] = os.getenv("SESSION_COOKIE_SAMESITE", "Lax")
    REMEMBER_COOKIE_HTTPONLY: Final[bool] = True
    REMEMBER_COOKIE_SECURE: Final[bool] = os.getenv("FLASK_ENV") == "production"
    # Mail settings (invitation emails)
    MAIL_SERVER: Final[str] = os.getenv("MAIL_SERVER", "smtp.gmail.com")
    MAIL_PORT: Final[int] = int(os.getenv("MAIL_PORT", "587"))
    MAIL_USE_TLS: Final[bool] = bool(os.getenv("MAIL_USE_TLS", "True") == "True")
    MAIL_USERNAME: Final[str] = os.getenv("MAIL_USERNAME", "")
    MAIL_PASSWORD: Final[str] = os.getenv("MAIL_PASSWORD", "")
    MAIL_DEFAULT_SENDER: Final[str] = os.getenv("MAIL_DEFAULT_SENDER", "no-reply@dashboard.local")
    # 'resend' uses the Resend API, anything else falls back to SMTP.
    EMAIL_PROVIDER: Final[str] = os.getenv("EMAIL_PROVIDER", "smtp")
    RESEND_API_KEY: Final[str] = os.getenv("RESEND_API_KEY", "")
    # Salt for signed invitation tokens
    SECURITY_PASSWORD_SALT: Final[str] = os.getenv("SECURITY_PASSWORD_SALT", "change-this-salt")
    # Invitations stay pending for this many days, and the signed link is valid for the same window.
    INVITATION_EXPIRY_DAYS: Final[int] = int(os.getenv("INVITATION_EXPIRY_DAYS", "7"))
    # Base URL for links in emails sent outside a request (CLI, jobs).
    APP_BASE_URL: Final[str] = os.getenv("APP_BASE_URL", "http://localhost:5000")
    # Deliver invitation emails on a background thread.
    INVITATION_EMAIL_ASYNC: Final[bool] = os.getenv("INVITATION_EMAIL_ASYNC", "True") == "True"
    # Flask-WTF CSRF settings. The JSON API blueprints are exempt.
    WTF_CSRF_TIME_LIMIT: Final[int] = int(os.getenv("WTF_CSRF_TIME_LIMIT", "86400"))
    WTF_CSRF_SECRET_KEY: Final[str] = os.getenv("WTF_CSRF_SECRET_KEY", SECRET_KEY)
    # Rotating log file for the dedicated scheduler process; empty disables it.
    SCHEDULER_LOG_FILE: Final[str] = os.getenv("SCHEDULER_LOG_FILE", "/tmp/scheduler.log")
