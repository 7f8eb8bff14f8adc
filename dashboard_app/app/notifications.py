"""Best-effort invitation emails.

The invitation row is the source of truth; a failed or slow delivery is
logged and never surfaces to the request that created the invitation.
"""
from __future__ import annotations

import threading

from flask import Flask, current_app, has_request_context, url_for

from .auth.routes import send_email
from .models import Invitation


def _accept_url(token: str) -> str:
    if has_request_context():
        return url_for("organizations.accept_invitation", token=token, _external=True)
    base = str(current_app.config.get("APP_BASE_URL") or "").rstrip("/")
    return f"{base}/api/v1/invitations/accept/{token}"


def _deliver(app: Flask, invitation_id: int, subject: str, recipient: str, body: str) -> bool:
    with app.app_context():
        try:
            ok = send_email(subject, recipient, body)
        except Exception:
            app.logger.exception("Invitation email for invitation %s raised", invitation_id)
            return False
        if not ok:
            app.logger.error("Invitation email for invitation %s was not delivered", invitation_id)
        return ok


def dispatch_invitation_email(invitation: Invitation) -> None:
    app = current_app._get_current_object()  # type: ignore[attr-defined]
    try:
        from .team.invitations import make_invitation_token

        org = invitation.organization
        accept_url = _accept_url(make_invitation_token(invitation))
        days = int(app.config.get("INVITATION_EXPIRY_DAYS", 7))
        subject = f"Invitation to join {org.name}"
        body = (
            f"You have been invited to join {org.name} as {invitation.role}.\n\n"
            f"Accept the invitation here:\n\n{accept_url}\n\n"
            f"This link expires in {days} days."
        )
        args = (app, invitation.id, subject, invitation.email, body)
    except Exception:
        app.logger.exception("Could not prepare invitation email for invitation %s", invitation.id)
        return

    if app.config.get("INVITATION_EMAIL_ASYNC", True):
        threading.Thread(target=_deliver, args=args, daemon=True).start()
    else:
        _deliver(*args)
