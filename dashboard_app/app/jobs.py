from __future__ import annotations
from datetime import datetime

from flask import current_app

from . import db
from .models import Invitation, INVITATION_EXPIRED, INVITATION_PENDING, utcnow


# Job decorator so runners can discover scheduled maintenance functions
def job(**meta):
    """Decorator to mark a function as a scheduled job.

    Example:
        @job(schedule='interval', minutes=60, id='expire_stale_invitations')
        def expire_stale_invitations():
            ...
    Supported meta keys: schedule (e.g. 'interval'), id, minutes, seconds, hours
    """

    def _decorator(fn):
        setattr(fn, "job_meta", meta)
        return fn

    return _decorator


@job(schedule="interval", minutes=60, id="expire_stale_invitations")
def expire_stale_invitations(now: "datetime | None" = None) -> int:
    """Move pending invitations past their expiry to ``expired``.

    Reads already hide lapsed invitations; this settles the stored status so
    the pending-uniqueness index frees up and reporting stays accurate.
    """
    now = now or utcnow()
    q = Invitation.query.filter(Invitation.status == INVITATION_PENDING, Invitation.expires_at <= now)
    count = q.update({Invitation.status: INVITATION_EXPIRED}, synchronize_session=False)
    db.session.commit()
    if count:
        current_app.logger.info("expire_stale_invitations: expired %s invitations", count)
    else:
        current_app.logger.info("expire_stale_invitations: nothing to expire")
    return count
