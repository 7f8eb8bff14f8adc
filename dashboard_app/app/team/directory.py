"""Read-only team queries."""
from __future__ import annotations
from datetime import datetime
from .. import db
from ..models import Invitation, OrganizationMember, User, INVITATION_PENDING, utcnow


def _iso(dt: "datetime | None") -> "str | None":
    return dt.isoformat() + "Z" if dt else None


def get_team_members(organization_id: int) -> list[tuple[OrganizationMember, User]]:
    # join order, user id breaks ties so the listing is stable
    rows = (
        db.session.query(OrganizationMember, User)
        .join(User, User.id == OrganizationMember.user_id)
        .filter(OrganizationMember.organization_id == organization_id)
        .order_by(OrganizationMember.joined_at.asc(), OrganizationMember.user_id.asc())
        .all()
    )
    return [(membership, user) for membership, user in rows]


def get_pending_invitations(organization_id: int, now: "datetime | None" = None) -> list[Invitation]:
    """Pending invitations that have not yet expired.

    Expired rows are filtered out here and left untouched; the write paths
    and the ``expire_stale_invitations`` job settle their status.
    """
    now = now or utcnow()
    return (
        Invitation.query.filter(
            Invitation.organization_id == organization_id,
            Invitation.status == INVITATION_PENDING,
            Invitation.expires_at > now,
        )
        .order_by(Invitation.created_at.asc(), Invitation.id.asc())
        .all()
    )


def serialize_member(membership: OrganizationMember, user: User) -> dict:
    return {
        "userId": membership.user_id,
        "organizationId": membership.organization_id,
        "role": membership.role,
        "joinedAt": _iso(membership.joined_at),
        "user": user.to_profile(),
    }


def serialize_invitation(invitation: Invitation) -> dict:
    return {
        "id": invitation.id,
        "organizationId": invitation.organization_id,
        "email": invitation.email,
        "role": invitation.role,
        "status": invitation.status,
        "invitedBy": invitation.invited_by,
        "createdAt": _iso(invitation.created_at),
        "expiresAt": _iso(invitation.expires_at),
    }
