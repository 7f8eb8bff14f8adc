"""Invitation lifecycle: invite, cancel, accept.

An invitation starts ``pending`` and ends ``accepted``, ``cancelled`` or
``expired``. All three are terminal. Expiry is time based; reads only filter
expired rows, while these write paths settle them to ``expired`` before
deciding.
"""
from __future__ import annotations
from datetime import timedelta
from flask import current_app
from itsdangerous import URLSafeTimedSerializer
from sqlalchemy.exc import IntegrityError
from .. import db
from ..auth.permissions import CAN_INVITE, get_membership, has_permission
from ..utils.db import commit
from ..models import (
    Invitation,
    OrganizationMember,
    User,
    INVITABLE_ROLES,
    INVITATION_ACCEPTED,
    INVITATION_CANCELLED,
    INVITATION_EXPIRED,
    INVITATION_PENDING,
    normalize_email,
    utcnow,
)
from . import results
from .results import ErrorCategory, TeamResult


def _expiry_window() -> timedelta:
    return timedelta(days=int(current_app.config.get("INVITATION_EXPIRY_DAYS", 7)))


def _serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(current_app.config["SECRET_KEY"])


def make_invitation_token(invitation: Invitation) -> str:
    return _serializer().dumps({"inv_id": invitation.id}, salt=current_app.config.get("SECURITY_PASSWORD_SALT"))


def read_invitation_token(token: str) -> "int | None":
    """Return the invitation id carried by ``token``.

    Raises ``itsdangerous.SignatureExpired`` / ``BadSignature`` for expired or
    tampered tokens; callers translate those into responses.
    """
    max_age = int(_expiry_window().total_seconds())
    data = _serializer().loads(token, salt=current_app.config.get("SECURITY_PASSWORD_SALT"), max_age=max_age)
    return data.get("inv_id") if isinstance(data, dict) else None


def _settle_if_expired(invitation: Invitation, now) -> bool:
    """Mark a lapsed pending invitation as expired. Returns True when it lapsed."""
    if invitation.status == INVITATION_PENDING and invitation.is_expired(now):
        invitation.status = INVITATION_EXPIRED
        db.session.add(invitation)
        return True
    return False


def _is_member_email(organization_id: int, email: str) -> bool:
    existing = (
        db.session.query(OrganizationMember)
        .join(User, User.id == OrganizationMember.user_id)
        .filter(OrganizationMember.organization_id == organization_id, User.email == email)
        .first()
    )
    return existing is not None


def invite_team_member(organization_id: int, email: str, role: str, inviter_user_id: int, notify: bool = True) -> TeamResult:
    if role not in INVITABLE_ROLES:
        return TeamResult.fail(ErrorCategory.VALIDATION, results.INVALID_ROLE)
    if not has_permission(organization_id, inviter_user_id, CAN_INVITE):
        return TeamResult.fail(ErrorCategory.FORBIDDEN, results.FORBIDDEN)
    email = normalize_email(email)
    if not email:
        return TeamResult.fail(ErrorCategory.VALIDATION, "Email is required")
    if _is_member_email(organization_id, email):
        return TeamResult.fail(ErrorCategory.CONFLICT, results.ALREADY_MEMBER)

    now = utcnow()
    current = Invitation.query.filter_by(
        organization_id=organization_id, email=email, status=INVITATION_PENDING
    ).first()
    if current is not None:
        if not _settle_if_expired(current, now):
            return TeamResult.fail(ErrorCategory.CONFLICT, results.ALREADY_PENDING)
        # the lapsed row must leave 'pending' before the new one is inserted
        db.session.flush()

    inv = Invitation(
        email=email,
        organization_id=organization_id,
        invited_by=inviter_user_id,
        role=role,
        status=INVITATION_PENDING,
        created_at=now,
        expires_at=now + _expiry_window(),
    )
    db.session.add(inv)
    try:
        commit("create invitation")
    except IntegrityError:
        # a concurrent request won the race for this (organization, email)
        current_app.logger.info("Duplicate pending invitation rejected for organization %s", organization_id)
        return TeamResult.fail(ErrorCategory.CONFLICT, results.ALREADY_PENDING)
    current_app.logger.info("Invitation %s created in organization %s by user %s", inv.id, organization_id, inviter_user_id)

    if notify:
        from ..notifications import dispatch_invitation_email

        dispatch_invitation_email(inv)
    return TeamResult.ok(invitation=inv)


def cancel_invitation(organization_id: int, invitation_id: int, caller_user_id: int) -> TeamResult:
    if not has_permission(organization_id, caller_user_id, CAN_INVITE):
        return TeamResult.fail(ErrorCategory.FORBIDDEN, results.FORBIDDEN)
    inv = Invitation.query.filter_by(id=invitation_id, organization_id=organization_id).first()
    if inv is None or inv.status != INVITATION_PENDING:
        return TeamResult.fail(ErrorCategory.NOT_FOUND, results.INVITATION_NOT_FOUND)
    now = utcnow()
    if _settle_if_expired(inv, now):
        commit("expire invitation")
        return TeamResult.fail(ErrorCategory.NOT_FOUND, results.INVITATION_NOT_FOUND)
    inv.status = INVITATION_CANCELLED
    inv.cancelled_at = now
    db.session.add(inv)
    commit("cancel invitation")
    current_app.logger.info("Invitation %s cancelled by user %s", inv.id, caller_user_id)
    return TeamResult.ok(invitation=inv)


def accept_invitation(invitation_id: int, user_id: int) -> TeamResult:
    inv = db.session.get(Invitation, invitation_id) if invitation_id is not None else None
    if inv is None or inv.status != INVITATION_PENDING:
        return TeamResult.fail(ErrorCategory.NOT_FOUND, results.INVITATION_NOT_FOUND)
    now = utcnow()
    if _settle_if_expired(inv, now):
        commit("expire invitation")
        return TeamResult.fail(ErrorCategory.NOT_FOUND, results.INVITATION_NOT_FOUND)
    user = db.session.get(User, user_id)
    if user is None or normalize_email(user.email) != inv.email:
        return TeamResult.fail(ErrorCategory.FORBIDDEN, "Invitation was issued to a different email")
    if get_membership(inv.organization_id, user.id) is not None:
        return TeamResult.fail(ErrorCategory.CONFLICT, results.ALREADY_MEMBER)

    membership = OrganizationMember(user_id=user.id, organization_id=inv.organization_id, role=inv.role, joined_at=now)
    inv.status = INVITATION_ACCEPTED
    inv.accepted_at = now
    db.session.add(membership)
    db.session.add(inv)
    try:
        commit("accept invitation")
    except IntegrityError:
        return TeamResult.fail(ErrorCategory.CONFLICT, results.ALREADY_MEMBER)
    current_app.logger.info("Invitation %s accepted by user %s", inv.id, user.id)
    return TeamResult.ok(invitation=inv, membership=membership)
