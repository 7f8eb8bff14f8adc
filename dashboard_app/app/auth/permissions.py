from __future__ import annotations
from functools import wraps
from flask import jsonify
from flask_login import current_user
from .. import db
from ..models import OrganizationMember, ROLE_OWNER, ROLE_ADMIN, ROLE_MEMBER, ROLE_VIEWER

CAN_READ = "canRead"
CAN_INVITE = "canInvite"
CAN_UPDATE_ROLE = "canUpdateRole"
CAN_REMOVE_MEMBER = "canRemoveMember"
CAPABILITIES = (CAN_READ, CAN_INVITE, CAN_UPDATE_ROLE, CAN_REMOVE_MEMBER)

# Explicit total order over roles; higher outranks lower.
ROLE_RANK = {
    ROLE_VIEWER: 0,
    ROLE_MEMBER: 1,
    ROLE_ADMIN: 2,
    ROLE_OWNER: 3,
}

ROLE_CAPABILITIES = {
    ROLE_OWNER: frozenset(CAPABILITIES),
    ROLE_ADMIN: frozenset(CAPABILITIES),
    ROLE_MEMBER: frozenset({CAN_READ}),
    ROLE_VIEWER: frozenset({CAN_READ}),
}


def role_rank(role: "str | None") -> int:
    return ROLE_RANK.get(role or "", -1)


def outranks(actor_role: str, target_role: str) -> bool:
    """True when ``actor_role`` is strictly above ``target_role``."""
    return role_rank(actor_role) > role_rank(target_role)


def capabilities_for(role: "str | None") -> frozenset:
    return ROLE_CAPABILITIES.get(role or "", frozenset())


def get_membership(organization_id: int, user_id: int) -> "OrganizationMember | None":
    return db.session.get(OrganizationMember, (user_id, organization_id))


def has_permission(organization_id: int, user_id: int, capability: str) -> bool:
    """Return whether ``user_id`` holds ``capability`` in the organization.

    A caller without a membership has no capability. This never raises for
    non-members; lack of permission is an ordinary answer.
    """
    if organization_id is None or user_id is None:
        return False
    membership = get_membership(organization_id, user_id)
    if membership is None:
        return False
    return capability in capabilities_for(membership.role)


def org_permission_required(capability: str):
    """Guard a view taking ``org_id`` with an organization capability."""
    def decorator(f):
        @wraps(f)
        def wrapped(*args, **kwargs):
            if not current_user.is_authenticated:
                return jsonify({"success": False, "error": "Unauthorized", "category": "unauthorized"}), 401
            if not has_permission(kwargs.get("org_id"), current_user.id, capability):
                return jsonify({"success": False, "error": "Forbidden", "category": "forbidden"}), 403
            return f(*args, **kwargs)
        return wrapped
    return decorator
