"""Role changes and member removal.

Both operations protect the last-owner invariant: an organization always
keeps at least one ``owner``. ``member_id`` is the target's user id.
"""
from __future__ import annotations
from flask import current_app
from .. import db
from ..auth.permissions import (
    CAN_REMOVE_MEMBER,
    CAN_UPDATE_ROLE,
    capabilities_for,
    get_membership,
    outranks,
    role_rank,
)
from ..models import OrganizationMember, ROLES, ROLE_OWNER
from ..utils.db import commit
from . import results
from .results import ErrorCategory, TeamResult


def count_owners(organization_id: int) -> int:
    return OrganizationMember.query.filter_by(organization_id=organization_id, role=ROLE_OWNER).count()


def owner_rows(organization_id: int):
    """Owner memberships of an organization, row-locked until the transaction ends.

    Concurrent demotions or removals of different owners serialize on these
    rows, so each one sees the owners the other left behind.
    """
    return (
        OrganizationMember.query.filter_by(organization_id=organization_id, role=ROLE_OWNER)
        .order_by(OrganizationMember.user_id)
        .with_for_update()
        .populate_existing()
    )


def _is_sole_owner(target: OrganizationMember) -> bool:
    if target.role != ROLE_OWNER:
        return False
    owners = {m.user_id for m in owner_rows(target.organization_id)}
    return owners <= {target.user_id}


def _may_act_on(caller: OrganizationMember, target: OrganizationMember) -> bool:
    # owners may act on anyone; everyone else only on strictly lower ranks
    return caller.role == ROLE_OWNER or outranks(caller.role, target.role)


def update_member_role(organization_id: int, member_id: int, new_role: str, caller_user_id: int) -> TeamResult:
    if new_role not in ROLES:
        return TeamResult.fail(ErrorCategory.VALIDATION, results.INVALID_ROLE)
    caller = get_membership(organization_id, caller_user_id)
    if caller is None or CAN_UPDATE_ROLE not in capabilities_for(caller.role):
        return TeamResult.fail(ErrorCategory.FORBIDDEN, results.FORBIDDEN)
    target = get_membership(organization_id, member_id)
    if target is None:
        return TeamResult.fail(ErrorCategory.NOT_FOUND, results.MEMBER_NOT_FOUND)
    if new_role != ROLE_OWNER and _is_sole_owner(target):
        return TeamResult.fail(ErrorCategory.INVARIANT_VIOLATION, results.LAST_OWNER)
    if not _may_act_on(caller, target) or role_rank(new_role) > role_rank(caller.role):
        return TeamResult.fail(ErrorCategory.FORBIDDEN, results.INSUFFICIENT_PRIVILEGE)

    if target.role == new_role:
        return TeamResult.ok(membership=target)
    previous = target.role
    target.role = new_role
    db.session.add(target)
    commit("update member role")
    current_app.logger.info(
        "Member %s in organization %s changed from %s to %s by user %s",
        member_id, organization_id, previous, new_role, caller_user_id,
    )
    return TeamResult.ok(membership=target)


def remove_member(organization_id: int, member_id: int, caller_user_id: int) -> TeamResult:
    caller = get_membership(organization_id, caller_user_id)
    if caller is None:
        return TeamResult.fail(ErrorCategory.FORBIDDEN, results.FORBIDDEN)
    removing_self = member_id == caller_user_id
    if not removing_self and CAN_REMOVE_MEMBER not in capabilities_for(caller.role):
        return TeamResult.fail(ErrorCategory.FORBIDDEN, results.FORBIDDEN)
    target = caller if removing_self else get_membership(organization_id, member_id)
    if target is None:
        return TeamResult.fail(ErrorCategory.NOT_FOUND, results.MEMBER_NOT_FOUND)
    if _is_sole_owner(target):
        return TeamResult.fail(ErrorCategory.INVARIANT_VIOLATION, results.LAST_OWNER)
    if not removing_self and not _may_act_on(caller, target):
        return TeamResult.fail(ErrorCategory.FORBIDDEN, results.INSUFFICIENT_PRIVILEGE)

    db.session.delete(target)
    commit("remove member")
    current_app.logger.info(
        "Member %s removed from organization %s by user %s", member_id, organization_id, caller_user_id
    )
    return TeamResult.ok()
