from __future__ import annotations
from flask import Blueprint, jsonify, request
from flask_login import current_user
from ..auth.permissions import (
    CAN_INVITE,
    CAN_READ,
    CAN_UPDATE_ROLE,
    has_permission,
    org_permission_required,
)
from ..forms import CancelInvitationForm, InviteMemberForm, RemoveMemberForm, UpdateRoleForm
from ..team.directory import get_pending_invitations, get_team_members, serialize_invitation, serialize_member
from ..team.invitations import cancel_invitation, invite_team_member
from ..team.members import remove_member, update_member_role

api_bp = Blueprint("api_v1", __name__)

# action -> (form, capability checked before field validation, success message)
# remove_member has no up-front gate: members may always remove themselves.
TEAM_ACTIONS = {
    "invite": (InviteMemberForm, CAN_INVITE, "Invitation sent successfully"),
    "update_role": (UpdateRoleForm, CAN_UPDATE_ROLE, "Member role updated successfully"),
    "remove_member": (RemoveMemberForm, None, "Member removed successfully"),
    "cancel_invitation": (CancelInvitationForm, CAN_INVITE, "Invitation cancelled successfully"),
}


def _error(message: str, category: str, status: int):
    return jsonify({"success": False, "error": message, "category": category}), status


@api_bp.route("/organizations/<int:org_id>/team", methods=["GET"])
@org_permission_required(CAN_READ)
def get_team(org_id: int):
    members = get_team_members(org_id)
    invitations = get_pending_invitations(org_id)
    return jsonify({
        "members": [serialize_member(m, u) for m, u in members],
        "invitations": [serialize_invitation(inv) for inv in invitations],
        "totalMembers": len(members),
        "pendingInvitations": len(invitations),
    })


@api_bp.route("/organizations/<int:org_id>/team", methods=["POST"])
@org_permission_required(CAN_READ)
def team_action(org_id: int):
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return _error("Invalid request body", "validation", 400)
    action = data.get("action")
    if not isinstance(action, str) or action not in TEAM_ACTIONS:
        return _error("Invalid action", "validation", 400)
    form_cls, capability, message = TEAM_ACTIONS[action]
    if capability and not has_permission(org_id, current_user.id, capability):
        return _error("Forbidden", "forbidden", 403)

    form = form_cls()
    if not form.validate():
        return _error(form.first_error(), "validation", 400)

    if action == "invite":
        result = invite_team_member(org_id, form.email.data, form.role.data, current_user.id)
    elif action == "update_role":
        result = update_member_role(org_id, form.memberId.data, form.newRole.data, current_user.id)
    elif action == "remove_member":
        result = remove_member(org_id, form.memberId.data, current_user.id)
    else:
        result = cancel_invitation(org_id, form.invitationId.data, current_user.id)

    if not result.success:
        return jsonify(result.error_payload()), result.status_code
    body = {"success": True, "message": message}
    if result.invitation is not None and action == "invite":
        body["invitation"] = serialize_invitation(result.invitation)
    return jsonify(body)
