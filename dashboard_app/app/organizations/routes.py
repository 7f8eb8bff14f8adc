from __future__ import annotations
from flask import Blueprint, jsonify
from flask_login import login_required, current_user
from itsdangerous import BadSignature, SignatureExpired
from ..forms import OrganizationForm
from ..models import Organization, OrganizationMember
from ..auth.permissions import get_membership
from ..team.directory import serialize_invitation
from ..team.invitations import accept_invitation as accept_invitation_record, read_invitation_token
from .services import create_organization, ensure_default_organization, serialize_organization

org_bp = Blueprint("organizations", __name__)


@org_bp.route("/organizations", methods=["GET"])
@login_required
def list_orgs():
    memberships = (
        OrganizationMember.query.filter_by(user_id=current_user.id)
        .order_by(OrganizationMember.joined_at.asc())
        .all()
    )
    organizations = [serialize_organization(m.organization, m) for m in memberships]
    return jsonify({"organizations": organizations, "totalCount": len(organizations)})


@org_bp.route("/organizations", methods=["POST"])
@login_required
def create_org():
    form = OrganizationForm()
    if not form.validate_on_submit():
        return jsonify({"success": False, "error": form.first_error(), "category": "validation"}), 400
    result = create_organization(form.name.data, current_user)
    if not result.success:
        return jsonify(result.error_payload()), result.status_code
    membership = result.membership
    return jsonify({"success": True, "organization": serialize_organization(membership.organization, membership)}), 201


@org_bp.route("/organizations/current", methods=["GET"])
@login_required
def current_org():
    org, membership, created = ensure_default_organization(current_user)
    return jsonify({"organization": serialize_organization(org, membership), "created": created})


@org_bp.route("/organizations/by-slug/<slug>", methods=["GET"])
@login_required
def org_by_slug(slug: str):
    org = Organization.query.filter_by(slug=slug).first()
    if org is None:
        return jsonify({"success": False, "error": "Organization not found", "category": "not_found"}), 404
    membership = get_membership(org.id, current_user.id)
    if membership is None:
        return jsonify({"success": False, "error": "Access denied", "category": "forbidden"}), 403
    data = serialize_organization(org)
    data["userRole"] = membership.role
    data["memberSince"] = membership.joined_at.isoformat() + "Z"
    data["stats"] = {"totalMembers": len(org.memberships)}
    return jsonify({"organization": data})


@org_bp.route("/invitations/accept/<token>", methods=["POST"])
@login_required
def accept_invitation(token: str):
    try:
        inv_id = read_invitation_token(token)
    except SignatureExpired:
        return jsonify({"success": False, "error": "Invitation link has expired", "category": "not_found"}), 404
    except BadSignature:
        return jsonify({"success": False, "error": "Invalid invitation link", "category": "validation"}), 400
    result = accept_invitation_record(inv_id, current_user.id)
    if not result.success:
        return jsonify(result.error_payload()), result.status_code
    return jsonify({
        "success": True,
        "message": "Invitation accepted",
        "invitation": serialize_invitation(result.invitation),
        "organization": serialize_organization(result.membership.organization, result.membership),
    })
