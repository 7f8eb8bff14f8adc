from __future__ import annotations
import re
import time
from flask import current_app
from sqlalchemy.exc import IntegrityError
from .. import db
from ..models import Organization, OrganizationMember, User, ROLE_OWNER, utcnow
from ..team.results import ErrorCategory, TeamResult
from ..utils.db import commit


def slugify(name: str) -> str:
    s = (name or "").lower()
    s = re.sub(r"[^a-z0-9]", "-", s)
    s = re.sub(r"-+", "-", s)
    return s.strip("-")


def first_membership(user_id: int) -> "OrganizationMember | None":
    return (
        OrganizationMember.query.filter_by(user_id=user_id)
        .order_by(OrganizationMember.joined_at.asc(), OrganizationMember.organization_id.asc())
        .first()
    )


def _add_with_owner(org: Organization, user: User) -> OrganizationMember:
    db.session.add(org)
    db.session.flush()
    membership = OrganizationMember(user_id=user.id, organization_id=org.id, role=ROLE_OWNER, joined_at=utcnow())
    db.session.add(membership)
    return membership


def ensure_default_organization(user: User) -> tuple[Organization, OrganizationMember, bool]:
    """Return the user's primary organization, creating one on first access.

    Idempotent: a user who already belongs to any organization gets the one
    they joined first and nothing is created.
    """
    existing = first_membership(user.id)
    if existing is not None:
        return existing.organization, existing, False

    slug = f"org-{str(user.id)[-6:]}-{int(time.time() * 1000)}"
    org = Organization(name=user.name or user.email or "My Organization", slug=slug, subscription_tier="free")
    membership = _add_with_owner(org, user)
    try:
        commit("create default organization")
    except IntegrityError:
        # another request provisioned concurrently; use whatever it created
        existing = first_membership(user.id)
        if existing is None:
            raise
        return existing.organization, existing, False
    current_app.logger.info("Default organization %s created for user %s", org.id, user.id)
    return org, membership, True


def create_organization(name: str, owner: User) -> TeamResult:
    name = (name or "").strip()
    if len(name) < 2:
        return TeamResult.fail(ErrorCategory.VALIDATION, "Organization name must be at least 2 characters")
    slug = slugify(name)
    if not slug:
        return TeamResult.fail(ErrorCategory.VALIDATION, "Organization name must contain letters or digits")
    if Organization.query.filter_by(slug=slug).first():
        return TeamResult.fail(ErrorCategory.CONFLICT, "Organization name already exists")
    org = Organization(name=name, slug=slug, subscription_tier="free")
    membership = _add_with_owner(org, owner)
    try:
        commit("create organization")
    except IntegrityError:
        return TeamResult.fail(ErrorCategory.CONFLICT, "Organization name already exists")
    current_app.logger.info("Organization %s created by user %s", org.id, owner.id)
    return TeamResult.ok(membership=membership)


def serialize_organization(org: Organization, membership: "OrganizationMember | None" = None) -> dict:
    data = {
        "id": org.id,
        "name": org.name,
        "slug": org.slug,
        "subscriptionTier": org.subscription_tier,
        "memberCount": len(org.memberships),
        "createdAt": org.created_at.isoformat() + "Z" if org.created_at else None,
        "updatedAt": org.updated_at.isoformat() + "Z" if org.updated_at else None,
    }
    if membership is not None:
        data["role"] = membership.role
        data["joinedAt"] = membership.joined_at.isoformat() + "Z" if membership.joined_at else None
    return data
