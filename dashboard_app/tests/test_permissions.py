import pytest
from dashboard_app.app.auth.permissions import (
    CAPABILITIES,
    CAN_INVITE,
    CAN_READ,
    CAN_REMOVE_MEMBER,
    CAN_UPDATE_ROLE,
    capabilities_for,
    has_permission,
    outranks,
    role_rank,
)
from dashboard_app.app.models import ROLES
from conftest import add_member, create_org, create_user, login


@pytest.mark.parametrize("role,expected", [
    ("owner", {CAN_READ, CAN_INVITE, CAN_UPDATE_ROLE, CAN_REMOVE_MEMBER}),
    ("admin", {CAN_READ, CAN_INVITE, CAN_UPDATE_ROLE, CAN_REMOVE_MEMBER}),
    ("member", {CAN_READ}),
    ("viewer", {CAN_READ}),
])
def test_has_permission_follows_role_table(app, role, expected):
    org = create_org()
    user = create_user(f'{role}@acme.io')
    add_member(org, user, role)
    for capability in CAPABILITIES:
        assert has_permission(org.id, user.id, capability) is (capability in expected)


def test_non_member_has_no_capability(app):
    org = create_org()
    outsider = create_user('outsider@acme.io')
    for capability in CAPABILITIES:
        assert has_permission(org.id, outsider.id, capability) is False
    # unknown organization and user ids are a plain "no"
    assert has_permission(9999, outsider.id, CAN_READ) is False
    assert has_permission(org.id, 9999, CAN_READ) is False


def test_unknown_capability_is_denied(app):
    org = create_org()
    owner = create_user('owner@acme.io')
    add_member(org, owner, 'owner')
    assert has_permission(org.id, owner.id, 'canDeleteEverything') is False


def test_capabilities_are_monotonic_in_rank():
    ordered = sorted(ROLES, key=role_rank)
    for lower, higher in zip(ordered, ordered[1:]):
        assert capabilities_for(lower) <= capabilities_for(higher)


def test_rank_is_a_total_order():
    assert [r for r in sorted(ROLES, key=role_rank, reverse=True)] == ['owner', 'admin', 'member', 'viewer']
    assert outranks('owner', 'admin')
    assert not outranks('admin', 'admin')
    assert not outranks('member', 'admin')
    assert role_rank('nobody') < role_rank('viewer')


def test_team_endpoint_requires_login(client, app):
    org = create_org()
    resp = client.get(f'/api/v1/organizations/{org.id}/team')
    assert resp.status_code == 401
    assert resp.get_json()['category'] == 'unauthorized'


def test_team_endpoint_forbids_non_members(client, app):
    org = create_org()
    outsider = create_user('outsider@acme.io')
    login(client, outsider)
    resp = client.get(f'/api/v1/organizations/{org.id}/team')
    assert resp.status_code == 403
    assert resp.get_json()['error'] == 'Forbidden'
