from datetime import timedelta
import pytest
from dashboard_app.app import db
from dashboard_app.app.models import Invitation, OrganizationMember
from conftest import add_invitation, add_member, create_org, create_user, login


@pytest.fixture
def team(app):
    org = create_org()
    users = {}
    for offset, role in enumerate(('owner', 'admin', 'member', 'viewer')):
        users[role] = create_user(f'{role}@acme.io')
        add_member(org, users[role], role, joined_offset=offset)
    return org, users


def team_url(org):
    return f'/api/v1/organizations/{org.id}/team'


def test_get_team_lists_members_and_live_invitations(client, team):
    org, users = team
    add_invitation(org, users['owner'], 'bob@x.com', role='admin')
    add_invitation(org, users['owner'], 'old@x.com', expires_in=timedelta(seconds=-5))
    login(client, users['viewer'])
    resp = client.get(team_url(org))
    assert resp.status_code == 200
    data = resp.get_json()
    assert data['totalMembers'] == 4
    assert data['pendingInvitations'] == 1
    assert [m['role'] for m in data['members']] == ['owner', 'admin', 'member', 'viewer']
    first = data['members'][0]
    assert first['userId'] == users['owner'].id
    assert first['user'] == {'id': users['owner'].id, 'email': 'owner@acme.io', 'name': 'owner'}
    assert first['joinedAt'].endswith('Z')
    inv = data['invitations'][0]
    assert inv['email'] == 'bob@x.com'
    assert inv['role'] == 'admin'
    assert inv['status'] == 'pending'
    assert inv['invitedBy'] == users['owner'].id


def test_invite_via_api_sends_email(client, team, no_outbound_email):
    org, users = team
    login(client, users['admin'])
    resp = client.post(team_url(org), json={'action': 'invite', 'email': 'Bob@X.com', 'role': 'member'})
    assert resp.status_code == 200
    body = resp.get_json()
    assert body['success'] is True
    assert body['message'] == 'Invitation sent successfully'
    assert body['invitation']['email'] == 'bob@x.com'
    assert [m['recipient'] for m in no_outbound_email] == ['bob@x.com']
    assert '/api/v1/invitations/accept/' in no_outbound_email[0]['body']


def test_duplicate_invite_via_api_conflicts(client, team):
    org, users = team
    login(client, users['owner'])
    payload = {'action': 'invite', 'email': 'bob@x.com', 'role': 'viewer'}
    assert client.post(team_url(org), json=payload).status_code == 200
    resp = client.post(team_url(org), json=payload)
    assert resp.status_code == 409
    assert resp.get_json() == {'success': False, 'error': 'Invitation already pending', 'category': 'conflict'}


def test_member_invite_is_forbidden_before_validation(client, team):
    org, users = team
    login(client, users['member'])
    # the malformed email is never looked at
    resp = client.post(team_url(org), json={'action': 'invite', 'email': 'not-an-email', 'role': 'viewer'})
    assert resp.status_code == 403
    assert Invitation.query.count() == 0


@pytest.mark.parametrize("payload,error", [
    ({'action': 'invite', 'role': 'member'}, 'Email and role are required'),
    ({'action': 'invite', 'email': 'not-an-email', 'role': 'member'}, 'Invalid email address'),
    ({'action': 'invite', 'email': 'bob@x.com', 'role': 'owner'}, 'Invalid role'),
    ({'action': 'update_role', 'memberId': 1}, 'Member ID and new role are required'),
    ({'action': 'update_role', 'memberId': 1, 'newRole': 'boss'}, 'Invalid role'),
    ({'action': 'remove_member'}, 'Member ID is required'),
    ({'action': 'cancel_invitation'}, 'Invitation ID is required'),
    ({'action': 'invite', 'email': 123, 'role': 'member'}, 'Invalid email address'),
    ({'action': 'invite', 'email': {'address': 'bob@x.com'}, 'role': 'member'}, 'Invalid email address'),
    ({'action': 'invite', 'email': True, 'role': 'member'}, 'Invalid email address'),
    ({'action': 'invite', 'email': 'bob@x.com', 'role': None}, 'Email and role are required'),
    ({'action': 'invite', 'email': 'bob@x.com', 'role': 7}, 'Invalid role'),
    ({'action': 'update_role', 'memberId': 1, 'newRole': {'role': 'admin'}}, 'Invalid role'),
    ({'action': 'update_role', 'memberId': None, 'newRole': 'admin'}, 'Member ID and new role are required'),
    ({'action': 'remove_member', 'memberId': {'id': 1}}, 'Not a valid integer value.'),
    ({'action': 'remove_member', 'memberId': 'abc'}, 'Not a valid integer value.'),
    ({'action': 'cancel_invitation', 'invitationId': None}, 'Invitation ID is required'),
])
def test_team_action_validation(client, team, payload, error):
    org, users = team
    login(client, users['owner'])
    resp = client.post(team_url(org), json=payload)
    assert resp.status_code == 400
    assert resp.get_json()['error'] == error
    assert resp.get_json()['category'] == 'validation'


def test_unknown_action_is_rejected(client, team):
    org, users = team
    login(client, users['owner'])
    resp = client.post(team_url(org), json={'action': 'promote_everyone'})
    assert resp.status_code == 400
    assert resp.get_json()['error'] == 'Invalid action'


@pytest.mark.parametrize("action", [['invite'], {'x': 1}, 42, None, True])
def test_non_string_action_is_rejected(client, team, action):
    org, users = team
    login(client, users['owner'])
    resp = client.post(team_url(org), json={'action': action, 'email': 'bob@x.com', 'role': 'member'})
    assert resp.status_code == 400
    assert resp.get_json() == {'success': False, 'error': 'Invalid action', 'category': 'validation'}
    assert Invitation.query.count() == 0


@pytest.mark.parametrize("body", [['invite'], 'invite', 3])
def test_non_object_body_is_rejected(client, team, body):
    org, users = team
    login(client, users['owner'])
    resp = client.post(team_url(org), json=body)
    assert resp.status_code == 400
    assert resp.get_json()['category'] == 'validation'


def test_update_role_via_api(client, team):
    org, users = team
    login(client, users['admin'])
    resp = client.post(team_url(org), json={'action': 'update_role', 'memberId': users['viewer'].id, 'newRole': 'member'})
    assert resp.status_code == 200
    assert resp.get_json()['message'] == 'Member role updated successfully'
    assert db.session.get(OrganizationMember, (users['viewer'].id, org.id)).role == 'member'


def test_last_owner_via_api(client, team):
    org, users = team
    login(client, users['owner'])
    resp = client.post(team_url(org), json={'action': 'update_role', 'memberId': users['owner'].id, 'newRole': 'admin'})
    assert resp.status_code == 409
    assert resp.get_json()['category'] == 'invariant_violation'


def test_viewer_can_leave_but_not_remove_others(client, team):
    org, users = team
    login(client, users['viewer'])
    resp = client.post(team_url(org), json={'action': 'remove_member', 'memberId': users['member'].id})
    assert resp.status_code == 403
    resp = client.post(team_url(org), json={'action': 'remove_member', 'memberId': users['viewer'].id})
    assert resp.status_code == 200
    assert resp.get_json()['message'] == 'Member removed successfully'
    assert db.session.get(OrganizationMember, (users['viewer'].id, org.id)) is None


def test_cancel_invitation_via_api(client, team):
    org, users = team
    inv = add_invitation(org, users['owner'], 'bob@x.com')
    login(client, users['admin'])
    resp = client.post(team_url(org), json={'action': 'cancel_invitation', 'invitationId': inv.id})
    assert resp.status_code == 200
    assert db.session.get(Invitation, inv.id).status == 'cancelled'
    resp = client.post(team_url(org), json={'action': 'cancel_invitation', 'invitationId': inv.id})
    assert resp.status_code == 404


def test_non_json_body_is_rejected(client, team):
    org, users = team
    login(client, users['owner'])
    resp = client.post(team_url(org), data='action=invite', content_type='text/plain')
    assert resp.status_code == 400
