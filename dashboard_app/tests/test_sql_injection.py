def test_login_resists_sql_injection(client, app):
    # Register a normal user first
    rv = client.post('/api/v1/auth/register', json={
        'name': 'sqltester', 'email': 'sql@acme.io', 'password': 'safePass123'
    })
    assert rv.status_code == 201

    # Attempt SQL injection in the email field
    payload = "' OR '1'='1"
    rv = client.post('/api/v1/auth/login', json={'email': payload, 'password': 'doesnotmatter'})
    assert rv.status_code in (400, 401)
    # Login should fail and not set a logged-in session
    with client.session_transaction() as sess:
        assert '_user_id' not in sess

    rv = client.post('/api/v1/auth/login', json={'email': "sql@acme.io' --", 'password': 'safePass123'})
    assert rv.status_code in (400, 401)

    # Ensure correct credentials still work
    rv = client.post('/api/v1/auth/login', json={'email': 'sql@acme.io', 'password': 'safePass123'})
    assert rv.status_code == 200


def test_team_path_rejects_non_integer_org_id(client, app):
    rv = client.get("/api/v1/organizations/1%20OR%201=1/team")
    assert rv.status_code == 404
