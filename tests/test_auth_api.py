def test_token_login(client):
    response = client.post('/api/auth/token', json={'username': 'pathologist', 'password': 'password'})

    assert response.status_code == 200
    data = response.get_json()
    assert data['token_type'] == 'bearer'

    me = client.get('/api/auth/me', headers={'Authorization': f"Bearer {data['access_token']}"})
    assert me.get_json()['username'] == 'pathologist'
    assert me.get_json()['last_login'] is not None


def test_wrong_password(client):
    response = client.post('/api/auth/token', json={'username': 'admin', 'password': 'nope'})
    assert response.status_code == 401


def test_missing_credentials(client):
    response = client.post('/api/auth/token', json={'username': 'admin'})
    assert response.status_code == 400


def test_session_login_and_logout(client):
    response = client.post('/api/auth/login', json={'username': 'manager', 'password': 'password'})
    assert response.status_code == 200

    assert client.get('/api/auth/me').get_json()['role'] == 'manager'
    assert client.get('/api/doctors').status_code == 200

    client.post('/api/auth/logout')
    assert client.get('/api/auth/me').status_code == 401


def test_login_is_audited(client, auth_headers):
    client.post('/api/auth/login', json={'username': 'manager', 'password': 'password'})
    client.post('/api/auth/logout')

    logs = client.get('/api/audit-logs?action=login', headers=auth_headers('admin')).get_json()
    assert logs['total'] == 1
    assert logs['logs'][0]['user_name'] == 'Lab Manager'


def test_check_api_permission_inline(app, auth_headers):
    from labdesk.security import check_api_permission

    with app.test_request_context(headers=auth_headers('receptionist')):
        assert check_api_permission('patients', 'create') is None
        _, status = check_api_permission('staff', 'delete')
        assert status == 403

    with app.test_request_context():
        _, status = check_api_permission('patients', 'view')
        assert status == 401
