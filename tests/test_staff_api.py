def create_staff(client, headers, **overrides):
    payload = {
        'username': 'newdesk',
        'email': 'newdesk@lab.com',
        'name': 'New Desk',
        'password': 'secret',
        'role': 'receptionist',
    }
    payload.update(overrides)
    return client.post('/api/staff', json=payload, headers=headers)


def test_roles_listing(client, auth_headers):
    response = client.get('/api/staff/roles', headers=auth_headers('admin'))
    roles = {entry['role']: entry['permissions'] for entry in response.get_json()['roles']}

    assert response.status_code == 200
    assert roles['lab_helper'] == [{'module': 'dashboard', 'actions': ['view']}]
    assert {'module': 'reports', 'actions': ['view', 'create', 'edit', 'verify']} in roles['pathologist']


def test_create_staff(client, auth_headers):
    response = create_staff(client, auth_headers('admin'),
                            custom_permissions=[{'module': 'analytics', 'actions': ['view']}])

    assert response.status_code == 201
    user = response.get_json()
    assert 'hashed_pw' not in user
    assert {'module': 'analytics', 'actions': ['view']} in user['permissions']


def test_duplicate_username_conflicts(client, auth_headers):
    response = create_staff(client, auth_headers('admin'), username='technician')
    assert response.status_code == 409


def test_unknown_role_rejected(client, auth_headers):
    response = create_staff(client, auth_headers('admin'), role='janitor')
    assert response.status_code == 400


def test_unknown_custom_action_rejected(client, auth_headers):
    response = create_staff(client, auth_headers('admin'),
                            custom_permissions=[{'module': 'reports', 'actions': ['approve']}])
    assert response.status_code == 400


def test_custom_grant_opens_endpoint(client, auth_headers):
    create_staff(client, auth_headers('admin'),
                 custom_permissions=[{'module': 'analytics', 'actions': ['view']}])

    assert client.get('/api/analytics', headers=auth_headers('newdesk')).status_code == 200
    assert client.get('/api/analytics', headers=auth_headers('receptionist')).status_code == 403


def test_role_change_applies_immediately(client, auth_headers):
    user = create_staff(client, auth_headers('admin')).get_json()
    headers = auth_headers('newdesk')
    assert client.get('/api/reports', headers=headers).status_code == 200
    assert client.get('/api/stock', headers=headers).status_code == 403

    client.patch(f"/api/staff/{user['id']}", json={'role': 'technician'}, headers=auth_headers('admin'))

    assert client.get('/api/stock', headers=headers).status_code == 200
    assert client.get('/api/patients', headers=headers).status_code == 403


def test_deactivated_user_is_rejected(client, auth_headers):
    user = create_staff(client, auth_headers('admin')).get_json()
    headers = auth_headers('newdesk')

    client.patch(f"/api/staff/{user['id']}", json={'active': False}, headers=auth_headers('admin'))

    assert client.get('/api/patients', headers=headers).status_code == 401


def test_manager_cannot_delete_staff(client, auth_headers):
    user = create_staff(client, auth_headers('admin')).get_json()
    response = client.delete(f"/api/staff/{user['id']}", headers=auth_headers('manager'))
    assert response.status_code == 403


def test_cannot_delete_self(client, auth_headers):
    me = client.get('/api/auth/me', headers=auth_headers('admin')).get_json()
    response = client.delete(f"/api/staff/{me['id']}", headers=auth_headers('admin'))
    assert response.status_code == 409
