import pytest


@pytest.fixture
def report(create_invoice, client, auth_headers, lab_data):
    invoice = create_invoice()
    response = client.post('/api/reports', json={
        'invoice_id': invoice['id'],
        'results': [
            {'test_id': lab_data['test_ids'][0], 'test_name': 'CBC', 'result': '13.5',
             'normal_range': '12-16', 'unit': 'g/dL'},
            {'test_id': lab_data['test_ids'][1], 'test_name': 'Cholesterol', 'result': '240',
             'is_abnormal': True},
        ],
    }, headers=auth_headers('technician'))
    assert response.status_code == 201, response.get_json()
    return response.get_json()


def set_status(client, headers, report_id, status):
    return client.patch(f'/api/reports/{report_id}/status', json={'status': status}, headers=headers)


def test_create_report_copies_invoice_references(report, lab_data):
    assert report['status'] == 'pending'
    assert report['patient_id'] == lab_data['patient_id']
    assert report['doctor_id'] == lab_data['doctor_ids'][0]
    assert report['abnormal_count'] == 1
    assert report['critical_values'] is False


def test_create_report_for_missing_invoice(client, auth_headers):
    response = client.post('/api/reports', json={'invoice_id': 42}, headers=auth_headers('technician'))
    assert response.status_code == 400


def test_receptionist_cannot_create_report(create_invoice, client, auth_headers):
    invoice = create_invoice()
    response = client.post('/api/reports', json={'invoice_id': invoice['id']},
                           headers=auth_headers('receptionist'))
    assert response.status_code == 403


def test_verify_requires_completed_status(report, client, auth_headers):
    response = set_status(client, auth_headers('pathologist'), report['id'], 'verified')
    assert response.status_code == 403


def test_technician_cannot_verify(report, client, auth_headers):
    set_status(client, auth_headers('technician'), report['id'], 'completed')
    response = set_status(client, auth_headers('technician'), report['id'], 'verified')
    assert response.status_code == 403


def test_verification_flow(report, client, auth_headers):
    response = set_status(client, auth_headers('technician'), report['id'], 'completed')
    assert response.get_json()['status'] == 'completed'

    response = set_status(client, auth_headers('pathologist'), report['id'], 'verified')
    assert response.status_code == 200
    verified = response.get_json()
    assert verified['status'] == 'verified'
    assert verified['verified_by_name'] == 'Dr. Pathologist'
    assert verified['verified_at'] is not None


def test_editing_results_resets_verification(report, client, auth_headers):
    set_status(client, auth_headers('technician'), report['id'], 'completed')
    set_status(client, auth_headers('pathologist'), report['id'], 'verified')

    response = client.put(f"/api/reports/{report['id']}", json={
        'results': [{'test_name': 'CBC', 'result': '14.0'}]
    }, headers=auth_headers('technician'))

    assert response.status_code == 200
    edited = response.get_json()
    assert edited['status'] == 'pending'
    assert edited['verified_at'] is None
    assert len(edited['results']) == 1


def test_locked_report(report, client, auth_headers):
    set_status(client, auth_headers('admin'), report['id'], 'locked')

    response = client.put(f"/api/reports/{report['id']}", json={'interpretation': 'Normal'},
                          headers=auth_headers('technician'))
    assert response.status_code == 403

    response = client.delete(f"/api/reports/{report['id']}", headers=auth_headers('admin'))
    assert response.status_code == 409


def test_unknown_status_rejected(report, client, auth_headers):
    response = set_status(client, auth_headers('technician'), report['id'], 'archived')
    assert response.status_code == 400


def test_list_filters_by_status(report, client, auth_headers):
    pending = client.get('/api/reports?status=pending', headers=auth_headers('receptionist')).get_json()
    verified = client.get('/api/reports?status=verified', headers=auth_headers('receptionist')).get_json()
    assert len(pending['reports']) == 1
    assert verified['reports'] == []
