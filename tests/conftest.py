import pytest
from flask_jwt_extended import create_access_token

from labdesk import create_app, db
from labdesk.commands import seed_users
from labdesk.models import Doctor, LabTest, Patient, User


@pytest.fixture
def app():
    app = create_app('testing')

    with app.app_context():
        db.create_all()
        seed_users()
        db.session.add_all([
            User(username='accountant', email='accounts@lab.com', name='Accounts Clerk',
                 role='accountant', password='password'),
            User(username='helper', email='helper@lab.com', name='Lab Helper',
                 role='lab_helper', password='password'),
        ])
        db.session.commit()

    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_headers(app):
    """Bearer headers for a seeded username"""
    def _headers(username):
        with app.app_context():
            user = User.find_by_username(username)
            token = create_access_token(identity=str(user.id))
        return {'Authorization': f'Bearer {token}'}
    return _headers


@pytest.fixture
def lab_data(app):
    """A patient, two doctors and the demo test catalog; returns their ids"""
    with app.app_context():
        patient = Patient(name='John Doe', age=45, gender='male')
        db.session.add(patient)
        db.session.commit()

        doctors = [Doctor(name='Dr. Ahmad Ali'), Doctor(name='Dr. Sarah Khan')]
        tests = [
            LabTest(name='Complete Blood Count (CBC)', category='Hematology', price=800),
            LabTest(name='Lipid Profile', category='Biochemistry', price=1200),
        ]
        db.session.add_all(doctors + tests)
        db.session.commit()

        return {
            'patient_id': patient.id,
            'doctor_ids': [d.id for d in doctors],
            'test_ids': [t.id for t in tests],
        }


@pytest.fixture
def create_invoice(client, auth_headers, lab_data):
    """Create an invoice through the API and return its JSON"""
    def _create(username='receptionist', **overrides):
        payload = {
            'patient_id': lab_data['patient_id'],
            'doctor_id': lab_data['doctor_ids'][0],
            'items': [{'test_id': lab_data['test_ids'][0]}],
            'discount': 0,
        }
        payload.update(overrides)
        response = client.post('/api/invoices', json=payload, headers=auth_headers(username))
        assert response.status_code == 201, response.get_json()
        return response.get_json()
    return _create
