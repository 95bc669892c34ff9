"""
Flask CLI commands for database setup and demo data
"""
from datetime import date

import click

from labdesk.extensions import db
from labdesk.models import Doctor, LabTest, Patient, StockItem, User

DEMO_PASSWORD = 'password'


def _grant(module, *actions):
    return {'module': module, 'actions': list(actions)}


# Demo accounts; custom grants extend the role defaults
DEMO_USERS = [
    {
        'username': 'admin',
        'email': 'admin@lab.com',
        'name': 'System Administrator',
        'role': 'admin',
        'custom_permissions': [],
    },
    {
        'username': 'receptionist',
        'email': 'reception@lab.com',
        'name': 'Reception Staff',
        'role': 'receptionist',
        'custom_permissions': [
            _grant('dashboard', 'view'),
            _grant('doctors', 'view'),
            _grant('tests', 'view'),
            _grant('rates', 'view'),
            _grant('files', 'view', 'create'),
            _grant('notifications', 'view'),
        ],
    },
    {
        'username': 'technician',
        'email': 'tech@lab.com',
        'name': 'Lab Technician',
        'role': 'technician',
        'custom_permissions': [
            _grant('dashboard', 'view'),
            _grant('patients', 'view'),
            _grant('templates', 'view', 'create', 'edit'),
            _grant('files', 'view', 'create'),
            _grant('notifications', 'view'),
        ],
    },
    {
        'username': 'pathologist',
        'email': 'pathologist@lab.com',
        'name': 'Dr. Pathologist',
        'role': 'pathologist',
        'custom_permissions': [
            _grant('dashboard', 'view'),
            _grant('quality', 'view', 'create', 'edit'),
            _grant('analytics', 'view'),
            _grant('files', 'view', 'create'),
            _grant('notifications', 'view'),
        ],
    },
    {
        'username': 'manager',
        'email': 'manager@lab.com',
        'name': 'Lab Manager',
        'role': 'manager',
        'custom_permissions': [
            _grant('rates', 'view', 'create', 'edit'),
            _grant('invoices', 'view', 'edit'),
            _grant('reports', 'view'),
            _grant('appointments', 'view', 'create', 'edit'),
            _grant('files', 'view', 'create', 'edit'),
            _grant('notifications', 'view'),
            _grant('backup', 'view', 'create'),
        ],
    },
]

DEMO_DOCTORS = [
    {'name': 'Dr. Ahmad Ali', 'specialty': 'Internal Medicine', 'contact': '0300-3456789',
     'email': 'dr.ahmad@hospital.com', 'hospital': 'City General Hospital', 'commission_percent': 10},
    {'name': 'Dr. Sarah Khan', 'specialty': 'Cardiology', 'contact': '0300-4567890',
     'hospital': 'Heart Care Center', 'commission_percent': 15},
]

DEMO_TESTS = [
    {'name': 'Complete Blood Count (CBC)', 'category': 'Hematology', 'price': 800,
     'sample_type': 'Blood', 'reference_range': 'Various'},
    {'name': 'Lipid Profile', 'category': 'Biochemistry', 'price': 1200,
     'sample_type': 'Blood', 'reference_range': 'Cholesterol: <200 mg/dL'},
    {'name': 'Liver Function Tests', 'category': 'Biochemistry', 'price': 1500,
     'sample_type': 'Blood', 'reference_range': 'ALT: 7-56 U/L'},
]

DEMO_PATIENTS = [
    {'name': 'John Doe', 'age': 45, 'gender': 'male', 'contact': '0300-1234567',
     'email': 'john@email.com', 'address': '123 Main St, City', 'cnic': '12345-6789012-3',
     'blood_group': 'O+'},
    {'name': 'Jane Smith', 'age': 32, 'gender': 'female', 'contact': '0300-2345678',
     'address': '456 Oak Ave, City'},
]

DEMO_STOCK = [
    {'name': 'CBC Reagent Kit', 'category': 'Reagents', 'current_stock': 5, 'reorder_level': 10,
     'unit': 'Kit', 'cost_per_unit': 2500, 'vendor': 'Medical Supplies Co.',
     'expiry_date': date(2025, 6, 30), 'batch_number': 'CBC001'},
    {'name': 'Sample Tubes', 'category': 'Consumables', 'current_stock': 150, 'reorder_level': 50,
     'unit': 'Piece', 'cost_per_unit': 15},
]


def seed_users():
    created = 0
    for data in DEMO_USERS:
        if User.find_by_username(data['username']) is None:
            db.session.add(User(password=DEMO_PASSWORD, **data))
            created += 1
    db.session.commit()
    return created


def _seed_by_name(model, rows):
    created = 0
    for data in rows:
        exists = db.session.execute(
            db.select(model.id).filter_by(name=data['name'])
        ).first()
        if exists is None:
            db.session.add(model(**data))
            # patient numbers are checked against committed rows
            db.session.commit()
            created += 1
    return created


def seed_demo_data():
    """Insert demo accounts and reference data; existing rows are left alone"""
    return {
        'users': seed_users(),
        'doctors': _seed_by_name(Doctor, DEMO_DOCTORS),
        'tests': _seed_by_name(LabTest, DEMO_TESTS),
        'patients': _seed_by_name(Patient, DEMO_PATIENTS),
        'stock items': _seed_by_name(StockItem, DEMO_STOCK),
    }


def register_commands(app):
    """Register CLI commands with the app"""

    @app.cli.command('init-db')
    def init_db():
        """Create database tables"""
        db.create_all()
        click.echo('Database tables created successfully')

    @app.cli.command('seed')
    def seed():
        """Populate the database with demo staff and reference data"""
        db.create_all()
        counts = seed_demo_data()
        for label, count in counts.items():
            click.echo(f'Created {count} {label}')
        click.echo(f"Demo accounts: {', '.join(u['username'] for u in DEMO_USERS)}")
        click.echo(f'Password: {DEMO_PASSWORD}')
