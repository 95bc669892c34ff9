"""
Referring doctor routes
"""
from flask import Blueprint, jsonify, request
from labdesk.models.doctors import Doctor
from labdesk.repository import Repository
from labdesk.routes.analytics import invalidate_analytics
from labdesk.security import audit_log, require_permission
from labdesk.utils import get_json_payload, parse_number, require_fields

doctors_bp = Blueprint('doctors', __name__)
doctors = Repository(Doctor)

DOCTOR_FIELDS = ('name', 'specialty', 'contact', 'email', 'hospital', 'cnic', 'address')

@doctors_bp.route('', methods=['GET'])
@require_permission('doctors', 'view')
def list_doctors():
    filters = {}
    if request.args.get('active') is not None:
        filters['active'] = request.args.get('active') in ('1', 'true', 'yes')
    return jsonify({'doctors': [d.to_dict() for d in doctors.list(order_by=Doctor.name, **filters)]})

@doctors_bp.route('/<int:doctor_id>', methods=['GET'])
@require_permission('doctors', 'view')
def get_doctor(doctor_id):
    return jsonify(doctors.get_or_404(doctor_id).to_dict())

@doctors_bp.route('', methods=['POST'])
@require_permission('doctors', 'create')
def create_doctor():
    data = get_json_payload()
    require_fields(data, 'name')

    doctor = Doctor(
        commission_percent=parse_number(data.get('commission_percent'), 'commission_percent', default=0),
        active=bool(data.get('active', True)),
        **{field: data.get(field) for field in DOCTOR_FIELDS}
    )
    doctors.add(doctor)
    invalidate_analytics()

    audit_log('create', 'doctors', doctor.id, details=f'Created doctor: {doctor.name}')

    return jsonify(doctor.to_dict()), 201

@doctors_bp.route('/<int:doctor_id>', methods=['PUT', 'PATCH'])
@require_permission('doctors', 'edit')
def update_doctor(doctor_id):
    doctor = doctors.get_or_404(doctor_id)
    data = get_json_payload()

    changes = {field: data[field] for field in DOCTOR_FIELDS if field in data}
    if 'commission_percent' in data:
        changes['commission_percent'] = parse_number(data['commission_percent'], 'commission_percent')
    if 'active' in data:
        changes['active'] = bool(data['active'])
    doctors.update(doctor, **changes)
    invalidate_analytics()

    audit_log('update', 'doctors', doctor.id, details=f'Updated doctor: {doctor.name}')

    return jsonify(doctor.to_dict())

@doctors_bp.route('/<int:doctor_id>', methods=['DELETE'])
@require_permission('doctors', 'delete')
def delete_doctor(doctor_id):
    """Delete a doctor; their invoices drop out of the doctor ranking"""
    doctor = doctors.get_or_404(doctor_id)
    name = doctor.name
    doctors.delete(doctor)
    invalidate_analytics()

    audit_log('delete', 'doctors', doctor_id, details=f'Deleted doctor: {name}')

    return jsonify({'message': 'Doctor deleted'})
