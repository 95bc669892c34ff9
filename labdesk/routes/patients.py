"""
Patient routes for registration and search
"""
from flask import Blueprint, current_app, jsonify, request
from labdesk import db
from labdesk.models.patients import Patient
from labdesk.repository import Repository
from labdesk.routes.analytics import invalidate_analytics
from labdesk.security import audit_log, get_current_actor, require_permission
from labdesk.utils import get_json_payload, pagination_args, parse_int, require_fields

patients_bp = Blueprint('patients', __name__)
patients = Repository(Patient)

PATIENT_FIELDS = (
    'name', 'gender', 'contact', 'email', 'address', 'cnic',
    'blood_group', 'allergies', 'medical_history'
)

@patients_bp.route('', methods=['GET'])
@require_permission('patients', 'view')
def list_patients():
    """Get patients list"""
    page, per_page = pagination_args()
    search = request.args.get('search', '')

    stmt = patients.query(order_by=Patient.created_at.desc())
    if search:
        stmt = stmt.where(
            db.or_(
                Patient.name.ilike(f'%{search}%'),
                Patient.patient_no.ilike(f'%{search}%'),
                Patient.contact.ilike(f'%{search}%'),
                Patient.cnic.ilike(f'%{search}%')
            )
        )

    result = db.paginate(stmt, page=page, per_page=per_page, error_out=False)

    return jsonify({
        'patients': [patient.to_dict() for patient in result.items],
        'total': result.total,
        'pages': result.pages,
        'current_page': page
    })

@patients_bp.route('/<int:patient_id>', methods=['GET'])
@require_permission('patients', 'view')
def get_patient(patient_id):
    return jsonify(patients.get_or_404(patient_id).to_dict())

@patients_bp.route('', methods=['POST'])
@require_permission('patients', 'create')
def create_patient():
    """Register a patient"""
    data = get_json_payload()
    require_fields(data, 'name')

    patient = Patient(
        age=parse_int(data.get('age'), 'age'),
        created_by_id=get_current_actor().id,
        **{field: data.get(field) for field in PATIENT_FIELDS}
    )

    try:
        patients.add(patient)
        invalidate_analytics()
    except Exception as e:
        patients.rollback()
        current_app.logger.error(f"Error registering patient: {e}")
        return jsonify({'error': 'Error registering patient'}), 500

    audit_log('create', 'patients', patient.id, details=f'Created patient: {patient.name}')

    return jsonify(patient.to_dict()), 201

@patients_bp.route('/<int:patient_id>', methods=['PUT', 'PATCH'])
@require_permission('patients', 'edit')
def update_patient(patient_id):
    patient = patients.get_or_404(patient_id)
    data = get_json_payload()
    before_data = patient.to_dict()

    changes = {field: data[field] for field in PATIENT_FIELDS if field in data}
    if 'age' in data:
        changes['age'] = parse_int(data['age'], 'age')

    patients.update(patient, **changes)
    invalidate_analytics()

    audit_log('update', 'patients', patient.id, details=f'Updated patient: {patient.name}',
              before_data=before_data, after_data=patient.to_dict())

    return jsonify(patient.to_dict())

@patients_bp.route('/<int:patient_id>', methods=['DELETE'])
@require_permission('patients', 'delete')
def delete_patient(patient_id):
    """Delete a patient; invoices and reports keep their dangling reference"""
    patient = patients.get_or_404(patient_id)
    before_data = patient.to_dict()
    patients.delete(patient)
    invalidate_analytics()

    audit_log('delete', 'patients', patient_id, details=f'Deleted patient: {before_data["name"]}',
              before_data=before_data)

    return jsonify({'message': 'Patient deleted'})
