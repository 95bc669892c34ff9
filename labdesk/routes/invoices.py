"""
Invoice routes for billing, locking and status changes
"""
from flask import Blueprint, abort, current_app, jsonify, request
from labdesk import db
from labdesk.billing import (
    INVOICE_STATUSES, can_delete_invoice, can_edit_invoice, compute_invoice_totals,
    generate_invoice_number
)
from labdesk.models.billing import Invoice
from labdesk.models.catalog import LabTest
from labdesk.models.doctors import Doctor
from labdesk.models.patients import Patient
from labdesk.repository import Repository
from labdesk.routes.analytics import invalidate_analytics
from labdesk.security import audit_log, get_current_actor, require_permission
from labdesk.utils import (
    check_version, get_json_payload, pagination_args, parse_int, parse_number, require_fields
)

invoices_bp = Blueprint('invoices', __name__)
invoices = Repository(Invoice)
lab_tests = Repository(LabTest)
patients = Repository(Patient)
doctors = Repository(Doctor)

def _parse_items(raw_items):
    """Line items from the request; price defaults to the catalog price"""
    if not isinstance(raw_items, list):
        abort(400, description='items must be a list')

    items = []
    for index, raw in enumerate(raw_items):
        if not isinstance(raw, dict):
            abort(400, description=f'items[{index}] must be an object')

        test_id = parse_int(raw.get('test_id'), f'items[{index}].test_id')
        lab_test = lab_tests.get(test_id) if test_id is not None else None

        quantity = parse_int(raw.get('quantity'), f'items[{index}].quantity')
        price = raw.get('price')
        if price is None and lab_test is not None:
            price = lab_test.price

        items.append({
            'test_id': test_id,
            'test_name': raw.get('test_name') or (lab_test.name if lab_test else None),
            'price': parse_number(price, f'items[{index}].price'),
            'quantity': 1 if quantity is None else quantity
        })
    return items

def _parse_status(value):
    if value not in INVOICE_STATUSES:
        abort(400, description=f"Unknown invoice status '{value}'")
    return value

def _check_references(patient_id, doctor_id):
    if patient_id is not None and patients.get(patient_id) is None:
        abort(400, description=f'Patient {patient_id} not found')
    if doctor_id is not None and doctors.get(doctor_id) is None:
        abort(400, description=f'Doctor {doctor_id} not found')

def _ensure_editable(invoice):
    if not can_edit_invoice(get_current_actor(), invoice):
        abort(403, description='Invoice is locked')

@invoices_bp.route('', methods=['GET'])
@require_permission('invoices', 'view')
def list_invoices():
    """Invoices list, searchable by number, patient or doctor name"""
    page, per_page = pagination_args()
    search = request.args.get('search', '')
    status = request.args.get('status')

    stmt = invoices.query(order_by=Invoice.created_at.desc())
    if status:
        stmt = stmt.where(Invoice.status == status)
    if search:
        stmt = stmt.outerjoin(Patient, Patient.id == Invoice.patient_id)\
                   .outerjoin(Doctor, Doctor.id == Invoice.doctor_id)\
                   .where(db.or_(
                       Invoice.invoice_no.ilike(f'%{search}%'),
                       Patient.name.ilike(f'%{search}%'),
                       Doctor.name.ilike(f'%{search}%')
                   ))

    result = db.paginate(stmt, page=page, per_page=per_page, error_out=False)

    return jsonify({
        'invoices': [invoice.to_dict() for invoice in result.items],
        'total': result.total,
        'pages': result.pages,
        'current_page': page
    })

@invoices_bp.route('/<int:invoice_id>', methods=['GET'])
@require_permission('invoices', 'view')
def get_invoice(invoice_id):
    return jsonify(invoices.get_or_404(invoice_id).to_dict())

@invoices_bp.route('/preview', methods=['POST'])
@require_permission('invoices', 'create')
def preview_invoice():
    """Compute totals for a draft without saving it"""
    data = get_json_payload()
    items = _parse_items(data.get('items', []))
    discount = parse_number(data.get('discount'), 'discount', default=0)

    totals = compute_invoice_totals(items, discount)
    totals['items'] = items
    totals['discount'] = discount
    totals['invoice_no'] = generate_invoice_number(
        invoices.count(), width=current_app.config['INVOICE_NUMBER_WIDTH']
    )
    return jsonify(totals)

@invoices_bp.route('', methods=['POST'])
@require_permission('invoices', 'create')
def create_invoice():
    """Create a draft invoice"""
    data = get_json_payload()
    require_fields(data, 'patient_id')

    patient_id = parse_int(data['patient_id'], 'patient_id')
    doctor_id = parse_int(data.get('doctor_id'), 'doctor_id')
    _check_references(patient_id, doctor_id)

    invoice = Invoice(
        invoice_no=generate_invoice_number(
            invoices.count(), width=current_app.config['INVOICE_NUMBER_WIDTH']
        ),
        patient_id=patient_id,
        doctor_id=doctor_id,
        discount=parse_number(data.get('discount'), 'discount', default=0),
        notes=data.get('notes'),
        payment_method=data.get('payment_method') or 'cash',
        status='draft',
        is_locked=False,
        created_by_id=get_current_actor().id
    )
    invoice.set_items(_parse_items(data.get('items', [])))
    invoice.calculate_totals()

    try:
        invoices.add(invoice)
        invalidate_analytics()
    except Exception as e:
        invoices.rollback()
        current_app.logger.error(f"Error creating invoice: {e}")
        abort(500, description='Error creating invoice')

    audit_log('create', 'invoices', invoice.id, details=f'Created invoice {invoice.invoice_no}',
              after_data=invoice.to_dict())

    return jsonify(invoice.to_dict()), 201

@invoices_bp.route('/<int:invoice_id>', methods=['PUT', 'PATCH'])
@require_permission('invoices', 'edit')
def update_invoice(invoice_id):
    """Edit an invoice; totals are recomputed from the stored line items"""
    invoice = invoices.get_or_404(invoice_id)
    _ensure_editable(invoice)

    data = get_json_payload()
    check_version(invoice, data)
    before_data = invoice.to_dict()

    patient_id = parse_int(data['patient_id'], 'patient_id') if 'patient_id' in data else invoice.patient_id
    doctor_id = parse_int(data['doctor_id'], 'doctor_id') if 'doctor_id' in data else invoice.doctor_id
    if patient_id != invoice.patient_id or doctor_id != invoice.doctor_id:
        _check_references(patient_id, doctor_id)

    invoice.patient_id = patient_id
    invoice.doctor_id = doctor_id
    if 'items' in data:
        invoice.set_items(_parse_items(data['items']))
    if 'discount' in data:
        invoice.discount = parse_number(data['discount'], 'discount', default=0)
    if 'status' in data:
        invoice.status = _parse_status(data['status'])
    for field in ('notes', 'payment_method'):
        if field in data:
            setattr(invoice, field, data[field])
    invoice.calculate_totals()

    invoices.commit()
    invalidate_analytics()

    audit_log('update', 'invoices', invoice.id, details=f'Updated invoice {invoice.invoice_no}',
              before_data=before_data, after_data=invoice.to_dict())

    return jsonify(invoice.to_dict())

@invoices_bp.route('/<int:invoice_id>/status', methods=['PATCH'])
@require_permission('invoices', 'edit')
def update_invoice_status(invoice_id):
    """Set any status; there is no transition table"""
    invoice = invoices.get_or_404(invoice_id)
    _ensure_editable(invoice)

    data = get_json_payload()
    require_fields(data, 'status')
    check_version(invoice, data)

    previous = invoice.status
    invoices.update(invoice, status=_parse_status(data['status']))
    invalidate_analytics()

    audit_log('status', 'invoices', invoice.id,
              details=f'Invoice {invoice.invoice_no}: {previous} -> {invoice.status}')

    return jsonify(invoice.to_dict())

@invoices_bp.route('/<int:invoice_id>/lock', methods=['POST'])
@require_permission('invoices', 'lock')
def toggle_lock(invoice_id):
    """Lock or unlock an invoice; toggles unless 'locked' is given"""
    invoice = invoices.get_or_404(invoice_id)
    data = request.get_json(silent=True) or {}
    check_version(invoice, data)

    locked = bool(data['locked']) if 'locked' in data else not invoice.is_locked
    invoices.update(invoice, is_locked=locked)

    audit_log('lock' if locked else 'unlock', 'invoices', invoice.id,
              details=f'{"Locked" if locked else "Unlocked"} invoice {invoice.invoice_no}')

    return jsonify(invoice.to_dict())

@invoices_bp.route('/<int:invoice_id>', methods=['DELETE'])
@require_permission('invoices', 'delete')
def delete_invoice(invoice_id):
    invoice = invoices.get_or_404(invoice_id)
    if not can_delete_invoice(get_current_actor(), invoice):
        abort(409, description='Locked invoices cannot be deleted')

    before_data = invoice.to_dict()
    invoices.delete(invoice)
    invalidate_analytics()

    audit_log('delete', 'invoices', invoice_id, details=f'Deleted invoice {before_data["invoice_no"]}',
              before_data=before_data)

    return jsonify({'message': 'Invoice deleted'})
