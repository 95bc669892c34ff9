"""
Report routes for test results, status changes and verification
"""
from flask import Blueprint, abort, current_app, jsonify, request
from labdesk.billing import REPORT_STATUSES, can_delete_report, can_edit_report, can_verify_report
from labdesk.models.billing import Invoice
from labdesk.models.reports import Report
from labdesk.repository import Repository
from labdesk.routes.analytics import invalidate_analytics
from labdesk.security import audit_log, get_current_actor, require_permission
from labdesk.utils import check_version, get_json_payload, parse_int, require_fields

reports_bp = Blueprint('reports', __name__)
reports = Repository(Report)
invoices = Repository(Invoice)

def _parse_results(raw_results):
    if not isinstance(raw_results, list):
        abort(400, description='results must be a list')

    results = []
    for index, raw in enumerate(raw_results):
        if not isinstance(raw, dict):
            abort(400, description=f'results[{index}] must be an object')
        result = dict(raw)
        result['test_id'] = parse_int(raw.get('test_id'), f'results[{index}].test_id')
        results.append(result)
    return results

def _ensure_editable(report):
    if not can_edit_report(get_current_actor(), report):
        abort(403, description='Report is locked')

@reports_bp.route('', methods=['GET'])
@require_permission('reports', 'view')
def list_reports():
    filters = {}
    if request.args.get('status'):
        filters['status'] = request.args['status']
    if request.args.get('invoice_id'):
        filters['invoice_id'] = request.args.get('invoice_id', type=int)

    found = reports.list(order_by=Report.created_at.desc(), **filters)
    return jsonify({'reports': [report.to_dict() for report in found]})

@reports_bp.route('/<int:report_id>', methods=['GET'])
@require_permission('reports', 'view')
def get_report(report_id):
    return jsonify(reports.get_or_404(report_id).to_dict())

@reports_bp.route('', methods=['POST'])
@require_permission('reports', 'create')
def create_report():
    """Create a pending report for an invoice"""
    data = get_json_payload()
    require_fields(data, 'invoice_id')

    invoice = invoices.get(parse_int(data['invoice_id'], 'invoice_id'))
    if invoice is None:
        abort(400, description=f"Invoice {data['invoice_id']} not found")

    report = Report(
        invoice_id=invoice.id,
        patient_id=parse_int(data.get('patient_id'), 'patient_id') or invoice.patient_id,
        doctor_id=parse_int(data.get('doctor_id'), 'doctor_id') or invoice.doctor_id,
        interpretation=data.get('interpretation'),
        critical_values=bool(data.get('critical_values', False)),
        status='pending',
        created_by_id=get_current_actor().id
    )
    report.set_results(_parse_results(data.get('results', [])))

    try:
        reports.add(report)
        invalidate_analytics()
    except Exception as e:
        reports.rollback()
        current_app.logger.error(f"Error creating report for invoice {invoice.id}: {e}")
        abort(500, description='Error creating report')

    audit_log('create', 'reports', report.id, details=f'Created report for invoice {invoice.invoice_no}')

    return jsonify(report.to_dict()), 201

@reports_bp.route('/<int:report_id>', methods=['PUT', 'PATCH'])
@require_permission('reports', 'edit')
def update_report(report_id):
    """Edit results; the report goes back to pending for re-verification"""
    report = reports.get_or_404(report_id)
    _ensure_editable(report)

    data = get_json_payload()
    check_version(report, data)
    before_data = report.to_dict()

    if 'results' in data:
        report.set_results(_parse_results(data['results']))
    if 'interpretation' in data:
        report.interpretation = data['interpretation']
    if 'critical_values' in data:
        report.critical_values = bool(data['critical_values'])
    report.status = 'pending'
    report.verified_by_id = None
    report.verified_at = None

    reports.commit()
    invalidate_analytics()

    audit_log('update', 'reports', report.id, details=f'Updated report {report.id}',
              before_data=before_data, after_data=report.to_dict())

    return jsonify(report.to_dict())

@reports_bp.route('/<int:report_id>/status', methods=['PATCH'])
@require_permission('reports', 'edit')
def update_report_status(report_id):
    """Change status; verification needs reports:verify and a completed report"""
    report = reports.get_or_404(report_id)
    _ensure_editable(report)

    data = get_json_payload()
    require_fields(data, 'status')
    check_version(report, data)

    status = data['status']
    if status not in REPORT_STATUSES:
        abort(400, description=f"Unknown report status '{status}'")

    previous = report.status
    actor = get_current_actor()
    if status == 'verified':
        if not can_verify_report(actor, report):
            abort(403, description='Only completed reports can be verified by a verifier')
        report.verify(actor)
    else:
        report.status = status

    reports.commit()
    invalidate_analytics()

    audit_log('verify' if status == 'verified' else 'status', 'reports', report.id,
              details=f'Report {report.id}: {previous} -> {report.status}')

    return jsonify(report.to_dict())

@reports_bp.route('/<int:report_id>', methods=['DELETE'])
@require_permission('reports', 'delete')
def delete_report(report_id):
    report = reports.get_or_404(report_id)
    if not can_delete_report(get_current_actor(), report):
        abort(409, description='Locked reports cannot be deleted')

    reports.delete(report)
    invalidate_analytics()
    audit_log('delete', 'reports', report_id, details=f'Deleted report {report_id}')

    return jsonify({'message': 'Report deleted'})
