"""
Analytics, dashboard and audit trail routes
"""
from flask import Blueprint, current_app, jsonify, request
from labdesk import db
from labdesk.analytics import (
    category_distribution, dashboard_summary, doctor_performance, monthly_rollup, summary_metrics
)
from labdesk.extensions import cache
from labdesk.models.billing import Invoice
from labdesk.models.catalog import LabTest
from labdesk.models.common import AuditLog
from labdesk.models.doctors import Doctor
from labdesk.models.expenses import Expense
from labdesk.models.patients import Patient
from labdesk.models.reports import Report
from labdesk.models.stock import StockItem
from labdesk.repository import Repository
from labdesk.security import require_permission
from labdesk.utils import pagination_args

analytics_bp = Blueprint('analytics', __name__)

ANALYTICS_CACHE_KEY = 'analytics'
RECENT_ACTIVITY_LIMIT = 10

invoices = Repository(Invoice)
expenses = Repository(Expense)
reports = Repository(Report)
patients = Repository(Patient)
doctors = Repository(Doctor)
lab_tests = Repository(LabTest)
stock_items = Repository(StockItem)
audit_logs = Repository(AuditLog)

def invalidate_analytics():
    """Drop the cached analytics payload after a write that feeds it"""
    cache.delete(ANALYTICS_CACHE_KEY)

@analytics_bp.route('/analytics', methods=['GET'])
@require_permission('analytics', 'view')
def analytics():
    """Monthly rollup, category breakdown and top referring doctors"""
    payload = cache.get(ANALYTICS_CACHE_KEY)
    if payload is not None:
        return jsonify(payload)

    all_invoices = invoices.list(order_by=Invoice.id)
    all_expenses = expenses.list()
    all_reports = reports.list()

    payload = {
        'summary': summary_metrics(all_invoices, all_expenses, all_reports),
        'monthly': monthly_rollup(
            all_invoices, all_expenses, patients.list(), all_reports,
            months=current_app.config['ROLLUP_MONTHS']
        ),
        'categories': category_distribution(all_reports, lab_tests.list()),
        'top_doctors': doctor_performance(
            all_invoices, doctors.list(), limit=current_app.config['TOP_DOCTORS_LIMIT']
        ),
    }
    cache.set(ANALYTICS_CACHE_KEY, payload, timeout=current_app.config['ANALYTICS_CACHE_TIMEOUT'])

    return jsonify(payload)

@analytics_bp.route('/dashboard', methods=['GET'])
@require_permission('dashboard', 'view')
def dashboard():
    # newest first from the query, oldest first for the summary
    recent = audit_logs.list(order_by=AuditLog.id.desc(), limit=RECENT_ACTIVITY_LIMIT)

    summary = dashboard_summary(
        patients=patients.list(),
        invoices=invoices.list(),
        reports=reports.list(),
        stock_items=stock_items.list(),
        audit_logs=list(reversed(recent))
    )
    summary['recent_activities'] = [log.to_dict() for log in summary['recent_activities']]
    return jsonify(summary)

@analytics_bp.route('/audit-logs', methods=['GET'])
@require_permission('audit', 'view')
def audit_trail():
    """Audit trail, newest first"""
    page, per_page = pagination_args()

    stmt = audit_logs.query(order_by=AuditLog.timestamp.desc()).order_by(AuditLog.id.desc())
    for field in ('module', 'action'):
        if request.args.get(field):
            stmt = stmt.where(getattr(AuditLog, field) == request.args[field])
    if request.args.get('user_id'):
        stmt = stmt.where(AuditLog.user_id == request.args.get('user_id', type=int))

    result = db.paginate(stmt, page=page, per_page=per_page, error_out=False)

    return jsonify({
        'logs': [log.to_dict() for log in result.items],
        'total': result.total,
        'pages': result.pages,
        'current_page': page
    })
