"""
Expense routes
"""
from datetime import datetime
from flask import Blueprint, jsonify, request
from labdesk.models.expenses import Expense
from labdesk.repository import Repository
from labdesk.routes.analytics import invalidate_analytics
from labdesk.security import audit_log, get_current_actor, require_permission
from labdesk.utils import get_json_payload, parse_date, parse_number, require_fields

expenses_bp = Blueprint('expenses', __name__)
expenses = Repository(Expense)

@expenses_bp.route('', methods=['GET'])
@require_permission('expenses', 'view')
def list_expenses():
    criteria = []
    start_date = parse_date(request.args.get('start_date'), 'start_date')
    end_date = parse_date(request.args.get('end_date'), 'end_date')
    if start_date:
        criteria.append(Expense.date >= start_date)
    if end_date:
        criteria.append(Expense.date <= end_date)

    filters = {}
    if request.args.get('category'):
        filters['category'] = request.args['category']

    found = expenses.list(*criteria, order_by=Expense.date.desc(), **filters)
    return jsonify({
        'expenses': [expense.to_dict() for expense in found],
        'total': sum((expense.amount for expense in found), 0)
    })

@expenses_bp.route('', methods=['POST'])
@require_permission('expenses', 'create')
def create_expense():
    data = get_json_payload()
    require_fields(data, 'category', 'amount')

    expense = Expense(
        category=data['category'],
        amount=parse_number(data['amount'], 'amount'),
        description=data.get('description'),
        payment_method=data.get('payment_method') or 'cash',
        date=parse_date(data.get('date'), 'date', default=datetime.utcnow().date()),
        is_recurring=bool(data.get('is_recurring', False)),
        tags=data.get('tags') or [],
        created_by_id=get_current_actor().id
    )
    expenses.add(expense)
    invalidate_analytics()

    audit_log('create', 'expenses', expense.id,
              details=f'Created expense: {expense.category} {expense.amount}')

    return jsonify(expense.to_dict()), 201

@expenses_bp.route('/<int:expense_id>', methods=['PUT', 'PATCH'])
@require_permission('expenses', 'edit')
def update_expense(expense_id):
    expense = expenses.get_or_404(expense_id)
    data = get_json_payload()
    before_data = expense.to_dict()

    changes = {field: data[field] for field in ('category', 'description', 'payment_method', 'tags')
               if field in data}
    if 'amount' in data:
        changes['amount'] = parse_number(data['amount'], 'amount')
    if 'date' in data:
        changes['date'] = parse_date(data['date'], 'date', default=expense.date)
    if 'is_recurring' in data:
        changes['is_recurring'] = bool(data['is_recurring'])
    expenses.update(expense, **changes)
    invalidate_analytics()

    audit_log('update', 'expenses', expense.id, details=f'Updated expense {expense.id}',
              before_data=before_data, after_data=expense.to_dict())

    return jsonify(expense.to_dict())

@expenses_bp.route('/<int:expense_id>', methods=['DELETE'])
@require_permission('expenses', 'delete')
def delete_expense(expense_id):
    expense = expenses.get_or_404(expense_id)
    expenses.delete(expense)
    invalidate_analytics()

    audit_log('delete', 'expenses', expense_id, details=f'Deleted expense {expense_id}')

    return jsonify({'message': 'Expense deleted'})
