"""
Stock routes for inventory levels
"""
from flask import Blueprint, jsonify, request
from labdesk.models.stock import StockItem
from labdesk.repository import Repository
from labdesk.security import audit_log, require_permission
from labdesk.utils import get_json_payload, parse_date, parse_number, require_fields

stock_bp = Blueprint('stock', __name__)
stock_items = Repository(StockItem)

STOCK_FIELDS = ('name', 'category', 'unit', 'vendor', 'batch_number')
STOCK_NUMBERS = ('current_stock', 'reorder_level', 'cost_per_unit')

@stock_bp.route('', methods=['GET'])
@require_permission('stock', 'view')
def list_stock():
    """Stock list; low=1 returns only items at or below their reorder level"""
    if request.args.get('low') in ('1', 'true', 'yes'):
        items = StockItem.get_low_stock()
    else:
        items = stock_items.list(order_by=StockItem.name)
    return jsonify({'items': [item.to_dict() for item in items]})

@stock_bp.route('', methods=['POST'])
@require_permission('stock', 'create')
def create_stock_item():
    data = get_json_payload()
    require_fields(data, 'name')

    item = StockItem(
        expiry_date=parse_date(data.get('expiry_date'), 'expiry_date'),
        active=bool(data.get('active', True)),
        **{field: data.get(field) for field in STOCK_FIELDS},
        **{field: parse_number(data.get(field), field, default=0) for field in STOCK_NUMBERS}
    )
    stock_items.add(item)

    audit_log('create', 'stock', item.id, details=f'Created stock item: {item.name}')

    return jsonify(item.to_dict()), 201

@stock_bp.route('/<int:item_id>', methods=['PUT', 'PATCH'])
@require_permission('stock', 'edit')
def update_stock_item(item_id):
    item = stock_items.get_or_404(item_id)
    data = get_json_payload()
    before_data = item.to_dict()

    changes = {field: data[field] for field in STOCK_FIELDS if field in data}
    changes.update({field: parse_number(data[field], field) for field in STOCK_NUMBERS if field in data})
    if 'expiry_date' in data:
        changes['expiry_date'] = parse_date(data['expiry_date'], 'expiry_date')
    if 'active' in data:
        changes['active'] = bool(data['active'])
    stock_items.update(item, **changes)

    audit_log('update', 'stock', item.id, details=f'Updated stock item: {item.name}',
              before_data=before_data, after_data=item.to_dict())

    return jsonify(item.to_dict())
