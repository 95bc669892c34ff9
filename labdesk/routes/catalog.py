"""
Test catalog routes
"""
from flask import Blueprint, jsonify, request
from labdesk.models.catalog import LabTest
from labdesk.repository import Repository
from labdesk.routes.analytics import invalidate_analytics
from labdesk.security import audit_log, require_permission
from labdesk.utils import get_json_payload, parse_number, require_fields

catalog_bp = Blueprint('catalog', __name__)
lab_tests = Repository(LabTest)

TEST_FIELDS = ('name', 'category', 'sample_type', 'reference_range', 'unit')

@catalog_bp.route('', methods=['GET'])
@require_permission('tests', 'view')
def list_tests():
    filters = {}
    if request.args.get('category'):
        filters['category'] = request.args['category']
    if request.args.get('active') is not None:
        filters['active'] = request.args.get('active') in ('1', 'true', 'yes')

    return jsonify({
        'tests': [t.to_dict() for t in lab_tests.list(order_by=LabTest.name, **filters)],
        'categories': LabTest.get_categories()
    })

@catalog_bp.route('/<int:test_id>', methods=['GET'])
@require_permission('tests', 'view')
def get_test(test_id):
    return jsonify(lab_tests.get_or_404(test_id).to_dict())

@catalog_bp.route('', methods=['POST'])
@require_permission('tests', 'create')
def create_test():
    data = get_json_payload()
    require_fields(data, 'name', 'category', 'price')

    lab_test = LabTest(
        price=parse_number(data['price'], 'price'),
        active=bool(data.get('active', True)),
        **{field: data.get(field) for field in TEST_FIELDS}
    )
    lab_tests.add(lab_test)
    invalidate_analytics()

    audit_log('create', 'tests', lab_test.id, details=f'Created test: {lab_test.name}')

    return jsonify(lab_test.to_dict()), 201

@catalog_bp.route('/<int:test_id>', methods=['PUT', 'PATCH'])
@require_permission('tests', 'edit')
def update_test(test_id):
    lab_test = lab_tests.get_or_404(test_id)
    data = get_json_payload()
    before_data = lab_test.to_dict()

    changes = {field: data[field] for field in TEST_FIELDS if field in data}
    if 'price' in data:
        changes['price'] = parse_number(data['price'], 'price')
    if 'active' in data:
        changes['active'] = bool(data['active'])
    lab_tests.update(lab_test, **changes)
    invalidate_analytics()

    audit_log('update', 'tests', lab_test.id, details=f'Updated test: {lab_test.name}',
              before_data=before_data, after_data=lab_test.to_dict())

    return jsonify(lab_test.to_dict())

@catalog_bp.route('/<int:test_id>', methods=['DELETE'])
@require_permission('tests', 'delete')
def delete_test(test_id):
    """Delete a catalog test; its report results drop out of the category breakdown"""
    lab_test = lab_tests.get_or_404(test_id)
    name = lab_test.name
    lab_tests.delete(lab_test)
    invalidate_analytics()

    audit_log('delete', 'tests', test_id, details=f'Deleted test: {name}')

    return jsonify({'message': 'Test deleted'})
