"""
Staff routes for user accounts, roles and custom permissions
"""
from flask import Blueprint, abort, current_app, jsonify, request
from labdesk import db
from labdesk.models.staff import User
from labdesk.repository import Repository
from labdesk.security import (
    ACTIONS, MODULES, ROLES, Permission, audit_log, default_permissions_for,
    get_current_actor, require_permission
)
from labdesk.utils import get_json_payload, require_fields

staff_bp = Blueprint('staff', __name__)
users = Repository(User)

def _parse_role(value):
    if value not in ROLES:
        abort(400, description=f"Unknown role '{value}'")
    return value

def _parse_custom_permissions(value):
    if value is None:
        return []
    if not isinstance(value, list):
        abort(400, description='custom_permissions must be a list')
    try:
        return [Permission.from_dict(item).to_dict() for item in value]
    except ValueError as e:
        abort(400, description=str(e))

@staff_bp.route('/roles', methods=['GET'])
@require_permission('staff', 'view')
def roles():
    """Roles with their default grants"""
    return jsonify({
        'roles': [
            {'role': role, 'permissions': [p.to_dict() for p in default_permissions_for(role)]}
            for role in ROLES
        ],
        'modules': MODULES,
        'actions': ACTIONS
    })

@staff_bp.route('', methods=['GET'])
@require_permission('staff', 'view')
def list_staff():
    """Staff list"""
    filters = {}
    if request.args.get('role'):
        filters['role'] = request.args['role']
    if request.args.get('active') is not None:
        filters['active'] = request.args.get('active') in ('1', 'true', 'yes')

    staff = users.list(order_by=User.name, **filters)
    return jsonify({'staff': [user.to_dict() for user in staff]})

@staff_bp.route('/<int:user_id>', methods=['GET'])
@require_permission('staff', 'view')
def get_staff(user_id):
    return jsonify(users.get_or_404(user_id).to_dict())

@staff_bp.route('', methods=['POST'])
@require_permission('staff', 'create')
def create_staff():
    """Create a staff account; its grants start as the role defaults"""
    data = get_json_payload()
    require_fields(data, 'username', 'email', 'name', 'password', 'role')

    if users.first(db.or_(User.username == data['username'], User.email == data['email'])):
        abort(409, description='Username or email already exists')

    user = User(
        username=data['username'],
        email=data['email'],
        name=data['name'],
        role=_parse_role(data['role']),
        custom_permissions=_parse_custom_permissions(data.get('custom_permissions')),
        active=bool(data.get('active', True)),
        password=data['password']
    )

    try:
        users.add(user)
    except Exception as e:
        users.rollback()
        current_app.logger.error(f"Error creating staff account: {e}")
        abort(500, description='Error creating staff account')

    audit_log('create', 'staff', user.id, details=f'Created user: {user.username}',
              after_data=user.to_dict())

    return jsonify(user.to_dict()), 201

@staff_bp.route('/<int:user_id>', methods=['PUT', 'PATCH'])
@require_permission('staff', 'edit')
def update_staff(user_id):
    """Update a staff account

    A role change takes effect on the next permission check; custom grants
    are kept unless replaced here.
    """
    user = users.get_or_404(user_id)
    data = get_json_payload()
    before_data = user.to_dict()

    changes = {}
    for field in ('name', 'email'):
        if field in data:
            changes[field] = data[field]
    if 'role' in data:
        changes['role'] = _parse_role(data['role'])
    if 'active' in data:
        changes['active'] = bool(data['active'])
    if 'custom_permissions' in data:
        changes['custom_permissions'] = _parse_custom_permissions(data['custom_permissions'])

    try:
        users.update(user, commit=False, **changes)
        if data.get('password'):
            user.set_password(data['password'])
        users.commit()
    except Exception as e:
        users.rollback()
        current_app.logger.error(f"Error updating staff account {user_id}: {e}")
        abort(500, description='Error updating staff account')

    audit_log('update', 'staff', user.id, details=f'Updated user: {user.username}',
              before_data=before_data, after_data=user.to_dict())

    return jsonify(user.to_dict())

@staff_bp.route('/<int:user_id>', methods=['DELETE'])
@require_permission('staff', 'delete')
def delete_staff(user_id):
    user = users.get_or_404(user_id)
    if user.id == get_current_actor().id:
        abort(409, description='You cannot delete your own account')

    before_data = user.to_dict()
    users.delete(user)

    audit_log('delete', 'staff', user_id, details=f'Deleted user: {before_data["username"]}',
              before_data=before_data)

    return jsonify({'message': 'Staff account deleted'})
