"""
Security and RBAC (Role-Based Access Control) module

A user holds a role and, optionally, a list of custom grants. Effective
permissions are the role defaults followed by the custom grants; grants only
ever add access, there are no negative grants. The admin role bypasses the
grant list entirely.
"""
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from functools import wraps

from flask import abort, current_app, jsonify, request
from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request
from flask_login import current_user

from labdesk.extensions import db


class Role(str, Enum):
    """Staff roles"""
    ADMIN = 'admin'
    MANAGER = 'manager'
    RECEPTIONIST = 'receptionist'
    TECHNICIAN = 'technician'
    PATHOLOGIST = 'pathologist'
    ACCOUNTANT = 'accountant'
    LAB_HELPER = 'lab_helper'


class Action(str, Enum):
    """Verbs a grant may allow on a module"""
    VIEW = 'view'
    CREATE = 'create'
    EDIT = 'edit'
    DELETE = 'delete'
    EXPORT = 'export'
    IMPORT = 'import'
    LOCK = 'lock'
    UNLOCK = 'unlock'
    VERIFY = 'verify'


# Sentinel module matching every module
ALL_MODULES = 'all'

MODULES = [
    'dashboard', 'patients', 'doctors', 'tests', 'rates', 'invoices',
    'reports', 'appointments', 'files', 'notifications', 'templates',
    'stock', 'quality', 'analytics', 'expenses', 'staff', 'backup', 'audit',
]

ROLES = [role.value for role in Role]
ACTIONS = [action.value for action in Action]


def _value(member):
    return member.value if isinstance(member, Enum) else member


def _action_rank(action):
    return ACTIONS.index(action) if action in ACTIONS else len(ACTIONS)


@dataclass(frozen=True)
class Permission:
    """A grant of actions on one module (or on every module via 'all')"""
    module: str
    actions: frozenset = frozenset()

    def __post_init__(self):
        object.__setattr__(self, 'module', _value(self.module))
        object.__setattr__(self, 'actions', frozenset(_value(a) for a in self.actions))

    def allows(self, module, action):
        """Check if this grant covers the (module, action) pair"""
        return (self.module == module or self.module == ALL_MODULES) and action in self.actions

    def to_dict(self):
        return {
            'module': self.module,
            'actions': sorted(self.actions, key=_action_rank),
        }

    @classmethod
    def from_dict(cls, data):
        """Build a grant from API input, rejecting unknown actions"""
        if not isinstance(data, Mapping):
            raise ValueError('Permission must be an object with module and actions')

        module = data.get('module')
        actions = data.get('actions') or []
        if not isinstance(module, str) or not module:
            raise ValueError('Permission module is required')
        if isinstance(actions, str) or not isinstance(actions, (list, tuple, set, frozenset)):
            raise ValueError('Permission actions must be a list')

        unknown = [a for a in actions if a not in ACTIONS]
        if unknown:
            raise ValueError(f"Unknown permission actions: {', '.join(map(str, unknown))}")

        return cls(module=module, actions=frozenset(actions))


def _grants(module, *actions):
    return Permission(module, frozenset(actions))


# Default grants per role, applied when the account is created and re-derived
# on every check
DEFAULT_ROLE_PERMISSIONS = {
    Role.ADMIN.value: [
        _grants(ALL_MODULES, *Action),
    ],
    Role.MANAGER.value: [
        _grants('dashboard', Action.VIEW),
        _grants('analytics', Action.VIEW, Action.EXPORT),
        _grants('staff', Action.VIEW, Action.CREATE, Action.EDIT),
        _grants('patients', Action.VIEW, Action.EDIT),
        _grants('doctors', Action.VIEW, Action.CREATE, Action.EDIT),
        _grants('tests', Action.VIEW, Action.CREATE, Action.EDIT),
        _grants('stock', Action.VIEW, Action.CREATE, Action.EDIT),
        _grants('expenses', Action.VIEW, Action.CREATE, Action.EDIT),
    ],
    Role.RECEPTIONIST.value: [
        _grants('patients', Action.VIEW, Action.CREATE, Action.EDIT),
        _grants('invoices', Action.VIEW, Action.CREATE),
        _grants('reports', Action.VIEW),
        _grants('appointments', Action.VIEW, Action.CREATE, Action.EDIT),
    ],
    Role.TECHNICIAN.value: [
        _grants('reports', Action.VIEW, Action.CREATE, Action.EDIT),
        _grants('tests', Action.VIEW),
        _grants('stock', Action.VIEW, Action.EDIT),
        _grants('quality', Action.VIEW, Action.CREATE, Action.EDIT),
    ],
    Role.PATHOLOGIST.value: [
        _grants('reports', Action.VIEW, Action.CREATE, Action.EDIT, Action.VERIFY),
        _grants('templates', Action.VIEW, Action.CREATE, Action.EDIT, Action.LOCK, Action.UNLOCK),
        _grants('patients', Action.VIEW),
        _grants('tests', Action.VIEW, Action.CREATE, Action.EDIT),
    ],
    Role.ACCOUNTANT.value: [
        _grants('invoices', Action.VIEW, Action.EDIT),
        _grants('expenses', Action.VIEW, Action.CREATE, Action.EDIT),
        _grants('analytics', Action.VIEW),
    ],
}

# Roles without an entry (lab_helper included) only see the dashboard
FALLBACK_PERMISSIONS = [
    _grants('dashboard', Action.VIEW),
]


def default_permissions_for(role):
    """Get the default grants for a role"""
    return list(DEFAULT_ROLE_PERMISSIONS.get(_value(role), FALLBACK_PERMISSIONS))


def _as_permission(grant):
    if isinstance(grant, Permission):
        return grant
    if isinstance(grant, Mapping):
        return Permission(grant.get('module'), frozenset(grant.get('actions') or ()))
    return None


def effective_permissions(role, custom_permissions=None):
    """Role defaults followed by custom grants (union, no precedence)"""
    permissions = default_permissions_for(role)
    for grant in custom_permissions or []:
        permission = _as_permission(grant)
        if permission is not None:
            permissions.append(permission)
    return permissions


def has_permission(user, module, action):
    """Check if user may perform action on module"""
    if user is None or not getattr(user, 'active', True):
        return False

    # Admin bypasses the grant list
    if _value(getattr(user, 'role', None)) == Role.ADMIN.value:
        return True

    module, action = _value(module), _value(action)
    for grant in getattr(user, 'permissions', None) or []:
        permission = _as_permission(grant)
        if permission is not None and permission.allows(module, action):
            return True
    return False


def get_user_permissions(user):
    """Get all effective grants for a user"""
    if user is None or not getattr(user, 'active', True):
        return []
    grants = (_as_permission(p) for p in getattr(user, 'permissions', None) or [])
    return [p.to_dict() for p in grants if p is not None]


def get_current_actor():
    """Resolve the acting user from a bearer token or the login session"""
    verify_jwt_in_request(optional=True)
    identity = get_jwt_identity()
    if identity is not None:
        from labdesk.models.staff import User
        return db.session.get(User, int(identity))

    if current_user.is_authenticated:
        return current_user._get_current_object()
    return None


def require_permission(module, action):
    """Decorator to require a (module, action) grant"""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            actor = get_current_actor()
            if actor is None or not actor.active:
                abort(401, description='Authentication required')

            if not has_permission(actor, module, action):
                current_app.logger.info(
                    f"Denied {_value(action)} on {_value(module)} for user {actor.id}"
                )
                abort(403, description='Insufficient permissions')

            return f(*args, **kwargs)
        return decorated_function
    return decorator


def login_required_api(f):
    """Decorator to require any authenticated, active user"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        actor = get_current_actor()
        if actor is None or not actor.active:
            abort(401, description='Authentication required')
        return f(*args, **kwargs)
    return decorated_function


def check_api_permission(module, action):
    """Check permission inline; returns an error response or None"""
    actor = get_current_actor()
    if actor is None or not actor.active:
        return jsonify({'error': 'Authentication required'}), 401

    if not has_permission(actor, module, action):
        return jsonify({'error': 'Insufficient permissions'}), 403

    return None


def audit_log(action, module, entity_id=None, details=None, before_data=None, after_data=None):
    """Log audit trail for important actions"""
    from labdesk.models.common import AuditLog

    actor = get_current_actor()
    audit_entry = AuditLog(
        user_id=actor.id if actor is not None else None,
        action=action,
        module=module,
        entity_id=entity_id,
        details=details,
        before_json=before_data,
        after_json=after_data,
        ip_address=request.remote_addr,
        user_agent=request.user_agent.string if request.user_agent else None
    )

    try:
        db.session.add(audit_entry)
        db.session.commit()
    except Exception as e:
        current_app.logger.error(f"Failed to log audit trail: {e}")
        db.session.rollback()
