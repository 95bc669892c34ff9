from types import SimpleNamespace

import pytest

from labdesk.security import (
    ACTIONS, ALL_MODULES, MODULES, ROLES, Action, Permission, Role,
    default_permissions_for, effective_permissions, get_user_permissions, has_permission
)


def make_user(role, custom=None, active=True):
    return SimpleNamespace(
        id=1, role=role, active=active,
        permissions=effective_permissions(role, custom)
    )


def test_admin_allowed_everything():
    admin = make_user('admin')
    for module in MODULES + ['not-a-module']:
        for action in ACTIONS:
            assert has_permission(admin, module, action)


def test_admin_bypasses_empty_grant_list():
    admin = SimpleNamespace(role='admin', active=True, permissions=[])
    assert has_permission(admin, 'backup', 'delete')


def test_no_user_is_denied():
    for module in MODULES:
        assert not has_permission(None, module, 'view')


def test_inactive_user_is_denied():
    admin = make_user('admin', active=False)
    assert not has_permission(admin, 'dashboard', 'view')
    assert get_user_permissions(admin) == []


def test_all_module_grant_covers_any_module():
    user = SimpleNamespace(role='technician', active=True,
                           permissions=[Permission(ALL_MODULES, frozenset({'view'}))])
    assert has_permission(user, 'analytics', 'view')
    assert has_permission(user, 'made-up', 'view')
    assert not has_permission(user, 'analytics', 'edit')


@pytest.mark.parametrize('role', [r for r in ROLES if r != 'admin'])
def test_default_grants_match_has_permission(role):
    user = make_user(role)
    granted = {
        (grant.module, action)
        for grant in default_permissions_for(role)
        for action in grant.actions
    }
    for module in MODULES:
        for action in ACTIONS:
            assert has_permission(user, module, action) == ((module, action) in granted)


def test_receptionist_defaults():
    receptionist = make_user('receptionist')
    assert has_permission(receptionist, 'invoices', 'create')
    assert not has_permission(receptionist, 'invoices', 'edit')
    assert not has_permission(receptionist, 'analytics', 'view')


def test_pathologist_can_verify_reports():
    assert has_permission(make_user('pathologist'), 'reports', 'verify')
    assert not has_permission(make_user('technician'), 'reports', 'verify')


def test_lab_helper_falls_back_to_dashboard():
    assert default_permissions_for('lab_helper') == default_permissions_for('unknown-role')
    helper = make_user('lab_helper')
    assert has_permission(helper, 'dashboard', 'view')
    assert not has_permission(helper, 'patients', 'view')


def test_default_permissions_returns_a_copy():
    grants = default_permissions_for('manager')
    grants.clear()
    assert default_permissions_for('manager')


def test_custom_grants_extend_role_defaults():
    user = make_user('receptionist', custom=[{'module': 'analytics', 'actions': ['view']}])
    assert has_permission(user, 'analytics', 'view')
    assert has_permission(user, 'invoices', 'create')


def test_role_change_rederives_defaults():
    custom = [{'module': 'analytics', 'actions': ['view']}]
    user = make_user('receptionist', custom=custom)
    user.role = 'technician'
    user.permissions = effective_permissions(user.role, custom)

    assert not has_permission(user, 'invoices', 'create')
    assert has_permission(user, 'reports', 'edit')
    assert has_permission(user, 'analytics', 'view')


def test_enum_members_and_strings_agree():
    user = make_user(Role.PATHOLOGIST)
    assert has_permission(user, 'reports', Action.VERIFY)
    assert has_permission(user, 'reports', 'verify')


def test_permission_to_dict_orders_actions():
    grant = Permission('reports', frozenset({'verify', 'view', 'edit'}))
    assert grant.to_dict() == {'module': 'reports', 'actions': ['view', 'edit', 'verify']}


def test_permission_from_dict_rejects_unknown_action():
    with pytest.raises(ValueError):
        Permission.from_dict({'module': 'reports', 'actions': ['approve']})


def test_permission_from_dict_rejects_missing_module():
    with pytest.raises(ValueError):
        Permission.from_dict({'actions': ['view']})


def test_permission_from_dict_accepts_known_actions():
    grant = Permission.from_dict({'module': 'stock', 'actions': ['view', 'edit']})
    assert grant.allows('stock', 'edit')
    assert not grant.allows('stock', 'delete')


def test_technician_to_accountant_swaps_grants():
    user = make_user('technician')
    assert has_permission(user, 'reports', 'create')
    assert not has_permission(user, 'expenses', 'create')

    user.role = 'accountant'
    user.permissions = effective_permissions(user.role)

    assert not has_permission(user, 'reports', 'create')
    assert has_permission(user, 'expenses', 'create')
