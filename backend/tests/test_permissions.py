"""
Permission matrix and route gating.

Verifies:
- Exact (module, action) matching with no implication between actions
- Longest registered prefix decides a path's requirement
- Unregistered paths are allowed
- Default role seeding is idempotent
"""

import pytest

from erp.models import Role, Permission
from erp.permissions import (
    PermissionModule as M,
    PermissionAction as A,
    has_permission,
    can_access_route,
    required_permission_for_route,
    normalize_permissions,
    serialize_permissions,
    validate_permission,
    get_default_permissions_for_role,
)
from erp.services import permission_service
from erp.validation import ValidationError, ConflictError


class TestHasPermission:

    def test_exact_pair_matches(self):
        assert has_permission([("sales", "read")], "sales", "read")

    def test_write_does_not_imply_read(self):
        assert not has_permission([("sales", "write")], "sales", "read")

    def test_other_module_does_not_match(self):
        assert not has_permission([("sales", "read")], "purchase", "read")

    def test_accepts_serialized_dicts(self):
        perms = [{"module": "inventory", "action": "write"}]
        assert has_permission(perms, "inventory", "write")

    def test_empty_set_denies(self):
        assert not has_permission(None, "dashboard", "read")
        assert not has_permission([], "dashboard", "read")

    def test_serialize_round_trips_through_normalize(self):
        pairs = [("sales", "read"), ("accounts", "approve")]
        assert normalize_permissions(serialize_permissions(pairs)) == pairs


class TestRouteAccess:

    def test_exact_route(self):
        assert required_permission_for_route("/inventory/receive") == (M.INVENTORY, A.WRITE)

    def test_longest_prefix_wins(self):
        # /api/inventory requires read, /api/inventory/receive requires write
        assert required_permission_for_route("/api/inventory/receive/batch") == (M.INVENTORY, A.WRITE)
        assert required_permission_for_route("/api/inventory/stock") == (M.INVENTORY, A.READ)

    def test_prefix_must_end_at_segment_boundary(self):
        assert required_permission_for_route("/administrator") is None

    def test_unregistered_path_is_allowed(self):
        assert can_access_route([], "/help/about")

    def test_registered_path_needs_permission(self):
        assert not can_access_route([("inventory", "read")], "/inventory/receive")
        assert can_access_route([("inventory", "write")], "/inventory/receive")

    def test_nested_admin_path(self):
        assert can_access_route([(M.ADMIN, A.READ)], "/admin/users/12")
        assert not can_access_route([(M.SALES, A.READ)], "/admin/users/12")


class TestValidatePermission:

    def test_unknown_module(self):
        with pytest.raises(ValidationError, match="Unknown module"):
            validate_permission("payroll", "read")

    def test_unknown_action(self):
        with pytest.raises(ValidationError, match="Unknown action"):
            validate_permission("sales", "export")

    def test_default_matrix_for_unknown_role_is_empty(self):
        assert get_default_permissions_for_role("Auditor") == []


class TestRoleService:

    def test_initialize_is_idempotent(self, db_session):
        first = permission_service.initialize_default_roles()
        second = permission_service.initialize_default_roles()

        assert first["roles_created"] == 3
        assert second["roles_created"] == 0
        assert second["permissions_added"] == 0
        assert db_session.query(Role).count() == 3

    def test_admin_holds_full_default_matrix(self, setup_roles):
        admin = permission_service.get_role_by_name("Admin")
        assert set(admin.permission_pairs()) == set(get_default_permissions_for_role("Admin"))

    def test_manager_cannot_approve_accounts_by_default(self, setup_roles):
        manager = permission_service.get_role_by_name("Manager")
        assert (M.ACCOUNTS, A.APPROVE) not in manager.permission_pairs()

    def test_grant_and_revoke(self, setup_roles, db_session):
        role = permission_service.get_role_by_name("User")

        assert permission_service.grant_permission(role, M.REPORTS, A.READ) is True
        assert permission_service.grant_permission(role, M.REPORTS, A.READ) is False
        assert (M.REPORTS, A.READ) in role.permission_pairs()

        assert permission_service.revoke_permission(role, M.REPORTS, A.READ) is True
        assert permission_service.revoke_permission(role, M.REPORTS, A.READ) is False
        assert db_session.query(Permission).filter_by(role_id=role.id, module=M.REPORTS).count() == 0

    def test_create_role_rejects_duplicates(self, setup_roles):
        with pytest.raises(ConflictError):
            permission_service.create_role(name="Manager")

    def test_create_role_with_permissions(self, setup_roles):
        role = permission_service.create_role(
            name="Storekeeper",
            permissions=[{"module": "inventory", "action": "read"}, ("inventory", "write")],
        )
        assert sorted(role.permission_pairs()) == [("inventory", "read"), ("inventory", "write")]

    def test_delete_role_in_use_conflicts(self, regular_user):
        with pytest.raises(ConflictError):
            permission_service.delete_role(regular_user.role_id)

    def test_list_roles_counts_users(self, regular_user):
        roles = {r["name"]: r for r in permission_service.list_roles()}
        assert roles["User"]["user_count"] == 1
        assert roles["Admin"]["user_count"] == 0
        assert roles["User"]["permissions"]
