"""
Tests for shared permissions services (permission composition and checks).
"""

import itertools

import pytest

from substrate_api.shared.permissions.models import Permission, UserRole
from substrate_api.shared.permissions.services import (
    base_permissions,
    effective_permissions,
    has_all_permissions,
    has_any_permission,
    has_permission,
    is_at_least,
    role_level,
)
from tests.utils.permission_testing import PermissionTestHelpers


class TestEffectivePermissions:
    """Test composing role permissions with custom grants."""

    @pytest.mark.parametrize("role", list(UserRole))
    def test_without_grants_returns_base(self, role):
        assert effective_permissions(role) == base_permissions(role)
        assert effective_permissions(role, []) == base_permissions(role)

    @pytest.mark.parametrize("role", list(UserRole))
    def test_result_is_superset_of_base(self, role):
        grants = [Permission.POLICY_WRITE, Permission.USER_MANAGE]
        assert base_permissions(role) <= effective_permissions(role, grants)

    def test_grants_extend_readonly(self):
        granted = effective_permissions(UserRole.readonly, [Permission.DRIFT_RESOLVE])
        assert Permission.DRIFT_RESOLVE in granted
        assert Permission.DRIFT_READ in granted

    def test_independent_of_grant_order_and_duplicates(self):
        grants = [
            Permission.POLICY_WRITE,
            Permission.GRAPH_ANALYZE,
            Permission.CONNECTOR_INSTALL,
        ]
        results = {
            effective_permissions(UserRole.product, list(order))
            for order in itertools.permutations(grants)
        }
        results.add(effective_permissions(UserRole.product, grants + grants))
        assert len(results) == 1


class TestHasPermission:
    """Test the member permission checks."""

    def test_owner_has_all_permissions(self, member_factory):
        owner = member_factory(UserRole.owner)
        for permission in PermissionTestHelpers.get_all_permissions():
            assert has_permission(owner, permission) is True

    def test_admin_cannot_delete_project(self, member_factory):
        admin = member_factory(UserRole.admin)
        assert has_permission(admin, Permission.PROJECT_WRITE) is True
        assert has_permission(admin, Permission.PROJECT_DELETE) is False

    def test_readonly_permissions(self, member_factory):
        readonly = member_factory(UserRole.readonly)
        assert has_permission(readonly, Permission.PROJECT_READ) is True
        assert has_permission(readonly, Permission.PROJECT_WRITE) is False
        assert has_permission(readonly, Permission.GRAPH_EXPLORE) is False

    def test_custom_grant_is_honoured(self, member_factory):
        member = member_factory(UserRole.readonly, [Permission.PROJECT_WRITE])
        assert has_permission(member, Permission.PROJECT_WRITE) is True

    def test_no_membership_has_nothing(self):
        assert has_permission(None, Permission.PROJECT_READ) is False
        assert has_any_permission(None, [Permission.PROJECT_READ]) is False
        assert has_all_permissions(None, [Permission.PROJECT_READ]) is False

    def test_any_and_all(self, member_factory):
        engineer = member_factory(UserRole.engineer)
        mixed = [Permission.INSIGHTS_TECHNICAL, Permission.INSIGHTS_EXECUTIVE]
        assert has_any_permission(engineer, mixed) is True
        assert has_all_permissions(engineer, mixed) is False
        assert has_all_permissions(engineer, []) is True

    @pytest.mark.parametrize("role", list(UserRole))
    def test_matches_role_table(self, member_factory, role):
        member = member_factory(role)
        expected = PermissionTestHelpers.get_role_permissions(role)
        for permission in Permission:
            assert has_permission(member, permission) is (permission in expected)


class TestRoleLevels:
    def test_levels_are_ordered(self):
        ordered = PermissionTestHelpers.get_roles_by_level()
        assert ordered[0] == UserRole.owner
        assert ordered[-1] == UserRole.readonly
        assert role_level(UserRole.engineer) == role_level(UserRole.security)

    @pytest.mark.parametrize(
        "role,minimum,expected",
        [
            (UserRole.owner, UserRole.admin, True),
            (UserRole.admin, UserRole.admin, True),
            (UserRole.engineer, UserRole.admin, False),
            (UserRole.security, UserRole.engineer, True),
            (UserRole.readonly, UserRole.product, False),
        ],
    )
    def test_is_at_least(self, role, minimum, expected):
        assert is_at_least(role, minimum) is expected
