"""
Tests for role/tenant policy decisions.
"""

import pytest

from franchise_auth.auth.policies import (
    ROUTE_POLICIES,
    TenantScope,
    can_manage_tenant,
    get_route_policy,
    has_any_role,
    require_tenant_id,
    validate_tenant_assignment,
)
from franchise_auth.core.errors import BadRequest, TenantRequired
from franchise_auth.core.roles import Role, parse_roles


class TestCanManageTenant:
    @pytest.mark.parametrize(
        "roles, caller_tenant, target_tenant, expected",
        [
            ([Role.ADMIN], None, "T1", True),
            ([Role.ADMIN], "T2", "T1", True),
            ([Role.TENANT_OWNER], "T1", "T1", True),
            ([Role.TENANT_OWNER], "T1", "T2", False),
            ([Role.TENANT_OWNER], None, None, False),
            ([Role.STAFF], "T1", "T1", False),
            ([Role.STAFF], "T1", "T2", False),
            ([Role.CUSTOMER], None, "T1", False),
            ([], None, "T1", False),
        ],
    )
    def test_truth_table(self, roles, caller_tenant, target_tenant, expected):
        assert can_manage_tenant(roles, caller_tenant, target_tenant) is expected

    def test_accepts_role_names(self):
        assert can_manage_tenant(["TENANT_OWNER"], "T1", "T1") is True

    def test_staff_role_does_not_add_tenant_rights(self):
        assert can_manage_tenant([Role.STAFF, Role.TENANT_OWNER], "T1", "T2") is False


class TestHasAnyRole:
    def test_intersection(self):
        assert has_any_role([Role.STAFF], [Role.ADMIN, Role.STAFF]) is True

    def test_disjoint(self):
        assert has_any_role([Role.CUSTOMER], [Role.ADMIN, Role.TENANT_OWNER]) is False

    def test_empty_caller(self):
        assert has_any_role([], [Role.ADMIN]) is False

    def test_unknown_names_grant_nothing(self):
        assert has_any_role(["SUPERUSER"], ["SUPERUSER"]) is False
        assert parse_roles(["SUPERUSER", "ADMIN"]) == frozenset({Role.ADMIN})


class TestRequireTenantId:
    def test_present(self):
        assert require_tenant_id("T1") == "T1"

    @pytest.mark.parametrize("value", [None, ""])
    def test_absent(self, value):
        with pytest.raises(TenantRequired):
            require_tenant_id(value)

    def test_tenant_required_is_bad_request(self):
        assert TenantRequired.status_code == 400


class TestTenantAssignment:
    @pytest.mark.parametrize("role", [Role.STAFF, Role.TENANT_OWNER])
    def test_scoped_roles_need_tenant(self, role):
        validate_tenant_assignment(role, "T1")
        with pytest.raises(TenantRequired):
            validate_tenant_assignment(role, None)

    @pytest.mark.parametrize("role", [Role.ADMIN, Role.CUSTOMER])
    def test_global_roles_reject_tenant(self, role):
        validate_tenant_assignment(role, None)
        with pytest.raises(BadRequest):
            validate_tenant_assignment(role, "T1")


class TestRoutePolicies:
    def test_admin_routes_are_tenant_scoped(self):
        assert ROUTE_POLICIES["admin.create_user"].tenant_scope is TenantScope.BODY
        assert ROUTE_POLICIES["admin.list_users_by_tenant"].tenant_scope is TenantScope.PATH

    def test_self_service_routes_need_only_authentication(self):
        policy = get_route_policy("auth.profile")

        assert policy.allows_roles([]) is True
        assert policy.tenant_scope is TenantScope.NONE

    def test_admin_route_roles(self):
        policy = get_route_policy("admin.create_user")

        assert policy.allows_roles([Role.ADMIN])
        assert policy.allows_roles([Role.TENANT_OWNER])
        assert not policy.allows_roles([Role.STAFF])
        assert not policy.allows_roles([Role.CUSTOMER])

    def test_unknown_route(self):
        with pytest.raises(KeyError):
            get_route_policy("nope")
