"""
Tests for dynamic authorization policies
"""

from uuid import uuid4

import pytest

from taskhub.core.context import CurrentCaller
from taskhub.core.deps import require_permissions
from taskhub.core.exceptions import ForbiddenError
from taskhub.core.policies import AUTHENTICATED, PolicyProvider, UnknownPolicyError, policy_provider
from taskhub.core.rbac import ALL_PERMISSIONS, SYSTEM_ROLES, VIEWER_ROLE, is_permission_code


def _caller(*permissions):
    return CurrentCaller(user_id=uuid4(), tenant_id=uuid4(), permissions=frozenset(permissions))


@pytest.fixture
def provider():
    provider = PolicyProvider()
    provider.register(AUTHENTICATED, lambda caller: caller.user_id is not None)
    return provider


class TestPermissionCodeConvention:

    @pytest.mark.parametrize("value", ["projects.view", "activity_logs.view", "a.b.c"])
    def test_codes(self, value):
        assert is_permission_code(value)

    @pytest.mark.parametrize("value", ["", "authenticated", ".view", "projects.", "a..b"])
    def test_not_codes(self, value):
        assert not is_permission_code(value)


class TestPolicyResolution:

    def test_code_policy_created_on_demand(self, provider):
        policy = provider.get_policy("invoices.export")

        assert policy(_caller("invoices.export"))
        assert not policy(_caller())

    def test_code_policy_is_reused(self, provider):
        assert provider.get_policy("projects.view") is provider.get_policy("projects.view")

    def test_exact_match_only(self, provider):
        caller = _caller("projects.edit", "projects")

        assert not provider.get_policy("projects.view")(caller)
        assert not provider.get_policy("Projects.Edit")(caller)
        with pytest.raises(ForbiddenError):
            provider.authorize(_caller("projects.*"), ["projects.view"])

    def test_unknown_named_policy(self, provider):
        with pytest.raises(UnknownPolicyError):
            provider.get_policy("superuser")

    def test_register_rejects_code_shaped_name(self, provider):
        with pytest.raises(ValueError):
            provider.register("roles.view", lambda caller: True)

    def test_authenticated_policy(self, provider):
        provider.authorize(_caller(), [AUTHENTICATED])
        with pytest.raises(ForbiddenError):
            provider.authorize(CurrentCaller(user_id=None, tenant_id=None), [AUTHENTICATED])


class TestAuthorize:

    def test_all_requirements_must_hold(self, provider):
        caller = _caller("roles.view")

        provider.authorize(caller, ["roles.view"])
        with pytest.raises(ForbiddenError):
            provider.authorize(caller, ["roles.view", "roles.edit"])

    def test_forbidden_message_is_generic(self, provider):
        with pytest.raises(ForbiddenError) as exc_info:
            provider.authorize(_caller(), ["roles.delete"])

        assert "roles.delete" not in exc_info.value.message

    def test_viewer_cannot_create_projects(self):
        viewer = _caller(*SYSTEM_ROLES[VIEWER_ROLE]["permissions"])

        policy_provider.authorize(viewer, ["projects.view"])
        with pytest.raises(ForbiddenError):
            policy_provider.authorize(viewer, ["projects.create"])

    def test_admin_satisfies_every_catalog_code(self):
        admin = _caller(*ALL_PERMISSIONS)

        policy_provider.authorize(admin, ALL_PERMISSIONS)


class TestRequirePermissions:

    def test_unknown_policy_fails_at_declaration(self):
        with pytest.raises(UnknownPolicyError):
            require_permissions("no_such_policy")

    @pytest.mark.asyncio
    async def test_dependency_returns_caller(self):
        checker = require_permissions("roles.view", "roles.edit")
        caller = _caller("roles.view", "roles.edit")

        assert await checker(caller=caller) is caller

    @pytest.mark.asyncio
    async def test_dependency_denies_partial_grant(self):
        checker = require_permissions("roles.view", "roles.edit")

        with pytest.raises(ForbiddenError):
            await checker(caller=_caller("roles.view"))
