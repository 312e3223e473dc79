"""
Tests for effective permission resolution
"""

import pytest

from taskhub.core.context import CurrentCaller
from taskhub.core.permission_resolver import permission_resolver
from taskhub.core.rbac import ADMIN_ROLE, ALL_PERMISSIONS, MEMBER_ROLE, SYSTEM_ROLES, VIEWER_ROLE
from taskhub.models.role import Role
from taskhub.repositories.permission import permission_repository
from taskhub.repositories.role import role_repository
from taskhub.repositories.user import user_repository
from taskhub.services.bootstrap import ensure_authorization_catalog


class TestEffectivePermissions:

    @pytest.mark.asyncio
    async def test_admin_holds_whole_catalog(self, seeded_db, admin_a):
        assert await permission_resolver.effective_permissions(seeded_db, admin_a.id) == set(ALL_PERMISSIONS)

    @pytest.mark.asyncio
    async def test_no_roles_no_permissions(self, seeded_db, tenant_a, make_user):
        user = await make_user(tenant_a, "nobody@a.example.com")

        assert await permission_resolver.effective_permissions(seeded_db, user.id) == set()

    @pytest.mark.asyncio
    async def test_union_over_roles(self, seeded_db, tenant_a, make_user):
        user = await make_user(tenant_a, "both@a.example.com", roles=[VIEWER_ROLE, MEMBER_ROLE])

        expected = set(SYSTEM_ROLES[VIEWER_ROLE]["permissions"]) | set(SYSTEM_ROLES[MEMBER_ROLE]["permissions"])
        assert await permission_resolver.effective_permissions(seeded_db, user.id) == expected

    @pytest.mark.asyncio
    async def test_deleted_role_contributes_nothing(self, seeded_db, tenant_a, make_user, caller_for):
        user = await make_user(tenant_a, "custom@a.example.com")
        ctx = caller_for(user)

        role = await role_repository.add(seeded_db, ctx, Role(name="Auditors"), commit=False)
        [permission] = await permission_repository.get_by_codes(seeded_db, ctx, ["activity_logs.view"])
        await role_repository.replace_permissions(seeded_db, role.id, [permission.id])
        await user_repository.replace_roles(seeded_db, user.id, [role.id])
        await seeded_db.commit()

        assert await permission_resolver.effective_permissions(seeded_db, user.id) == {"activity_logs.view"}

        await role_repository.remove(seeded_db, ctx, role)

        assert await permission_resolver.effective_permissions(seeded_db, user.id) == set()


class TestBootstrap:

    @pytest.mark.asyncio
    async def test_bootstrap_is_idempotent(self, seeded_db):
        assert await ensure_authorization_catalog(seeded_db) == []

        catalog = await permission_repository.list_catalog(seeded_db, CurrentCaller.system())
        assert [p.code for p in catalog] == sorted(ALL_PERMISSIONS)

    @pytest.mark.asyncio
    async def test_system_roles_seeded(self, seeded_db):
        for name, definition in SYSTEM_ROLES.items():
            role = await role_repository.get_system_role(seeded_db, name)
            assert role is not None and role.is_system_role
            granted = [p.code for p in await role_repository.get_permissions(seeded_db, role.id)]
            assert granted == sorted(definition["permissions"])

    @pytest.mark.asyncio
    async def test_first_run_reports_every_code(self, db):
        assert sorted(await ensure_authorization_catalog(db)) == sorted(ALL_PERMISSIONS)
        assert await role_repository.get_system_role(db, ADMIN_ROLE) is not None
