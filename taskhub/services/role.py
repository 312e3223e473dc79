"""
Role Service
Tenant role management and role-to-permission assignment.
"""

from __future__ import annotations

from typing import Iterable
from uuid import UUID

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.core.context import CurrentCaller
from taskhub.core.database import transaction
from taskhub.core.exceptions import (
    CannotModifySystemRoleError,
    NameConflictError,
    NotFoundError,
    PermissionNotFoundError,
    RoleInUseError,
    UnauthenticatedError,
)
from taskhub.models.role import Role
from taskhub.repositories.activity_log import activity_log_repository
from taskhub.repositories.permission import permission_repository
from taskhub.repositories.role import role_repository
from taskhub.schemas.permission import PermissionResponse
from taskhub.schemas.role import RoleCreate, RoleDetailResponse, RoleResponse, RoleUpdate

logger = structlog.get_logger()

ENTITY_TYPE = "Role"


class RoleService:
    def _to_response(self, role: Role, user_count: int = 0, permission_count: int = 0) -> RoleResponse:
        response = RoleResponse.model_validate(role)
        response.user_count = user_count
        response.permission_count = permission_count
        return response

    async def _get_visible(self, db: AsyncSession, ctx: CurrentCaller, role_id: UUID) -> Role:
        role = await role_repository.get(db, ctx, role_id)
        if not role:
            logger.warning("Role not found", role_id=str(role_id), tenant_id=str(ctx.tenant_id))
            raise NotFoundError("Role not found.")
        return role

    async def _get_mutable(self, db: AsyncSession, ctx: CurrentCaller, role_id: UUID) -> Role:
        # Another tenant's role is invisible, so it surfaces as not found
        role = await self._get_visible(db, ctx, role_id)
        if role.is_system_role:
            logger.warning("Attempt to modify system role", role_id=str(role_id), user_id=str(ctx.user_id))
            raise CannotModifySystemRoleError()
        return role

    async def list_roles(
        self,
        db: AsyncSession,
        ctx: CurrentCaller,
        *,
        skip: int = 0,
        limit: int = 100,
    ) -> tuple[list[RoleResponse], int]:
        """System roles plus the caller's tenant roles, system first then by name"""
        roles = await role_repository.list_visible(db, ctx, skip=skip, limit=limit)
        total = await role_repository.count(db, ctx)
        users, permissions = await role_repository.usage_counts(db, [role.id for role in roles], ctx.tenant_id)

        items = [
            self._to_response(role, users.get(role.id, 0), permissions.get(role.id, 0))
            for role in roles
        ]
        return items, total

    async def get_role(self, db: AsyncSession, ctx: CurrentCaller, role_id: UUID) -> RoleDetailResponse:
        role = await self._get_visible(db, ctx, role_id)
        permissions = await role_repository.get_permissions(db, role.id)
        users, _ = await role_repository.usage_counts(db, [role.id], ctx.tenant_id)

        detail = RoleDetailResponse.model_validate(role)
        detail.permissions = [PermissionResponse.model_validate(p) for p in permissions]
        detail.permission_count = len(permissions)
        detail.user_count = users.get(role.id, 0)
        return detail

    async def create_role(self, db: AsyncSession, ctx: CurrentCaller, data: RoleCreate) -> RoleResponse:
        logger.info("Creating role", name=data.name, tenant_id=str(ctx.tenant_id))

        if not ctx.has_tenant:
            logger.warning("Role creation without tenant context")
            raise UnauthenticatedError()

        # System role names live in a separate namespace
        if await role_repository.name_exists(db, ctx.tenant_id, data.name):
            logger.warning("Role name already exists", name=data.name, tenant_id=str(ctx.tenant_id))
            raise NameConflictError("Role name already exists.")

        try:
            async with transaction(db):
                role = await role_repository.create(db, ctx, obj_in=data, commit=False)
                await activity_log_repository.record(
                    db,
                    ctx,
                    action="Created",
                    entity_type=ENTITY_TYPE,
                    entity_id=role.id,
                    new_values={"name": role.name, "description": role.description},
                )
        except IntegrityError:
            # A concurrent writer claimed the name after the check above
            logger.warning("Role name conflicted on unique index", tenant_id=str(ctx.tenant_id))
            raise NameConflictError("Role name already exists.") from None

        logger.info("Role created", role_id=str(role.id), name=role.name)
        return self._to_response(role)

    async def update_role(
        self,
        db: AsyncSession,
        ctx: CurrentCaller,
        role_id: UUID,
        data: RoleUpdate,
    ) -> RoleResponse:
        role = await self._get_mutable(db, ctx, role_id)
        changes = data.model_dump(exclude_unset=True)

        new_name = changes.get("name")
        if new_name and new_name.lower() != role.name.lower():
            if await role_repository.name_exists(db, role.tenant_id, new_name, exclude_id=role.id):
                logger.warning("Role name already exists", name=new_name, tenant_id=str(ctx.tenant_id))
                raise NameConflictError("Role name already exists.")

        old_values = {"name": role.name, "description": role.description}
        try:
            async with transaction(db):
                role = await role_repository.update(db, ctx, db_obj=role, obj_in=changes, commit=False)
                await activity_log_repository.record(
                    db,
                    ctx,
                    action="Updated",
                    entity_type=ENTITY_TYPE,
                    entity_id=role.id,
                    old_values=old_values,
                    new_values={"name": role.name, "description": role.description},
                )
        except IntegrityError:
            # A concurrent writer claimed the name after the check above
            logger.warning("Role name conflicted on unique index", tenant_id=str(ctx.tenant_id))
            raise NameConflictError("Role name already exists.") from None

        users, permissions = await role_repository.usage_counts(db, [role.id], ctx.tenant_id)
        logger.info("Role updated", role_id=str(role.id))
        return self._to_response(role, users.get(role.id, 0), permissions.get(role.id, 0))

    async def delete_role(self, db: AsyncSession, ctx: CurrentCaller, role_id: UUID) -> None:
        role = await self._get_mutable(db, ctx, role_id)

        assigned = await role_repository.count_assigned_users(db, role.id)
        if assigned:
            logger.warning("Role has assigned users", role_id=str(role.id), user_count=assigned)
            raise RoleInUseError()

        async with transaction(db):
            await role_repository.remove(db, ctx, role, commit=False)
            await activity_log_repository.record(
                db,
                ctx,
                action="Deleted",
                entity_type=ENTITY_TYPE,
                entity_id=role.id,
                old_values={"name": role.name},
            )

        logger.info("Role deleted", role_id=str(role.id))

    async def assign_permissions(
        self,
        db: AsyncSession,
        ctx: CurrentCaller,
        role_id: UUID,
        permission_ids: Iterable[UUID],
    ) -> RoleDetailResponse:
        """
        Replace the role's full permission set

        Every id is validated before anything is written; one unknown id
        fails the whole call.
        """
        requested = set(permission_ids)
        role = await self._get_mutable(db, ctx, role_id)

        found = await permission_repository.get_by_ids(db, ctx, requested)
        missing = requested - {permission.id for permission in found}
        if missing:
            missing_id = sorted(str(pid) for pid in missing)[0]
            logger.warning("Permission not found", role_id=str(role.id), permission_id=missing_id)
            raise PermissionNotFoundError(f"Permission with ID {missing_id} not found.")

        previous = await role_repository.get_permissions(db, role.id)

        async with transaction(db):
            await role_repository.replace_permissions(db, role.id, requested)
            await activity_log_repository.record(
                db,
                ctx,
                action="PermissionsAssigned",
                entity_type=ENTITY_TYPE,
                entity_id=role.id,
                old_values={"permissions": sorted(p.code for p in previous)},
                new_values={"permissions": sorted(p.code for p in found)},
            )

        logger.info("Permissions assigned", role_id=str(role.id), permission_count=len(requested))
        return await self.get_role(db, ctx, role.id)


role_service = RoleService()
