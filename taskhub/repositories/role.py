"""
Role Repository
System roles are visible to every tenant; tenant roles only to their owner.
"""

from __future__ import annotations

from typing import Iterable, Optional
from uuid import UUID

import structlog
from sqlalchemy import case, delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select

from taskhub.core.context import CurrentCaller
from taskhub.models.role import Permission, Role, RolePermission, UserRole
from taskhub.models.user import User
from taskhub.repositories.base import CRUDBase
from taskhub.schemas.role import RoleCreate, RoleUpdate

logger = structlog.get_logger()


class RoleRepository(CRUDBase[Role, RoleCreate, RoleUpdate]):

    def tenant_filter(self, ctx: CurrentCaller):
        return or_(Role.tenant_id.is_(None), Role.tenant_id == ctx.tenant_id)

    def ordered(self, query: Select) -> Select:
        # System roles first, then by name
        return query.order_by(case((Role.tenant_id.is_(None), 0), else_=1), Role.name)

    async def list_visible(
        self,
        db: AsyncSession,
        ctx: CurrentCaller,
        *,
        skip: int = 0,
        limit: Optional[int] = None,
    ) -> list[Role]:
        query = self.ordered(self.scoped_query(ctx)).offset(skip)
        if limit is not None:
            query = query.limit(limit)
        result = await db.execute(query)
        return list(result.scalars().all())

    async def get_visible_by_ids(self, db: AsyncSession, ctx: CurrentCaller, ids: Iterable[UUID]) -> list[Role]:
        query = self.scoped_query(ctx).where(Role.id.in_(set(ids)))
        result = await db.execute(query)
        return list(result.scalars().all())

    async def name_exists(
        self,
        db: AsyncSession,
        tenant_id: Optional[UUID],
        name: str,
        exclude_id: Optional[UUID] = None,
    ) -> bool:
        """Name collision check within one namespace (a tenant, or the system roles)"""
        if tenant_id is None:
            owner = Role.tenant_id.is_(None)
        else:
            owner = Role.tenant_id == tenant_id

        query = select(Role.id).where(
            owner,
            func.lower(Role.name) == name.strip().lower(),
            Role.is_deleted == False,  # noqa: E712
        )
        if exclude_id is not None:
            query = query.where(Role.id != exclude_id)

        result = await db.execute(query.limit(1))
        return result.scalar_one_or_none() is not None

    async def get_system_role(self, db: AsyncSession, name: str) -> Optional[Role]:
        query = select(Role).where(
            Role.tenant_id.is_(None),
            Role.name == name,
            Role.is_deleted == False,  # noqa: E712
        )
        result = await db.execute(query)
        return result.scalar_one_or_none()

    async def get_permissions(self, db: AsyncSession, role_id: UUID) -> list[Permission]:
        query = (
            select(Permission)
            .join(RolePermission, RolePermission.permission_id == Permission.id)
            .where(RolePermission.role_id == role_id, Permission.is_deleted == False)  # noqa: E712
            .order_by(Permission.code)
        )
        result = await db.execute(query)
        return list(result.scalars().all())

    async def replace_permissions(self, db: AsyncSession, role_id: UUID, permission_ids: Iterable[UUID]) -> None:
        """Replace the full permission set; caller owns the transaction"""
        await db.execute(delete(RolePermission).where(RolePermission.role_id == role_id))
        db.add_all([RolePermission(role_id=role_id, permission_id=pid) for pid in set(permission_ids)])
        await db.flush()

        logger.debug("Role permissions replaced", role_id=str(role_id))

    async def count_assigned_users(self, db: AsyncSession, role_id: UUID) -> int:
        """Assignments held by users that have not been deleted"""
        query = (
            select(func.count())
            .select_from(UserRole)
            .join(User, User.id == UserRole.user_id)
            .where(UserRole.role_id == role_id, User.is_deleted == False)  # noqa: E712
        )
        result = await db.execute(query)
        return result.scalar() or 0

    async def usage_counts(
        self,
        db: AsyncSession,
        role_ids: Iterable[UUID],
        tenant_id: Optional[UUID] = None,
    ) -> tuple[dict, dict]:
        """
        Assigned (non-deleted) users and granted permissions per role

        System roles are shared, so user counts are limited to one
        tenant when tenant_id is given.
        """
        ids = set(role_ids)
        user_query = (
            select(UserRole.role_id, func.count())
            .join(User, User.id == UserRole.user_id)
            .where(UserRole.role_id.in_(ids), User.is_deleted == False)  # noqa: E712
        )
        if tenant_id is not None:
            user_query = user_query.where(User.tenant_id == tenant_id)
        users = await db.execute(user_query.group_by(UserRole.role_id))
        permissions = await db.execute(
            select(RolePermission.role_id, func.count())
            .join(Permission, Permission.id == RolePermission.permission_id)
            .where(RolePermission.role_id.in_(ids), Permission.is_deleted == False)  # noqa: E712
            .group_by(RolePermission.role_id)
        )
        return dict(users.all()), dict(permissions.all())


role_repository = RoleRepository(Role)
