"""
Permission Repository
The catalog is global: reads apply the soft-delete filter only.
"""

from __future__ import annotations

from typing import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.core.context import CurrentCaller
from taskhub.models.role import Permission
from taskhub.repositories.base import CRUDBase
from taskhub.schemas.permission import PermissionCreate, PermissionResponse


class PermissionRepository(CRUDBase[Permission, PermissionCreate, PermissionResponse]):

    async def list_catalog(self, db: AsyncSession, ctx: CurrentCaller) -> list[Permission]:
        result = await db.execute(self.scoped_query(ctx).order_by(Permission.code))
        return list(result.scalars().all())

    async def get_by_ids(self, db: AsyncSession, ctx: CurrentCaller, ids: Iterable) -> list[Permission]:
        query = self.scoped_query(ctx).where(Permission.id.in_(set(ids)))
        result = await db.execute(query)
        return list(result.scalars().all())

    async def get_by_codes(self, db: AsyncSession, ctx: CurrentCaller, codes: Iterable[str]) -> list[Permission]:
        query = self.scoped_query(ctx).where(Permission.code.in_(set(codes)))
        result = await db.execute(query)
        return list(result.scalars().all())

    async def existing_codes(self, db: AsyncSession) -> set[str]:
        """Every code ever recorded, tombstoned entries included"""
        result = await db.execute(select(Permission.code))
        return set(result.scalars().all())


permission_repository = PermissionRepository(Permission)
