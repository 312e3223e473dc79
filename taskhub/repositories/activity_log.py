"""
Activity Log Repository
Append-only: rows can be inserted and read, never changed or removed.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple, Union
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from taskhub.core.context import CurrentCaller
from taskhub.core.exceptions import ImmutableRecordError
from taskhub.models.activity_log import ActivityLog
from taskhub.repositories.base import CRUDBase
from taskhub.schemas.activity_log import ActivityLogCreate, ActivityLogResponse

logger = structlog.get_logger()


class ActivityLogRepository(CRUDBase[ActivityLog, ActivityLogCreate, ActivityLogResponse]):

    async def record(
        self,
        db: AsyncSession,
        ctx: CurrentCaller,
        *,
        action: str,
        entity_type: str,
        entity_id: UUID,
        old_values: Optional[Dict[str, Any]] = None,
        new_values: Optional[Dict[str, Any]] = None,
    ) -> ActivityLog:
        """Append an entry inside the caller's transaction"""
        entry = ActivityLog(
            user_id=ctx.user_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            old_values=old_values,
            new_values=new_values,
        )
        return await self.add(db, ctx, entry, commit=False)

    async def list_entries(
        self,
        db: AsyncSession,
        ctx: CurrentCaller,
        *,
        entity_type: Optional[str] = None,
        entity_id: Optional[UUID] = None,
        from_date: Optional[datetime] = None,
        to_date: Optional[datetime] = None,
        skip: int = 0,
        limit: int = 50,
    ) -> Tuple[List[ActivityLog], int]:
        """Tenant-scoped entries, newest first"""
        query = self.scoped_query(ctx)
        if entity_type:
            query = query.where(func.lower(ActivityLog.entity_type) == entity_type.lower())
        if entity_id:
            query = query.where(ActivityLog.entity_id == entity_id)
        if from_date:
            query = query.where(ActivityLog.created_at >= from_date)
        if to_date:
            query = query.where(ActivityLog.created_at <= to_date)

        total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar() or 0

        query = query.order_by(ActivityLog.created_at.desc()).offset(skip).limit(limit)
        result = await db.execute(query)
        return list(result.scalars().all()), total

    async def update(self, db: AsyncSession, ctx: CurrentCaller, **kwargs) -> ActivityLog:
        raise ImmutableRecordError()

    async def delete(self, db: AsyncSession, ctx: CurrentCaller, *, id: Union[UUID, str], commit: bool = True):
        raise ImmutableRecordError()

    async def remove(self, db: AsyncSession, ctx: CurrentCaller, db_obj: ActivityLog, *, commit: bool = True):
        raise ImmutableRecordError()


activity_log_repository = ActivityLogRepository(ActivityLog)
