"""
Activity Log Service
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.core.context import CurrentCaller
from taskhub.core.exceptions import ValidationError
from taskhub.repositories.activity_log import activity_log_repository
from taskhub.schemas.activity_log import ENTITY_TYPES, ActivityLogResponse


class ActivityLogService:
    async def list_activity(
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
    ) -> tuple[list[ActivityLogResponse], int]:
        if entity_type and entity_type.lower() not in {t.lower() for t in ENTITY_TYPES}:
            raise ValidationError(f"Entity type must be one of: {', '.join(ENTITY_TYPES)}")
        if from_date and to_date and from_date > to_date:
            raise ValidationError("from_date must be before or equal to to_date.")

        entries, total = await activity_log_repository.list_entries(
            db,
            ctx,
            entity_type=entity_type,
            entity_id=entity_id,
            from_date=from_date,
            to_date=to_date,
            skip=skip,
            limit=limit,
        )
        return [ActivityLogResponse.model_validate(entry) for entry in entries], total


activity_log_service = ActivityLogService()
