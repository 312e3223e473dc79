"""Activity log endpoints."""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.core.context import CurrentCaller
from taskhub.core.database import get_db
from taskhub.core.deps import require_permissions
from taskhub.schemas.base import PaginatedResponse
from taskhub.services.activity_log import activity_log_service

router = APIRouter()


@router.get("/", response_model=PaginatedResponse)
async def list_activity_logs(
    entity_type: Optional[str] = Query(default=None),
    entity_id: Optional[UUID] = Query(default=None),
    from_date: Optional[datetime] = Query(default=None),
    to_date: Optional[datetime] = Query(default=None),
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
    caller: CurrentCaller = Depends(require_permissions("activity_logs.view")),
    db: AsyncSession = Depends(get_db)
) -> Any:
    """Tenant activity, newest first."""
    items, total = await activity_log_service.list_activity(
        db,
        caller,
        entity_type=entity_type,
        entity_id=entity_id,
        from_date=from_date,
        to_date=to_date,
        skip=skip,
        limit=limit,
    )
    return PaginatedResponse.create(items=items, total=total, skip=skip, limit=limit)
