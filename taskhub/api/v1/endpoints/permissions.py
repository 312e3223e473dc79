"""Permission catalog endpoints."""

from typing import Any, List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.core.context import CurrentCaller
from taskhub.core.database import get_db
from taskhub.core.deps import require_permissions
from taskhub.schemas.permission import PermissionResponse
from taskhub.services.permission import permission_service

router = APIRouter()


@router.get("/", response_model=List[PermissionResponse])
async def list_permissions(
    caller: CurrentCaller = Depends(require_permissions("permissions.view")),
    db: AsyncSession = Depends(get_db)
) -> Any:
    """Full catalog ordered by code."""
    return await permission_service.list_catalog(db, caller)
