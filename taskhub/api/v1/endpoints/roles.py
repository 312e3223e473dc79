"""Role management endpoints."""

from __future__ import annotations

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.core.context import CurrentCaller
from taskhub.core.database import get_db
from taskhub.core.deps import require_permissions
from taskhub.schemas.base import PaginatedResponse
from taskhub.schemas.role import (
    AssignPermissionsRequest,
    RoleCreate,
    RoleDetailResponse,
    RoleResponse,
    RoleUpdate,
)
from taskhub.services.role import role_service

router = APIRouter()


@router.get("/", response_model=PaginatedResponse)
async def list_roles(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
    caller: CurrentCaller = Depends(require_permissions("roles.view")),
    db: AsyncSession = Depends(get_db)
) -> Any:
    """System roles followed by the tenant's own roles."""
    items, total = await role_service.list_roles(db, caller, skip=skip, limit=limit)
    return PaginatedResponse.create(items=items, total=total, skip=skip, limit=limit)


@router.get("/{role_id}", response_model=RoleDetailResponse)
async def get_role(
    role_id: UUID,
    caller: CurrentCaller = Depends(require_permissions("roles.view")),
    db: AsyncSession = Depends(get_db)
) -> Any:
    return await role_service.get_role(db, caller, role_id)


@router.post("/", response_model=RoleResponse, status_code=status.HTTP_201_CREATED)
async def create_role(
    role_in: RoleCreate,
    caller: CurrentCaller = Depends(require_permissions("roles.create")),
    db: AsyncSession = Depends(get_db)
) -> Any:
    return await role_service.create_role(db, caller, role_in)


@router.put("/{role_id}", response_model=RoleResponse)
async def update_role(
    role_id: UUID,
    role_in: RoleUpdate,
    caller: CurrentCaller = Depends(require_permissions("roles.edit")),
    db: AsyncSession = Depends(get_db)
) -> Any:
    return await role_service.update_role(db, caller, role_id, role_in)


@router.delete("/{role_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_role(
    role_id: UUID,
    caller: CurrentCaller = Depends(require_permissions("roles.delete")),
    db: AsyncSession = Depends(get_db)
) -> Response:
    """Soft delete a tenant role with no assigned users."""
    await role_service.delete_role(db, caller, role_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/{role_id}/permissions", response_model=RoleDetailResponse)
async def assign_permissions(
    role_id: UUID,
    body: AssignPermissionsRequest,
    caller: CurrentCaller = Depends(require_permissions("roles.edit")),
    db: AsyncSession = Depends(get_db)
) -> Any:
    """Replace the role's permission set."""
    return await role_service.assign_permissions(db, caller, role_id, body.permission_ids)
