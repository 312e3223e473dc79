"""User management endpoints."""

from __future__ import annotations

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.core.context import CurrentCaller
from taskhub.core.database import get_db
from taskhub.core.deps import require_permissions
from taskhub.schemas.base import PaginatedResponse
from taskhub.schemas.user import AssignRolesRequest, UserCreate, UserDetailResponse, UserResponse, UserUpdate
from taskhub.services.user import user_service

router = APIRouter()


@router.get("/", response_model=PaginatedResponse)
async def list_users(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=20, ge=1, le=100),
    caller: CurrentCaller = Depends(require_permissions("users.view")),
    db: AsyncSession = Depends(get_db)
) -> Any:
    """List the tenant's users, newest first."""
    items, total = await user_service.list_users(db, caller, skip=skip, limit=limit)
    return PaginatedResponse.create(items=items, total=total, skip=skip, limit=limit)


@router.post("/", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    body: UserCreate,
    caller: CurrentCaller = Depends(require_permissions("users.create")),
    db: AsyncSession = Depends(get_db)
) -> Any:
    """Create a user in the caller's tenant; roles are assigned separately."""
    return await user_service.create_user(db, caller, body)


@router.get("/{user_id}", response_model=UserDetailResponse)
async def get_user(
    user_id: UUID,
    caller: CurrentCaller = Depends(require_permissions("users.view")),
    db: AsyncSession = Depends(get_db)
) -> Any:
    """Get user detail by ID."""
    return await user_service.get_user(db, caller, user_id)


@router.put("/{user_id}", response_model=UserDetailResponse)
async def update_user(
    user_id: UUID,
    body: UserUpdate,
    caller: CurrentCaller = Depends(require_permissions("users.edit")),
    db: AsyncSession = Depends(get_db)
) -> Any:
    """Update a user's names or active flag."""
    return await user_service.update_user(db, caller, user_id, body)


@router.put("/{user_id}/roles", response_model=UserDetailResponse)
async def assign_roles(
    user_id: UUID,
    body: AssignRolesRequest,
    caller: CurrentCaller = Depends(require_permissions("users.edit")),
    db: AsyncSession = Depends(get_db)
) -> Any:
    """Replace the user's roles."""
    return await user_service.assign_roles(db, caller, user_id, body.role_ids)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: UUID,
    caller: CurrentCaller = Depends(require_permissions("users.delete")),
    db: AsyncSession = Depends(get_db)
) -> Response:
    """Soft delete a user."""
    await user_service.delete_user(db, caller, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
