"""
Project Endpoints
CRUD for tenant-owned projects
"""

from typing import Any, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.core.context import CurrentCaller
from taskhub.core.database import get_db
from taskhub.core.deps import require_permissions
from taskhub.schemas.base import PaginatedResponse
from taskhub.schemas.project import ProjectCreate, ProjectResponse, ProjectUpdate
from taskhub.services.project import project_service

router = APIRouter()


@router.get("/", response_model=PaginatedResponse)
async def list_projects(
    status_filter: Optional[str] = Query(default=None, alias="status"),
    search: Optional[str] = Query(default=None, max_length=100),
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
    caller: CurrentCaller = Depends(require_permissions("projects.view")),
    db: AsyncSession = Depends(get_db)
) -> Any:
    projects, total = await project_service.list_projects(
        db, caller, status=status_filter, search=search, skip=skip, limit=limit
    )
    items = [ProjectResponse.model_validate(p) for p in projects]
    return PaginatedResponse.create(items=items, total=total, skip=skip, limit=limit)


@router.post("/", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
async def create_project(
    project_in: ProjectCreate,
    caller: CurrentCaller = Depends(require_permissions("projects.create")),
    db: AsyncSession = Depends(get_db)
) -> Any:
    return await project_service.create_project(db, caller, project_in)


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(
    project_id: UUID,
    caller: CurrentCaller = Depends(require_permissions("projects.view")),
    db: AsyncSession = Depends(get_db)
) -> Any:
    return await project_service.get_project(db, caller, project_id)


@router.put("/{project_id}", response_model=ProjectResponse)
async def update_project(
    project_id: UUID,
    project_in: ProjectUpdate,
    caller: CurrentCaller = Depends(require_permissions("projects.edit")),
    db: AsyncSession = Depends(get_db)
) -> Any:
    """Update a project; send expected_version to detect concurrent edits."""
    return await project_service.update_project(db, caller, project_id, project_in)


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_project(
    project_id: UUID,
    caller: CurrentCaller = Depends(require_permissions("projects.delete")),
    db: AsyncSession = Depends(get_db)
) -> Response:
    await project_service.delete_project(db, caller, project_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
