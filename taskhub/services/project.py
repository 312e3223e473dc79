"""
Project Service
Business logic for tenant-owned projects
"""

from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from taskhub.core.context import CurrentCaller
from taskhub.core.database import transaction
from taskhub.core.exceptions import NotFoundError
from taskhub.models.project import Project
from taskhub.repositories.activity_log import activity_log_repository
from taskhub.repositories.project import project_repository
from taskhub.schemas.project import ProjectCreate, ProjectUpdate

logger = structlog.get_logger()

ENTITY_TYPE = "Project"


class ProjectService:
    """Service for project management"""

    def __init__(self):
        self.repository = project_repository

    async def get_project(self, db: AsyncSession, ctx: CurrentCaller, project_id: UUID) -> Project:
        project = await self.repository.get(db, ctx, project_id)
        if not project:
            raise NotFoundError("Project not found.")
        return project

    async def list_projects(
        self,
        db: AsyncSession,
        ctx: CurrentCaller,
        *,
        status: Optional[str] = None,
        search: Optional[str] = None,
        skip: int = 0,
        limit: int = 50,
    ) -> Tuple[List[Project], int]:
        filters = {}
        if status:
            filters["status"] = status
        if search:
            filters["name"] = {"like": search}

        projects = await self.repository.get_multi(db, ctx, skip=skip, limit=limit, filters=filters)
        total = await self.repository.count(db, ctx, filters=filters)
        return projects, total

    async def create_project(self, db: AsyncSession, ctx: CurrentCaller, project_in: ProjectCreate) -> Project:
        """Create a project in the caller's tenant"""
        data = project_in.model_dump()
        if data.get("owner_id") is None:
            data["owner_id"] = ctx.user_id

        async with transaction(db):
            project = await self.repository.create(db, ctx, obj_in=data, commit=False)
            await activity_log_repository.record(
                db,
                ctx,
                action="Created",
                entity_type=ENTITY_TYPE,
                entity_id=project.id,
                new_values={"name": project.name, "status": project.status},
            )

        logger.info("Project created", project_id=str(project.id), tenant_id=str(project.tenant_id))
        return project

    async def update_project(
        self,
        db: AsyncSession,
        ctx: CurrentCaller,
        project_id: UUID,
        project_in: ProjectUpdate,
    ) -> Project:
        """
        Update a project

        A supplied expected_version must match the stored version, and a
        concurrent writer that commits first also causes a conflict.
        """
        project = await self.get_project(db, ctx, project_id)
        changes = project_in.model_dump(exclude_unset=True)
        expected_version = changes.pop("expected_version", None)
        old_values = {field: getattr(project, field) for field in changes if hasattr(project, field)}

        async with transaction(db):
            project = await self.repository.update(
                db,
                ctx,
                db_obj=project,
                obj_in=changes,
                expected_version=expected_version,
                commit=False,
            )
            await activity_log_repository.record(
                db,
                ctx,
                action="Updated",
                entity_type=ENTITY_TYPE,
                entity_id=project.id,
                old_values=_jsonable(old_values),
                new_values=_jsonable(changes),
            )

        logger.info("Project updated", project_id=str(project.id), version=project.version)
        return project

    async def delete_project(self, db: AsyncSession, ctx: CurrentCaller, project_id: UUID) -> None:
        project = await self.get_project(db, ctx, project_id)

        async with transaction(db):
            await self.repository.remove(db, ctx, project, commit=False)
            await activity_log_repository.record(
                db,
                ctx,
                action="Deleted",
                entity_type=ENTITY_TYPE,
                entity_id=project.id,
                old_values={"name": project.name},
            )

        logger.info("Project deleted", project_id=str(project.id))


def _jsonable(values: dict) -> dict:
    return {key: str(value) if isinstance(value, UUID) else value for key, value in values.items()}


project_service = ProjectService()
