"""
Project Repository
Database operations for project management
"""

from taskhub.models.project import Project
from taskhub.repositories.base import CRUDBase
from taskhub.schemas.project import ProjectCreate, ProjectUpdate


class ProjectRepository(CRUDBase[Project, ProjectCreate, ProjectUpdate]):
    """Repository for project database operations"""


project_repository = ProjectRepository(Project)
