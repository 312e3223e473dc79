"""
SQLAlchemy Models Package
TaskHub Database Models
"""

from taskhub.models.tenant import Tenant
from taskhub.models.user import User
from taskhub.models.role import Role, Permission, RolePermission, UserRole
from taskhub.models.project import Project
from taskhub.models.activity_log import ActivityLog

__all__ = [
    "Tenant",
    "User",
    "Role",
    "Permission",
    "RolePermission",
    "UserRole",
    "Project",
    "ActivityLog",
]
