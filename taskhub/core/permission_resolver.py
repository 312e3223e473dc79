"""
Permission resolver.

Computes a user's effective permission codes from current role
assignments. Consulted at credential issuance only; requests read
permissions from the verified credential.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from taskhub.models.role import Permission, Role, RolePermission, UserRole

logger = structlog.get_logger()


class PermissionResolver(ABC):
    @abstractmethod
    async def effective_permissions(self, db: AsyncSession, user_id: UUID) -> set[str]:
        raise NotImplementedError


class DBPermissionResolver(PermissionResolver):
    async def effective_permissions(self, db: AsyncSession, user_id: UUID) -> set[str]:
        """
        Union of permission codes over every role the user holds

        Tombstoned roles and catalog entries contribute nothing. No
        roles yields an empty set.
        """
        query = (
            select(Permission.code)
            .distinct()
            .join(RolePermission, RolePermission.permission_id == Permission.id)
            .join(Role, Role.id == RolePermission.role_id)
            .join(UserRole, UserRole.role_id == Role.id)
            .where(
                UserRole.user_id == user_id,
                Role.is_deleted == False,  # noqa: E712
                Permission.is_deleted == False,  # noqa: E712
            )
        )
        result = await db.execute(query)
        permissions = set(result.scalars().all())

        logger.debug("Effective permissions resolved", user_id=str(user_id), count=len(permissions))
        return permissions


permission_resolver = DBPermissionResolver()
