"""
User Repository
Database operations for user management.

Scoped reads go through CRUDBase. The two lookups marked "for
authentication" run before any caller exists and so bypass the tenant
filter; they still exclude soft-deleted users explicitly.
"""

from __future__ import annotations

from typing import Iterable, Optional
from uuid import UUID

import structlog
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.models.role import Role, UserRole
from taskhub.models.user import User
from taskhub.repositories.base import CRUDBase
from taskhub.schemas.user import UserCreate, UserUpdate

logger = structlog.get_logger()


def normalize_email(email: str) -> str:
    return email.lower().strip()


class UserRepository(CRUDBase[User, UserCreate, UserUpdate]):
    async def get_by_email_for_authentication(self, db: AsyncSession, email: str) -> Optional[User]:
        query = select(User).where(
            User.email == normalize_email(email),
            User.is_deleted == False,  # noqa: E712
        )
        result = await db.execute(query)
        return result.scalar_one_or_none()

    async def get_by_refresh_token_hash(self, db: AsyncSession, token_hash: str) -> Optional[User]:
        query = select(User).where(
            User.refresh_token_hash == token_hash,
            User.is_deleted == False,  # noqa: E712
        )
        result = await db.execute(query)
        return result.scalar_one_or_none()

    async def email_registered(self, db: AsyncSession, email: str) -> bool:
        """Global uniqueness check; tombstoned users still hold their email"""
        query = select(User.id).where(User.email == normalize_email(email)).limit(1)
        result = await db.execute(query)
        return result.scalar_one_or_none() is not None

    async def get_roles(self, db: AsyncSession, user_id: UUID) -> list[Role]:
        query = (
            select(Role)
            .join(UserRole, UserRole.role_id == Role.id)
            .where(UserRole.user_id == user_id, Role.is_deleted == False)  # noqa: E712
            .order_by(Role.name)
        )
        result = await db.execute(query)
        return list(result.scalars().all())

    async def replace_roles(self, db: AsyncSession, user_id: UUID, role_ids: Iterable[UUID]) -> None:
        """Replace the full role set; caller owns the transaction"""
        await db.execute(delete(UserRole).where(UserRole.user_id == user_id))
        db.add_all([UserRole(user_id=user_id, role_id=rid) for rid in set(role_ids)])
        await db.flush()

        logger.debug("User roles replaced", user_id=str(user_id))


user_repository = UserRepository(User)
