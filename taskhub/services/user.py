"""
User Service
Tenant user management: listing, creation, profile updates, role
assignment and removal.
"""

from __future__ import annotations

from typing import Iterable
from uuid import UUID

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.core.context import CurrentCaller
from taskhub.core.database import transaction
from taskhub.core.exceptions import (
    CannotDeleteSelfError,
    EmailExistsError,
    NotFoundError,
    RoleNotFoundError,
    UnauthenticatedError,
)
from taskhub.core.security import get_password_hash
from taskhub.models.user import User
from taskhub.repositories.activity_log import activity_log_repository
from taskhub.repositories.role import role_repository
from taskhub.repositories.user import normalize_email, user_repository
from taskhub.schemas.role import RoleSummary
from taskhub.schemas.user import UserCreate, UserDetailResponse, UserResponse, UserUpdate

PROFILE_FIELDS = ("first_name", "last_name", "is_active")

logger = structlog.get_logger()

ENTITY_TYPE = "User"


class UserService:
    async def _get_user(self, db: AsyncSession, ctx: CurrentCaller, user_id: UUID) -> User:
        user = await user_repository.get(db, ctx, user_id)
        if not user:
            raise NotFoundError("User not found.")
        return user

    async def list_users(
        self,
        db: AsyncSession,
        ctx: CurrentCaller,
        *,
        skip: int = 0,
        limit: int = 50,
    ) -> tuple[list[UserResponse], int]:
        users = await user_repository.get_multi(db, ctx, skip=skip, limit=limit)
        total = await user_repository.count(db, ctx)
        return [UserResponse.model_validate(user) for user in users], total

    async def get_user(self, db: AsyncSession, ctx: CurrentCaller, user_id: UUID) -> UserDetailResponse:
        user = await self._get_user(db, ctx, user_id)
        roles = await user_repository.get_roles(db, user.id)

        detail = UserDetailResponse.model_validate(user)
        detail.roles = [RoleSummary.model_validate(role) for role in roles]
        return detail

    async def create_user(self, db: AsyncSession, ctx: CurrentCaller, data: UserCreate) -> UserResponse:
        """
        Create an active user in the caller's tenant, holding no roles

        Emails are unique across all tenants, including deleted users.
        """
        email = normalize_email(data.email)
        logger.info("Creating user", tenant_id=str(ctx.tenant_id))

        if not ctx.has_tenant:
            logger.warning("User creation without tenant context")
            raise UnauthenticatedError()

        if await user_repository.email_registered(db, email):
            logger.warning("User creation with existing email", tenant_id=str(ctx.tenant_id))
            raise EmailExistsError()

        user = User(
            email=email,
            password_hash=get_password_hash(data.password),
            first_name=data.first_name,
            last_name=data.last_name,
            is_active=True,
        )
        try:
            async with transaction(db):
                await user_repository.add(db, ctx, user, commit=False)
                await activity_log_repository.record(
                    db,
                    ctx,
                    action="Created",
                    entity_type=ENTITY_TYPE,
                    entity_id=user.id,
                    new_values={"email": email, "first_name": data.first_name, "last_name": data.last_name},
                )
        except IntegrityError:
            logger.warning("User creation conflicted on unique constraint", tenant_id=str(ctx.tenant_id))
            raise EmailExistsError() from None

        logger.info("User created", user_id=str(user.id), tenant_id=str(user.tenant_id))
        return UserResponse.model_validate(user)

    async def update_user(
        self,
        db: AsyncSession,
        ctx: CurrentCaller,
        user_id: UUID,
        data: UserUpdate,
    ) -> UserDetailResponse:
        """Change names or the active flag; email and password are not editable here"""
        user = await self._get_user(db, ctx, user_id)
        changes = data.model_dump(exclude_unset=True)
        expected_version = changes.pop("expected_version", None)

        old_values = {field: getattr(user, field) for field in PROFILE_FIELDS if field in changes}

        async with transaction(db):
            await user_repository.update(
                db,
                ctx,
                db_obj=user,
                obj_in=changes,
                expected_version=expected_version,
                commit=False,
            )
            await activity_log_repository.record(
                db,
                ctx,
                action="Updated",
                entity_type=ENTITY_TYPE,
                entity_id=user.id,
                old_values=old_values,
                new_values=changes,
            )

        logger.info("User updated", user_id=str(user.id), fields=sorted(changes))
        return await self.get_user(db, ctx, user.id)

    async def assign_roles(
        self,
        db: AsyncSession,
        ctx: CurrentCaller,
        user_id: UUID,
        role_ids: Iterable[UUID],
    ) -> UserDetailResponse:
        """
        Replace the user's full role set

        Roles must be visible to the caller (system roles or the
        caller's own tenant roles). One unknown id fails the whole call.
        Takes effect at the user's next credential issuance.
        """
        requested = set(role_ids)
        user = await self._get_user(db, ctx, user_id)

        roles = await role_repository.get_visible_by_ids(db, ctx, requested)
        missing = requested - {role.id for role in roles}
        if missing:
            missing_id = sorted(str(rid) for rid in missing)[0]
            logger.warning("Role not found for assignment", user_id=str(user.id), role_id=missing_id)
            raise RoleNotFoundError(f"Role with ID {missing_id} not found.")

        previous = await user_repository.get_roles(db, user.id)

        async with transaction(db):
            await user_repository.replace_roles(db, user.id, requested)
            await activity_log_repository.record(
                db,
                ctx,
                action="RolesAssigned",
                entity_type=ENTITY_TYPE,
                entity_id=user.id,
                old_values={"roles": sorted(role.name for role in previous)},
                new_values={"roles": sorted(role.name for role in roles)},
            )

        logger.info("User roles assigned", user_id=str(user.id), role_count=len(requested))
        return await self.get_user(db, ctx, user.id)

    async def delete_user(self, db: AsyncSession, ctx: CurrentCaller, user_id: UUID) -> None:
        if user_id == ctx.user_id:
            raise CannotDeleteSelfError()

        user = await self._get_user(db, ctx, user_id)

        async with transaction(db):
            user.clear_refresh_token()
            await user_repository.remove(db, ctx, user, commit=False)
            await activity_log_repository.record(
                db,
                ctx,
                action="Deleted",
                entity_type=ENTITY_TYPE,
                entity_id=user.id,
                old_values={"email": user.email},
            )

        logger.info("User deleted", user_id=str(user.id), deleted_by=str(ctx.user_id))


user_service = UserService()
