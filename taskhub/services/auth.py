"""
Authentication Service
Registration, login, refresh rotation and logout.

These flows are the only callers of the tenant-bypass user lookups:
before a credential exists there is no tenant to scope by.
"""

from __future__ import annotations

import re
import secrets
from typing import Iterable

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.core.context import CurrentCaller
from taskhub.core.database import transaction
from taskhub.core.exceptions import (
    AccountInactiveError,
    ConcurrencyConflictError,
    EmailExistsError,
    InvalidCredentialsError,
    InvalidTokenError,
    TaskHubError,
)
from taskhub.core.permission_resolver import PermissionResolver, permission_resolver
from taskhub.core.rbac import ADMIN_ROLE
from taskhub.core.security import (
    CredentialCodec,
    IssuedCredential,
    credential_codec,
    dummy_password_hash,
    get_password_hash,
    hash_refresh_token,
    verify_password,
)
from taskhub.models.tenant import Tenant
from taskhub.models.user import User
from taskhub.repositories.role import role_repository
from taskhub.repositories.tenant import tenant_repository
from taskhub.repositories.user import normalize_email, user_repository
from taskhub.schemas.auth import AuthUser, LoginRequest, RegisterRequest, TokenResponse

logger = structlog.get_logger()


def generate_slug(name: str) -> str:
    """URL-safe tenant slug with a random suffix"""
    base = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-") or "tenant"
    return f"{base[:80]}-{secrets.token_hex(4)}"


class AuthService:
    def __init__(
        self,
        codec: CredentialCodec = credential_codec,
        resolver: PermissionResolver = permission_resolver,
    ):
        self.codec = codec
        self.resolver = resolver

    def _token_response(self, user: User, issued: IssuedCredential) -> TokenResponse:
        return TokenResponse(
            access_token=issued.access_token,
            refresh_token=issued.refresh_token,
            token_type="bearer",
            expires_at=issued.expires_at,
            user=AuthUser.model_validate(user),
        )

    async def _issue(
        self,
        db: AsyncSession,
        user: User,
        *,
        record_login: bool = False,
    ) -> IssuedCredential:
        """
        Issue a credential pair and store the new refresh digest

        Permissions are resolved fresh from current role assignments.
        The write goes through the scoped save path as the user, inside
        the caller's transaction.
        """
        permissions: Iterable[str] = await self.resolver.effective_permissions(db, user.id)
        issued = self.codec.issue(user, permissions)

        changes = {
            "refresh_token_hash": issued.refresh_token_hash,
            "refresh_token_expires_at": issued.refresh_token_expires_at,
        }
        if record_login:
            changes["last_login_at"] = self.codec.now()

        await user_repository.update(
            db,
            CurrentCaller.for_user(user, permissions),
            db_obj=user,
            obj_in=changes,
            commit=False,
        )
        return issued

    async def register(self, db: AsyncSession, data: RegisterRequest) -> TokenResponse:
        """
        Create a tenant with its first user, holding the Admin system role

        Tenant, user, role assignment and refresh digest are written in
        one transaction.
        """
        email = normalize_email(data.email)
        if await user_repository.email_registered(db, email):
            logger.warning("Registration with existing email")
            raise EmailExistsError()

        admin_role = await role_repository.get_system_role(db, ADMIN_ROLE)
        if admin_role is None:
            logger.error("System roles missing; run the authorization bootstrap")
            raise TaskHubError("Registration is temporarily unavailable.")

        try:
            async with transaction(db):
                tenant = Tenant(name=data.tenant_name, slug=generate_slug(data.tenant_name))
                await tenant_repository.add(db, CurrentCaller.system(), tenant, commit=False)

                tenant_ctx = CurrentCaller(user_id=None, tenant_id=tenant.id)
                user = User(
                    email=email,
                    password_hash=get_password_hash(data.password),
                    first_name=data.first_name,
                    last_name=data.last_name,
                    is_active=True,
                )
                await user_repository.add(db, tenant_ctx, user, commit=False)
                await user_repository.replace_roles(db, user.id, [admin_role.id])

                issued = await self._issue(db, user, record_login=True)
        except IntegrityError:
            # Lost a race with a concurrent registration of the same email
            logger.warning("Registration conflicted on unique constraint")
            raise EmailExistsError() from None

        logger.info("Tenant registered", tenant_id=str(tenant.id), user_id=str(user.id))
        return self._token_response(user, issued)

    async def login(self, db: AsyncSession, data: LoginRequest) -> TokenResponse:
        user = await user_repository.get_by_email_for_authentication(db, data.email)

        if user is None:
            # Same hashing cost as a real check so timing does not reveal the email
            verify_password(data.password, dummy_password_hash())
            logger.warning("Login failed", reason="unknown_email")
            raise InvalidCredentialsError()

        if not verify_password(data.password, user.password_hash):
            logger.warning("Login failed", reason="bad_password", user_id=str(user.id))
            raise InvalidCredentialsError()

        if not user.is_active:
            logger.warning("Login failed", reason="inactive", user_id=str(user.id))
            raise AccountInactiveError()

        async with transaction(db):
            issued = await self._issue(db, user, record_login=True)

        logger.info("User logged in", user_id=str(user.id), tenant_id=str(user.tenant_id))
        return self._token_response(user, issued)

    async def refresh(self, db: AsyncSession, refresh_token: str) -> TokenResponse:
        """
        Exchange a refresh value for a new pair

        Single use: the stored digest is overwritten, so presenting the
        same value again fails. Every failure is the same InvalidTokenError.
        """
        user = await user_repository.get_by_refresh_token_hash(db, hash_refresh_token(refresh_token))

        if user is None:
            logger.warning("Refresh rejected", reason="unknown_token")
            raise InvalidTokenError()

        # Rollback expires the instance; later logging must not touch it
        user_id = str(user.id)
        if not user.is_active:
            logger.warning("Refresh rejected", reason="inactive", user_id=user_id)
            raise InvalidTokenError()
        if user.refresh_token_expires_at is None or user.refresh_token_expires_at <= self.codec.now():
            logger.warning("Refresh rejected", reason="expired", user_id=user_id)
            raise InvalidTokenError()

        try:
            async with transaction(db):
                issued = await self._issue(db, user)
        except ConcurrencyConflictError:
            # Another request rotated this value first
            logger.warning("Refresh rejected", reason="concurrent_rotation", user_id=user_id)
            raise InvalidTokenError() from None

        logger.info("Credential refreshed", user_id=user_id)
        return self._token_response(user, issued)

    async def logout(self, db: AsyncSession, ctx: CurrentCaller) -> None:
        """Invalidate the stored refresh value; access tokens expire on their own"""
        user = await user_repository.get(db, ctx, ctx.user_id)
        if user is None:
            return

        async with transaction(db):
            await user_repository.update(
                db,
                ctx,
                db_obj=user,
                obj_in={"refresh_token_hash": None, "refresh_token_expires_at": None},
                commit=False,
            )

        logger.info("User logged out", user_id=str(user.id))


auth_service = AuthService()
