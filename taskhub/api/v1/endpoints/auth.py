"""
Authentication Endpoints
Registration, login, refresh rotation and logout
"""

from typing import Any

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from taskhub.core.context import CurrentCaller
from taskhub.core.database import get_db
from taskhub.core.deps import require_permissions
from taskhub.core.policies import AUTHENTICATED
from taskhub.schemas.auth import (
    CallerResponse,
    LoginRequest,
    RefreshTokenRequest,
    RegisterRequest,
    TokenResponse,
)
from taskhub.schemas.base import SuccessResponse
from taskhub.services.auth import auth_service

logger = structlog.get_logger()
router = APIRouter()


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: RegisterRequest,
    db: AsyncSession = Depends(get_db)
) -> Any:
    """Create a tenant and its first (Admin) user, returning credentials"""
    return await auth_service.register(db, user_data)


@router.post("/login", response_model=TokenResponse)
async def login(
    login_data: LoginRequest,
    db: AsyncSession = Depends(get_db)
) -> Any:
    """
    Authenticate with email and password

    Unknown email and wrong password produce the same response.
    """
    return await auth_service.login(db, login_data)


@router.post("/refresh", response_model=TokenResponse)
async def refresh_token(
    refresh_data: RefreshTokenRequest,
    db: AsyncSession = Depends(get_db)
) -> Any:
    """Exchange a refresh token for a new pair; the presented token stops working"""
    return await auth_service.refresh(db, refresh_data.refresh_token)


@router.post("/logout", response_model=SuccessResponse)
async def logout(
    caller: CurrentCaller = Depends(require_permissions(AUTHENTICATED)),
    db: AsyncSession = Depends(get_db)
) -> Any:
    """Invalidate the caller's refresh token"""
    await auth_service.logout(db, caller)
    return SuccessResponse(message="Successfully logged out")


@router.get("/me", response_model=CallerResponse)
async def get_me(
    caller: CurrentCaller = Depends(require_permissions(AUTHENTICATED)),
) -> Any:
    """Identity and permissions carried by the presented access token"""
    return CallerResponse(
        user_id=caller.user_id,
        tenant_id=caller.tenant_id,
        email=caller.email,
        permissions=sorted(caller.permissions),
    )
