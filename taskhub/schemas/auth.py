"""
Authentication Schemas
Pydantic models for authentication requests and responses
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import Field, field_validator

from taskhub.schemas.base import (
    BaseSchema,
    validate_email,
    validate_non_empty_string,
    validate_password_strength,
)


class LoginRequest(BaseSchema):
    """Login request schema"""
    email: str = Field(..., max_length=254, description="User email address")
    password: str = Field(..., min_length=1, description="User password")

    @field_validator('email')
    @classmethod
    def validate_email_format(cls, v):
        return validate_email(v)


class RegisterRequest(BaseSchema):
    """Tenant and first user registration"""
    email: str = Field(..., max_length=254, description="User email address")
    password: str = Field(..., min_length=8, max_length=128, description="User password")
    first_name: str = Field(..., min_length=1, max_length=100, description="First name")
    last_name: str = Field(..., min_length=1, max_length=100, description="Last name")
    tenant_name: str = Field(..., min_length=1, max_length=200, description="Organization name")

    @field_validator('email')
    @classmethod
    def validate_email_format(cls, v):
        return validate_email(v)

    @field_validator('first_name', 'last_name', 'tenant_name')
    @classmethod
    def validate_names(cls, v):
        return validate_non_empty_string(v)

    @field_validator('password')
    @classmethod
    def validate_password(cls, v):
        """Validate password strength"""
        return validate_password_strength(v)


class RefreshTokenRequest(BaseSchema):
    """Refresh token request schema"""
    refresh_token: str = Field(..., min_length=1, description="Refresh token")


class AuthUser(BaseSchema):
    id: UUID
    email: str
    first_name: str
    last_name: str
    tenant_id: UUID


class TokenResponse(BaseSchema):
    """Token response schema"""
    access_token: str = Field(..., description="JWT access token")
    refresh_token: str = Field(..., description="Opaque refresh token")
    token_type: str = Field("bearer", description="Token type")
    expires_at: datetime = Field(..., description="Access token expiry")
    user: AuthUser


class CallerResponse(BaseSchema):
    """Identity carried by the presented access token"""
    user_id: UUID
    tenant_id: UUID
    email: Optional[str] = None
    permissions: List[str] = Field(default_factory=list)
