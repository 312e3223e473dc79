"""
User Schemas
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import Field, field_validator

from taskhub.schemas.base import (
    AuditedResponseSchema,
    BaseCreateSchema,
    BaseSchema,
    BaseUpdateSchema,
    reject_null,
    validate_email,
    validate_non_empty_string,
    validate_password_strength,
)
from taskhub.schemas.role import RoleSummary


class UserCreate(BaseCreateSchema):
    """New user in the caller's tenant"""
    email: str = Field(..., max_length=254)
    password: str = Field(..., min_length=8, max_length=128)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)

    @field_validator('email')
    @classmethod
    def validate_email_format(cls, v):
        return validate_email(v)

    @field_validator('first_name', 'last_name')
    @classmethod
    def validate_names(cls, v):
        return validate_non_empty_string(v)

    @field_validator('password')
    @classmethod
    def validate_password(cls, v):
        return validate_password_strength(v)


class UserUpdate(BaseUpdateSchema):
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    is_active: Optional[bool] = None
    expected_version: Optional[int] = Field(
        None, ge=1, description="Version last read by the client; a mismatch is a conflict"
    )

    @field_validator('first_name', 'last_name')
    @classmethod
    def validate_names(cls, v):
        return validate_non_empty_string(v)

    @field_validator('is_active')
    @classmethod
    def validate_is_active(cls, v):
        return reject_null(v)


class AssignRolesRequest(BaseSchema):
    """Full replacement of a user's roles"""
    role_ids: List[UUID] = Field(..., description="Every role the user should hold")


class UserResponse(AuditedResponseSchema):
    tenant_id: UUID
    email: str
    first_name: str
    last_name: str
    is_active: bool
    last_login_at: Optional[datetime] = None


class UserDetailResponse(UserResponse):
    roles: List[RoleSummary] = Field(default_factory=list)
