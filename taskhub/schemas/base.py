"""
Base Pydantic Schemas
Shared configuration, audit fields, pagination envelope and input validators
"""

import re
from datetime import datetime
from typing import Any, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class BaseSchema(BaseModel):
    """Base schema with common configuration"""
    model_config = ConfigDict(
        from_attributes=True,
        validate_assignment=True,
        str_strip_whitespace=True,
        use_enum_values=True
    )


class BaseCreateSchema(BaseSchema):
    """
    Client input for new records

    Audit and ownership fields are never declared here; the repository
    layer stamps them.
    """


class BaseUpdateSchema(BaseSchema):
    """Partial update; only fields the client sent are applied"""


class AuditedResponseSchema(BaseSchema):
    """Identifier plus audit stamps shared by every stored resource"""
    id: UUID = Field(..., description="Unique identifier")
    created_at: datetime = Field(..., description="Creation timestamp")
    created_by: Optional[UUID] = Field(None, description="Creating user")
    updated_at: Optional[datetime] = Field(None, description="Last update timestamp")
    updated_by: Optional[UUID] = Field(None, description="Last updating user")


class PaginatedResponse(BaseModel):
    """One page of a scoped listing"""
    items: List[Any] = Field(..., description="Records on this page")
    total: int = Field(..., description="Visible records across all pages")
    skip: int = Field(..., description="Offset of the first record")
    limit: int = Field(..., description="Page size requested")
    has_next: bool = Field(..., description="More records follow this page")
    has_prev: bool = Field(..., description="Records precede this page")

    @classmethod
    def create(cls, items: List[Any], total: int, skip: int, limit: int) -> "PaginatedResponse":
        return cls(
            items=items,
            total=total,
            skip=skip,
            limit=limit,
            has_next=skip + len(items) < total,
            has_prev=skip > 0,
        )


class SuccessResponse(BaseModel):
    """Success response schema"""
    message: str = Field(..., description="Success message")


EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")


def validate_non_empty_string(v: Any) -> str:
    if not isinstance(v, str) or not v.strip():
        raise ValueError("Value cannot be empty")
    return v.strip()


def validate_email(v: Any) -> str:
    """Syntactic check only; returns the normalized (lowercase) address"""
    if not isinstance(v, str) or not EMAIL_PATTERN.match(v.strip()):
        raise ValueError("Invalid email format")
    return v.strip().lower()


def validate_password_strength(v: str) -> str:
    if not any(c.isupper() for c in v):
        raise ValueError("Password must contain at least one uppercase letter")

    if not any(c.islower() for c in v):
        raise ValueError("Password must contain at least one lowercase letter")

    if not any(c.isdigit() for c in v):
        raise ValueError("Password must contain at least one digit")

    return v


def reject_null(v: Any) -> Any:
    """Partial updates may omit a required column but never send it as null"""
    if v is None:
        raise ValueError("Value cannot be null")
    return v
