"""
Project Schemas
Request/response models for project management
"""

from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import Field, field_validator

from taskhub.schemas.base import (
    AuditedResponseSchema,
    BaseCreateSchema,
    BaseUpdateSchema,
    reject_null,
    validate_non_empty_string,
)


class ProjectStatusEnum(str, Enum):
    """Project lifecycle status"""
    ACTIVE = "active"
    ON_HOLD = "on_hold"
    COMPLETED = "completed"
    ARCHIVED = "archived"


# ==================== Request Schemas ====================


class ProjectCreate(BaseCreateSchema):
    """Schema for creating a project"""
    name: str = Field(..., min_length=2, max_length=200, description="Project name")
    description: Optional[str] = Field(None, max_length=2000, description="Project description")
    status: ProjectStatusEnum = Field(ProjectStatusEnum.ACTIVE, description="Project status")
    owner_id: Optional[UUID] = Field(None, description="Owning user")

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Project name cannot be empty")
        return v


class ProjectUpdate(BaseUpdateSchema):
    """Schema for updating a project"""
    name: Optional[str] = Field(None, min_length=2, max_length=200, description="Project name")
    description: Optional[str] = Field(None, max_length=2000, description="Project description")
    status: Optional[ProjectStatusEnum] = Field(None, description="Project status")
    owner_id: Optional[UUID] = Field(None, description="Owning user")
    expected_version: Optional[int] = Field(
        None, ge=1, description="Version last read by the client; a mismatch is a conflict"
    )

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: Optional[str]) -> str:
        return validate_non_empty_string(v)

    @field_validator('status')
    @classmethod
    def validate_status(cls, v):
        return reject_null(v)


# ==================== Response Schemas ====================


class ProjectResponse(AuditedResponseSchema):
    """Project response"""
    tenant_id: UUID
    name: str
    description: Optional[str] = None
    status: str
    owner_id: Optional[UUID] = None
    version: int
