"""
Role Schemas
Request/response models for role management
"""

from typing import List, Optional
from uuid import UUID

from pydantic import Field, field_validator

from taskhub.schemas.base import (
    AuditedResponseSchema,
    BaseCreateSchema,
    BaseSchema,
    BaseUpdateSchema,
    validate_non_empty_string,
)
from taskhub.schemas.permission import PermissionResponse


class RoleCreate(BaseCreateSchema):
    """Schema for creating a tenant role"""
    name: str = Field(..., min_length=1, max_length=100, description="Role name, unique within the tenant")
    description: Optional[str] = Field(None, max_length=500, description="Role description")

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        return validate_non_empty_string(v)


class RoleUpdate(BaseUpdateSchema):
    """Schema for updating a tenant role"""
    name: Optional[str] = Field(None, min_length=1, max_length=100, description="Role name")
    description: Optional[str] = Field(None, max_length=500, description="Role description")

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: Optional[str]) -> str:
        # Omitted keeps the current name; an explicit null is rejected
        return validate_non_empty_string(v)


class AssignPermissionsRequest(BaseSchema):
    """Full replacement of a role's permission set"""
    permission_ids: List[UUID] = Field(..., description="Every permission the role should grant")


class RoleSummary(BaseSchema):
    id: UUID
    name: str
    is_system_role: bool


class RoleResponse(AuditedResponseSchema):
    tenant_id: Optional[UUID] = None
    name: str
    description: Optional[str] = None
    is_system_role: bool
    user_count: int = 0
    permission_count: int = 0


class RoleDetailResponse(RoleResponse):
    permissions: List[PermissionResponse] = Field(default_factory=list)
