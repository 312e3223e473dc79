"""
Permission Schemas
"""

from typing import Optional
from uuid import UUID

from pydantic import Field

from taskhub.schemas.base import BaseCreateSchema, BaseSchema


class PermissionCreate(BaseCreateSchema):
    code: str = Field(..., min_length=3, max_length=100)
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None


class PermissionResponse(BaseSchema):
    id: UUID
    code: str
    name: str
    description: Optional[str] = None
