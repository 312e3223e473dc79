"""
Activity Log Schemas
"""

from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import Field

from taskhub.schemas.base import BaseCreateSchema, BaseSchema

ENTITY_TYPES = ("Project", "Task", "User", "Role", "Sprint", "Milestone", "Attachment")


class ActivityLogCreate(BaseCreateSchema):
    action: str = Field(..., max_length=50)
    entity_type: str = Field(..., max_length=50)
    entity_id: UUID
    old_values: Optional[Dict[str, Any]] = None
    new_values: Optional[Dict[str, Any]] = None


class ActivityLogResponse(BaseSchema):
    id: UUID
    tenant_id: UUID
    user_id: Optional[UUID] = None
    action: str
    entity_type: str
    entity_id: UUID
    old_values: Optional[Dict[str, Any]] = None
    new_values: Optional[Dict[str, Any]] = None
    created_at: datetime
