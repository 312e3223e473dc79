"""
Tenant Schemas
"""

from pydantic import Field

from taskhub.schemas.base import BaseCreateSchema


class TenantCreate(BaseCreateSchema):
    name: str = Field(..., min_length=1, max_length=200)
    slug: str = Field(..., min_length=1, max_length=100)
    subscription_plan: str = Field("free", max_length=50)
