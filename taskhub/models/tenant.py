"""
Tenant Model
Isolation boundary for every tenant-owned record
"""

from sqlalchemy import Column, String

from taskhub.models.base import SoftDeleteModel


class Tenant(SoftDeleteModel):
    """One organization's data partition"""
    __tablename__ = "tenants"

    name = Column(String(200), nullable=False)
    slug = Column(String(100), nullable=False, unique=True, index=True)
    subscription_plan = Column(String(50), nullable=False, default="free")

    def __repr__(self):
        return f"<Tenant(slug='{self.slug}')>"
