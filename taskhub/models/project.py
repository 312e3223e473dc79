"""
Project Model
"""

from sqlalchemy import Column, Integer, String, Text, Uuid

from taskhub.models.base import TenantModel


class Project(TenantModel):
    """Tenant-owned project with optimistic concurrency"""
    __tablename__ = "projects"

    name = Column(String(200), nullable=False, index=True)
    description = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default="active")
    owner_id = Column(Uuid, nullable=True)

    version = Column(Integer, nullable=False)
    __mapper_args__ = {"version_id_col": version}

    def __repr__(self):
        return f"<Project(name='{self.name}')>"
