"""
Activity Log Model
Append-only record of mutations; carries no soft-delete or update fields.
"""

from sqlalchemy import JSON, Column, ForeignKey, Index, String, Uuid

from taskhub.core.database import Base
from taskhub.models.base import UUIDMixin, UTCDateTime, utcnow


class ActivityLog(Base, UUIDMixin):
    __tablename__ = "activity_logs"

    tenant_id = Column(Uuid, ForeignKey("tenants.id"), nullable=False, index=True)
    user_id = Column(Uuid, nullable=True)
    action = Column(String(50), nullable=False)
    entity_type = Column(String(50), nullable=False)
    entity_id = Column(Uuid, nullable=False)
    old_values = Column(JSON, nullable=True)
    new_values = Column(JSON, nullable=True)
    created_at = Column(UTCDateTime, default=utcnow, nullable=False, index=True)

    __table_args__ = (
        Index("ix_activity_log_entity", "entity_type", "entity_id"),
    )

    def __repr__(self):
        return f"<ActivityLog(action='{self.action}', entity='{self.entity_type}:{self.entity_id}')>"
