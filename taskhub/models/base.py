"""
Base Model Classes
Common fields for audited, soft-deletable and tenant-owned models
"""

from datetime import datetime, timezone
import uuid

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Uuid
from sqlalchemy.orm import declared_attr
from sqlalchemy.types import TypeDecorator

from taskhub.core.database import Base


class UTCDateTime(TypeDecorator):
    """Timezone-aware datetime that always round-trips as UTC"""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None and value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value

    def process_result_value(self, value, dialect):
        # SQLite drops tzinfo on the way back
        if value is not None and value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UUIDMixin:
    """Mixin for UUID primary key"""
    id = Column(Uuid, primary_key=True, default=uuid.uuid4, nullable=False)


class AuditMixin:
    """
    Created/updated actor and timestamp.

    Written only by the repository layer from server time and the
    caller context; never from client input.
    """
    created_at = Column(UTCDateTime, default=utcnow, nullable=False, index=True)
    created_by = Column(Uuid, nullable=True)
    updated_at = Column(UTCDateTime, nullable=True)
    updated_by = Column(Uuid, nullable=True)


class SoftDeleteMixin:
    """Mixin for soft delete functionality"""
    is_deleted = Column(Boolean, default=False, nullable=False, index=True)
    deleted_at = Column(UTCDateTime, nullable=True)
    deleted_by = Column(Uuid, nullable=True)


class TenantMixin:
    """Owning tenant; set once on insert"""

    @declared_attr
    def tenant_id(cls):
        return Column(Uuid, ForeignKey("tenants.id"), nullable=False, index=True)


AUDIT_FIELDS = frozenset({
    "id",
    "created_at",
    "created_by",
    "updated_at",
    "updated_by",
    "is_deleted",
    "deleted_at",
    "deleted_by",
    "tenant_id",
    "version",
})


class BaseModel(Base, UUIDMixin, AuditMixin):
    """Base model with common fields"""
    __abstract__ = True


class SoftDeleteModel(BaseModel, SoftDeleteMixin):
    """Base model with soft delete capability"""
    __abstract__ = True


class TenantModel(SoftDeleteModel, TenantMixin):
    """Soft-deletable model owned by a tenant"""
    __abstract__ = True
