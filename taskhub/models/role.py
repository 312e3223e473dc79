"""
Role and Permission Models
System roles (no tenant) are shared and immutable; tenant roles belong
to one tenant. Both link many-to-many to the global permission catalog.
"""

from sqlalchemy import Column, ForeignKey, Index, String, Text, Uuid, false, func

from taskhub.core.database import Base
from taskhub.models.base import SoftDeleteModel, UTCDateTime, utcnow


class Role(SoftDeleteModel):
    """Role granting a set of permissions"""
    __tablename__ = "roles"

    # Null for system roles
    tenant_id = Column(Uuid, ForeignKey("tenants.id"), nullable=True, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)

    __table_args__ = (
        Index("ix_role_tenant_name", "tenant_id", "name"),
    )

    def __repr__(self):
        return f"<Role(name='{self.name}', tenant_id={self.tenant_id})>"

    @property
    def is_system_role(self) -> bool:
        return self.tenant_id is None


class Permission(SoftDeleteModel):
    """Catalog entry; global, never tenant-scoped"""
    __tablename__ = "permissions"

    code = Column(String(100), nullable=False, unique=True, index=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)

    def __repr__(self):
        return f"<Permission(code='{self.code}')>"

    @property
    def resource(self) -> str:
        return self.code.split(".", 1)[0]


class RolePermission(Base):
    __tablename__ = "role_permissions"

    role_id = Column(Uuid, ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True)
    permission_id = Column(Uuid, ForeignKey("permissions.id", ondelete="CASCADE"), primary_key=True)


class UserRole(Base):
    __tablename__ = "user_roles"

    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    role_id = Column(Uuid, ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True, index=True)
    assigned_at = Column(UTCDateTime, default=utcnow, nullable=False)


# Tenant role names are unique per tenant, ignoring case and tombstones.
# System roles have a NULL tenant and stay out of this constraint.
Index(
    "uq_role_tenant_name_active",
    Role.__table__.c.tenant_id,
    func.lower(Role.__table__.c.name),
    unique=True,
    postgresql_where=Role.__table__.c.is_deleted == false(),
    sqlite_where=Role.__table__.c.is_deleted == false(),
)
