"""
User Model
Authentication identity, always owned by exactly one tenant
"""

from sqlalchemy import Boolean, Column, Index, Integer, String

from taskhub.models.base import TenantModel, UTCDateTime


class User(TenantModel):
    """User model for authentication and profile management"""
    __tablename__ = "users"

    # Globally unique: login happens before any tenant is known
    email = Column(String(254), nullable=False, unique=True, index=True)
    password_hash = Column(String(128), nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)

    is_active = Column(Boolean, default=True, nullable=False)
    last_login_at = Column(UTCDateTime, nullable=True)

    # SHA-256 digest of the current refresh value
    refresh_token_hash = Column(String(64), nullable=True, index=True)
    refresh_token_expires_at = Column(UTCDateTime, nullable=True)

    # Concurrent refresh rotations race on this
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        Index("ix_user_tenant_deleted", "tenant_id", "is_deleted"),
    )

    def __repr__(self):
        return f"<User(email='{self.email}')>"

    def clear_refresh_token(self):
        self.refresh_token_hash = None
        self.refresh_token_expires_at = None
