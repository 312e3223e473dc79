"""
Per-request caller context.

Resolved once from the verified bearer credential and passed explicitly
to services and repositories.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable, Optional
from uuid import UUID

if TYPE_CHECKING:
    from taskhub.core.security import VerifiedCredential
    from taskhub.models.user import User


@dataclass(frozen=True)
class CurrentCaller:
    user_id: Optional[UUID]
    tenant_id: Optional[UUID]
    email: Optional[str] = None
    permissions: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def from_credential(cls, credential: "VerifiedCredential") -> "CurrentCaller":
        return cls(
            user_id=credential.user_id,
            tenant_id=credential.tenant_id,
            email=credential.email,
            permissions=frozenset(credential.permissions),
        )

    @classmethod
    def for_user(cls, user: "User", permissions: Iterable[str] = ()) -> "CurrentCaller":
        """Context used by credential issuance to save through the scoped path"""
        return cls(
            user_id=user.id,
            tenant_id=user.tenant_id,
            email=user.email,
            permissions=frozenset(permissions),
        )

    @classmethod
    def system(cls) -> "CurrentCaller":
        """
        Tenant-less maintenance context.

        Reads made with it skip the tenant filter (never the soft-delete
        filter). Only the startup bootstrap uses it; request handling
        always derives a caller with a tenant from the credential.
        """
        return cls(user_id=None, tenant_id=None)

    @property
    def has_tenant(self) -> bool:
        return self.tenant_id is not None

    def has_permission(self, permission: str) -> bool:
        return permission in self.permissions
