"""
Tenant Repository
Tenants are created only by registration, under the system context.
"""

from taskhub.models.tenant import Tenant
from taskhub.repositories.base import CRUDBase
from taskhub.schemas.tenant import TenantCreate


class TenantRepository(CRUDBase[Tenant, TenantCreate, TenantCreate]):
    """Repository for tenant records"""


tenant_repository = TenantRepository(Tenant)
