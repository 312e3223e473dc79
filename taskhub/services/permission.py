"""
Permission Catalog Service
Catalog listing backed by the distributed cache.
"""

from __future__ import annotations

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.core.cache import PERMISSION_CATALOG_KEY, RedisCache, cache
from taskhub.core.config import settings
from taskhub.core.context import CurrentCaller
from taskhub.repositories.permission import permission_repository
from taskhub.schemas.permission import PermissionResponse

logger = structlog.get_logger()


class PermissionService:
    def __init__(self, catalog_cache: RedisCache = cache, ttl_seconds: int = settings.PERMISSION_CATALOG_CACHE_TTL_SECONDS):
        self._cache = catalog_cache
        self._ttl_seconds = ttl_seconds

    async def list_catalog(self, db: AsyncSession, ctx: CurrentCaller) -> list[PermissionResponse]:
        """
        Every catalog entry ordered by code

        Served from the cache when present; a stale read is tolerated
        for the cache TTL.
        """
        cached = await self._cache.get(PERMISSION_CATALOG_KEY)
        if cached is not None:
            logger.debug("Permission catalog cache hit", count=len(cached))
            return [PermissionResponse.model_validate(item) for item in cached]

        permissions = await permission_repository.list_catalog(db, ctx)
        items = [PermissionResponse.model_validate(p) for p in permissions]

        await self._cache.set(
            PERMISSION_CATALOG_KEY,
            [item.model_dump(mode="json") for item in items],
            ttl_seconds=self._ttl_seconds,
        )
        logger.debug("Permission catalog loaded", count=len(items))
        return items

    async def invalidate_catalog(self) -> None:
        await self._cache.delete(PERMISSION_CATALOG_KEY)


permission_service = PermissionService()
