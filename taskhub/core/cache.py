"""
Distributed Cache
Redis-backed JSON cache shared by every API process.

The cache is an optimization only: when Redis is not configured or stops
answering, reads miss and writes are dropped, and callers fall back to
the database.
"""

import json
from typing import Any, Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError
import structlog

from taskhub.core.config import settings

logger = structlog.get_logger()

KEY_PREFIX = "taskhub"
PERMISSION_CATALOG_KEY = "permissions:catalog"


class RedisCache:
    """JSON values under a namespaced key, with graceful degradation"""

    def __init__(self, url: str = "", prefix: str = KEY_PREFIX):
        self._url = url
        self._prefix = prefix
        self._client: Optional[aioredis.Redis] = None
        self._disabled = not url

    @property
    def enabled(self) -> bool:
        return not self._disabled

    def key(self, name: str) -> str:
        return f"{self._prefix}:{name}"

    async def _connect(self) -> Optional[aioredis.Redis]:
        if self._disabled:
            return None
        if self._client is not None:
            return self._client

        client = aioredis.from_url(
            self._url,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=3,
        )
        try:
            await client.ping()
        except (RedisError, OSError) as e:
            # Stay disabled for the life of the process; a restart retries
            logger.warning("Redis unavailable, distributed cache disabled", error=str(e))
            self._disabled = True
            await client.aclose()
            return None

        logger.info("Distributed cache connected", prefix=self._prefix)
        self._client = client
        return client

    async def get(self, name: str) -> Optional[Any]:
        """Decoded value, or None on miss, decode failure or outage"""
        client = await self._connect()
        if client is None:
            return None
        try:
            raw = await client.get(self.key(name))
        except RedisError as e:
            logger.warning("Cache read failed", key=name, error=str(e))
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("Discarding undecodable cache entry", key=name)
            return None

    async def set(self, name: str, value: Any, ttl_seconds: int) -> bool:
        client = await self._connect()
        if client is None:
            return False
        try:
            await client.set(self.key(name), json.dumps(value, default=str), ex=ttl_seconds)
        except RedisError as e:
            logger.warning("Cache write failed", key=name, error=str(e))
            return False
        return True

    async def delete(self, name: str) -> bool:
        client = await self._connect()
        if client is None:
            return False
        try:
            await client.delete(self.key(name))
        except RedisError as e:
            logger.warning("Cache invalidation failed", key=name, error=str(e))
            return False
        return True

    async def ping(self) -> Optional[bool]:
        """Health check: None when no cache is configured"""
        if not self._url:
            return None
        client = await self._connect()
        if client is None:
            return False
        try:
            return bool(await client.ping())
        except RedisError:
            return False

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


cache = RedisCache(settings.REDIS_URL)
