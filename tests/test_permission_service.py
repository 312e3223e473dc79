"""
Tests for the permission catalog service and its cache seam
"""

from unittest.mock import AsyncMock

import pytest

from taskhub.core.cache import PERMISSION_CATALOG_KEY, RedisCache
from taskhub.core.context import CurrentCaller
from taskhub.core.logging import REDACTED, redact_sensitive
from taskhub.core.rbac import ALL_PERMISSIONS
from taskhub.services.permission import PermissionService


# ==================== Fixtures ====================

@pytest.fixture
def mock_cache():
    cache = AsyncMock(spec=RedisCache)
    cache.get.return_value = None
    cache.set.return_value = True
    return cache


@pytest.fixture
def service(mock_cache):
    return PermissionService(catalog_cache=mock_cache, ttl_seconds=60)


class TestListCatalog:

    @pytest.mark.asyncio
    async def test_miss_reads_database_and_populates_cache(self, service, mock_cache, seeded_db):
        items = await service.list_catalog(seeded_db, CurrentCaller.system())

        assert [item.code for item in items] == sorted(ALL_PERMISSIONS)
        mock_cache.set.assert_awaited_once()
        key, payload = mock_cache.set.await_args.args
        assert key == PERMISSION_CATALOG_KEY
        assert len(payload) == len(ALL_PERMISSIONS)
        assert mock_cache.set.await_args.kwargs["ttl_seconds"] == 60

    @pytest.mark.asyncio
    async def test_hit_skips_database(self, service, mock_cache):
        mock_cache.get.return_value = [
            {"id": "00000000-0000-0000-0000-000000000001", "code": "projects.view", "name": "View Projects"}
        ]
        db = AsyncMock()

        items = await service.list_catalog(db, CurrentCaller.system())

        assert [item.code for item in items] == ["projects.view"]
        db.execute.assert_not_called()
        mock_cache.set.assert_not_called()

    @pytest.mark.asyncio
    async def test_invalidate(self, service, mock_cache):
        await service.invalidate_catalog()
        mock_cache.delete.assert_awaited_once_with(PERMISSION_CATALOG_KEY)


class TestDisabledCache:

    @pytest.mark.asyncio
    async def test_empty_url_disables_cache(self):
        cache = RedisCache("")

        assert not cache.enabled
        assert await cache.get(PERMISSION_CATALOG_KEY) is None
        assert await cache.set(PERMISSION_CATALOG_KEY, [1], ttl_seconds=5) is False
        assert await cache.ping() is None

    def test_keys_are_namespaced(self):
        assert RedisCache("", prefix="taskhub").key(PERMISSION_CATALOG_KEY) == "taskhub:permissions:catalog"


def test_log_processor_masks_credentials():
    event = {"event": "Login", "password": "Secret123", "refresh_token": "abc", "user_id": "u-1"}

    redacted = redact_sensitive(None, "info", event)

    assert redacted["password"] == REDACTED
    assert redacted["refresh_token"] == REDACTED
    assert redacted["user_id"] == "u-1"
