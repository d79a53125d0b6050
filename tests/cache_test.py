import asyncio
from unittest.mock import MagicMock

import pytest

from assetgraph.core.cache import TTLCache
from assetgraph.core.repository import StoreError
from assetgraph.core.storage import JsonlAssetStore
from assetgraph.models.asset import AssetDraft
from assetgraph.services.asset_service import AssetService


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


class TestTTLCache:
    def test_hit_within_ttl(self, clock):
        cache = TTLCache(ttl=10, clock=clock)
        cache.set('a', 1)
        clock.now += 9
        assert cache.get('a') == 1
        assert cache.stats.hits == 1

    def test_expired_entry_evicted_on_read(self, clock):
        cache = TTLCache(ttl=10, clock=clock)
        cache.set('a', 1)
        clock.now += 11
        assert 'a' in cache
        assert cache.get('a') is None
        assert 'a' not in cache
        assert cache.stats.evictions == 1
        assert cache.stats.misses == 1

    def test_invalidate_and_clear(self, clock):
        cache = TTLCache(ttl=10, clock=clock)
        cache.set('a', 1)
        cache.set('b', 2)
        cache.invalidate('a')
        cache.invalidate('missing')
        assert len(cache) == 1
        cache.clear()
        assert len(cache) == 0
        assert cache.stats.clears == 1

    def test_non_positive_ttl_rejected(self):
        with pytest.raises(ValueError):
            TTLCache(ttl=0)


class TestCachedDetail:
    """Detail reads go through the cache; mutations drop stale entries."""

    def _service(self, clock, make_asset):
        store = MagicMock()
        store.fetch_asset_detail.side_effect = lambda asset_id: make_asset(asset_id)
        return store, AssetService(store, TTLCache(ttl=300, clock=clock))

    def test_one_collaborator_call_within_ttl(self, clock, make_asset):
        store, service = self._service(clock, make_asset)

        async def run():
            first = await service.fetch_asset_detail('a')
            second = await service.fetch_asset_detail('a')
            return first, second

        first, second = asyncio.run(run())
        assert first is second
        store.fetch_asset_detail.assert_called_once_with('a')

    def test_refetch_after_expiry(self, clock, make_asset):
        store, service = self._service(clock, make_asset)
        asyncio.run(service.fetch_asset_detail('a'))
        clock.now += 301
        asyncio.run(service.fetch_asset_detail('a'))
        assert store.fetch_asset_detail.call_count == 2

    def test_rename_refreshes_other_cached_details(self, clock, tmp_path):
        store = JsonlAssetStore(tmp_path / 'assets.jsonl')
        db = store.create_asset(AssetDraft(name='Old DB', owner='Ops', type='Database'))
        app = store.create_asset(AssetDraft(
            name='app01', owner='Ops', type='Server',
            relationships=[{'related_asset_id': db.id, 'relationship_type': 'reads'}],
        ))
        service = AssetService(store, TTLCache(ttl=300, clock=clock))

        async def run():
            before = await service.fetch_asset_detail(app.id)
            await service.update_asset(db.id, {'name': 'New DB'})
            after = await service.fetch_asset_detail(app.id)
            return before, after

        before, after = asyncio.run(run())
        assert before.relationships[0].related_asset_name == 'Old DB'
        assert after.relationships[0].related_asset_name == 'New DB'

    def test_create_resolves_dangling_reference(self, clock, make_asset):
        store, service = self._service(clock, make_asset)
        store.create_asset.return_value = make_asset('b')
        asyncio.run(service.fetch_asset_detail('a'))
        asyncio.run(service.create_asset(AssetDraft(name='b', owner='Ops', type='Server')))
        assert len(service.cache) == 0

    def test_failed_update_still_clears(self, clock, make_asset):
        store, service = self._service(clock, make_asset)
        store.update_asset.side_effect = StoreError('Asset not found: a')
        asyncio.run(service.fetch_asset_detail('a'))
        with pytest.raises(StoreError):
            asyncio.run(service.update_asset('a', {'risk_score': 50}))
        assert len(service.cache) == 0

    def test_delete_clears_everything(self, clock, make_asset):
        store, service = self._service(clock, make_asset)
        asyncio.run(service.fetch_asset_detail('a'))
        asyncio.run(service.fetch_asset_detail('b'))
        asyncio.run(service.delete_assets(['a']))
        assert len(service.cache) == 0
        store.delete_assets.assert_called_once_with(['a'])

    def test_missing_asset_not_cached(self, clock):
        store = MagicMock()
        store.fetch_asset_detail.return_value = None
        service = AssetService(store, TTLCache(ttl=300, clock=clock))
        assert asyncio.run(service.fetch_asset_detail('x')) is None
        assert len(service.cache) == 0
