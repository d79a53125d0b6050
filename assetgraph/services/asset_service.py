import asyncio
from collections.abc import Callable
from collections.abc import Iterable
from collections.abc import Mapping
from typing import Any
from typing import Protocol
from typing import TypeVar

import structlog

from assetgraph.core.cache import TTLCache
from assetgraph.core.repository import StoreError
from assetgraph.core.stats import BatchResult
from assetgraph.models.asset import Asset
from assetgraph.models.asset import AssetDraft
from assetgraph.services.import_service import ImportResult
from assetgraph.services.import_service import ImportService

logger = structlog.get_logger('asset_service')

T = TypeVar('T')


class AssetStore(Protocol):
    """Synchronous persistence collaborator; see AssetRepository and JsonlAssetStore."""

    def fetch_assets(self, organization_id: str | None = None) -> list[Asset]: ...

    def fetch_asset_detail(self, asset_id: str) -> Asset | None: ...

    def create_asset(self, draft: AssetDraft, organization_id: str | None = None) -> Asset: ...

    def update_asset(self, asset_id: str, patch: Mapping[str, Any]) -> Asset: ...

    def delete_assets(self, asset_ids: list[str]) -> None: ...


class AssetService:
    """
    Async facade over an AssetStore.

    Store calls run in a worker thread so the event loop never blocks on I/O.
    Hydrated asset detail is served through a TTL cache. Stores resolve edge
    target names when an asset is read, so any write can stale other cached
    assets: every create, update, bulk update, delete or import clears the whole
    cache.
    Failures are logged and re-raised unchanged.
    """

    def __init__(self, store: AssetStore, cache: TTLCache[Asset] | None = None):
        self.store = store
        self.cache: TTLCache[Asset] = cache if cache is not None else TTLCache()

    async def _call(self, action: str, func: Callable[..., T], *args: Any, **log_context: Any) -> T:
        try:
            return await asyncio.to_thread(func, *args)
        except Exception as e:
            logger.error(f"{action} failed", error=str(e), **log_context)
            raise

    async def fetch_assets(self, organization_id: str | None = None) -> list[Asset]:
        assets = await self._call(
            'Fetch assets', self.store.fetch_assets, organization_id,
            organization_id=organization_id,
        )
        logger.debug('Fetched assets', count=len(assets))
        return assets

    async def fetch_asset_detail(self, asset_id: str) -> Asset | None:
        cached = self.cache.get(asset_id)
        if cached is not None:
            return cached
        asset = await self._call(
            'Fetch asset detail', self.store.fetch_asset_detail, asset_id,
            asset_id=asset_id,
        )
        if asset is not None:
            self.cache.set(asset_id, asset)
        return asset

    async def create_asset(self, draft: AssetDraft, organization_id: str | None = None) -> Asset:
        try:
            return await self._call(
                'Create asset', self.store.create_asset, draft, organization_id,
                name=draft.name,
            )
        finally:
            self.cache.clear()

    async def update_asset(self, asset_id: str, patch: Mapping[str, Any]) -> Asset:
        try:
            return await self._call(
                'Update asset', self.store.update_asset, asset_id, patch,
                asset_id=asset_id,
            )
        finally:
            self.cache.clear()

    async def delete_assets(self, asset_ids: Iterable[str]) -> None:
        ids = list(asset_ids)
        try:
            await self._call('Delete assets', self.store.delete_assets, ids, count=len(ids))
        finally:
            self.cache.clear()

    async def import_assets(
        self,
        records: list[Mapping[str, Any]],
        organization_id: str | None = None,
    ) -> ImportResult:
        importer = ImportService(self.store, organization_id=organization_id)
        try:
            return await self._call('Import assets', importer.import_records, records, count=len(records))
        finally:
            self.cache.clear()

    async def bulk_update(self, asset_ids: Iterable[str], patch: Mapping[str, Any]) -> BatchResult:
        """Apply one patch to each asset in turn; a failing asset never stops the rest."""
        result = BatchResult()
        try:
            for asset_id in asset_ids:
                result.total += 1
                try:
                    await asyncio.to_thread(self.store.update_asset, asset_id, patch)
                except (StoreError, ValueError) as e:
                    result.inc_failed()
                    result.add_error(f"{asset_id}: {e}")
                    logger.warning('Bulk update skipped asset', asset_id=asset_id, error=str(e))
                    continue
                result.inc_succeeded()
        finally:
            self.cache.clear()

        logger.info(
            'Bulk update finished',
            total=result.total, succeeded=result.succeeded, failed=result.failed,
        )
        return result
