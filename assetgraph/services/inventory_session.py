"""
Client-side inventory state: the loaded collection and the view derived from it.

The session owns one immutable snapshot of the organisation's assets. Filter
and sort changes are debounced and then recomputed over that snapshot in
memory; persistence goes through an AssetService and is always followed by a
full reload.
"""
import asyncio
from collections.abc import Callable
from collections.abc import Iterable
from collections.abc import Mapping
from datetime import timedelta
from enum import Enum
from typing import Any

import structlog

from assetgraph.core.config import get_config
from assetgraph.core.config import SessionConfig
from assetgraph.core.stats import BatchResult
from assetgraph.engine.filters import filter_assets
from assetgraph.engine.filters import filter_options
from assetgraph.engine.sorting import sort_assets
from assetgraph.engine.stats import AssetStats
from assetgraph.engine.stats import safe_calculate_stats
from assetgraph.models.asset import Asset
from assetgraph.models.asset import AssetDraft
from assetgraph.models.enums import SortDirection
from assetgraph.models.query import AssetFilters
from assetgraph.models.query import Pagination
from assetgraph.models.query import SortConfig
from assetgraph.models.query import toggle_sort
from assetgraph.services.asset_service import AssetService
from assetgraph.services.import_service import ImportResult

logger = structlog.get_logger('inventory_session')


class SessionState(str, Enum):
    IDLE = 'idle'
    FILTERING = 'filtering'
    READY = 'ready'


class Debouncer:
    """
    Collapse bursts of calls into one, ``delay`` seconds after the last.

    Needs a running event loop to defer; without one the callback runs
    immediately.
    """

    def __init__(self, delay: float, callback: Callable[[], None]):
        self.delay = delay
        self._callback = callback
        self._handle: asyncio.TimerHandle | None = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def schedule(self) -> None:
        self.cancel()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._callback()
            return
        self._handle = loop.call_later(self.delay, self._fire)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def flush(self) -> None:
        if self._handle is not None:
            self.cancel()
            self._callback()

    def _fire(self) -> None:
        self._handle = None
        self._callback()


class InventorySession:
    """Explicit store for one inventory view; call ``init`` before use and ``teardown`` after."""

    def __init__(self, service: AssetService, config: SessionConfig | None = None):
        self.service = service
        self.config = config or get_config().session
        self.organization_id: str | None = None

        self.assets: tuple[Asset, ...] = ()
        self.filtered: list[Asset] = []
        self.filters = AssetFilters()
        self.sort = SortConfig()
        self.pagination = Pagination(page_size=self.config.default_page_size)
        self.selected: set[str] = set()
        self.state = SessionState.IDLE

        self.stats = AssetStats()
        self.options: dict[str, list[str]] = {'owners': [], 'locations': [], 'tags': []}
        self.detail: Asset | None = None
        self.last_error: str | None = None

        self._debouncer = Debouncer(self.config.debounce_seconds, self._recompute)

    # -- Lifecycle --

    async def init(
        self,
        initial_assets: Iterable[Asset] | None = None,
        organization_id: str | None = None,
    ) -> None:
        self.organization_id = organization_id
        if initial_assets is not None:
            self.replace_assets(initial_assets)
        else:
            await self.refresh()

    def teardown(self) -> None:
        self._debouncer.cancel()
        self.selected.clear()
        self.detail = None
        self.state = SessionState.IDLE

    # -- Derived view --

    def _recompute(self) -> None:
        try:
            filtered = filter_assets(
                self.assets, self.filters,
                min_search_length=self.config.min_search_length,
            )
            filtered = sort_assets(filtered, self.sort)
        except Exception as e:
            logger.error('Recompute failed, keeping previous view', error=str(e), exc_info=True)
            self.last_error = str(e)
            self.state = SessionState.READY
            return
        self.filtered = filtered
        self.pagination = self.pagination.model_copy(update={'page': 1})
        self.state = SessionState.READY

    def _schedule(self) -> None:
        self.state = SessionState.FILTERING
        self._debouncer.schedule()

    def flush(self) -> None:
        """Run a pending recompute now instead of waiting for the debounce."""
        self._debouncer.flush()

    def update_filters(self, **changes: Any) -> None:
        """
        Merge filter changes and schedule a recompute.

        Raises:
            ValueError: an unknown filter name or an invalid value; the
                current filters are left untouched.
        """
        self.filters = self.filters.merged(**changes)
        self._schedule()

    def reset_filters(self) -> None:
        self.filters = AssetFilters()
        self._schedule()

    def set_sort(self, key: str | None, direction: SortDirection | str = SortDirection.ASC) -> None:
        self.sort = SortConfig(key=key, direction=direction)
        self._schedule()

    def toggle_sort(self, key: str) -> None:
        self.sort = toggle_sort(self.sort, key)
        self._schedule()

    def replace_assets(self, assets: Iterable[Asset]) -> None:
        """Swap the whole collection and rebuild every derived value."""
        self.assets = tuple(assets)
        self.stats = safe_calculate_stats(self.assets, recent_window=self._recent_window())
        self.options = filter_options(self.assets)
        ids = {asset.id for asset in self.assets}
        self.selected &= ids
        self._debouncer.cancel()
        self._recompute()

    def _recent_window(self) -> timedelta:
        return timedelta(days=self.config.recent_days)

    # -- Pagination --

    @property
    def total_pages(self) -> int:
        return self.pagination.total_pages(len(self.filtered))

    @property
    def page_assets(self) -> list[Asset]:
        return self.pagination.slice(self.filtered)

    def set_page(self, page: int) -> None:
        page = max(1, min(page, self.total_pages))
        self.pagination = self.pagination.model_copy(update={'page': page})

    def set_page_size(self, size: int) -> None:
        size = max(self.config.min_page_size, min(size, self.config.max_page_size))
        self.pagination = self.pagination.model_copy(update={'page_size': size})
        self.set_page(self.pagination.page)

    # -- Selection --

    def toggle_selection(self, asset_id: str) -> None:
        if asset_id in self.selected:
            self.selected.discard(asset_id)
        else:
            self.selected.add(asset_id)

    def select_all_on_page(self) -> None:
        """Select the visible page, or deselect it when it is already fully selected."""
        ids = {asset.id for asset in self.page_assets}
        if ids and ids <= self.selected:
            self.selected -= ids
        else:
            self.selected |= ids

    def clear_selection(self) -> None:
        self.selected.clear()

    # -- Collaborator operations --

    async def _guarded(self, action: str, awaitable):
        try:
            return await awaitable
        except Exception as e:
            self.last_error = str(e)
            logger.error(f"{action} failed", error=str(e))
            raise

    async def refresh(self) -> None:
        assets = await self._guarded(
            'Load assets', self.service.fetch_assets(self.organization_id),
        )
        self.last_error = None
        self.replace_assets(assets)
        logger.debug('Inventory loaded', count=len(self.assets))

    async def _validated_create(self, draft: AssetDraft | Mapping[str, Any]) -> Asset:
        if not isinstance(draft, AssetDraft):
            draft = AssetDraft.model_validate(draft)
        return await self.service.create_asset(draft, self.organization_id)

    async def create_asset(self, draft: AssetDraft | Mapping[str, Any]) -> Asset:
        created = await self._guarded('Create asset', self._validated_create(draft))
        await self.refresh()
        return created

    async def update_asset(self, asset_id: str, patch: Mapping[str, Any]) -> Asset:
        updated = await self._guarded(
            'Update asset', self.service.update_asset(asset_id, patch),
        )
        if self.detail is not None and self.detail.id == asset_id:
            self.detail = updated
        await self.refresh()
        return updated

    async def delete_assets(self, asset_ids: Iterable[str]) -> None:
        ids = list(asset_ids)
        await self._guarded('Delete assets', self.service.delete_assets(ids))
        self.selected -= set(ids)
        if self.detail is not None and self.detail.id in ids:
            self.detail = None
        await self.refresh()

    async def bulk_update(
        self,
        patch: Mapping[str, Any],
        asset_ids: Iterable[str] | None = None,
    ) -> BatchResult:
        """Apply one patch to ``asset_ids`` (the selection by default), then reload once."""
        ids = sorted(self.selected) if asset_ids is None else list(asset_ids)
        if not ids:
            return BatchResult()
        result = await self._guarded('Bulk update', self.service.bulk_update(ids, patch))
        await self.refresh()
        if self.detail is not None and self.detail.id in ids:
            self.detail = next((a for a in self.assets if a.id == self.detail.id), self.detail)
        return result

    async def import_assets(self, records: list[Mapping[str, Any]]) -> ImportResult:
        result = await self._guarded(
            'Import assets', self.service.import_assets(records, self.organization_id),
        )
        await self.refresh()
        return result

    async def get_asset_detail(self, asset_id: str) -> Asset | None:
        self.detail = await self._guarded(
            'Load asset detail', self.service.fetch_asset_detail(asset_id),
        )
        return self.detail
