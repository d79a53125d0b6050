"""Dependency Injection Container."""
from pathlib import Path
from typing import Optional

from assetgraph.core.cache import TTLCache
from assetgraph.core.config import AssetGraphConfig
from assetgraph.core.config import get_config
from assetgraph.core.repository import AssetRepository
from assetgraph.core.storage import JsonlAssetStore
from assetgraph.services.asset_service import AssetService
from assetgraph.services.asset_service import AssetStore
from assetgraph.services.inventory_session import InventorySession


class Container:
    """Simple DI Container to manage service lifecycles."""

    _instance: Optional['Container'] = None

    def __init__(self) -> None:
        self.config: AssetGraphConfig = get_config()
        self.store_path: Path | None = None
        self._store: AssetStore | None = None
        self._asset_service: AssetService | None = None

    @classmethod
    def get_instance(cls) -> 'Container':
        if cls._instance is None:
            cls._instance = Container()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        cls._instance = None

    # -- Stores --

    def use_file_store(self, path: Path) -> None:
        """Switch every later lookup to the JSONL store at ``path``."""
        self.store_path = path
        self._store = None
        self._asset_service = None

    def get_admin_repository(self) -> AssetRepository:
        """Get Write-Access Repository (Admin), used for schema management."""
        return AssetRepository(self.config.get_db_config(role='admin'))

    def get_store(self) -> AssetStore:
        if self._store is None:
            if self.store_path is not None:
                self._store = JsonlAssetStore(self.store_path)
            else:
                self._store = AssetRepository(self.config.get_db_config(role='admin'))
        return self._store

    # -- Services (Singletons) --

    def get_asset_service(self) -> AssetService:
        if not self._asset_service:
            cache = TTLCache(ttl=self.config.cache.ttl_seconds)
            self._asset_service = AssetService(self.get_store(), cache)
        return self._asset_service

    def create_session(self) -> InventorySession:
        """Factory for sessions (not singleton as each holds its own view)."""
        return InventorySession(self.get_asset_service(), self.config.session)


# Global Accessor


def get_container() -> Container:
    return Container.get_instance()
