"""Configuration management for AssetGraph."""
import os
from dataclasses import dataclass
from dataclasses import field
from pathlib import Path
from typing import Literal


def _env_float(name: str, default: float) -> float:
    return float(os.getenv(name, str(default)))


@dataclass
class PathConfig:
    """File locations for the local JSONL store."""
    base_data_dir: Path = field(
        default_factory=lambda: Path(os.getenv('ASSETGRAPH_DATA_DIR', 'data')),
    )

    @property
    def store_path(self) -> Path:
        return self.base_data_dir / 'assets.jsonl'


@dataclass
class CacheConfig:
    """Hydrated-asset cache settings."""
    ttl_seconds: float = field(
        default_factory=lambda: _env_float('ASSETGRAPH_CACHE_TTL', 300.0),
    )


@dataclass
class SessionConfig:
    """Inventory session behaviour."""
    debounce_seconds: float = field(
        default_factory=lambda: _env_float('ASSETGRAPH_DEBOUNCE', 0.3),
    )
    default_page_size: int = 25
    min_page_size: int = 10
    max_page_size: int = 100
    min_search_length: int = 2
    recent_days: int = 30


@dataclass
class DatabaseConfig:
    """ClickHouse connection configuration."""
    host: str = field(
        default_factory=lambda: os.getenv(
            'CLICKHOUSE_HOST', 'localhost',
        ),
    )
    port: int = field(
        default_factory=lambda: int(
            os.getenv('CLICKHOUSE_PORT', '8123'),
        ),
    )
    user: str = 'guest'
    password: str = 'guest'
    database: str = field(
        default_factory=lambda: os.getenv(
            'CLICKHOUSE_DB', 'assetgraph',
        ),
    )

    assets_table: str = 'assets'
    relationships_table: str = 'asset_relationships'
    dependencies_table: str = 'asset_dependencies'
    vulnerabilities_table: str = 'asset_vulnerabilities'
    fetch_limit: int = 1000

    def __repr__(self) -> str:
        return (
            f"DatabaseConfig(host={self.host!r}, port={self.port!r}, "
            f"user={self.user!r}, password='*****', database={self.database!r})"
        )

    def get_connection_params(self) -> dict:
        return {
            'host': self.host,
            'port': self.port,
            'username': self.user,
            'password': self.password,
            'database': self.database,
        }


@dataclass
class AssetGraphConfig:
    paths: PathConfig = field(default_factory=PathConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    session: SessionConfig = field(default_factory=SessionConfig)

    _db_base: DatabaseConfig = field(default_factory=DatabaseConfig)

    def get_db_config(self, role: Literal['admin', 'guest'] = 'guest') -> DatabaseConfig:
        """Get database configuration for a specific role."""
        config = DatabaseConfig(
            host=self._db_base.host,
            port=self._db_base.port,
            database=self._db_base.database,
        )
        if role == 'admin':
            config.user = os.getenv('CLICKHOUSE_ADMIN_USER', 'admin')
            config.password = os.getenv('CLICKHOUSE_ADMIN_PASSWORD', 'admin')
        else:
            config.user = os.getenv('CLICKHOUSE_GUEST_USER', 'guest')
            config.password = os.getenv('CLICKHOUSE_GUEST_PASSWORD', 'guest')
        return config

    @classmethod
    def load(cls) -> 'AssetGraphConfig':
        return cls()


_config: AssetGraphConfig | None = None


def get_config() -> AssetGraphConfig:
    global _config
    if _config is None:
        _config = AssetGraphConfig.load()
    return _config
