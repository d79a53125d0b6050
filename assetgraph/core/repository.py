"""ClickHouse-backed asset store."""
from abc import ABC
from collections import defaultdict
from collections.abc import Generator
from collections.abc import Mapping
from contextlib import contextmanager
from typing import Any

import clickhouse_connect
import structlog
from clickhouse_connect.driver.client import Client
from clickhouse_connect.driver.exceptions import ClickHouseError

from assetgraph.core.config import DatabaseConfig
from assetgraph.core.row_mapping import ASSET_COLUMNS
from assetgraph.core.row_mapping import assign_edge_ids
from assetgraph.core.row_mapping import DEPENDENCY_COLUMNS
from assetgraph.core.row_mapping import dependency_rows
from assetgraph.core.row_mapping import map_asset_to_row
from assetgraph.core.row_mapping import map_row_to_asset
from assetgraph.core.row_mapping import map_row_to_dependency
from assetgraph.core.row_mapping import map_row_to_relationship
from assetgraph.core.row_mapping import map_row_to_vulnerability
from assetgraph.core.row_mapping import new_id
from assetgraph.core.row_mapping import RELATIONSHIP_COLUMNS
from assetgraph.core.row_mapping import relationship_rows
from assetgraph.core.row_mapping import VULNERABILITY_COLUMNS
from assetgraph.core.row_mapping import vulnerability_rows
from assetgraph.core.schema import ASSETS_DDL
from assetgraph.core.schema import DEPENDENCIES_DDL
from assetgraph.core.schema import RELATIONSHIPS_DDL
from assetgraph.core.schema import VULNERABILITIES_DDL
from assetgraph.models.asset import Asset
from assetgraph.models.asset import AssetDraft
from assetgraph.models.asset import apply_patch
from assetgraph.models.common import utcnow

logger = structlog.get_logger('repository')


class StoreError(Exception):
    """A collaborator (database or file store) could not complete a call."""


@contextmanager
def store_errors(action: str) -> Generator[None, None, None]:
    try:
        yield
    except ClickHouseError as e:
        raise StoreError(f"{action} failed: {e}") from e


class BaseRepository(ABC):
    """Abstract base repository handling connection lifecycle."""

    def __init__(self, config: DatabaseConfig):
        self.config = config
        self._client: Client | None = None

    @property
    def client(self) -> Client:
        if self._client is None:
            with store_errors('Connect'):
                self._client = clickhouse_connect.get_client(
                    **self.config.get_connection_params(),
                )
        return self._client

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class AssetRepository(BaseRepository):
    """
    Asset store on four ReplacingMergeTree tables.

    An update re-inserts the whole asset row with a newer ``updated_at`` and
    the merge engine keeps the latest version; every read uses ``FINAL``.
    Edge collections are owned by their source asset and are replaced
    wholesale whenever that asset is written.
    """

    def ensure_schema(self) -> None:
        """Idempotent schema creation."""
        with store_errors('Schema creation'):
            self.client.command(
                f"CREATE DATABASE IF NOT EXISTS {self.config.database}",
            )
            self.client.command(ASSETS_DDL.format(table=self.config.assets_table))
            self.client.command(RELATIONSHIPS_DDL.format(table=self.config.relationships_table))
            self.client.command(DEPENDENCIES_DDL.format(table=self.config.dependencies_table))
            self.client.command(VULNERABILITIES_DDL.format(table=self.config.vulnerabilities_table))

    def reset_schema(self) -> None:
        """Drop and recreate schema (Destructive)."""
        with store_errors('Schema reset'):
            for table in self._tables():
                self.client.command(f'DROP TABLE IF EXISTS {table}')
        self.ensure_schema()

    def _tables(self) -> list[str]:
        return [
            self.config.vulnerabilities_table,
            self.config.dependencies_table,
            self.config.relationships_table,
            self.config.assets_table,
        ]

    # -- Reads --

    def fetch_assets(self, organization_id: str | None = None) -> list[Asset]:
        """Newest assets first, capped at ``fetch_limit``, edges hydrated."""
        org_filter = 'WHERE organization_id = {org:String}' if organization_id else ''
        query = f"""
        SELECT {', '.join(ASSET_COLUMNS)}
        FROM {self.config.assets_table} FINAL
        {org_filter}
        ORDER BY created_at DESC
        LIMIT {{limit:UInt32}}
        """
        params: dict[str, Any] = {'limit': self.config.fetch_limit}
        if organization_id:
            params['org'] = organization_id

        with store_errors('Fetch assets'):
            rows = list(self.client.query(query, parameters=params).named_results())
            assets = self._hydrate(rows)
        logger.debug('Fetched assets', count=len(assets), organization_id=organization_id)
        return assets

    def fetch_asset_detail(self, asset_id: str) -> Asset | None:
        query = f"""
        SELECT {', '.join(ASSET_COLUMNS)}
        FROM {self.config.assets_table} FINAL
        WHERE id = {{id:String}}
        """
        with store_errors('Fetch asset'):
            rows = list(self.client.query(query, parameters={'id': asset_id}).named_results())
            if not rows:
                return None
            return self._hydrate(rows)[0]

    def _hydrate(self, rows: list[Mapping[str, Any]]) -> list[Asset]:
        """Attach edges to asset rows with one query per edge table."""
        if not rows:
            return []
        ids = [row['id'] for row in rows]
        relationships = self._edges_by_owner(self._relationship_query(), ids)
        dependencies = self._edges_by_owner(self._dependency_query(), ids)
        vulnerabilities = self._edges_by_owner(self._vulnerability_query(), ids)
        return [
            map_row_to_asset(
                row,
                relationships=[map_row_to_relationship(r) for r in relationships[row['id']]],
                dependencies=[map_row_to_dependency(r) for r in dependencies[row['id']]],
                vulnerabilities=[map_row_to_vulnerability(r) for r in vulnerabilities[row['id']]],
            )
            for row in rows
        ]

    def _edges_by_owner(self, query: str, ids: list[str]) -> dict[str, list[dict]]:
        grouped: dict[str, list[dict]] = defaultdict(list)
        for row in self.client.query(query, parameters={'ids': ids}).named_results():
            grouped[row['owner_id']].append(row)
        return grouped

    def _relationship_query(self) -> str:
        # LEFT JOIN yields '' for the name of a dangling target
        return f"""
        SELECT r.source_asset_id AS owner_id, r.id AS id, r.target_asset_id AS target_asset_id,
               r.relationship_type AS relationship_type, r.strength AS strength,
               r.data_flow_direction AS data_flow_direction,
               r.is_personal_data AS is_personal_data, r.purpose AS purpose,
               t.name AS target_name
        FROM {self.config.relationships_table} AS r FINAL
        LEFT JOIN {self.config.assets_table} AS t FINAL ON r.target_asset_id = t.id
        WHERE r.source_asset_id IN {{ids:Array(String)}}
        ORDER BY r.id
        """

    def _dependency_query(self) -> str:
        return f"""
        SELECT d.asset_id AS owner_id, d.id AS id, d.dependent_asset_id AS dependent_asset_id,
               d.dependency_type AS dependency_type, d.criticality AS criticality,
               d.description AS description, d.is_active AS is_active,
               d.last_validated AS last_validated, d.risk_level AS risk_level,
               d.bidirectional AS bidirectional, t.name AS dependent_name
        FROM {self.config.dependencies_table} AS d FINAL
        LEFT JOIN {self.config.assets_table} AS t FINAL ON d.dependent_asset_id = t.id
        WHERE d.asset_id IN {{ids:Array(String)}}
        ORDER BY d.id
        """

    def _vulnerability_query(self) -> str:
        return f"""
        SELECT asset_id AS owner_id, id, cve_id, severity, cvss_score, title,
               description, discovered_at, status
        FROM {self.config.vulnerabilities_table} FINAL
        WHERE asset_id IN {{ids:Array(String)}}
        ORDER BY discovered_at DESC
        """

    # -- Writes --

    def create_asset(self, draft: AssetDraft, organization_id: str | None = None) -> Asset:
        asset_id = new_id()
        draft = assign_edge_ids(draft)
        now = utcnow()
        with store_errors('Create asset'):
            self.client.insert(
                self.config.assets_table,
                [map_asset_to_row(draft, asset_id, organization_id, now, now)],
                column_names=ASSET_COLUMNS,
            )
            self._insert_edges(asset_id, draft)
        logger.info('Created asset', asset_id=asset_id, name=draft.name)
        created = self.fetch_asset_detail(asset_id)
        if created is None:
            raise StoreError(f"Asset {asset_id} was not readable after insert")
        return created

    def update_asset(self, asset_id: str, patch: Mapping[str, Any]) -> Asset:
        """
        Apply a partial update and persist the whole row.

        Raises:
            StoreError: the asset does not exist or the write failed.
            AssetValidationError: the patch is invalid.
        """
        current = self.fetch_asset_detail(asset_id)
        if current is None:
            raise StoreError(f"Asset not found: {asset_id}")
        updated = assign_edge_ids(apply_patch(current, patch))

        with store_errors('Update asset'):
            self.client.insert(
                self.config.assets_table,
                [
                    map_asset_to_row(
                        updated, updated.id, updated.organization_id,
                        updated.created_at, updated.updated_at,
                    ),
                ],
                column_names=ASSET_COLUMNS,
            )
            self._delete_edges_of([asset_id])
            self._insert_edges(asset_id, updated)
        logger.info('Updated asset', asset_id=asset_id, fields=sorted(patch))
        return self.fetch_asset_detail(asset_id) or updated

    def delete_assets(self, asset_ids: list[str]) -> None:
        """Remove assets together with every edge that starts or ends at them."""
        if not asset_ids:
            return
        params = {'ids': list(asset_ids)}
        with store_errors('Delete assets'):
            self.client.command(
                f"DELETE FROM {self.config.relationships_table} "
                'WHERE source_asset_id IN {ids:Array(String)} OR target_asset_id IN {ids:Array(String)}',
                parameters=params,
            )
            self.client.command(
                f"DELETE FROM {self.config.dependencies_table} "
                'WHERE asset_id IN {ids:Array(String)} OR dependent_asset_id IN {ids:Array(String)}',
                parameters=params,
            )
            self.client.command(
                f"DELETE FROM {self.config.vulnerabilities_table} "
                'WHERE asset_id IN {ids:Array(String)}',
                parameters=params,
            )
            self.client.command(
                f"DELETE FROM {self.config.assets_table} "
                'WHERE id IN {ids:Array(String)}',
                parameters=params,
            )
        logger.info('Deleted assets', count=len(asset_ids))

    def _delete_edges_of(self, asset_ids: list[str]) -> None:
        params = {'ids': list(asset_ids)}
        self.client.command(
            f"DELETE FROM {self.config.relationships_table} "
            'WHERE source_asset_id IN {ids:Array(String)}',
            parameters=params,
        )
        self.client.command(
            f"DELETE FROM {self.config.dependencies_table} "
            'WHERE asset_id IN {ids:Array(String)}',
            parameters=params,
        )
        self.client.command(
            f"DELETE FROM {self.config.vulnerabilities_table} "
            'WHERE asset_id IN {ids:Array(String)}',
            parameters=params,
        )

    def _insert_edges(self, asset_id: str, draft: AssetDraft) -> None:
        batches = [
            (self.config.relationships_table, relationship_rows(asset_id, draft.relationships), RELATIONSHIP_COLUMNS),
            (self.config.dependencies_table, dependency_rows(asset_id, draft.dependencies), DEPENDENCY_COLUMNS),
            (self.config.vulnerabilities_table, vulnerability_rows(asset_id, draft.vulnerabilities), VULNERABILITY_COLUMNS),
        ]
        for table, rows, columns in batches:
            if rows:
                self.client.insert(table, rows, column_names=columns)
