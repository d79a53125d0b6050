import json
import os
import tempfile
import threading
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import structlog
from pydantic import ValidationError

from assetgraph.core.repository import StoreError
from assetgraph.core.row_mapping import assign_edge_ids
from assetgraph.core.row_mapping import new_id
from assetgraph.engine.graph import index_by_id
from assetgraph.engine.graph import related_asset_name
from assetgraph.models.asset import Asset
from assetgraph.models.asset import AssetDraft
from assetgraph.models.asset import apply_patch
from assetgraph.models.common import utcnow

logger = structlog.get_logger('storage')


class JsonlAssetStore:
    """
    File-backed asset store, one JSON asset per line.

    The file is rewritten wholesale on every mutation through a temporary
    file and ``os.replace``. Related-asset names are resolved on read, so a
    rename shows up on every edge pointing at the asset.
    """

    def __init__(self, filepath: str | Path):
        self.filepath = Path(filepath)
        self._lock = threading.Lock()

    def _load(self) -> list[Asset]:
        if not self.filepath.exists():
            return []

        assets = []
        try:
            with self.filepath.open(encoding='utf-8') as f:
                for line_no, line in enumerate(f, 1):
                    if not line.strip():
                        continue
                    try:
                        assets.append(Asset.model_validate_json(line))
                    except ValidationError as e:
                        logger.warning(
                            'Skipping unreadable asset line',
                            path=str(self.filepath), line=line_no, errors=e.error_count(),
                        )
        except OSError as e:
            raise StoreError(f"Cannot read {self.filepath}: {e}") from e
        return assets

    def _save(self, assets: list[Asset]) -> None:
        try:
            self.filepath.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self.filepath.parent, suffix='.tmp')
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                for asset in assets:
                    f.write(asset.model_dump_json(exclude_none=True) + '\n')
            os.replace(tmp, self.filepath)
        except OSError as e:
            raise StoreError(f"Cannot write {self.filepath}: {e}") from e

    @staticmethod
    def _hydrate(asset: Asset, index: Mapping[str, Asset]) -> Asset:
        relationships = [
            rel.model_copy(update={'related_asset_name': related_asset_name(rel.related_asset_id, index)})
            for rel in asset.relationships
        ]
        dependencies = [
            dep.model_copy(update={'dependent_asset_name': related_asset_name(dep.dependent_asset_id, index)})
            for dep in asset.dependencies
        ]
        return asset.model_copy(update={'relationships': relationships, 'dependencies': dependencies})

    def fetch_assets(self, organization_id: str | None = None) -> list[Asset]:
        """Newest first, edges hydrated with current names."""
        with self._lock:
            assets = self._load()
        index = index_by_id(assets)
        if organization_id:
            assets = [a for a in assets if a.organization_id == organization_id]
        assets.sort(key=lambda a: a.created_at, reverse=True)
        return [self._hydrate(a, index) for a in assets]

    def fetch_asset_detail(self, asset_id: str) -> Asset | None:
        with self._lock:
            assets = self._load()
        index = index_by_id(assets)
        asset = index.get(asset_id)
        return self._hydrate(asset, index) if asset else None

    def create_asset(self, draft: AssetDraft, organization_id: str | None = None) -> Asset:
        now = utcnow()
        data = assign_edge_ids(draft).model_dump()
        data.update(id=new_id(), created_at=now, updated_at=now)
        if organization_id is not None:
            data['organization_id'] = organization_id
        asset = Asset.model_validate(data)

        with self._lock:
            assets = self._load()
            assets.append(asset)
            self._save(assets)
            index = index_by_id(assets)
        logger.info('Created asset', asset_id=asset.id, name=asset.name)
        return self._hydrate(asset, index)

    def update_asset(self, asset_id: str, patch: Mapping[str, Any]) -> Asset:
        with self._lock:
            assets = self._load()
            for i, asset in enumerate(assets):
                if asset.id == asset_id:
                    break
            else:
                raise StoreError(f"Asset not found: {asset_id}")
            updated = assign_edge_ids(apply_patch(asset, patch))
            assets[i] = updated
            self._save(assets)
            index = index_by_id(assets)
        logger.info('Updated asset', asset_id=asset_id, fields=sorted(patch))
        return self._hydrate(updated, index)

    def delete_assets(self, asset_ids: list[str]) -> None:
        """Remove assets and sever every edge pointing at them."""
        doomed = set(asset_ids)
        if not doomed:
            return
        with self._lock:
            kept = []
            for asset in self._load():
                if asset.id in doomed:
                    continue
                relationships = [r for r in asset.relationships if r.related_asset_id not in doomed]
                dependencies = [d for d in asset.dependencies if d.dependent_asset_id not in doomed]
                if len(relationships) != len(asset.relationships) or len(dependencies) != len(asset.dependencies):
                    asset = asset.model_copy(update={'relationships': relationships, 'dependencies': dependencies})
                kept.append(asset)
            self._save(kept)
        logger.info('Deleted assets', count=len(doomed))


def load_records(filepath: str | Path) -> list[dict[str, Any]]:
    """
    Read import records from a JSON array or a JSONL file.

    Raises:
        ValueError: the file is neither, or holds something other than objects.
    """
    path = Path(filepath)
    text = path.read_text(encoding='utf-8')
    stripped = text.lstrip()
    if not stripped:
        return []

    if stripped.startswith('['):
        try:
            records = json.loads(stripped)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in {path}: {e}") from e
    else:
        records = []
        for line_no, line in enumerate(text.splitlines(), 1):
            if not line.strip():
                continue
            try:
                records.append(json.loads(line))
            except json.JSONDecodeError as e:
                raise ValueError(f"Invalid JSON on line {line_no} of {path}: {e}") from e

    for i, record in enumerate(records, 1):
        if not isinstance(record, dict):
            raise ValueError(f"Record {i} in {path} is not an object")
    return records
