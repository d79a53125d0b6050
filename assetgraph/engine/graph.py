"""
Structural queries over the edges each asset carries.

Edges live on their source asset; there is no global adjacency index. At
inventory scale (thousands of assets) every query is a scan of one asset's
edge lists, and the few collection-wide helpers are linear scans. An index
keyed by asset id can replace them without changing these signatures.
"""
from collections.abc import Iterable

from assetgraph.models.asset import Asset
from assetgraph.models.enums import Criticality


def has_active_dependencies(asset: Asset) -> bool:
    return any(dep.is_active for dep in asset.dependencies)


def has_dependents(asset: Asset) -> bool:
    """Dependency edges name the dependent asset, so any edge means a dependent exists."""
    return len(asset.dependencies) > 0


def is_isolated(asset: Asset) -> bool:
    return not asset.relationships and not has_active_dependencies(asset)


def is_on_critical_path(asset: Asset) -> bool:
    """
    Heuristic: active dependencies plus either dependents or critical rating.

    This does not follow edges through other assets; it only looks at the
    asset's own edge lists and criticality.
    """
    if not has_active_dependencies(asset):
        return False
    return has_dependents(asset) or asset.criticality == Criticality.CRITICAL


def index_by_id(assets: Iterable[Asset]) -> dict[str, Asset]:
    return {asset.id: asset for asset in assets}


def related_asset_name(asset_id: str, index: dict[str, Asset]) -> str:
    """Resolve a weak reference; a dangling id yields an empty name."""
    target = index.get(asset_id)
    return target.name if target else ''


def dangling_references(asset: Asset, index: dict[str, Asset]) -> list[str]:
    """Ids referenced by the asset's edges that do not resolve in ``index``."""
    referenced = [rel.related_asset_id for rel in asset.relationships]
    referenced += [dep.dependent_asset_id for dep in asset.dependencies]
    seen = set()
    missing = []
    for asset_id in referenced:
        if asset_id not in index and asset_id not in seen:
            seen.add(asset_id)
            missing.append(asset_id)
    return missing


def find_dependents(assets: Iterable[Asset], asset_id: str) -> list[Asset]:
    """Assets holding a dependency or relationship edge that points at ``asset_id``."""
    result = []
    for asset in assets:
        if asset.id == asset_id:
            continue
        if any(dep.dependent_asset_id == asset_id for dep in asset.dependencies) or any(
            rel.related_asset_id == asset_id for rel in asset.relationships
        ):
            result.append(asset)
    return result
