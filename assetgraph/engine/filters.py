from collections.abc import Callable
from collections.abc import Iterable
from collections.abc import Sequence
from datetime import datetime

from assetgraph.engine.graph import has_active_dependencies
from assetgraph.engine.graph import is_isolated
from assetgraph.engine.graph import is_on_critical_path
from assetgraph.models.asset import Asset
from assetgraph.models.common import utcnow
from assetgraph.models.query import AssetFilters
from assetgraph.models.query import DerivedFilters

MIN_SEARCH_LENGTH = 2

Predicate = Callable[[Asset], bool]


def has_open_vulnerabilities(asset: Asset) -> bool:
    """Only open and in-progress findings count."""
    return any(v.is_unresolved for v in asset.vulnerabilities)


def is_missing_compliance(asset: Asset) -> bool:
    return not asset.compliance_frameworks


def has_multiple_frameworks(asset: Asset) -> bool:
    return len(asset.compliance_frameworks) > 1


def is_overdue_assessment(asset: Asset, now: datetime) -> bool:
    if asset.next_review is None:
        return False
    return asset.next_review < now


def search_text(asset: Asset) -> str:
    """Everything free-text search looks at, lower-cased and joined by spaces."""
    fields = [
        asset.name,
        asset.description,
        asset.owner,
        asset.location_text,
        asset.ip_address or '',
        *asset.tags,
        *asset.compliance_frameworks,
    ]
    return ' '.join(fields).lower()


def _member(allowed: Sequence, value) -> bool:
    return not allowed or (value is not None and value in allowed)


def _intersects(allowed: Sequence, values: Iterable) -> bool:
    return not allowed or any(value in allowed for value in values)


def _field_predicates(filters: AssetFilters, min_search_length: int) -> list[Predicate]:
    predicates: list[Predicate] = []

    query = filters.search.lower()
    if len(query) >= min_search_length:
        predicates.append(lambda a: query in search_text(a))

    if filters.types:
        predicates.append(lambda a: _member(filters.types, a.type))
    if filters.categories:
        predicates.append(lambda a: _member(filters.categories, a.category))
    if filters.criticalities:
        predicates.append(lambda a: _member(filters.criticalities, a.criticality))
    if filters.owners:
        predicates.append(lambda a: _member(filters.owners, a.owner))
    if filters.locations:
        predicates.append(lambda a: _member(filters.locations, a.location_text))
    if filters.status:
        predicates.append(lambda a: _member(filters.status, a.status))
    if filters.data_classification:
        predicates.append(
            lambda a: _member(filters.data_classification, a.data_classification),
        )
    if filters.compliance_frameworks:
        predicates.append(
            lambda a: _intersects(filters.compliance_frameworks, a.compliance_frameworks),
        )
    if filters.tags:
        predicates.append(lambda a: _intersects(filters.tags, a.tags))

    low, high = filters.risk_score_range
    predicates.append(lambda a: low <= a.risk_score <= high)
    return predicates


def _derived_predicates(meta: DerivedFilters, now: datetime) -> list[Predicate]:
    predicates: list[Predicate] = []

    if meta.has_vulnerabilities == 'yes':
        predicates.append(has_open_vulnerabilities)
    elif meta.has_vulnerabilities == 'no':
        predicates.append(lambda a: not has_open_vulnerabilities(a))
    if meta.missing_compliance:
        predicates.append(is_missing_compliance)
    if meta.overdue_assessment:
        predicates.append(lambda a: is_overdue_assessment(a, now))
    if meta.multiple_frameworks:
        predicates.append(has_multiple_frameworks)
    if meta.has_dependencies:
        predicates.append(has_active_dependencies)
    if meta.isolated_assets:
        predicates.append(is_isolated)
    if meta.critical_path_assets:
        predicates.append(is_on_critical_path)

    if meta.created_after is not None:
        created_after = meta.created_after
        predicates.append(lambda a: a.created_at >= created_after)
    if meta.last_assessed_before is not None:
        bound = meta.last_assessed_before
        predicates.append(
            lambda a: a.last_assessed is not None and a.last_assessed <= bound,
        )
    return predicates


def build_predicate(
    filters: AssetFilters,
    now: datetime | None = None,
    min_search_length: int = MIN_SEARCH_LENGTH,
) -> Predicate:
    """Compile a filter set into one predicate that ANDs every active dimension."""
    predicates = _field_predicates(filters, min_search_length)
    predicates += _derived_predicates(filters.metadata, now or utcnow())
    return lambda asset: all(p(asset) for p in predicates)


def filter_assets(
    assets: Iterable[Asset],
    filters: AssetFilters,
    now: datetime | None = None,
    min_search_length: int = MIN_SEARCH_LENGTH,
) -> list[Asset]:
    """
    Return the assets matching every active criterion, in input order.

    Multi-value dimensions match when the asset's value is any of the allowed
    values. Search is skipped for queries shorter than ``min_search_length``.
    The input collection is never modified.
    """
    predicate = build_predicate(filters, now=now, min_search_length=min_search_length)
    return [asset for asset in assets if predicate(asset)]


def filter_options(assets: Iterable[Asset]) -> dict[str, list[str]]:
    """Distinct owners, plain-text locations and tags, sorted for filter pickers."""
    owners: set[str] = set()
    locations: set[str] = set()
    tags: set[str] = set()
    for asset in assets:
        owners.add(asset.owner)
        if isinstance(asset.location, str) and asset.location:
            locations.add(asset.location)
        tags.update(asset.tags)
    return {
        'owners': sorted(owners),
        'locations': sorted(locations),
        'tags': sorted(tags),
    }
