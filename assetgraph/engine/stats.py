from collections.abc import Iterable
from dataclasses import asdict
from dataclasses import dataclass
from dataclasses import field
from datetime import datetime
from datetime import timedelta

import structlog

from assetgraph.models.asset import Asset
from assetgraph.models.common import utcnow
from assetgraph.models.enums import Criticality

logger = structlog.get_logger('stats')

RECENT_WINDOW = timedelta(days=30)


@dataclass
class AssetStats:
    total: int = 0
    critical: int = 0
    untagged: int = 0
    recently_added: int = 0
    by_type: dict[str, int] = field(default_factory=dict)
    by_criticality: dict[str, int] = field(default_factory=dict)
    by_status: dict[str, int] = field(default_factory=dict)
    by_data_classification: dict[str, int] = field(default_factory=dict)
    by_encryption_status: dict[str, int] = field(default_factory=dict)
    privacy_compliant: int = 0
    with_pia: int = 0
    cross_border_transfer: int = 0
    third_party_sharing: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


def _bump(counter: dict[str, int], key) -> None:
    key = str(key)
    counter[key] = counter.get(key, 0) + 1


def calculate_stats(
    assets: Iterable[Asset],
    now: datetime | None = None,
    recent_window: timedelta = RECENT_WINDOW,
) -> AssetStats:
    """Single pass over the collection; optional fields that are missing are skipped."""
    cutoff = (now or utcnow()) - recent_window
    stats = AssetStats()

    for asset in assets:
        stats.total += 1
        if asset.criticality == Criticality.CRITICAL:
            stats.critical += 1
        if not asset.tags:
            stats.untagged += 1
        if asset.created_at > cutoff:
            stats.recently_added += 1

        _bump(stats.by_type, asset.type)
        _bump(stats.by_criticality, asset.criticality)
        _bump(stats.by_status, asset.status)
        if asset.data_classification is not None:
            _bump(stats.by_data_classification, asset.data_classification)
        if asset.encryption_status is not None:
            _bump(stats.by_encryption_status, asset.encryption_status)

        privacy = asset.cybercorrect_data
        if privacy is not None:
            if privacy.gdpr_compliant:
                stats.privacy_compliant += 1
            if privacy.pia_completed:
                stats.with_pia += 1
        if asset.cross_border_transfer:
            stats.cross_border_transfer += 1
        if asset.third_party_sharing:
            stats.third_party_sharing += 1

    return stats


def safe_calculate_stats(
    assets: Iterable[Asset],
    now: datetime | None = None,
    recent_window: timedelta = RECENT_WINDOW,
) -> AssetStats:
    """Like calculate_stats, but a malformed record yields zeroed stats instead of an error."""
    try:
        return calculate_stats(assets, now=now, recent_window=recent_window)
    except Exception as e:
        logger.error('Stats calculation failed', error=str(e), exc_info=True)
        return AssetStats()
