"""Rich styles and human-readable dates for asset tables."""
from datetime import datetime

from assetgraph.models.common import utcnow
from assetgraph.models.enums import AssetStatus
from assetgraph.models.enums import Criticality
from assetgraph.models.enums import DataClassification

DEFAULT_STYLE = 'dim'

CRITICALITY_STYLES = {
    Criticality.CRITICAL: 'bold red',
    Criticality.HIGH: 'dark_orange',
    Criticality.MEDIUM: 'yellow',
    Criticality.LOW: 'green',
}
STATUS_STYLES = {
    AssetStatus.ACTIVE: 'green',
    AssetStatus.INACTIVE: 'yellow',
    AssetStatus.RETIRED: 'dim',
    AssetStatus.DISPOSED: 'dim',
    AssetStatus.DECOMMISSIONED: 'dim',
    AssetStatus.PLANNED: 'blue',
    AssetStatus.MAINTENANCE: 'magenta',
    AssetStatus.QUARANTINED: 'red',
}
CLASSIFICATION_STYLES = {
    DataClassification.PUBLIC: 'green',
    DataClassification.INTERNAL: 'blue',
    DataClassification.CONFIDENTIAL: 'dark_orange',
    DataClassification.RESTRICTED: 'red',
    DataClassification.TOP_SECRET: 'bold red',
}


def criticality_style(value: Criticality | None) -> str:
    return CRITICALITY_STYLES.get(value, DEFAULT_STYLE)


def status_style(value: AssetStatus | None) -> str:
    return STATUS_STYLES.get(value, DEFAULT_STYLE)


def classification_style(value: DataClassification | None) -> str:
    return CLASSIFICATION_STYLES.get(value, DEFAULT_STYLE)


def risk_score_style(score: int) -> str:
    if score >= 80:
        return 'bold red'
    if score >= 60:
        return 'dark_orange'
    if score >= 40:
        return 'yellow'
    return 'green'


def format_date(value: datetime | None) -> str:
    if value is None:
        return 'N/A'
    return value.strftime('%b %d, %Y')


def relative_time(value: datetime | None, now: datetime | None = None) -> str:
    """Coarse age of a timestamp, e.g. ``3 weeks ago``."""
    if value is None:
        return 'N/A'
    days = ((now or utcnow()) - value).days
    if days <= 0:
        return 'Today'
    if days == 1:
        return 'Yesterday'
    if days < 7:
        return f"{days} days ago"
    if days < 30:
        return f"{days // 7} weeks ago"
    if days < 365:
        return f"{days // 30} months ago"
    return f"{days // 365} years ago"
