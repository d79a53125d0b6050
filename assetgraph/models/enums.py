from enum import Enum
from typing import Any
from typing import TypeVar

E = TypeVar('E', bound='CanonicalEnum')

# Spellings from the older naming convention that do not reduce to the
# canonical value by case and separator folding alone.
_ALIASES: dict[str, dict[str, str]] = {
    'VulnerabilityStatus': {
        'accepted-risk': 'accepted',
        'risk-accepted': 'accepted',
        'inprogress': 'in-progress',
    },
    'DataClassification': {
        'topsecret': 'top-secret',
    },
}


def _fold(value: str) -> str:
    return '-'.join(value.strip().lower().replace('_', ' ').split())


class CanonicalEnum(str, Enum):
    """
    String enum accepting every historical spelling of its values.

    ``Criticality('Critical')``, ``Criticality('critical')`` and
    ``Criticality(' CRITICAL ')`` all resolve to ``Criticality.CRITICAL``.
    """

    @classmethod
    def _missing_(cls, value: Any):
        if not isinstance(value, str):
            return None
        key = _fold(value)
        key = _ALIASES.get(cls.__name__, {}).get(key, key)
        for member in cls:
            if member.value == key:
                return member
        return None

    def __str__(self) -> str:
        return self.value

    def __repr__(self) -> str:
        return self.value


class Criticality(CanonicalEnum):
    CRITICAL = 'critical'
    HIGH = 'high'
    MEDIUM = 'medium'
    LOW = 'low'


class AssetStatus(CanonicalEnum):
    ACTIVE = 'active'
    INACTIVE = 'inactive'
    RETIRED = 'retired'
    PLANNED = 'planned'
    DISPOSED = 'disposed'
    MAINTENANCE = 'maintenance'
    QUARANTINED = 'quarantined'
    DECOMMISSIONED = 'decommissioned'


class DataClassification(CanonicalEnum):
    PUBLIC = 'public'
    INTERNAL = 'internal'
    CONFIDENTIAL = 'confidential'
    RESTRICTED = 'restricted'
    TOP_SECRET = 'top-secret'


class AssetCategory(CanonicalEnum):
    HARDWARE = 'hardware'
    SOFTWARE = 'software'
    DATA = 'data'
    PERSONNEL = 'personnel'
    FACILITIES = 'facilities'
    SERVICES = 'services'
    DOCUMENTS = 'documents'
    INTELLECTUAL_PROPERTY = 'intellectual-property'
    VENDOR = 'vendor'
    PROCESS = 'process'


class BusinessValue(CanonicalEnum):
    MISSION_CRITICAL = 'mission-critical'
    BUSINESS_IMPORTANT = 'business-important'
    OPERATIONAL = 'operational'
    DEVELOPMENTAL = 'developmental'
    ADMINISTRATIVE = 'administrative'


class EncryptionStatus(CanonicalEnum):
    ENCRYPTED = 'encrypted'
    NOT_ENCRYPTED = 'not-encrypted'
    PARTIALLY_ENCRYPTED = 'partially-encrypted'
    UNKNOWN = 'unknown'


class VulnerabilitySeverity(CanonicalEnum):
    CRITICAL = 'critical'
    HIGH = 'high'
    MEDIUM = 'medium'
    LOW = 'low'
    INFORMATIONAL = 'informational'


class VulnerabilityStatus(CanonicalEnum):
    OPEN = 'open'
    IN_PROGRESS = 'in-progress'
    RESOLVED = 'resolved'
    ACCEPTED = 'accepted'
    FALSE_POSITIVE = 'false-positive'


class DataFlowDirection(CanonicalEnum):
    INBOUND = 'inbound'
    OUTBOUND = 'outbound'
    BIDIRECTIONAL = 'bidirectional'
    NONE = 'none'


class SortDirection(CanonicalEnum):
    ASC = 'asc'
    DESC = 'desc'


def canonical(enum_cls: type[E], value: Any) -> E:
    """Resolve ``value`` to a member of ``enum_cls``; raise ValueError if unknown."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        accepted = ', '.join(member.value for member in enum_cls)
        raise ValueError(
            f"Unknown {enum_cls.__name__} {value!r} (accepted: {accepted})",
        ) from None


def canonical_or_none(enum_cls: type[E], value: Any) -> E | None:
    if value is None or value == '':
        return None
    return canonical(enum_cls, value)
