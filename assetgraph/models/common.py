from collections.abc import Iterable
from datetime import datetime
from datetime import timezone
from typing import Annotated

from pydantic import AfterValidator


def ensure_utc(value: datetime) -> datetime:
    """Naive datetimes are taken to be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


Timestamp = Annotated[datetime, AfterValidator(ensure_utc)]


def dedupe(values: Iterable[str]) -> list[str]:
    """Collapse duplicates and blanks, keeping first-seen order for display."""
    seen: set[str] = set()
    result = []
    for value in values:
        value = value.strip()
        if value and value not in seen:
            seen.add(value)
            result.append(value)
    return result


def split_list(value: object) -> object:
    """Accept ``"a, b"`` as well as ``["a", "b"]`` for list fields."""
    if isinstance(value, str):
        return [part for part in value.split(',')]
    return value
