"""
Single-key, type-aware ordering of assets.

Ordering rules, in priority order:

* ``None`` always sorts last. The direction multiplier is applied only to
  comparisons between two present values, so a descending sort still puts
  missing values at the end rather than the start.
* datetimes compare by instant, numbers numerically, lists and tuples by
  length only. Strings are case-folded, then collated with the process
  LC_COLLATE, which stays code-point order until ``use_system_collation``
  runs.
* anything else is compared as its ``str()`` through the string rule.

Python's sort is stable, so ties keep their input order.
"""
import functools
import locale
from collections.abc import Iterable
from datetime import datetime
from enum import Enum
from typing import Any

import structlog

from assetgraph.models.asset import Asset
from assetgraph.models.enums import SortDirection
from assetgraph.models.query import SortConfig

logger = structlog.get_logger('sorting')


def use_system_collation() -> bool:
    """Switch string ordering to the collation of the user's locale (LC_COLLATE)."""
    try:
        locale.setlocale(locale.LC_COLLATE, '')
    except locale.Error as e:
        logger.warning('Locale collation unavailable, using code-point order', error=str(e))
        return False
    return True


def _sign(value: float) -> int:
    return (value > 0) - (value < 0)


def _compare_text(a: str, b: str) -> int:
    result = locale.strcoll(a.casefold(), b.casefold())
    if result == 0:
        result = locale.strcoll(a, b)
    return _sign(result)


def compare_values(a: Any, b: Any) -> int:
    """Compare two present values; returns -1, 0 or 1."""
    if isinstance(a, datetime) and isinstance(b, datetime):
        return _sign((a - b).total_seconds())
    if isinstance(a, Enum):
        a = a.value
    if isinstance(b, Enum):
        b = b.value
    if isinstance(a, str) and isinstance(b, str):
        return _compare_text(a, b)
    if isinstance(a, (int, float)) and isinstance(b, (int, float)):
        return _sign(a - b)
    if isinstance(a, (list, tuple)) and isinstance(b, (list, tuple)):
        return _sign(len(a) - len(b))
    return _compare_text(str(a), str(b))


def sort_assets(assets: Iterable[Asset], sort: SortConfig) -> list[Asset]:
    """Return a new list ordered by ``sort``; without a key the input order is kept."""
    items = list(assets)
    if sort.key is None:
        return items

    key = sort.key
    multiplier = -1 if sort.direction == SortDirection.DESC else 1

    def compare(left: Asset, right: Asset) -> int:
        a = getattr(left, key, None)
        b = getattr(right, key, None)
        if a is None and b is None:
            return 0
        if a is None:
            return 1
        if b is None:
            return -1
        return compare_values(a, b) * multiplier

    return sorted(items, key=functools.cmp_to_key(compare))
