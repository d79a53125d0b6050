import time
from dataclasses import dataclass
from dataclasses import field

from assetgraph.core.validation import MAX_REPORTED_ERRORS


@dataclass
class BaseStats:
    """Counters shared by batch operations."""
    total: int = 0
    succeeded: int = 0
    failed: int = 0
    start_time: float = field(default_factory=time.time)

    def inc_succeeded(self, count: int = 1):
        self.succeeded += count

    def inc_failed(self, count: int = 1):
        self.failed += count

    @property
    def elapsed_time(self) -> float:
        return time.time() - self.start_time


@dataclass
class BatchResult(BaseStats):
    """Counts plus the first few per-item failure reasons."""
    errors: list[str] = field(default_factory=list)

    def add_error(self, reason: str) -> None:
        # Only the first few reasons are kept for display; counts stay exact.
        if len(self.errors) < MAX_REPORTED_ERRORS:
            self.errors.append(reason)
