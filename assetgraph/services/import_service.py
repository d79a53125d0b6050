from collections.abc import Iterable
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any
from typing import TYPE_CHECKING

import structlog
from pydantic import ValidationError

from assetgraph.core.repository import StoreError
from assetgraph.core.stats import BatchResult
from assetgraph.core.validation import describe_validation_error
from assetgraph.core.validation import missing_required
from assetgraph.core.validation import normalize_import_record
from assetgraph.models.asset import AssetDraft

if TYPE_CHECKING:
    from assetgraph.services.asset_service import AssetStore

logger = structlog.get_logger('import_service')


@dataclass
class ImportResult(BatchResult):
    @property
    def success(self) -> int:
        return self.succeeded


class ImportService:
    """Create assets one by one from exported records, collecting per-row failures."""

    def __init__(self, store: 'AssetStore', organization_id: str | None = None):
        self.store = store
        self.organization_id = organization_id

    def import_records(self, records: Iterable[Mapping[str, Any]]) -> ImportResult:
        result = ImportResult()
        for row, item in enumerate(records, 1):
            result.total += 1
            record = normalize_import_record(item)

            reasons = missing_required(record, row)
            if reasons:
                result.inc_failed()
                for reason in reasons:
                    result.add_error(reason)
                continue

            try:
                draft = AssetDraft.model_validate(record)
            except ValidationError as e:
                result.inc_failed()
                for reason in describe_validation_error(e):
                    result.add_error(f"Row {row}: {reason}")
                continue

            try:
                self.store.create_asset(draft, self.organization_id)
            except (StoreError, ValueError) as e:
                result.inc_failed()
                result.add_error(f"Row {row}: {e}")
                logger.warning('Import row failed', row=row, error=str(e))
                continue
            result.inc_succeeded()

        logger.info(
            'Import finished',
            total=result.total, succeeded=result.succeeded, failed=result.failed,
            elapsed=f"{result.elapsed_time:.2f}s",
        )
        return result
