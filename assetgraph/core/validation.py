"""Validation errors and import-record normalisation for AssetGraph."""
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

MAX_REPORTED_ERRORS = 10

# Column spellings accepted from spreadsheet and JSON exports, first match wins.
IMPORT_ALIASES: dict[str, tuple[str, ...]] = {
    'name': ('name', 'asset_name'),
    'description': ('description', 'desc'),
    'type': ('type', 'asset_type'),
    'owner': ('owner',),
    'ip_address': ('ip_address', 'ipAddress'),
    'criticality': ('criticality', 'criticality_level'),
    'data_classification': ('data_classification', 'classification', 'dataClassification'),
    'risk_score': ('risk_score', 'riskScore'),
    'compliance_frameworks': ('compliance_frameworks', 'complianceFrameworks'),
}
IMPORT_DEFAULTS: dict[str, Any] = {
    'type': 'Server',
    'category': 'hardware',
    'criticality': 'Medium',
    'data_classification': 'Internal',
    'status': 'Active',
    'risk_score': 0,
}


class AssetValidationError(ValueError):
    """Rejected input, carrying one human-readable reason per problem."""

    def __init__(self, reasons: list[str] | str):
        if isinstance(reasons, str):
            reasons = [reasons]
        self.reasons = list(reasons)
        super().__init__('; '.join(self.reasons))


def describe_validation_error(error: ValidationError) -> list[str]:
    """Flatten a pydantic error into ``field: message`` strings."""
    reasons = []
    for item in error.errors():
        location = '.'.join(str(part) for part in item.get('loc', ()))
        message = item.get('msg', 'invalid value')
        reasons.append(f"{location}: {message}" if location else message)
    return reasons


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def normalize_import_record(item: Mapping[str, Any]) -> dict[str, Any]:
    """
    Map an exported row onto draft field names.

    Alias columns are folded into their canonical field, blank values are
    dropped, and the defaults of the interactive import are filled in.
    ``name`` and ``owner`` are never defaulted so that missing values can be
    reported.
    """
    record = {k: v for k, v in item.items() if not _blank(v)}
    for field_name, aliases in IMPORT_ALIASES.items():
        for alias in aliases:
            if alias in record:
                value = record.pop(alias)
                record.setdefault(field_name, value)
    for field_name, default in IMPORT_DEFAULTS.items():
        record.setdefault(field_name, default)
    risk = record.get('risk_score')
    if isinstance(risk, str):
        try:
            record['risk_score'] = int(risk.strip())
        except ValueError:
            pass
    return record


def missing_required(record: Mapping[str, Any], row: int) -> list[str]:
    """
    Check the fields an import cannot default.

    Returns:
        A list of reasons, empty when the record may proceed.
    """
    reasons = []
    if _blank(record.get('name')):
        reasons.append(f"Row {row}: Missing asset name")
    if _blank(record.get('owner')):
        reasons.append(f"Row {row}: Missing owner")
    return reasons
