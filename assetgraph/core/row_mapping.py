"""Translation between Asset models and flat store rows."""
import json
import uuid
from collections.abc import Mapping
from datetime import datetime
from datetime import timezone
from typing import Any

from pydantic import BaseModel

from assetgraph.models.asset import Asset
from assetgraph.models.asset import AssetDraft
from assetgraph.models.asset import Dependency
from assetgraph.models.asset import Relationship
from assetgraph.models.asset import Vulnerability
from assetgraph.models.common import utcnow

ASSET_COLUMNS = [
    'id', 'organization_id', 'name', 'description', 'type', 'category', 'subcategory',
    'owner', 'custodian', 'location', 'ip_address', 'criticality', 'data_classification',
    'business_value', 'status', 'risk_score', 'compliance_frameworks', 'data_types',
    'retention_period', 'legal_basis', 'data_subject_rights', 'cross_border_transfer',
    'third_party_sharing', 'encryption_status', 'tags', 'metadata',
    'technosoluce_data', 'vendorsoluce_data', 'cybercorrect_data',
    'created_at', 'updated_at', 'last_assessed', 'last_reviewed', 'next_review',
]
RELATIONSHIP_COLUMNS = [
    'id', 'source_asset_id', 'target_asset_id', 'relationship_type', 'strength',
    'data_flow_direction', 'is_personal_data', 'purpose',
]
DEPENDENCY_COLUMNS = [
    'id', 'asset_id', 'dependent_asset_id', 'dependency_type', 'criticality',
    'description', 'is_active', 'last_validated', 'risk_level', 'bidirectional',
]
VULNERABILITY_COLUMNS = [
    'id', 'asset_id', 'cve_id', 'severity', 'cvss_score', 'title', 'description',
    'discovered_at', 'status',
]
EXTENSION_COLUMNS = ('technosoluce_data', 'vendorsoluce_data', 'cybercorrect_data')
EDGE_FIELDS = ('relationships', 'dependencies', 'vulnerabilities')


def new_id() -> str:
    return str(uuid.uuid4())


def _enum_value(value: Any) -> Any:
    return None if value is None else str(value)


def _naive_utc(value: datetime | None) -> datetime | None:
    """ClickHouse columns are declared UTC; send wall-clock UTC without tzinfo."""
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.replace(tzinfo=None)


def _json_or_none(model: BaseModel | None) -> str | None:
    if model is None:
        return None
    return model.model_dump_json(exclude_none=True)


def assign_edge_ids(draft: AssetDraft) -> AssetDraft:
    """Give every edge and finding without an id a fresh one."""
    updates = {}
    for field_name in EDGE_FIELDS:
        items = getattr(draft, field_name)
        if any(not item.id for item in items):
            updates[field_name] = [
                item if item.id else item.model_copy(update={'id': new_id()})
                for item in items
            ]
    return draft.model_copy(update=updates) if updates else draft


def map_asset_to_row(
    draft: AssetDraft,
    asset_id: str,
    organization_id: str | None = None,
    created_at: datetime | None = None,
    updated_at: datetime | None = None,
) -> list[Any]:
    """Flatten a draft (or asset) into a row ordered as ASSET_COLUMNS."""
    created_at = created_at or utcnow()
    updated_at = updated_at or created_at
    location = draft.location
    if not isinstance(location, str):
        location = location.model_dump_json(exclude_none=True)

    return [
        asset_id,
        organization_id if organization_id is not None else draft.organization_id,
        draft.name,
        draft.description,
        draft.type,
        _enum_value(draft.category),
        draft.subcategory,
        draft.owner,
        draft.custodian,
        location,
        draft.ip_address,
        _enum_value(draft.criticality),
        _enum_value(draft.data_classification),
        _enum_value(draft.business_value),
        _enum_value(draft.status),
        draft.risk_score,
        list(draft.compliance_frameworks),
        list(draft.data_types),
        draft.retention_period,
        list(draft.legal_basis),
        list(draft.data_subject_rights),
        draft.cross_border_transfer,
        draft.third_party_sharing,
        _enum_value(draft.encryption_status),
        list(draft.tags),
        json.dumps(draft.metadata, default=str),
        _json_or_none(draft.technosoluce_data),
        _json_or_none(draft.vendorsoluce_data),
        _json_or_none(draft.cybercorrect_data),
        _naive_utc(created_at),
        _naive_utc(updated_at),
        _naive_utc(draft.last_assessed),
        _naive_utc(draft.last_reviewed),
        _naive_utc(draft.next_review),
    ]


def relationship_rows(asset_id: str, relationships: list[Relationship]) -> list[list[Any]]:
    return [
        [
            rel.id or new_id(), asset_id, rel.related_asset_id, rel.relationship_type,
            rel.strength, _enum_value(rel.data_flow_direction), rel.is_personal_data,
            rel.purpose,
        ]
        for rel in relationships
    ]


def dependency_rows(asset_id: str, dependencies: list[Dependency]) -> list[list[Any]]:
    return [
        [
            dep.id or new_id(), asset_id, dep.dependent_asset_id, dep.dependency_type,
            _enum_value(dep.criticality), dep.description, dep.is_active,
            _naive_utc(dep.last_validated), _enum_value(dep.risk_level), dep.bidirectional,
        ]
        for dep in dependencies
    ]


def vulnerability_rows(asset_id: str, vulnerabilities: list[Vulnerability]) -> list[list[Any]]:
    return [
        [
            vuln.id or new_id(), asset_id, vuln.cve_id, _enum_value(vuln.severity),
            vuln.cvss_score, vuln.title, vuln.description,
            _naive_utc(vuln.discovered_at), _enum_value(vuln.status),
        ]
        for vuln in vulnerabilities
    ]


def _parse_location(value: str | None) -> Any:
    if not value:
        return ''
    if value.startswith('{'):
        try:
            parsed = json.loads(value)
        except json.JSONDecodeError:
            return value
        if isinstance(parsed, dict):
            return parsed
    return value


def _parse_json(value: str | None) -> Any:
    if not value:
        return None
    return json.loads(value)


def map_row_to_relationship(row: Mapping[str, Any]) -> Relationship:
    return Relationship(
        id=row['id'],
        related_asset_id=row['target_asset_id'],
        related_asset_name=row.get('target_name') or '',
        relationship_type=row['relationship_type'],
        strength=row.get('strength') or 'medium',
        data_flow_direction=row.get('data_flow_direction'),
        is_personal_data=bool(row.get('is_personal_data')),
        purpose=row.get('purpose') or '',
    )


def map_row_to_dependency(row: Mapping[str, Any]) -> Dependency:
    return Dependency(
        id=row['id'],
        dependent_asset_id=row['dependent_asset_id'],
        dependent_asset_name=row.get('dependent_name') or '',
        dependency_type=row['dependency_type'],
        criticality=row['criticality'],
        description=row.get('description') or '',
        is_active=bool(row.get('is_active')),
        last_validated=row.get('last_validated'),
        risk_level=row.get('risk_level'),
        bidirectional=bool(row.get('bidirectional')),
    )


def map_row_to_vulnerability(row: Mapping[str, Any]) -> Vulnerability:
    return Vulnerability(
        id=row['id'],
        cve_id=row.get('cve_id') or None,
        severity=row['severity'],
        cvss_score=row.get('cvss_score'),
        title=row['title'],
        description=row.get('description') or '',
        discovered_at=row['discovered_at'],
        status=row['status'],
    )


def map_row_to_asset(
    row: Mapping[str, Any],
    relationships: list[Relationship] | None = None,
    dependencies: list[Dependency] | None = None,
    vulnerabilities: list[Vulnerability] | None = None,
) -> Asset:
    """
    Build an Asset from an asset row plus its already-mapped edges.

    Extension columns that are NULL or empty stay absent on the asset.
    """
    data = {column: row.get(column) for column in ASSET_COLUMNS}
    data['location'] = _parse_location(data['location'])
    data['metadata'] = _parse_json(data['metadata']) or {}
    for column in EXTENSION_COLUMNS:
        data[column] = _parse_json(data[column])
    data['relationships'] = relationships or []
    data['dependencies'] = dependencies or []
    data['vulnerabilities'] = vulnerabilities or []
    return Asset.model_validate(data)
