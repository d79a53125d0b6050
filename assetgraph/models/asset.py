from collections.abc import Mapping
from typing import Any
from typing import Literal

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import field_validator
from pydantic import ValidationError

from assetgraph.core.validation import AssetValidationError
from assetgraph.core.validation import describe_validation_error
from assetgraph.models.common import dedupe
from assetgraph.models.common import split_list
from assetgraph.models.common import Timestamp
from assetgraph.models.common import utcnow
from assetgraph.models.enums import AssetCategory
from assetgraph.models.enums import AssetStatus
from assetgraph.models.enums import BusinessValue
from assetgraph.models.enums import canonical
from assetgraph.models.enums import canonical_or_none
from assetgraph.models.enums import Criticality
from assetgraph.models.enums import DataClassification
from assetgraph.models.enums import DataFlowDirection
from assetgraph.models.enums import EncryptionStatus
from assetgraph.models.enums import VulnerabilitySeverity
from assetgraph.models.enums import VulnerabilityStatus
from assetgraph.models.extensions import ComponentExtension
from assetgraph.models.extensions import EXTENSION_MODELS
from assetgraph.models.extensions import ExtensionProduct
from assetgraph.models.extensions import PrivacyExtension
from assetgraph.models.extensions import VendorExtension

IMMUTABLE_FIELDS = frozenset({'id', 'organization_id', 'created_at'})
UNRESOLVED_STATUSES = frozenset({VulnerabilityStatus.OPEN, VulnerabilityStatus.IN_PROGRESS})


class Coordinates(BaseModel):
    latitude: float
    longitude: float


class AssetLocation(BaseModel):
    """Structured location; assets may also carry a plain string instead."""
    type: Literal['physical', 'logical', 'cloud', 'hybrid']
    address: str | None = None
    building: str | None = None
    room: str | None = None
    rack: str | None = None
    cloud_provider: str | None = Field(default=None, alias='cloudProvider')
    region: str | None = None
    subnet: str | None = None
    coordinates: Coordinates | None = None

    model_config = ConfigDict(populate_by_name=True, extra='ignore')


def location_text(location: AssetLocation | str | None) -> str:
    """Stringify a location for comparison and search."""
    if location is None:
        return ''
    if isinstance(location, str):
        return location
    return location.model_dump_json(exclude_none=True)


class Relationship(BaseModel):
    """Directed edge to another asset. The target is a weak id+name reference."""
    id: str = ''
    related_asset_id: str = Field(alias='relatedAssetId')
    related_asset_name: str = Field(default='', alias='relatedAssetName')
    relationship_type: str = Field(alias='relationshipType')
    strength: str = 'medium'
    data_flow_direction: DataFlowDirection | None = Field(default=None, alias='dataFlowDirection')
    is_personal_data: bool = Field(default=False, alias='isPersonalData')
    purpose: str = ''

    model_config = ConfigDict(populate_by_name=True, extra='ignore')

    @field_validator('data_flow_direction', mode='before')
    @classmethod
    def parse_direction(cls, v: Any) -> DataFlowDirection | None:
        return canonical_or_none(DataFlowDirection, v)

    @field_validator('related_asset_name', 'purpose', mode='before')
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return v or ''


class Dependency(BaseModel):
    id: str = ''
    dependent_asset_id: str = Field(alias='dependentAssetId')
    dependent_asset_name: str = Field(default='', alias='dependentAssetName')
    dependency_type: str = Field(alias='dependencyType')
    criticality: Criticality = Criticality.MEDIUM
    description: str = ''
    is_active: bool = Field(default=True, alias='isActive')
    last_validated: Timestamp | None = Field(default=None, alias='lastValidated')
    risk_level: Criticality | None = Field(default=None, alias='riskLevel')
    bidirectional: bool = False

    model_config = ConfigDict(populate_by_name=True, extra='ignore')

    @field_validator('criticality', mode='before')
    @classmethod
    def parse_criticality(cls, v: Any) -> Criticality:
        return canonical(Criticality, v)

    @field_validator('risk_level', mode='before')
    @classmethod
    def parse_risk_level(cls, v: Any) -> Criticality | None:
        return canonical_or_none(Criticality, v)

    @field_validator('dependent_asset_name', 'description', mode='before')
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return v or ''


class Vulnerability(BaseModel):
    id: str = ''
    cve_id: str | None = Field(default=None, alias='cveId')
    severity: VulnerabilitySeverity
    cvss_score: float | None = Field(default=None, alias='cvssScore', ge=0, le=10)
    title: str
    description: str = ''
    discovered_at: Timestamp = Field(alias='discoveredAt')
    status: VulnerabilityStatus = VulnerabilityStatus.OPEN

    model_config = ConfigDict(populate_by_name=True, extra='ignore')

    @field_validator('severity', mode='before')
    @classmethod
    def parse_severity(cls, v: Any) -> VulnerabilitySeverity:
        return canonical(VulnerabilitySeverity, v)

    @field_validator('status', mode='before')
    @classmethod
    def parse_status(cls, v: Any) -> VulnerabilityStatus:
        return canonical(VulnerabilityStatus, v)

    @property
    def is_unresolved(self) -> bool:
        return self.status in UNRESOLVED_STATUSES


class AssetDraft(BaseModel):
    """An asset as submitted for creation: everything except identity and timestamps."""
    organization_id: str = Field(default='', alias='organizationId')

    name: str
    description: str = ''
    type: str
    category: AssetCategory = AssetCategory.HARDWARE
    subcategory: str | None = None

    owner: str
    custodian: str | None = None
    location: AssetLocation | str = ''
    ip_address: str | None = Field(default=None, alias='ipAddress')

    criticality: Criticality = Criticality.MEDIUM
    data_classification: DataClassification | None = Field(default=None, alias='dataClassification')
    business_value: BusinessValue | None = Field(default=None, alias='businessValue')
    status: AssetStatus = AssetStatus.ACTIVE

    risk_score: int = Field(default=0, alias='riskScore', ge=0, le=100)
    compliance_frameworks: list[str] = Field(default_factory=list, alias='complianceFrameworks')
    tags: list[str] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)

    relationships: list[Relationship] = Field(default_factory=list)
    dependencies: list[Dependency] = Field(default_factory=list)
    vulnerabilities: list[Vulnerability] = Field(default_factory=list)

    data_types: list[str] = Field(default_factory=list, alias='dataTypes')
    retention_period: int | None = Field(default=None, alias='retentionPeriod', ge=0)
    legal_basis: list[str] = Field(default_factory=list, alias='legalBasis')
    data_subject_rights: list[str] = Field(default_factory=list, alias='dataSubjectRights')
    cross_border_transfer: bool = Field(default=False, alias='crossBorderTransfer')
    third_party_sharing: bool = Field(default=False, alias='thirdPartySharing')
    encryption_status: EncryptionStatus | None = Field(default=None, alias='encryptionStatus')

    last_assessed: Timestamp | None = Field(default=None, alias='lastAssessed')
    last_reviewed: Timestamp | None = Field(default=None, alias='lastReviewed')
    next_review: Timestamp | None = Field(default=None, alias='nextReview')

    technosoluce_data: ComponentExtension | None = None
    vendorsoluce_data: VendorExtension | None = None
    cybercorrect_data: PrivacyExtension | None = None

    model_config = ConfigDict(populate_by_name=True, extra='ignore')

    @field_validator('name', 'owner', 'type')
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError('must not be blank')
        return v

    @field_validator('description', mode='before')
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return v or ''

    @field_validator('location', mode='before')
    @classmethod
    def none_location(cls, v: Any) -> Any:
        return '' if v is None else v

    @field_validator('category', mode='before')
    @classmethod
    def parse_category(cls, v: Any) -> AssetCategory:
        return canonical_or_none(AssetCategory, v) or AssetCategory.HARDWARE

    @field_validator('criticality', mode='before')
    @classmethod
    def parse_criticality(cls, v: Any) -> Criticality:
        return canonical(Criticality, v)

    @field_validator('status', mode='before')
    @classmethod
    def parse_status(cls, v: Any) -> AssetStatus:
        return canonical(AssetStatus, v)

    @field_validator('data_classification', mode='before')
    @classmethod
    def parse_classification(cls, v: Any) -> DataClassification | None:
        return canonical_or_none(DataClassification, v)

    @field_validator('business_value', mode='before')
    @classmethod
    def parse_business_value(cls, v: Any) -> BusinessValue | None:
        return canonical_or_none(BusinessValue, v)

    @field_validator('encryption_status', mode='before')
    @classmethod
    def parse_encryption(cls, v: Any) -> EncryptionStatus | None:
        return canonical_or_none(EncryptionStatus, v)

    @field_validator(
        'compliance_frameworks', 'tags', 'data_types', 'legal_basis',
        'data_subject_rights', mode='before',
    )
    @classmethod
    def parse_list(cls, v: Any) -> Any:
        if v is None:
            return []
        return split_list(v)

    @field_validator('compliance_frameworks', 'tags')
    @classmethod
    def as_set(cls, v: list[str]) -> list[str]:
        return dedupe(v)

    @field_validator('metadata', mode='before')
    @classmethod
    def none_metadata(cls, v: Any) -> Any:
        return v or {}

    @property
    def location_text(self) -> str:
        return location_text(self.location)

    def extension(self, product: ExtensionProduct | str) -> BaseModel | None:
        """Read one product extension; None means the product has no data for this asset."""
        return getattr(self, ExtensionProduct(product).field_name)

    def to_record(self) -> dict[str, Any]:
        """JSON-safe dict; unset optionals (including absent extensions) are omitted."""
        return self.model_dump(mode='json', exclude_none=True)


class Asset(AssetDraft):
    id: str = Field(frozen=True)
    created_at: Timestamp = Field(alias='createdAt')
    updated_at: Timestamp = Field(alias='updatedAt')

    def with_extension(self, product: ExtensionProduct | str, data: Mapping[str, Any] | BaseModel | None) -> 'Asset':
        """Return a copy with one product extension replaced (or removed with None)."""
        product = ExtensionProduct(product)
        if data is not None and not isinstance(data, BaseModel):
            data = EXTENSION_MODELS[product].model_validate(data)
        return self.model_copy(update={product.field_name: data})


def _field_name(key: str) -> str | None:
    if key in Asset.model_fields:
        return key
    for name, info in Asset.model_fields.items():
        if info.alias == key:
            return name
    return None


def apply_patch(asset: Asset, patch: Mapping[str, Any]) -> Asset:
    """
    Apply a partial field update and return the new, validated asset.

    Edge collections named in the patch replace the existing ones wholesale.
    Identity fields cannot be patched; ``updated_at`` is bumped unless given.

    Raises:
        AssetValidationError: unknown or immutable keys, or invalid values.
    """
    reasons = []
    changes: dict[str, Any] = {}
    for key, value in patch.items():
        name = _field_name(key)
        if name is None:
            reasons.append(f"Unknown field: {key}")
        elif name in IMMUTABLE_FIELDS:
            reasons.append(f"Field is immutable: {name}")
        else:
            changes[name] = value
    if reasons:
        raise AssetValidationError(reasons)

    data = asset.model_dump()
    data.update(changes)
    if 'updated_at' not in changes:
        data['updated_at'] = utcnow()
    try:
        return Asset.model_validate(data)
    except ValidationError as e:
        raise AssetValidationError(describe_validation_error(e)) from e
