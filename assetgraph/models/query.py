from typing import Any
from typing import Literal

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import field_validator

from assetgraph.models.asset import Asset
from assetgraph.models.common import split_list
from assetgraph.models.common import Timestamp
from assetgraph.models.enums import AssetCategory
from assetgraph.models.enums import AssetStatus
from assetgraph.models.enums import canonical
from assetgraph.models.enums import Criticality
from assetgraph.models.enums import DataClassification
from assetgraph.models.enums import SortDirection


class DerivedFilters(BaseModel):
    """Structural predicates switched on by flag rather than by field value."""
    has_vulnerabilities: Literal['yes', 'no'] | None = Field(default=None, alias='hasVulnerabilities')
    missing_compliance: bool = Field(default=False, alias='missingCompliance')
    overdue_assessment: bool = Field(default=False, alias='overdueAssessment')
    multiple_frameworks: bool = Field(default=False, alias='multipleFrameworks')
    has_dependencies: bool = Field(default=False, alias='hasDependencies')
    isolated_assets: bool = Field(default=False, alias='isolatedAssets')
    critical_path_assets: bool = Field(default=False, alias='criticalPathAssets')
    created_after: Timestamp | None = Field(default=None, alias='createdAfter')
    last_assessed_before: Timestamp | None = Field(default=None, alias='lastAssessedBefore')

    model_config = ConfigDict(populate_by_name=True, extra='ignore')

    @field_validator('has_vulnerabilities', mode='before')
    @classmethod
    def parse_yes_no(cls, v: Any) -> Any:
        if v is True:
            return 'yes'
        if v is False or v == '':
            return None
        return v


class AssetFilters(BaseModel):
    search: str = ''
    types: list[str] = Field(default_factory=list)
    categories: list[AssetCategory] = Field(default_factory=list)
    criticalities: list[Criticality] = Field(default_factory=list)
    owners: list[str] = Field(default_factory=list)
    locations: list[str] = Field(default_factory=list)
    compliance_frameworks: list[str] = Field(default_factory=list, alias='complianceFrameworks')
    status: list[AssetStatus] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    risk_score_range: tuple[int, int] = Field(default=(0, 100), alias='riskScoreRange')
    data_classification: list[DataClassification] = Field(default_factory=list, alias='dataClassification')
    metadata: DerivedFilters = Field(default_factory=DerivedFilters)

    model_config = ConfigDict(populate_by_name=True, extra='forbid')

    @field_validator(
        'types', 'categories', 'criticalities', 'owners', 'locations',
        'compliance_frameworks', 'status', 'tags', 'data_classification',
        mode='before',
    )
    @classmethod
    def parse_list(cls, v: Any) -> Any:
        if v is None:
            return []
        return split_list(v)

    @field_validator('categories', mode='before')
    @classmethod
    def parse_categories(cls, v: list[Any]) -> list[AssetCategory]:
        return [canonical(AssetCategory, item) for item in v]

    @field_validator('criticalities', mode='before')
    @classmethod
    def parse_criticalities(cls, v: list[Any]) -> list[Criticality]:
        return [canonical(Criticality, item) for item in v]

    @field_validator('status', mode='before')
    @classmethod
    def parse_status(cls, v: list[Any]) -> list[AssetStatus]:
        return [canonical(AssetStatus, item) for item in v]

    @field_validator('data_classification', mode='before')
    @classmethod
    def parse_classification(cls, v: list[Any]) -> list[DataClassification]:
        return [canonical(DataClassification, item) for item in v]

    @field_validator('metadata', mode='before')
    @classmethod
    def none_metadata(cls, v: Any) -> Any:
        return v or {}

    @field_validator('risk_score_range')
    @classmethod
    def check_range(cls, v: tuple[int, int]) -> tuple[int, int]:
        low, high = v
        if not 0 <= low <= high <= 100:
            raise ValueError(f"risk score range must satisfy 0 <= min <= max <= 100, got {list(v)}")
        return v

    def merged(self, **changes: Any) -> 'AssetFilters':
        """Return a new, validated filter set with ``changes`` applied on top."""
        data = self.model_dump()
        for key, value in changes.items():
            name = _filter_field(key)
            if name == 'metadata' and isinstance(value, dict):
                value = {
                    **data['metadata'],
                    **DerivedFilters.model_validate(value).model_dump(exclude_unset=True),
                }
            data[name] = value
        return AssetFilters.model_validate(data)


def _filter_field(key: str) -> str:
    if key in AssetFilters.model_fields:
        return key
    for name, info in AssetFilters.model_fields.items():
        if info.alias == key:
            return name
    raise ValueError(f"Unknown filter: {key}")


def _sort_field(key: str) -> str:
    if key in Asset.model_fields:
        return key
    for name, info in Asset.model_fields.items():
        if info.alias == key:
            return name
    raise ValueError(f"Unknown sort key: {key}")


class SortConfig(BaseModel):
    """One active sort key at a time; ``key=None`` keeps collection order."""
    key: str | None = Field(default=None, alias='sortKey')
    direction: SortDirection = Field(default=SortDirection.ASC, alias='sortDirection')

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @field_validator('key')
    @classmethod
    def known_key(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return _sort_field(v)

    @field_validator('direction', mode='before')
    @classmethod
    def parse_direction(cls, v: Any) -> SortDirection:
        return canonical(SortDirection, v)


def toggle_sort(current: SortConfig, key: str) -> SortConfig:
    """Column-header behaviour: the same key flips asc to desc, any other key starts asc."""
    key = _sort_field(key)
    if current.key == key and current.direction == SortDirection.ASC:
        return SortConfig(key=key, direction=SortDirection.DESC)
    return SortConfig(key=key, direction=SortDirection.ASC)


class Pagination(BaseModel):
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=25, alias='pageSize', ge=1)

    model_config = ConfigDict(populate_by_name=True)

    def total_pages(self, item_count: int) -> int:
        return -(-item_count // self.page_size)

    def slice(self, items: list[Any]) -> list[Any]:
        start = (self.page - 1) * self.page_size
        return items[start:start + self.page_size]
