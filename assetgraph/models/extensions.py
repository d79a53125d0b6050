"""
Product extensions attached to an asset.

Each product owns one optional record with its own shape and its own
``schema_version``; the base asset schema never widens to accommodate them.
"""
from enum import Enum
from typing import Literal

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field

from assetgraph.models.common import Timestamp

Level = Literal['Critical', 'High', 'Medium', 'Low']


class ExtensionProduct(str, Enum):
    TECHNOSOLUCE = 'technosoluce'
    VENDORSOLUCE = 'vendorsoluce'
    CYBERCORRECT = 'cybercorrect'

    def __str__(self) -> str:
        return self.value

    @property
    def field_name(self) -> str:
        return f"{self.value}_data"


class _Extension(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra='ignore')


# -- TechnoSoluce: software component intelligence --

class License(_Extension):
    id: str
    name: str
    spdx_id: str | None = Field(default=None, alias='spdxId')
    url: str | None = None
    is_osi_approved: bool | None = Field(default=None, alias='isOsiApproved')


class ComponentVulnerability(_Extension):
    id: str
    cve_id: str | None = Field(default=None, alias='cveId')
    ghsa_id: str | None = Field(default=None, alias='ghsaId')
    severity: Level
    cvss_score: float | None = Field(default=None, alias='cvssScore', ge=0, le=10)
    title: str
    description: str = ''
    affected_versions: list[str] = Field(default_factory=list, alias='affectedVersions')
    fixed_versions: list[str] = Field(default_factory=list, alias='fixedVersions')
    status: Literal['Open', 'In Progress', 'Resolved', 'Accepted Risk'] = 'Open'


class ComponentDependency(_Extension):
    id: str
    name: str
    version: str
    type: Literal['direct', 'transitive'] = 'direct'
    purl: str | None = None


class ComponentExtension(_Extension):
    schema_version: int = 1
    sbom_format: Literal['SPDX', 'CycloneDX', 'SWID'] | None = Field(default=None, alias='sbomFormat')
    purl: str | None = None
    component_name: str | None = Field(default=None, alias='componentName')
    component_version: str | None = Field(default=None, alias='componentVersion')
    component_type: str | None = Field(default=None, alias='componentType')
    licenses: list[License] = Field(default_factory=list)
    vulnerabilities: list[ComponentVulnerability] = Field(default_factory=list)
    dependencies: list[ComponentDependency] = Field(default_factory=list)
    component_risk_score: float | None = Field(default=None, alias='componentRiskScore', ge=0, le=10)
    end_of_life: bool | None = Field(default=None, alias='endOfLife')
    end_of_life_date: Timestamp | None = Field(default=None, alias='endOfLifeDate')
    patch_available: bool | None = Field(default=None, alias='patchAvailable')
    last_scanned: Timestamp | None = Field(default=None, alias='lastScanned')
    scan_source: str | None = Field(default=None, alias='scanSource')

    @property
    def critical_vulnerability_count(self) -> int:
        return sum(1 for v in self.vulnerabilities if v.severity == 'Critical')


# -- VendorSoluce: vendor risk management --

class Certification(_Extension):
    id: str
    name: str
    type: str = ''
    issuer: str = ''
    issue_date: Timestamp | None = Field(default=None, alias='issueDate')
    expiration_date: Timestamp | None = Field(default=None, alias='expirationDate')
    status: Literal['Valid', 'Expired', 'Pending'] = 'Valid'


class FourthPartyVendor(_Extension):
    id: str
    name: str
    service: str = ''
    risk_level: Level = Field(default='Medium', alias='riskLevel')


class VendorExtension(_Extension):
    schema_version: int = 1
    vendor_name: str = Field(alias='vendorName')
    vendor_id: str | None = Field(default=None, alias='vendorId')
    vendor_type: Literal['Software', 'Cloud', 'Hardware', 'Services', 'Consulting'] | None = Field(
        default=None, alias='vendorType',
    )
    contract_value: float | None = Field(default=None, alias='contractValue', ge=0)
    contract_currency: str | None = Field(default=None, alias='contractCurrency')
    contract_start_date: Timestamp | None = Field(default=None, alias='contractStartDate')
    contract_end_date: Timestamp | None = Field(default=None, alias='contractEndDate')
    contract_renewal_date: Timestamp | None = Field(default=None, alias='contractRenewalDate')
    contract_status: Literal['Active', 'Expiring', 'Expired', 'Terminated'] | None = Field(
        default=None, alias='contractStatus',
    )
    risk_assessment_score: float | None = Field(default=None, alias='riskAssessmentScore', ge=0, le=100)
    risk_level: Level | None = Field(default=None, alias='riskLevel')
    last_risk_assessment: Timestamp | None = Field(default=None, alias='lastRiskAssessment')
    next_risk_assessment: Timestamp | None = Field(default=None, alias='nextRiskAssessment')
    certifications: list[Certification] = Field(default_factory=list)
    soc2_type: Literal['Type I', 'Type II'] | None = Field(default=None, alias='soc2Type')
    iso27001: bool | None = None
    gdpr_compliant: bool | None = Field(default=None, alias='gdprCompliant')
    data_processing_role: Literal['controller', 'processor', 'joint-controller'] | None = Field(
        default=None, alias='dataProcessingRole',
    )
    data_processing_agreement: bool | None = Field(default=None, alias='dataProcessingAgreement')
    esg_score: float | None = Field(default=None, alias='esgScore', ge=0, le=100)
    fourth_party_vendors: list[FourthPartyVendor] = Field(default_factory=list, alias='fourthPartyVendors')
    fourth_party_risk_score: float | None = Field(default=None, alias='fourthPartyRiskScore')
    relationship_manager: str | None = Field(default=None, alias='relationshipManager')
    support_level: Literal['Basic', 'Standard', 'Premium', 'Enterprise'] | None = Field(
        default=None, alias='supportLevel',
    )


# -- CyberCorrect: privacy compliance --

class PrivacyExtension(_Extension):
    schema_version: int = 1
    contains_personal_data: bool = Field(alias='containsPersonalData')
    personal_data_types: list[str] = Field(default_factory=list, alias='personalDataTypes')
    sensitive_personal_data: bool | None = Field(default=None, alias='sensitivePersonalData')
    processing_purposes: list[str] = Field(default_factory=list, alias='processingPurposes')
    legal_basis: list[str] = Field(default_factory=list, alias='legalBasis')
    retention_period: int | None = Field(default=None, alias='retentionPeriod', ge=0)
    gdpr_compliant: bool | None = Field(default=None, alias='gdprCompliant')
    ccpa_compliant: bool | None = Field(default=None, alias='ccpaCompliant')
    hipaa_compliant: bool | None = Field(default=None, alias='hipaaCompliant')
    pia_required: bool | None = Field(default=None, alias='piaRequired')
    pia_completed: bool | None = Field(default=None, alias='piaCompleted')
    pia_date: Timestamp | None = Field(default=None, alias='piaDate')
    pia_status: Literal['Draft', 'Under Review', 'Approved', 'Needs Update'] | None = Field(
        default=None, alias='piaStatus',
    )
    breach_risk_score: float | None = Field(default=None, alias='breachRiskScore', ge=0, le=100)
    requires_consent: bool | None = Field(default=None, alias='requiresConsent')
    consent_obtained: bool | None = Field(default=None, alias='consentObtained')
    cross_border_transfer: bool | None = Field(default=None, alias='crossBorderTransfer')
    transfer_mechanism: Literal['Adequacy Decision', 'SCCs', 'BCRs', 'Derogations'] | None = Field(
        default=None, alias='transferMechanism',
    )
    transfer_destinations: list[str] = Field(default_factory=list, alias='transferDestinations')


EXTENSION_MODELS: dict[ExtensionProduct, type[BaseModel]] = {
    ExtensionProduct.TECHNOSOLUCE: ComponentExtension,
    ExtensionProduct.VENDORSOLUCE: VendorExtension,
    ExtensionProduct.CYBERCORRECT: PrivacyExtension,
}
