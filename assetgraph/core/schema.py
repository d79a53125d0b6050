# Table names are filled in from DatabaseConfig with str.format.
ASSETS_DDL = """
CREATE TABLE IF NOT EXISTS {table} (
    id String COMMENT 'Asset ID (UUID)',
    organization_id LowCardinality(String) DEFAULT '' COMMENT 'Owning Organization',
    name String COMMENT 'Asset Name',
    description String DEFAULT '' COMMENT 'Free-text Description',
    type LowCardinality(String) COMMENT 'Asset Type',
    category LowCardinality(String) DEFAULT 'hardware' COMMENT 'Asset Category',
    subcategory Nullable(String) COMMENT 'Asset Subcategory',
    owner String COMMENT 'Accountable Owner',
    custodian Nullable(String) COMMENT 'Day-to-day Custodian',
    location String DEFAULT '' COMMENT 'Plain-text location or structured location as JSON',
    ip_address Nullable(String) COMMENT 'IP Address',
    criticality LowCardinality(String) COMMENT 'Criticality Level',
    data_classification LowCardinality(Nullable(String)) COMMENT 'Data Classification',
    business_value LowCardinality(Nullable(String)) COMMENT 'Business Value',
    status LowCardinality(String) COMMENT 'Lifecycle Status',
    risk_score UInt8 DEFAULT 0 COMMENT 'Risk Score (0-100)',
    compliance_frameworks Array(LowCardinality(String)) COMMENT 'Compliance Framework Labels',
    data_types Array(LowCardinality(String)) COMMENT 'Data Types Held (PII, PHI, ...)',
    retention_period Nullable(UInt32) COMMENT 'Retention Period in Days',
    legal_basis Array(String) COMMENT 'GDPR Legal Basis',
    data_subject_rights Array(String) COMMENT 'Supported Data Subject Rights',
    cross_border_transfer Bool DEFAULT false COMMENT 'Data Leaves the Jurisdiction',
    third_party_sharing Bool DEFAULT false COMMENT 'Data Shared with Third Parties',
    encryption_status LowCardinality(Nullable(String)) COMMENT 'Encryption Status',
    tags Array(String) COMMENT 'Free-form Tags',
    metadata String DEFAULT '{{}}' COMMENT 'Metadata Bag as JSON',
    technosoluce_data Nullable(String) COMMENT 'Component Extension as JSON',
    vendorsoluce_data Nullable(String) COMMENT 'Vendor Extension as JSON',
    cybercorrect_data Nullable(String) COMMENT 'Privacy Extension as JSON',
    created_at DateTime64(3, 'UTC') COMMENT 'Creation Time',
    updated_at DateTime64(3, 'UTC') COMMENT 'Last Updated Time',
    last_assessed Nullable(DateTime64(3, 'UTC')) COMMENT 'Last Assessment Time',
    last_reviewed Nullable(DateTime64(3, 'UTC')) COMMENT 'Last Review Time',
    next_review Nullable(DateTime64(3, 'UTC')) COMMENT 'Next Scheduled Review'
) ENGINE = ReplacingMergeTree(updated_at)
ORDER BY (id)
""".strip()

RELATIONSHIPS_DDL = """
CREATE TABLE IF NOT EXISTS {table} (
    id String COMMENT 'Relationship ID',
    source_asset_id String COMMENT 'Owning (source) Asset ID',
    target_asset_id String COMMENT 'Referenced Asset ID',
    relationship_type LowCardinality(String) COMMENT 'Relationship Kind',
    strength LowCardinality(String) DEFAULT 'medium' COMMENT 'Strength / Confidence',
    data_flow_direction LowCardinality(Nullable(String)) COMMENT 'Data Flow Direction',
    is_personal_data Bool DEFAULT false COMMENT 'Carries Personal Data',
    purpose String DEFAULT '' COMMENT 'Purpose of the Relationship',
    updated_at DateTime64(3, 'UTC') DEFAULT now64(3) COMMENT 'Last Updated Time'
) ENGINE = ReplacingMergeTree(updated_at)
ORDER BY (source_asset_id, id)
""".strip()

DEPENDENCIES_DDL = """
CREATE TABLE IF NOT EXISTS {table} (
    id String COMMENT 'Dependency ID',
    asset_id String COMMENT 'Owning Asset ID',
    dependent_asset_id String COMMENT 'Dependent Asset ID',
    dependency_type LowCardinality(String) COMMENT 'Dependency Type',
    criticality LowCardinality(String) COMMENT 'Dependency Criticality',
    description String DEFAULT '' COMMENT 'Description',
    is_active Bool DEFAULT true COMMENT 'Dependency Currently Active',
    last_validated Nullable(DateTime64(3, 'UTC')) COMMENT 'Last Validation Time',
    risk_level LowCardinality(Nullable(String)) COMMENT 'Risk Level',
    bidirectional Bool DEFAULT false COMMENT 'Dependency Runs Both Ways',
    updated_at DateTime64(3, 'UTC') DEFAULT now64(3) COMMENT 'Last Updated Time'
) ENGINE = ReplacingMergeTree(updated_at)
ORDER BY (asset_id, id)
""".strip()

VULNERABILITIES_DDL = """
CREATE TABLE IF NOT EXISTS {table} (
    id String COMMENT 'Finding ID',
    asset_id String COMMENT 'Affected Asset ID',
    cve_id Nullable(String) COMMENT 'CVE Identifier',
    severity LowCardinality(String) COMMENT 'Severity',
    cvss_score Nullable(Float32) COMMENT 'CVSS Score',
    title String COMMENT 'Title',
    description String DEFAULT '' COMMENT 'Description',
    discovered_at DateTime64(3, 'UTC') COMMENT 'Discovery Time',
    status LowCardinality(String) DEFAULT 'open' COMMENT 'Remediation Status',
    updated_at DateTime64(3, 'UTC') DEFAULT now64(3) COMMENT 'Last Updated Time'
) ENGINE = ReplacingMergeTree(updated_at)
ORDER BY (asset_id, id)
""".strip()
