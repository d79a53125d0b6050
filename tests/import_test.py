from unittest.mock import MagicMock

from assetgraph.core.repository import StoreError
from assetgraph.core.validation import normalize_import_record
from assetgraph.models.enums import Criticality
from assetgraph.models.enums import DataClassification
from assetgraph.services.import_service import ImportService


def test_normalize_aliases_and_defaults():
    record = normalize_import_record({
        'asset_name': 'Payroll DB',
        'owner': 'HR',
        'asset_type': 'Database',
        'criticality_level': 'High',
        'classification': 'Confidential',
        'riskScore': '70',
        'tags': 'hr, pii',
        'desc': '',
    })
    assert record['name'] == 'Payroll DB'
    assert record['type'] == 'Database'
    assert record['criticality'] == 'High'
    assert record['data_classification'] == 'Confidential'
    assert record['risk_score'] == 70
    assert record['status'] == 'Active'
    assert 'description' not in record


def test_import_creates_valid_records():
    store = MagicMock()
    service = ImportService(store, organization_id='org-1')
    result = service.import_records([
        {'name': 'web01', 'owner': 'Ops', 'tags': 'prod,web', 'criticality': 'critical'},
        {'asset_name': 'crm', 'owner': 'Sales', 'complianceFrameworks': ['SOC2']},
    ])
    assert result.total == 2
    assert result.success == 2
    assert result.failed == 0
    assert result.errors == []

    first, org = store.create_asset.call_args_list[0].args
    assert org == 'org-1'
    assert first.tags == ['prod', 'web']
    assert first.criticality is Criticality.CRITICAL
    assert first.data_classification is DataClassification.INTERNAL
    assert first.type == 'Server'


def test_bad_rows_reported_not_raised():
    store = MagicMock()
    result = ImportService(store).import_records([
        {'name': 'ok', 'owner': 'x'},
        {'owner': 'x'},
        {'name': 'no-owner'},
        {'name': 'bad', 'owner': 'x', 'risk_score': 'high'},
        {'name': 'worse', 'owner': 'x', 'criticality': 'urgent'},
    ])
    assert result.succeeded == 1
    assert result.failed == 4
    assert result.errors[0] == 'Row 2: Missing asset name'
    assert result.errors[1] == 'Row 3: Missing owner'
    assert result.errors[2].startswith('Row 4: ')
    assert result.errors[3].startswith('Row 5: ')
    assert store.create_asset.call_count == 1


def test_errors_capped_at_ten():
    store = MagicMock()
    records = [{'name': f"asset-{i}"} for i in range(25)]
    result = ImportService(store).import_records(records)
    assert result.failed == 25
    assert len(result.errors) == 10
    assert result.errors[-1] == 'Row 10: Missing owner'


def test_store_failure_counts_as_failed_row():
    store = MagicMock()
    store.create_asset.side_effect = [StoreError('disk full'), MagicMock()]
    result = ImportService(store).import_records([
        {'name': 'a', 'owner': 'x'},
        {'name': 'b', 'owner': 'x'},
    ])
    assert result.failed == 1
    assert result.succeeded == 1
    assert result.errors == ['Row 1: disk full']
