from unittest.mock import patch

from conftest import NOW
from structlog.testing import capture_logs

from assetgraph.engine.stats import AssetStats
from assetgraph.engine.stats import calculate_stats
from assetgraph.engine.stats import safe_calculate_stats


def test_scenario_totals(abc_assets):
    stats = calculate_stats(abc_assets, now=NOW)
    assert stats.total == 3
    assert stats.critical == 1
    assert stats.untagged == 2
    assert stats.recently_added == 2


def test_breakdowns_sum_to_total(abc_assets, make_asset):
    assets = abc_assets + [make_asset('D', type='Database', status='Maintenance')]
    stats = calculate_stats(assets, now=NOW)
    assert sum(stats.by_type.values()) == stats.total
    assert sum(stats.by_criticality.values()) == stats.total
    assert sum(stats.by_status.values()) == stats.total
    assert stats.by_criticality == {'critical': 1, 'medium': 2, 'low': 1}
    assert stats.by_status == {'active': 3, 'maintenance': 1}


def test_optional_fields_skipped(make_asset):
    assets = [
        make_asset('x', data_classification='Internal', encryption_status='Encrypted'),
        make_asset('y'),
    ]
    stats = calculate_stats(assets, now=NOW)
    assert stats.by_data_classification == {'internal': 1}
    assert stats.by_encryption_status == {'encrypted': 1}


def test_privacy_counts(make_asset):
    assets = [
        make_asset(
            'x', cross_border_transfer=True,
            cybercorrect_data={'containsPersonalData': True, 'gdprCompliant': True, 'piaCompleted': True},
        ),
        make_asset(
            'y', third_party_sharing=True,
            cybercorrect_data={'containsPersonalData': True, 'gdprCompliant': False},
        ),
        make_asset('z'),
    ]
    stats = calculate_stats(assets, now=NOW)
    assert stats.privacy_compliant == 1
    assert stats.with_pia == 1
    assert stats.cross_border_transfer == 1
    assert stats.third_party_sharing == 1


def test_empty_collection():
    assert calculate_stats([], now=NOW) == AssetStats()


def test_safe_stats_logs_and_zeroes(abc_assets):
    with patch('assetgraph.engine.stats.calculate_stats', side_effect=TypeError('boom')):
        with capture_logs() as logs:
            stats = safe_calculate_stats(abc_assets, now=NOW)
    assert stats == AssetStats()
    assert logs[0]['event'] == 'Stats calculation failed'
    assert logs[0]['log_level'] == 'error'
    assert logs[0]['error'] == 'boom'
