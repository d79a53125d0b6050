from datetime import timedelta

import pytest
from conftest import NOW
from pydantic import ValidationError

from assetgraph.engine.filters import filter_assets
from assetgraph.engine.filters import filter_options
from assetgraph.models.query import AssetFilters


def ids(assets):
    return [a.id for a in assets]


class TestScenarioFilters:
    def test_risk_range(self, abc_assets):
        filters = AssetFilters(risk_score_range=(50, 100))
        assert ids(filter_assets(abc_assets, filters, now=NOW)) == ['A']

    def test_camel_case_range(self, abc_assets):
        filters = AssetFilters.model_validate({'riskScoreRange': [50, 100]})
        assert ids(filter_assets(abc_assets, filters, now=NOW)) == ['A']

    def test_search_two_chars_matches_tag(self, abc_assets):
        filters = AssetFilters(search='pr')
        assert ids(filter_assets(abc_assets, filters, now=NOW)) == ['B']

    def test_search_one_char_disabled(self, abc_assets):
        filters = AssetFilters(search='p')
        assert ids(filter_assets(abc_assets, filters, now=NOW)) == ['A', 'B', 'C']

    def test_search_case_insensitive(self, abc_assets):
        assert ids(filter_assets(abc_assets, AssetFilters(search='CHAR'), now=NOW)) == ['C']


class TestFieldFilters:
    def test_or_within_and_across(self, abc_assets):
        filters = AssetFilters(criticalities=['critical', 'Low'], tags=[])
        assert ids(filter_assets(abc_assets, filters, now=NOW)) == ['A', 'C']
        filters = filters.merged(risk_score_range=(0, 50))
        assert ids(filter_assets(abc_assets, filters, now=NOW)) == ['C']

    def test_missing_field_fails_non_empty_set(self, make_asset):
        assets = [make_asset('x'), make_asset('y', data_classification='Restricted')]
        filters = AssetFilters(data_classification=['restricted'])
        assert ids(filter_assets(assets, filters, now=NOW)) == ['y']

    def test_location_compares_text(self, make_asset):
        assets = [make_asset('x', location='Rack 4'), make_asset('y', location='Rack 5')]
        assert ids(filter_assets(assets, AssetFilters(locations=['Rack 5']), now=NOW)) == ['y']

    def test_frameworks_any_match(self, make_asset):
        assets = [
            make_asset('x', compliance_frameworks=['SOC2']),
            make_asset('y', compliance_frameworks=['ISO27001', 'GDPR']),
        ]
        filters = AssetFilters(compliance_frameworks=['GDPR', 'HIPAA'])
        assert ids(filter_assets(assets, filters, now=NOW)) == ['y']

    def test_input_not_mutated(self, abc_assets):
        before = list(abc_assets)
        filter_assets(abc_assets, AssetFilters(search='bravo'), now=NOW)
        assert abc_assets == before

    @pytest.mark.parametrize('bad', [(60, 50), (-1, 50), (0, 101)])
    def test_invalid_range_rejected(self, bad):
        with pytest.raises(ValidationError):
            AssetFilters(risk_score_range=bad)

    def test_unknown_filter_rejected(self):
        with pytest.raises(ValueError, match='Unknown filter'):
            AssetFilters().merged(colour='red')

    def test_unknown_criticality_rejected(self):
        with pytest.raises(ValidationError):
            AssetFilters(criticalities=['urgent'])


class TestDerivedFilters:
    def test_has_vulnerabilities_counts_unresolved_only(self, make_asset):
        vuln = {'severity': 'High', 'title': 't', 'discovered_at': NOW}
        assets = [
            make_asset('open', vulnerabilities=[{**vuln, 'status': 'Open'}]),
            make_asset('wip', vulnerabilities=[{**vuln, 'status': 'In Progress'}]),
            make_asset('done', vulnerabilities=[{**vuln, 'status': 'Resolved'}]),
            make_asset('none'),
        ]
        yes = AssetFilters(metadata={'hasVulnerabilities': 'yes'})
        no = AssetFilters(metadata={'has_vulnerabilities': 'no'})
        assert ids(filter_assets(assets, yes, now=NOW)) == ['open', 'wip']
        assert ids(filter_assets(assets, no, now=NOW)) == ['done', 'none']

    def test_compliance_flags(self, make_asset):
        assets = [
            make_asset('none'),
            make_asset('one', compliance_frameworks=['SOC2']),
            make_asset('two', compliance_frameworks=['SOC2', 'GDPR']),
        ]
        missing = AssetFilters(metadata={'missing_compliance': True})
        multiple = AssetFilters(metadata={'multiple_frameworks': True})
        assert ids(filter_assets(assets, missing, now=NOW)) == ['none']
        assert ids(filter_assets(assets, multiple, now=NOW)) == ['two']

    def test_overdue_assessment(self, make_asset):
        assets = [
            make_asset('late', next_review=NOW - timedelta(days=1)),
            make_asset('fine', next_review=NOW + timedelta(days=1)),
            make_asset('unset'),
        ]
        filters = AssetFilters(metadata={'overdue_assessment': True})
        assert ids(filter_assets(assets, filters, now=NOW)) == ['late']

    def test_structural_flags(self, make_asset):
        dep = {'dependent_asset_id': 'z', 'dependency_type': 'runtime'}
        assets = [
            make_asset('lonely', criticality='Critical'),
            make_asset('dep', dependencies=[dep]),
            make_asset('rel', relationships=[{'related_asset_id': 'z', 'relationship_type': 'uses'}]),
        ]
        assert ids(filter_assets(assets, AssetFilters(metadata={'isolated_assets': True}), now=NOW)) == ['lonely']
        assert ids(filter_assets(assets, AssetFilters(metadata={'has_dependencies': True}), now=NOW)) == ['dep']
        assert ids(filter_assets(assets, AssetFilters(metadata={'critical_path_assets': True}), now=NOW)) == ['dep']

    def test_date_bounds(self, abc_assets, make_asset):
        created_after = AssetFilters(metadata={'created_after': NOW - timedelta(days=1)})
        assert ids(filter_assets(abc_assets, created_after, now=NOW)) == ['A', 'C']

        assets = [
            make_asset('old', last_assessed=NOW - timedelta(days=100)),
            make_asset('new', last_assessed=NOW),
            make_asset('never'),
        ]
        before = AssetFilters(metadata={'last_assessed_before': NOW - timedelta(days=30)})
        assert ids(filter_assets(assets, before, now=NOW)) == ['old']

    def test_merged_metadata_keeps_other_flags(self):
        filters = AssetFilters(metadata={'missing_compliance': True})
        filters = filters.merged(metadata={'isolated_assets': True})
        assert filters.metadata.missing_compliance is True
        assert filters.metadata.isolated_assets is True


class TestMonotonicity:
    """Adding a constraint never grows the result."""

    def test_each_added_constraint_narrows(self, abc_assets, make_asset):
        assets = abc_assets + [
            make_asset('D', name='Delta prod', tags=['prod', 'web'], compliance_frameworks=['SOC2']),
        ]
        steps = [
            {'search': 'pr'},
            {'tags': ['prod']},
            {'criticalities': ['medium']},
            {'risk_score_range': (30, 100)},
            {'metadata': {'missing_compliance': True}},
        ]
        filters = AssetFilters()
        previous = set(ids(filter_assets(assets, filters, now=NOW)))
        for change in steps:
            filters = filters.merged(**change)
            current = set(ids(filter_assets(assets, filters, now=NOW)))
            assert current <= previous
            previous = current
        assert previous == {'B'}


def test_filter_options(make_asset):
    assets = [
        make_asset('x', owner='Zed', location='Rack 2', tags=['b', 'a']),
        make_asset('y', owner='Amy', location={'type': 'cloud', 'region': 'eu'}, tags=['a']),
    ]
    options = filter_options(assets)
    assert options == {'owners': ['Amy', 'Zed'], 'locations': ['Rack 2'], 'tags': ['a', 'b']}
