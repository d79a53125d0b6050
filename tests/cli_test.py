import json

import pytest
from typer.testing import CliRunner

from assetgraph.__main__ import app
from assetgraph.core.container import Container
from assetgraph.core.storage import JsonlAssetStore

runner = CliRunner()


@pytest.fixture(autouse=True)
def fresh_container():
    Container.reset()
    yield
    Container.reset()


@pytest.fixture
def store_path(tmp_path):
    return tmp_path / 'assets.jsonl'


@pytest.fixture
def seeded(tmp_path, store_path):
    records = tmp_path / 'import.json'
    records.write_text(json.dumps([
        {'name': 'Alpha', 'owner': 'Infra', 'criticality': 'Critical', 'risk_score': 90},
        {'name': 'Bravo', 'owner': 'Infra', 'criticality': 'Medium', 'risk_score': 40, 'tags': ['prod']},
        {'name': 'Charlie', 'owner': 'Infra', 'criticality': 'Low', 'risk_score': 10},
    ]))
    result = runner.invoke(app, ['--store', str(store_path), 'import', str(records)])
    assert result.exit_code == 0, result.output
    Container.reset()
    return store_path


def invoke(store_path, *args):
    return runner.invoke(app, ['--store', str(store_path), *args])


def test_import_summary(tmp_path, store_path):
    records = tmp_path / 'import.jsonl'
    records.write_text('{"asset_name": "web01", "owner": "Ops"}\n{"asset_name": "orphan"}\n')
    result = invoke(store_path, 'import', str(records))
    assert result.exit_code == 0
    assert 'Import Summary' in result.output
    assert 'Row 2: Missing owner' in result.output
    assert len(JsonlAssetStore(store_path).fetch_assets()) == 1


def test_list_search_and_sort(seeded):
    result = invoke(seeded, 'list', '--search', 'pr')
    assert result.exit_code == 0
    assert 'Bravo' in result.output
    assert 'Alpha' not in result.output

    result = invoke(seeded, 'list', '--sort', 'risk_score', '--desc')
    assert result.exit_code == 0
    out = result.output
    assert out.index('Alpha') < out.index('Bravo') < out.index('Charlie')


def test_list_no_match(seeded):
    result = invoke(seeded, 'list', '--flag', 'has-dependencies')
    assert result.exit_code == 0
    assert 'No assets match' in result.output


def test_list_rejects_bad_input(seeded):
    result = invoke(seeded, 'list', '--flag', 'shiny')
    assert result.exit_code == 1
    assert 'Unknown flag' in result.output

    result = invoke(seeded, 'list', '--min-risk', '60', '--max-risk', '10')
    assert result.exit_code == 1
    assert 'Validation Error' in result.output


def test_stats(seeded):
    result = invoke(seeded, 'stats')
    assert result.exit_code == 0
    assert 'Total Assets: 3' in result.output
    assert 'Critical: 1' in result.output
    assert 'By Criticality' in result.output


def test_show_and_delete(seeded):
    asset = next(a for a in JsonlAssetStore(seeded).fetch_assets() if a.name == 'Bravo')

    result = invoke(seeded, 'show', asset.id)
    assert result.exit_code == 0
    assert 'Bravo' in result.output
    assert 'Critical Path: no' in result.output

    Container.reset()
    result = invoke(seeded, 'delete', asset.id, '--yes')
    assert result.exit_code == 0
    assert sorted(a.name for a in JsonlAssetStore(seeded).fetch_assets()) == ['Alpha', 'Charlie']

    Container.reset()
    result = invoke(seeded, 'show', asset.id)
    assert result.exit_code == 1
    assert 'Asset not found' in result.output


def test_delete_requires_confirmation(seeded):
    result = runner.invoke(app, ['--store', str(seeded), 'delete', 'some-id'], input='n\n')
    assert result.exit_code == 1
    assert len(JsonlAssetStore(seeded).fetch_assets()) == 3
