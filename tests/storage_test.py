import json

import pytest

from assetgraph.core.repository import StoreError
from assetgraph.core.storage import JsonlAssetStore
from assetgraph.core.storage import load_records
from assetgraph.models.asset import AssetDraft


@pytest.fixture
def store(tmp_path):
    return JsonlAssetStore(tmp_path / 'data' / 'assets.jsonl')


def draft(name: str, **extra) -> AssetDraft:
    return AssetDraft.model_validate({'name': name, 'owner': 'Ops', 'type': 'Server', **extra})


class TestJsonlAssetStore:
    def test_missing_file_is_empty(self, store):
        assert store.fetch_assets() == []
        assert store.fetch_asset_detail('nope') is None

    def test_create_assigns_identity(self, store):
        asset = store.create_asset(draft('web01'), organization_id='org-1')
        assert asset.id
        assert asset.organization_id == 'org-1'
        assert asset.created_at == asset.updated_at
        assert store.filepath.exists()
        assert store.fetch_asset_detail(asset.id).name == 'web01'

    def test_edges_hydrated_with_names(self, store):
        db = store.create_asset(draft('db01'))
        app = store.create_asset(draft(
            'app01',
            dependencies=[{'dependent_asset_id': db.id, 'dependency_type': 'data'}],
            relationships=[{'related_asset_id': 'ghost', 'relationship_type': 'uses'}],
        ))
        detail = store.fetch_asset_detail(app.id)
        assert detail.dependencies[0].dependent_asset_name == 'db01'
        assert detail.dependencies[0].id
        assert detail.relationships[0].related_asset_name == ''

    def test_rename_shows_on_edges(self, store):
        db = store.create_asset(draft('db01'))
        app = store.create_asset(draft(
            'app01', relationships=[{'related_asset_id': db.id, 'relationship_type': 'reads'}],
        ))
        store.update_asset(db.id, {'name': 'db-primary'})
        assert store.fetch_asset_detail(app.id).relationships[0].related_asset_name == 'db-primary'

    def test_update_missing_asset(self, store):
        with pytest.raises(StoreError, match='Asset not found'):
            store.update_asset('nope', {'name': 'x'})

    def test_delete_severs_edges(self, store):
        db = store.create_asset(draft('db01'))
        app = store.create_asset(draft(
            'app01',
            dependencies=[{'dependent_asset_id': db.id, 'dependency_type': 'data'}],
            relationships=[{'related_asset_id': db.id, 'relationship_type': 'reads'}],
        ))
        store.delete_assets([db.id])
        remaining = store.fetch_assets()
        assert [a.id for a in remaining] == [app.id]
        assert remaining[0].dependencies == []
        assert remaining[0].relationships == []

    def test_organization_filter(self, store):
        store.create_asset(draft('a'), organization_id='org-1')
        store.create_asset(draft('b'), organization_id='org-2')
        assert [a.name for a in store.fetch_assets('org-2')] == ['b']
        assert len(store.fetch_assets()) == 2

    def test_unreadable_line_skipped(self, store):
        store.create_asset(draft('a'))
        with store.filepath.open('a', encoding='utf-8') as f:
            f.write('{"name": "broken"}\n')
        assert [a.name for a in store.fetch_assets()] == ['a']


class TestLoadRecords:
    def test_json_array(self, tmp_path):
        path = tmp_path / 'assets.json'
        path.write_text(json.dumps([{'name': 'a'}, {'name': 'b'}]))
        assert load_records(path) == [{'name': 'a'}, {'name': 'b'}]

    def test_jsonl(self, tmp_path):
        path = tmp_path / 'assets.jsonl'
        path.write_text('{"name": "a"}\n\n{"name": "b"}\n')
        assert load_records(path) == [{'name': 'a'}, {'name': 'b'}]

    def test_empty_file(self, tmp_path):
        path = tmp_path / 'empty.json'
        path.write_text('')
        assert load_records(path) == []

    def test_bad_line_reported(self, tmp_path):
        path = tmp_path / 'assets.jsonl'
        path.write_text('{"name": "a"}\nnot json\n')
        with pytest.raises(ValueError, match='line 2'):
            load_records(path)

    def test_non_object_rejected(self, tmp_path):
        path = tmp_path / 'assets.json'
        path.write_text('[1, 2]')
        with pytest.raises(ValueError, match='not an object'):
            load_records(path)
