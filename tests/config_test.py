import io

import pytest
import structlog
from rich.console import Console

from assetgraph.core.config import AssetGraphConfig
from assetgraph.core.config import DatabaseConfig
from assetgraph.core.config import get_config
from assetgraph.core.logging import drop_style_processor
from assetgraph.core.logging import RichConsoleRenderer


class TestConfig:
    def test_password_masked(self):
        config = DatabaseConfig(password='hunter2')
        assert 'hunter2' not in repr(config)
        assert "password='*****'" in repr(config)

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv('ASSETGRAPH_CACHE_TTL', '60')
        monkeypatch.setenv('ASSETGRAPH_DEBOUNCE', '0.5')
        monkeypatch.setenv('ASSETGRAPH_DATA_DIR', '/srv/assets')
        config = AssetGraphConfig.load()
        assert config.cache.ttl_seconds == 60
        assert config.session.debounce_seconds == 0.5
        assert str(config.paths.store_path) == '/srv/assets/assets.jsonl'

    def test_session_defaults(self):
        session = AssetGraphConfig().session
        assert session.default_page_size == 25
        assert (session.min_page_size, session.max_page_size) == (10, 100)
        assert session.min_search_length == 2
        assert session.recent_days == 30

    def test_roles(self, monkeypatch):
        monkeypatch.setenv('CLICKHOUSE_ADMIN_USER', 'root')
        config = AssetGraphConfig()
        assert config.get_db_config('admin').user == 'root'
        assert config.get_db_config('guest').user == 'guest'
        assert config.get_db_config().get_connection_params()['username'] == 'guest'

    def test_singleton(self):
        assert get_config() is get_config()


def test_rich_renderer_prints_and_drops():
    buffer = io.StringIO()
    renderer = RichConsoleRenderer(Console(file=buffer, width=200))
    with pytest.raises(structlog.DropEvent):
        renderer(None, 'info', {'event': 'Fetched assets', 'level': 'info', 'logger': 'repository', 'count': 3})
    output = buffer.getvalue()
    assert 'Fetched assets' in output
    assert 'count=3' in output


def test_style_hint_dropped_for_json():
    event = drop_style_processor(None, 'info', {'event': 'x', '_style': 'red'})
    assert event == {'event': 'x'}
