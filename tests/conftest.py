from datetime import datetime
from datetime import timedelta
from datetime import timezone

import pytest

from assetgraph.models.asset import Asset

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def build_asset(asset_id: str = 'a1', **overrides) -> Asset:
    data = {
        'id': asset_id,
        'name': f"Asset {asset_id}",
        'type': 'Server',
        'owner': 'Infra',
        'created_at': NOW,
        'updated_at': NOW,
    }
    data.update(overrides)
    return Asset.model_validate(data)


@pytest.fixture
def make_asset():
    return build_asset


@pytest.fixture
def abc_assets():
    """Three assets: A critical/90/untagged, B medium/40/['prod'] 40 days old, C low/10/untagged."""
    return [
        build_asset('A', name='Alpha', criticality='Critical', risk_score=90, tags=[], created_at=NOW),
        build_asset(
            'B', name='Bravo', criticality='Medium', risk_score=40, tags=['prod'],
            created_at=NOW - timedelta(days=40),
        ),
        build_asset('C', name='Charlie', criticality='Low', risk_score=10, tags=[], created_at=NOW),
    ]
