from datetime import timedelta

import pytest
from conftest import NOW

from assetgraph.core.formatting import classification_style
from assetgraph.core.formatting import criticality_style
from assetgraph.core.formatting import format_date
from assetgraph.core.formatting import relative_time
from assetgraph.core.formatting import risk_score_style
from assetgraph.core.formatting import status_style
from assetgraph.models.enums import AssetStatus
from assetgraph.models.enums import canonical
from assetgraph.models.enums import Criticality
from assetgraph.models.enums import DataClassification


def test_styles_follow_canonical_value():
    # both spellings land on the same style once canonicalised
    assert criticality_style(canonical(Criticality, 'Critical')) == criticality_style(Criticality.CRITICAL)
    assert status_style(AssetStatus.QUARANTINED) == 'red'
    assert classification_style(DataClassification.TOP_SECRET) == 'bold red'
    assert criticality_style(None) == 'dim'


@pytest.mark.parametrize(
    'score,style', [
        (95, 'bold red'),
        (80, 'bold red'),
        (60, 'dark_orange'),
        (40, 'yellow'),
        (39, 'green'),
    ],
)
def test_risk_score_style(score, style):
    assert risk_score_style(score) == style


@pytest.mark.parametrize(
    'days,text', [
        (0, 'Today'),
        (1, 'Yesterday'),
        (3, '3 days ago'),
        (14, '2 weeks ago'),
        (95, '3 months ago'),
        (800, '2 years ago'),
    ],
)
def test_relative_time(days, text):
    assert relative_time(NOW - timedelta(days=days), now=NOW) == text


def test_missing_dates():
    assert format_date(None) == 'N/A'
    assert relative_time(None) == 'N/A'
    assert format_date(NOW) == 'Jun 01, 2024'
