import pytest

from nightscout_bar.poller.trend import TREND_ARROWS, UNKNOWN_TREND, arrow_for


@pytest.mark.parametrize(
    "direction, arrow",
    [
        ("Flat", "→"),
        ("SingleUp", "↑"),
        ("DoubleUp", "↑↑"),
        ("DoubleDown", "↓↓"),
        ("SingleDown", "↓"),
        ("FortyFiveUp", "↗"),
        ("FortyFiveDown", "↘"),
    ],
)
def test_known_directions(direction, arrow):
    assert arrow_for(direction) == arrow


@pytest.mark.parametrize(
    "direction", [None, "", "flat", "NOT COMPUTABLE", "RATE OUT OF RANGE", "Flat ", "Single"]
)
def test_unknown_directions_fall_back(direction):
    assert arrow_for(direction) == UNKNOWN_TREND == "?"


def test_table_has_exactly_seven_codes():
    assert len(TREND_ARROWS) == 7
