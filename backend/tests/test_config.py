import pytest

from weathervoice.config import get_settings


@pytest.mark.parametrize(("raw", "expected"), [("120", 40), ("0", 1), ("12", 12), ("lots", 40)])
def test_forecast_slot_limit_stays_within_one_to_forty(monkeypatch, raw, expected) -> None:
    monkeypatch.setenv("FORECAST_SLOT_LIMIT", raw)
    assert get_settings().forecast_slot_limit == expected
