from datetime import date

import pandas as pd
import pytest

from stockflow.exceptions import AnalyticsError, InvalidWindowError
from stockflow.utils.constants import merge_config
from stockflow.utils.validators import MovementValidator, validate_horizon, validate_window


def test_validate_window_returns_inclusive_length():
    assert validate_window(date(2026, 3, 1), date(2026, 3, 1)) == 1
    assert validate_window(date(2026, 3, 1), date(2026, 3, 31)) == 31


def test_validate_window_rejects_bad_windows():
    with pytest.raises(InvalidWindowError):
        validate_window(date(2026, 3, 2), date(2026, 3, 1))
    with pytest.raises(InvalidWindowError):
        validate_window(date(2026, 3, 1), date(2026, 3, 10), max_days=5)


def test_validate_horizon():
    assert validate_horizon(7) == 7
    for bad in (0, -1, 1.5, False, "7"):
        with pytest.raises(InvalidWindowError):
            validate_horizon(bad)


def test_invalid_window_is_a_value_error():
    assert issubclass(InvalidWindowError, AnalyticsError)
    assert issubclass(InvalidWindowError, ValueError)


def test_movement_validator_reports_missing_columns():
    result = MovementValidator().validate(pd.DataFrame({"quantity": [1]}), source_name="stub")

    assert not result.is_valid
    assert "inventory_item_id" in result.errors[0]


def test_movement_validator_warns_on_bad_rows():
    df = pd.DataFrame({
        "inventory_item_id": [1, 1, 1],
        "quantity": [2, 0, 3],
        "direction": ["out", "out", "up"],
        "movement_date": ["2026-03-01", "2026-03-02", "2026-03-03"],
    })
    result = MovementValidator().validate(df)

    assert result.is_valid
    assert len(result.warnings) == 2
    assert result.info["row_count"] == 3
    assert result.to_dict()["info"]["movement_date_date_range"]["min"].startswith("2026-03-01")


def test_merge_config_overlays_nested_dicts():
    defaults = {"alpha": 0.3, "weights": {"sma": 0.4, "trend": 0.6}}
    merged = merge_config(defaults, {"weights": {"sma": 0.5}})

    assert merged == {"alpha": 0.3, "weights": {"sma": 0.5, "trend": 0.6}}
    assert defaults["weights"]["sma"] == 0.4
