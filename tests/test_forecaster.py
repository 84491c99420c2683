from datetime import timedelta

import pytest

from stockflow.exceptions import InsufficientHistoryError, InvalidWindowError
from stockflow.models.results import ConfidenceLevel, TrendDirection
from stockflow.services.forecaster import (
    UsageForecaster,
    exponential_smoothing,
    simple_moving_average
)
from tests.conftest import series_of


def test_component_helpers():
    assert exponential_smoothing([10.0, 20.0], 0.3) == pytest.approx(13.0)
    assert exponential_smoothing([4.0], 0.3) == 4.0
    assert exponential_smoothing([10.0, 20.0, 30.0], 0.5) == pytest.approx(22.5)
    assert exponential_smoothing([], 0.3) == 0.0
    assert simple_moving_average(list(range(1, 11)), 7) == pytest.approx(7.0)


def test_insufficient_history_after_leading_zeros():
    """Days before the first recorded usage do not count as history"""
    series = series_of([0.0] * 20 + [5.0] * 10)

    with pytest.raises(InsufficientHistoryError) as excinfo:
        UsageForecaster().forecast(series, horizon=7)
    assert excinfo.value.available == 10
    assert excinfo.value.required == 14


def test_constant_history_forecasts_constant_usage():
    series = series_of([5.0] * 40)
    forecast = UsageForecaster().forecast(series, horizon=15)

    assert forecast.history_days == 30
    assert len(forecast.days) == 15
    for day in forecast.days:
        assert day.estimated_usage == pytest.approx(5.0)
        assert day.sma == pytest.approx(5.0)
        assert day.exponential_smoothing == pytest.approx(5.0)
        assert day.linear_trend == pytest.approx(5.0)
    assert forecast.total_usage == pytest.approx(75.0)
    assert forecast.data_quality == "good"
    assert forecast.trend_direction == TrendDirection.STABLE


def test_forecast_dates_follow_history():
    series = series_of([3.0] * 14)
    forecast = UsageForecaster().forecast(series, horizon=3)

    assert [d.date for d in forecast.days] == [
        series.end_date + timedelta(days=k) for k in (1, 2, 3)
    ]


def test_doubling_history_gives_non_decreasing_forecast():
    series = series_of([2.0 ** i for i in range(16)])
    forecast = UsageForecaster().forecast(series, horizon=7)
    estimates = [d.estimated_usage for d in forecast.days]

    assert forecast.trend_direction == TrendDirection.INCREASING
    assert all(later >= earlier for earlier, later in zip(estimates, estimates[1:]))
    assert all(e > 0 for e in estimates)


def test_confidence_decays_with_distance():
    forecast = UsageForecaster().forecast(series_of([4.0] * 40), horizon=20)
    days = forecast.days

    assert days[0].confidence_score >= days[19].confidence_score
    assert days[0].confidence == ConfidenceLevel.HIGH
    assert days[2].confidence == ConfidenceLevel.MEDIUM
    assert days[19].confidence == ConfidenceLevel.LOW


def test_short_history_caps_confidence():
    # 14 days of history -> quality factor 14/30
    forecast = UsageForecaster().forecast(series_of([4.0] * 14), horizon=7)

    assert forecast.data_quality == "fair"
    assert all(d.confidence == ConfidenceLevel.LOW for d in forecast.days)
    assert forecast.overall_confidence == ConfidenceLevel.LOW


def test_overall_confidence_mean_of_label_weights():
    # labels: 2 high, 3 medium, 10 low -> mean weight 0.527 -> low
    forecast = UsageForecaster().forecast(series_of([4.0] * 40), horizon=15)
    labels = [d.confidence for d in forecast.days]

    assert labels.count(ConfidenceLevel.HIGH) == 2
    assert labels.count(ConfidenceLevel.MEDIUM) == 3
    assert forecast.overall_confidence == ConfidenceLevel.LOW


def test_weight_override():
    config = {"weights": {"sma": 1.0, "exponential_smoothing": 0.0, "linear_trend": 0.0}}
    forecast = UsageForecaster(config).forecast(series_of([float(v) for v in range(1, 31)]), horizon=15)

    assert all(d.estimated_usage == pytest.approx(27.0) for d in forecast.days)


def test_linear_trend_starts_one_day_after_history():
    """Day k of the horizon extrapolates k days past the last observed day"""
    series = series_of([float(v) for v in range(1, 31)])

    one_day = UsageForecaster().forecast(series, horizon=1)
    assert one_day.days[0].linear_trend == pytest.approx(31.0)

    three_days = UsageForecaster().forecast(series, horizon=3)
    assert [d.linear_trend for d in three_days.days] == pytest.approx([31.0, 32.0, 33.0])


def test_linear_trend_component_floored_at_zero():
    values = [float(v) for v in range(30, 0, -1)]
    forecast = UsageForecaster().forecast(series_of(values), horizon=30)

    assert all(d.linear_trend >= 0 for d in forecast.days)
    assert all(d.estimated_usage >= 0 for d in forecast.days)
    assert forecast.trend_direction == TrendDirection.DECREASING


def test_identical_inputs_give_identical_outputs():
    series = series_of([3, 5, 2, 8, 6, 4, 7] * 4)
    forecaster = UsageForecaster()

    assert forecaster.forecast(series, 10).to_dict() == forecaster.forecast(series, 10).to_dict()


@pytest.mark.parametrize("horizon", [0, -3, True, 2.5])
def test_invalid_horizon(horizon):
    with pytest.raises(InvalidWindowError):
        UsageForecaster().forecast(series_of([1.0] * 30), horizon)


def test_lookback_days():
    forecaster = UsageForecaster()
    assert forecaster.lookback_days(3) == 14
    assert forecaster.lookback_days(30) == 60
