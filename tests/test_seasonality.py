from datetime import date

import pandas as pd
import pytest

from stockflow.services.seasonality import SeasonalityProfiler, calendar_buckets
from tests.conftest import SUNDAY, series_of


def test_weekday_buckets_start_on_sunday():
    index = pd.date_range(SUNDAY, periods=7, freq='D')
    assert list(calendar_buckets(index)["weekday"]) == [0, 1, 2, 3, 4, 5, 6]


def test_friday_peak_and_weekly_pattern():
    # Starts on a Sunday, so offset % 7 == 5 is a Friday
    values = [10.0 if i % 7 == 5 else 2.0 for i in range(28)]
    profile = SeasonalityProfiler().profile(series_of(values))

    assert profile.weekday.peak_bucket == 5
    assert profile.weekday.averages[5] == pytest.approx(10.0)
    assert profile.weekday.averages[0] == pytest.approx(2.0)
    assert profile.weekday.counts[5] == 4
    assert profile.has_weekly_pattern

    comparison = profile.weekday_vs_weekend
    assert comparison.weekday_average == pytest.approx(3.6)
    assert comparison.weekend_average == pytest.approx(2.0)
    assert comparison.weekday_higher


def test_short_history_is_reduced_confidence():
    profile = SeasonalityProfiler().profile(series_of([1.0] * 28))

    assert profile.reduced_confidence
    assert profile.history_days == 28


def test_flat_usage_has_no_patterns():
    profile = SeasonalityProfiler().profile(series_of([3.0] * 200))

    assert profile.weekday.variance_score == 0.0
    assert profile.month.variance_score == 0.0
    assert not profile.has_weekly_pattern
    assert not profile.has_seasonal_pattern
    assert not profile.strong_seasonality
    assert not profile.reduced_confidence


def test_monthly_seasonality_over_a_year():
    days = pd.date_range("2025-01-01", periods=365, freq='D')
    values = [float(d.month) for d in days]
    profile = SeasonalityProfiler().profile(series_of(values, start=date(2025, 1, 1)))

    assert profile.month.peak_bucket == 11
    assert profile.quarter.peak_bucket == 3
    assert profile.month.averages[0] == pytest.approx(1.0)
    assert profile.month.variance_score > 0.5
    assert profile.has_seasonal_pattern
    assert profile.strong_seasonality
    assert profile.day_of_month.counts[31] == 7
    assert set(profile.day_of_month.averages) == set(range(1, 32))


def test_empty_buckets_are_excluded():
    # Ten days in March: a single month bucket
    profile = SeasonalityProfiler().profile(series_of([1.0, 5.0] * 5))

    assert list(profile.month.averages) == [2]
    assert profile.month.peak_bucket == 2
    assert profile.month.variance_score == 0.0
    assert profile.quarter.counts == {0: 10}


def test_to_dict_labels():
    values = [10.0 if i % 7 == 5 else 2.0 for i in range(14)]
    data = SeasonalityProfiler().profile(series_of(values)).to_dict()

    assert data["patterns"]["weekday"]["peak_label"] == "Friday"
    assert data["patterns"]["month"]["buckets"][0]["label"] == "Mar"
    assert data["insights"]["has_weekly_pattern"] is True
