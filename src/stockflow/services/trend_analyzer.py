"""
Usage Trend Analysis Service
============================
Summarizes the shape of a daily usage series: level, growth, direction,
volatility, linear trend and peak days.

Design Principles:
- Short series degrade to an "unknown" trend, never an exception
- Every threshold lives in TREND_CONFIG
- Zero denominators yield 0 rather than inf/NaN

Key Statistics:
1. Growth rate: second-half mean vs first-half mean, in percent
2. Volatility: coefficient of variation (population stddev / mean)
3. Linear trend: least-squares slope/intercept over the day index
"""

import numpy as np
from scipy import stats
from typing import Dict, List, Optional

from stockflow.models.usage import DailyUsageSeries
from stockflow.models.results import TrendResult, TrendDirection, PeakDay
from stockflow.utils.logger import get_logger
from stockflow.utils.constants import TREND_CONFIG, merge_config

logger = get_logger(__name__)


def coefficient_of_variation(values: np.ndarray) -> float:
    """Population stddev over mean; 0 when the mean is 0 or there is no data."""
    if len(values) == 0:
        return 0.0
    mean = float(np.mean(values))
    if mean == 0:
        return 0.0
    return float(np.std(values) / mean)


def fit_linear_trend(values: np.ndarray):
    """
    Least-squares fit of ``values`` on the 0-based day index.

    Returns
    -------
    Tuple[float, float]
        (slope, intercept); (0, mean) for fewer than two points
    """
    n = len(values)
    if n < 2:
        return 0.0, float(values[0]) if n else 0.0
    fit = stats.linregress(np.arange(n, dtype=float), values)
    return float(fit.slope), float(fit.intercept)


class TrendAnalyzer:
    """
    Computes trend statistics for one item's daily usage.

    Usage
    -----
    >>> analyzer = TrendAnalyzer()
    >>> result = analyzer.analyze(series)
    >>> result.direction
    <TrendDirection.STABLE: 'stable'>
    """

    def __init__(self, config: Optional[Dict] = None):
        self.config = merge_config(TREND_CONFIG, config)

    def analyze(self, series: DailyUsageSeries) -> TrendResult:
        """
        Analyze the trend of a daily usage series.

        Parameters
        ----------
        series : DailyUsageSeries
            Zero-filled daily usage

        Returns
        -------
        TrendResult
            direction is UNKNOWN with zeroed statistics when the series has
            fewer than ``min_data_points`` days
        """
        values = series.values
        n = len(values)

        if n < self.config["min_data_points"]:
            logger.warning(
                f"Trend for item {series.item_id}: only {n} data points, "
                f"need {self.config['min_data_points']}"
            )
            return TrendResult(
                direction=TrendDirection.UNKNOWN,
                total_usage=float(values.sum()) if n else 0.0,
                data_points=n
            )

        average = float(np.mean(values))
        growth = self._growth_rate(values)
        volatility = coefficient_of_variation(values)
        slope, intercept = fit_linear_trend(values)

        result = TrendResult(
            average_daily_usage=average,
            growth_rate_percent=growth,
            direction=self._direction(growth),
            volatility=volatility,
            high_volatility=volatility > self.config["high_volatility"],
            slope=slope,
            intercept=intercept,
            total_usage=float(values.sum()),
            data_points=n,
            peak_days=self._peak_days(series, average),
            has_weekly_cycle=self._has_weekly_cycle(values),
        )

        logger.debug(
            f"Trend for item {series.item_id}: {result.direction.value}, "
            f"growth {growth:.1f}%, volatility {volatility:.2f}"
        )
        return result

    @staticmethod
    def _growth_rate(values: np.ndarray) -> float:
        half = len(values) // 2
        first = float(np.mean(values[:half]))
        second = float(np.mean(values[half:]))
        if first == 0:
            return 0.0
        return (second - first) / first * 100

    def _direction(self, growth: float) -> TrendDirection:
        if abs(growth) < self.config["stable_growth_pct"]:
            return TrendDirection.STABLE
        return TrendDirection.INCREASING if growth > 0 else TrendDirection.DECREASING

    def _peak_days(self, series: DailyUsageSeries, average: float) -> List[PeakDay]:
        threshold = average * self.config["peak_multiplier"]
        data = series.data
        peaks = data[data > threshold].sort_values(ascending=False, kind="mergesort")
        return [
            PeakDay(date=ts.date(), usage=float(usage))
            for ts, usage in peaks.head(self.config["max_peak_days"]).items()
        ]

    def _has_weekly_cycle(self, values: np.ndarray) -> bool:
        """Weekly totals of the first full weeks vary little."""
        if len(values) < self.config["weekly_cycle_min_points"]:
            return False
        weeks = min(self.config["weekly_cycle_max_weeks"], len(values) // 7)
        weekly_totals = values[:weeks * 7].reshape(weeks, 7).sum(axis=1)
        if np.mean(weekly_totals) == 0:
            return False
        return coefficient_of_variation(weekly_totals) < self.config["weekly_cycle_volatility"]
