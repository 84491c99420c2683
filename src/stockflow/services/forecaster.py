"""
Usage Forecasting Service
=========================
Forecasts daily usage with a weighted ensemble of three simple models
and a confidence score that decays with distance into the future.

Design Principles:
- Explainable: every forecast day carries its component estimates
- No fabricated numbers: too little history raises instead of guessing
- No black-box ML: statistical methods only
- Configurable: weights and smoothing factor live in FORECAST_CONFIG

Key Algorithms:
1. Simple Moving Average
   - Mean of the last 7 observed days
   - Flat over the horizon

2. Simple Exponential Smoothing
   - s0 = x0, s_i = a * x_i + (1 - a) * s_{i-1}, a = 0.3
   - Flat over the horizon at the last smoothed level

3. Linear Trend
   - Least-squares fit on the day index, extrapolated k days past the
     last observed day and floored at 0

Assumptions:
- The weights (0.4 / 0.3 / 0.3) and a = 0.3 are defaults, not fitted values
- Days before an item's first recorded usage are not history
"""

import math
import numpy as np
import pandas as pd
from typing import Any, Dict, List, Optional
from datetime import timedelta

from stockflow.exceptions import InsufficientHistoryError
from stockflow.models.usage import DailyUsageSeries
from stockflow.models.results import (
    ConfidenceLevel,
    ForecastDay,
    TrendDirection,
    UsageForecast
)
from stockflow.services.trend_analyzer import fit_linear_trend
from stockflow.utils.logger import get_logger
from stockflow.utils.constants import FORECAST_CONFIG, merge_config
from stockflow.utils.validators import validate_horizon

logger = get_logger(__name__)


def simple_moving_average(values: np.ndarray, window: int) -> float:
    """Mean of the last ``window`` values."""
    if len(values) == 0:
        return 0.0
    return float(np.mean(values[-window:]))


def exponential_smoothing(values: np.ndarray, alpha: float) -> float:
    """Final level of simple exponential smoothing seeded with the first value."""
    if len(values) == 0:
        return 0.0
    smoothed = pd.Series(values, dtype=float).ewm(alpha=alpha, adjust=False).mean()
    return float(smoothed.iloc[-1])


class UsageForecaster:
    """
    Ensemble usage forecaster (SMA + exponential smoothing + linear trend).

    Usage
    -----
    >>> forecaster = UsageForecaster()
    >>> forecast = forecaster.forecast(series, horizon=30)
    >>> forecast.days[0].confidence
    <ConfidenceLevel.HIGH: 'high'>

    Technical Notes
    ---------------
    Confidence for day k is ``min(1, history / 30) * exp(-k / 10)``, so a
    short history caps confidence and every forecast loses confidence the
    further out it looks.
    """

    def __init__(self, config: Optional[Dict] = None):
        self.config = merge_config(FORECAST_CONFIG, config)

        weights = self.config["weights"]
        total = sum(weights.values())
        if total <= 0:
            raise ValueError("Forecast component weights must sum to a positive value")
        # Partial overrides may no longer sum to 1
        self.weights = {name: w / total for name, w in weights.items()}

        logger.info(
            f"Forecaster initialized: alpha={self.config['smoothing_alpha']}, "
            f"weights={self.weights}"
        )

    def lookback_days(self, horizon: int) -> int:
        """History window used for a given horizon."""
        return max(self.config["lookback_multiplier"] * horizon, self.config["min_history_days"])

    def forecast(self, series: DailyUsageSeries, horizon: int) -> UsageForecast:
        """
        Forecast daily usage for the ``horizon`` days after the series ends.

        Parameters
        ----------
        series : DailyUsageSeries
            Zero-filled daily usage ending on the last observed day
        horizon : int
            Number of days to forecast

        Returns
        -------
        UsageForecast

        Raises
        ------
        InvalidWindowError
            If horizon is not a positive integer
        InsufficientHistoryError
            If fewer than ``min_history_days`` days remain after dropping the
            days before the first recorded usage
        """
        validate_horizon(horizon)

        history = series.trim_leading_zeros().tail(self.lookback_days(horizon))
        required = self.config["min_history_days"]
        if len(history) < required:
            raise InsufficientHistoryError(
                f"Item {series.item_id} has {len(history)} days of usage history, "
                f"need at least {required} to forecast",
                required=required,
                available=len(history)
            )

        values = history.values
        n = len(values)
        sma = simple_moving_average(values, self.config["sma_window"])
        es = exponential_smoothing(values, self.config["smoothing_alpha"])
        slope, intercept = fit_linear_trend(values)
        quality_factor = min(1.0, n / self.config["data_quality_days"])

        days: List[ForecastDay] = []
        for k in range(1, horizon + 1):
            # Fit index runs 0..n-1, so day k ahead sits at n-1+k
            trend = max(0.0, slope * (n - 1 + k) + intercept)
            estimate = (
                self.weights["sma"] * sma
                + self.weights["exponential_smoothing"] * es
                + self.weights["linear_trend"] * trend
            )
            score = quality_factor * math.exp(-k / self.config["confidence_decay_days"])
            days.append(ForecastDay(
                date=history.end_date + timedelta(days=k),
                estimated_usage=max(0.0, estimate),
                confidence=self._label(score),
                confidence_score=score,
                sma=sma,
                exponential_smoothing=es,
                linear_trend=trend,
            ))

        result = UsageForecast(
            horizon_days=horizon,
            history_days=n,
            days=days,
            overall_confidence=self._overall_confidence(days),
            data_quality=self._data_quality(n),
            historical_average=float(np.mean(values)),
            trend_direction=self._slope_direction(slope),
            model_params=self._model_params(slope, intercept),
        )

        logger.info(
            f"Forecast for item {series.item_id}: {horizon} days from {n} days of history, "
            f"total {result.total_usage:.2f}, confidence {result.overall_confidence.value}"
        )
        return result

    def _label(self, score: float) -> ConfidenceLevel:
        thresholds = self.config["confidence_thresholds"]
        if score > thresholds["high"]:
            return ConfidenceLevel.HIGH
        if score > thresholds["medium"]:
            return ConfidenceLevel.MEDIUM
        return ConfidenceLevel.LOW

    def _overall_confidence(self, days: List[ForecastDay]) -> ConfidenceLevel:
        weights = self.config["confidence_weights"]
        mean_weight = float(np.mean([weights[d.confidence.value] for d in days]))
        return self._label(mean_weight)

    def _data_quality(self, history_days: int) -> str:
        labels = self.config["data_quality_labels"]
        if history_days >= labels["good"]:
            return "good"
        if history_days >= labels["fair"]:
            return "fair"
        return "poor"

    def _slope_direction(self, slope: float) -> TrendDirection:
        if abs(slope) < self.config["stable_slope"]:
            return TrendDirection.STABLE
        return TrendDirection.INCREASING if slope > 0 else TrendDirection.DECREASING

    def _model_params(self, slope: float, intercept: float) -> Dict[str, Any]:
        return {
            "sma_window": self.config["sma_window"],
            "smoothing_alpha": self.config["smoothing_alpha"],
            "weights": dict(self.weights),
            "slope": round(slope, 4),
            "intercept": round(intercept, 4),
        }
