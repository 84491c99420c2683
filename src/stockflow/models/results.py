"""
Analytics Result Models
=======================
Derived, per-request results of each analytics stage.

Every result is built fresh from the current movement history and is
never persisted. ``to_dict()`` is the external (JSON) representation and
the only place where numbers are rounded.
"""

from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field
from datetime import date
from enum import Enum


def _r(value: Optional[float]) -> Optional[float]:
    """Round to 2 decimal places at the output boundary."""
    if value is None:
        return None
    return round(float(value), 2)


def _iso(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value is not None else None


class TrendDirection(Enum):
    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"
    UNKNOWN = "unknown"


class ConfidenceLevel(Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class RiskLevel(Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Severity(Enum):
    HIGH = "high"
    MEDIUM = "medium"


class AnomalyType(Enum):
    SPIKE = "spike"
    DROP = "drop"


# =============================================================================
# TREND
# =============================================================================

@dataclass
class PeakDay:
    """A day whose usage exceeded the peak multiplier of the average."""
    date: date
    usage: float

    def to_dict(self) -> Dict[str, Any]:
        return {"date": _iso(self.date), "usage": _r(self.usage)}


@dataclass
class TrendResult:
    """
    Trend statistics for one daily usage series.

    Attributes
    ----------
    average_daily_usage : float
        Mean usage per day over the series
    growth_rate_percent : float
        Second-half mean vs first-half mean, in percent
    direction : TrendDirection
        stable / increasing / decreasing, or unknown below 2 points
    volatility : float
        Coefficient of variation (population stddev / mean)
    slope, intercept : float
        Least-squares fit of usage on day index
    """
    average_daily_usage: float = 0.0
    growth_rate_percent: float = 0.0
    direction: TrendDirection = TrendDirection.UNKNOWN
    volatility: float = 0.0
    high_volatility: bool = False
    slope: float = 0.0
    intercept: float = 0.0
    total_usage: float = 0.0
    data_points: int = 0
    peak_days: List[PeakDay] = field(default_factory=list)
    has_weekly_cycle: bool = False

    @property
    def is_reliable(self) -> bool:
        return self.direction != TrendDirection.UNKNOWN

    def to_dict(self) -> Dict[str, Any]:
        return {
            "average_daily_usage": _r(self.average_daily_usage),
            "growth_rate_percent": _r(self.growth_rate_percent),
            "direction": self.direction.value,
            "volatility": _r(self.volatility),
            "high_volatility": self.high_volatility,
            "slope": _r(self.slope),
            "intercept": _r(self.intercept),
            "total_usage": _r(self.total_usage),
            "data_points": self.data_points,
            "peak_days": [p.to_dict() for p in self.peak_days],
            "has_weekly_cycle": self.has_weekly_cycle,
        }


# =============================================================================
# SEASONALITY
# =============================================================================

@dataclass
class BucketProfile:
    """Average usage per bucket for one calendar dimension."""
    dimension: str
    averages: Dict[int, float] = field(default_factory=dict)
    counts: Dict[int, int] = field(default_factory=dict)
    peak_bucket: Optional[int] = None
    variance_score: float = 0.0
    labels: Dict[int, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dimension": self.dimension,
            "buckets": [
                {
                    "bucket": bucket,
                    "label": self.labels.get(bucket, str(bucket)),
                    "average_usage": _r(avg),
                    "days": self.counts.get(bucket, 0),
                }
                for bucket, avg in sorted(self.averages.items())
            ],
            "peak_bucket": self.peak_bucket,
            "peak_label": self.labels.get(self.peak_bucket) if self.peak_bucket is not None else None,
            "variance_score": _r(self.variance_score),
        }


@dataclass
class WeekdayWeekendComparison:
    weekday_average: float = 0.0
    weekend_average: float = 0.0

    @property
    def difference(self) -> float:
        return self.weekday_average - self.weekend_average

    @property
    def weekday_higher(self) -> bool:
        return self.weekday_average > self.weekend_average

    def to_dict(self) -> Dict[str, Any]:
        return {
            "weekday_average": _r(self.weekday_average),
            "weekend_average": _r(self.weekend_average),
            "difference": _r(self.difference),
            "weekday_higher": self.weekday_higher,
        }


@dataclass
class SeasonalProfile:
    """Calendar-bucketed usage profile with pattern flags."""
    weekday: BucketProfile
    day_of_month: BucketProfile
    month: BucketProfile
    quarter: BucketProfile
    weekday_vs_weekend: WeekdayWeekendComparison
    has_weekly_pattern: bool = False
    has_seasonal_pattern: bool = False
    strong_seasonality: bool = False
    history_days: int = 0
    reduced_confidence: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "patterns": {
                "weekday": self.weekday.to_dict(),
                "day_of_month": self.day_of_month.to_dict(),
                "month": self.month.to_dict(),
                "quarter": self.quarter.to_dict(),
            },
            "variance": {
                "weekday": _r(self.weekday.variance_score),
                "day_of_month": _r(self.day_of_month.variance_score),
                "month": _r(self.month.variance_score),
                "quarter": _r(self.quarter.variance_score),
            },
            "insights": {
                "has_weekly_pattern": self.has_weekly_pattern,
                "has_seasonal_pattern": self.has_seasonal_pattern,
                "strong_seasonality": self.strong_seasonality,
                "weekday_vs_weekend": self.weekday_vs_weekend.to_dict(),
            },
            "history_days": self.history_days,
            "reduced_confidence": self.reduced_confidence,
        }


# =============================================================================
# ANOMALIES
# =============================================================================

@dataclass
class Anomaly:
    """A day whose usage lies more than the z threshold from the mean."""
    date: date
    observed_usage: float
    expected_min: float
    expected_max: float
    z_score: float
    severity: Severity
    type: AnomalyType

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": _iso(self.date),
            "observed_usage": _r(self.observed_usage),
            "expected_range": {"min": _r(self.expected_min), "max": _r(self.expected_max)},
            "z_score": _r(self.z_score),
            "severity": self.severity.value,
            "type": self.type.value,
        }


@dataclass
class AnomalyCluster:
    start_date: date
    end_date: date
    anomalies: List[Anomaly] = field(default_factory=list)

    @property
    def anomaly_count(self) -> int:
        return len(self.anomalies)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "start_date": _iso(self.start_date),
            "end_date": _iso(self.end_date),
            "anomaly_count": self.anomaly_count,
        }


@dataclass
class ZeroUsageStreak:
    start_date: date
    end_date: date
    duration_days: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "start_date": _iso(self.start_date),
            "end_date": _iso(self.end_date),
            "duration_days": self.duration_days,
        }


@dataclass
class AnomalyReport:
    """Statistical outliers, clusters and idle periods of one series."""
    mean: float = 0.0
    std_dev: float = 0.0
    coefficient_of_variation: float = 0.0
    stability_score: float = 100.0
    anomalies: List[Anomaly] = field(default_factory=list)
    clusters: List[AnomalyCluster] = field(default_factory=list)
    isolated_anomalies: List[Anomaly] = field(default_factory=list)
    zero_usage_streaks: List[ZeroUsageStreak] = field(default_factory=list)
    anomalies_by_weekday: Dict[int, int] = field(default_factory=dict)
    is_stable: bool = True

    @property
    def has_recurring_anomalies(self) -> bool:
        return any(count > 1 for count in self.anomalies_by_weekday.values())

    @property
    def high_severity_count(self) -> int:
        return sum(1 for a in self.anomalies if a.severity == Severity.HIGH)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "statistics": {
                "mean": _r(self.mean),
                "standard_deviation": _r(self.std_dev),
                "coefficient_of_variation": _r(self.coefficient_of_variation),
                "stability_score": _r(self.stability_score),
            },
            # Most recent first
            "anomalies": [a.to_dict() for a in sorted(self.anomalies, key=lambda a: a.date, reverse=True)],
            "clusters": [c.to_dict() for c in self.clusters],
            "isolated_anomalies": [a.to_dict() for a in self.isolated_anomalies],
            "zero_usage_streaks": [s.to_dict() for s in self.zero_usage_streaks],
            "summary": {
                "total_anomalies": len(self.anomalies),
                "high_severity_anomalies": self.high_severity_count,
                "spikes": sum(1 for a in self.anomalies if a.type == AnomalyType.SPIKE),
                "drops": sum(1 for a in self.anomalies if a.type == AnomalyType.DROP),
                "is_stable": self.is_stable,
                "has_recurring_anomalies": self.has_recurring_anomalies,
                "anomalies_by_weekday": {str(k): v for k, v in sorted(self.anomalies_by_weekday.items())},
            },
        }


# =============================================================================
# FORECAST
# =============================================================================

@dataclass
class ForecastDay:
    """Combined usage estimate for one future day."""
    date: date
    estimated_usage: float
    confidence: ConfidenceLevel
    confidence_score: float
    sma: float
    exponential_smoothing: float
    linear_trend: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": _iso(self.date),
            "estimated_usage": _r(self.estimated_usage),
            "confidence": self.confidence.value,
            "confidence_score": _r(self.confidence_score),
            "component_estimates": {
                "sma": _r(self.sma),
                "exponential_smoothing": _r(self.exponential_smoothing),
                "linear_trend": _r(self.linear_trend),
            },
        }


@dataclass
class UsageForecast:
    """Daily forecasts over the horizon plus period aggregates."""
    horizon_days: int
    history_days: int
    days: List[ForecastDay] = field(default_factory=list)
    overall_confidence: ConfidenceLevel = ConfidenceLevel.LOW
    data_quality: str = "poor"
    historical_average: float = 0.0
    trend_direction: TrendDirection = TrendDirection.UNKNOWN
    model_params: Dict[str, Any] = field(default_factory=dict)

    @property
    def total_usage(self) -> float:
        return sum(d.estimated_usage for d in self.days)

    @property
    def average_daily_usage(self) -> float:
        return self.total_usage / len(self.days) if self.days else 0.0

    @property
    def peak_day(self) -> Optional[ForecastDay]:
        return max(self.days, key=lambda d: d.estimated_usage) if self.days else None

    @property
    def low_day(self) -> Optional[ForecastDay]:
        return min(self.days, key=lambda d: d.estimated_usage) if self.days else None

    def to_dict(self) -> Dict[str, Any]:
        peak, low = self.peak_day, self.low_day
        return {
            "horizon_days": self.horizon_days,
            "history_days": self.history_days,
            "data_quality": self.data_quality,
            "historical_average": _r(self.historical_average),
            "trend_direction": self.trend_direction.value,
            "daily_forecasts": [d.to_dict() for d in self.days],
            "summary": {
                "total_forecast_usage": _r(self.total_usage),
                "average_daily_forecast": _r(self.average_daily_usage),
                "peak_day": peak.to_dict() if peak else None,
                "low_day": low.to_dict() if low else None,
            },
            "overall_confidence": self.overall_confidence.value,
            "model_params": self.model_params,
        }


# =============================================================================
# RISK & VELOCITY
# =============================================================================

@dataclass
class StockoutRisk:
    current_stock: float
    estimated_period_usage: float
    days_remaining: float
    risk: RiskLevel
    projected_stockout_date: Optional[date] = None
    recommended_order_quantity: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "current_stock": _r(self.current_stock),
            "estimated_period_usage": _r(self.estimated_period_usage),
            "days_remaining": _r(self.days_remaining),
            "risk": self.risk.value,
            "projected_stockout_date": _iso(self.projected_stockout_date),
            "recommended_order_quantity": self.recommended_order_quantity,
        }


@dataclass
class ParLevelRecommendation:
    """Computed par levels and whether stored levels should change."""
    par_low: int
    par_high: int
    reorder_point: int
    average_daily_usage: float
    lead_time_days: int
    current_par_low: Optional[float] = None
    current_par_high: Optional[float] = None
    needs_adjustment: bool = False

    @property
    def has_stored_levels(self) -> bool:
        return self.current_par_low is not None or self.current_par_high is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "recommended": {"low": self.par_low, "high": self.par_high},
            "current": {"low": _r(self.current_par_low), "high": _r(self.current_par_high)},
            "reorder_point": self.reorder_point,
            "average_daily_usage": _r(self.average_daily_usage),
            "lead_time_days": self.lead_time_days,
            "needs_adjustment": self.needs_adjustment,
        }


@dataclass
class VelocityMetrics:
    """Consumption velocity and turnover classification."""
    average_daily_usage: float
    total_period_usage: float
    movement_count: int
    usage_frequency: float
    days_of_stock_remaining: int
    turnover_rate: float
    velocity_score: int
    velocity_category: str
    usage_by_type: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "average_daily_usage": _r(self.average_daily_usage),
            "total_period_usage": _r(self.total_period_usage),
            "movement_count": self.movement_count,
            "usage_frequency": _r(self.usage_frequency),
            "days_of_stock_remaining": self.days_of_stock_remaining,
            "turnover_rate": _r(self.turnover_rate),
            "velocity_score": self.velocity_score,
            "velocity_category": self.velocity_category,
            "usage_by_type": {k: _r(v) for k, v in sorted(self.usage_by_type.items())},
        }


@dataclass
class TurnoverAnalysis:
    """Annualized value turnover for one item."""
    item_id: Any
    item_name: str
    current_quantity: float
    cost_per_unit: float
    period_usage: float
    period_days: int
    turnover_ratio: float
    turnover_category: str
    days_in_inventory: int

    @property
    def current_value(self) -> float:
        return self.current_quantity * self.cost_per_unit

    @property
    def usage_value(self) -> float:
        return self.period_usage * self.cost_per_unit

    def to_dict(self) -> Dict[str, Any]:
        return {
            "item_id": self.item_id,
            "item_name": self.item_name,
            "current_quantity": _r(self.current_quantity),
            "cost_per_unit": _r(self.cost_per_unit),
            "current_value": _r(self.current_value),
            "period_usage": _r(self.period_usage),
            "usage_value": _r(self.usage_value),
            "turnover_ratio": _r(self.turnover_ratio),
            "turnover_category": self.turnover_category,
            "days_in_inventory": self.days_in_inventory,
        }


@dataclass
class Recommendation:
    """A deterministic, rule-triggered action for an item."""
    type: str
    priority: str
    message: str
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "priority": self.priority,
            "message": self.message,
            **self.details,
        }


# =============================================================================
# REPORT
# =============================================================================

@dataclass
class UsageReport:
    """
    Everything the engine knows about one item for one request.

    Sections that were not requested are None; sections that could not be
    computed for lack of data are None with a reason in ``insufficient``.
    """
    item_id: Any
    as_of: date
    period_days: int
    horizon_days: int
    item_name: str = ""
    trend: Optional[TrendResult] = None
    seasonal: Optional[SeasonalProfile] = None
    anomalies: Optional[AnomalyReport] = None
    forecast: Optional[UsageForecast] = None
    stockout_risk: Optional[StockoutRisk] = None
    velocity: Optional[VelocityMetrics] = None
    par_levels: Optional[ParLevelRecommendation] = None
    recommendations: List[Recommendation] = field(default_factory=list)
    insufficient: Dict[str, str] = field(default_factory=dict)
    analysis_types: List[str] = field(default_factory=list)

    def summary(self) -> Dict[str, Any]:
        return {
            "has_reliable_data": self.trend is not None and self.trend.is_reliable,
            "overall_stability": (
                "stable" if self.trend is not None and self.trend.direction == TrendDirection.STABLE
                else "variable"
            ),
            "seasonality_detected": bool(self.seasonal and self.seasonal.has_seasonal_pattern),
            "anomalies_detected": bool(self.anomalies and self.anomalies.anomalies),
            "forecast_quality": self.forecast.overall_confidence.value if self.forecast else "unknown",
        }

    def to_dict(self) -> Dict[str, Any]:
        def section(value):
            return value.to_dict() if value is not None else None

        return {
            "item_id": self.item_id,
            "item_name": self.item_name,
            "as_of": _iso(self.as_of),
            "period_days": self.period_days,
            "horizon_days": self.horizon_days,
            "analysis_types": list(self.analysis_types),
            "trend": section(self.trend),
            "seasonal": section(self.seasonal),
            "anomalies": section(self.anomalies),
            "forecast": section(self.forecast),
            "stockout_risk": section(self.stockout_risk),
            "velocity": section(self.velocity),
            "par_levels": section(self.par_levels),
            "recommendations": [r.to_dict() for r in self.recommendations],
            "insufficient_data": dict(self.insufficient),
            "summary": self.summary(),
        }
