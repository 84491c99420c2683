"""
Models Package
==============
Input events, usage series and analytics result types.
"""

from stockflow.models.usage import (
    Direction,
    UsageEvent,
    ItemInfo,
    DailyUsageSeries,
)
from stockflow.models.results import (
    TrendDirection,
    ConfidenceLevel,
    RiskLevel,
    Severity,
    AnomalyType,
    PeakDay,
    TrendResult,
    BucketProfile,
    WeekdayWeekendComparison,
    SeasonalProfile,
    Anomaly,
    AnomalyCluster,
    ZeroUsageStreak,
    AnomalyReport,
    ForecastDay,
    UsageForecast,
    StockoutRisk,
    ParLevelRecommendation,
    VelocityMetrics,
    TurnoverAnalysis,
    Recommendation,
    UsageReport,
)

__all__ = [
    'Direction',
    'UsageEvent',
    'ItemInfo',
    'DailyUsageSeries',
    'TrendDirection',
    'ConfidenceLevel',
    'RiskLevel',
    'Severity',
    'AnomalyType',
    'PeakDay',
    'TrendResult',
    'BucketProfile',
    'WeekdayWeekendComparison',
    'SeasonalProfile',
    'Anomaly',
    'AnomalyCluster',
    'ZeroUsageStreak',
    'AnomalyReport',
    'ForecastDay',
    'UsageForecast',
    'StockoutRisk',
    'ParLevelRecommendation',
    'VelocityMetrics',
    'TurnoverAnalysis',
    'Recommendation',
    'UsageReport',
]
