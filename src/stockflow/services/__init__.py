"""
Services Package
=================
Analytics stages of the StockFlow usage engine.

Modules:
- aggregator: Movement events to zero-filled daily usage
- trend_analyzer: Growth, direction, volatility and linear trend
- seasonality: Calendar-bucketed usage profiles
- anomaly_detector: Z-score anomalies, clusters and idle streaks
- forecaster: SMA + exponential smoothing + linear trend ensemble
- risk_engine: Stockout risk, par levels, velocity and recommendations
- analytics_engine: Per-item report orchestration and batch analysis
- data_loader: CSV/DataFrame loading and the in-memory data source
"""

from stockflow.services.aggregator import MovementAggregator
from stockflow.services.trend_analyzer import TrendAnalyzer
from stockflow.services.seasonality import SeasonalityProfiler
from stockflow.services.anomaly_detector import AnomalyDetector
from stockflow.services.forecaster import UsageForecaster
from stockflow.services.risk_engine import RiskEngine
from stockflow.services.analytics_engine import UsageAnalyticsEngine
from stockflow.services.data_loader import MovementLoader, DataFrameUsageSource

__all__ = [
    'MovementAggregator',
    'TrendAnalyzer',
    'SeasonalityProfiler',
    'AnomalyDetector',
    'UsageForecaster',
    'RiskEngine',
    'UsageAnalyticsEngine',
    'MovementLoader',
    'DataFrameUsageSource'
]
