"""
StockFlow - Usage Analytics & Forecasting Engine

Turns inventory movement history into usage trends, seasonal profiles,
anomaly reports, demand forecasts, stockout risk and par-level
recommendations.
"""

__version__ = "1.0.0"
