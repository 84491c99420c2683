"""
System-Wide Constants and Configurations
==========================================
Centralized location for all thresholds, model parameters and schemas
used by the usage analytics engine.

Design Principles:
- All magic numbers are defined here
- Every service accepts a partial override of its config dict
- Schemas define expected columns of movement/item inputs
"""

from typing import Dict, Any

# =============================================================================
# INPUT SCHEMAS
# =============================================================================
# Expected structure of movement and item tables supplied by collaborators.

MOVEMENT_SCHEMA = {
    "name": "stock_movements",
    "description": "Timestamped inventory movement events",
    "required_columns": ["inventory_item_id", "quantity", "direction", "movement_date"],
    "optional_columns": ["movement_type", "notes"],
    "timestamp_columns": ["movement_date"],
    "numeric_columns": ["quantity"],
    "valid_directions": ["in", "out"],
    "default_movement_type": "usage",
}

ITEM_SCHEMA = {
    "name": "inventory_items",
    "description": "Inventory item snapshot (current stock, par levels, cost)",
    "required_columns": ["id", "current_quantity"],
    "optional_columns": [
        "item_name", "par_level_low", "par_level_high",
        "cost_per_unit", "unit_of_measurement", "category"
    ],
    "numeric_columns": ["current_quantity", "par_level_low", "par_level_high", "cost_per_unit"],
}

# =============================================================================
# ENGINE LIMITS
# =============================================================================
# Bounds that keep per-request computation cost predictable.

ENGINE_LIMITS = {
    "max_history_days": 730,        # Reject windows longer than two years
    "default_period_days": 90,      # Analysis window when caller gives none
    "default_horizon_days": 30,     # Forecast horizon when caller gives none
}

# =============================================================================
# AGGREGATION
# =============================================================================

AGGREGATION_CONFIG = {
    "usage_direction": "out",       # Only consumption feeds usage analytics
}

# =============================================================================
# TREND ANALYSIS
# =============================================================================

TREND_CONFIG = {
    "min_data_points": 2,
    "stable_growth_pct": 5.0,       # |growth| below this = stable
    "high_volatility": 0.5,         # Coefficient of variation threshold
    "peak_multiplier": 1.5,         # Peak day = usage > 1.5x average
    "max_peak_days": 5,
    # Weekly cycle check: volatility of weekly totals over the first weeks
    "weekly_cycle_min_points": 14,
    "weekly_cycle_max_weeks": 4,
    "weekly_cycle_volatility": 0.3,
}

# =============================================================================
# SEASONALITY
# =============================================================================

SEASONALITY_CONFIG = {
    "min_history_days": 180,        # Lookback is extended to at least this
    "weekly_variance_threshold": 0.1,
    "seasonal_variance_threshold": 0.2,
    "strong_seasonal_variance_threshold": 0.5,
    "weekday_buckets": [1, 2, 3, 4, 5],   # Monday-Friday (0 = Sunday)
    "weekend_buckets": [0, 6],
}

WEEKDAY_NAMES = ['Sunday', 'Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday']
MONTH_NAMES = ['Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun', 'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec']

# =============================================================================
# ANOMALY DETECTION
# =============================================================================

ANOMALY_CONFIG = {
    "z_threshold": 2.0,             # |z| > 2 = anomaly
    "high_severity_z": 3.0,         # |z| > 3 = high severity
    "cluster_gap_days": 3,          # Anomalies within 3 days share a cluster
    "min_cluster_size": 2,
    "min_streak_days": 2,           # Zero-usage streaks shorter than this are ignored
    "stable_score": 70.0,           # Stability score above this = stable series
}

# =============================================================================
# FORECASTING
# =============================================================================
# Component weights and smoothing factor have no documented derivation in
# the legacy system; they are defaults, not fitted values.

FORECAST_CONFIG = {
    "min_history_days": 14,
    "lookback_multiplier": 2,       # History window = 2 x horizon
    "sma_window": 7,
    "smoothing_alpha": 0.3,
    "weights": {
        "sma": 0.4,
        "exponential_smoothing": 0.3,
        "linear_trend": 0.3,
    },
    "data_quality_days": 30,        # History length that earns full data quality
    "confidence_decay_days": 10,    # exp(-k / 10)
    "confidence_thresholds": {
        "high": 0.8,
        "medium": 0.6,
    },
    "confidence_weights": {
        "high": 0.9,
        "medium": 0.7,
        "low": 0.4,
    },
    "data_quality_labels": {
        "good": 30,
        "fair": 14,
    },
    "stable_slope": 0.01,           # |slope| below this = flat linear trend
}

# =============================================================================
# RISK & RECOMMENDATIONS
# =============================================================================

RISK_CONFIG = {
    "min_daily_usage": 0.1,         # Floor divisor for days-remaining
    "high_risk_fraction": 0.25,     # days_remaining <= horizon x 0.25
    "medium_risk_fraction": 0.5,    # days_remaining <= horizon x 0.5
    "lead_time_days": 7,
    "par_low_multiplier": 1.5,      # Safety stock
    "par_high_multiplier": 3.0,     # Max stock
    "par_adjustment_tolerance": 0.2,
    "reorder_safety_margin": 1.2,   # 20% on top of forecast usage
    "overstock_multiplier": 2.0,    # stock > 2 x par_high = overstocked
    "max_anomalies_before_alert": 5,
    "long_zero_streak_days": 7,
}

VELOCITY_CONFIG = {
    "min_score": 1,
    "max_score": 5,
    "categories": {                 # Minimum score per velocity category
        "fast": 4,
        "medium": 3,
        "slow": 2,
    },
    "days_per_year": 365,
    "turnover_categories": {        # Annualized turnover ratio thresholds
        "fast": 12,
        "medium": 6,
        "slow": 2,
    },
    "dead_stock_days": 999,
    "slow_mover_share_alert": 0.3,
}

# =============================================================================
# LOGGING
# =============================================================================

LOGGING_CONFIG = {
    "level": "INFO",
    "format": "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    "datefmt": "%Y-%m-%d %H:%M:%S",
    "log_file": None,
}


def merge_config(defaults: Dict[str, Any], overrides: Dict[str, Any] = None) -> Dict[str, Any]:
    """Overlay a partial config on the defaults, one level of nesting deep."""
    merged = {
        key: dict(value) if isinstance(value, dict) else value
        for key, value in defaults.items()
    }
    for key, value in (overrides or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key].update(value)
        else:
            merged[key] = value
    return merged
