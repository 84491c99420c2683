"""
Seasonality Profiling Service
=============================
Buckets daily usage by calendar position (weekday, day of month, month,
quarter) and scores how unevenly usage is spread across each dimension.

Design Principles:
- Fixed-size sum/count arrays per dimension, no keyed lookups
- Empty buckets are reported but never influence peaks or variance
- Short histories still get a profile, flagged as reduced confidence

Bucket Conventions:
- weekday: 0-6, 0 = Sunday
- day_of_month: 1-31
- month: 0-11, 0 = January
- quarter: 0-3
"""

import numpy as np
import pandas as pd
from typing import Dict, Optional

from stockflow.models.usage import DailyUsageSeries
from stockflow.models.results import (
    BucketProfile,
    SeasonalProfile,
    WeekdayWeekendComparison
)
from stockflow.utils.logger import get_logger
from stockflow.utils.constants import (
    SEASONALITY_CONFIG,
    WEEKDAY_NAMES,
    MONTH_NAMES,
    merge_config
)

logger = get_logger(__name__)

# dimension -> (first bucket, number of buckets)
BUCKET_LAYOUT = {
    "weekday": (0, 7),
    "day_of_month": (1, 31),
    "month": (0, 12),
    "quarter": (0, 4),
}

BUCKET_LABELS = {
    "weekday": dict(enumerate(WEEKDAY_NAMES)),
    "day_of_month": {day: str(day) for day in range(1, 32)},
    "month": dict(enumerate(MONTH_NAMES)),
    "quarter": {q: f"Q{q + 1}" for q in range(4)},
}


def calendar_buckets(index: pd.DatetimeIndex) -> Dict[str, np.ndarray]:
    """Bucket number of every day in ``index`` for each dimension."""
    month = index.month.to_numpy() - 1
    return {
        # pandas counts Monday as 0
        "weekday": (index.dayofweek.to_numpy() + 1) % 7,
        "day_of_month": index.day.to_numpy(),
        "month": month,
        "quarter": month // 3,
    }


class SeasonalityProfiler:
    """
    Builds a SeasonalProfile from a daily usage series.

    Usage
    -----
    >>> profiler = SeasonalityProfiler()
    >>> profile = profiler.profile(series)
    >>> profile.weekday.peak_bucket   # 5 = Friday
    5
    """

    def __init__(self, config: Optional[Dict] = None):
        self.config = merge_config(SEASONALITY_CONFIG, config)

    def profile(self, series: DailyUsageSeries) -> SeasonalProfile:
        """
        Profile usage by calendar bucket.

        Parameters
        ----------
        series : DailyUsageSeries
            Zero-filled daily usage, ideally at least ``min_history_days``
            long so every month can be represented

        Returns
        -------
        SeasonalProfile
        """
        values = series.values
        buckets = calendar_buckets(series.index)

        profiles = {
            dimension: self._bucket_profile(dimension, buckets[dimension], values)
            for dimension in BUCKET_LAYOUT
        }

        weekday = profiles["weekday"]
        month = profiles["month"]
        reduced = len(series) < self.config["min_history_days"]
        if reduced:
            logger.info(
                f"Seasonality for item {series.item_id}: {len(series)} days of history, "
                f"below {self.config['min_history_days']}; reduced confidence"
            )

        result = SeasonalProfile(
            weekday=weekday,
            day_of_month=profiles["day_of_month"],
            month=month,
            quarter=profiles["quarter"],
            weekday_vs_weekend=self._weekday_vs_weekend(weekday),
            has_weekly_pattern=weekday.variance_score > self.config["weekly_variance_threshold"],
            has_seasonal_pattern=month.variance_score > self.config["seasonal_variance_threshold"],
            strong_seasonality=month.variance_score > self.config["strong_seasonal_variance_threshold"],
            history_days=len(series),
            reduced_confidence=reduced,
        )

        logger.debug(
            f"Seasonality for item {series.item_id}: weekday variance "
            f"{weekday.variance_score:.2f}, month variance {month.variance_score:.2f}"
        )
        return result

    @staticmethod
    def _bucket_profile(dimension: str, positions: np.ndarray, values: np.ndarray) -> BucketProfile:
        first, size = BUCKET_LAYOUT[dimension]
        slots = positions - first

        sums = np.bincount(slots, weights=values, minlength=size)[:size]
        counts = np.bincount(slots, minlength=size)[:size]

        populated = counts > 0
        averages = np.zeros(size)
        averages[populated] = sums[populated] / counts[populated]

        profile = BucketProfile(
            dimension=dimension,
            averages={int(i + first): float(averages[i]) for i in np.flatnonzero(populated)},
            counts={int(i + first): int(counts[i]) for i in np.flatnonzero(populated)},
            labels=BUCKET_LABELS[dimension],
        )

        filled = averages[populated]
        if len(filled) == 0:
            return profile

        profile.peak_bucket = int(np.flatnonzero(populated)[np.argmax(filled)] + first)
        mean = float(np.mean(filled))
        if len(filled) >= 2 and mean > 0:
            profile.variance_score = float(np.std(filled) / mean)
        return profile

    def _weekday_vs_weekend(self, weekday: BucketProfile) -> WeekdayWeekendComparison:
        def mean_of(buckets):
            present = [weekday.averages[b] for b in buckets if b in weekday.averages]
            return float(np.mean(present)) if present else 0.0

        return WeekdayWeekendComparison(
            weekday_average=mean_of(self.config["weekday_buckets"]),
            weekend_average=mean_of(self.config["weekend_buckets"]),
        )
