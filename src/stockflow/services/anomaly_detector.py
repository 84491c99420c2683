"""
Usage Anomaly Detection Service
===============================
Flags days whose usage is statistically out of line with the rest of the
series, groups nearby anomalies and finds idle (zero-usage) periods.

Design Principles:
- Population statistics over the whole window
- A flat series (stddev 0) has no anomalies
- Thresholds configurable via ANOMALY_CONFIG

Outputs:
1. Anomalies: |z| > 2, high severity when |z| > 3
2. Clusters: anomalies no more than 3 days apart
3. Zero-usage streaks: runs of 2+ days without usage
4. Stability score: max(0, 100 - CV x 100)
"""

import numpy as np
from typing import Dict, List, Optional
from collections import Counter

from stockflow.models.usage import DailyUsageSeries
from stockflow.models.results import (
    Anomaly,
    AnomalyCluster,
    AnomalyReport,
    AnomalyType,
    Severity,
    ZeroUsageStreak
)
from stockflow.services.seasonality import calendar_buckets
from stockflow.utils.logger import get_logger
from stockflow.utils.constants import ANOMALY_CONFIG, merge_config

logger = get_logger(__name__)


class AnomalyDetector:
    """
    Z-score anomaly detector for daily usage.

    Usage
    -----
    >>> detector = AnomalyDetector()
    >>> report = detector.detect(series)
    >>> [a.type.value for a in report.anomalies]
    ['spike']
    """

    def __init__(self, config: Optional[Dict] = None):
        self.config = merge_config(ANOMALY_CONFIG, config)

    def detect(self, series: DailyUsageSeries) -> AnomalyReport:
        """
        Detect anomalies, anomaly clusters and zero-usage streaks.

        Parameters
        ----------
        series : DailyUsageSeries
            Zero-filled daily usage

        Returns
        -------
        AnomalyReport
        """
        values = series.values
        if len(values) == 0:
            return AnomalyReport()

        mean = float(np.mean(values))
        std = float(np.std(values))
        cv = std / mean if mean > 0 else 0.0
        stability = max(0.0, 100.0 - cv * 100.0)

        anomalies = self._find_anomalies(series, mean, std)
        clusters, isolated = self._cluster(anomalies)

        weekdays = calendar_buckets(series.index)["weekday"]
        positions = {d: i for i, d in enumerate(series.dates)}
        by_weekday = Counter(int(weekdays[positions[a.date]]) for a in anomalies)

        report = AnomalyReport(
            mean=mean,
            std_dev=std,
            coefficient_of_variation=cv,
            stability_score=stability,
            anomalies=anomalies,
            clusters=clusters,
            isolated_anomalies=isolated,
            zero_usage_streaks=self._zero_streaks(series),
            anomalies_by_weekday=dict(by_weekday),
            is_stable=stability > self.config["stable_score"],
        )

        if anomalies:
            logger.info(
                f"Item {series.item_id}: {len(anomalies)} anomalies "
                f"({report.high_severity_count} high severity), {len(clusters)} clusters"
            )
        return report

    def _find_anomalies(self, series: DailyUsageSeries, mean: float, std: float) -> List[Anomaly]:
        if std == 0:
            return []

        threshold = self.config["z_threshold"]
        high = self.config["high_severity_z"]
        z_scores = np.abs(series.values - mean) / std

        anomalies = []
        for day, value, z in zip(series.dates, series.values, z_scores):
            if z <= threshold:
                continue
            anomalies.append(Anomaly(
                date=day,
                observed_usage=float(value),
                expected_min=mean - threshold * std,
                expected_max=mean + threshold * std,
                z_score=float(z),
                severity=Severity.HIGH if z > high else Severity.MEDIUM,
                type=AnomalyType.SPIKE if value > mean else AnomalyType.DROP,
            ))
        return anomalies

    def _cluster(self, anomalies: List[Anomaly]):
        """Split anomalies into clusters and isolated anomalies."""
        groups: List[List[Anomaly]] = []
        for anomaly in sorted(anomalies, key=lambda a: a.date):
            if groups and (anomaly.date - groups[-1][-1].date).days <= self.config["cluster_gap_days"]:
                groups[-1].append(anomaly)
            else:
                groups.append([anomaly])

        clusters, isolated = [], []
        for group in groups:
            if len(group) >= self.config["min_cluster_size"]:
                clusters.append(AnomalyCluster(
                    start_date=group[0].date,
                    end_date=group[-1].date,
                    anomalies=group
                ))
            else:
                isolated.extend(group)
        return clusters, isolated

    def _zero_streaks(self, series: DailyUsageSeries) -> List[ZeroUsageStreak]:
        """Maximal runs of zero-usage days at least ``min_streak_days`` long."""
        is_zero = np.concatenate(([False], series.values == 0, [False]))
        edges = np.flatnonzero(np.diff(is_zero.astype(int)))
        starts, ends = edges[0::2], edges[1::2]

        dates = series.dates
        streaks = []
        for start, end in zip(starts, ends):
            length = int(end - start)
            if length >= self.config["min_streak_days"]:
                streaks.append(ZeroUsageStreak(
                    start_date=dates[start],
                    end_date=dates[end - 1],
                    duration_days=length
                ))
        return streaks
