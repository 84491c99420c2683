"""
Usage Analytics Engine
======================
Orchestrates the analytics stages for one item (or a batch of items) and
assembles the per-item UsageReport.

Pipeline:
    events -> MovementAggregator -> DailyUsageSeries
           -> TrendAnalyzer / SeasonalityProfiler / AnomalyDetector
           -> UsageForecaster -> RiskEngine -> UsageReport

Design Principles:
- Stateless: every call recomputes from the supplied events
- Deterministic: the reference day is an explicit ``as_of`` argument
- Degrade per section: a stage lacking data marks its section
  insufficient instead of failing the whole report
- Batch failures are captured per item and never abort the batch

Windows (all ending on ``as_of``):
- analysis: ``period`` days (trend, anomalies, velocity, par levels)
- seasonality: ``max(period, 180)`` days
- forecast: ``max(2 x horizon, 14)`` days
"""

from typing import Any, Dict, Iterable, List, Optional
from datetime import date, timedelta

from stockflow.exceptions import AnalyticsError, InsufficientDataError
from stockflow.models.usage import DailyUsageSeries, ItemInfo, UsageEvent
from stockflow.models.results import UsageReport
from stockflow.services.aggregator import MovementAggregator
from stockflow.services.trend_analyzer import TrendAnalyzer
from stockflow.services.seasonality import SeasonalityProfiler
from stockflow.services.anomaly_detector import AnomalyDetector
from stockflow.services.forecaster import UsageForecaster
from stockflow.services.risk_engine import RiskEngine
from stockflow.utils.logger import get_logger, LogContext
from stockflow.utils.constants import ENGINE_LIMITS
from stockflow.utils.validators import validate_horizon

logger = get_logger(__name__)

ANALYSIS_TYPES = ("trends", "seasonal", "anomalies", "forecast")


class UsageAnalyticsEngine:
    """
    Builds usage reports from movement events.

    Parameters
    ----------
    config : Dict, optional
        Per-stage overrides keyed by stage: ``aggregation``, ``trend``,
        ``seasonality``, ``anomaly``, ``forecast``, ``risk``, ``velocity``

    Usage
    -----
    >>> engine = UsageAnalyticsEngine()
    >>> report = engine.build_report("flour", events, current_stock=40,
    ...                              as_of=date(2026, 3, 1))
    >>> report.to_dict()["summary"]["forecast_quality"]
    'high'
    """

    def __init__(self, config: Optional[Dict] = None):
        config = config or {}
        self.aggregator = MovementAggregator(config.get("aggregation"))
        self.trend_analyzer = TrendAnalyzer(config.get("trend"))
        self.seasonality_profiler = SeasonalityProfiler(config.get("seasonality"))
        self.anomaly_detector = AnomalyDetector(config.get("anomaly"))
        self.forecaster = UsageForecaster(config.get("forecast"))
        self.risk_engine = RiskEngine(config.get("risk"), config.get("velocity"))
        self.seasonal_min_days = self.seasonality_profiler.config["min_history_days"]

    # =========================================================================
    # WINDOWS
    # =========================================================================

    def _resolve_types(self, analysis_types: Optional[Iterable[str]]) -> List[str]:
        if analysis_types is None:
            return list(ANALYSIS_TYPES)
        requested = [t.strip().lower() for t in analysis_types if t and t.strip()]
        unknown = sorted(set(requested) - set(ANALYSIS_TYPES))
        if unknown:
            raise AnalyticsError(
                f"Unknown analysis types {unknown}; expected a subset of {list(ANALYSIS_TYPES)}"
            )
        if not requested:
            return list(ANALYSIS_TYPES)
        return [t for t in ANALYSIS_TYPES if t in requested]

    def history_days_needed(self, period: int, horizon: int, analysis_types: List[str]) -> int:
        """Length of the widest window the requested analyses read."""
        days = period
        if "seasonal" in analysis_types:
            days = max(days, self.seasonal_min_days)
        if "forecast" in analysis_types:
            days = max(days, self.forecaster.lookback_days(horizon))
        return days

    # =========================================================================
    # SINGLE ITEM
    # =========================================================================

    def build_report(
        self,
        item_id: Any,
        events: List[UsageEvent],
        current_stock: float,
        as_of: date,
        period_days: Optional[int] = None,
        horizon_days: Optional[int] = None,
        item: Optional[ItemInfo] = None,
        analysis_types: Optional[Iterable[str]] = None
    ) -> UsageReport:
        """
        Run the requested analyses for one item.

        Parameters
        ----------
        item_id : Any
            Item to analyze
        events : List[UsageEvent]
            Movement events covering at least the widest window needed
        current_stock : float
            On-hand quantity at ``as_of``
        as_of : date
            Last day of every analysis window
        period_days : int, optional
            Analysis window (default ENGINE_LIMITS["default_period_days"])
        horizon_days : int, optional
            Forecast horizon (default ENGINE_LIMITS["default_horizon_days"])
        item : ItemInfo, optional
            Stored settings (par levels, cost) used by par-level and
            overstock rules
        analysis_types : Iterable[str], optional
            Subset of trends, seasonal, anomalies, forecast; all by default

        Returns
        -------
        UsageReport

        Raises
        ------
        InvalidWindowError
            For non-positive period/horizon or a window beyond the limit
        AnalyticsError
            For unknown analysis types
        """
        period = validate_horizon(
            period_days if period_days is not None else ENGINE_LIMITS["default_period_days"], "period"
        )
        horizon = validate_horizon(
            horizon_days if horizon_days is not None else ENGINE_LIMITS["default_horizon_days"], "horizon"
        )
        types = self._resolve_types(analysis_types)

        with LogContext(logger, f"Building usage report for item {item_id}"):
            window = self.history_days_needed(period, horizon, types)
            events = list(events)
            full = self.aggregator.build_daily_series(
                events, item_id, as_of - timedelta(days=window - 1), as_of
            )
            period_series = full.tail(period)

            report = UsageReport(
                item_id=item_id,
                as_of=as_of,
                period_days=period,
                horizon_days=horizon,
                item_name=item.name if item is not None else "",
                analysis_types=types,
            )

            if "trends" in types:
                report.trend = self.trend_analyzer.analyze(period_series)
                if not report.trend.is_reliable:
                    report.insufficient["trends"] = (
                        f"{len(period_series)} days in period, need "
                        f"{self.trend_analyzer.config['min_data_points']}"
                    )

            if "seasonal" in types:
                report.seasonal = self._seasonal(full, period, report)

            if "anomalies" in types:
                report.anomalies = self.anomaly_detector.detect(period_series)

            if "forecast" in types:
                self._forecast(full, horizon, current_stock, as_of, report)

            self._velocity_and_par_levels(
                events, item_id, period_series, current_stock, item, report
            )

            report.recommendations = self.risk_engine.recommendations(
                current_stock=current_stock,
                trend=report.trend,
                seasonal=report.seasonal,
                anomalies=report.anomalies,
                stockout=report.stockout_risk,
                par_levels=report.par_levels,
                velocity=report.velocity,
                item=item,
            )

        logger.info(
            f"Report for item {item_id}: {len(types)} analyses, "
            f"{len(report.recommendations)} recommendations"
        )
        return report

    def _seasonal(self, full: DailyUsageSeries, period: int, report: UsageReport):
        lookback = max(period, self.seasonal_min_days)
        history = full.tail(lookback).trim_leading_zeros()
        if len(history) == 0:
            report.insufficient["seasonal"] = "no recorded usage in the seasonality window"
            return None
        return self.seasonality_profiler.profile(history)

    def _forecast(
        self,
        full: DailyUsageSeries,
        horizon: int,
        current_stock: float,
        as_of: date,
        report: UsageReport
    ) -> None:
        try:
            report.forecast = self.forecaster.forecast(full, horizon)
        except InsufficientDataError as e:
            logger.warning(f"Forecast skipped for item {full.item_id}: {e}")
            report.insufficient["forecast"] = str(e)
            return

        report.stockout_risk = self.risk_engine.stockout_risk(
            current_stock=current_stock,
            average_daily_usage=report.forecast.average_daily_usage,
            horizon=horizon,
            as_of=as_of,
        )

    def _velocity_and_par_levels(
        self,
        events: List[UsageEvent],
        item_id: Any,
        period_series: DailyUsageSeries,
        current_stock: float,
        item: Optional[ItemInfo],
        report: UsageReport
    ) -> None:
        start, end = period_series.start_date, period_series.end_date
        report.velocity = self.risk_engine.velocity(
            total_usage=period_series.total_usage,
            period_days=len(period_series),
            movement_count=self.aggregator.count_movements(events, item_id, start, end),
            current_stock=current_stock,
            usage_by_type=self.aggregator.usage_by_movement_type(events, item_id, start, end),
        )
        report.par_levels = self.risk_engine.par_levels(
            average_daily_usage=report.velocity.average_daily_usage,
            current_par_low=item.par_level_low if item is not None else None,
            current_par_high=item.par_level_high if item is not None else None,
        )

    # =========================================================================
    # DATA SOURCE
    # =========================================================================

    def generate_report(
        self,
        item_id: Any,
        data_source,
        as_of: date,
        period_days: Optional[int] = None,
        horizon_days: Optional[int] = None,
        analysis_types: Optional[Iterable[str]] = None
    ) -> UsageReport:
        """
        Fetch an item's movements and stock from ``data_source`` and build its report.

        ``data_source`` provides ``fetch_usage_events(item_id, start, end)``,
        ``fetch_current_stock(item_id)`` and optionally ``fetch_item(item_id)``.
        """
        period = validate_horizon(
            period_days if period_days is not None else ENGINE_LIMITS["default_period_days"], "period"
        )
        horizon = validate_horizon(
            horizon_days if horizon_days is not None else ENGINE_LIMITS["default_horizon_days"], "horizon"
        )
        types = self._resolve_types(analysis_types)
        window = self.history_days_needed(period, horizon, types)

        item = data_source.fetch_item(item_id) if hasattr(data_source, "fetch_item") else None
        events = data_source.fetch_usage_events(item_id, as_of - timedelta(days=window - 1), as_of)
        current_stock = data_source.fetch_current_stock(item_id)

        return self.build_report(
            item_id, events, current_stock, as_of,
            period_days=period,
            horizon_days=horizon,
            item=item,
            analysis_types=types,
        )

    def analyze_batch(
        self,
        item_ids: Iterable[Any],
        data_source,
        as_of: date,
        period_days: Optional[int] = None,
        horizon_days: Optional[int] = None,
        analysis_types: Optional[Iterable[str]] = None
    ) -> Dict[str, Any]:
        """
        Build reports for many items; one item's failure never stops the rest.

        Returns
        -------
        Dict[str, Any]
            ``results`` (per-item ``report`` or ``error``), ``total_items``
            and ``success_count``
        """
        types = self._resolve_types(analysis_types)
        results = []

        with LogContext(logger, "Batch usage analysis"):
            for item_id in item_ids:
                try:
                    report = self.generate_report(
                        item_id, data_source, as_of,
                        period_days=period_days,
                        horizon_days=horizon_days,
                        analysis_types=types,
                    )
                    results.append({"item_id": item_id, "success": True, "report": report.to_dict()})
                except Exception as e:
                    logger.error(f"Analysis failed for item {item_id}: {e}")
                    results.append({"item_id": item_id, "success": False, "error": str(e)})

        success_count = sum(1 for r in results if r["success"])
        logger.info(f"Batch complete: {success_count}/{len(results)} items analyzed")
        return {
            "as_of": as_of.isoformat(),
            "total_items": len(results),
            "success_count": success_count,
            "results": results,
        }

    def recalculate_par_levels(
        self,
        item_ids: Iterable[Any],
        data_source,
        as_of: date,
        period_days: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        """
        Propose par levels from recent usage; nothing is written back.

        Returns
        -------
        List[Dict[str, Any]]
            One proposal per item that could be computed
        """
        period = validate_horizon(
            period_days if period_days is not None else ENGINE_LIMITS["default_period_days"], "period"
        )
        start = as_of - timedelta(days=period - 1)
        proposals = []

        for item_id in item_ids:
            item = data_source.fetch_item(item_id) if hasattr(data_source, "fetch_item") else None
            events = data_source.fetch_usage_events(item_id, start, as_of)
            series = self.aggregator.build_daily_series(events, item_id, start, as_of)
            recommendation = self.risk_engine.par_levels(
                average_daily_usage=series.total_usage / period,
                current_par_low=item.par_level_low if item is not None else None,
                current_par_high=item.par_level_high if item is not None else None,
            )
            proposals.append({
                "item_id": item_id,
                "item_name": item.name if item is not None else "",
                **recommendation.to_dict(),
            })

        adjust = sum(1 for p in proposals if p["needs_adjustment"])
        logger.info(f"Par levels recalculated for {len(proposals)} items, {adjust} need adjustment")
        return proposals

    def turnover_analysis(
        self,
        item_ids: Iterable[Any],
        data_source,
        as_of: date,
        period_days: Optional[int] = None
    ) -> Dict[str, Any]:
        """Portfolio turnover summary for items with stored cost data."""
        period = validate_horizon(
            period_days if period_days is not None else ENGINE_LIMITS["default_period_days"], "period"
        )
        start = as_of - timedelta(days=period - 1)
        analyses = []

        for item_id in item_ids:
            item = data_source.fetch_item(item_id) if hasattr(data_source, "fetch_item") else None
            if item is None:
                logger.warning(f"No item data for {item_id}; skipped in turnover analysis")
                continue
            events = data_source.fetch_usage_events(item_id, start, as_of)
            series = self.aggregator.build_daily_series(events, item_id, start, as_of)
            analyses.append(self.risk_engine.turnover(item, series.total_usage, period))

        return self.risk_engine.portfolio_summary(analyses)
