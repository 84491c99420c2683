"""
Risk & Recommendation Service
=============================
Turns forecasts and usage statistics into stockout risk, par levels,
velocity/turnover classifications and plain-language recommendations.

Design Principles:
- Deterministic rules, no learned behaviour
- Proposes changes, never writes them
- Zero denominators are guarded: usage rates are floored, ratios fall to 0

Risk Levels (horizon H):
- HIGH: days remaining <= 0.25 x H
- MEDIUM: days remaining <= 0.5 x H
- LOW: otherwise
"""

import math
from typing import Any, Dict, List, Optional
from datetime import date, timedelta

from stockflow.models.usage import ItemInfo
from stockflow.models.results import (
    AnomalyReport,
    ParLevelRecommendation,
    Recommendation,
    RiskLevel,
    SeasonalProfile,
    StockoutRisk,
    TrendDirection,
    TrendResult,
    TurnoverAnalysis,
    VelocityMetrics
)
from stockflow.utils.logger import get_logger
from stockflow.utils.constants import RISK_CONFIG, VELOCITY_CONFIG, merge_config
from stockflow.utils.validators import validate_horizon

logger = get_logger(__name__)


class RiskEngine:
    """
    Stockout, par-level, velocity and recommendation rules for one item.

    Usage
    -----
    >>> engine = RiskEngine()
    >>> risk = engine.stockout_risk(current_stock=100, average_daily_usage=10,
    ...                             horizon=30, as_of=date(2026, 3, 1))
    >>> risk.risk
    <RiskLevel.MEDIUM: 'medium'>
    """

    def __init__(self, config: Optional[Dict] = None, velocity_config: Optional[Dict] = None):
        self.config = merge_config(RISK_CONFIG, config)
        self.velocity_config = merge_config(VELOCITY_CONFIG, velocity_config)

    # =========================================================================
    # STOCKOUT
    # =========================================================================

    def stockout_risk(
        self,
        current_stock: float,
        average_daily_usage: float,
        horizon: int,
        as_of: date
    ) -> StockoutRisk:
        """
        Classify the risk of running out within the forecast horizon.

        Parameters
        ----------
        current_stock : float
            On-hand quantity
        average_daily_usage : float
            Mean forecast usage per day over the horizon
        horizon : int
            Forecast horizon in days
        as_of : date
            Day the stock snapshot belongs to

        Returns
        -------
        StockoutRisk
        """
        validate_horizon(horizon)
        daily = max(average_daily_usage, self.config["min_daily_usage"])
        days_remaining = max(current_stock, 0.0) / daily

        if days_remaining <= horizon * self.config["high_risk_fraction"]:
            risk = RiskLevel.HIGH
        elif days_remaining <= horizon * self.config["medium_risk_fraction"]:
            risk = RiskLevel.MEDIUM
        else:
            risk = RiskLevel.LOW

        stockout_date = None
        if days_remaining <= horizon:
            stockout_date = as_of + timedelta(days=math.floor(days_remaining))

        return StockoutRisk(
            current_stock=current_stock,
            estimated_period_usage=average_daily_usage * horizon,
            days_remaining=days_remaining,
            risk=risk,
            projected_stockout_date=stockout_date,
            recommended_order_quantity=self.recommended_order_quantity(
                days_remaining, average_daily_usage, horizon
            ),
        )

    def recommended_order_quantity(self, days_remaining: float, average_daily_usage: float, horizon: int) -> int:
        """Cover the horizon plus a safety margin once half of it is at risk."""
        if days_remaining > horizon * self.config["medium_risk_fraction"]:
            return 0
        return int(math.ceil(round(average_daily_usage * horizon * self.config["reorder_safety_margin"], 6)))

    # =========================================================================
    # PAR LEVELS
    # =========================================================================

    def par_levels(
        self,
        average_daily_usage: float,
        current_par_low: Optional[float] = None,
        current_par_high: Optional[float] = None,
        lead_time_days: Optional[int] = None
    ) -> ParLevelRecommendation:
        """
        Compute safety-stock (low) and max-stock (high) par levels.

        A stored level that is missing counts as 0. Adjustment is proposed
        when either stored level is off by more than the tolerance share of
        the computed level.
        """
        lead = lead_time_days if lead_time_days is not None else self.config["lead_time_days"]
        base = average_daily_usage * lead
        # Float noise must not push an exact level up by one
        par_low = int(math.ceil(round(base * self.config["par_low_multiplier"], 6)))
        par_high = int(math.ceil(round(base * self.config["par_high_multiplier"], 6)))

        tolerance = self.config["par_adjustment_tolerance"]
        needs_adjustment = (
            abs((current_par_low or 0) - par_low) > par_low * tolerance
            or abs((current_par_high or 0) - par_high) > par_high * tolerance
        )

        return ParLevelRecommendation(
            par_low=par_low,
            par_high=par_high,
            reorder_point=max(par_low, 1),
            average_daily_usage=average_daily_usage,
            lead_time_days=lead,
            current_par_low=current_par_low,
            current_par_high=current_par_high,
            needs_adjustment=needs_adjustment,
        )

    # =========================================================================
    # VELOCITY & TURNOVER
    # =========================================================================

    def velocity(
        self,
        total_usage: float,
        period_days: int,
        movement_count: int,
        current_stock: float,
        usage_by_type: Optional[Dict[str, float]] = None
    ) -> VelocityMetrics:
        """Consumption velocity over the analysis period."""
        average = total_usage / period_days if period_days > 0 else 0.0

        if current_stock <= 0:
            days_of_stock = 0
        else:
            days_of_stock = int(math.ceil(current_stock / max(average, self.config["min_daily_usage"])))

        denominator = current_stock + total_usage / 2
        turnover = total_usage / denominator if denominator > 0 else 0.0
        score = min(
            max(int(math.ceil(round(turnover, 6))), self.velocity_config["min_score"]),
            self.velocity_config["max_score"]
        )

        return VelocityMetrics(
            average_daily_usage=average,
            total_period_usage=total_usage,
            movement_count=movement_count,
            usage_frequency=movement_count / period_days if period_days > 0 else 0.0,
            days_of_stock_remaining=days_of_stock,
            turnover_rate=turnover,
            velocity_score=score,
            velocity_category=self._velocity_category(score),
            usage_by_type=dict(usage_by_type or {}),
        )

    def _velocity_category(self, score: int) -> str:
        categories = self.velocity_config["categories"]
        if score >= categories["fast"]:
            return "fast"
        if score >= categories["medium"]:
            return "medium"
        if score >= categories["slow"]:
            return "slow"
        return "dead"

    def turnover(self, item: ItemInfo, period_usage: float, period_days: int) -> TurnoverAnalysis:
        """Annualized value turnover of one item."""
        days_per_year = self.velocity_config["days_per_year"]
        cost = item.cost_per_unit or 0.0
        current_value = item.current_stock * cost
        annualized = period_usage * days_per_year / period_days if period_days > 0 else 0.0
        # Ratio of annualized usage value to value on hand
        ratio = annualized * cost / current_value if current_value > 0 else 0.0

        thresholds = self.velocity_config["turnover_categories"]
        if ratio >= thresholds["fast"]:
            category = "fast"
        elif ratio >= thresholds["medium"]:
            category = "medium"
        elif ratio >= thresholds["slow"]:
            category = "slow"
        else:
            category = "dead"

        return TurnoverAnalysis(
            item_id=item.item_id,
            item_name=item.name,
            current_quantity=item.current_stock,
            cost_per_unit=cost,
            period_usage=period_usage,
            period_days=period_days,
            turnover_ratio=ratio,
            turnover_category=category,
            days_in_inventory=(
                int(round(days_per_year / ratio)) if ratio > 0
                else self.velocity_config["dead_stock_days"]
            ),
        )

    def portfolio_summary(self, analyses: List[TurnoverAnalysis]) -> Dict[str, Any]:
        """Aggregate turnover across items with portfolio-level advice."""
        counts = {c: 0 for c in ("fast", "medium", "slow", "dead")}
        for analysis in analyses:
            counts[analysis.turnover_category] += 1

        ratios = [a.turnover_ratio for a in analyses]
        recommendations = []
        if counts["dead"]:
            recommendations.append(
                f"{counts['dead']} items with very low turnover - consider discontinuing or reducing stock"
            )
        if analyses and counts["slow"] / len(analyses) > self.velocity_config["slow_mover_share_alert"]:
            recommendations.append("High percentage of slow-moving items - review ordering strategies")
        if counts["fast"]:
            recommendations.append(f"{counts['fast']} fast-moving items - ensure adequate stock levels")

        logger.info(
            f"Turnover summary: {len(analyses)} items, "
            f"{counts['dead']} dead, {counts['slow']} slow, {counts['fast']} fast"
        )

        return {
            "total_items": len(analyses),
            "total_inventory_value": round(sum(a.current_value for a in analyses), 2),
            "average_turnover_ratio": round(sum(ratios) / len(ratios), 2) if ratios else 0.0,
            "by_category": counts,
            "recommendations": recommendations,
            "items": [
                a.to_dict()
                for a in sorted(analyses, key=lambda a: a.turnover_ratio, reverse=True)
            ],
        }

    # =========================================================================
    # RECOMMENDATIONS
    # =========================================================================

    def recommendations(
        self,
        current_stock: float,
        trend: Optional[TrendResult] = None,
        seasonal: Optional[SeasonalProfile] = None,
        anomalies: Optional[AnomalyReport] = None,
        stockout: Optional[StockoutRisk] = None,
        par_levels: Optional[ParLevelRecommendation] = None,
        velocity: Optional[VelocityMetrics] = None,
        item: Optional[ItemInfo] = None
    ) -> List[Recommendation]:
        """
        Apply the recommendation rules to whatever analyses are available.

        Returns
        -------
        List[Recommendation]
            In rule order; empty when nothing needs attention
        """
        recs: List[Recommendation] = []

        if stockout is not None:
            if stockout.risk == RiskLevel.HIGH:
                recs.append(Recommendation(
                    "urgent_reorder", "high",
                    "Urgent reorder needed - high stockout risk within forecast period",
                    {"recommended_order_quantity": stockout.recommended_order_quantity},
                ))
            elif stockout.risk == RiskLevel.MEDIUM:
                recs.append(Recommendation(
                    "schedule_reorder", "medium",
                    "Schedule reorder soon - moderate stockout risk",
                    {"recommended_order_quantity": stockout.recommended_order_quantity},
                ))

        if trend is not None:
            if trend.direction == TrendDirection.INCREASING:
                recs.append(Recommendation(
                    "trend_increasing", "medium",
                    "Usage trending upward - consider increasing par levels",
                ))
            elif trend.direction == TrendDirection.DECREASING:
                recs.append(Recommendation(
                    "trend_decreasing", "low",
                    "Usage trending downward - consider reducing order quantities",
                ))
            if trend.high_volatility:
                recs.append(Recommendation(
                    "high_volatility", "medium",
                    "High usage volatility detected - consider more frequent monitoring",
                ))

        if seasonal is not None and seasonal.strong_seasonality:
            recs.append(Recommendation(
                "strong_seasonality", "medium",
                "Strong seasonal patterns - adjust inventory levels seasonally",
            ))

        if anomalies is not None:
            count = len(anomalies.anomalies)
            if count > self.config["max_anomalies_before_alert"]:
                recs.append(Recommendation(
                    "frequent_anomalies", "medium",
                    f"{count} usage anomalies - investigate operational changes",
                ))
            long_streaks = [
                s for s in anomalies.zero_usage_streaks
                if s.duration_days >= self.config["long_zero_streak_days"]
            ]
            if long_streaks:
                longest = max(long_streaks, key=lambda s: s.duration_days)
                recs.append(Recommendation(
                    "idle_item", "low",
                    f"No usage for {longest.duration_days} consecutive days - review whether item is still in use",
                ))

        # Items without any stored par levels have nothing to adjust yet
        if par_levels is not None and par_levels.needs_adjustment and par_levels.has_stored_levels:
            recs.append(Recommendation(
                "par_level_optimization", "medium",
                "Adjust par levels based on usage patterns",
                {"recommended_par": {"low": par_levels.par_low, "high": par_levels.par_high}},
            ))

        par_high = self._overstock_reference(item, par_levels)
        if par_high and current_stock > par_high * self.config["overstock_multiplier"]:
            recs.append(Recommendation(
                "overstock_warning", "low",
                "Consider reducing order quantities - currently overstocked",
                {"excess_quantity": round(current_stock - par_high, 2)},
            ))

        if velocity is not None:
            if velocity.velocity_score <= self.velocity_config["categories"]["slow"]:
                recs.append(Recommendation(
                    "slow_moving_item", "low",
                    "Slow-moving item - review necessity or reduce stock levels",
                    {"velocity_score": velocity.velocity_score},
                ))
            elif velocity.velocity_score >= self.velocity_config["categories"]["fast"]:
                recs.append(Recommendation(
                    "high_velocity_item", "medium",
                    "Fast-moving item - consider increasing par levels or order frequency",
                    {"velocity_score": velocity.velocity_score},
                ))

        return recs

    @staticmethod
    def _overstock_reference(item: Optional[ItemInfo], par_levels: Optional[ParLevelRecommendation]) -> Optional[float]:
        """Stored par high when the item has one, else the computed one."""
        if item is not None and item.par_level_high:
            return item.par_level_high
        if par_levels is not None:
            return par_levels.par_high
        return None
