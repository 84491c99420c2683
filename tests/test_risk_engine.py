from datetime import date, timedelta

import pytest

from stockflow.models.usage import ItemInfo
from stockflow.models.results import (
    AnomalyReport,
    RiskLevel,
    TrendDirection,
    TrendResult,
    ZeroUsageStreak
)
from stockflow.services.risk_engine import RiskEngine

AS_OF = date(2026, 3, 31)


def test_stockout_medium_boundary():
    """100 units at 10/day over a 30 day horizon is a medium risk"""
    risk = RiskEngine().stockout_risk(current_stock=100, average_daily_usage=10, horizon=30, as_of=AS_OF)

    assert risk.days_remaining == pytest.approx(10.0)
    assert risk.risk == RiskLevel.MEDIUM
    assert risk.projected_stockout_date == AS_OF + timedelta(days=10)
    assert risk.estimated_period_usage == pytest.approx(300.0)
    assert risk.recommended_order_quantity == 360


def test_stockout_high_and_low():
    engine = RiskEngine()

    high = engine.stockout_risk(50, 10, 30, AS_OF)
    assert high.risk == RiskLevel.HIGH

    low = engine.stockout_risk(1000, 10, 30, AS_OF)
    assert low.risk == RiskLevel.LOW
    assert low.projected_stockout_date is None
    assert low.recommended_order_quantity == 0


def test_stockout_floors_usage_rate():
    risk = RiskEngine().stockout_risk(current_stock=1, average_daily_usage=0, horizon=30, as_of=AS_OF)

    assert risk.days_remaining == pytest.approx(10.0)
    assert risk.risk == RiskLevel.MEDIUM
    assert risk.recommended_order_quantity == 0


def test_empty_stock_is_high_risk_today():
    risk = RiskEngine().stockout_risk(current_stock=0, average_daily_usage=4, horizon=30, as_of=AS_OF)

    assert risk.days_remaining == 0.0
    assert risk.risk == RiskLevel.HIGH
    assert risk.projected_stockout_date == AS_OF


def test_par_levels():
    par = RiskEngine().par_levels(average_daily_usage=5)

    assert par.par_low == 53
    assert par.par_high == 105
    assert par.reorder_point == 53
    assert par.lead_time_days == 7


def test_par_levels_zero_usage():
    par = RiskEngine().par_levels(average_daily_usage=0)

    assert (par.par_low, par.par_high) == (0, 0)
    assert par.reorder_point == 1
    assert not par.needs_adjustment


def test_par_adjustment_tolerance():
    engine = RiskEngine()

    assert not engine.par_levels(5, current_par_low=50, current_par_high=100).needs_adjustment
    assert engine.par_levels(5, current_par_low=30, current_par_high=105).needs_adjustment
    assert engine.par_levels(5).needs_adjustment


def test_velocity_metrics():
    velocity = RiskEngine().velocity(
        total_usage=90, period_days=30, movement_count=30, current_stock=45,
        usage_by_type={"usage": 80, "waste": 10}
    )

    assert velocity.average_daily_usage == pytest.approx(3.0)
    assert velocity.days_of_stock_remaining == 15
    assert velocity.turnover_rate == pytest.approx(1.0)
    assert velocity.velocity_score == 1
    assert velocity.velocity_category == "dead"
    assert velocity.usage_frequency == pytest.approx(1.0)
    assert velocity.usage_by_type == {"usage": 80, "waste": 10}


def test_velocity_without_stock():
    velocity = RiskEngine().velocity(total_usage=300, period_days=30, movement_count=12, current_stock=0)

    assert velocity.days_of_stock_remaining == 0
    assert velocity.turnover_rate == pytest.approx(2.0)
    assert velocity.velocity_score == 2
    assert velocity.velocity_category == "slow"


def test_velocity_without_usage():
    velocity = RiskEngine().velocity(total_usage=0, period_days=30, movement_count=0, current_stock=0)

    assert velocity.turnover_rate == 0.0
    assert velocity.velocity_score == 1


def test_turnover_analysis():
    item = ItemInfo(item_id="oil", name="Olive oil", current_stock=10, cost_per_unit=4.0)
    analysis = RiskEngine().turnover(item, period_usage=30, period_days=30)

    # 365 units a year against 10 on hand
    assert analysis.turnover_ratio == pytest.approx(36.5)
    assert analysis.turnover_category == "fast"
    assert analysis.days_in_inventory == 10
    assert analysis.current_value == pytest.approx(40.0)


def test_turnover_without_value_is_dead():
    item = ItemInfo(item_id="salt", current_stock=0, cost_per_unit=1.0)
    analysis = RiskEngine().turnover(item, period_usage=5, period_days=30)

    assert analysis.turnover_ratio == 0.0
    assert analysis.turnover_category == "dead"
    assert analysis.days_in_inventory == 999


def test_portfolio_summary():
    engine = RiskEngine()
    analyses = [
        engine.turnover(ItemInfo("a", current_stock=10, cost_per_unit=1.0), 30, 30),
        engine.turnover(ItemInfo("b", current_stock=100, cost_per_unit=1.0), 30, 30),
        engine.turnover(ItemInfo("c", current_stock=100, cost_per_unit=1.0), 1, 30),
    ]
    summary = engine.portfolio_summary(analyses)

    assert summary["total_items"] == 3
    assert summary["by_category"] == {"fast": 1, "medium": 0, "slow": 1, "dead": 1}
    assert summary["items"][0]["item_id"] == "a"
    assert any("very low turnover" in r for r in summary["recommendations"])
    assert any("slow-moving" in r for r in summary["recommendations"])
    assert any("fast-moving" in r for r in summary["recommendations"])


def test_recommendation_rules():
    engine = RiskEngine()
    trend = TrendResult(direction=TrendDirection.INCREASING, high_volatility=True)
    anomalies = AnomalyReport(
        zero_usage_streaks=[ZeroUsageStreak(AS_OF - timedelta(days=9), AS_OF - timedelta(days=2), 8)]
    )
    stockout = engine.stockout_risk(50, 10, 30, AS_OF)
    item = ItemInfo("flour", current_stock=50, par_level_low=5, par_level_high=10)

    recs = engine.recommendations(
        current_stock=50,
        trend=trend,
        anomalies=anomalies,
        stockout=stockout,
        par_levels=engine.par_levels(10, item.par_level_low, item.par_level_high),
        item=item,
    )
    types = [r.type for r in recs]

    assert types == [
        "urgent_reorder",
        "trend_increasing",
        "high_volatility",
        "idle_item",
        "par_level_optimization",
        "overstock_warning",
    ]
    assert recs[0].to_dict()["recommended_order_quantity"] == 360


def test_no_recommendations_when_healthy():
    engine = RiskEngine()
    recs = engine.recommendations(
        current_stock=1000,
        trend=TrendResult(direction=TrendDirection.STABLE),
        stockout=engine.stockout_risk(1000, 10, 30, AS_OF),
    )

    assert recs == []


def test_par_rule_needs_stored_levels():
    engine = RiskEngine()

    unset = engine.recommendations(current_stock=0, par_levels=engine.par_levels(10))
    assert "par_level_optimization" not in [r.type for r in unset]

    stored = engine.recommendations(current_stock=0, par_levels=engine.par_levels(10, current_par_low=20))
    assert [r.type for r in stored] == ["par_level_optimization"]
