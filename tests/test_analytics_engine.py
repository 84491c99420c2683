import json
from datetime import timedelta

import pytest

from stockflow.exceptions import AnalyticsError, InvalidWindowError
from stockflow.models.usage import ItemInfo
from stockflow.models.results import RiskLevel, TrendDirection
from stockflow.services.analytics_engine import UsageAnalyticsEngine
from tests.conftest import AS_OF, make_events


def _steady_events(item_id="flour", days=60, quantity=10.0):
    """``quantity`` per day for the ``days`` days ending on AS_OF."""
    start = AS_OF - timedelta(days=days - 1)
    return make_events(item_id, start, [quantity] * days)


def test_comprehensive_report():
    report = UsageAnalyticsEngine().build_report(
        "flour", _steady_events(), current_stock=100, as_of=AS_OF,
        period_days=30, horizon_days=30
    )

    assert report.analysis_types == ["trends", "seasonal", "anomalies", "forecast"]
    assert report.trend.direction == TrendDirection.STABLE
    assert report.trend.average_daily_usage == pytest.approx(10.0)
    assert report.seasonal.history_days == 60
    assert report.seasonal.reduced_confidence
    assert report.anomalies.anomalies == []
    assert report.forecast.history_days == 60
    assert report.forecast.average_daily_usage == pytest.approx(10.0)
    assert report.stockout_risk.risk == RiskLevel.MEDIUM
    assert report.stockout_risk.days_remaining == pytest.approx(10.0)
    assert report.velocity.movement_count == 30
    assert report.par_levels.par_low == 105
    assert report.insufficient == {}

    types = [r.type for r in report.recommendations]
    assert "schedule_reorder" in types
    # No stored par levels, so nothing to adjust
    assert "par_level_optimization" not in types


def test_summary_block():
    summary = UsageAnalyticsEngine().build_report(
        "flour", _steady_events(), current_stock=100, as_of=AS_OF,
        period_days=30, horizon_days=30
    ).to_dict()["summary"]

    assert summary == {
        "has_reliable_data": True,
        "overall_stability": "stable",
        "seasonality_detected": False,
        "anomalies_detected": False,
        "forecast_quality": "low",
    }


def test_analysis_type_subset():
    report = UsageAnalyticsEngine().build_report(
        "flour", _steady_events(), current_stock=100, as_of=AS_OF,
        analysis_types=["trends"]
    )

    assert report.trend is not None
    assert report.seasonal is None
    assert report.anomalies is None
    assert report.forecast is None
    assert report.stockout_risk is None
    assert report.velocity is not None


def test_unknown_analysis_type():
    with pytest.raises(AnalyticsError):
        UsageAnalyticsEngine().build_report(
            "flour", [], current_stock=0, as_of=AS_OF, analysis_types=["trends", "weather"]
        )


def test_new_item_marks_forecast_insufficient():
    report = UsageAnalyticsEngine().build_report(
        "flour", _steady_events(days=5), current_stock=20, as_of=AS_OF
    )

    assert report.forecast is None
    assert report.stockout_risk is None
    assert "forecast" in report.insufficient
    assert report.trend is not None


def test_item_without_usage():
    report = UsageAnalyticsEngine().build_report("flour", [], current_stock=0, as_of=AS_OF)

    assert report.seasonal is None
    assert "seasonal" in report.insufficient
    assert "forecast" in report.insufficient
    assert report.velocity.total_period_usage == 0.0


@pytest.mark.parametrize("period, horizon", [(0, 30), (30, -1), (800, 30), (30, 400)])
def test_invalid_windows(period, horizon):
    with pytest.raises(InvalidWindowError):
        UsageAnalyticsEngine().build_report(
            "flour", [], current_stock=0, as_of=AS_OF, period_days=period, horizon_days=horizon
        )


def test_identical_inputs_give_identical_reports():
    engine = UsageAnalyticsEngine()
    events = _steady_events() + make_events("flour", AS_OF - timedelta(days=3), [25.0])

    first = engine.build_report("flour", events, 80, AS_OF).to_dict()
    second = engine.build_report("flour", list(reversed(events)), 80, AS_OF).to_dict()

    assert first == second
    json.dumps(first)


def test_stored_par_levels_drive_overstock():
    item = ItemInfo("flour", name="Flour", current_stock=500, par_level_low=60, par_level_high=120)
    report = UsageAnalyticsEngine().build_report(
        "flour", _steady_events(), current_stock=500, as_of=AS_OF, item=item
    )

    assert report.item_name == "Flour"
    assert report.par_levels.current_par_high == 120
    assert "overstock_warning" in [r.type for r in report.recommendations]


def test_generate_report_fetches_widest_window(source_factory):
    source = source_factory({"flour": _steady_events()}, {"flour": 100})
    report = UsageAnalyticsEngine().generate_report("flour", source, AS_OF, period_days=30, horizon_days=30)

    assert source.requested_windows == [("flour", AS_OF - timedelta(days=179), AS_OF)]
    assert report.stockout_risk.risk == RiskLevel.MEDIUM


def test_batch_captures_item_errors(source_factory):
    source = source_factory(
        {"flour": _steady_events(), "sugar": _steady_events("sugar")},
        {"flour": 100, "sugar": 100},
        fail_for={"sugar"},
    )
    result = UsageAnalyticsEngine().analyze_batch(["flour", "sugar"], source, AS_OF)

    assert result["total_items"] == 2
    assert result["success_count"] == 1
    by_item = {r["item_id"]: r for r in result["results"]}
    assert by_item["flour"]["success"]
    assert by_item["flour"]["report"]["item_id"] == "flour"
    assert not by_item["sugar"]["success"]
    assert "storage unavailable" in by_item["sugar"]["error"]


def test_recalculate_par_levels_proposes_only(source_factory):
    item = ItemInfo("flour", name="Flour", current_stock=100, par_level_low=105, par_level_high=210)
    source = source_factory({"flour": _steady_events()}, {"flour": 100}, items={"flour": item})

    proposals = UsageAnalyticsEngine().recalculate_par_levels(["flour"], source, AS_OF, period_days=30)

    assert proposals == [{
        "item_id": "flour",
        "item_name": "Flour",
        "recommended": {"low": 105, "high": 210},
        "current": {"low": 105.0, "high": 210.0},
        "reorder_point": 105,
        "average_daily_usage": 10.0,
        "lead_time_days": 7,
        "needs_adjustment": False,
    }]
    assert item.par_level_low == 105


def test_turnover_analysis(source_factory):
    item = ItemInfo("flour", name="Flour", current_stock=100, cost_per_unit=2.0)
    source = source_factory({"flour": _steady_events()}, {"flour": 100}, items={"flour": item})

    summary = UsageAnalyticsEngine().turnover_analysis(["flour", "ghost"], source, AS_OF, period_days=30)

    assert summary["total_items"] == 1
    assert summary["items"][0]["turnover_ratio"] == pytest.approx(36.5)
