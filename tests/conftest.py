"""Shared fixtures for the analytics tests."""

from datetime import date, datetime, timedelta, timezone

import pytest

from stockflow.models.usage import DailyUsageSeries, UsageEvent

# 2026-03-01 is a Sunday
SUNDAY = date(2026, 3, 1)
AS_OF = date(2026, 3, 31)


def make_events(item_id, start, values, direction="out", movement_type="usage", hour=12):
    """One event per non-zero daily value, starting at ``start``."""
    events = []
    for offset, quantity in enumerate(values):
        if quantity > 0:
            day = start + timedelta(days=offset)
            events.append(UsageEvent(
                item_id=item_id,
                quantity=quantity,
                timestamp=datetime(day.year, day.month, day.day, hour, tzinfo=timezone.utc),
                direction=direction,
                movement_type=movement_type,
            ))
    return events


def series_of(values, start=SUNDAY, item_id="flour"):
    return DailyUsageSeries.from_values(item_id, start, values)


@pytest.fixture
def event_factory():
    return make_events


@pytest.fixture
def series_factory():
    return series_of


class InMemorySource:
    """Minimal data source honouring the collaborator contract."""

    def __init__(self, events, stock, items=None, fail_for=()):
        self.events = events
        self.stock = stock
        self.items = items or {}
        self.fail_for = set(fail_for)
        self.requested_windows = []

    def fetch_usage_events(self, item_id, start_date, end_date):
        if item_id in self.fail_for:
            raise RuntimeError(f"storage unavailable for {item_id}")
        self.requested_windows.append((item_id, start_date, end_date))
        return [e for e in self.events.get(item_id, []) if start_date <= e.usage_date <= end_date]

    def fetch_current_stock(self, item_id):
        return self.stock[item_id]

    def fetch_item(self, item_id):
        return self.items.get(item_id)


@pytest.fixture
def source_factory():
    return InMemorySource
