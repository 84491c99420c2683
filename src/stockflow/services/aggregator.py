"""
Movement Aggregation Service
============================
Turns raw inventory movement events into a per-day usage series.

Design Principles:
- Only consumption (direction "out") counts as usage
- Every calendar day in the window is present; idle days are 0
- Input order does not matter
- Windows are validated, never silently clipped
"""

import pandas as pd
from typing import Dict, Iterable, List, Optional, Any
from datetime import date

from stockflow.exceptions import InsufficientDataError
from stockflow.models.usage import UsageEvent, DailyUsageSeries, Direction
from stockflow.utils.logger import get_logger, log_series_info
from stockflow.utils.constants import AGGREGATION_CONFIG, merge_config
from stockflow.utils.validators import validate_window

logger = get_logger(__name__)


class MovementAggregator:
    """
    Builds zero-filled daily usage series from movement events.

    Usage
    -----
    >>> aggregator = MovementAggregator()
    >>> series = aggregator.build_daily_series(events, "flour", start, end)
    >>> len(series) == (end - start).days + 1
    True
    """

    def __init__(self, config: Optional[Dict] = None):
        self.config = merge_config(AGGREGATION_CONFIG, config)
        self.usage_direction = Direction(self.config["usage_direction"])

    def _usage_frame(
        self,
        events: Iterable[UsageEvent],
        item_id: Any,
        start_date: date,
        end_date: date
    ) -> pd.DataFrame:
        """Usage events of one item inside the window, as a DataFrame."""
        rows = [
            {
                "usage_date": event.usage_date,
                "quantity": float(event.quantity),
                "movement_type": event.movement_type,
            }
            for event in events
            if event.item_id == item_id
            and event.direction == self.usage_direction
            and start_date <= event.usage_date <= end_date
        ]
        frame = pd.DataFrame(rows, columns=["usage_date", "quantity", "movement_type"])
        return frame.sort_values("usage_date", kind="mergesort")

    def build_daily_series(
        self,
        events: List[UsageEvent],
        item_id: Any,
        start_date: date,
        end_date: date,
        require_events: bool = False
    ) -> DailyUsageSeries:
        """
        Sum usage per calendar day over an inclusive window.

        Parameters
        ----------
        events : List[UsageEvent]
            Movement events in any order; other items, inbound movements
            and events outside the window are ignored
        item_id : Any
            Item to aggregate
        start_date, end_date : date
            Inclusive window bounds
        require_events : bool
            Raise instead of returning an all-zero series when no events
            are supplied

        Returns
        -------
        DailyUsageSeries
            One value per day from start_date to end_date

        Raises
        ------
        InvalidWindowError
            If start_date > end_date or the window is longer than allowed
        InsufficientDataError
            If ``require_events`` is set and ``events`` is empty
        """
        days = validate_window(start_date, end_date)
        events = list(events)

        if require_events and not events:
            raise InsufficientDataError(
                f"No movement events supplied for item {item_id}",
                required=1,
                available=0
            )

        frame = self._usage_frame(events, item_id, start_date, end_date)
        window = pd.date_range(start=pd.Timestamp(start_date), periods=days, freq='D')

        if frame.empty:
            daily = pd.Series(0.0, index=window)
        else:
            frame["usage_date"] = pd.to_datetime(frame["usage_date"])
            daily = (
                frame.groupby("usage_date")["quantity"].sum()
                .reindex(window, fill_value=0.0)
            )

        series = DailyUsageSeries(item_id, daily)
        logger.debug(
            f"Aggregated {len(frame)} of {len(events)} events for item {item_id} "
            f"into {days} days"
        )
        log_series_info(logger, series)
        return series

    def usage_by_movement_type(
        self,
        events: List[UsageEvent],
        item_id: Any,
        start_date: date,
        end_date: date
    ) -> Dict[str, float]:
        """Total usage per movement type inside the window."""
        validate_window(start_date, end_date)
        frame = self._usage_frame(events, item_id, start_date, end_date)
        if frame.empty:
            return {}
        totals = frame.groupby("movement_type")["quantity"].sum()
        return {str(k): float(v) for k, v in totals.items()}

    def count_movements(
        self,
        events: List[UsageEvent],
        item_id: Any,
        start_date: date,
        end_date: date
    ) -> int:
        """Number of usage movements of the item inside the window."""
        return len(self._usage_frame(events, item_id, start_date, end_date))
