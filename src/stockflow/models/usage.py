"""
Usage Input Models
==================
Immutable inputs of the analytics engine: movement events, item metadata
and the per-day usage series built from them.
"""

import pandas as pd
import numpy as np
from typing import Any, List, Optional, Sequence
from dataclasses import dataclass
from datetime import date, datetime, timezone
from enum import Enum


class Direction(Enum):
    """Direction of an inventory movement."""
    IN = "in"
    OUT = "out"


@dataclass(frozen=True)
class UsageEvent:
    """
    A single inventory movement.

    Attributes
    ----------
    item_id : Any
        Inventory item identifier
    quantity : float
        Moved quantity, always positive; ``direction`` carries the sign
    timestamp : datetime
        Movement time (UTC)
    direction : Direction
        IN for receiving, OUT for consumption
    movement_type : str
        Free-form movement category (usage, waste, transfer, ...)
    """
    item_id: Any
    quantity: float
    timestamp: datetime
    direction: Direction = Direction.OUT
    movement_type: str = "usage"

    def __post_init__(self):
        if self.quantity <= 0:
            raise ValueError(f"Movement quantity must be positive, got {self.quantity}")
        if not isinstance(self.direction, Direction):
            object.__setattr__(self, "direction", Direction(str(self.direction).lower()))

    @property
    def usage_date(self) -> date:
        """UTC calendar day of the movement; naive timestamps are taken as UTC."""
        if self.timestamp.tzinfo is not None:
            return self.timestamp.astimezone(timezone.utc).date()
        return self.timestamp.date()


@dataclass(frozen=True)
class ItemInfo:
    """Snapshot of an inventory item's stored settings."""
    item_id: Any
    name: str = ""
    current_stock: float = 0.0
    par_level_low: Optional[float] = None
    par_level_high: Optional[float] = None
    cost_per_unit: Optional[float] = None
    unit: Optional[str] = None
    category: Optional[str] = None


class DailyUsageSeries:
    """
    Per-day consumption of one item over an inclusive date window.

    One entry per calendar day, ascending, no gaps or duplicates;
    days without movements hold 0.

    Usage
    -----
    >>> series = DailyUsageSeries.from_values("flour", date(2026, 1, 1), [5, 0, 3])
    >>> series.end_date
    datetime.date(2026, 1, 3)
    """

    def __init__(self, item_id: Any, data: pd.Series):
        if len(data) > 0:
            index = pd.DatetimeIndex(data.index)
            expected = pd.date_range(start=index[0], periods=len(index), freq='D')
            if not index.equals(expected):
                raise ValueError("Daily usage series must cover contiguous calendar days")
            data = pd.Series(data.to_numpy(dtype=float), index=expected, name="usage")
        else:
            data = pd.Series([], index=pd.DatetimeIndex([]), dtype=float, name="usage")
        self.item_id = item_id
        self._data = data

    @classmethod
    def from_values(cls, item_id: Any, start_date: date, values: Sequence[float]) -> 'DailyUsageSeries':
        """Build a series from consecutive daily values starting at ``start_date``."""
        index = pd.date_range(start=pd.Timestamp(start_date), periods=len(values), freq='D')
        return cls(item_id, pd.Series(list(values), index=index, dtype=float))

    def __len__(self) -> int:
        return len(self._data)

    def __eq__(self, other) -> bool:
        if not isinstance(other, DailyUsageSeries):
            return NotImplemented
        return self.item_id == other.item_id and self._data.equals(other._data)

    def __repr__(self) -> str:
        return (
            f"DailyUsageSeries(item_id={self.item_id!r}, days={len(self)}, "
            f"start={self.start_date}, end={self.end_date})"
        )

    @property
    def data(self) -> pd.Series:
        return self._data.copy()

    @property
    def values(self) -> np.ndarray:
        return self._data.to_numpy(dtype=float)

    @property
    def dates(self) -> List[date]:
        return [ts.date() for ts in self._data.index]

    @property
    def index(self) -> pd.DatetimeIndex:
        return self._data.index

    @property
    def start_date(self) -> Optional[date]:
        return self._data.index[0].date() if len(self) else None

    @property
    def end_date(self) -> Optional[date]:
        return self._data.index[-1].date() if len(self) else None

    @property
    def total_usage(self) -> float:
        return float(self._data.sum())

    def tail(self, days: int) -> 'DailyUsageSeries':
        """Last ``days`` days of the series."""
        return DailyUsageSeries(self.item_id, self._data.iloc[-days:] if days > 0 else self._data.iloc[:0])

    def trim_leading_zeros(self) -> 'DailyUsageSeries':
        """Drop the days before the first recorded usage."""
        nonzero = np.flatnonzero(self.values)
        if len(nonzero) == 0:
            return DailyUsageSeries(self.item_id, self._data.iloc[:0])
        return DailyUsageSeries(self.item_id, self._data.iloc[nonzero[0]:])
