"""
Movement Data Loading Service
=============================
Loads movement and item tables (CSV or DataFrame), validates them and
serves them to the analytics engine through the usage data source
contract.

Design Principles:
- Never silently fail: dropped rows are counted and logged
- Validate schemas before processing
- Timestamps are parsed to UTC
- Identifiers are compared as strings, so CSV ids match CLI arguments

Usage:
    loader = MovementLoader()
    movements = loader.load_movements("movements.csv")
    items = loader.load_items("items.csv")
    source = DataFrameUsageSource(movements, items)
"""

import pandas as pd
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
from datetime import date, timedelta

from stockflow.models.usage import UsageEvent, ItemInfo
from stockflow.utils.logger import get_logger, LogContext
from stockflow.utils.validators import MovementValidator, ValidationResult
from stockflow.utils.constants import MOVEMENT_SCHEMA, ITEM_SCHEMA

logger = get_logger(__name__)


def _optional_float(value) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    return float(value)


def _optional_str(value) -> Optional[str]:
    if value is None or pd.isna(value):
        return None
    return str(value)


class MovementLoader:
    """
    Loads and cleans movement/item tables.

    Rows that break the movement contract are dropped after validation
    reports them; a table missing required columns raises ValueError.

    Example
    -------
    >>> loader = MovementLoader()
    >>> df = loader.load_movements("data/movements.csv")
    >>> events = loader.to_events(df)
    """

    def __init__(self, schema: Optional[Dict] = None, item_schema: Optional[Dict] = None):
        self.schema = schema or MOVEMENT_SCHEMA
        self.item_schema = item_schema or ITEM_SCHEMA
        self.validator = MovementValidator(self.schema)
        self.last_validation: Optional[ValidationResult] = None

    def _read_csv(self, path: Union[str, Path]) -> pd.DataFrame:
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")
        try:
            df = pd.read_csv(path, encoding='utf-8')
        except UnicodeDecodeError:
            df = pd.read_csv(path, encoding='latin-1')
            logger.warning(f"Used latin-1 encoding for {path.name}")
        logger.info(f"Loaded {len(df):,} rows, {len(df.columns)} columns from {path.name}")
        return df

    def load_movements(self, source: Union[str, Path, pd.DataFrame]) -> pd.DataFrame:
        """
        Load, validate and clean a movement table.

        Parameters
        ----------
        source : str, Path or pd.DataFrame
            CSV path or an already loaded DataFrame

        Returns
        -------
        pd.DataFrame
            Rows with positive quantity, known direction and a UTC
            ``movement_date``; ``inventory_item_id`` as string

        Raises
        ------
        ValueError
            If required columns are missing
        """
        if isinstance(source, pd.DataFrame):
            df, name = source.copy(), "movements"
        else:
            df, name = self._read_csv(source), Path(source).name

        with LogContext(logger, f"Cleaning {name}"):
            validation = self.validator.validate(df, source_name=name)
            self.last_validation = validation
            if not validation.is_valid:
                raise ValueError("; ".join(validation.errors))

            df["quantity"] = pd.to_numeric(df["quantity"], errors="coerce")
            df["direction"] = df["direction"].astype(str).str.strip().str.lower()
            df["movement_date"] = pd.to_datetime(df["movement_date"], errors="coerce", utc=True)
            df["inventory_item_id"] = df["inventory_item_id"].astype(str).str.strip()
            if "movement_type" not in df.columns:
                df["movement_type"] = self.schema["default_movement_type"]
            df["movement_type"] = df["movement_type"].fillna(self.schema["default_movement_type"])

            valid = (
                (df["quantity"] > 0)
                & df["direction"].isin(self.schema["valid_directions"])
                & df["movement_date"].notna()
            )
            dropped = int((~valid).sum())
            if dropped:
                logger.warning(f"Dropped {dropped} invalid rows from {name}")
            df = df[valid].sort_values("movement_date", kind="mergesort").reset_index(drop=True)

        return df

    def load_items(self, source: Union[str, Path, pd.DataFrame]) -> pd.DataFrame:
        """Load an item snapshot table; ``id`` as string."""
        if isinstance(source, pd.DataFrame):
            df, name = source.copy(), "items"
        else:
            df, name = self._read_csv(source), Path(source).name

        missing = [c for c in self.item_schema["required_columns"] if c not in df.columns]
        if missing:
            raise ValueError(f"Missing required columns in {name}: {missing}")

        df["id"] = df["id"].astype(str).str.strip()
        for col in self.item_schema["numeric_columns"]:
            if col in df.columns:
                df[col] = pd.to_numeric(df[col], errors="coerce")
        return df

    @staticmethod
    def to_events(df: pd.DataFrame, item_id: Any = None) -> List[UsageEvent]:
        """Convert cleaned movement rows to UsageEvents, optionally relabelling the item id."""
        return [
            UsageEvent(
                item_id=item_id if item_id is not None else row.inventory_item_id,
                quantity=float(row.quantity),
                timestamp=row.movement_date.to_pydatetime(),
                direction=row.direction,
                movement_type=str(row.movement_type),
            )
            for row in df.itertuples(index=False)
        ]


class DataFrameUsageSource:
    """
    In-memory usage data source backed by cleaned movement/item DataFrames.

    Implements the collaborator contract the analytics engine expects:
    ``fetch_usage_events``, ``fetch_current_stock`` and ``fetch_item``.
    """

    def __init__(self, movements: pd.DataFrame, items: Optional[pd.DataFrame] = None):
        self.movements = movements
        self.has_item_table = items is not None
        self.items = items if items is not None else pd.DataFrame(columns=ITEM_SCHEMA["required_columns"])
        if not self.has_item_table:
            logger.warning("No item table loaded: current stock defaults to 0 for every item")

    @classmethod
    def from_csv(cls, movements_path: Union[str, Path], items_path: Optional[Union[str, Path]] = None) -> 'DataFrameUsageSource':
        loader = MovementLoader()
        movements = loader.load_movements(movements_path)
        items = loader.load_items(items_path) if items_path else None
        return cls(movements, items)

    def _item_row(self, item_id: Any) -> Optional[pd.Series]:
        rows = self.items[self.items["id"] == str(item_id)]
        if rows.empty:
            return None
        return rows.iloc[0]

    def fetch_usage_events(self, item_id: Any, start_date: date, end_date: date) -> List[UsageEvent]:
        """Movements of one item whose UTC date lies in [start_date, end_date]."""
        start = pd.Timestamp(start_date).tz_localize("UTC")
        end = pd.Timestamp(end_date + timedelta(days=1)).tz_localize("UTC")
        m = self.movements
        mask = (
            (m["inventory_item_id"] == str(item_id))
            & (m["movement_date"] >= start)
            & (m["movement_date"] < end)
        )
        return MovementLoader.to_events(m[mask], item_id=item_id)

    def fetch_current_stock(self, item_id: Any) -> float:
        """On-hand quantity; 0 when no item table was loaded at all."""
        if not self.has_item_table:
            return 0.0
        row = self._item_row(item_id)
        if row is None:
            raise KeyError(f"Unknown inventory item: {item_id}")
        quantity = row["current_quantity"]
        return 0.0 if pd.isna(quantity) else float(quantity)

    def fetch_item(self, item_id: Any) -> Optional[ItemInfo]:
        row = self._item_row(item_id)
        if row is None:
            return None
        return ItemInfo(
            item_id=item_id,
            name=_optional_str(row.get("item_name")) or "",
            current_stock=self.fetch_current_stock(item_id),
            par_level_low=_optional_float(row.get("par_level_low")),
            par_level_high=_optional_float(row.get("par_level_high")),
            cost_per_unit=_optional_float(row.get("cost_per_unit")),
            unit=_optional_str(row.get("unit_of_measurement")),
            category=_optional_str(row.get("category")),
        )

    def item_ids(self) -> List[str]:
        """All item ids known to the source."""
        ids = set(self.items["id"]) | set(self.movements["inventory_item_id"])
        return sorted(ids)
