"""
Data Validation Utilities
==========================
Schema validation for movement tables and request-parameter checks.

Design Principles:
- Never silently fail - always log issues
- Return structured validation results for tabular input
- Reject malformed windows outright, never correct them
"""

import numbers

import pandas as pd
from typing import Dict, List, Any, Optional
from datetime import date
from dataclasses import dataclass, field

from stockflow.exceptions import InvalidWindowError
from stockflow.utils.logger import get_logger
from stockflow.utils.constants import MOVEMENT_SCHEMA, ENGINE_LIMITS

logger = get_logger(__name__)


@dataclass
class ValidationResult:
    """
    Structured result of a validation operation.

    Attributes
    ----------
    is_valid : bool
        Overall validation status
    errors : List[str]
        Critical issues that prevent processing
    warnings : List[str]
        Non-critical issues to be aware of
    info : Dict[str, Any]
        Additional validation metadata
    """
    is_valid: bool = True
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    info: Dict[str, Any] = field(default_factory=dict)

    def add_error(self, message: str) -> None:
        """Add an error and mark as invalid."""
        self.errors.append(message)
        self.is_valid = False

    def add_warning(self, message: str) -> None:
        """Add a warning (doesn't affect validity)."""
        self.warnings.append(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "is_valid": self.is_valid,
            "errors": self.errors,
            "warnings": self.warnings,
            "info": self.info
        }


class MovementValidator:
    """
    Validates movement DataFrames against MOVEMENT_SCHEMA.

    Rows that break the event contract (non-positive quantity, unknown
    direction, unparsable timestamp) are reported as warnings and counted,
    so the loader can drop them; missing required columns are errors.

    Usage
    -----
    validator = MovementValidator()
    result = validator.validate(movements_df)

    if not result.is_valid:
        print(f"Validation failed: {result.errors}")
    """

    def __init__(self, schema: Optional[Dict] = None):
        self.schema = schema or MOVEMENT_SCHEMA

    def validate(self, df: pd.DataFrame, source_name: str = "movements") -> ValidationResult:
        """
        Validate a movement DataFrame.

        Parameters
        ----------
        df : pd.DataFrame
            Raw movement rows
        source_name : str
            Name used in messages (file name, table name)

        Returns
        -------
        ValidationResult
            Structured validation result with errors/warnings
        """
        result = ValidationResult()
        result.info["source"] = source_name
        result.info["row_count"] = len(df)

        missing = [col for col in self.schema["required_columns"] if col not in df.columns]
        if missing:
            result.add_error(f"Missing required columns in {source_name}: {missing}")
            logger.error(f"Validation FAILED for {source_name}: {result.errors}")
            return result

        quantities = pd.to_numeric(df["quantity"], errors="coerce")
        bad_quantity = int((quantities.isna() | (quantities <= 0)).sum())
        if bad_quantity:
            result.add_warning(f"{bad_quantity} rows in {source_name} have non-positive or missing quantity")
        result.info["invalid_quantity_rows"] = bad_quantity

        directions = df["direction"].astype(str).str.lower()
        bad_direction = int((~directions.isin(self.schema["valid_directions"])).sum())
        if bad_direction:
            result.add_warning(f"{bad_direction} rows in {source_name} have an unknown direction")
        result.info["invalid_direction_rows"] = bad_direction

        for col in self.schema["timestamp_columns"]:
            parsed = pd.to_datetime(df[col], errors="coerce", utc=True)
            bad_ts = int(parsed.isna().sum())
            if bad_ts:
                result.add_warning(f"{bad_ts} rows in {source_name} have unparsable '{col}'")
            result.info[f"invalid_{col}_rows"] = bad_ts
            if parsed.notna().any():
                result.info[f"{col}_date_range"] = {
                    "min": parsed.min().isoformat(),
                    "max": parsed.max().isoformat()
                }

        if result.is_valid:
            logger.info(f"Validation PASSED for {source_name} ({len(df):,} rows)")
        for warning in result.warnings:
            logger.warning(warning)

        return result


def validate_window(
    start_date: date,
    end_date: date,
    max_days: Optional[int] = None
) -> int:
    """
    Check an inclusive date window and return its length in days.

    Raises
    ------
    InvalidWindowError
        If start is after end or the window exceeds ``max_days``.
    """
    if start_date > end_date:
        raise InvalidWindowError(
            f"Window start {start_date} is after window end {end_date}"
        )

    days = (end_date - start_date).days + 1
    limit = max_days if max_days is not None else ENGINE_LIMITS["max_history_days"]
    if days > limit:
        raise InvalidWindowError(
            f"Window of {days} days exceeds the maximum of {limit} days"
        )
    return days


def validate_horizon(horizon: int, name: str = "horizon") -> int:
    """Reject non-integer or non-positive horizons/periods."""
    if isinstance(horizon, bool) or not isinstance(horizon, numbers.Integral):
        raise InvalidWindowError(f"{name} must be an integer number of days, got {horizon!r}")
    if horizon <= 0:
        raise InvalidWindowError(f"{name} must be positive, got {horizon}")
    return horizon
