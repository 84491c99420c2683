"""
Utils Package
=============
Utility functions for the StockFlow usage analytics engine.

Modules:
- logger: Centralized logging configuration
- validators: Movement schema and request-parameter validation
- constants: Thresholds, model defaults and schemas
"""

from stockflow.utils.logger import get_logger, LogContext
from stockflow.utils.validators import (
    MovementValidator,
    ValidationResult,
    validate_window,
    validate_horizon
)
from stockflow.utils.constants import (
    MOVEMENT_SCHEMA,
    ITEM_SCHEMA,
    ENGINE_LIMITS,
    merge_config
)

__all__ = [
    'get_logger',
    'LogContext',
    'MovementValidator',
    'ValidationResult',
    'validate_window',
    'validate_horizon',
    'MOVEMENT_SCHEMA',
    'ITEM_SCHEMA',
    'ENGINE_LIMITS',
    'merge_config'
]
