"""Domain models for the flattened JSON -> xlsx merge tool."""

from .config_models import IncludeSpec, MergeConfig, OrderRest, OrderSpec
from .processing_result import RunResult
from .row_data import Row, Value, normalize_record, normalize_value

__all__ = [
    # Configuration models
    "IncludeSpec",
    "MergeConfig",
    "OrderRest",
    "OrderSpec",
    # Row models
    "Row",
    "Value",
    "normalize_record",
    "normalize_value",
    # Results
    "RunResult",
]
