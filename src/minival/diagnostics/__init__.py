"""Error collection for validation calls.

Provides the call-scoped collector that groups messages under path keys.
"""

from .error_collector import (
    EMPTY_ERRORS,
    ErrorCollector,
    ErrorMap,
    create_error_collector,
)

__all__ = [
    "EMPTY_ERRORS",
    "ErrorCollector",
    "ErrorMap",
    "create_error_collector",
]
