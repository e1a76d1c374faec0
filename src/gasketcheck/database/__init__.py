"""Database layer for GasketCheck."""

from gasketcheck.database.history import (
    add_result,
    clear_results,
    count_results,
    get_calibration,
    list_results,
    set_calibration,
)

__all__ = [
    "add_result",
    "clear_results",
    "count_results",
    "get_calibration",
    "list_results",
    "set_calibration",
]
