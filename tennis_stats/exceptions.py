"""Exception types raised by the store, the dataset generator and the reports."""

from typing import Any, Optional


class TennisStatsError(Exception):
    """Base class for all tennis stats errors"""


class InvalidParameterError(TennisStatsError):
    """A report parameter is malformed or out of range"""

    def __init__(self, parameter: str, value: Any, message: Optional[str] = None):
        self.parameter = parameter
        self.value = value
        super().__init__(message or f"Invalid value for {parameter}: {value!r}")


class StoreUnavailableError(TennisStatsError):
    """Connection or query failure at the store boundary"""


class QueryExecutionError(StoreUnavailableError):
    """A report pipeline failed while talking to the store"""

    def __init__(self, report_name: str, message: str):
        self.report_name = report_name
        super().__init__(f"{report_name}: {message}")


class WorkerFailureError(TennisStatsError):
    """A match generation worker failed, aborting the whole run"""

    def __init__(self, worker_id: int, error: str):
        self.worker_id = worker_id
        self.error = error
        super().__init__(f"Worker {worker_id} failed: {error}")
