"""
Railway-Oriented Programming support for the probe.

Explicit, composable error handling — no exceptions in business logic.
The failure track carries the Severity the fault should be reported with.

    from igtf_probe.railway import Result, Severity

    def parse_age(text: str) -> Result[int]:
        if not text.isdigit():
            return Result.failure(Severity.UNKNOWN, f"Invalid age {text!r}")
        return Result.success(int(text))
"""

from igtf_probe.railway.execution import (
    ExecutionContext,
    LoggingExecutionContext,
    NoOpExecutionContext,
)
from igtf_probe.railway.failure import FailureDescription
from igtf_probe.railway.result import Failure, Result, Success
from igtf_probe.railway.severity import Severity

__all__ = [
    "Result",
    "Success",
    "Failure",
    "Severity",
    "FailureDescription",
    "ExecutionContext",
    "NoOpExecutionContext",
    "LoggingExecutionContext",
]
