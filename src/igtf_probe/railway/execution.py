"""
Execution contexts — separate WHAT (pure logic) from HOW (side effects).

The probe pipeline describes what to check and returns a Result. The context
decides how it runs: here, with timing, structured logging, and a last-resort
conversion of any escaped exception into an UNKNOWN failure, so the caller
always receives a single verdict.

    ctx = LoggingExecutionContext(operation="IgtfProbe")
    result = ctx.execute(lambda: Result.success(run_probe(...)))
"""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Protocol, TypeVar, runtime_checkable

import structlog

from igtf_probe.railway.failure import FailureDescription
from igtf_probe.railway.result import Result
from igtf_probe.railway.severity import Severity

T = TypeVar("T")
log = structlog.get_logger()


@runtime_checkable
class ExecutionContext(Protocol):
    """Anything with execute(computation) satisfies this protocol."""

    def execute(self, computation: Callable[[], Result[T]]) -> Result[T]: ...


class NoOpExecutionContext:
    """Passthrough context — runs the computation without any wrapper."""

    def execute(self, computation: Callable[[], Result[T]]) -> Result[T]:
        return computation()


class LoggingExecutionContext:
    """
    Execution context that logs entry, exit, duration, and result state.

    Wraps another context (decorator pattern) to add observability.
    Exceptions escaping the computation become Failure(UNKNOWN).

    `interrupts` lists BaseException subclasses (such as a wall-clock timeout)
    that abort the computation. They pass through every Result boundary
    inside it and are converted to Failure(UNKNOWN) only here.
    """

    def __init__(
        self,
        inner: ExecutionContext | None = None,
        operation: str = "unknown",
        interrupts: tuple[type[BaseException], ...] = (),
    ) -> None:
        self._inner = inner or NoOpExecutionContext()
        self._operation = operation
        self._interrupts = interrupts

    def execute(self, computation: Callable[[], Result[T]]) -> Result[T]:
        log.debug("execution.started", operation=self._operation)
        start = time.monotonic()

        try:
            result = self._inner.execute(computation)
        except (Exception, *self._interrupts) as e:
            elapsed = time.monotonic() - start
            failure = FailureDescription(
                severity=Severity.UNKNOWN,
                message=f"{self._operation} aborted: {e}",
                exception=e,
            )
            log.error(
                "execution.aborted",
                operation=self._operation,
                elapsed_seconds=round(elapsed, 3),
                error=failure.full_stack_trace(),
            )
            return Result.failure_from(failure)

        elapsed = time.monotonic() - start
        log.info(
            "execution.completed",
            operation=self._operation,
            elapsed_seconds=round(elapsed, 3),
            state="SUCCESS" if result.is_success() else "FAILURE",
        )
        return result
