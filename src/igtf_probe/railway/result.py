"""
Result monad — the core of Railway-Oriented Programming.

A Result[T] is either Success(value: T) or Failure(error: FailureDescription).
Every probe stage returns Result and never throws. Failures propagate through
.flat_map() untouched, so a release descriptor that cannot be parsed never
reaches the reconciliation stage.

    ┌───────────┐   flat_map    ┌───────────┐   flat_map    ┌───────────┐
    │  fetch    │──Success──────│   parse   │──Success──────│ reconcile │──→ Result[T]
    └─────┬─────┘               └─────┬─────┘               └─────┬─────┘
          │ Failure                   │ Failure                   │ Failure
          └───────────────────────────┴───────────────────────────┴──→ Result[T]

.or_else() is the one deliberate departure from the straight track: it lets a
failed source fall back to the next comma-separated alternative.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from igtf_probe.railway.failure import FailureDescription
from igtf_probe.railway.severity import Severity

T = TypeVar("T")
U = TypeVar("U")
R = TypeVar("R")


class Result(Generic[T]):
    """
    Railway-Oriented Programming Result monad.

    Two possible states:
      - Success(value: T)  — the happy path
      - Failure(error: FailureDescription) — the error track

        >>> Result.success(42).map(lambda x: x * 2).value()
        84
        >>> Result.failure(Severity.UNKNOWN, "bad input").map(lambda x: x * 2).is_failure()
        True
    """

    # ──────────────────────── Introspection ────────────────────────

    def is_success(self) -> bool:
        return isinstance(self, Success)

    def is_failure(self) -> bool:
        return isinstance(self, Failure)

    def value(self) -> T:
        """
        Extract the success value. Raises ValueError if called on a Failure.

        Prefer .either() or match/case for safe access.
        """
        match self:
            case Success(v):
                return v
            case Failure(err):
                raise ValueError(f"Cannot get value from a Failure: {err.message}")
        raise TypeError("unreachable")  # pragma: no cover

    def error(self) -> FailureDescription:
        """Extract the failure description. Raises ValueError if called on a Success."""
        match self:
            case Failure(err):
                return err
            case Success(v):
                raise ValueError(f"Cannot get error from a Success: {v}")
        raise TypeError("unreachable")  # pragma: no cover

    # ──────────────────────── Core Transformations ────────────────────────

    def either(
        self,
        on_success: Callable[[T], R],
        on_failure: Callable[[FailureDescription], R],
    ) -> R:
        """
        Apply one of two functions depending on the state.

            outcome.either(
                on_success=summarize,
                on_failure=Verdict.from_failure,
            )
        """
        match self:
            case Success(v):
                return on_success(v)
            case Failure(err):
                return on_failure(err)
        raise TypeError("unreachable")  # pragma: no cover

    def map(self, mapper: Callable[[T], U]) -> Result[U]:
        """Transform the success value. Short-circuits on failure."""
        match self:
            case Success(v):
                return Success(mapper(v))
            case Failure(err):
                return Failure(err)
        raise TypeError("unreachable")  # pragma: no cover

    def flat_map(self, mapper: Callable[[T], Result[U]]) -> Result[U]:
        """
        Chain a Result-returning function. Short-circuits on failure.

            fetcher.fetch(url, "release descriptor").flat_map(parse_release)
        """
        match self:
            case Success(v):
                return mapper(v)
            case Failure(err):
                return Failure(err)
        raise TypeError("unreachable")  # pragma: no cover

    def map_failure(
        self, mapper: Callable[[FailureDescription], FailureDescription]
    ) -> Result[T]:
        """Transform the failure description. Passes through success unchanged."""
        match self:
            case Success(_):
                return self
            case Failure(err):
                return Failure(mapper(err))
        raise TypeError("unreachable")  # pragma: no cover

    # ──────────────────────── Side Effects ────────────────────────

    def peek(self, action: Callable[[T], Any]) -> Result[T]:
        """Execute a side effect on the success value without altering the Result."""
        match self:
            case Success(v):
                action(v)
        return self

    def peek_failure(self, action: Callable[[FailureDescription], Any]) -> Result[T]:
        """Execute a side effect on failure without altering the Result."""
        match self:
            case Failure(err):
                action(err)
        return self

    # ──────────────────────── Recovery ────────────────────────

    def or_else(self, alternative: Callable[[FailureDescription], Result[T]]) -> Result[T]:
        """
        Try an alternative computation when this Result is a Failure.

        Success passes through unchanged; the alternative is never invoked.

            fetch(primary).or_else(lambda _err: fetch(mirror))
        """
        match self:
            case Success(_):
                return self
            case Failure(err):
                return alternative(err)
        raise TypeError("unreachable")  # pragma: no cover

    def get_or_else(self, default: T) -> T:
        """Extract value or return a default on failure."""
        match self:
            case Success(v):
                return v
            case _:
                return default

    # ──────────────────────── Static Factories ────────────────────────

    @staticmethod
    def success(value: T) -> Result[T]:
        return Success(value)

    @staticmethod
    def failure_from(error: FailureDescription) -> Result[T]:
        return Failure(error)

    @staticmethod
    def failure(
        severity: Severity,
        message: str,
        exception: BaseException | None = None,
    ) -> Result[T]:
        """
        Create a failed Result with severity, message, and optional exception.

            Result.failure(Severity.UNKNOWN, "Release descriptor has no Date field")
            Result.failure(Severity.CRITICAL, "Error reading foo.info", ex)
        """
        return Failure(FailureDescription(severity=severity, message=message, exception=exception))

    @staticmethod
    def from_computation(
        computation: Callable[[], T],
        severity: Severity,
        error_message: str,
    ) -> Result[T]:
        """
        Create a Result from a computation that may raise.

        The exception text is appended to the message so the operator sees
        the underlying cause in the verdict line:

            Result.from_computation(
                lambda: path.read_text(),
                Severity.UNKNOWN,
                "Error reading release descriptor",
            )
        """
        try:
            return Result.success(computation())
        except Exception as e:
            return Result.failure(severity, f"{error_message}: {e}", e)

    # ──────────────────────── Dunder methods ────────────────────────

    def __bool__(self) -> bool:
        """Allow truthiness check: `if result: ...` succeeds only on Success."""
        return self.is_success()


@dataclass(frozen=True, slots=True)
class Success(Result[T]):
    """The success track — wraps a value of type T."""

    _value: T

    def __init__(self, value: T) -> None:
        if value is None:
            raise TypeError("Success value must not be None")
        object.__setattr__(self, "_value", value)

    def __repr__(self) -> str:
        return f"Success({self._value!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Success):
            return self._value == other._value
        if isinstance(other, Result):
            return False
        return NotImplemented

    def __hash__(self) -> int:
        return hash(("Success", self._value))


@dataclass(frozen=True, slots=True)
class Failure(Result[T]):
    """The failure track — wraps a FailureDescription."""

    _error: FailureDescription

    def __init__(self, error: FailureDescription) -> None:
        if error is None:
            raise TypeError("Failure error must not be None")
        object.__setattr__(self, "_error", error)

    def __repr__(self) -> str:
        return f"Failure({self._error.severity.value}: {self._error.message!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Failure):
            return (
                self._error.severity == other._error.severity
                and self._error.message == other._error.message
            )
        if isinstance(other, Result):
            return False
        return NotImplemented

    def __hash__(self) -> int:
        return hash(("Failure", self._error.severity, self._error.message))
