"""
Failure description — structured error information for the failure track.

A failure carries the Severity it should surface as, so a fault detected deep
inside an adapter maps straight onto the probe's verdict without any
translation table in between.
"""

from __future__ import annotations

import traceback
from dataclasses import dataclass, field
from datetime import UTC, datetime

from igtf_probe.railway.severity import Severity


@dataclass(frozen=True, slots=True)
class FailureDescription:
    """
    Immutable failure descriptor carrying severity, message, optional exception, and timestamp.

    >>> desc = FailureDescription(Severity.UNKNOWN, "release descriptor unavailable")
    >>> desc.severity
    <Severity.UNKNOWN: 'UNKNOWN'>
    >>> desc.message
    'release descriptor unavailable'
    """

    severity: Severity
    message: str
    exception: BaseException | None = field(default=None, repr=False)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def full_stack_trace(self) -> str:
        """Message followed by the formatted exception chain, if any."""
        if self.exception is None:
            return self.message
        tb = "".join(
            traceback.format_exception(
                type(self.exception), self.exception, self.exception.__traceback__
            )
        )
        return f"{self.message}\n{tb}"
