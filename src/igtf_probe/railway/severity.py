"""
Severity — the probe's outcome levels, in Nagios plugin terms.

Each member carries the process exit code the monitoring framework expects
and a rank used when several findings must be reduced to one severity:

    OK < WARNING < UNKNOWN < CRITICAL
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum, unique


@unique
class Severity(Enum):
    """Outcome level of a check, ordered by rank rather than exit code."""

    OK = "OK"
    """Everything consistent, or informational findings only (→ exit 0)."""

    WARNING = "WARNING"
    """Distribution stale beyond the warning threshold (→ exit 1)."""

    CRITICAL = "CRITICAL"
    """Local bundle unsafe or incorrect (→ exit 2)."""

    UNKNOWN = "UNKNOWN"
    """Metadata could not be obtained or parsed (→ exit 3)."""

    @property
    def exit_code(self) -> int:
        return _EXIT_CODES[self]

    @property
    def rank(self) -> int:
        return _RANKS[self]

    def worse_of(self, other: Severity) -> Severity:
        """Return whichever of the two severities ranks higher."""
        return other if other.rank > self.rank else self

    @staticmethod
    def worst(severities: Iterable[Severity]) -> Severity:
        """Reduce severities to the highest-ranked one; OK when empty."""
        result = Severity.OK
        for severity in severities:
            result = result.worse_of(severity)
        return result


_EXIT_CODES: dict[Severity, int] = {
    Severity.OK: 0,
    Severity.WARNING: 1,
    Severity.CRITICAL: 2,
    Severity.UNKNOWN: 3,
}

_RANKS: dict[Severity, int] = {
    Severity.OK: 0,
    Severity.WARNING: 1,
    Severity.UNKNOWN: 2,
    Severity.CRITICAL: 3,
}
