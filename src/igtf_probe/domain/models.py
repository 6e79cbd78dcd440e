"""
Domain models — immutable data structures for release metadata, installed CAs,
reconciliation findings, and the final verdict.

All models are frozen dataclasses (immutable). Collections inside them are
frozensets or read-only mapping views so nothing downstream can mutate the
state a stage produced.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from types import MappingProxyType

from igtf_probe.railway import FailureDescription, Severity


@dataclass(frozen=True, slots=True)
class ReleaseInfo:
    """
    The authoritative distribution release.

    `version` is the MAJOR.MINOR part of the published MAJOR.MINOR-REVISION
    string; `date` is timezone-aware.
    """

    version: str
    date: datetime


@dataclass(frozen=True, slots=True)
class PackageManifest:
    """
    Read-only mapping of CA name → version, as published in a package list.

    Used both for the authoritative list and for the obsoleted list.
    """

    packages: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "packages", MappingProxyType(dict(self.packages)))

    def __contains__(self, name: object) -> bool:
        return name in self.packages

    def __len__(self) -> int:
        return len(self.packages)

    def version_of(self, name: str) -> str | None:
        return self.packages.get(name)

    def names(self) -> frozenset[str]:
        return frozenset(self.packages)


@dataclass(frozen=True, slots=True)
class InstalledCA:
    """One CA as described by a `.info` file in the CA directory."""

    alias: str
    version: str
    fingerprint: str
    descriptor_path: Path
    certificate_path: Path


@dataclass(frozen=True, slots=True)
class Thresholds:
    """Distribution age limits, in days, past the official release date."""

    warning_days: float
    critical_days: float


@dataclass(frozen=True, slots=True)
class Findings:
    """
    Discrepancy buckets produced by one reconciliation pass.

    Buckets are not mutually exclusive: an obsolete CA can also carry a
    version mismatch.
    """

    missing_from_install: frozenset[str] = frozenset()
    obsolete_present: frozenset[str] = frozenset()
    version_mismatch: frozenset[str] = frozenset()
    fingerprint_mismatch: frozenset[str] = frozenset()
    certificate_file_missing: frozenset[str] = frozenset()
    scanned: int = 0

    @property
    def is_clean(self) -> bool:
        return not (
            self.missing_from_install
            or self.obsolete_present
            or self.version_mismatch
            or self.fingerprint_mismatch
            or self.certificate_file_missing
        )


@dataclass(frozen=True, slots=True)
class Verdict:
    """The single output of a probe run."""

    severity: Severity
    message: str

    @staticmethod
    def from_failure(failure: FailureDescription) -> Verdict:
        return Verdict(severity=failure.severity, message=failure.message)

    def render(self) -> str:
        """Nagios plugin output line, e.g. ``OK - CA distribution is correctly installed.``"""
        return f"{self.severity.value} - {self.message}"


@dataclass(frozen=True, slots=True)
class ScanOutcome:
    """
    What the reconciliation pass produced.

    `currency` is set when the installed distribution version differs from
    the official one; the scan stops there and that verdict stands alone.

    `fault` is set when a local fault (unreadable descriptor, fingerprint
    computation error) stopped the scan; `findings` then holds what was
    collected from the CAs scanned before it.
    """

    findings: Findings
    currency: Verdict | None = None
    fault: FailureDescription | None = None
