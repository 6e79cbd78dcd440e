"""
Reconciliation — cross-reference installed CAs against the published lists.

Per installed CA, in scan order:

  (a) the first CA the authoritative list knows (or any CA, when the list is
      unavailable) stands in for the whole install's version; if that
      version differs from the official release, the version/age verdict
      replaces everything else and the scan stops
  (b) listed CA  → compare versions, mark as matched
  (c) obsoleted  → record, never fingerprint-checked
  (d) otherwise  → certificate file present? fingerprint matches?

Local faults (unreadable descriptor, fingerprint computation failure) stop
the scan; the outcome then carries the fault alongside the findings collected
from the CAs scanned before it.

The authoritative manifest itself is never mutated: the not-installed set is
the listed names minus the matched ones, taken once the scan is over.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime

import structlog

from igtf_probe.domain.currency import compare_versions
from igtf_probe.domain.models import (
    Findings,
    InstalledCA,
    PackageManifest,
    ReleaseInfo,
    ScanOutcome,
    Thresholds,
    Verdict,
)
from igtf_probe.domain.ports import FingerprintProvider
from igtf_probe.railway import Result

log = structlog.get_logger()


@dataclass
class _Accumulator:
    """Mutable working state of one scan; frozen into Findings at the end."""

    matched: set[str] = field(default_factory=set)
    obsolete_present: set[str] = field(default_factory=set)
    version_mismatch: set[str] = field(default_factory=set)
    fingerprint_mismatch: set[str] = field(default_factory=set)
    certificate_file_missing: set[str] = field(default_factory=set)
    scanned: int = 0
    version_checked: bool = False

    def freeze(self, authoritative: PackageManifest | None, complete: bool = True) -> Findings:
        """Snapshot the buckets; "not installed" is only known once the scan is complete."""
        missing = (
            authoritative.names() - self.matched
            if authoritative is not None and complete
            else frozenset()
        )
        return Findings(
            missing_from_install=frozenset(missing),
            obsolete_present=frozenset(self.obsolete_present),
            version_mismatch=frozenset(self.version_mismatch),
            fingerprint_mismatch=frozenset(self.fingerprint_mismatch),
            certificate_file_missing=frozenset(self.certificate_file_missing),
            scanned=self.scanned,
        )


def _check_fingerprint(
    ca: InstalledCA,
    fingerprints: FingerprintProvider,
    acc: _Accumulator,
) -> Result[InstalledCA]:
    if not ca.certificate_path.exists():
        log.info("scan.certificate_missing", alias=ca.alias, path=str(ca.certificate_path))
        acc.certificate_file_missing.add(ca.alias)
        return Result.success(ca)

    def compare(computed: str) -> InstalledCA:
        if computed != ca.fingerprint.strip().upper():
            log.warning(
                "scan.fingerprint_mismatch",
                alias=ca.alias,
                declared=ca.fingerprint,
                computed=computed,
            )
            acc.fingerprint_mismatch.add(ca.alias)
        return ca

    return fingerprints.fingerprint(ca.certificate_path).map(compare)


def _classify(
    ca: InstalledCA,
    authoritative: PackageManifest | None,
    obsolete: PackageManifest | None,
    fingerprints: FingerprintProvider,
    acc: _Accumulator,
) -> Result[InstalledCA]:
    if authoritative is not None and ca.alias in authoritative:
        listed_version = authoritative.version_of(ca.alias)
        if listed_version != ca.version:
            log.warning(
                "scan.version_mismatch",
                alias=ca.alias,
                installed=ca.version,
                listed=listed_version,
            )
            acc.version_mismatch.add(ca.alias)
        acc.matched.add(ca.alias)

    if obsolete is not None and ca.alias in obsolete:
        log.warning("scan.obsolete_present", alias=ca.alias)
        acc.obsolete_present.add(ca.alias)
        return Result.success(ca)

    return _check_fingerprint(ca, fingerprints, acc)


def _currency_check(
    ca: InstalledCA,
    authoritative: PackageManifest | None,
    release: ReleaseInfo,
    thresholds: Thresholds,
    now: datetime,
    acc: _Accumulator,
) -> Result[Verdict] | None:
    """Version/age verdict if `ca` is the first representative CA and lags the release."""
    if acc.version_checked:
        return None
    if authoritative is not None and ca.alias not in authoritative:
        return None
    acc.version_checked = True
    if ca.version == release.version:
        return None
    log.info(
        "scan.distribution_version_differs",
        alias=ca.alias,
        installed=ca.version,
        official=release.version,
    )
    return compare_versions(ca.version, release, thresholds, now)


def reconcile(
    installed: Iterable[Result[InstalledCA]],
    release: ReleaseInfo,
    authoritative: PackageManifest | None,
    obsolete: PackageManifest | None,
    fingerprints: FingerprintProvider,
    thresholds: Thresholds,
    now: datetime,
) -> Result[ScanOutcome]:
    """
    Scan installed CAs and build the discrepancy buckets.

    Returns Success(ScanOutcome) — with `currency` set when the install's
    version differs from the official release, or `fault` set (plus the
    partial findings) when a local fault stopped the scan. A malformed
    distribution version is the only Failure. Checks that need an
    unavailable manifest are skipped, never failed.
    """
    acc = _Accumulator()

    for entry in installed:
        if entry.is_failure():
            log.error("scan.short_circuit", reason=entry.error().message, scanned=acc.scanned)
            partial = acc.freeze(authoritative, complete=False)
            return Result.success(ScanOutcome(findings=partial, fault=entry.error()))

        ca = entry.value()
        acc.scanned += 1

        currency = _currency_check(ca, authoritative, release, thresholds, now, acc)
        if currency is not None:
            return currency.map(
                lambda verdict: ScanOutcome(
                    findings=acc.freeze(authoritative, complete=False), currency=verdict
                )
            )

        classified = _classify(ca, authoritative, obsolete, fingerprints, acc)
        if classified.is_failure():
            log.error(
                "scan.short_circuit",
                alias=ca.alias,
                reason=classified.error().message,
                scanned=acc.scanned,
            )
            partial = acc.freeze(authoritative, complete=False)
            return Result.success(ScanOutcome(findings=partial, fault=classified.error()))

    findings = acc.freeze(authoritative)
    log.info(
        "scan.complete",
        scanned=findings.scanned,
        missing=len(findings.missing_from_install),
        obsolete=len(findings.obsolete_present),
        version_mismatch=len(findings.version_mismatch),
        fingerprint_mismatch=len(findings.fingerprint_mismatch),
        certificate_missing=len(findings.certificate_file_missing),
    )
    return Result.success(ScanOutcome(findings=findings))
