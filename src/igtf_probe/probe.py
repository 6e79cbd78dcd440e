"""
Probe pipeline — orchestrates one full check of the installed CA distribution.

Domain orchestration — no I/O of its own; all I/O goes through the ports:

  fetch_first(release sources) → parse_release          (fatal: UNKNOWN)
  fetch_first(package list)    → load_manifest          (optional)
  fetch_first(obsoleted list)  → load_manifest          (optional)
    → reconcile(scanner.scan(), ...)                     (local fault: reported with prior findings)
      → summarize                                        → Verdict

Nothing is carried between runs: two runs over unchanged inputs give the
same verdict.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime

import structlog

from igtf_probe.adapters.fetcher import fetch_first
from igtf_probe.domain.manifest import load_manifest
from igtf_probe.domain.models import PackageManifest, ReleaseInfo, Thresholds, Verdict
from igtf_probe.domain.ports import FingerprintProvider, InstalledCAScanner, ResourceFetcher
from igtf_probe.domain.reconcile import reconcile
from igtf_probe.domain.release import parse_release
from igtf_probe.domain.status import summarize
from igtf_probe.railway import Result

log = structlog.get_logger()


@dataclass(frozen=True, slots=True)
class ProbeSources:
    """Comma-separated alternatives for each metadata resource."""

    release: str
    manifest: str
    obsolete: str


def load_release(fetcher: ResourceFetcher, sources: str) -> Result[ReleaseInfo]:
    """First release descriptor that can be fetched and parsed."""
    return fetch_first(fetcher, sources, "release descriptor", parse_release).peek(
        lambda release: log.info(
            "release.loaded", version=release.version, date=release.date.isoformat()
        )
    )


def load_optional_manifest(
    fetcher: ResourceFetcher, sources: str, label: str
) -> PackageManifest | None:
    """First package list that can be fetched, or None — the dependent checks are then skipped."""
    if not sources.strip():
        return None
    return (
        fetch_first(fetcher, sources, label, load_manifest)
        .peek(lambda manifest: log.info("manifest.loaded", label=label, packages=len(manifest)))
        .peek_failure(
            lambda err: log.warning("manifest.unavailable", label=label, error=err.message)
        )
        .get_or_else(None)
    )


def run_probe(
    fetcher: ResourceFetcher,
    scanner: InstalledCAScanner,
    fingerprints: FingerprintProvider,
    sources: ProbeSources,
    thresholds: Thresholds,
    clock: Callable[[], datetime] = lambda: datetime.now(UTC),
) -> Verdict:
    """
    Execute one probe run and return its verdict.

    The release descriptor is mandatory; either package list may be missing.
    Every fault ends up in the returned Verdict — nothing is raised.
    """
    release = load_release(fetcher, sources.release)
    if release.is_failure():
        return Verdict.from_failure(release.error())

    authoritative = load_optional_manifest(fetcher, sources.manifest, "package list")
    obsolete = load_optional_manifest(fetcher, sources.obsolete, "obsoleted package list")

    return release.flat_map(
        lambda info: reconcile(
            scanner.scan(),
            info,
            authoritative,
            obsolete,
            fingerprints,
            thresholds,
            clock(),
        )
    ).either(on_success=summarize, on_failure=Verdict.from_failure)
