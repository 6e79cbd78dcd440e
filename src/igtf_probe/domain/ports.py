"""
Ports — Protocol-based interfaces for infrastructure adapters.

These define WHAT the reconciliation needs (contracts) without specifying
HOW it's done (implementation):

  Domain ← Ports (protocols) ← Adapters (implementations)

Each port is a Protocol (structural typing) so adapters satisfy the contract
simply by implementing the methods — no inheritance.
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path
from typing import Protocol, runtime_checkable

from igtf_probe.domain.models import InstalledCA
from igtf_probe.railway import Result


@runtime_checkable
class ResourceFetcher(Protocol):
    """
    Port: retrieve the text of a named resource (URL or local path).

    `label` names the resource in failure messages ("release descriptor").
    Failures are UNKNOWN — the metadata could not be obtained.
    """

    def fetch(self, source: str, label: str) -> Result[str]: ...


@runtime_checkable
class FingerprintProvider(Protocol):
    """
    Port: compute the SHA-1 fingerprint of a certificate file.

    Returns colon-separated uppercase hex ("AA:BB:..."). Failures are
    CRITICAL — a local computation fault, not a mismatch.
    """

    def fingerprint(self, certificate_path: Path) -> Result[str]: ...


@runtime_checkable
class InstalledCAScanner(Protocol):
    """
    Port: enumerate the CAs installed in the local CA directory.

    Yields lazily, one Result per well-formed descriptor. A Failure means the
    trust store could not be read; consumers stop at the first one so no
    further descriptor is opened.
    """

    def scan(self) -> Iterator[Result[InstalledCA]]: ...
