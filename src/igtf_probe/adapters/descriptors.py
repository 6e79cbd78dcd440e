"""
Installed-CA scanner — reads the `.info` descriptors of a CA directory.

Adapter layer — implements the InstalledCAScanner port. Each CA in an IGTF
distribution ships as a pair of files:

    AAACertificateServices.info   alias = AAACertificateServices
                                  version = 1.127
                                  sha1fp.0 = D1:EB:23:A4:...
    AAACertificateServices.pem    the certificate itself

Descriptors are enumerated in filename order and read one at a time as the
consumer iterates, so a consumer that stops on a failure never opens the
remaining files.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from pathlib import Path

import structlog

from igtf_probe.domain.models import InstalledCA
from igtf_probe.railway import Result, Severity

log = structlog.get_logger()

DESCRIPTOR_SUFFIX = ".info"
CERTIFICATE_SUFFIX = ".pem"

_KEYS = {
    "alias": re.compile(r"^\s*alias\s*=\s*(.*?)\s*$"),
    "version": re.compile(r"^\s*version\s*=\s*(.*?)\s*$"),
    "sha1fp.0": re.compile(r"^\s*sha1fp\.0\s*=\s*(.*?)\s*$"),
}


def read_descriptor(path: Path) -> dict[str, str]:
    """Return the alias/version/sha1fp.0 values found in one descriptor (raises OSError)."""
    values: dict[str, str] = {}
    with path.open(encoding="utf-8", errors="replace") as handle:
        for line in handle:
            for key, pattern in _KEYS.items():
                match = pattern.match(line)
                if match is not None and match.group(1):
                    values[key] = match.group(1)
    return values


def _to_installed_ca(path: Path, values: dict[str, str]) -> InstalledCA | None:
    if not all(key in values for key in _KEYS):
        return None
    return InstalledCA(
        alias=values["alias"],
        version=values["version"],
        fingerprint=values["sha1fp.0"],
        descriptor_path=path,
        certificate_path=path.with_suffix(CERTIFICATE_SUFFIX),
    )


class DescriptorScanner:
    """
    Enumerate installed CAs from `*.info` files in `ca_dir`.

    Implements the InstalledCAScanner port.
    """

    def __init__(self, ca_dir: Path) -> None:
        self._ca_dir = Path(ca_dir)

    def scan(self) -> Iterator[Result[InstalledCA]]:
        """
        Yield one Result per well-formed descriptor.

        Unreadable descriptors (or an unreadable directory) yield
        Failure(CRITICAL). Descriptors missing a key are skipped.
        """
        listing = Result.from_computation(
            lambda: sorted(self._ca_dir.glob(f"*{DESCRIPTOR_SUFFIX}")),
            Severity.CRITICAL,
            f"Error listing CA directory {self._ca_dir}, stopping analysis",
        )
        if listing.is_success() and not self._ca_dir.is_dir():
            listing = Result.failure(
                Severity.CRITICAL,
                f"CA directory {self._ca_dir} does not exist, stopping analysis",
            )
        if listing.is_failure():
            yield Result.failure_from(listing.error())
            return

        for path in listing.value():
            read = Result.from_computation(
                lambda path=path: read_descriptor(path),
                Severity.CRITICAL,
                f"Error reading {path}, stopping analysis",
            )
            if read.is_failure():
                yield Result.failure_from(read.error())
                return

            ca = _to_installed_ca(path, read.value())
            if ca is None:
                log.debug("scan.descriptor_skipped", path=str(path), keys=sorted(read.value()))
                continue
            yield Result.success(ca)
