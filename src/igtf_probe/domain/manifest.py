"""
Package list parsing — one package identifier per line.

    ca_AAACertificateServices-1.127-1
    ca_UKeScienceCA-2B-1.127-1
    ca_policy-egi-core-1.127-1      ← the policy package itself, discarded

CA names may contain hyphens; the version and revision never do, so the last
two hyphen-separated fields are always version and revision.
"""

from __future__ import annotations

import re

from igtf_probe.domain.models import PackageManifest
from igtf_probe.railway import Result, Severity

_PACKAGE_RE = re.compile(r"^ca_(\S+)-([^-\s]+)-([^-\s]+)$")


def parse_manifest(content: str, packages: dict[str, str] | None = None) -> dict[str, str]:
    """
    Accumulate name → version pairs from package list content.

    Updates and returns `packages` (a new dict when omitted). Lines that do
    not look like a CA package are ignored silently.
    """
    if packages is None:
        packages = {}
    for line in content.splitlines():
        match = _PACKAGE_RE.match(line.strip())
        if match is None:
            continue
        name, version = match.group(1), match.group(2)
        if name.startswith("policy"):
            continue
        packages[name] = version
    return packages


def load_manifest(content: str) -> Result[PackageManifest]:
    """Parse package list content into a read-only PackageManifest."""
    return Result.from_computation(
        lambda: PackageManifest(parse_manifest(content)),
        Severity.UNKNOWN,
        "Package list cannot be parsed",
    )
