"""
Shared test fixtures and helpers for the igtf-probe test suite.

Provides builders for the three kinds of input the probe consumes:
  - release descriptors (XML)
  - package lists (one `ca_<name>-<version>-<revision>` per line)
  - CA directories (`.info` descriptors + `.pem` certificates)

Certificates are generated on the fly with cryptography (EC keys, fast).
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
import structlog
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID


def release_xml(version: str = "1.127-1", date: str = "20240304") -> str:
    """Build a release descriptor document."""
    return (
        '<?xml version="1.0" encoding="utf-8"?>\n'
        "<Release>\n"
        f"  <Version>{version}</Version>\n"
        f"  <Date>{date}</Date>\n"
        "  <Product>ca-policy-egi-core</Product>\n"
        "</Release>\n"
    )


def package_list(packages: dict[str, str], revision: str = "1") -> str:
    """Build package list content from a name → version mapping."""
    lines = [f"ca_{name}-{version}-{revision}" for name, version in packages.items()]
    lines.append("ca_policy-egi-core-1.127-1")
    return "\n".join(lines) + "\n"


def generate_certificate_pem(common_name: str) -> bytes:
    """Create a throwaway self-signed certificate, PEM-encoded."""
    key = ec.generate_private_key(ec.SECP256R1())
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
    now = datetime.now(UTC)
    certificate = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(days=1))
        .not_valid_after(now + timedelta(days=365))
        .add_extension(x509.BasicConstraints(ca=True, path_length=None), critical=True)
        .sign(key, hashes.SHA256())
    )
    return certificate.public_bytes(serialization.Encoding.PEM)


def sha1_fingerprint(pem: bytes) -> str:
    """Colon-separated uppercase SHA-1 fingerprint of a PEM certificate."""
    digest = x509.load_pem_x509_certificate(pem).fingerprint(hashes.SHA1())
    return ":".join(f"{byte:02X}" for byte in digest)


@dataclass
class CaDirectory:
    """A temporary CA directory that tests populate one CA at a time."""

    path: Path

    def add(
        self,
        alias: str,
        version: str = "1.127",
        *,
        fingerprint: str | None = None,
        with_certificate: bool = True,
        filename: str | None = None,
    ) -> Path:
        """
        Write `<alias>.info` (and `<alias>.pem` unless with_certificate=False).

        The declared fingerprint defaults to the real one of the written
        certificate; pass `fingerprint` to declare something else.
        """
        stem = filename or alias
        pem = generate_certificate_pem(alias)
        if with_certificate:
            (self.path / f"{stem}.pem").write_bytes(pem)
        declared = fingerprint if fingerprint is not None else sha1_fingerprint(pem)
        descriptor = self.path / f"{stem}.info"
        descriptor.write_text(
            f"#\n# @(#){stem}.info\n#\n"
            f"alias = {alias}\n"
            f"version = {version}\n"
            f"sha1fp.0 = {declared}\n"
            "requires = ca_policy_igtf-classic\n",
            encoding="utf-8",
        )
        return descriptor


@pytest.fixture(autouse=True)
def reset_structlog() -> Iterator[None]:
    """Drop logging configuration bound to a test's captured streams."""
    yield
    structlog.reset_defaults()


@pytest.fixture()
def ca_directory(tmp_path: Path) -> CaDirectory:
    """An empty CA directory under tmp_path."""
    directory = tmp_path / "certificates"
    directory.mkdir()
    return CaDirectory(directory)


@pytest.fixture()
def fixed_now() -> Callable[[], datetime]:
    """Clock returning 2024-03-04 00:00 UTC plus the given days."""

    def clock(days: float = 0) -> datetime:
        return datetime(2024, 3, 4, tzinfo=UTC) + timedelta(days=days)

    return clock
