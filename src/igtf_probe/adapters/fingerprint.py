"""
Fingerprint adapters — SHA-1 fingerprints of installed certificates.

Adapter layer — two implementations of the FingerprintProvider port:
  - OpenSslFingerprintProvider: runs `openssl x509 -noout -fingerprint -sha1`
  - CryptographyFingerprintProvider: loads the certificate with cryptography (PyCA)

Which one is used is a configuration value (FingerprintMode), resolved once
in the composition root by `create_fingerprint_provider`.

Any failure to compute a fingerprint is CRITICAL: it is a fault of the local
trust store or toolchain, not a mismatch.
"""

from __future__ import annotations

import re
import subprocess
from enum import StrEnum
from pathlib import Path

import structlog
from cryptography import x509
from cryptography.hazmat.primitives import hashes

from igtf_probe.domain.ports import FingerprintProvider
from igtf_probe.railway import Result, Severity

log = structlog.get_logger()

_OPENSSL_OUTPUT_RE = re.compile(r"^\s*sha1 Fingerprint=([0-9A-F]{2}(?::[0-9A-F]{2})+)\s*$", re.I)


class FingerprintMode(StrEnum):
    """How certificate fingerprints are computed."""

    OPENSSL = "openssl"
    LIBRARY = "library"


def format_fingerprint(digest: bytes) -> str:
    """Colon-separated uppercase hex: b'\\xab\\x01' → 'AB:01'."""
    return ":".join(f"{byte:02X}" for byte in digest)


class OpenSslFingerprintProvider:
    """
    Compute fingerprints by invoking the openssl command-line tool.

    Implements the FingerprintProvider port.
    """

    def __init__(self, command: str = "openssl", timeout: int | None = None) -> None:
        self._command = command
        self._timeout = timeout

    def fingerprint(self, certificate_path: Path) -> Result[str]:
        """
        Run openssl on `certificate_path` and parse its `SHA1 Fingerprint=` line.

        Returns Result.failure(CRITICAL, ...) if openssl cannot be started,
        exits non-zero, or prints something unexpected.
        """
        args = [
            self._command, "x509", "-noout", "-fingerprint", "-sha1",
            "-in", str(certificate_path),
        ]
        try:
            completed = subprocess.run(
                args,
                capture_output=True,
                text=True,
                timeout=self._timeout,
                check=False,
            )
        except (OSError, subprocess.SubprocessError) as e:
            return Result.failure(
                Severity.CRITICAL,
                f"Error running {self._command} for {certificate_path}: {e}",
                e,
            )

        if completed.returncode != 0:
            return Result.failure(
                Severity.CRITICAL,
                f"{self._command} failed on {certificate_path} "
                f"(exit {completed.returncode}): {completed.stderr.strip()}",
            )

        for line in completed.stdout.splitlines():
            match = _OPENSSL_OUTPUT_RE.match(line)
            if match is not None:
                return Result.success(match.group(1).upper())

        return Result.failure(
            Severity.CRITICAL,
            f"Unexpected {self._command} output for {certificate_path}: {completed.stdout.strip()!r}",
        )


def _load_certificate(data: bytes) -> x509.Certificate:
    if b"-----BEGIN" in data:
        return x509.load_pem_x509_certificate(data)
    return x509.load_der_x509_certificate(data)


class CryptographyFingerprintProvider:
    """
    Compute fingerprints in-process with cryptography.

    Implements the FingerprintProvider port. Accepts PEM, or DER when the
    file carries no PEM armour.
    """

    def fingerprint(self, certificate_path: Path) -> Result[str]:
        return Result.from_computation(
            lambda: format_fingerprint(
                _load_certificate(certificate_path.read_bytes()).fingerprint(hashes.SHA1())
            ),
            Severity.CRITICAL,
            f"Error computing fingerprint of {certificate_path}",
        )


def create_fingerprint_provider(
    mode: FingerprintMode,
    openssl_command: str = "openssl",
    timeout: int | None = None,
) -> FingerprintProvider:
    """Select the fingerprint implementation for the configured mode."""
    if FingerprintMode(mode) is FingerprintMode.LIBRARY:
        return CryptographyFingerprintProvider()
    return OpenSslFingerprintProvider(command=openssl_command, timeout=timeout)
