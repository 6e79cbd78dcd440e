"""
Unit tests for the fingerprint adapters.

The cryptography provider runs against generated certificates. The openssl
provider is tested with subprocess.run patched, plus one run against the
real binary when it is installed.
"""

from __future__ import annotations

import shutil
import subprocess
from enum import StrEnum
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import serialization

from igtf_probe.adapters import fingerprint as fingerprint_module
from igtf_probe.adapters.fingerprint import (
    CryptographyFingerprintProvider,
    FingerprintMode,
    OpenSslFingerprintProvider,
    create_fingerprint_provider,
    format_fingerprint,
)
from igtf_probe.domain.ports import FingerprintProvider
from igtf_probe.railway import Severity
from tests.assertions import ResultAssertions
from tests.conftest import generate_certificate_pem, sha1_fingerprint


@pytest.fixture()
def pem_certificate(tmp_path: Path) -> tuple[Path, bytes]:
    pem = generate_certificate_pem("Test Root CA")
    path = tmp_path / "TestRootCA.pem"
    path.write_bytes(pem)
    return path, pem


def _completed(returncode: int = 0, stdout: str = "", stderr: str = "") -> MagicMock:
    completed = MagicMock()
    completed.returncode = returncode
    completed.stdout = stdout
    completed.stderr = stderr
    return completed


class TestFormatFingerprint:
    def test_colon_separated_uppercase(self) -> None:
        assert format_fingerprint(b"\xab\x01\xff") == "AB:01:FF"


class TestCryptographyProvider:
    def test_pem_fingerprint_matches(self, pem_certificate: tuple[Path, bytes]) -> None:
        path, pem = pem_certificate
        result = CryptographyFingerprintProvider().fingerprint(path)
        assert ResultAssertions.assert_success(result) == sha1_fingerprint(pem)

    def test_der_fingerprint_matches(self, tmp_path: Path) -> None:
        pem = generate_certificate_pem("DER CA")
        der = x509.load_pem_x509_certificate(pem).public_bytes(serialization.Encoding.DER)
        path = tmp_path / "DerCA.pem"
        path.write_bytes(der)
        assert CryptographyFingerprintProvider().fingerprint(path).value() == sha1_fingerprint(pem)

    def test_garbage_is_critical(self, tmp_path: Path) -> None:
        path = tmp_path / "Broken.pem"
        path.write_text("-----BEGIN CERTIFICATE-----\nnope\n-----END CERTIFICATE-----\n")
        result = CryptographyFingerprintProvider().fingerprint(path)
        ResultAssertions.assert_failure(result, Severity.CRITICAL)
        ResultAssertions.assert_failure_message_contains(result, "Broken.pem")

    def test_unreadable_file_is_critical(self, tmp_path: Path) -> None:
        result = CryptographyFingerprintProvider().fingerprint(tmp_path / "Absent.pem")
        ResultAssertions.assert_failure(result, Severity.CRITICAL)


class TestOpenSslProvider:
    def test_parses_fingerprint_line(self, monkeypatch: pytest.MonkeyPatch) -> None:
        run = MagicMock(return_value=_completed(stdout="SHA1 Fingerprint=d1:eb:23:a4\n"))
        monkeypatch.setattr(fingerprint_module.subprocess, "run", run)
        result = OpenSslFingerprintProvider().fingerprint(Path("/certs/A.pem"))
        assert ResultAssertions.assert_success(result) == "D1:EB:23:A4"
        assert run.call_args.args[0] == [
            "openssl", "x509", "-noout", "-fingerprint", "-sha1", "-in", "/certs/A.pem",
        ]

    def test_accepts_lowercase_label_of_newer_openssl(self, monkeypatch: pytest.MonkeyPatch) -> None:
        run = MagicMock(return_value=_completed(stdout="sha1 Fingerprint=AA:BB\n"))
        monkeypatch.setattr(fingerprint_module.subprocess, "run", run)
        assert OpenSslFingerprintProvider().fingerprint(Path("A.pem")).value() == "AA:BB"

    def test_custom_command(self, monkeypatch: pytest.MonkeyPatch) -> None:
        run = MagicMock(return_value=_completed(stdout="SHA1 Fingerprint=AA:BB\n"))
        monkeypatch.setattr(fingerprint_module.subprocess, "run", run)
        OpenSslFingerprintProvider(command="/opt/openssl/bin/openssl").fingerprint(Path("A.pem"))
        assert run.call_args.args[0][0] == "/opt/openssl/bin/openssl"

    def test_nonzero_exit_is_critical(self, monkeypatch: pytest.MonkeyPatch) -> None:
        run = MagicMock(return_value=_completed(returncode=1, stderr="unable to load certificate\n"))
        monkeypatch.setattr(fingerprint_module.subprocess, "run", run)
        result = OpenSslFingerprintProvider().fingerprint(Path("A.pem"))
        ResultAssertions.assert_failure(result, Severity.CRITICAL)
        ResultAssertions.assert_failure_message_contains(result, "unable to load certificate")

    def test_unexpected_output_is_critical(self, monkeypatch: pytest.MonkeyPatch) -> None:
        run = MagicMock(return_value=_completed(stdout="something else\n"))
        monkeypatch.setattr(fingerprint_module.subprocess, "run", run)
        result = OpenSslFingerprintProvider().fingerprint(Path("A.pem"))
        ResultAssertions.assert_failure(result, Severity.CRITICAL)
        ResultAssertions.assert_failure_message_contains(result, "Unexpected openssl output")

    def test_missing_binary_is_critical(self, monkeypatch: pytest.MonkeyPatch) -> None:
        run = MagicMock(side_effect=FileNotFoundError(2, "No such file or directory"))
        monkeypatch.setattr(fingerprint_module.subprocess, "run", run)
        result = OpenSslFingerprintProvider(command="no-openssl").fingerprint(Path("A.pem"))
        error = ResultAssertions.assert_failure(result, Severity.CRITICAL)
        assert isinstance(error.exception, FileNotFoundError)

    def test_subprocess_timeout_is_critical(self, monkeypatch: pytest.MonkeyPatch) -> None:
        run = MagicMock(side_effect=subprocess.TimeoutExpired(cmd="openssl", timeout=5))
        monkeypatch.setattr(fingerprint_module.subprocess, "run", run)
        result = OpenSslFingerprintProvider(timeout=5).fingerprint(Path("A.pem"))
        ResultAssertions.assert_failure(result, Severity.CRITICAL)

    @pytest.mark.skipif(shutil.which("openssl") is None, reason="openssl not installed")
    def test_real_openssl_agrees_with_library(self, pem_certificate: tuple[Path, bytes]) -> None:
        path, pem = pem_certificate
        assert OpenSslFingerprintProvider().fingerprint(path).value() == sha1_fingerprint(pem)


class TestFingerprintMode:
    def test_members_are_plain_strings(self) -> None:
        assert isinstance(FingerprintMode.LIBRARY, StrEnum)
        assert FingerprintMode.LIBRARY == "library"
        assert f"{FingerprintMode.OPENSSL}" == "openssl"


class TestCreateFingerprintProvider:
    def test_library_mode(self) -> None:
        provider = create_fingerprint_provider(FingerprintMode.LIBRARY)
        assert isinstance(provider, CryptographyFingerprintProvider)
        assert isinstance(provider, FingerprintProvider)

    def test_openssl_mode_from_string(self) -> None:
        provider = create_fingerprint_provider("openssl", openssl_command="openssl3")
        assert isinstance(provider, OpenSslFingerprintProvider)

    def test_unknown_mode_is_rejected(self) -> None:
        with pytest.raises(ValueError):
            create_fingerprint_provider("gnutls")
