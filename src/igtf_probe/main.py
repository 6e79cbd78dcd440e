"""
Probe entry point — wires dependencies and prints the verdict.

Composition root: creates concrete adapters, injects them into the probe
pipeline, and runs it once under a wall-clock timeout.

This is the ONLY place where concrete classes are instantiated.
Everything else depends on Protocol interfaces.

Responsibilities:
  1. Parse command-line options and load/validate settings
  2. Configure structlog (to stderr — stdout carries the verdict line only)
  3. Create concrete adapters (fetcher, scanner, fingerprint provider)
  4. Run the probe within a LoggingExecutionContext and a SIGALRM timeout
  5. Print the Nagios-style line and return the matching exit code
"""

from __future__ import annotations

import argparse
import logging
import signal
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog
from pydantic import ValidationError

from igtf_probe import __version__
from igtf_probe.adapters.descriptors import DescriptorScanner
from igtf_probe.adapters.fetcher import SourceFetcher
from igtf_probe.adapters.fingerprint import FingerprintMode, create_fingerprint_provider
from igtf_probe.config import AppSettings
from igtf_probe.domain.models import Verdict
from igtf_probe.probe import ProbeSources, run_probe
from igtf_probe.railway import LoggingExecutionContext, Result, Severity


class ProbeTimeoutError(BaseException):
    """
    Raised from the SIGALRM handler when the probe exceeds its time budget.

    Derives from BaseException: it must cross every `except Exception` between
    the handler and the execution context (adapters, Result.from_computation).
    """


def configure_structlog(log_level: str = "WARNING") -> None:
    """
    Configure structlog for human-readable console logging on stderr.

    Unknown level names fall back to WARNING.
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, log_level.upper(), logging.WARNING)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="igtf-probe",
        description="Check the installed IGTF CA distribution against the published release.",
    )
    p.add_argument(
        "--ca-dir",
        help="CA directory (default: $X509_CERT_DIR or /etc/grid-security/certificates)",
    )
    p.add_argument("--release-url", help="Release descriptor URL(s) or path(s), comma-separated")
    p.add_argument("--manifest-url", help="Package list URL(s) or path(s), comma-separated")
    p.add_argument("--obsolete-url", help="Obsoleted package list URL(s) or path(s), comma-separated")
    p.add_argument(
        "--max-age", type=int, help="Maximum age of local source files in hours (0 = unlimited)"
    )
    p.add_argument(
        "--fingerprint-mode",
        choices=[mode.value for mode in FingerprintMode],
        help="Compute fingerprints with the openssl tool or in-process (default: openssl)",
    )
    p.add_argument("-w", "--warning", type=float, help="Warning threshold in days")
    p.add_argument("-c", "--critical", type=float, help="Critical threshold in days")
    p.add_argument("-t", "--timeout", type=int, help="Overall timeout in seconds")
    p.add_argument("--log-level", help="Log level for stderr diagnostics (default: WARNING)")
    p.add_argument("--version", action="store_true", help="Print version and exit")
    return p.parse_args(argv)


def settings_overrides(args: argparse.Namespace) -> dict[str, Any]:
    """Translate the given command-line options into AppSettings init arguments."""
    sources = {
        "release_url": args.release_url,
        "manifest_url": args.manifest_url,
        "obsolete_url": args.obsolete_url,
        "max_age_hours": args.max_age,
    }
    thresholds = {"warning_days": args.warning, "critical_days": args.critical}
    top_level = {
        "ca_dir": args.ca_dir,
        "fingerprint_mode": args.fingerprint_mode,
        "timeout_seconds": args.timeout,
        "log_level": args.log_level,
    }

    overrides: dict[str, Any] = {k: v for k, v in top_level.items() if v is not None}
    if given := {k: v for k, v in sources.items() if v is not None}:
        overrides["sources"] = given
    if given := {k: v for k, v in thresholds.items() if v is not None}:
        overrides["thresholds"] = given
    return overrides


@contextmanager
def alarm(seconds: int) -> Iterator[None]:
    """Raise ProbeTimeoutError in the main thread once `seconds` have elapsed."""

    def _expire(signum: int, frame: object) -> None:
        raise ProbeTimeoutError(f"timed out after {seconds} seconds")

    previous = signal.signal(signal.SIGALRM, _expire)
    signal.alarm(seconds)
    try:
        yield
    finally:
        signal.alarm(0)
        signal.signal(signal.SIGALRM, previous)


def execute(settings: AppSettings) -> Verdict:
    """Build the adapters from settings and run one probe under the timeout."""
    fetcher = SourceFetcher(
        timeout=settings.http_timeout_seconds,
        max_age_hours=settings.sources.max_age_hours,
    )
    scanner = DescriptorScanner(settings.ca_dir)
    fingerprints = create_fingerprint_provider(
        settings.fingerprint_mode,
        openssl_command=settings.openssl_command,
    )
    sources = ProbeSources(
        release=settings.sources.release_url,
        manifest=settings.sources.manifest_url,
        obsolete=settings.sources.obsolete_url,
    )
    ctx = LoggingExecutionContext(operation="IGTF probe", interrupts=(ProbeTimeoutError,))

    def _run() -> Result[Verdict]:
        with alarm(settings.timeout_seconds):
            return Result.success(
                run_probe(
                    fetcher, scanner, fingerprints, sources, settings.thresholds.to_thresholds()
                )
            )

    return ctx.execute(_run).either(on_success=lambda v: v, on_failure=Verdict.from_failure)


def main(argv: list[str] | None = None) -> int:
    """Run the probe once; print one verdict line and return its exit code."""
    args = parse_args(sys.argv[1:] if argv is None else argv)

    if args.version:
        print(__version__)
        return 0

    try:
        settings = AppSettings(**settings_overrides(args))
    except ValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first["loc"])
        detail = f"{location}: {first['msg']}" if location else first["msg"]
        verdict = Verdict(Severity.UNKNOWN, f"Configuration error: {detail}")
        print(verdict.render())
        return verdict.severity.exit_code

    configure_structlog(settings.log_level)
    log = structlog.get_logger()
    log.info(
        "probe.starting",
        version=__version__,
        ca_dir=str(settings.ca_dir),
        fingerprint_mode=settings.fingerprint_mode.value,
        timeout_seconds=settings.timeout_seconds,
    )

    verdict = execute(settings)
    log.info("probe.finished", severity=verdict.severity.value)
    print(verdict.render())
    return verdict.severity.exit_code


if __name__ == "__main__":
    raise SystemExit(main())
