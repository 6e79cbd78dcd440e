"""
Status aggregation — fold a scan outcome into one verdict.

Buckets are reported in a fixed order. Each contributes its own severity and
the overall severity is the worst of them, so an informational bucket never
hides a critical one reported earlier.
"""

from __future__ import annotations

from collections.abc import Iterable

from igtf_probe.domain.models import Findings, ScanOutcome, Verdict
from igtf_probe.railway import FailureDescription, Severity

CORRECTLY_INSTALLED = "CA distribution is correctly installed."

# (attribute, severity, label), evaluated in this order
_BUCKETS: tuple[tuple[str, Severity, str], ...] = (
    ("missing_from_install", Severity.OK, "CAs not installed"),
    ("obsolete_present", Severity.CRITICAL, "Obsoleted CAs installed"),
    ("version_mismatch", Severity.CRITICAL, "CAs with wrong version"),
    ("fingerprint_mismatch", Severity.CRITICAL, "CAs with fingerprint mismatch"),
    ("certificate_file_missing", Severity.OK, "CAs without certificate file"),
)


def _describe(label: str, aliases: Iterable[str]) -> str:
    return f"{label}: {', '.join(sorted(aliases))}."


def summarize_findings(findings: Findings) -> Verdict:
    """Verdict for a completed scan — worst bucket severity, all bucket messages."""
    if findings.is_clean:
        return Verdict(Severity.OK, CORRECTLY_INSTALLED)

    severities: list[Severity] = []
    lines: list[str] = []
    for attribute, severity, label in _BUCKETS:
        aliases: frozenset[str] = getattr(findings, attribute)
        if not aliases:
            continue
        severities.append(severity)
        lines.append(_describe(label, aliases))

    return Verdict(Severity.worst(severities), " ".join(lines))


def summarize_fault(fault: FailureDescription, findings: Findings) -> Verdict:
    """
    Verdict for a scan stopped by a local fault.

    The fault message comes first, followed by whatever the CAs scanned
    before it produced; the severity is the worse of the two.
    """
    if findings.is_clean:
        return Verdict.from_failure(fault)
    partial = summarize_findings(findings)
    return Verdict(
        fault.severity.worse_of(partial.severity),
        f"{fault.message.rstrip('.')}. {partial.message}",
    )


def summarize(outcome: ScanOutcome) -> Verdict:
    """The version/age verdict stands alone when present; otherwise summarise the buckets."""
    if outcome.currency is not None:
        return outcome.currency
    if outcome.fault is not None:
        return summarize_fault(outcome.fault, outcome.findings)
    return summarize_findings(outcome.findings)
