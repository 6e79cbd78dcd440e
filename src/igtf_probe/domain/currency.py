"""
Version/age comparison — how far behind the official release is the install?

Versions are MAJOR.MINOR strings reduced to MAJOR*10000+MINOR so that
"1.100" ranks above "1.99". When the install is older, the verdict depends
on how many days have passed since the official release date.
"""

from __future__ import annotations

import re
from datetime import datetime

from igtf_probe.domain.models import ReleaseInfo, Thresholds, Verdict
from igtf_probe.railway import Result, Severity

_NUM_VERSION_RE = re.compile(r"^(\d+)\.(\d+)$")
_SECONDS_PER_DAY = 86400


def num_version(version: str) -> int | None:
    """Return MAJOR*10000+MINOR for a MAJOR.MINOR string, None otherwise."""
    match = _NUM_VERSION_RE.match(version.strip())
    if match is None:
        return None
    return int(match.group(1)) * 10000 + int(match.group(2))


def age_in_days(release_date: datetime, now: datetime) -> float:
    """Days elapsed since the release, two-decimal precision; negative if in the future."""
    return round((now - release_date).total_seconds() / _SECONDS_PER_DAY, 2)


def _numeric(version: str, role: str) -> Result[int]:
    value = num_version(version)
    if value is None:
        return Result.failure(Severity.UNKNOWN, f"Invalid {role} version format: {version!r}")
    return Result.success(value)


def classify_age(
    installed: str,
    release: ReleaseInfo,
    thresholds: Thresholds,
    now: datetime,
) -> Verdict:
    """Verdict for an install that is not newer than the official release."""
    age = age_in_days(release.date, now)
    behind = (
        f"Installed CA distribution {installed} is older than official "
        f"version {release.version} released {age:.2f} days ago"
    )
    if age >= thresholds.critical_days:
        return Verdict(Severity.CRITICAL, f"{behind}.")
    if age >= thresholds.warning_days:
        return Verdict(Severity.WARNING, f"{behind}.")
    if age > 0:
        return Verdict(Severity.OK, f"{behind}, within grace period.")
    return Verdict(
        Severity.OK,
        f"New version {release.version} releases in {abs(age):.2f} days.",
    )


def compare_versions(
    installed: str,
    release: ReleaseInfo,
    thresholds: Thresholds,
    now: datetime,
) -> Result[Verdict]:
    """
    Compare the installed distribution version to the official release.

    Malformed versions are UNKNOWN. An install newer than the official
    release is OK; otherwise the verdict follows the age thresholds and only
    ever worsens as the release ages (OK → WARNING → CRITICAL).
    """
    return _numeric(installed, "installed").flat_map(
        lambda installed_num: _numeric(release.version, "official").map(
            lambda official_num: (
                Verdict(
                    Severity.OK,
                    f"Installed CA distribution {installed} is newer than "
                    f"official version {release.version}.",
                )
                if installed_num > official_num
                else classify_age(installed, release, thresholds, now)
            )
        )
    )
