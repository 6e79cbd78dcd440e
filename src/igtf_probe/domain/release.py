"""
Release descriptor parsing.

The release descriptor is a small XML document published next to the
distribution's package list:

    <Release>
      <Version>1.127-1</Version>
      <Date>20240304</Date>
      ...
    </Release>

Only MAJOR.MINOR of the version is kept; the date is parsed permissively
(dateutil) and pinned to UTC when it carries no zone.
"""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from datetime import UTC, datetime

from dateutil import parser as date_parser

from igtf_probe.domain.models import ReleaseInfo
from igtf_probe.railway import Result, Severity

_VERSION_RE = re.compile(r"^(\d+\.\d+)-(\d+)$")


def _find_release(root: ET.Element) -> ET.Element | None:
    if root.tag == "Release":
        return root
    return root.find(".//Release")


def _field_text(release: ET.Element, name: str) -> Result[str]:
    element = release.find(name)
    if element is None or not (element.text or "").strip():
        return Result.failure(Severity.UNKNOWN, f"Release descriptor has no {name} field")
    return Result.success(element.text.strip())


def _parse_version(text: str) -> Result[str]:
    match = _VERSION_RE.match(text)
    if match is None:
        return Result.failure(
            Severity.UNKNOWN,
            f"Release descriptor version {text!r} is not in MAJOR.MINOR-REVISION form",
        )
    return Result.success(match.group(1))


def _parse_date(text: str) -> Result[datetime]:
    def parse() -> datetime:
        parsed = date_parser.parse(text)
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=UTC)
        return parsed

    return Result.from_computation(
        parse, Severity.UNKNOWN, f"Release descriptor date {text!r} cannot be parsed"
    )


def parse_release(content: str) -> Result[ReleaseInfo]:
    """
    Parse release descriptor content into a ReleaseInfo.

    Every structural or format problem is an UNKNOWN failure naming what is
    wrong; nothing here raises.
    """
    try:
        root = ET.fromstring(content)
    except ET.ParseError as e:
        return Result.failure(Severity.UNKNOWN, f"Release descriptor is not valid XML: {e}", e)

    release = _find_release(root)
    if release is None:
        return Result.failure(Severity.UNKNOWN, "Release descriptor has no Release element")

    return (
        _field_text(release, "Date")
        .flat_map(_parse_date)
        .flat_map(
            lambda date: _field_text(release, "Version")
            .flat_map(_parse_version)
            .map(lambda version: ReleaseInfo(version=version, date=date))
        )
    )
