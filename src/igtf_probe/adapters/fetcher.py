"""
Resource fetcher adapter — release and package list metadata via httpx or the filesystem.

Adapter layer — implements the ResourceFetcher port:
  - http(s):// sources: a single GET with httpx, redirects followed
  - file:// or plain paths: read from disk, optionally refusing stale files

No retries: each source is tried exactly once. Transport faults, HTTP error
statuses, and filesystem errors all become UNKNOWN failures — no exceptions
leak to the domain.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from pathlib import Path
from typing import TypeVar
from urllib.parse import unquote, urlparse

import httpx
import structlog

from igtf_probe.domain.ports import ResourceFetcher
from igtf_probe.railway import FailureDescription, Result, Severity

T = TypeVar("T")
log = structlog.get_logger()


def _is_url(source: str) -> bool:
    return source.lower().startswith(("http://", "https://"))


def _local_path(source: str) -> Path:
    if source.lower().startswith("file://"):
        return Path(unquote(urlparse(source).path))
    return Path(source)


class SourceFetcher:
    """
    Fetch a resource by URL or local path.

    Implements the ResourceFetcher port.
    `max_age_hours` applies to local files only; 0 disables the check.
    """

    def __init__(
        self,
        timeout: int = 30,
        max_age_hours: int = 0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._timeout = timeout
        self._max_age_hours = max_age_hours
        self._clock = clock

    def fetch(self, source: str, label: str) -> Result[str]:
        """
        Retrieve `source` as text.

        Returns Result[str] with the content on success,
        or Result.failure(UNKNOWN, ...) naming `label` and the cause.
        """
        source = source.strip()
        if _is_url(source):
            return self._get(source, label)
        return self._read(_local_path(source), label)

    def _get(self, url: str, label: str) -> Result[str]:
        try:
            with httpx.Client(timeout=self._timeout, follow_redirects=True) as client:
                response = client.get(url)
        except httpx.HTTPError as e:
            return Result.failure(Severity.UNKNOWN, f"Error fetching {label} from {url}: {e}", e)

        if not response.is_success:
            return Result.failure(
                Severity.UNKNOWN,
                f"Error fetching {label} from {url}: "
                f"{response.status_code} {response.reason_phrase}",
            )
        log.debug("fetch.complete", label=label, url=url, size_bytes=len(response.content))
        return Result.success(response.text)

    def _read(self, path: Path, label: str) -> Result[str]:
        if not path.exists():
            return Result.failure(Severity.UNKNOWN, f"{label.capitalize()} file {path} does not exist")

        if self._max_age_hours > 0:
            age_check = Result.from_computation(
                lambda: self._clock() - path.stat().st_mtime,
                Severity.UNKNOWN,
                f"Error checking age of {label} file {path}",
            )
            if age_check.is_failure():
                return Result.failure_from(age_check.error())
            if age_check.value() > self._max_age_hours * 3600:
                return Result.failure(
                    Severity.UNKNOWN,
                    f"{label.capitalize()} file {path} is older than {self._max_age_hours} hours",
                )

        return Result.from_computation(
            lambda: path.read_text(encoding="utf-8"),
            Severity.UNKNOWN,
            f"Error reading {label} file {path}",
        ).peek(
            lambda text: log.debug(
                "fetch.complete", label=label, path=str(path), size_bytes=len(text)
            )
        )


def fetch_first(
    fetcher: ResourceFetcher,
    sources: str,
    label: str,
    parse: Callable[[str], Result[T]],
) -> Result[T]:
    """
    Fetch and parse the first working alternative of a comma-separated source list.

    Each alternative is fetched once and parsed; the first success wins.
    When all fail, the failure message lists every alternative's cause.
    """
    alternatives = [s.strip() for s in sources.split(",") if s.strip()]
    if not alternatives:
        return Result.failure(Severity.UNKNOWN, f"No source configured for {label}")

    causes: list[str] = []

    def attempt(source: str) -> Result[T]:
        result = fetcher.fetch(source, label).flat_map(parse)
        if result.is_failure():
            causes.append(result.error().message)
            log.warning("fetch.failed", label=label, source=source, error=result.error().message)
        return result

    result = attempt(alternatives[0])
    for source in alternatives[1:]:
        result = result.or_else(lambda _err, _source=source: attempt(_source))

    return result.map_failure(
        lambda err: FailureDescription(
            severity=err.severity,
            message="; ".join(causes),
            exception=err.exception,
        )
    )
