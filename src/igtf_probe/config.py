"""
Configuration — typed, validated settings loaded from environment/.env.

Uses pydantic-settings to:
  - Load from environment variables (as set by the monitoring agent)
  - Fall back to .env file
  - Validate types and constraints before any check runs

Command-line options given to the probe are passed in as init arguments and
take priority over the environment (see main.py).

Only AppSettings is a BaseSettings instance. Sub-settings are plain BaseModel
classes populated via env_nested_delimiter="__", so SOURCES__RELEASE_URL maps
to sources.release_url and THRESHOLDS__WARNING_DAYS to thresholds.warning_days.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import AliasChoices, BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from igtf_probe.adapters.fingerprint import FingerprintMode
from igtf_probe.domain.models import Thresholds

_ENV_FILE = Path(__file__).parent.parent.parent / ".env"

_METADATA_BASE = "https://repository.egi.eu/sw/production/cas/1/current/meta/ca-policy-egi-core"
DEFAULT_CA_DIR = Path("/etc/grid-security/certificates")


class SourceSettings(BaseModel):
    """
    Where the authoritative distribution metadata comes from.

    Each source is a URL or local path; several alternatives may be joined
    with commas and are tried in order. Local copies (for instance in the
    probe's spool directory) can be required to be fresh via max_age_hours.
    """

    release_url: str = Field(
        default=f"{_METADATA_BASE}.release",
        description="Release descriptor (version + date) source(s)",
    )
    manifest_url: str = Field(
        default=f"{_METADATA_BASE}.list",
        description="Authoritative package list source(s)",
    )
    obsolete_url: str = Field(
        default=f"{_METADATA_BASE}.obsoleted",
        description="Obsoleted package list source(s)",
    )
    max_age_hours: int = Field(
        default=0,
        ge=0,
        description="Maximum age of local source files in hours (0 = unlimited)",
    )


class ThresholdSettings(BaseModel):
    """Days past the official release before an older install is WARNING / CRITICAL."""

    warning_days: float = Field(default=3, ge=0)
    critical_days: float = Field(default=8, ge=0)

    @model_validator(mode="after")
    def check_order(self) -> ThresholdSettings:
        if self.critical_days < self.warning_days:
            raise ValueError(
                f"critical_days ({self.critical_days}) must not be lower than "
                f"warning_days ({self.warning_days})"
            )
        return self

    def to_thresholds(self) -> Thresholds:
        return Thresholds(warning_days=self.warning_days, critical_days=self.critical_days)


class AppSettings(BaseSettings):
    """
    Root probe settings — aggregates all sub-settings.

    Load order (highest priority first):
      1. Init arguments (command-line options)
      2. Environment variables
      3. .env file
      4. Default values

    The CA directory is read from CA_DIR, then X509_CERT_DIR (the grid
    convention), then defaults to /etc/grid-security/certificates.
    """

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE,
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    ca_dir: Path = Field(
        default=DEFAULT_CA_DIR,
        validation_alias=AliasChoices("ca_dir", "x509_cert_dir"),
    )
    sources: SourceSettings = Field(default_factory=lambda: SourceSettings())
    thresholds: ThresholdSettings = Field(default_factory=lambda: ThresholdSettings())

    fingerprint_mode: FingerprintMode = Field(default=FingerprintMode.OPENSSL)
    openssl_command: str = Field(default="openssl")
    http_timeout_seconds: int = Field(default=30, ge=1)
    timeout_seconds: int = Field(default=120, ge=1)
    log_level: str = Field(default="WARNING")
