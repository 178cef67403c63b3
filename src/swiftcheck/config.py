"""
Process-wide configuration.

Settings are read once at start-up (environment, optionally a .env file)
and shared by every case in the run. Each process targets exactly one
site, so there is no teardown.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

import structlog
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

from swiftcheck.polling import DEFAULT_DEADLINE, DEFAULT_INTERVALS, BackoffSchedule
from swiftcheck.text import SCRIPT_BLOCKS, ScriptBlock

logger = structlog.get_logger(__name__)

DEFAULT_SITE_URL = "https://www.swifttranslator.com/"
ENV_PREFIX = "SWIFTCHECK_"


class Settings(BaseModel):
    """Run configuration with validation."""

    site_url: str = Field(default=DEFAULT_SITE_URL, description="Translator page under test")
    driver: Literal["playwright", "owl"] = Field(default="playwright", description="Browser driver adapter")
    headless: bool = Field(default=True, description="Run the local browser headless")
    wait_until: str = Field(default="domcontentloaded", description="Load state awaited after navigation")
    navigation_timeout_ms: int = Field(default=30000, ge=1000, le=300000, description="Navigation timeout")
    poll_deadline_s: float = Field(default=DEFAULT_DEADLINE, gt=0.0, le=120.0, description="Readiness deadline")
    poll_intervals_s: list[float] = Field(
        default_factory=lambda: list(DEFAULT_INTERVALS),
        min_length=1,
        description="Backoff schedule between output samples",
    )
    typing_delay_ms: int = Field(default=30, ge=0, le=1000, description="Delay between typed keys")
    max_parallel: int = Field(default=1, ge=1, le=32, description="Cases executed concurrently")
    artifact_dir: Path = Field(default=Path("artifacts"), description="Where attachments are written")
    target_script: str = Field(default="sinhala", description="Unicode block that marks rendered output")
    owl_endpoint: str = Field(default="", description="Owl Browser remote endpoint")
    owl_token: str = Field(default="", description="Owl Browser auth token")

    @field_validator("site_url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Ensure URL has valid scheme."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("Site URL must start with http:// or https://")
        return v

    @field_validator("target_script")
    @classmethod
    def validate_script(cls, v: str) -> str:
        if v.lower() not in SCRIPT_BLOCKS:
            raise ValueError(f"Unknown target script {v!r}; known: {', '.join(sorted(SCRIPT_BLOCKS))}")
        return v.lower()

    @field_validator("poll_intervals_s")
    @classmethod
    def validate_intervals(cls, v: list[float]) -> list[float]:
        if any(interval < 0 for interval in v):
            raise ValueError("Poll intervals must be non-negative")
        return v

    @property
    def script(self) -> ScriptBlock:
        return SCRIPT_BLOCKS[self.target_script]

    @property
    def backoff(self) -> BackoffSchedule:
        return BackoffSchedule.of(self.poll_intervals_s)

    @classmethod
    def from_env(cls, env_file: str | Path | None = None, **overrides: object) -> Settings:
        """
        Build settings from ``SWIFTCHECK_*`` environment variables.

        A .env file is loaded first (without overriding variables already
        set). OWL_ENDPOINT / OWL_TOKEN are honoured when the prefixed
        variables are absent. Keyword overrides win over the environment.
        """
        load_dotenv(env_file)

        values: dict[str, object] = {}
        for name in cls.model_fields:
            raw = os.environ.get(f"{ENV_PREFIX}{name.upper()}")
            if raw is None:
                continue
            if name == "poll_intervals_s":
                values[name] = [float(part) for part in raw.split(",") if part.strip()]
            else:
                values[name] = raw

        values.setdefault("owl_endpoint", os.environ.get("OWL_ENDPOINT", ""))
        values.setdefault("owl_token", os.environ.get("OWL_TOKEN", ""))
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls.model_validate(values)


_settings: Settings | None = None


def configure(settings: Settings | None = None, **overrides: object) -> Settings:
    """Initialise the process-wide settings (from the environment when not given)."""
    global _settings
    _settings = settings or Settings.from_env(**overrides)
    logger.debug("settings_configured", site_url=_settings.site_url, driver=_settings.driver)
    return _settings


def get_settings() -> Settings:
    """Return the process-wide settings, initialising them on first use."""
    if _settings is None:
        return configure()
    return _settings


def reset_settings() -> None:
    global _settings
    _settings = None
