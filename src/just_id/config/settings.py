"""
Configuration management for JustId.

This module provides environment-based configuration using Pydantic BaseSettings.
It only carries process-wide knobs (logging, timeouts, client identification);
per-call caller parameters are normalized by EffectiveConfig and never read
from the environment.
"""

import os
from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from just_id import __version__

# Determine project root for resolving .env by default
PROJECT_ROOT = Path(__file__).resolve().parents[3]
DEFAULT_ENV_FILE = PROJECT_ROOT / ".env"
ENV_FILE_OVERRIDE = os.getenv("JUSTID_ENV_FILE")
if ENV_FILE_OVERRIDE:
    env_file_candidate = Path(ENV_FILE_OVERRIDE).expanduser()
    if not env_file_candidate.is_absolute():
        env_file_candidate = PROJECT_ROOT / env_file_candidate
    SETTINGS_ENV_FILE = env_file_candidate
else:
    SETTINGS_ENV_FILE = DEFAULT_ENV_FILE


class Settings(BaseSettings):
    """
    Application settings with environment variable support.

    Environment variables are loaded with the JUSTID_ prefix, e.g.
    JUSTID_PROBE_TIMEOUT_MS=2000 shortens the capability readiness wait.
    LOG_LEVEL is read without prefix.
    """

    LOG_LEVEL: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Logging level (uppercase)",
    )

    # Capability probe
    probe_timeout_ms: int = Field(
        default=5000,
        gt=0,
        description="How long to wait for the capability handle to report ready",
    )

    # Remote id server
    request_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="HTTP timeout for the getId POST",
    )
    request_delay_ms: int = Field(
        default=1,
        ge=0,
        description="Scheduling delay before the getId POST is issued",
    )
    client_lib: str = Field(
        default="pbjs", description="Client library identifier sent to the id server"
    )
    client_version: str = Field(
        default=__version__,
        description="Client library version sent to the id server",
    )

    model_config = SettingsConfigDict(
        env_prefix="JUSTID_",
        env_file=str(SETTINGS_ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def probe_timeout_seconds(self) -> float:
        return self.probe_timeout_ms / 1000

    @property
    def request_delay_seconds(self) -> float:
        return self.request_delay_ms / 1000


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings instance with loaded configuration
    """
    return Settings()
