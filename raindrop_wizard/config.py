"""Wizard configuration using Pydantic Settings.

Values come from environment variables prefixed with ``RAINDROP_WIZARD_``
and may be overridden by command line flags. The resulting ``Settings``
object is passed explicitly through the pipeline.
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

CloudRegion = Literal["us", "eu"]

DEV_QUERY_BASE_URL = "http://localhost:8010"
QUERY_PATH = "/api/wizard/query"


class Settings(BaseSettings):
    """Wizard settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="RAINDROP_WIZARD_",
        env_file=None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # Global Flags
    # ==========================================================================
    debug: bool = Field(default=False, description="Enable verbose logging")
    default: bool = Field(
        default=True, description="Use default options for all prompts"
    )
    signup: bool = Field(
        default=False, description="Create a new Raindrop account during setup"
    )
    ci: bool = Field(default=False, description="Run without any prompts")
    api_key: str | None = Field(
        default=None, description="Raindrop personal API key for authentication"
    )
    region: CloudRegion | None = Field(default=None, description="Cloud region")

    @field_validator("region", mode="before")
    @classmethod
    def normalize_region(cls, v: str | None) -> str | None:
        """Accept region names in any case."""
        if isinstance(v, str):
            return v.strip().lower() or None
        return v

    # ==========================================================================
    # Run Options
    # ==========================================================================
    force_install: bool = Field(
        default=False,
        description="Force install packages even if peer dependency checks fail",
    )
    install_dir: str | None = Field(
        default=None, description="Directory to install Raindrop in"
    )
    integration: str | None = Field(default=None, description="Integration to set up")

    @property
    def resolved_install_dir(self) -> Path:
        """Absolute install directory, relative paths resolve against the cwd."""
        if not self.install_dir:
            return Path(os.getcwd())
        path = Path(self.install_dir)
        if path.is_absolute():
            return path
        return Path(os.getcwd()) / path

    # ==========================================================================
    # Remote Query
    # ==========================================================================
    environment: Literal["development", "production"] = Field(
        default="production", description="Deployment environment of the wizard"
    )
    model: str = Field(default="o4-mini", description="Model used for remote queries")
    us_base_url: str = Field(
        default="https://us.posthog.com", description="Query service in the US region"
    )
    eu_base_url: str = Field(
        default="https://eu.posthog.com", description="Query service in the EU region"
    )
    query_timeout: float = Field(
        default=120.0,
        ge=5.0,
        le=600.0,
        description="Timeout for a single remote query (seconds)",
    )
    record_fixtures: bool = Field(
        default=False,
        description="Mark remote queries as fixture generation requests",
    )

    def query_url(self, region: CloudRegion | None) -> str:
        """Get the remote query endpoint for a region.

        Development builds always talk to a local server.
        """
        if self.environment == "development":
            base = DEV_QUERY_BASE_URL
        elif region == "eu":
            base = self.eu_base_url
        else:
            base = self.us_base_url
        return f"{base.rstrip('/')}{QUERY_PATH}"

    # ==========================================================================
    # Install
    # ==========================================================================
    install_timeout: float = Field(
        default=300.0,  # 5 minutes
        ge=10.0,
        le=3600.0,
        description="Timeout for the dependency install command (seconds)",
    )

    # ==========================================================================
    # Diagnostics
    # ==========================================================================
    log_file_path: str = Field(
        default="/tmp/raindrop-wizard.log",
        description="Diagnostic log shared by all wizard runs",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings built from the environment only.

    The CLI builds its own instance so flags take precedence.
    """
    return Settings()
