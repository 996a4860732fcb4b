"""Scaffold configuration using pydantic-settings.

This module defines the ScaffoldSettings class that reads configuration
from environment variables with the SCAFFOLD_ prefix. Every field has a
default, so the CLI works with no environment set.
"""

import shlex
from typing import List

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_TEMPLATE_URL = "https://github.com/xuantuong265/base-app-nextjs.git"
LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class ScaffoldSettings(BaseSettings):
    """Scaffold configuration from environment variables.

    All environment variables are prefixed with SCAFFOLD_
    (e.g., SCAFFOLD_TEMPLATE_URL, SCAFFOLD_STRICT_INSTALL).
    """

    model_config = SettingsConfigDict(
        env_prefix="SCAFFOLD_",
        case_sensitive=False,
    )

    # -------------------------------------------------------------------------
    # Template Configuration
    # -------------------------------------------------------------------------
    # Git URL (or local path) of the template repository to clone
    template_url: str = DEFAULT_TEMPLATE_URL

    # Name of the metadata file whose "name" field is patched
    metadata_filename: str = "package.json"

    # -------------------------------------------------------------------------
    # External Tools
    # -------------------------------------------------------------------------
    # Path to the git executable
    git_executable: str = "git"

    # Timeout in seconds for git clone
    clone_timeout_seconds: int = 600

    # Shell-style install command, split with shlex before execution
    install_command: str = "yarn install"

    # Timeout in seconds for the install command
    install_timeout_seconds: int = 1800

    # -------------------------------------------------------------------------
    # Failure Handling
    # -------------------------------------------------------------------------
    # Remove a project directory created by a run that aborted in steps 1-4
    cleanup_on_failure: bool = True

    # Treat a failed dependency install as a failed run (non-zero exit)
    strict_install: bool = False

    # -------------------------------------------------------------------------
    # Logging
    # -------------------------------------------------------------------------
    log_level: str = "WARNING"

    # Render log lines as JSON instead of the console format
    log_json: bool = False

    # -------------------------------------------------------------------------
    # Validators
    # -------------------------------------------------------------------------
    @field_validator("template_url", "metadata_filename", "git_executable")
    @classmethod
    def validate_not_empty(cls, v: str) -> str:
        """Validate that required string settings are not blank."""
        if not v or not v.strip():
            raise ValueError("value cannot be empty")
        return v.strip()

    @field_validator("metadata_filename")
    @classmethod
    def validate_metadata_filename(cls, v: str) -> str:
        """Validate that the metadata file lives at the project root."""
        if "/" in v or "\\" in v:
            raise ValueError("metadata_filename must be a bare file name")
        return v

    @field_validator("install_command")
    @classmethod
    def validate_install_command(cls, v: str) -> str:
        """Validate that the install command splits into at least one word."""
        try:
            parts = shlex.split(v)
        except ValueError as exc:
            raise ValueError(f"install_command cannot be parsed: {exc}") from exc
        if not parts:
            raise ValueError("install_command cannot be empty")
        return v

    @field_validator("clone_timeout_seconds", "install_timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: int) -> int:
        """Validate that timeouts are positive."""
        if v < 1:
            raise ValueError("timeout must be at least 1 second")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate that the log level is a known logging level name."""
        level = v.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"unknown log level: {v}")
        return level

    @property
    def install_argv(self) -> List[str]:
        """The install command as an argument list."""
        return shlex.split(self.install_command)


def get_settings() -> ScaffoldSettings:
    """Create and return a ScaffoldSettings instance.

    Returns:
        ScaffoldSettings: Configured settings instance.

    Raises:
        pydantic.ValidationError: If any environment value is invalid.
    """
    return ScaffoldSettings()
