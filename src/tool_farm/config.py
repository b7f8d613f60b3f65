"""Configuration management for Tool Farm."""

from __future__ import annotations

import sys
from functools import lru_cache
from typing import TYPE_CHECKING

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from tool_farm import constants

if TYPE_CHECKING:
    from tool_farm.updater.retry import RetryPolicy


def _python_command(args: str) -> str:
    return f'"{sys.executable}" {args}'


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    environment: str = Field(default="production", description="Environment name")
    log_level: str = Field(default="INFO", description="Logging level")
    log_to_file: bool = Field(default=False, description="Also write logs to a rotating file")
    log_file_path: str = Field(default=constants.LOG_FILE_PATH, description="Log file location")
    log_file_max_bytes: int = Field(
        default=constants.LOG_FILE_MAX_BYTES, gt=0, description="Rotate after this many bytes"
    )
    log_file_backup_count: int = Field(
        default=constants.LOG_FILE_BACKUP_COUNT, ge=0, description="Rotated files to keep"
    )

    # Self-update
    update_check_on_start: bool = Field(
        default=True, description="Check for a newer release when the app starts"
    )
    update_manifest_url: str = Field(
        default=constants.MANIFEST_URL, description="Remote manifest with the latest version"
    )
    update_archive_url: str = Field(
        default=constants.ARCHIVE_URL, description="Release archive (zip) download URL"
    )
    update_manifest_file: str = Field(
        default=constants.MANIFEST_FILE,
        description="Local manifest path, relative to the working directory",
    )
    update_user_agent: str = Field(
        default=constants.USER_AGENT, description="User-Agent header for update requests"
    )
    update_manifest_timeout: float = Field(
        default=constants.MANIFEST_TIMEOUT, gt=0, description="Manifest fetch timeout (s)"
    )
    update_archive_timeout: float = Field(
        default=constants.ARCHIVE_TIMEOUT, gt=0, description="Archive download timeout (s)"
    )
    update_max_retries: int = Field(
        default=constants.MAX_RETRIES, ge=0, description="Retries after the first attempt"
    )
    update_initial_delay: float = Field(
        default=constants.INITIAL_RETRY_DELAY, ge=0, description="First backoff delay (s)"
    )
    update_backoff_multiplier: float = Field(
        default=constants.BACKOFF_MULTIPLIER, ge=1, description="Backoff growth factor"
    )
    update_vcs_remote: str | None = Field(default=None, description="Remote to pull from")
    update_vcs_branch: str | None = Field(default=None, description="Branch to pull")
    update_archive_root: str | None = Field(
        default=None, description="Required top-level directory of the release archive"
    )
    update_archive_fallback: bool = Field(
        default=False, description="Run the archive update when the git update fails"
    )
    update_install_command: str = Field(
        default_factory=lambda: _python_command("-m pip install -e ."),
        description="Command that reinstalls runtime dependencies",
    )
    update_install_timeout: int = Field(
        default=constants.INSTALL_TIMEOUT, gt=0, description="Dependency install timeout (s)"
    )
    update_start_command: str = Field(
        default_factory=lambda: _python_command("-m tool_farm"),
        description="Command that starts the application after an update",
    )
    update_temp_dir: str | None = Field(
        default=None, description="Archive extraction directory (system temp dir if unset)"
    )

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment.lower() == "development"

    @property
    def retry_policy(self) -> RetryPolicy:
        """Backoff policy shared by the manifest fetch and archive download."""
        from tool_farm.updater.retry import RetryPolicy

        return RetryPolicy(
            max_retries=self.update_max_retries,
            initial_delay=self.update_initial_delay,
            backoff_multiplier=self.update_backoff_multiplier,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
