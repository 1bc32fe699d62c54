"""
Application Configuration Module.

Manages application settings and environment variables using Pydantic for validation.
Provides centralized configuration management with type safety and validation.

Features:
- Environment variable loading and validation
- Secure credential management
- Activity window and repository health window derivation
- Path normalization for output directories
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import List, Optional, Tuple
import os

import pandas as pd
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from logger import LogManager


class Settings(BaseSettings):
    """
    Application configuration settings with validation.

    Manages and validates all application settings including:
    - Application identification
    - GitHub authentication and endpoint
    - User activity window
    - Repository health and monitoring targets
    - Logging settings
    - Output directory configurations

    Attributes:
        app_name (str): Name of the application
        dev (bool): Debug mode flag
        log_dir (str): Directory for log files
        log_level (int): Logging level (default: debug)
        github_token (SecretStr): GitHub API authentication token
        github_api_url (str): Base URL of the GitHub API
        github_login (str): User whose activity is collected
        activity_since (date): First day of the activity window
        activity_until (date): Last day of the activity window, today if unset
        enrich (bool): Whether to run the enrichment pass
        max_concurrency (int): Maximum simultaneous enrichment tasks
        health_repository (str): Repository analyzed for response times, owner/name
        maintainer_team_slug (str): Team whose members count as maintainers
        health_end_offset_days (int): Days before now at which the health window ends
        health_window_months (int): Length of the health window in months
        monitor_repos (str): Comma-separated owner/name repositories to monitor
        report_output_dir (str): Directory for generated reports
    """

    # Application settings
    app_name: str = Field(default="Ghpulse", description="Application name")
    dev: bool = Field(default=False, description="Debug mode")
    log_dir: str = Field(default="logs", description="Logging directory")
    log_level: int = Field(default=10, description="Logging level, default debug")

    # GitHub configuration
    github_token: SecretStr = Field(..., description="GitHub token")
    github_api_url: str = Field(
        default="https://api.github.com", description="GitHub API base URL"
    )

    # User activity configuration
    github_login: Optional[str] = Field(
        default=None, description="GitHub login to collect activity for"
    )
    activity_since: Optional[date] = Field(
        default=None, description="Start of the activity window (YYYY-MM-DD)"
    )
    activity_until: Optional[date] = Field(
        default=None, description="End of the activity window (YYYY-MM-DD)"
    )
    enrich: bool = Field(default=False, description="Fetch per-item details")
    max_concurrency: int = Field(
        default=8, ge=1, description="Maximum concurrent enrichment tasks"
    )

    # Repository health configuration
    health_repository: Optional[str] = Field(
        default=None, description="Repository to analyze, owner/name"
    )
    maintainer_team_slug: Optional[str] = Field(
        default=None, description="Maintainer team slug within the owner org"
    )
    health_end_offset_days: int = Field(
        default=5, ge=0, description="Health window ends this many days ago"
    )
    health_window_months: int = Field(
        default=1, ge=1, description="Health window length in months"
    )

    # Open pull request monitoring
    monitor_repos: str = Field(
        default="", description="Comma-separated owner/name repositories to monitor"
    )

    report_output_dir: str = Field(
        default="reports", description="Report output directory"
    )

    @property
    def monitor_repositories(self) -> List[str]:
        """
        Get list of monitored repositories from configuration.

        Returns:
            List[str]: List of cleaned owner/name repository identifiers
        """
        return [repo.strip() for repo in self.monitor_repos.split(",") if repo.strip()]

    def activity_window(self) -> Tuple[datetime, datetime]:
        """
        Build the (start, end) datetimes of the activity window.

        ``activity_until`` is inclusive, so the window ends at the start of the
        following day. Without it the window ends now.

        Returns:
            tuple: Timezone-aware (start, end) datetimes
        """
        if self.activity_since is None:
            raise ValueError("ACTIVITY_SINCE must be set to collect user activity")
        start = datetime.combine(self.activity_since, time.min, tzinfo=timezone.utc)
        if self.activity_until is None:
            end = datetime.now(timezone.utc)
        else:
            end = datetime.combine(
                self.activity_until + timedelta(days=1), time.min, tzinfo=timezone.utc
            )
        return start, end

    def health_window(
        self, now: Optional[datetime] = None
    ) -> Tuple[datetime, datetime]:
        """
        Build the (start, end) datetimes of the repository health window.

        Args:
            now (Optional[datetime]): Reference time, defaults to the current time

        Returns:
            tuple: Timezone-aware (start, end) datetimes
        """
        now = now or datetime.now(timezone.utc)
        end = now - timedelta(days=self.health_end_offset_days)
        start = (
            pd.Timestamp(end) - pd.DateOffset(months=self.health_window_months)
        ).to_pydatetime()
        return start, end

    @field_validator("report_output_dir")
    def ensure_absolute_path(cls, v: str) -> str:
        """
        Ensure report directory path is absolute.

        Args:
            v (str): Directory path to validate

        Returns:
            str: Absolute path to report directory
        """
        if not os.path.isabs(v):
            return os.path.abspath(v)
        return v

    @field_validator("health_repository")
    def check_repository_name(cls, v: Optional[str]) -> Optional[str]:
        """Require the owner/name form."""
        if v is not None and len(v.strip().split("/")) != 2:
            raise ValueError("health_repository must be in owner/name form")
        return v.strip() if v else v

    # Configure env file loading
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra fields in .env file
    )


# Create global settings instance
settings = Settings()

# Initialize logging configuration
logger = LogManager(
    app_name=settings.app_name.lower(),
    log_dir=settings.log_dir,
    development=settings.dev,
    level=settings.log_level,
).logger
