"""Application configuration using pydantic-settings."""

import os
from typing import Annotated, Literal

from fastapi import Depends
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment-specific configuration.

    Configuration priority (highest to lowest):
    1. Environment variables
    2. .env.{ENVIRONMENT} file (e.g., .env.production)
    3. .env file (shared defaults)
    4. Field defaults in this class
    """

    model_config = SettingsConfigDict(
        env_file=(
            ".env",
            f".env.{os.getenv('ENVIRONMENT', 'development')}",
        ),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Site Auditor API"
    app_version: str = "1.0.0"
    debug: bool = False
    environment: Literal["development", "staging", "production", "testing"] = Field(
        default="development",
        description="Application environment",
    )

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 4000
    allowed_origins: list[str] = Field(
        default=["http://localhost:5173"],
        description="Origins allowed by CORS (localhost is always allowed outside production)",
    )

    # Browser Pool Settings
    browser_max_sessions: int = Field(
        default=5,
        description="Maximum number of live browser sessions (concurrency ceiling)",
    )
    browser_max_lifetime: float = Field(
        default=120.0,
        description="Seconds after which a session is force-closed by the sweep",
    )
    browser_sweep_interval: float = Field(
        default=10.0,
        description="Interval in seconds between session age sweeps",
    )
    browser_headless: bool = True
    user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )

    # Navigation
    navigation_networkidle_timeout: float = 45.0
    navigation_domcontentloaded_timeout: float = 30.0
    navigation_load_timeout: float = 20.0
    navigation_settle_delay: float = Field(
        default=2.0,
        description="Seconds to wait after a successful load before auditing",
    )
    navigation_probe_timeout: float = Field(
        default=15.0,
        description="Timeout in seconds for the single-pass website check",
    )
    navigation_ignore_https_errors: bool = True

    # Audits
    axe_script_path: str = Field(
        default="node_modules/axe-core/axe.min.js",
        description="Path to the axe-core browser bundle injected into pages",
    )
    audit_action_timeout: float = Field(
        default=5.0,
        description="Timeout in seconds for a single dynamic action",
    )
    audit_action_settle_delay: float = 1.0
    audit_max_dynamic_actions: int = 10
    audit_external_concurrently: bool = Field(
        default=False,
        description="Run the Lighthouse audit alongside the in-page audits",
    )
    lighthouse_path: str = Field(
        default="lighthouse",
        description="Lighthouse CLI executable (looked up on PATH)",
    )
    lighthouse_timeout: float = 90.0

    # Scan
    scan_timeout: float = Field(
        default=180.0,
        description="Upper bound in seconds for a whole scan request",
    )

    # Rate Limiting
    rate_limit_requests: int = 50
    rate_limit_window: float = 900.0  # seconds
    rate_limit_sweep_interval: float = 600.0

    # Report Store
    report_max_age: float = 86400.0  # 24 hours
    report_max_entries: int = 1000
    report_sweep_interval: float = 3600.0

    # Suggestion service (Gemini)
    gemini_api_key: str | None = Field(default=None, description="Gemini API key")
    gemini_models: list[str] = Field(
        default=["gemini-2.0-flash", "gemini-1.5-flash", "gemini-1.5-pro"],
        description="Models tried in order of preference",
    )
    gemini_timeout: float = 30.0

    # Logging
    log_level: str = "INFO"
    log_format: Literal["json", "console"] = "json"

    @field_validator("browser_max_sessions", "rate_limit_requests", "report_max_entries")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Validate limits are positive."""
        if v < 1:
            raise ValueError("limit must be at least 1")
        return v

    @field_validator("audit_max_dynamic_actions")
    @classmethod
    def validate_max_dynamic_actions(cls, v: int) -> int:
        """Validate dynamic action bound is non-negative."""
        if v < 0:
            raise ValueError("audit_max_dynamic_actions must not be negative")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a valid option."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return v_upper


def get_settings() -> Settings:
    """Get settings instance for dependency injection.

    FastAPI will cache this automatically within the same request.
    For cross-request caching, Settings class itself uses Pydantic's
    validation caching and the instance is lightweight to create.
    """
    return Settings()


# Type alias for dependency injection
SettingsDep = Annotated[Settings, Depends(get_settings)]
