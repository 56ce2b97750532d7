"""
Core configuration module for mcp-serve.

This module provides centralized configuration management using Pydantic Settings.
All configuration is loaded from environment variables with the MCP_SERVE_ prefix.
List and mapping fields are read as JSON, e.g.
MCP_SERVE_TOOL_DIRS='["./tools", "/opt/tools"]'.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings


# Variables copied from the host environment when inherit_env is off.
DEFAULT_ENV_ALLOWLIST = ["PATH", "HOME", "LANG", "LC_ALL", "TZ", "TMPDIR"]


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All fields use the MCP_SERVE_ prefix for environment variables.
    Example: MCP_SERVE_DEFAULT_TIMEOUT_SECONDS=10
    """

    # =========================================================================
    # Service Configuration
    # =========================================================================
    service_name: str = Field(
        default="mcp-serve",
        description="Name of the service for logging and identification",
    )
    port: int = Field(
        default=8080,
        ge=1,
        le=65535,
        description="Port the service listens on",
    )
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Deployment environment",
    )
    log_level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR)",
    )

    # =========================================================================
    # Tool Discovery
    # =========================================================================
    tool_dirs: list[str] = Field(
        default_factory=lambda: ["./tools"],
        description="Directories scanned for executable tools",
    )
    scan_recursive: bool = Field(
        default=False,
        description="Descend into subdirectories while scanning",
    )

    # =========================================================================
    # Execution Policy
    # =========================================================================
    default_timeout_seconds: float = Field(
        default=30.0,
        gt=0.0,
        le=3600.0,
        description="Timeout applied to a tool call unless overridden",
    )
    max_timeout_seconds: float = Field(
        default=300.0,
        gt=0.0,
        le=3600.0,
        description="Upper bound for per-request timeout overrides",
    )
    inherit_env: bool = Field(
        default=False,
        description="Pass the full host environment to tool processes",
    )
    env_allowlist: list[str] = Field(
        default_factory=lambda: list(DEFAULT_ENV_ALLOWLIST),
        description="Host variables copied into the tool environment when inherit_env is off",
    )
    extra_env: dict[str, str] = Field(
        default_factory=dict,
        description="Variables added to every tool environment",
    )
    working_dir: str | None = Field(
        default=None,
        description="Working directory for tool processes (default: inherit)",
    )

    model_config = {
        "env_prefix": "MCP_SERVE_",
        "case_sensitive": False,
        "extra": "ignore",
    }

    # =========================================================================
    # Field Validators
    # =========================================================================
    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate and normalise log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v.upper()

    @model_validator(mode="after")
    def validate_timeouts(self) -> "Settings":
        """Default timeout may not exceed the override ceiling."""
        if self.default_timeout_seconds > self.max_timeout_seconds:
            raise ValueError(
                "default_timeout_seconds must not exceed max_timeout_seconds"
            )
        return self


@lru_cache
def get_settings() -> Settings:
    """
    Get the application settings singleton.

    Uses functools.lru_cache to ensure only one Settings instance is created.

    Returns:
        Settings: The application settings instance.
    """
    return Settings()
