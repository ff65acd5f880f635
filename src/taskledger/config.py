"""Configuration management for taskledger.

This module defines the configuration schema using Pydantic settings,
supporting TOML files, environment variables, and programmatic overrides.

Configuration loading priority (highest to lowest):
1. Programmatic overrides and TOML file values (both reach the
   TaskLedgerConfig constructor)
2. Environment variables (TASKLEDGER_* prefix)
3. Default values defined in this module

Example TOML configuration:
    [database]
    url = "postgresql+psycopg://localhost/taskledger"
    pool_size = 5

Example environment variable override:
    TASKLEDGER_DATABASE__URL="sqlite:////var/lib/taskledger/ledger.db"
    TASKLEDGER_SECURITY__PBKDF2_ROUNDS=600000
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import tomli
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseConfig(BaseSettings):
    """Database connection configuration.

    Attributes:
        url: SQLAlchemy database URL
        pool_size: Number of connections to maintain in the pool
        max_overflow: Maximum number of connections beyond pool_size
        echo: Enable SQL query logging
    """

    model_config = SettingsConfigDict(
        env_prefix="TASKLEDGER_DATABASE__",
        extra="forbid",
    )

    url: str = Field(
        default="sqlite:///taskledger.db",
        description="SQLAlchemy connection URL",
    )
    pool_size: int = Field(default=5, ge=1, le=100)
    max_overflow: int = Field(default=10, ge=0, le=100)
    echo: bool = Field(default=False)


class LoggingConfig(BaseSettings):
    """Logging configuration.

    Attributes:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format: Log format (json or console)
        file: Optional log file path (None for stdout only)
        rotation_size_mb: Log file rotation size in megabytes
        retention_count: Number of rotated log files to keep
    """

    model_config = SettingsConfigDict(
        env_prefix="TASKLEDGER_LOGGING__",
        extra="forbid",
    )

    level: str = Field(default="INFO")
    format: str = Field(default="console")
    file: Path | None = Field(default=None)
    rotation_size_mb: int = Field(default=10, ge=1, le=1000)
    retention_count: int = Field(default=5, ge=1, le=100)

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level is recognized."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v_upper

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        """Validate log format is recognized."""
        valid_formats = {"json", "console"}
        v_lower = v.lower()
        if v_lower not in valid_formats:
            raise ValueError(f"Invalid log format: {v}. Must be one of {valid_formats}")
        return v_lower


class SecurityConfig(BaseSettings):
    """Password hashing configuration.

    Attributes:
        pbkdf2_rounds: Iteration count for PBKDF2-SHA256 password digests
        min_password_length: Shortest clear-text password accepted
    """

    model_config = SettingsConfigDict(
        env_prefix="TASKLEDGER_SECURITY__",
        extra="forbid",
    )

    pbkdf2_rounds: int = Field(default=29000, ge=1000, le=10_000_000)
    min_password_length: int = Field(default=6, ge=1, le=128)


class TaskLedgerConfig(BaseSettings):
    """Root configuration for taskledger.

    Aggregates all subsystem configurations. Configuration can be loaded from:
    1. TOML files (using load_config function)
    2. Environment variables (TASKLEDGER_* prefix)
    3. Direct instantiation with keyword arguments

    Environment variable format for nested config:
        TASKLEDGER_<SECTION>__<KEY>=value
    """

    model_config = SettingsConfigDict(
        env_prefix="TASKLEDGER_",
        env_nested_delimiter="__",
        extra="forbid",
    )

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    security: SecurityConfig = Field(default_factory=SecurityConfig)


def load_config(config_path: Path | None = None) -> TaskLedgerConfig:
    """Load configuration from TOML file with environment variable overrides.

    Configuration search order (first found is used):
    1. config_path if explicitly provided
    2. ./taskledger.toml (current directory)
    3. ~/.config/taskledger/config.toml (user config directory)

    Args:
        config_path: Explicit path to TOML config file. If None, searches
                    default locations.

    Returns:
        TaskLedgerConfig: Fully resolved configuration instance.

    Raises:
        FileNotFoundError: If config_path is explicitly provided but doesn't exist.
        ValueError: If TOML file contains invalid configuration.
    """
    toml_data: dict[str, Any] = {}

    if config_path is not None:
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        selected_path = config_path
    else:
        search_paths = [
            Path.cwd() / "taskledger.toml",
            Path.home() / ".config" / "taskledger" / "config.toml",
        ]
        selected_path = None
        for path in search_paths:
            if path.exists():
                selected_path = path
                break

    if selected_path is not None:
        with open(selected_path, "rb") as f:
            toml_data = tomli.load(f)

    # Environment variables fill in whatever the TOML file leaves unset
    try:
        return TaskLedgerConfig(**toml_data)
    except Exception as e:
        if selected_path:
            raise ValueError(
                f"Invalid configuration in {selected_path}: {e}"
            ) from e
        else:
            raise ValueError(f"Invalid configuration: {e}") from e
