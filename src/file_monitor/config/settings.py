"""
Configuration management for the file monitor.

Handles environment variables, .env file loading, and provides default
settings with validation for the probing, hashing and logging components.
"""

import hashlib
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from file_monitor.models.exceptions import ConfigurationError, raise_config_error


class LogLevel(str, Enum):
    """Logging level enumeration."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class MonitorConfig(BaseSettings):
    """
    Central configuration class for the file monitor.

    Handles all configuration options with environment variable support,
    validation, and defaults suited to local build caches.
    """

    model_config = SettingsConfigDict(
        env_prefix="FILE_MONITOR_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Timestamp Configuration ===
    mtime_resolution_ns: int = Field(
        default=10_000_000,
        ge=1,
        le=2_000_000_000,
        description="Coarsest file mtime resolution assumed; snapshot timestamps are floored to it",
    )

    # === Hashing Configuration ===
    hash_algorithm: str = Field(default="sha256", description="hashlib algorithm for content digests")
    hash_chunk_size: int = Field(
        default=65536, ge=1024, le=16 * 1024 * 1024, description="Read size in bytes when hashing files"
    )

    # === Change Detection Configuration ===
    check_if_only_value_changed: bool = Field(
        default=False,
        description="Default for new monitors: probe files on a key mismatch to tell key-only changes apart",
    )

    # === Logging Configuration ===
    log_level: LogLevel = Field(default=LogLevel.INFO, description="Logging level")
    log_file: Path | None = Field(default=None, description="Log file path (stderr if None)")
    log_format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s", description="Log message format"
    )

    # === Development Configuration ===
    debug_mode: bool = Field(default=False, description="Enable debug mode with verbose logging")

    @field_validator('hash_algorithm')
    @classmethod
    def validate_hash_algorithm(cls, v):
        """Ensure the digest algorithm is available and has a fixed output size."""
        name = v.lower()
        if name not in hashlib.algorithms_available:
            raise_config_error(
                f"Unsupported hash algorithm: {v}",
                config_key="hash_algorithm",
                expected_type="hashlib algorithm name",
                actual_value=v,
            )
        if name.startswith("shake_"):
            raise ConfigurationError(
                "Variable-length digests are not supported",
                config_key="hash_algorithm",
                expected_type="fixed-size hashlib algorithm",
                actual_value=v,
            )
        return name

    @model_validator(mode='after')
    def apply_debug_mode(self):
        """Debug mode always logs at DEBUG level."""
        if self.debug_mode and self.log_level != LogLevel.DEBUG:
            self.log_level = LogLevel.DEBUG
        return self

    def new_hasher(self):
        """Create a fresh hash object for the configured algorithm."""
        return hashlib.new(self.hash_algorithm)

    def get_log_config(self) -> dict[str, Any]:
        """Get logging configuration dictionary for logging.config.dictConfig."""
        config = {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"standard": {"format": self.log_format}},
            "handlers": {
                "default": {
                    "level": self.log_level.value,
                    "formatter": "standard",
                    "class": "logging.StreamHandler" if not self.log_file else "logging.FileHandler",
                }
            },
            "loggers": {"file_monitor": {"handlers": ["default"], "level": self.log_level.value, "propagate": False}},
        }

        if self.log_file:
            config["handlers"]["default"]["filename"] = str(self.log_file)

        return config


# Process-wide instance, see get_config()
_config: MonitorConfig | None = None


def get_config() -> MonitorConfig:
    """
    Process-wide configuration, read from the environment on first use.

    Monitors and probers created without an explicit config share it.
    """
    global _config
    if _config is None:
        _config = MonitorConfig()
    return _config


def reload_config() -> MonitorConfig:
    """Re-read FILE_MONITOR_* settings and replace the process-wide configuration."""
    global _config
    _config = MonitorConfig()
    return _config


def set_config(config: MonitorConfig) -> None:
    """Install a configuration to be returned by get_config()."""
    global _config
    _config = config
