"""Logging configuration."""

import os
from dataclasses import dataclass, field


@dataclass
class LogConfig:
    """Configuration for logging."""

    service_name: str
    environment: str = field(default_factory=lambda: os.getenv("ENVIRONMENT", "production"))
    service_version: str = field(
        default_factory=lambda: os.getenv("AWS_LAMBDA_FUNCTION_VERSION")
        or os.getenv("SERVICE_VERSION", "unknown")
    )
    region: str = field(default_factory=lambda: os.getenv("AWS_REGION", ""))
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "info"))
    enable_console: bool = field(default_factory=lambda: _get_env_bool("LOG_CONSOLE_ENABLED", True))

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == "development"


def new_config(service_name: str) -> LogConfig:
    """Create a new LogConfig from environment variables."""
    return LogConfig(service_name=service_name)


def _get_env_bool(key: str, default: bool = True) -> bool:
    """Get boolean value from environment variable."""
    value = os.getenv(key, "").lower()
    if not value:
        return default
    return value in ("true", "1", "yes")
