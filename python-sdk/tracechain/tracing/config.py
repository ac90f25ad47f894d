"""Agent configuration."""

import os
from dataclasses import dataclass, field
from typing import List

from tracechain.errors import ConfigurationError


@dataclass
class AgentConfig:
    """Configuration for the instrumentation agent, read at cold start."""

    service_name: str = field(default_factory=lambda: os.getenv("AWS_LAMBDA_FUNCTION_NAME", ""))
    environment: str = field(default_factory=lambda: os.getenv("ENVIRONMENT", "production"))
    service_version: str = field(
        default_factory=lambda: os.getenv("AWS_LAMBDA_FUNCTION_VERSION")
        or os.getenv("SERVICE_VERSION", "unknown")
    )
    region: str = field(default_factory=lambda: os.getenv("AWS_REGION", "us-east-1"))
    sampling_rate: float = field(default_factory=lambda: _get_env_float("TRACE_SAMPLING_RATE", 1.0))

    # Span export
    kafka_brokers: List[str] = field(default_factory=list)
    traces_topic: str = field(default_factory=lambda: os.getenv("KAFKA_TRACES_TOPIC", "traces.application"))
    enable_kafka: bool = field(default_factory=lambda: _get_env_bool("TRACES_KAFKA_ENABLED", True))

    # Metrics push
    pushgateway_url: str = field(default_factory=lambda: os.getenv("PROMETHEUS_PUSHGATEWAY_URL", ""))

    # Chain
    downstream_function: str = field(default_factory=lambda: os.getenv("DOWNSTREAM_FUNCTION_NAME", ""))
    work_seconds: float = field(default_factory=lambda: _get_env_float("SIMULATED_WORK_SECONDS", 1.0))

    def __post_init__(self):
        """Parse Kafka brokers from environment and validate."""
        if not self.kafka_brokers:
            brokers = os.getenv("KAFKA_BROKERS", "")
            if brokers:
                self.kafka_brokers = [b.strip() for b in brokers.split(",") if b.strip()]

        if not self.service_name:
            raise ConfigurationError(
                "service name is empty; set AWS_LAMBDA_FUNCTION_NAME or pass service_name"
            )
        if not 0.0 <= self.sampling_rate <= 1.0:
            raise ConfigurationError(f"sampling rate must be within [0, 1], got {self.sampling_rate}")
        if self.work_seconds < 0:
            raise ConfigurationError(f"simulated work must be non-negative, got {self.work_seconds}")

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == "development"

    @property
    def export_to_kafka(self) -> bool:
        return self.enable_kafka and not self.is_development and bool(self.kafka_brokers)


def _get_env_bool(key: str, default: bool = True) -> bool:
    """Get boolean value from environment variable."""
    value = os.getenv(key, "").lower()
    if not value:
        return default
    return value in ("true", "1", "yes")


def _get_env_float(key: str, default: float) -> float:
    """Get float value from environment variable."""
    value = os.getenv(key, "")
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        raise ConfigurationError(f"{key} is not a number: {value!r}")
