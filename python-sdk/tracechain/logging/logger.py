"""Logger factory for Lambda functions."""

import sys
from datetime import datetime, timezone
from typing import Any, Dict

import structlog
from structlog.types import Processor

from tracechain.logging.config import LogConfig, new_config


def _add_timestamp(logger: Any, method_name: str, event_dict: dict) -> dict:
    """Add ISO timestamp to log record."""
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    return event_dict


def _add_transaction_context(logger: Any, method_name: str, event_dict: dict) -> dict:
    """Replace a bound transaction with its trace linking metadata.

    Reading the metadata never creates the transaction's span, so a logger
    can be bound before the transaction accepts an inbound context.
    """
    txn = event_dict.pop("transaction", None)
    if txn is not None:
        event_dict.update(txn.linking_metadata())
    return event_dict


def new_logger(service_name: str) -> structlog.BoundLogger:
    """Create a new structured logger writing JSON lines to stdout.

    Args:
        service_name: The name of the function for log identification.

    Returns:
        A configured structlog logger.
    """
    config = new_config(service_name)
    processors = build_processors(config)

    output_file = sys.stdout if config.enable_console else None

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            _log_level_to_int(config.log_level)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=output_file or sys.stdout),
        cache_logger_on_first_use=True,
    )

    return structlog.get_logger().bind(
        service=config.service_name,
        environment=config.environment,
        version=config.service_version,
    )


def build_processors(config: LogConfig) -> list:
    """Build the processor chain ending in the JSON renderer."""

    def _format_log_schema(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
        """Shape log record into the unified envelope schema.

        Input:  flat structlog event dict with trace linking metadata resolved.
        Output: envelope with timestamp, severity, service block, trace block, attributes, error.
        """
        timestamp = event_dict.pop("timestamp", datetime.now(timezone.utc).isoformat())
        severity = str(event_dict.pop("level", method_name.upper())).upper()
        message = str(event_dict.pop("event", ""))

        service_block: Dict[str, Any] = {
            "service.name": config.service_name,
            "service.version": config.service_version,
            "deployment.environment": config.environment,
            "cloud.provider": "aws",
        }
        if config.region:
            service_block["cloud.region"] = config.region

        trace_block = {
            key: event_dict.pop(key)
            for key in ("trace.id", "span.id", "transaction.name")
            if key in event_dict
        }

        error_block = {}
        if "exception" in event_dict:
            error_block = {"exception": event_dict.pop("exception")}
        elif "error" in event_dict and isinstance(event_dict["error"], dict):
            error_block = event_dict.pop("error")

        return {
            "timestamp": timestamp,
            "severity": severity,
            "severity_num": _severity_to_number(severity),
            "message": message,
            "service": service_block,
            "trace": trace_block,
            "attributes": dict(event_dict),
            "error": error_block,
        }

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        _add_timestamp,
        _add_transaction_context,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        _format_log_schema,
        structlog.processors.JSONRenderer(),
    ]
    return processors


def _log_level_to_int(level: str) -> int:
    """Convert log level string to integer."""
    levels = {
        "debug": 10,
        "info": 20,
        "warn": 30,
        "warning": 30,
        "error": 40,
        "critical": 50,
    }
    return levels.get(level.lower(), 20)


def _severity_to_number(severity: str) -> int:
    """Map severity text to OpenTelemetry-style numeric severity."""
    mapping = {
        "TRACE": 1,
        "DEBUG": 5,
        "INFO": 9,
        "WARN": 13,
        "WARNING": 13,
        "ERROR": 17,
        "FATAL": 21,
        "CRITICAL": 21,
    }
    return mapping.get(severity.upper(), 9)
