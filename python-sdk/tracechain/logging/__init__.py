"""Logging module initialization."""

from tracechain.logging.config import LogConfig
from tracechain.logging.logger import new_logger

__all__ = ["LogConfig", "new_logger"]
