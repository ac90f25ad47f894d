"""Metrics module initialization."""

from tracechain.metrics.registry import Registry
from tracechain.metrics.pusher import push_metrics

__all__ = ["Registry", "push_metrics"]
