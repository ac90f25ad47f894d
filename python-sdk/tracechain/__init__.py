"""
Lambda trace chain SDK for Python

Propagates a distributed trace across chained, asynchronously invoked
Lambda functions, with structured logging and span export to Kafka.
"""

from tracechain.logging import new_logger, LogConfig
from tracechain.metrics import Registry, push_metrics
from tracechain.tracing import (
    Agent,
    AgentConfig,
    Segment,
    TraceContext,
    Transaction,
    accept_context,
    attach_to_envelope,
    emit_context,
    traced_handler,
)
from tracechain.envelope import Envelope
from tracechain.errors import (
    ConfigurationError,
    DispatchError,
    MalformedContextError,
    SerializationError,
    TraceChainError,
)
from tracechain.invoker import DispatchReceipt, LambdaInvoker
from tracechain.chain import forward

__all__ = [
    # Logging
    "new_logger",
    "LogConfig",
    # Metrics
    "Registry",
    "push_metrics",
    # Tracing
    "Agent",
    "AgentConfig",
    "Segment",
    "TraceContext",
    "Transaction",
    "accept_context",
    "attach_to_envelope",
    "emit_context",
    "traced_handler",
    # Chain
    "Envelope",
    "LambdaInvoker",
    "DispatchReceipt",
    "forward",
    # Errors
    "TraceChainError",
    "ConfigurationError",
    "SerializationError",
    "DispatchError",
    "MalformedContextError",
]

__version__ = "0.1.0"
