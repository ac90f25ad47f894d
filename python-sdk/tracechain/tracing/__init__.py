"""Tracing module initialization."""

from tracechain.tracing.agent import Agent
from tracechain.tracing.config import AgentConfig
from tracechain.tracing.context import TraceContext
from tracechain.tracing.lambda_handler import traced_handler
from tracechain.tracing.propagation import accept_context, attach_to_envelope, emit_context
from tracechain.tracing.transaction import Segment, Transaction

__all__ = [
    "Agent",
    "AgentConfig",
    "TraceContext",
    "Segment",
    "Transaction",
    "accept_context",
    "attach_to_envelope",
    "emit_context",
    "traced_handler",
]
