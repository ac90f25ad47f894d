"""Distributed trace context emission and acceptance."""

from dataclasses import replace
from typing import Any, Mapping

import structlog

from tracechain.envelope import Envelope
from tracechain.errors import MalformedContextError
from tracechain.metrics.registry import trace_context_accepted_total
from tracechain.tracing.context import TraceContext
from tracechain.tracing.transaction import Transaction

logger = structlog.get_logger(__name__)


def emit_context(txn: Transaction) -> TraceContext:
    """Return the context downstream work should link to.

    Call after the transaction starts and before dispatching. A transaction
    that never started yields an empty context.
    """
    return txn.trace_context()


def attach_to_envelope(envelope: Envelope, context: TraceContext) -> Envelope:
    """Return a copy of ``envelope`` carrying ``context`` as headers."""
    return replace(envelope, distributed_trace_payload=context.to_headers())


def accept_context(txn: Transaction, fields: Mapping[str, Any]) -> bool:
    """Link ``txn`` as a causal child of the context in ``fields``.

    Missing or malformed fields leave the transaction as a new root. Never
    raises on bad input.

    Returns:
        True if the transaction now continues the inbound trace.
    """
    if not txn.begin_accept():
        logger.warning("inbound trace context ignored, already accepted or tracing began", transaction=txn)
        trace_context_accepted_total.labels(function=txn.name, outcome="ignored").inc()
        return False

    try:
        context = TraceContext.from_headers(fields or {})
    except MalformedContextError as e:
        logger.info("no usable inbound trace context, starting a new trace", reason=e.message, transaction=txn)
        trace_context_accepted_total.labels(function=txn.name, outcome="root").inc()
        txn.add_attribute("distributed_trace.accepted", False)
        return False

    txn.adopt_parent(context)
    trace_context_accepted_total.labels(function=txn.name, outcome="inherited").inc()
    txn.add_attribute("distributed_trace.accepted", True)
    txn.add_attribute("parent.transportType", "Other")
    return True
