"""Forwarding a traced envelope to the next function in the chain."""

import structlog
from opentelemetry.trace import SpanKind

from tracechain.envelope import Envelope
from tracechain.errors import DispatchError, SerializationError
from tracechain.invoker import LambdaInvoker
from tracechain.metrics.registry import downstream_dispatch_total
from tracechain.tracing.propagation import attach_to_envelope, emit_context
from tracechain.tracing.transaction import Transaction

logger = structlog.get_logger(__name__)


def forward(txn: Transaction, invoker: LambdaInvoker, function_name: str, envelope: Envelope) -> bool:
    """Send ``envelope`` to ``function_name`` carrying the transaction's context.

    Serialization and dispatch failures are recorded on the transaction and
    logged; they never propagate to the caller.

    Returns:
        True if Lambda accepted the invocation.
    """
    log = logger.bind(transaction=txn, target=function_name)

    log.info("Inserting distributed trace headers for context propagation")
    outbound = attach_to_envelope(envelope, emit_context(txn))
    log.info("distributed trace headers", headers=outbound.distributed_trace_payload)

    try:
        payload = outbound.to_json()
    except SerializationError as e:
        log.error("cannot encode request envelope", error=e.message)
        txn.add_attribute("dispatch.error", e.message)
        downstream_dispatch_total.labels(function=txn.name, target=function_name, status="serialization_error").inc()
        return False

    log.info("Invoking lambda function", function_name=function_name)
    with txn.start_segment(f"Lambda/invoke/{function_name}", kind=SpanKind.CLIENT) as segment:
        segment.add_attribute("aws.lambda.invocationType", "Event")
        try:
            receipt = invoker.invoke_async(function_name, payload)
        except DispatchError as e:
            segment.add_attribute("dispatch.error", e.reason)
            txn.add_attribute("dispatch.error", e.reason)
            downstream_dispatch_total.labels(function=txn.name, target=function_name, status="failed").inc()
            log.error("downstream invocation failed", error=e.reason)
            return False

    downstream_dispatch_total.labels(function=txn.name, target=function_name, status="accepted").inc()
    log.info("Request complete", status_code=receipt.status_code, request_id=receipt.request_id)
    return True
