"""Second hop: continues the caller's trace and does simulated work."""

import time
from typing import Any, Callable, Optional

import structlog

from tracechain.chain import forward
from tracechain.envelope import Envelope
from tracechain.invoker import LambdaInvoker
from tracechain.tracing.agent import Agent
from tracechain.tracing.lambda_handler import traced_handler
from tracechain.tracing.propagation import accept_context, emit_context
from tracechain.tracing.transaction import Transaction

logger = structlog.get_logger(__name__)

CUSTOM_EVENT_TYPE = "TraceChainEvent"
WORK_SEGMENT = "goToSleep"


def make_handler(
    agent: Agent,
    invoker: Optional[LambdaInvoker] = None,
    next_function: str = "",
    work_seconds: float = 1.0,
    sleep: Callable[[float], None] = time.sleep,
) -> Callable[[Any, Any], str]:
    """Build the callee's Lambda handler.

    The inbound envelope's trace payload is accepted before any segment
    starts. When ``next_function`` is set the envelope is forwarded with the
    inherited trace; otherwise the outbound headers are only logged.
    """

    @traced_handler(agent)
    def handler(event: Any, context: Any, txn: Transaction) -> str:
        log = logger.bind(transaction=txn)

        agent.record_custom_event(txn, CUSTOM_EVENT_TYPE, {"role": "callee", "zip": "zap"})

        envelope = Envelope.from_event(event)
        if accept_context(txn, envelope.distributed_trace_payload):
            log.info("Accepted distributed tracing payload")

        with txn.start_segment(WORK_SEGMENT):
            log.info("Going to sleep....yawn", seconds=work_seconds)
            sleep(work_seconds)
            log.info("Woke up....yawn")

        if next_function and invoker is not None:
            forward(txn, invoker, next_function, envelope)
        else:
            log.info("outbound distributed trace headers", headers=emit_context(txn).to_headers())

        txn.add_attribute("ItemsToGet", envelope.items_to_get)
        return "Success!"

    return handler
