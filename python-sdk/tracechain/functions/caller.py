"""First hop: starts the trace and invokes the downstream function."""

from typing import Any, Callable

import structlog

from tracechain.chain import forward
from tracechain.envelope import Envelope
from tracechain.invoker import LambdaInvoker
from tracechain.tracing.agent import Agent
from tracechain.tracing.lambda_handler import traced_handler
from tracechain.tracing.transaction import Transaction

logger = structlog.get_logger(__name__)

CUSTOM_EVENT_TYPE = "TraceChainEvent"


def make_handler(agent: Agent, invoker: LambdaInvoker, downstream_function: str) -> Callable[[Any, Any], str]:
    """Build the caller's Lambda handler.

    Each invocation records a custom event, sends a request envelope carrying
    its trace context to ``downstream_function`` and adds a custom attribute.
    A failed dispatch is recorded but the handler still succeeds.
    """

    @traced_handler(agent)
    def handler(event: Any, context: Any, txn: Transaction) -> str:
        log = logger.bind(transaction=txn)

        agent.record_custom_event(txn, CUSTOM_EVENT_TYPE, {"role": "caller", "zip": "zap"})

        envelope = Envelope(sort_by="time", sort_order="descending", items_to_get=10)
        if not forward(txn, invoker, downstream_function, envelope):
            log.warning("continuing without downstream invocation", target=downstream_function)

        txn.add_attribute("customAttribute", "customAttributeValue")
        return "Success!"

    return handler
