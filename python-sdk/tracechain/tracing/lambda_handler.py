"""Lambda handler wrapper that runs each invocation in a transaction."""

import functools
from typing import Any, Callable, Optional

import structlog

from tracechain.metrics.registry import lambda_invocations_total
from tracechain.tracing.agent import Agent
from tracechain.tracing.transaction import Transaction

logger = structlog.get_logger(__name__)

TracedFunction = Callable[[Any, Any, Transaction], Any]


def traced_handler(agent: Agent, name: Optional[str] = None) -> Callable[[TracedFunction], Callable[[Any, Any], Any]]:
    """Decorate ``fn(event, context, txn)`` into a Lambda ``handler(event, context)``.

    Usage:
        agent = Agent.from_env()

        @traced_handler(agent)
        def handler(event, context, txn):
            txn.add_attribute("key", "value")
            return "Success!"
    """

    def decorator(func: TracedFunction) -> Callable[[Any, Any], Any]:
        @functools.wraps(func)
        def wrapper(event: Any, context: Any) -> Any:
            txn_name = name or getattr(context, "function_name", None) or agent.service_name
            cold_start = agent.take_cold_start()

            txn = agent.start_transaction(txn_name)
            txn.add_attribute("aws.lambda.coldStart", cold_start)
            request_id = getattr(context, "aws_request_id", None)
            if request_id:
                txn.add_attribute("aws.requestId", request_id)
            arn = getattr(context, "invoked_function_arn", None)
            if arn:
                txn.add_attribute("aws.lambda.arn", arn)

            lambda_invocations_total.labels(function=txn_name, cold_start=str(cold_start).lower()).inc()

            try:
                return func(event, context, txn)
            except Exception as e:
                txn.notice_error(e)
                logger.error("invocation failed", error=str(e), transaction=txn)
                raise
            finally:
                txn.end()
                agent.flush()

        return wrapper

    return decorator
