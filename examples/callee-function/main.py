"""Callee function: continues the caller's trace and sleeps in a segment.

Cold start happens at import: one logger, one agent and, when a next hop is
configured, one Lambda client.
"""

import atexit
import os

from tracechain import Agent, LambdaInvoker, new_logger
from tracechain.functions import make_callee_handler

SERVICE_NAME = os.getenv("AWS_LAMBDA_FUNCTION_NAME", "trace-chain-callee")

log = new_logger(SERVICE_NAME)

# ConfigurationError propagates: the function must not serve untraced.
agent = Agent.from_env(SERVICE_NAME)
atexit.register(agent.shutdown)

next_function = agent.config.downstream_function
invoker = LambdaInvoker(region=agent.config.region) if next_function else None

handler = make_callee_handler(
    agent,
    invoker=invoker,
    next_function=next_function,
    work_seconds=agent.config.work_seconds,
)

log.info("cold start complete", next_function=next_function or None)
