"""Caller function: starts a trace and invokes the callee asynchronously.

Cold start happens at import: one logger, one agent, one Lambda client.
"""

import atexit
import os

from tracechain import Agent, LambdaInvoker, new_logger
from tracechain.functions import make_caller_handler

SERVICE_NAME = os.getenv("AWS_LAMBDA_FUNCTION_NAME", "trace-chain-caller")

log = new_logger(SERVICE_NAME)

# ConfigurationError propagates: the function must not serve untraced.
agent = Agent.from_env(SERVICE_NAME)
atexit.register(agent.shutdown)

downstream = agent.config.downstream_function or "trace-chain-callee"
invoker = LambdaInvoker(region=agent.config.region)

handler = make_caller_handler(agent, invoker, downstream)

log.info("cold start complete", downstream_function=downstream)
