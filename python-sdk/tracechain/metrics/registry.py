"""Prometheus registry wrapper."""

from prometheus_client import (
    Counter,
    REGISTRY,
)

# Use default registry
Registry = REGISTRY

lambda_invocations_total = Counter(
    "lambda_invocations_total",
    "Total number of traced function invocations",
    ["function", "cold_start"],
    registry=Registry,
)

trace_context_accepted_total = Counter(
    "trace_context_accepted_total",
    "Inbound trace contexts by outcome (inherited, root, ignored)",
    ["function", "outcome"],
    registry=Registry,
)

downstream_dispatch_total = Counter(
    "downstream_dispatch_total",
    "Downstream invocations by outcome (accepted, failed, serialization_error)",
    ["function", "target", "status"],
    registry=Registry,
)
