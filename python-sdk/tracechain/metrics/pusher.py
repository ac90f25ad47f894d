"""Push the metrics registry to a Prometheus Pushgateway."""

import structlog
from prometheus_client import push_to_gateway

from tracechain.metrics.registry import Registry

logger = structlog.get_logger(__name__)


def push_metrics(gateway_url: str, job: str, timeout: float = 2.0) -> bool:
    """Push the registry once.

    A Lambda sandbox is frozen between invocations, so metrics are pushed
    synchronously at the end of each invocation rather than from a thread.
    Failures are logged and reported through the return value.
    """
    if not gateway_url:
        return False
    try:
        push_to_gateway(gateway_url, job=job, registry=Registry, timeout=timeout)
    except Exception as e:
        logger.warning("metrics push failed", gateway=gateway_url, error=str(e))
        return False
    return True
