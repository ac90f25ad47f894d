"""Process-wide instrumentation agent."""

import re
import threading
from typing import Any, Dict, Mapping, Optional

import structlog
from opentelemetry.sdk.resources import Resource, SERVICE_NAME, SERVICE_VERSION
from opentelemetry.sdk.trace import SpanProcessor, TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.sdk.trace.sampling import ParentBasedTraceIdRatio

from tracechain.metrics.pusher import push_metrics
from tracechain.tracing.config import AgentConfig
from tracechain.tracing.kafka_exporter import KafkaSpanExporter
from tracechain.tracing.transaction import Transaction

logger = structlog.get_logger(__name__)

_EVENT_TYPE_RE = re.compile(r"^[A-Za-z0-9:_ ]+$")
MAX_EVENT_TYPE_LENGTH = 255


class Agent:
    """Instrumentation agent constructed once per process at cold start.

    Handlers receive the agent explicitly; it owns the tracer provider and
    hands out one transaction per invocation.
    """

    def __init__(self, config: AgentConfig, span_processor: Optional[SpanProcessor] = None):
        self.config = config

        resource = Resource.create({
            SERVICE_NAME: config.service_name,
            SERVICE_VERSION: config.service_version,
            "deployment.environment": config.environment,
            "cloud.provider": "aws",
            "cloud.region": config.region,
            "faas.name": config.service_name,
        })

        # Remote parents keep their sampling decision; only root hops sample.
        self._provider = TracerProvider(
            resource=resource,
            sampler=ParentBasedTraceIdRatio(config.sampling_rate),
            shutdown_on_exit=False,
        )

        if span_processor is not None:
            self._provider.add_span_processor(span_processor)
        elif config.export_to_kafka:
            exporter = KafkaSpanExporter(config.service_name, config.kafka_brokers, config.traces_topic)
            self._provider.add_span_processor(BatchSpanProcessor(exporter))
        elif config.enable_kafka and not config.is_development:
            logger.warning("KAFKA_BROKERS not set, trace export disabled")

        self._tracer = self._provider.get_tracer("tracechain")
        self._local = threading.local()
        self._cold_start = True
        self._cold_start_lock = threading.Lock()
        self._shutdown = False

    @classmethod
    def from_env(cls, service_name: Optional[str] = None) -> "Agent":
        """Build an agent from environment variables.

        Raises:
            ConfigurationError: If the configuration is invalid.
        """
        config = AgentConfig(service_name=service_name) if service_name else AgentConfig()
        agent = cls(config)
        logger.info(
            "agent initialized",
            service_name=config.service_name,
            sampling_rate=config.sampling_rate,
            kafka_export=config.export_to_kafka,
        )
        return agent

    @property
    def service_name(self) -> str:
        return self.config.service_name

    def take_cold_start(self) -> bool:
        """Return True exactly once per process: for the first invocation."""
        with self._cold_start_lock:
            cold_start, self._cold_start = self._cold_start, False
        return cold_start

    def start_transaction(self, name: str) -> Transaction:
        txn = Transaction(self._tracer, name, on_end=self._release).start()
        self._local.transaction = txn
        return txn

    def current_transaction(self) -> Optional[Transaction]:
        """The transaction started on this thread and not yet ended."""
        return getattr(self._local, "transaction", None)

    def _release(self, txn: Transaction) -> None:
        if self.current_transaction() is txn:
            self._local.transaction = None

    def record_custom_event(
        self,
        txn: Optional[Transaction],
        event_type: str,
        fields: Mapping[str, Any],
    ) -> bool:
        """Record a custom event on the transaction and in the log.

        Invalid event types are dropped with a warning.
        """
        if (
            not event_type
            or len(event_type) > MAX_EVENT_TYPE_LENGTH
            or not _EVENT_TYPE_RE.match(event_type)
        ):
            logger.warning("custom event dropped, invalid event type", event_type=event_type)
            return False

        attributes = _event_attributes(fields)
        if txn is not None:
            txn.add_event(event_type, attributes)
        logger.info("custom event", event_type=event_type, fields=attributes, transaction=txn)
        return True

    def flush(self, timeout_millis: int = 5000) -> bool:
        """Flush spans (and metrics if a gateway is set) before the sandbox freezes."""
        flushed = self._provider.force_flush(timeout_millis)
        if not flushed:
            logger.warning("span flush timed out", timeout_millis=timeout_millis)
        if self.config.pushgateway_url:
            push_metrics(self.config.pushgateway_url, job=self.config.service_name)
        return flushed

    def shutdown(self) -> None:
        if self._shutdown:
            return
        self._shutdown = True
        self._provider.shutdown()


def _event_attributes(fields: Mapping[str, Any]) -> Dict[str, Any]:
    attributes: Dict[str, Any] = {}
    for key, value in fields.items():
        if isinstance(value, (str, bool, int, float)):
            attributes[str(key)] = value
        else:
            attributes[str(key)] = str(value)
    return attributes
