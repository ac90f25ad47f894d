"""Kafka span exporter for OpenTelemetry."""

from typing import Any, Optional, Sequence

import structlog
from kafka import KafkaProducer
from kafka.errors import KafkaError
from opentelemetry.sdk.trace import ReadableSpan
from opentelemetry.sdk.trace.export import SpanExporter, SpanExportResult
from opentelemetry.proto.collector.trace.v1.trace_service_pb2 import (
    ExportTraceServiceRequest,
)
from opentelemetry.proto.common.v1.common_pb2 import AnyValue, KeyValue
from opentelemetry.proto.trace.v1.trace_pb2 import (
    ResourceSpans,
    ScopeSpans,
    Span,
    Status,
)
from opentelemetry.proto.resource.v1.resource_pb2 import Resource

logger = structlog.get_logger(__name__)


class KafkaSpanExporter(SpanExporter):
    """Exports OpenTelemetry spans to Kafka in OTLP protobuf format.

    Sends synchronously from ``export``: a frozen Lambda sandbox would stall
    a background sender thread between invocations.
    """

    def __init__(
        self,
        service_name: str,
        kafka_brokers: list[str],
        topic: str,
        producer: Optional[Any] = None,
    ):
        self.service_name = service_name
        self.topic = topic
        self._closed = False
        self._producer = producer if producer is not None else self._init_producer(kafka_brokers)

    def _init_producer(self, kafka_brokers: list[str]) -> Optional[KafkaProducer]:
        try:
            return KafkaProducer(
                bootstrap_servers=kafka_brokers,
                acks=1,
                compression_type="gzip",
            )
        except KafkaError as e:
            logger.warning("trace export disabled, Kafka producer unavailable", brokers=kafka_brokers, error=str(e))
            return None

    def export(self, spans: Sequence[ReadableSpan]) -> SpanExportResult:
        if self._closed or not self._producer:
            return SpanExportResult.FAILURE
        if not spans:
            return SpanExportResult.SUCCESS

        payload = self._convert_to_otlp(spans).SerializeToString()
        # Keyed by trace so one trace lands on one partition.
        key = format(spans[0].get_span_context().trace_id, "032x").encode()

        try:
            self._producer.send(self.topic, key=key, value=payload)
        except KafkaError as e:
            logger.warning("span export failed", topic=self.topic, spans=len(spans), error=str(e))
            return SpanExportResult.FAILURE
        return SpanExportResult.SUCCESS

    def shutdown(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._producer:
            self._producer.flush()
            self._producer.close()

    def force_flush(self, timeout_millis: int = 30000) -> bool:
        if self._producer and not self._closed:
            try:
                self._producer.flush(timeout=timeout_millis / 1000)
            except KafkaError as e:
                logger.warning("span flush failed", topic=self.topic, error=str(e))
                return False
        return True

    def _convert_to_otlp(self, spans: Sequence[ReadableSpan]) -> ExportTraceServiceRequest:
        otlp_spans = []
        for span in spans:
            ctx = span.get_span_context()
            parent = span.parent

            events = [
                Span.Event(
                    time_unix_nano=event.timestamp,
                    name=event.name,
                    attributes=self._attributes_to_otlp(event.attributes),
                )
                for event in span.events
            ]

            otlp_spans.append(
                Span(
                    trace_id=ctx.trace_id.to_bytes(16, "big"),
                    span_id=ctx.span_id.to_bytes(8, "big"),
                    trace_state=ctx.trace_state.to_header(),
                    parent_span_id=parent.span_id.to_bytes(8, "big") if parent else b"",
                    name=span.name,
                    kind=span.kind.value + 1,  # OTLP enum starts at 1
                    start_time_unix_nano=span.start_time,
                    end_time_unix_nano=span.end_time or 0,
                    attributes=self._attributes_to_otlp(span.attributes),
                    events=events,
                    status=Status(
                        code=span.status.status_code.value,
                        message=span.status.description or "",
                    ),
                )
            )

        resource_attributes = [KeyValue(key="service.name", value=AnyValue(string_value=self.service_name))]
        if spans:
            resource_attributes = self._attributes_to_otlp(spans[0].resource.attributes)

        return ExportTraceServiceRequest(
            resource_spans=[
                ResourceSpans(
                    resource=Resource(attributes=resource_attributes),
                    scope_spans=[ScopeSpans(spans=otlp_spans)],
                )
            ]
        )

    def _attributes_to_otlp(self, attributes) -> list:
        if not attributes:
            return []
        return [KeyValue(key=key, value=self._value_to_otlp(value)) for key, value in attributes.items()]

    def _value_to_otlp(self, value) -> AnyValue:
        if isinstance(value, bool):
            return AnyValue(bool_value=value)
        elif isinstance(value, int):
            return AnyValue(int_value=value)
        elif isinstance(value, float):
            return AnyValue(double_value=value)
        elif isinstance(value, str):
            return AnyValue(string_value=value)
        else:
            return AnyValue(string_value=str(value))
