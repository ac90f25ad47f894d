"""Trace context value and its W3C header encoding."""

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Tuple

from opentelemetry import trace
from opentelemetry.trace import NonRecordingSpan, SpanContext, TraceFlags, TraceState
from opentelemetry.trace.propagation.tracecontext import TraceContextTextMapPropagator

from tracechain.errors import MalformedContextError

TRACEPARENT_HEADER = "traceparent"
TRACESTATE_HEADER = "tracestate"

_propagator = TraceContextTextMapPropagator()


@dataclass(frozen=True)
class TraceContext:
    """Position of one unit of work in a distributed trace.

    Attributes:
        trace_id: 32 hex characters shared by every hop of one request.
        span_id: 16 hex characters identifying the emitting unit of work.
        sampled: Sampling decision made by the first hop.
        trace_state: Ordered vendor key/value pairs, passed through untouched.
    """

    trace_id: str = ""
    span_id: str = ""
    sampled: bool = False
    trace_state: Tuple[Tuple[str, str], ...] = ()

    @classmethod
    def empty(cls) -> "TraceContext":
        return cls()

    @property
    def is_empty(self) -> bool:
        return not self.trace_id

    @classmethod
    def from_span_context(cls, span_context: SpanContext) -> "TraceContext":
        if not span_context.is_valid:
            return cls.empty()
        return cls(
            trace_id=format(span_context.trace_id, "032x"),
            span_id=format(span_context.span_id, "016x"),
            sampled=span_context.trace_flags.sampled,
            trace_state=tuple(span_context.trace_state.items()),
        )

    def to_span_context(self) -> SpanContext:
        """Build a remote OpenTelemetry span context from this value."""
        if self.is_empty:
            return trace.INVALID_SPAN_CONTEXT
        flags = TraceFlags(TraceFlags.SAMPLED if self.sampled else TraceFlags.DEFAULT)
        return SpanContext(
            trace_id=int(self.trace_id, 16),
            span_id=int(self.span_id, 16),
            is_remote=True,
            trace_flags=flags,
            trace_state=TraceState(list(self.trace_state)),
        )

    def to_headers(self) -> Dict[str, str]:
        """Encode as W3C `traceparent`/`tracestate` headers.

        An empty context encodes to an empty mapping.
        """
        carrier: Dict[str, str] = {}
        if self.is_empty:
            return carrier
        span = NonRecordingSpan(self.to_span_context())
        _propagator.inject(carrier, context=trace.set_span_in_context(span))
        return carrier

    @classmethod
    def from_headers(cls, fields: Mapping[str, Any]) -> "TraceContext":
        """Decode W3C headers.

        Header names are matched case-insensitively and list values are
        combined the way repeated HTTP headers are.

        Raises:
            MalformedContextError: If no valid `traceparent` is present.
        """
        if not isinstance(fields, Mapping):
            raise MalformedContextError(f"trace payload is {type(fields).__name__}, not a mapping")

        carrier = normalize_headers(fields)
        if not carrier.get(TRACEPARENT_HEADER):
            raise MalformedContextError("traceparent header is missing")

        extracted = _propagator.extract(carrier)
        span_context = trace.get_current_span(extracted).get_span_context()
        if not span_context.is_valid:
            raise MalformedContextError(f"traceparent header is invalid: {carrier[TRACEPARENT_HEADER]!r}")
        return cls.from_span_context(span_context)


def normalize_headers(fields: Mapping[str, Any]) -> Dict[str, str]:
    """Lower-case header names and flatten multi-valued entries.

    `traceparent` holds a single value, so the first non-empty one wins.
    Other headers, `tracestate` included, are combined with ``,``. Empty
    values are skipped.
    """
    headers: Dict[str, str] = {}
    for key, value in fields.items():
        if not isinstance(key, str):
            continue
        values = value if isinstance(value, (list, tuple)) else [value]
        values = [str(v) for v in values if v is not None and str(v) != ""]
        if not values:
            continue

        name = key.lower()
        if name == TRACEPARENT_HEADER:
            headers.setdefault(name, values[0])
        elif name in headers:
            headers[name] = ",".join([headers[name]] + values)
        else:
            headers[name] = ",".join(values)
    return headers
