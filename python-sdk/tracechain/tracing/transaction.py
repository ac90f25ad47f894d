"""Per-invocation transactions and their segments."""

import time
from typing import Any, Callable, Dict, List, Optional, Tuple

import structlog
from opentelemetry import trace
from opentelemetry.trace import NonRecordingSpan, SpanKind, Status, StatusCode

from tracechain.tracing.context import TraceContext

logger = structlog.get_logger(__name__)


class Segment:
    """A timed unit of work nested under a transaction."""

    def __init__(self, tracer: trace.Tracer, parent: trace.Span, name: str, kind: SpanKind = SpanKind.INTERNAL):
        self.name = name
        self._start_ns = time.time_ns()
        self._end_ns: Optional[int] = None
        self._span = tracer.start_span(
            name,
            context=trace.set_span_in_context(parent),
            kind=kind,
            start_time=self._start_ns,
        )

    @property
    def span(self) -> trace.Span:
        return self._span

    @property
    def ended(self) -> bool:
        return self._end_ns is not None

    @property
    def duration(self) -> float:
        """Elapsed seconds; measured up to now while the segment is open."""
        end_ns = self._end_ns if self._end_ns is not None else time.time_ns()
        return max(0, end_ns - self._start_ns) / 1e9

    def add_attribute(self, key: str, value: Any) -> None:
        self._span.set_attribute(key, value)

    def end(self) -> None:
        if self._end_ns is not None:
            return
        self._end_ns = max(time.time_ns(), self._start_ns)
        self._span.end(end_time=self._end_ns)

    def __enter__(self) -> "Segment":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc is not None:
            self._span.record_exception(exc)
            self._span.set_status(Status(StatusCode.ERROR, str(exc)))
        self.end()


class Transaction:
    """One function invocation's unit of traced work.

    The backing span is created lazily, on the first segment, the first
    context emission or at end, so an inbound context accepted before then
    decides the trace the transaction belongs to. Attributes and events
    recorded earlier are buffered and applied when the span is created.
    """

    def __init__(
        self,
        tracer: trace.Tracer,
        name: str,
        on_end: Optional[Callable[["Transaction"], None]] = None,
    ):
        self.name = name
        self._tracer = tracer
        self._on_end = on_end
        self._start_ns: Optional[int] = None
        self._span: Optional[trace.Span] = None
        self._parent: Optional[trace.Span] = None
        self._accepted = False
        self._accept_attempted = False
        self._ended = False
        self._attributes: Dict[str, Any] = {}
        self._events: List[Tuple[str, Dict[str, Any], int]] = []
        self.segments: List[Segment] = []

    def start(self) -> "Transaction":
        if self._start_ns is None:
            self._start_ns = time.time_ns()
        return self

    @property
    def started(self) -> bool:
        return self._start_ns is not None

    @property
    def ended(self) -> bool:
        return self._ended

    @property
    def materialized(self) -> bool:
        return self._span is not None

    @property
    def accepted(self) -> bool:
        """Whether an inbound context made this transaction a remote child."""
        return self._accepted

    @property
    def span(self) -> trace.Span:
        return self._ensure_span()

    def _ensure_span(self) -> trace.Span:
        if self._span is None:
            self.start()
            context = trace.set_span_in_context(self._parent) if self._parent is not None else None
            self._span = self._tracer.start_span(
                self.name,
                context=context,
                kind=SpanKind.SERVER,
                attributes=self._attributes,
                start_time=self._start_ns,
            )
            for name, attributes, timestamp in self._events:
                self._span.add_event(name, attributes, timestamp=timestamp)
            self._events.clear()
        return self._span

    def trace_context(self) -> TraceContext:
        """Current position in the trace; empty if the transaction never started."""
        if not self.started:
            return TraceContext.empty()
        return TraceContext.from_span_context(self._ensure_span().get_span_context())

    @property
    def accept_attempted(self) -> bool:
        return self._accept_attempted

    def begin_accept(self) -> bool:
        """Claim the single inbound-context acceptance of this transaction.

        Allowed once, before the span exists, whether or not the inbound
        context turns out to be usable. Late or repeated calls fail the
        assertion in debug runs and are ignored under ``python -O``.
        """
        assert not self._accept_attempted, "inbound trace context already accepted"
        assert self._span is None, "inbound trace context accepted after tracing began"
        # Release path: asserts are stripped under -O, so ignore the call.
        if self._accept_attempted or self._span is not None:
            return False
        self._accept_attempted = True
        return True

    def adopt_parent(self, context: TraceContext) -> None:
        """Set the remote parent after a successful ``begin_accept``."""
        if self._span is not None:
            return
        self._parent = NonRecordingSpan(context.to_span_context())
        self._accepted = True

    def link_parent(self, context: TraceContext) -> bool:
        """Make the transaction a child of a remote parent, once and early."""
        if not self.begin_accept():
            return False
        self.adopt_parent(context)
        return True

    def linking_metadata(self) -> Dict[str, str]:
        """Trace identifiers for log correlation, without creating the span."""
        metadata = {"transaction.name": self.name}
        if self._span is not None:
            span_context = self._span.get_span_context()
            if span_context.is_valid:
                metadata["trace.id"] = format(span_context.trace_id, "032x")
                metadata["span.id"] = format(span_context.span_id, "016x")
        return metadata

    def add_attribute(self, key: str, value: Any) -> None:
        if self._span is None:
            self._attributes[key] = value
        else:
            self._span.set_attribute(key, value)

    def add_event(self, name: str, attributes: Dict[str, Any]) -> None:
        if self._span is None:
            self._events.append((name, dict(attributes), time.time_ns()))
        else:
            self._span.add_event(name, attributes)

    def start_segment(self, name: str, kind: SpanKind = SpanKind.INTERNAL) -> Segment:
        segment = Segment(self._tracer, self._ensure_span(), name, kind=kind)
        self.segments.append(segment)
        return segment

    def notice_error(self, exc: BaseException) -> None:
        span = self._ensure_span()
        span.record_exception(exc)
        span.set_status(Status(StatusCode.ERROR, str(exc)))

    def end(self) -> None:
        if self._ended:
            return
        span = self._ensure_span()
        for segment in self.segments:
            if not segment.ended:
                logger.warning("segment left open at transaction end", segment=segment.name, transaction=self)
                segment.end()
        self._ended = True
        span.end()
        if self._on_end:
            self._on_end(self)

    def __repr__(self) -> str:
        return f"Transaction(name={self.name!r}, accepted={self._accepted}, ended={self._ended})"
