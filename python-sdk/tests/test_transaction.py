"""Tests for Transaction and Segment."""

import pytest
from opentelemetry import trace
from opentelemetry.trace import StatusCode

from tracechain.tracing.transaction import Transaction

from conftest import spans_named, transaction_spans


class TestTransactionLifecycle:
    """Tests for lazy span creation and ending."""

    def test_span_created_lazily(self, agent):
        txn = agent.start_transaction("lazy")
        assert txn.started
        assert not txn.materialized
        assert "trace.id" not in txn.linking_metadata()

        txn.start_segment("work").end()
        assert txn.materialized
        metadata = txn.linking_metadata()
        assert len(metadata["trace.id"]) == 32
        assert len(metadata["span.id"]) == 16
        txn.end()

    def test_buffered_attributes_and_events_reach_span(self, agent, span_exporter):
        txn = agent.start_transaction("buffered")
        txn.add_attribute("early", "yes")
        txn.add_event("EarlyEvent", {"n": 1})
        txn.end()

        span = transaction_spans(span_exporter)[0]
        assert span.attributes["early"] == "yes"
        assert [e.name for e in span.events] == ["EarlyEvent"]

    def test_attribute_after_span_exists(self, agent, span_exporter):
        txn = agent.start_transaction("late-attribute")
        txn.start_segment("work").end()
        txn.add_attribute("late", 3)
        txn.end()

        assert transaction_spans(span_exporter)[0].attributes["late"] == 3

    def test_end_is_idempotent(self, agent, span_exporter):
        txn = agent.start_transaction("twice")
        txn.end()
        txn.end()
        assert txn.ended
        assert len(transaction_spans(span_exporter)) == 1

    def test_end_closes_open_segments(self, agent, span_exporter):
        txn = agent.start_transaction("open-segment")
        segment = txn.start_segment("left-open")
        txn.end()

        assert segment.ended
        assert len(spans_named(span_exporter, "left-open")) == 1

    def test_current_transaction_cleared_on_end(self, agent):
        txn = agent.start_transaction("current")
        assert agent.current_transaction() is txn
        txn.end()
        assert agent.current_transaction() is None

    def test_notice_error(self, agent, span_exporter):
        txn = agent.start_transaction("failing")
        txn.notice_error(RuntimeError("boom"))
        txn.end()

        span = transaction_spans(span_exporter)[0]
        assert span.status.status_code == StatusCode.ERROR
        assert span.events[0].name == "exception"

    def test_never_started_has_empty_context(self):
        txn = Transaction(trace.NoOpTracer(), "never-started")
        assert txn.trace_context().is_empty


class TestSegment:
    """Tests for Segment."""

    def test_segment_is_child_of_transaction(self, agent, span_exporter):
        txn = agent.start_transaction("parent")
        with txn.start_segment("child"):
            pass
        txn.end()

        child = spans_named(span_exporter, "child")[0]
        parent = transaction_spans(span_exporter)[0]
        assert child.parent.span_id == parent.context.span_id
        assert child.context.trace_id == parent.context.trace_id

    def test_duration_non_negative(self, agent):
        txn = agent.start_transaction("timed")
        with txn.start_segment("quick") as segment:
            pass
        assert segment.ended
        assert segment.duration >= 0
        txn.end()

    def test_exception_in_segment_marks_error(self, agent, span_exporter):
        txn = agent.start_transaction("segment-error")
        with pytest.raises(ValueError):
            with txn.start_segment("broken"):
                raise ValueError("bad input")
        txn.end()

        broken = spans_named(span_exporter, "broken")[0]
        assert broken.status.status_code == StatusCode.ERROR


class TestLinkParent:
    """Tests for the accept-once, accept-first contract."""

    def test_link_after_segment_asserts(self, agent, parent_context):
        txn = agent.start_transaction("late")
        txn.start_segment("work").end()
        with pytest.raises(AssertionError):
            txn.link_parent(parent_context)
        txn.end()

    def test_begin_accept_once(self, agent):
        txn = agent.start_transaction("once")
        assert txn.begin_accept()
        assert txn.accept_attempted
        with pytest.raises(AssertionError):
            txn.begin_accept()
        txn.end()

    def test_link_twice_asserts(self, agent, parent_context):
        txn = agent.start_transaction("twice")
        assert txn.link_parent(parent_context)
        with pytest.raises(AssertionError):
            txn.link_parent(parent_context)
        txn.end()
