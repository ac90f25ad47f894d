"""Tests for TraceContext header encoding."""

import pytest

from tracechain.errors import MalformedContextError
from tracechain.tracing.context import TraceContext, normalize_headers

from conftest import PARENT_SPAN_ID, PARENT_TRACE_ID


class TestToHeaders:
    """Tests for TraceContext.to_headers()."""

    def test_traceparent_format(self, parent_context):
        headers = parent_context.to_headers()
        assert headers["traceparent"] == f"00-{PARENT_TRACE_ID}-{PARENT_SPAN_ID}-01"

    def test_tracestate_keeps_order(self, parent_context):
        headers = parent_context.to_headers()
        assert headers["tracestate"] == "rojo=00f067aa0ba902b7,congo=t61rcWkgMzE"

    def test_unsampled_flag(self):
        ctx = TraceContext(trace_id=PARENT_TRACE_ID, span_id=PARENT_SPAN_ID, sampled=False)
        assert ctx.to_headers()["traceparent"].endswith("-00")

    def test_no_tracestate_header_without_state(self):
        ctx = TraceContext(trace_id=PARENT_TRACE_ID, span_id=PARENT_SPAN_ID, sampled=True)
        assert "tracestate" not in ctx.to_headers()

    def test_empty_context_has_no_headers(self):
        assert TraceContext.empty().is_empty
        assert TraceContext.empty().to_headers() == {}


class TestFromHeaders:
    """Tests for TraceContext.from_headers()."""

    def test_round_trip(self, parent_context):
        assert TraceContext.from_headers(parent_context.to_headers()) == parent_context

    def test_header_names_are_case_insensitive(self, parent_context):
        headers = {
            "Traceparent": f"00-{PARENT_TRACE_ID}-{PARENT_SPAN_ID}-01",
            "Tracestate": "rojo=00f067aa0ba902b7,congo=t61rcWkgMzE",
        }
        assert TraceContext.from_headers(headers) == parent_context

    def test_multi_valued_headers(self, parent_context):
        headers = {
            "Traceparent": [f"00-{PARENT_TRACE_ID}-{PARENT_SPAN_ID}-01"],
            "Tracestate": ["rojo=00f067aa0ba902b7", "congo=t61rcWkgMzE"],
        }
        assert TraceContext.from_headers(headers) == parent_context

    def test_missing_traceparent(self):
        with pytest.raises(MalformedContextError):
            TraceContext.from_headers({"tracestate": "rojo=1"})

    def test_empty_mapping(self):
        with pytest.raises(MalformedContextError):
            TraceContext.from_headers({})

    @pytest.mark.parametrize(
        "traceparent",
        [
            "garbage",
            f"00-{'0' * 32}-{PARENT_SPAN_ID}-01",
            f"00-{PARENT_TRACE_ID}-{'0' * 16}-01",
            f"ff-{PARENT_TRACE_ID}-{PARENT_SPAN_ID}-01",
        ],
    )
    def test_invalid_traceparent(self, traceparent):
        with pytest.raises(MalformedContextError):
            TraceContext.from_headers({"traceparent": traceparent})

    def test_not_a_mapping(self):
        with pytest.raises(MalformedContextError):
            TraceContext.from_headers(["traceparent"])


class TestNormalizeHeaders:
    """Tests for normalize_headers()."""

    def test_merges_case_variants(self):
        headers = normalize_headers({"Tracestate": "a=1", "tracestate": "b=2"})
        assert headers == {"tracestate": "a=1,b=2"}

    def test_drops_none_values(self):
        assert normalize_headers({"traceparent": None}) == {}

    def test_first_traceparent_wins(self):
        traceparent = f"00-{PARENT_TRACE_ID}-{PARENT_SPAN_ID}-01"
        headers = normalize_headers({"Traceparent": [traceparent, traceparent]})
        assert headers == {"traceparent": traceparent}

    def test_empty_traceparent_skipped(self):
        traceparent = f"00-{PARENT_TRACE_ID}-{PARENT_SPAN_ID}-01"
        headers = normalize_headers({"Traceparent": "", "traceparent": traceparent})
        assert headers == {"traceparent": traceparent}

    def test_tracestate_values_combined(self):
        headers = normalize_headers({"Tracestate": ["rojo=1", "", "congo=2"]})
        assert headers == {"tracestate": "rojo=1,congo=2"}

    def test_repeated_traceparent_decodes(self, parent_context):
        traceparent = parent_context.to_headers()["traceparent"]
        ctx = TraceContext.from_headers({"Traceparent": [traceparent, traceparent]})
        assert ctx.trace_id == PARENT_TRACE_ID
        assert ctx.span_id == PARENT_SPAN_ID
