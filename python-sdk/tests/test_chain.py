"""Tests for forward()."""

from tracechain.chain import forward
from tracechain.envelope import Envelope
from tracechain.metrics.registry import Registry

from conftest import spans_named, transaction_spans


def _dispatched(status):
    value = Registry.get_sample_value(
        "downstream_dispatch_total",
        {"function": "caller", "target": "trace-chain-callee", "status": status},
    )
    return value or 0.0


class TestForward:
    """Tests for forward()."""

    def test_accepted(self, agent, invoker):
        before = _dispatched("accepted")
        txn = agent.start_transaction("caller")
        assert forward(txn, invoker, "trace-chain-callee", Envelope())
        txn.end()

        invoker.invoke_async.assert_called_once()
        assert _dispatched("accepted") == before + 1

    def test_unencodable_envelope_skips_dispatch(self, agent, invoker, span_exporter):
        before = _dispatched("serialization_error")
        txn = agent.start_transaction("caller")
        envelope = Envelope(items_to_get=2 ** 64)

        assert forward(txn, invoker, "trace-chain-callee", envelope) is False
        txn.add_attribute("customAttribute", "customAttributeValue")
        txn.end()

        invoker.invoke_async.assert_not_called()
        span = transaction_spans(span_exporter)[0]
        assert "cannot encode envelope" in span.attributes["dispatch.error"]
        assert span.attributes["customAttribute"] == "customAttributeValue"
        assert spans_named(span_exporter, "Lambda/invoke/trace-chain-callee") == []
        assert _dispatched("serialization_error") == before + 1
