"""Pytest configuration and fixtures."""

from types import SimpleNamespace
from unittest.mock import Mock

import pytest
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from opentelemetry.trace import SpanKind

from tracechain.invoker import DispatchReceipt, LambdaInvoker
from tracechain.tracing.agent import Agent
from tracechain.tracing.config import AgentConfig
from tracechain.tracing.context import TraceContext

PARENT_TRACE_ID = "0af7651916cd43dd8448eb211c80319c"
PARENT_SPAN_ID = "b7ad6b7169203331"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep deployment settings of the host out of the tests."""
    for key in (
        "KAFKA_BROKERS",
        "TRACE_SAMPLING_RATE",
        "PROMETHEUS_PUSHGATEWAY_URL",
        "DOWNSTREAM_FUNCTION_NAME",
        "SIMULATED_WORK_SECONDS",
        "AWS_LAMBDA_FUNCTION_NAME",
    ):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def span_exporter():
    """Collect finished spans in memory."""
    return InMemorySpanExporter()


@pytest.fixture
def agent_config():
    return AgentConfig(
        service_name="test-function",
        environment="test",
        sampling_rate=1.0,
        enable_kafka=False,
        pushgateway_url="",
        work_seconds=0.0,
    )


@pytest.fixture
def agent(agent_config, span_exporter):
    """Create an agent exporting to memory."""
    ag = Agent(agent_config, span_processor=SimpleSpanProcessor(span_exporter))
    yield ag
    ag.shutdown()


@pytest.fixture
def lambda_context():
    """Minimal stand-in for the Lambda context object."""
    return SimpleNamespace(
        function_name="test-function",
        aws_request_id="c6af9ac6-7b61-11e6-9a41-93e8deadbeef",
        invoked_function_arn="arn:aws:lambda:us-east-1:123456789012:function:test-function",
    )


@pytest.fixture
def invoker():
    """Invoker that accepts every dispatch."""
    inv = Mock(spec=LambdaInvoker)
    inv.invoke_async.return_value = DispatchReceipt("trace-chain-callee", 202, "req-downstream")
    return inv


@pytest.fixture
def parent_context():
    return TraceContext(
        trace_id=PARENT_TRACE_ID,
        span_id=PARENT_SPAN_ID,
        sampled=True,
        trace_state=(("rojo", "00f067aa0ba902b7"), ("congo", "t61rcWkgMzE")),
    )


def transaction_spans(exporter):
    """Finished transaction spans, in end order."""
    return [s for s in exporter.get_finished_spans() if s.kind == SpanKind.SERVER]


def spans_named(exporter, name):
    return [s for s in exporter.get_finished_spans() if s.name == name]
