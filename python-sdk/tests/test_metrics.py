"""Tests for metrics push."""

from unittest.mock import patch

from tracechain.metrics.pusher import push_metrics
from tracechain.metrics.registry import Registry


def test_no_gateway_configured():
    with patch("tracechain.metrics.pusher.push_to_gateway") as push:
        assert push_metrics("", job="svc") is False
    push.assert_not_called()


def test_push():
    with patch("tracechain.metrics.pusher.push_to_gateway") as push:
        assert push_metrics("http://gateway:9091", job="svc")
    push.assert_called_once_with("http://gateway:9091", job="svc", registry=Registry, timeout=2.0)


def test_push_failure_is_not_raised():
    with patch("tracechain.metrics.pusher.push_to_gateway", side_effect=OSError("connection refused")):
        assert push_metrics("http://gateway:9091", job="svc") is False
