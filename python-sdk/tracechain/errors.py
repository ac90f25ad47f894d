"""Exceptions raised by the trace chain SDK."""


class TraceChainError(Exception):
    """Base exception for the trace chain SDK."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"{self.__class__.__name__}: {self.message}"


class ConfigurationError(TraceChainError):
    """Raised when the agent cannot be configured at cold start."""

    pass


class SerializationError(TraceChainError):
    """Raised when an outbound envelope cannot be encoded."""

    pass


class DispatchError(TraceChainError):
    """Raised when a downstream invocation is not accepted."""

    def __init__(self, function_name: str, reason: str) -> None:
        self.function_name = function_name
        self.reason = reason
        super().__init__(f"invoke {function_name} failed: {reason}")


class MalformedContextError(TraceChainError):
    """Raised when inbound trace headers are missing or invalid."""

    pass
