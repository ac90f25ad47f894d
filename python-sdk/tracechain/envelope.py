"""Request envelope passed between chained functions."""

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping

import orjson

from tracechain.errors import SerializationError
from tracechain.tracing.context import normalize_headers


@dataclass(frozen=True)
class Envelope:
    """Business fields plus the embedded distributed trace payload."""

    sort_by: str = "time"
    sort_order: str = "descending"
    items_to_get: int = 10
    distributed_trace_payload: Dict[str, str] = field(default_factory=dict)

    def to_payload(self) -> Dict[str, Any]:
        return {
            "SortBy": self.sort_by,
            "SortOrder": self.sort_order,
            "ItemsToGet": self.items_to_get,
            "DistributedTracePayload": dict(self.distributed_trace_payload),
        }

    def to_json(self) -> bytes:
        """Encode as the JSON invocation payload.

        Raises:
            SerializationError: If a field cannot be encoded.
        """
        try:
            return orjson.dumps(self.to_payload())
        except (TypeError, orjson.JSONEncodeError) as e:
            raise SerializationError(f"cannot encode envelope: {e}") from e

    @classmethod
    def from_event(cls, event: Any) -> "Envelope":
        """Decode an inbound invocation event.

        Missing business fields take their defaults. A trace payload that is
        not a mapping is dropped; trace context problems never fail decoding.

        Raises:
            ValueError: If the event is not an object or ItemsToGet is not an integer.
        """
        if isinstance(event, (bytes, str)):
            try:
                event = orjson.loads(event)
            except orjson.JSONDecodeError as e:
                raise ValueError(f"event is not valid JSON: {e}") from e
        if not isinstance(event, Mapping):
            raise ValueError(f"event must be an object, got {type(event).__name__}")

        items = event.get("ItemsToGet", cls.items_to_get)
        if isinstance(items, bool) or not isinstance(items, (int, str)):
            raise ValueError(f"ItemsToGet must be an integer, got {items!r}")
        try:
            items = int(items)
        except ValueError:
            raise ValueError(f"ItemsToGet must be an integer, got {items!r}")

        payload = event.get("DistributedTracePayload") or {}
        headers = normalize_headers(payload) if isinstance(payload, Mapping) else {}

        return cls(
            sort_by=str(event.get("SortBy", cls.sort_by)),
            sort_order=str(event.get("SortOrder", cls.sort_order)),
            items_to_get=items,
            distributed_trace_payload=headers,
        )
