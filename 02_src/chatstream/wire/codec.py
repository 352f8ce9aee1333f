"""Newline-delimited JSON codec for Events.

Each record is one compact JSON object terminated by ``\\n``::

    {"type":"chat.char","data":"H","timestamp":1718000000000}

``data`` is omitted for event types that carry no payload.
"""

import json
from typing import Any

from ..models import Event, PayloadError


class DecodeError(ValueError):
    """Raised when a line is not a valid event record."""


def event_to_record(event: Event) -> dict[str, Any]:
    """Flat record for an event."""
    record: dict[str, Any] = {"type": event.type}
    data = event.data
    if data is not None:
        record["data"] = data
    if event.timestamp is not None:
        record["timestamp"] = event.timestamp
    return record


def encode_event(event: Event) -> str:
    """Serialize an event as one newline-terminated line."""
    return json.dumps(
        event_to_record(event), ensure_ascii=False, separators=(",", ":")
    ) + "\n"


def record_to_event(record: Any) -> Event:
    """Build an Event from a decoded JSON value."""
    if not isinstance(record, dict):
        raise DecodeError(f"record must be an object, got {type(record).__name__}")

    type_name = record.get("type")
    if not isinstance(type_name, str) or not type_name:
        raise DecodeError("record has no 'type' string")

    timestamp = record.get("timestamp")
    # bool is an int subclass
    if timestamp is not None and (
        isinstance(timestamp, bool) or not isinstance(timestamp, int)
    ):
        raise DecodeError("'timestamp' must be an integer")

    try:
        return Event.of(type_name, record.get("data"), timestamp)
    except PayloadError as e:
        raise DecodeError(str(e)) from e


def decode_line(line: str | bytes) -> Event:
    """Parse one line into an Event.

    Raises:
        DecodeError: If the line is not JSON or not a valid record.
    """
    if isinstance(line, bytes):
        try:
            line = line.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecodeError(f"invalid UTF-8: {e}") from e

    try:
        record = json.loads(line)
    except json.JSONDecodeError as e:
        raise DecodeError(f"invalid JSON: {e}") from e

    return record_to_event(record)
