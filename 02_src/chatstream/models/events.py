"""Event data models.

An Event is the only message type crossing the bus and the wire. Its payload
is a tagged variant: one frozen dataclass per known event type, selected by
the ``type`` discriminant. Types outside the known vocabulary decode to
``UnknownPayload`` so new tags can travel without transport changes.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, ClassVar, Union


class EventType(str, Enum):
    """Known event type tags."""

    CHAT_CHAR = "chat.char"
    CHAT_COMPLETE = "chat.complete"
    TOOL_START = "tool.start"
    TOOL_OUTPUT = "tool.output"
    TOOL_END = "tool.end"
    STREAM_ERR = "stream_err"
    STREAM_END = "stream_end"
    SYSTEM_INFO = "system.info"


class PayloadError(ValueError):
    """Raised when event data does not match the shape for its type."""


def _require_str(event_type: EventType, data: Any) -> str:
    if not isinstance(data, str):
        raise PayloadError(
            f"{event_type.value} expects a string, got {type(data).__name__}"
        )
    return data


@dataclass(frozen=True)
class ChatChar:
    """A fragment of assistant text, normally one character."""

    event_type: ClassVar[EventType] = EventType.CHAT_CHAR
    text: str

    def to_data(self) -> Any:
        return self.text

    @classmethod
    def from_data(cls, data: Any) -> "ChatChar":
        return cls(_require_str(cls.event_type, data))


@dataclass(frozen=True)
class ChatComplete:
    """End of the assistant turn."""

    event_type: ClassVar[EventType] = EventType.CHAT_COMPLETE

    def to_data(self) -> Any:
        return None

    @classmethod
    def from_data(cls, data: Any) -> "ChatComplete":
        return cls()


@dataclass(frozen=True)
class ToolStart:
    """A whitelisted command began executing."""

    event_type: ClassVar[EventType] = EventType.TOOL_START
    command: str

    def to_data(self) -> Any:
        return {"command": self.command}

    @classmethod
    def from_data(cls, data: Any) -> "ToolStart":
        if not isinstance(data, dict) or not isinstance(data.get("command"), str):
            raise PayloadError(
                f"{cls.event_type.value} expects an object with a string 'command'"
            )
        return cls(data["command"])


@dataclass(frozen=True)
class ToolOutput:
    """Output text of a command, possibly multi-line."""

    event_type: ClassVar[EventType] = EventType.TOOL_OUTPUT
    text: str

    def to_data(self) -> Any:
        return self.text

    @classmethod
    def from_data(cls, data: Any) -> "ToolOutput":
        return cls(_require_str(cls.event_type, data))


@dataclass(frozen=True)
class ToolEnd:
    """The command finished."""

    event_type: ClassVar[EventType] = EventType.TOOL_END

    def to_data(self) -> Any:
        return None

    @classmethod
    def from_data(cls, data: Any) -> "ToolEnd":
        return cls()


@dataclass(frozen=True)
class StreamError:
    """The stream failed; message is human readable."""

    event_type: ClassVar[EventType] = EventType.STREAM_ERR
    message: str

    def to_data(self) -> Any:
        return self.message

    @classmethod
    def from_data(cls, data: Any) -> "StreamError":
        return cls(_require_str(cls.event_type, data))


@dataclass(frozen=True)
class StreamEnd:
    """The connection reached end of input."""

    event_type: ClassVar[EventType] = EventType.STREAM_END

    def to_data(self) -> Any:
        return None

    @classmethod
    def from_data(cls, data: Any) -> "StreamEnd":
        return cls()


@dataclass(frozen=True)
class SystemInfo:
    """Informational note from the producer."""

    event_type: ClassVar[EventType] = EventType.SYSTEM_INFO
    text: str

    def to_data(self) -> Any:
        return self.text

    @classmethod
    def from_data(cls, data: Any) -> "SystemInfo":
        return cls(_require_str(cls.event_type, data))


@dataclass(frozen=True)
class UnknownPayload:
    """Payload of a type tag outside the known vocabulary, kept verbatim."""

    type_name: str
    data: Any = None

    def to_data(self) -> Any:
        return self.data


Payload = Union[
    ChatChar,
    ChatComplete,
    ToolStart,
    ToolOutput,
    ToolEnd,
    StreamError,
    StreamEnd,
    SystemInfo,
    UnknownPayload,
]

PAYLOAD_TYPES: dict[str, type] = {
    cls.event_type.value: cls
    for cls in (
        ChatChar,
        ChatComplete,
        ToolStart,
        ToolOutput,
        ToolEnd,
        StreamError,
        StreamEnd,
        SystemInfo,
    )
}


@dataclass(frozen=True)
class Event:
    """Immutable typed event; timestamp is stamped by EventBus.publish."""

    payload: Payload
    timestamp: int | None = field(default=None, compare=False)

    @property
    def type(self) -> str:
        """Type tag on the wire."""
        if isinstance(self.payload, UnknownPayload):
            return self.payload.type_name
        return self.payload.event_type.value

    @property
    def data(self) -> Any:
        """Wire representation of the payload (None when absent)."""
        return self.payload.to_data()

    def stamped(self, timestamp: int) -> "Event":
        """Return a copy carrying timestamp."""
        return replace(self, timestamp=timestamp)

    @classmethod
    def of(cls, type_name: str, data: Any = None, timestamp: int | None = None) -> "Event":
        """Build an Event from a type tag and wire data.

        Raises:
            PayloadError: If type_name is empty or data has the wrong shape.
        """
        if not isinstance(type_name, str) or not type_name:
            raise PayloadError("event type must be a non-empty string")
        payload_cls = PAYLOAD_TYPES.get(type_name)
        if payload_cls is None:
            return cls(UnknownPayload(type_name, data), timestamp)
        return cls(payload_cls.from_data(data), timestamp)


def chat_char(text: str) -> Event:
    return Event(ChatChar(text))


def chat_complete() -> Event:
    return Event(ChatComplete())


def tool_start(command: str) -> Event:
    return Event(ToolStart(command))


def tool_output(text: str) -> Event:
    return Event(ToolOutput(text))


def tool_end() -> Event:
    return Event(ToolEnd())


def stream_err(message: str) -> Event:
    return Event(StreamError(message))


def stream_end() -> Event:
    return Event(StreamEnd())


def system_info(text: str) -> Event:
    return Event(SystemInfo(text))
