"""Core data models for Chat Stream."""

from .events import (
    PAYLOAD_TYPES,
    ChatChar,
    ChatComplete,
    Event,
    EventType,
    Payload,
    PayloadError,
    StreamEnd,
    StreamError,
    SystemInfo,
    ToolEnd,
    ToolOutput,
    ToolStart,
    UnknownPayload,
    chat_char,
    chat_complete,
    stream_end,
    stream_err,
    system_info,
    tool_end,
    tool_output,
    tool_start,
)
from .transcript import ReducerState, Role, TranscriptRecord, TranscriptState

__all__ = [
    # Events
    "Event",
    "EventType",
    "Payload",
    "PayloadError",
    "PAYLOAD_TYPES",
    "ChatChar",
    "ChatComplete",
    "ToolStart",
    "ToolOutput",
    "ToolEnd",
    "StreamError",
    "StreamEnd",
    "SystemInfo",
    "UnknownPayload",
    "chat_char",
    "chat_complete",
    "tool_start",
    "tool_output",
    "tool_end",
    "stream_err",
    "stream_end",
    "system_info",
    # Transcript
    "Role",
    "ReducerState",
    "TranscriptRecord",
    "TranscriptState",
]
