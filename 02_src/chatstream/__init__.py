"""Chat Stream: real-time chat output over an NDJSON event stream."""

from .app import Application, ChatService, IApplication
from .client import ChatClient
from .event_bus import EventBus, IEventBus, Subscription
from .models import Event, EventType, ReducerState, Role, TranscriptRecord, TranscriptState
from .monitor import BusMonitor
from .producer import ChatResponder, CommandExecutor, ICommandExecutor, IResponder
from .transcript import TranscriptReducer
from .wire import DecodeError, StreamDecoder, StreamEncoder, decode_line, encode_event

__all__ = [
    # Application
    "Application",
    "IApplication",
    "ChatService",
    # Models
    "Event",
    "EventType",
    "Role",
    "ReducerState",
    "TranscriptRecord",
    "TranscriptState",
    # Bus
    "EventBus",
    "IEventBus",
    "Subscription",
    "BusMonitor",
    # Wire
    "encode_event",
    "decode_line",
    "DecodeError",
    "StreamEncoder",
    "StreamDecoder",
    # Producer
    "ChatResponder",
    "IResponder",
    "CommandExecutor",
    "ICommandExecutor",
    # Consumer
    "TranscriptReducer",
    "ChatClient",
]
