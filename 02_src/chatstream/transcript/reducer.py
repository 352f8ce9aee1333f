"""TranscriptReducer implementation."""

import asyncio
from typing import Callable, Protocol

from ..event_bus import Subscription
from ..logging_config import get_logger
from ..models import (
    ChatChar,
    ChatComplete,
    Event,
    ReducerState,
    Role,
    StreamEnd,
    StreamError,
    ToolEnd,
    ToolOutput,
    ToolStart,
    TranscriptRecord,
    TranscriptState,
)

logger = get_logger(__name__)

RenderCallback = Callable[[TranscriptState], None]
SubmitCallback = Callable[[str], None]

TOOL_SEPARATOR = "\n---\n"


def format_tool_start(command: str) -> str:
    return f"\n> executing {command}\n"


def format_tool_output(text: str) -> str:
    if not text.endswith("\n"):
        text += "\n"
    return "```\n" + text + "```\n"


class ITranscriptReducer(Protocol):
    """Folds the event stream into transcript state."""

    def submit(self, text: str) -> bool:
        """Commit a user message and begin a turn (Idle only)."""
        ...

    def apply(self, event: Event) -> bool:
        """Apply one event. Returns True if state changed."""
        ...


class TranscriptReducer:
    """Idle/Streaming state machine over the chat transcript.

    Not thread-safe: events must be applied one at a time, which ``run``
    guarantees by draining a single subscription in one task.
    """

    def __init__(
        self,
        render: RenderCallback | None = None,
        on_submit: SubmitCallback | None = None,
    ):
        self._render = render
        self._on_submit = on_submit
        self._state = TranscriptState()

    @property
    def state(self) -> TranscriptState:
        return self._state

    @property
    def records(self) -> list[TranscriptRecord]:
        return list(self._state.records)

    @property
    def streaming(self) -> bool:
        return self._state.streaming

    def submit(self, text: str) -> bool:
        """Commit a user message and begin a turn.

        Rejected while a turn is streaming and for blank input.
        """
        message = text.strip()
        if self._state.streaming or not message:
            return False

        self._state.records.append(TranscriptRecord(Role.USER, message))
        self._state.buffer = ""
        self._state.status = ReducerState.STREAMING
        self._emit_render()

        if self._on_submit is not None:
            self._on_submit(message)
        return True

    def apply(self, event: Event) -> bool:
        """Apply one event. Returns True if state changed."""
        payload = event.payload
        state = self._state

        # Terminal events are honoured in either state
        if isinstance(payload, ChatComplete):
            if state.buffer:
                state.records.append(TranscriptRecord(Role.ASSISTANT, state.buffer))
            return self._finish_turn()

        if isinstance(payload, StreamError):
            logger.info("Turn failed: %s", payload.message)
            state.records.append(TranscriptRecord(Role.ERROR, payload.message))
            self._finish_turn()
            return True

        if isinstance(payload, StreamEnd):
            return self._finish_turn()

        if not state.streaming:
            return False

        if isinstance(payload, ChatChar):
            fragment = payload.text
        elif isinstance(payload, ToolStart):
            fragment = format_tool_start(payload.command)
        elif isinstance(payload, ToolOutput):
            fragment = format_tool_output(payload.text)
        elif isinstance(payload, ToolEnd):
            fragment = TOOL_SEPARATOR
        else:
            logger.debug("Ignoring %s event", event.type)
            return False

        state.buffer += fragment
        self._emit_render()
        return True

    async def run(self, subscription: Subscription) -> None:
        """Apply events from subscription until cancelled."""
        try:
            async for event in subscription:
                self.apply(event)
        except asyncio.CancelledError:
            logger.debug("Reducer loop cancelled")
            raise

    def _finish_turn(self) -> bool:
        state = self._state
        changed = state.streaming or bool(state.buffer)
        state.buffer = ""
        state.status = ReducerState.IDLE
        self._emit_render()
        return changed

    def _emit_render(self) -> None:
        if self._render is not None:
            self._render(self._state)
