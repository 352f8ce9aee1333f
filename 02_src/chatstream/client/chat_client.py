"""ChatClient: wires the client bus, stream decoder and transcript reducer."""

import asyncio

import httpx

from ..config import Settings
from ..event_bus import EventBus, Subscription
from ..logging_config import get_logger
from ..models import TranscriptRecord, TranscriptState
from ..transcript import TranscriptReducer
from ..transcript.reducer import RenderCallback
from ..wire import StreamDecoder

logger = get_logger(__name__)


class ChatClient:
    """Consumer side of the chat stream.

    The decoder is the only publisher on the client bus and the reducer its
    only subscriber. ``submit`` starts a turn; ``wait_idle`` waits for it.
    """

    def __init__(
        self,
        base_url: str,
        render: RenderCallback | None = None,
        connect_timeout: float = 10.0,
        capacity: int = 20,
        http_client: httpx.AsyncClient | None = None,
    ):
        self._render = render
        self._event_bus = EventBus(capacity=capacity)
        self._decoder = StreamDecoder(
            self._event_bus,
            base_url,
            connect_timeout=connect_timeout,
            http_client=http_client,
        )
        self._reducer = TranscriptReducer(
            render=self._on_render, on_submit=self._start_turn
        )
        self._idle = asyncio.Event()
        self._idle.set()
        self._subscription: Subscription | None = None
        self._reducer_task: asyncio.Task | None = None
        self._turn_task: asyncio.Task | None = None

    @classmethod
    def from_settings(
        cls, settings: Settings, render: RenderCallback | None = None
    ) -> "ChatClient":
        return cls(
            settings.server_url,
            render=render,
            connect_timeout=settings.connect_timeout,
            capacity=settings.subscriber_capacity,
        )

    @property
    def event_bus(self) -> EventBus:
        return self._event_bus

    @property
    def state(self) -> TranscriptState:
        return self._reducer.state

    @property
    def records(self) -> list[TranscriptRecord]:
        return self._reducer.records

    async def start(self) -> None:
        """Subscribe the reducer and start applying events."""
        if self._reducer_task is not None:
            return
        self._subscription = self._event_bus.subscribe()
        self._reducer_task = asyncio.create_task(
            self._reducer.run(self._subscription)
        )

    async def stop(self) -> None:
        """Cancel the running turn and the reducer, then release resources."""
        for task in (self._turn_task, self._reducer_task):
            if task is not None and not task.done():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
        self._turn_task = None
        self._reducer_task = None

        if self._subscription is not None:
            self._event_bus.unsubscribe(self._subscription)
            self._subscription = None

        await self._decoder.aclose()

    def submit(self, text: str) -> bool:
        """Submit a user message.

        Returns False while a turn is streaming, and also while the previous
        stream is still open after its turn ended early (e.g. on a malformed
        record), so its remaining events cannot land in the next turn.
        """
        if self._reducer_task is None:
            raise RuntimeError("ChatClient not started")
        if self._turn_task is not None and not self._turn_task.done():
            return False
        return self._reducer.submit(text)

    async def wait_idle(self) -> None:
        """Wait until the current turn has finished.

        Also waits for the decoder to close the connection, so the trailing
        stream_end of this turn cannot land in the next one.
        """
        await self._idle.wait()
        if self._turn_task is not None:
            await self._turn_task
        # Let the reducer apply what the decoder published last
        while self._subscription is not None and not self._subscription.empty():
            await asyncio.sleep(0)

    def _start_turn(self, message: str) -> None:
        self._idle.clear()
        self._turn_task = asyncio.create_task(self._decoder.run(message))

    def _on_render(self, state: TranscriptState) -> None:
        if self._render is not None:
            self._render(state)
        if state.streaming:
            self._idle.clear()
        else:
            self._idle.set()
