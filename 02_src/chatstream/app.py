"""Application bootstrap and lifecycle management (server side)."""

import asyncio
from contextlib import aclosing
from typing import AsyncIterator, Protocol

from .config import Settings, load_settings
from .event_bus import EventBus
from .logging_config import get_logger
from .models import stream_err
from .monitor import BusMonitor
from .producer import ChatResponder, CommandExecutor, IResponder
from .wire import StreamEncoder

logger = get_logger(__name__)


class ChatService:
    """Runs chat turns on the server bus and streams them as NDJSON lines.

    Turns are serialized: every encoder subscribes to the same bus, so two
    producers running at once would interleave their events.
    """

    def __init__(self, event_bus: EventBus, responder: IResponder):
        self._event_bus = event_bus
        self._responder = responder
        self._encoder = StreamEncoder(event_bus)
        self._turn_lock = asyncio.Lock()

    async def stream_turn(self, message: str) -> AsyncIterator[str]:
        """Yield the encoded events of one turn answering message."""
        async with self._turn_lock:
            producer: asyncio.Task | None = None

            def start_producer() -> asyncio.Task:
                nonlocal producer
                producer = asyncio.create_task(self._produce(message))
                return producer

            try:
                async with aclosing(
                    self._encoder.stream(on_ready=start_producer)
                ) as lines:
                    async for line in lines:
                        yield line
            finally:
                if producer is not None and not producer.done():
                    logger.info("Client went away, cancelling turn")
                    producer.cancel()
                    try:
                        await producer
                    except asyncio.CancelledError:
                        pass

    async def _produce(self, message: str) -> None:
        logger.info("Turn started: %s", message[:100])
        try:
            async for event in self._responder.generate(message):
                self._event_bus.publish(event)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error("Producer failed: %s", e, exc_info=True)
            self._event_bus.publish(stream_err(f"Internal error: {e}"))


class IApplication(Protocol):
    """Bootstrap and lifecycle."""

    async def start(self) -> None:
        """Initialize components in dependency order."""
        ...

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        ...


class Application:
    """Server-side bootstrap: one bus, its monitor, and the chat service."""

    def __init__(
        self,
        settings: Settings | None = None,
        responder: IResponder | None = None,
    ):
        self._settings = settings or load_settings()

        # 1. EventBus (no dependencies)
        self._event_bus = EventBus(capacity=self._settings.subscriber_capacity)

        # 2. Producer logic
        if responder is None:
            executor = CommandExecutor(
                allowed=self._settings.allowed_commands,
                timeout=self._settings.command_timeout,
            )
            responder = ChatResponder(executor, char_delay=self._settings.char_delay)
        self._responder = responder

        # 3. ChatService (depends on EventBus + responder)
        self._chat_service = ChatService(self._event_bus, self._responder)

        # 4. Monitor (depends on EventBus), subscribed in start()
        self._monitor = BusMonitor(self._event_bus)

    async def start(self) -> None:
        """Initialize components in dependency order."""
        logger.info("Starting application")
        await self._monitor.start()
        logger.info("BusMonitor started")

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        await self._monitor.stop()
        logger.info("Application stopped")

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def event_bus(self) -> EventBus:
        return self._event_bus

    @property
    def chat_service(self) -> ChatService:
        return self._chat_service

    @property
    def monitor(self) -> BusMonitor:
        return self._monitor
