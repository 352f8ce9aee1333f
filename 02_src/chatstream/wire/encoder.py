"""Stream encoder: projects one bus subscription onto an outbound stream."""

import asyncio
from typing import Any, AsyncIterator, Callable, Iterable

from ..event_bus import IEventBus, Subscription
from ..logging_config import get_logger
from ..models import Event, EventType, stream_err
from .codec import encode_event

logger = get_logger(__name__)

TERMINAL_TYPES = frozenset(
    {
        EventType.CHAT_COMPLETE.value,
        EventType.STREAM_ERR.value,
        EventType.STREAM_END.value,
    }
)

INTERRUPTED_MESSAGE = "Stream interrupted: the turn ended without a final event"


class StreamEncoder:
    """Turns bus events into NDJSON lines for a streaming response."""

    def __init__(
        self,
        event_bus: IEventBus,
        terminal_types: Iterable[str] = TERMINAL_TYPES,
    ):
        self._event_bus = event_bus
        self._terminal_types = frozenset(terminal_types)

    async def stream(
        self, on_ready: Callable[[], Any] | None = None
    ) -> AsyncIterator[str]:
        """Yield one encoded line per event until a terminal event.

        The subscription is taken before ``on_ready`` is called, so a producer
        started from ``on_ready`` cannot publish ahead of it. If ``on_ready``
        returns that producer's task, the stream also ends once the task is
        done and its queued events are sent: when the terminal event was
        dropped on a full queue, a ``stream_err`` is published in its place.

        The subscription is released when the iterator finishes or is closed
        by the server (client disconnect or write failure).
        """
        sent = 0
        finished = False
        with self._event_bus.subscription() as subscription:
            producer = on_ready() if on_ready is not None else None
            if not asyncio.isfuture(producer):
                producer = None
            try:
                while True:
                    event = await self._next_event(subscription, producer)
                    if event is None:
                        logger.warning(
                            "Producer finished without a terminal event "
                            "(%s dropped)",
                            subscription.dropped,
                        )
                        self._event_bus.publish(stream_err(INTERRUPTED_MESSAGE))
                        continue
                    yield encode_event(event)
                    sent += 1
                    if event.type in self._terminal_types:
                        finished = True
                        return
            finally:
                if finished:
                    logger.debug("Stream finished after %s events", sent)
                else:
                    logger.info("Stream closed early after %s events", sent)

    async def _next_event(
        self, subscription: Subscription, producer: asyncio.Future | None
    ) -> Event | None:
        """Next queued event, or None once producer is done and none is left."""
        if producer is None:
            return await subscription.get()

        while True:
            if not subscription.empty():
                return subscription.get_nowait()
            if producer.done():
                return None

            getter = asyncio.ensure_future(subscription.get())
            try:
                await asyncio.wait(
                    {getter, producer}, return_when=asyncio.FIRST_COMPLETED
                )
            finally:
                if not getter.done():
                    getter.cancel()
            if getter.done() and not getter.cancelled():
                return getter.result()
