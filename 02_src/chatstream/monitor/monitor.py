"""BusMonitor: logs every event published on a bus."""

import asyncio
from typing import Protocol

from ..event_bus import IEventBus, Subscription
from ..logging_config import get_logger
from ..models import Event
from ..wire import TERMINAL_TYPES

logger = get_logger(__name__)


class IBusMonitor(Protocol):
    """Observes a bus through its own subscription."""

    async def start(self) -> None:
        """Subscribe and start the drain task."""
        ...

    async def stop(self) -> None:
        """Cancel the drain task and unsubscribe."""
        ...


class BusMonitor:
    """Drains a subscription in the background and logs each event."""

    def __init__(self, event_bus: IEventBus):
        self._event_bus = event_bus
        self._subscription: Subscription | None = None
        self._task: asyncio.Task | None = None
        self.seen = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Subscribe and start the drain task."""
        if self.running:
            return
        self._subscription = self._event_bus.subscribe()
        self._task = asyncio.create_task(self._run(self._subscription))

    async def stop(self) -> None:
        """Cancel the drain task and unsubscribe."""
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        if self._subscription:
            self._event_bus.unsubscribe(self._subscription)
            if self._subscription.dropped:
                logger.warning(
                    "Monitor missed %s events", self._subscription.dropped
                )
            self._subscription = None

    async def _run(self, subscription: Subscription) -> None:
        async for event in subscription:
            self._track(event)

    def _track(self, event: Event) -> None:
        self.seen += 1
        context = {
            "type": event.type,
            "timestamp": event.timestamp,
            "data_summary": str(event.data)[:100] if event.data is not None else None,
        }
        if event.type in TERMINAL_TYPES:
            logger.info("Turn ended with %s", event.type, extra={"context": context})
        else:
            logger.debug("Event %s", event.type, extra={"context": context})
