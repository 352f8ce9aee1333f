"""EventBus implementation for pub/sub messaging."""

import asyncio
import threading
import time
from contextlib import contextmanager
from typing import Callable, ContextManager, Iterator, Protocol

from ..config import DEFAULT_SUBSCRIBER_CAPACITY
from ..logging_config import get_logger
from ..models import Event

logger = get_logger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


class Subscription:
    """Bounded FIFO of events delivered to one subscriber.

    Only the bus writes into the queue (``_offer``); only the owner reads.
    """

    def __init__(self, capacity: int = DEFAULT_SUBSCRIBER_CAPACITY):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._capacity = capacity
        self._queue: asyncio.Queue[Event] = asyncio.Queue(maxsize=capacity)
        self.dropped = 0
        self.active = True

    @property
    def capacity(self) -> int:
        return self._capacity

    def qsize(self) -> int:
        return self._queue.qsize()

    def empty(self) -> bool:
        return self._queue.empty()

    def _offer(self, event: Event) -> bool:
        """Non-blocking enqueue. Returns False when the event was dropped."""
        if not self.active:
            return False
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            self.dropped += 1
            return False
        return True

    async def get(self) -> Event:
        """Wait for the next event."""
        return await self._queue.get()

    def get_nowait(self) -> Event:
        """Return the next event or raise asyncio.QueueEmpty."""
        return self._queue.get_nowait()

    def drain(self) -> list[Event]:
        """Return every pending event without waiting."""
        events = []
        while not self._queue.empty():
            events.append(self._queue.get_nowait())
        return events

    def __aiter__(self) -> "Subscription":
        return self

    async def __anext__(self) -> Event:
        return await self.get()


class IEventBus(Protocol):
    """In-memory pub/sub for exchanging Events."""

    def subscribe(self) -> Subscription:
        """Register a new bounded subscriber queue."""
        ...

    def unsubscribe(self, subscription: Subscription) -> None:
        """Stop delivering to a subscription."""
        ...

    def subscription(self) -> ContextManager[Subscription]:
        """Subscribe for the duration of a with-block."""
        ...

    def publish(self, event: Event) -> Event:
        """Stamp the event and fan it out without blocking."""
        ...


class EventBus:
    """In-memory, best-effort pub/sub event bus.

    Every subscriber gets its own bounded queue. ``publish`` never blocks: if a
    queue is full the event is dropped for that subscriber only, and the
    publisher is not told. Order is FIFO per subscriber.

    The registry and the fan-out share one lock. Queues are asyncio queues, so
    ``publish`` must run on the event loop thread that reads them.
    """

    def __init__(
        self,
        capacity: int = DEFAULT_SUBSCRIBER_CAPACITY,
        clock: Callable[[], int] = _now_ms,
    ):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._capacity = capacity
        self._clock = clock
        self._lock = threading.Lock()
        self._subscribers: list[Subscription] = []
        self._last_timestamp = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def subscribe(self) -> Subscription:
        """Register a new bounded subscriber queue."""
        subscription = Subscription(self._capacity)
        with self._lock:
            self._subscribers.append(subscription)
        logger.debug("Subscriber added (%s total)", len(self._subscribers))
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        """Stop delivering to a subscription. Unknown subscriptions are ignored."""
        with self._lock:
            if subscription in self._subscribers:
                self._subscribers.remove(subscription)
            subscription.active = False
        if subscription.dropped:
            logger.debug(
                "Subscriber removed after dropping %s events", subscription.dropped
            )

    @contextmanager
    def subscription(self) -> Iterator[Subscription]:
        """Subscribe for the duration of a with-block."""
        subscription = self.subscribe()
        try:
            yield subscription
        finally:
            self.unsubscribe(subscription)

    def publish(self, event: Event) -> Event:
        """Stamp the event and offer it to every subscriber.

        Events that already carry a timestamp (decoded from the wire) keep it.
        Returns the event as delivered.
        """
        with self._lock:
            if event.timestamp is None:
                # Non-decreasing even if the wall clock steps back
                timestamp = max(self._clock(), self._last_timestamp)
                self._last_timestamp = timestamp
                event = event.stamped(timestamp)

            for subscription in self._subscribers:
                if not subscription._offer(event):
                    logger.debug(
                        "Subscriber queue full, dropped %s event", event.type
                    )

        return event
