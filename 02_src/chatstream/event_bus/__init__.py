"""EventBus module."""

from .event_bus import EventBus, IEventBus, Subscription

__all__ = ["EventBus", "IEventBus", "Subscription"]
