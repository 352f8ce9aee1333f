"""Bus monitor module."""

from .monitor import BusMonitor, IBusMonitor

__all__ = ["BusMonitor", "IBusMonitor"]
