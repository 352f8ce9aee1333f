"""API routes."""

from .chat import ChatRequest, create_chat_router
from .health import create_health_router

__all__ = ["ChatRequest", "create_chat_router", "create_health_router"]
