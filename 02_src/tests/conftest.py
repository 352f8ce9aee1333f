"""Pytest configuration and fixtures."""

import sys
from pathlib import Path
from typing import AsyncIterator

import pytest
import pytest_asyncio

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))


class ScriptedResponder:
    """Responder that replays a fixed list of events."""

    def __init__(self, events):
        self.events = list(events)
        self.messages: list[str] = []

    async def generate(self, message: str) -> AsyncIterator:
        self.messages.append(message)
        for event in self.events:
            yield event


@pytest.fixture
def event_bus():
    """Create EventBus with default capacity."""
    from chatstream.event_bus import EventBus

    return EventBus()


@pytest.fixture
def settings():
    """Settings with no streaming delay."""
    from chatstream.config import Settings

    return Settings(char_delay=0.0, command_timeout=5.0)


@pytest.fixture
def hi_events():
    """A short scripted turn answering "Hi"."""
    from chatstream.models import chat_char, chat_complete

    return [chat_char("H"), chat_char("i"), chat_complete()]


@pytest.fixture
def scripted_responder(hi_events):
    """Create a ScriptedResponder replaying hi_events."""
    return ScriptedResponder(hi_events)


@pytest_asyncio.fixture
async def application(settings, scripted_responder):
    """Create and start an Application with a scripted responder."""
    from chatstream.app import Application

    app = Application(settings, responder=scripted_responder)
    await app.start()
    yield app
    await app.stop()


@pytest.fixture
def fastapi_app(application):
    """FastAPI app bound to the started application."""
    from chatstream.api import create_fastapi_app

    return create_fastapi_app(application)


@pytest_asyncio.fixture
async def http_client(fastapi_app):
    """httpx client talking to the FastAPI app in-process."""
    import httpx

    transport = httpx.ASGITransport(app=fastapi_app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
