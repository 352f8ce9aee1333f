"""End-to-end tests: ChatClient against the FastAPI app in-process."""

import asyncio
import json

import httpx
import pytest
import pytest_asyncio
from rich.console import Console

from chatstream.client import ChatClient, TranscriptView
from chatstream.models import (
    ReducerState,
    Role,
    TranscriptRecord,
    TranscriptState,
    chat_char,
    chat_complete,
    stream_err,
)
from chatstream.transcript import TranscriptReducer


class GatedStream(httpx.AsyncByteStream):
    """Response body that sends one chunk, waits at a gate, then sends another."""

    def __init__(self, before: bytes, after: bytes, gate: asyncio.Event):
        self._before = before
        self._after = after
        self._gate = gate
        self.closed = False

    async def __aiter__(self):
        yield self._before
        await self._gate.wait()
        yield self._after

    async def aclose(self):
        self.closed = True


def ndjson(*records) -> bytes:
    return "".join(json.dumps(r) + "\n" for r in records).encode()


async def until(predicate) -> None:
    while not predicate():
        await asyncio.sleep(0.01)


@pytest_asyncio.fixture
async def chat_client(fastapi_app):
    """ChatClient whose HTTP traffic goes straight to the app."""
    renders = []
    transport = httpx.ASGITransport(app=fastapi_app)
    http = httpx.AsyncClient(transport=transport)
    client = ChatClient(
        "http://testserver",
        render=lambda state: renders.append(state.status),
        http_client=http,
    )
    client.renders = renders
    await client.start()
    yield client
    await client.stop()
    await http.aclose()


class TestChatClient:
    """Tests for ChatClient."""

    @pytest.mark.asyncio
    async def test_full_turn(self, chat_client):
        """Test that a submitted message ends as user + assistant records."""
        assert chat_client.submit("hello") is True
        await asyncio.wait_for(chat_client.wait_idle(), timeout=5.0)

        assert chat_client.records == [
            TranscriptRecord(Role.USER, "hello"),
            TranscriptRecord(Role.ASSISTANT, "Hi"),
        ]
        assert chat_client.state.status is ReducerState.IDLE
        assert chat_client.renders[0] is ReducerState.STREAMING
        assert chat_client.renders[-1] is ReducerState.IDLE

    @pytest.mark.asyncio
    async def test_submit_while_streaming_is_noop(self, chat_client):
        """Test that a second submit during a turn is rejected."""
        assert chat_client.submit("one") is True
        assert chat_client.submit("two") is False
        await asyncio.wait_for(chat_client.wait_idle(), timeout=5.0)

        assert [r.text for r in chat_client.records] == ["one", "Hi"]

    @pytest.mark.asyncio
    async def test_two_turns(self, chat_client):
        """Test that the trailing stream_end does not leak into the next turn."""
        for message in ("one", "two"):
            chat_client.submit(message)
            await asyncio.wait_for(chat_client.wait_idle(), timeout=5.0)

        assert [r.role for r in chat_client.records] == [
            Role.USER,
            Role.ASSISTANT,
            Role.USER,
            Role.ASSISTANT,
        ]

    @pytest.mark.asyncio
    async def test_server_side_error(self, chat_client, scripted_responder):
        """Test that a producer stream_err commits an error record."""
        scripted_responder.events = [chat_char("X"), stream_err("boom")]

        chat_client.submit("x")
        await asyncio.wait_for(chat_client.wait_idle(), timeout=5.0)

        assert chat_client.records[-1] == TranscriptRecord(Role.ERROR, "boom")
        assert all(r.text != "X" for r in chat_client.records)

    @pytest.mark.asyncio
    async def test_rejected_request(self, chat_client):
        """Test that a 400 from the server becomes an error record."""
        # Reducer strips input, so send through the decoder directly
        chat_client.submit("ok")
        await asyncio.wait_for(chat_client.wait_idle(), timeout=5.0)
        await chat_client._decoder.run("   ")
        await asyncio.sleep(0.05)

        assert chat_client.records[-1].role is Role.ERROR
        assert chat_client.records[-1].text.startswith("Server error: 400")

    @pytest.mark.asyncio
    async def test_submit_before_start(self):
        """Test that submitting on an unstarted client raises."""
        client = ChatClient("http://testserver")
        with pytest.raises(RuntimeError):
            client.submit("x")
        await client.stop()


@pytest.mark.asyncio
async def test_unreachable_server():
    """Test that a connection failure shows up as an error record."""

    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    http = httpx.AsyncClient(transport=httpx.MockTransport(refuse))
    client = ChatClient("http://localhost:1", http_client=http)
    await client.start()
    try:
        client.submit("anyone there?")
        await asyncio.wait_for(client.wait_idle(), timeout=5.0)
    finally:
        await client.stop()
        await http.aclose()

    assert client.records[-1].role is Role.ERROR
    assert "Failed to connect to server" in client.records[-1].text


class TestChatClientStreams:
    """Tests for ChatClient against hand-driven response streams."""

    @pytest.mark.asyncio
    async def test_submit_refused_until_previous_stream_closes(self):
        """Test that a turn ended by a bad record keeps the next turn clean."""
        gate = asyncio.Event()
        first = GatedStream(
            ndjson({"type": "chat.char", "data": "A", "timestamp": 1}) + b"{not json}\n",
            ndjson(
                {"type": "chat.char", "data": "Z", "timestamp": 2},
                {"type": "chat.complete", "timestamp": 3},
            ),
            gate,
        )
        second = ndjson(
            {"type": "chat.char", "data": "B", "timestamp": 4},
            {"type": "chat.complete", "timestamp": 5},
        )

        def handler(request: httpx.Request) -> httpx.Response:
            if json.loads(request.content)["message"] == "one":
                return httpx.Response(200, stream=first)
            return httpx.Response(200, content=second)

        http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        client = ChatClient("http://testserver", http_client=http)
        await client.start()
        try:
            assert client.submit("one") is True
            await asyncio.wait_for(
                until(lambda: client.records[-1].role is Role.ERROR), timeout=5.0
            )
            assert client.state.status is ReducerState.IDLE

            # First stream is still open
            assert client.submit("two") is False

            gate.set()
            await asyncio.wait_for(client.wait_idle(), timeout=5.0)
            assert client.submit("two") is True
            await asyncio.wait_for(client.wait_idle(), timeout=5.0)
        finally:
            await client.stop()
            await http.aclose()

        assert [(r.role, r.text) for r in client.records[2:]] == [
            (Role.USER, "two"),
            (Role.ASSISTANT, "B"),
        ]
        assert client.records[1].text.startswith("Failed to decode event")

    @pytest.mark.asyncio
    async def test_stop_mid_stream(self):
        """Test that stop cancels a streaming turn and closes its connection."""
        gate = asyncio.Event()
        stream = GatedStream(
            ndjson({"type": "chat.char", "data": "A", "timestamp": 1}), b"", gate
        )
        http = httpx.AsyncClient(
            transport=httpx.MockTransport(
                lambda request: httpx.Response(200, stream=stream)
            )
        )
        client = ChatClient("http://testserver", http_client=http)
        await client.start()
        try:
            client.submit("x")
            await asyncio.wait_for(
                until(lambda: client.state.buffer == "A"), timeout=5.0
            )
            turn_task = client._turn_task
            reducer_task = client._reducer_task

            await asyncio.wait_for(client.stop(), timeout=5.0)
        finally:
            await http.aclose()

        assert turn_task.cancelled()
        assert reducer_task.cancelled()
        assert stream.closed
        assert client.event_bus.subscriber_count == 0


class TestTranscriptView:
    """Tests for the rich TranscriptView."""

    def test_build_shows_turn_and_cursor(self):
        """Test that the live view shows the turn records and streaming buffer."""
        console = Console(record=True, width=60)
        view = TranscriptView(console)
        state = TranscriptState(
            records=[TranscriptRecord(Role.USER, "hello")],
            buffer="Hi",
            status=ReducerState.STREAMING,
        )

        console.print(view.build(state))

        output = console.export_text()
        assert "hello" in output
        assert "Hi" in output

    def test_live_region_closed_after_turn(self):
        """Test that the live region is stopped when the turn ends."""
        view = TranscriptView(Console(record=True, width=60))
        reducer = TranscriptReducer(render=view.render)

        reducer.submit("hello")
        assert view._live is not None
        reducer.apply(chat_char("H"))
        reducer.apply(chat_complete())

        assert view._live is None
