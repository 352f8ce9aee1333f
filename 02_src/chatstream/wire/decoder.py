"""Stream decoder: reads an NDJSON chat stream and republishes its events."""

import asyncio

import httpx

from ..event_bus import IEventBus
from ..logging_config import get_logger
from ..models import Event, stream_end, stream_err
from .codec import DecodeError, decode_line

logger = get_logger(__name__)


class StreamDecoder:
    """Opens a chat stream and republishes each record onto a local bus.

    Failures never raise out of ``run``; they become ``stream_err`` events:

    - connection failure or non-200 status: one ``stream_err``, nothing read
    - malformed line: ``stream_err``, reading continues
    - read error mid-stream: ``stream_err``, reading stops
    - end of input: ``stream_end``
    """

    def __init__(
        self,
        event_bus: IEventBus,
        base_url: str,
        connect_timeout: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self._event_bus = event_bus
        self._base_url = base_url.rstrip("/")
        # Only connection setup is bounded; a turn may stream for a long time
        self._timeout = httpx.Timeout(None, connect=connect_timeout)
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=self._timeout)

    @property
    def url(self) -> str:
        return f"{self._base_url}/chat"

    async def run(self, message: str) -> None:
        """Stream one turn for message onto the local bus."""
        opened = False
        try:
            async with self._client.stream(
                "POST",
                self.url,
                json={"message": message},
                timeout=self._timeout,
            ) as response:
                opened = True
                if response.status_code != httpx.codes.OK:
                    logger.warning(
                        "Chat request rejected: %s %s",
                        response.status_code,
                        response.reason_phrase,
                    )
                    self._publish(
                        stream_err(
                            f"Server error: {response.status_code} "
                            f"{response.reason_phrase}".rstrip()
                        )
                    )
                    return

                async for line in response.aiter_lines():
                    if not line.strip():
                        continue
                    try:
                        event = decode_line(line)
                    except DecodeError as e:
                        logger.warning("Skipping malformed record: %s", e)
                        self._publish(stream_err(f"Failed to decode event: {e}"))
                    else:
                        self._publish(event)
                    # Let the local subscribers drain before the next record
                    await asyncio.sleep(0)

        except (httpx.HTTPError, httpx.StreamError, httpx.InvalidURL) as e:
            if not opened:
                logger.error("Failed to connect to %s: %s", self.url, e)
                self._publish(
                    stream_err(
                        f"Failed to connect to server. Make sure the backend is "
                        f"running on {self._base_url}!"
                    )
                )
            else:
                logger.error("Stream read error from %s: %s", self.url, e)
                self._publish(stream_err(f"Stream read error: {e}"))
            return

        self._publish(stream_end())

    async def aclose(self) -> None:
        """Close the HTTP client if this decoder created it."""
        if self._owns_client:
            await self._client.aclose()

    def _publish(self, event: Event) -> None:
        self._event_bus.publish(event)
