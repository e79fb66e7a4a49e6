"""Pytest configuration and fixtures for cytube_connector tests."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from cytube_connector.config import ConnectorConfig
from cytube_connector.errors import CytubeNotConnected, CytubeTransportError
from cytube_connector.events import EventBus


@pytest.fixture
def mock_session() -> MagicMock:
    """Create a mock aiohttp ClientSession."""
    import aiohttp

    session = MagicMock(spec=aiohttp.ClientSession)
    session.closed = False
    return session


@pytest.fixture
def config() -> ConnectorConfig:
    """Config for a secure channel with a short handshake window."""
    return ConnectorConfig(
        channel="foo",
        host="cytube.example",
        port=443,
        username="bob",
        auth="hunter2",
        handshake_timeout=0.2,
    )


def create_mock_response(
    status: int = 200,
    json_data: Any = None,
    json_error: Exception | None = None,
) -> AsyncMock:
    """Create a configured mock response.

    Args:
        status: HTTP status code
        json_data: Data to return from json() call
        json_error: Exception raised by json() instead

    Returns:
        Configured AsyncMock response
    """
    response = AsyncMock()
    response.status = status

    if json_error is not None:
        response.json.side_effect = json_error
    else:
        response.json.return_value = json_data

    response.__aenter__.return_value = response
    response.__aexit__.return_value = None

    return response


def socket_config(*servers: dict[str, Any]) -> dict[str, Any]:
    """Build a socket config body."""
    return {"servers": list(servers)}


class FakeTransport:
    """In-memory stand-in for CytubeTransport.

    Records every frame sent and lets a test play the server side with
    server_emit().
    """

    def __init__(self, **kwargs: Any) -> None:
        self.kwargs = kwargs
        self.frames = EventBus(label="fake")
        self.sent: list[tuple[str, tuple[Any, ...]]] = []
        self.url: str | None = None
        self.open_error: Exception | None = None
        self.connected = False
        self.closed = False
        self.close_calls = 0

    async def open(self, url: str) -> None:
        self.url = url
        if self.open_error is not None:
            raise self.open_error
        self.connected = True
        self.frames.emit("connect")

    async def send(self, frame: str, *payload: Any) -> None:
        if self.closed or not self.connected:
            raise CytubeNotConnected("Transport is not connected")
        self.sent.append((frame, payload))

    def on(self, frame: str, listener: Any) -> None:
        self.frames.on(frame, listener)

    def once(self, frame: str, listener: Any) -> None:
        self.frames.once(frame, listener)

    def off(self, frame: str, listener: Any = None) -> None:
        self.frames.off(frame, listener)

    async def drain(self) -> None:
        await self.frames.drain()

    async def close(self) -> None:
        self.close_calls += 1
        self.closed = True
        self.connected = False
        self.frames.clear()

    def server_emit(self, frame: str, *args: Any) -> None:
        """Deliver a frame as if the server had sent it."""
        if not self.closed:
            self.frames.emit(frame, *args)

    def reconnect(self) -> None:
        """Simulate the socket library reconnecting on its own."""
        self.server_emit("connect")

    def transport_error(self, message: str = "boom") -> None:
        self.server_emit("error", CytubeTransportError(message))

    def sent_frames(self) -> list[str]:
        return [frame for frame, _ in self.sent]

    def payloads(self, frame: str) -> list[tuple[Any, ...]]:
        return [payload for name, payload in self.sent if name == frame]


@pytest.fixture
def fake_transport() -> FakeTransport:
    return FakeTransport()


class Recorder:
    """Collects events emitted by a connector or bus."""

    def __init__(self) -> None:
        self.events: list[tuple[str, tuple[Any, ...]]] = []

    def listen(self, target: Any, *names: str) -> Recorder:
        for name in names:
            target.on(name, self._make(name))
        return self

    def _make(self, name: str) -> Any:
        def record(*args: Any) -> None:
            self.events.append((name, args))

        return record

    def names(self) -> list[str]:
        return [name for name, _ in self.events]

    def args_of(self, name: str) -> list[tuple[Any, ...]]:
        return [args for event, args in self.events if event == name]

    def errors(self) -> list[Any]:
        return [args[0] for args in self.args_of("error")]
