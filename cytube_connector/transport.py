"""Socket.IO transport session for a CyTube channel."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Final

import aiohttp
import socketio
from socketio.exceptions import SocketIOError

from .errors import CytubeNotConnected, CytubeTransportError
from .events import EventBus, Listener
from .protocol import FRAME_CONNECT, FRAME_DISCONNECT, FRAME_ERROR

_LOGGER = logging.getLogger(__name__)

# Sentinel for frames sent without a payload
_NO_PAYLOAD: Final = object()

CLOSE_TIMEOUT: Final = 2.0


class CytubeTransport:
    """Named-frame duplex channel over one python-socketio AsyncClient.

    Inbound frames, including the connect/disconnect/error notices of the
    underlying client, are delivered through a private EventBus. Once
    close() is called nothing more is delivered.
    """

    def __init__(
        self,
        *,
        user_agent: str,
        http_session: aiohttp.ClientSession | None = None,
        label: str = "-",
        connect_timeout: float = 20.0,
    ) -> None:
        self._user_agent = user_agent
        self._label = label
        self._connect_timeout = connect_timeout
        self._frames = EventBus(label=label)
        self._closed = False
        self._opening = False
        self._open_error: Any = None
        self._url: str | None = None

        kwargs: dict[str, Any] = {"reconnection": True}
        if http_session is not None:
            kwargs["http_session"] = http_session
        self._sio = socketio.AsyncClient(**kwargs)
        self._sio.on("connect", self._on_connect)
        self._sio.on("disconnect", self._on_disconnect)
        self._sio.on("connect_error", self._on_connect_error)
        self._sio.on("*", self._on_frame)

    @property
    def url(self) -> str | None:
        return self._url

    @property
    def connected(self) -> bool:
        return not self._closed and bool(self._sio.connected)

    @property
    def closed(self) -> bool:
        return self._closed

    async def open(self, url: str) -> None:
        """Connect the channel to url.

        Raises:
            CytubeTransportError: If the initial connection fails
        """
        if self._closed:
            raise CytubeTransportError("Transport session already closed")

        self._url = url
        self._opening = True
        self._open_error = None
        _LOGGER.debug("[%s] Opening socket %s", self._label, url)
        try:
            await self._sio.connect(
                url,
                headers={"User-Agent": self._user_agent},
                wait_timeout=self._connect_timeout,
            )
        except SocketIOError as err:
            detail = self._open_error if self._open_error is not None else err
            raise CytubeTransportError(f"Socket connection failed: {detail}") from err
        except (OSError, aiohttp.ClientError) as err:
            raise CytubeTransportError("Socket connection failed") from err
        finally:
            self._opening = False

    async def send(self, frame: str, payload: Any = _NO_PAYLOAD) -> None:
        """Emit one frame, with payload when given.

        Raises:
            CytubeNotConnected: If the channel is not open
        """
        if self._closed or not self._sio.connected:
            raise CytubeNotConnected("Transport is not connected")

        if payload is _NO_PAYLOAD:
            await self._sio.emit(frame)
        else:
            await self._sio.emit(frame, payload)
        _LOGGER.debug("[%s] Sent %s", self._label, frame)

    def on(self, frame: str, listener: Listener) -> None:
        self._frames.on(frame, listener)

    def once(self, frame: str, listener: Listener) -> None:
        self._frames.once(frame, listener)

    def off(self, frame: str, listener: Listener | None = None) -> None:
        self._frames.off(frame, listener)

    async def drain(self) -> None:
        """Wait for async frame listeners to finish."""
        await self._frames.drain()

    async def close(self) -> None:
        """Stop frame delivery and drop the connection. Safe to call twice."""
        if self._closed:
            return
        self._closed = True
        self._frames.clear()

        if not self._url:
            return

        _LOGGER.debug("[%s] Closing socket %s", self._label, self._url)
        try:
            await asyncio.wait_for(self._sio.disconnect(), timeout=CLOSE_TIMEOUT)
        except TimeoutError:
            _LOGGER.warning("[%s] Socket close timed out", self._label)

    # -------------------------------------------------------------------------
    # Internal: socketio handlers
    # -------------------------------------------------------------------------

    def _deliver(self, frame: str, *args: Any) -> None:
        if self._closed:
            return
        self._frames.emit(frame, *args)

    def _on_connect(self) -> None:
        _LOGGER.debug("[%s] Socket connected", self._label)
        self._deliver(FRAME_CONNECT)

    def _on_disconnect(self, *args: Any) -> None:
        _LOGGER.debug("[%s] Socket disconnected %s", self._label, args)
        self._deliver(FRAME_DISCONNECT, *args)

    def _on_connect_error(self, data: Any = None) -> None:
        if self._opening:
            # Reported once by open() instead
            self._open_error = data
            return
        _LOGGER.warning("[%s] Socket error: %s", self._label, data)
        self._deliver(FRAME_ERROR, CytubeTransportError(f"Socket error: {data}"))

    def _on_frame(self, frame: str, *args: Any) -> None:
        self._deliver(frame, *args)
