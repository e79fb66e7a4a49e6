"""High-level connector for a CyTube channel.

This module provides the consumer-facing API. It handles:
- Socket server lookup over HTTP
- One Socket.IO transport session per connect cycle
- The join/password/login handshake
- Relaying channel frames as events
- Outbound channel commands

Failures during connect() are reported as "error" events carrying a
CytubeClientError; connect() itself does not raise them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import aiohttp

from .config import ConnectorConfig
from .errors import CytubeClientError, CytubeNotConnected, CytubeTransportError
from .events import EventBus, Listener
from .handshake import Handshake, HandshakeState
from .http import CytubeHttpClient
from .protocol import (
    EVENT_CONNECTED,
    EVENT_CONNECTING,
    EVENT_DISCONNECT,
    EVENT_ERROR,
    EVENT_READY,
    EVENT_STARTED,
    EVENT_STARTING,
    FRAME_CONNECT,
    FRAME_ERROR,
)
from .relay import FrameRelay
from .transport import CytubeTransport

_LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class _Session:
    """Everything owned by one connect cycle."""

    transport: CytubeTransport
    handshake: Handshake
    relay: FrameRelay
    url: str
    handshake_attached: bool = False


class CytubeConnector:
    """Connector for one CyTube channel.

    Usage:
        connector = CytubeConnector(
            ConnectorConfig(channel="foo", host="cytu.be", port=443, username="bob")
        )
        connector.on("chatMsg", handle_chat)
        connector.on("error", handle_error)
        await connector.connect()
        await connector.chat("hello")
        await connector.close()
    """

    def __init__(
        self,
        config: ConnectorConfig,
        *,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self.config = config
        self._http_session = session
        self._owns_http_session = session is None

        self._events = EventBus(label=config.channel)
        self._session: _Session | None = None
        self._state = HandshakeState.IDLE
        self._socket_url: str | None = None
        self._generation = 0

    # -------------------------------------------------------------------------
    # Public API: Events
    # -------------------------------------------------------------------------

    def on(self, event: str, listener: Listener) -> CytubeConnector:
        """Register listener for every occurrence of event."""
        self._events.on(event, listener)
        return self

    def once(self, event: str, listener: Listener) -> CytubeConnector:
        """Register listener for the next occurrence of event."""
        self._events.once(event, listener)
        return self

    def off(self, event: str, listener: Listener | None = None) -> CytubeConnector:
        """Remove listener, or all listeners of event."""
        self._events.off(event, listener)
        return self

    def emit(self, event: str, *args: Any) -> bool:
        """Emit event to registered listeners."""
        delivered = self._events.emit(event, *args)
        if event == EVENT_ERROR and not delivered:
            _LOGGER.error(
                "[%s] Unhandled error event: %s",
                self.config.channel,
                args[0] if args else None,
            )
        return delivered

    # -------------------------------------------------------------------------
    # Public API: Connection Management
    # -------------------------------------------------------------------------

    @property
    def state(self) -> HandshakeState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state is HandshakeState.READY

    @property
    def initialized(self) -> bool:
        """True while a transport session exists."""
        return self._session is not None

    @property
    def socket_url(self) -> str | None:
        """Socket URL picked by the most recent lookup."""
        return self._socket_url

    @property
    def transport(self) -> CytubeTransport:
        if self._session is None:
            raise CytubeNotConnected("Not connected")
        return self._session.transport

    async def connect(self) -> CytubeConnector:
        """Look up the socket server, connect and start the channel handshake.

        Progress and failures are reported as events; "ready" fires once the
        channel login succeeds. A later connect() or destroy() supersedes an
        attempt still in progress, which then stops without side effects.
        """
        if self._session is not None:
            await self.destroy()
        self._generation += 1
        generation = self._generation

        self._set_state(HandshakeState.RESOLVING_ENDPOINT)
        _LOGGER.info(
            "[%s] Resolving socket via %s",
            self.config.channel,
            self.config.socket_config_url,
        )
        try:
            url = await CytubeHttpClient(
                self._get_http_session(), self.config
            ).resolve_socket_url()
        except CytubeClientError as err:
            if generation == self._generation:
                self._fail(err)
            return self

        if generation != self._generation:
            _LOGGER.debug("[%s] Connect superseded during lookup", self.config.channel)
            return self

        self._socket_url = url
        session = self._create_session(url)
        self._session = session
        self._set_state(HandshakeState.CONNECTING)
        self.emit(EVENT_CONNECTING)

        _LOGGER.info("[%s] Connecting to %s", self.config.channel, url)
        try:
            await session.transport.open(url)
        except CytubeTransportError as err:
            current = self._session is session
            if current:
                self._session = None
                session.handshake.cancel()
            await session.transport.close()
            if current:
                self._fail(err)
            return self

        if self._session is not session:
            _LOGGER.debug("[%s] Connect superseded during open", self.config.channel)
            await session.transport.close()
        return self

    async def destroy(self) -> None:
        """Tear down the current transport session, if any.

        A connect() still resolving the socket server is abandoned.
        """
        self._generation += 1
        session = self._session
        if session is None:
            if self._state is HandshakeState.RESOLVING_ENDPOINT:
                self._set_state(HandshakeState.DISCONNECTED)
            return

        self._session = None
        _LOGGER.info("[%s] Closing session", self.config.channel)
        session.handshake.cancel()
        session.relay.detach()
        await session.transport.close()
        self._set_state(HandshakeState.DISCONNECTED)
        self.emit(EVENT_DISCONNECT)

    async def close(self) -> None:
        """Destroy the session and release an owned HTTP session."""
        await self.destroy()
        if self._owns_http_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None

    async def wait_idle(self) -> None:
        """Wait for scheduled async listeners to finish."""
        if self._session is not None:
            await self._session.transport.drain()
        await self._events.drain()

    # -------------------------------------------------------------------------
    # Public API: Messages
    # -------------------------------------------------------------------------

    async def chat(self, message: Any) -> None:
        await self._send("chatMsg", message)

    async def pm(self, message: Any) -> None:
        await self._send("pm", message)

    async def get_user_list(self) -> None:
        await self._send("userlist")

    # Polls

    async def create_poll(self, poll: Any) -> None:
        await self._send("newPoll", poll)

    async def close_poll(self) -> None:
        await self._send("closePoll")

    # Channel control

    async def send_options(self, options: Any) -> None:
        await self._send("setOptions", options)

    async def send_permissions(self, permissions: Any) -> None:
        await self._send("setPermissions", permissions)

    async def send_banner(self, banner: Any) -> None:
        await self._send("setMotd", banner)

    # Bans

    async def bans(self) -> None:
        await self._send("requestBanlist")

    async def unban(self, ban: Any) -> None:
        await self._send("unban", ban)

    # Media control

    async def leader(self, name: Any) -> None:
        await self._send("assignLeader", name)

    async def delete_video(self, uid: Any) -> None:
        await self._send("delete", uid)

    async def move(self, position: Any) -> None:
        await self._send("moveMedia", position)

    async def jump(self, uid: Any) -> None:
        await self._send("jumpTo", uid)

    async def shuffle(self) -> None:
        await self._send("shufflePlaylist")

    async def playlist(self) -> None:
        await self._send("requestPlaylist")

    # -------------------------------------------------------------------------
    # Internal: Session
    # -------------------------------------------------------------------------

    def _get_http_session(self) -> aiohttp.ClientSession:
        if self._http_session is None or self._http_session.closed:
            self._http_session = aiohttp.ClientSession()
            self._owns_http_session = True
        return self._http_session

    def _create_session(self, url: str) -> _Session:
        transport = CytubeTransport(
            user_agent=self.config.user_agent,
            http_session=self._http_session,
            label=self.config.channel,
            connect_timeout=self.config.lookup_timeout,
        )
        relay = FrameRelay(transport, self._events, label=self.config.channel)
        handshake = Handshake(
            transport,
            self.config,
            on_state=self._set_state,
            on_starting=lambda: self.emit(EVENT_STARTING),
            on_ready=lambda: self._handle_ready(session),
            on_failure=self._fail,
        )
        session = _Session(transport=transport, handshake=handshake, relay=relay, url=url)

        transport.on(FRAME_CONNECT, lambda: self._handle_transport_connect(session))
        transport.on(FRAME_ERROR, self._handle_transport_error)
        return session

    async def _handle_transport_connect(self, session: _Session) -> None:
        if session is not self._session:
            return
        if session.handshake_attached:
            _LOGGER.info("[%s] Transport reconnected", self.config.channel)
            return

        session.handshake_attached = True
        self.emit(EVENT_CONNECTED)
        await session.handshake.start()

    def _handle_transport_error(self, err: Any) -> None:
        if not isinstance(err, CytubeClientError):
            err = CytubeTransportError(str(err))
        self.emit(EVENT_ERROR, err)

    def _handle_ready(self, session: _Session) -> None:
        if session is not self._session:
            return
        session.relay.attach()
        _LOGGER.info("[%s] Channel ready", self.config.channel)
        self.emit(EVENT_STARTED)
        self.emit(EVENT_READY)

    def _fail(self, err: CytubeClientError) -> None:
        self._set_state(HandshakeState.FAILED)
        self.emit(EVENT_ERROR, err)

    def _set_state(self, state: HandshakeState) -> None:
        if self._state is not state:
            _LOGGER.debug(
                "[%s] Connector state: %s → %s",
                self.config.channel,
                self._state.value,
                state.value,
            )
            self._state = state

    async def _send(self, frame: str, *payload: Any) -> None:
        if self._session is None:
            raise CytubeNotConnected("Not connected")
        await self._session.transport.send(frame, *payload)
