"""Channel join/login handshake for a CyTube transport session.

One Handshake drives one transport session from the join request to a
logged-in channel:

    joinChannel -> [needPassword -> channelPassword] -> rank -> login -> ready

Each server frame in that sequence is consumed at most once. A single timer
armed with the join request bounds the whole exchange. Failures are reported
through the on_failure callback; the handshake never retries by itself.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from enum import Enum
from typing import TYPE_CHECKING, Any

from .errors import (
    CytubeClientError,
    CytubeHandshakeTimeout,
    CytubeLoginFailure,
    CytubeLoginRejected,
    CytubePasswordRequired,
)
from .protocol import (
    FRAME_CHANNEL_PASSWORD,
    FRAME_JOIN_CHANNEL,
    FRAME_LOGIN,
    FRAME_NEED_PASSWORD,
    FRAME_RANK,
    build_join_channel,
    build_login,
    parse_login_result,
)

if TYPE_CHECKING:
    from .config import ConnectorConfig
    from .transport import CytubeTransport

_LOGGER = logging.getLogger(__name__)


class HandshakeState(Enum):
    """Connection states of one connect cycle."""

    IDLE = "idle"
    RESOLVING_ENDPOINT = "resolving_endpoint"
    CONNECTING = "connecting"
    AWAITING_PASSWORD_CHALLENGE = "awaiting_password_challenge"
    AWAITING_RANK_ASSIGNMENT = "awaiting_rank_assignment"
    AWAITING_LOGIN_RESULT = "awaiting_login_result"
    READY = "ready"
    FAILED = "failed"
    DISCONNECTED = "disconnected"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_STATES


_TERMINAL_STATES = frozenset(
    {HandshakeState.READY, HandshakeState.FAILED, HandshakeState.DISCONNECTED}
)


class Handshake:
    """Join/login state machine bound to one transport session."""

    def __init__(
        self,
        transport: CytubeTransport,
        config: ConnectorConfig,
        *,
        on_state: Callable[[HandshakeState], None] | None = None,
        on_starting: Callable[[], None] | None = None,
        on_ready: Callable[[], None] | None = None,
        on_failure: Callable[[CytubeClientError], None] | None = None,
    ) -> None:
        self._transport = transport
        self._config = config
        self._on_state = on_state
        self._on_starting = on_starting
        self._on_ready = on_ready
        self._on_failure = on_failure

        self._state = HandshakeState.IDLE
        self._timer: asyncio.TimerHandle | None = None
        self._started = False

    @property
    def state(self) -> HandshakeState:
        return self._state

    @property
    def timer_armed(self) -> bool:
        return self._timer is not None

    async def start(self) -> None:
        """Register the one-shot frame handlers and request the channel."""
        if self._started:
            _LOGGER.debug("[%s] Handshake already started", self._config.channel)
            return
        self._started = True
        self._set_state(HandshakeState.CONNECTING)

        # Listen before sending so no reply can slip past
        self._transport.once(FRAME_NEED_PASSWORD, self._handle_need_password)
        self._transport.once(FRAME_RANK, self._handle_rank)
        self._transport.once(FRAME_LOGIN, self._handle_login)

        self._timer = asyncio.get_running_loop().call_later(
            self._config.handshake_timeout, self._handle_timeout
        )
        self._set_state(HandshakeState.AWAITING_RANK_ASSIGNMENT)

        _LOGGER.info("[%s] Joining channel", self._config.channel)
        try:
            await self._transport.send(
                FRAME_JOIN_CHANNEL, build_join_channel(self._config.channel)
            )
        except CytubeClientError as err:
            self._fail(err)
            return

        if self._on_starting and not self._state.is_terminal:
            self._on_starting()

    def cancel(self) -> None:
        """Abandon the handshake; later frames are ignored."""
        self._cancel_timer()
        self._set_state(HandshakeState.DISCONNECTED)

    # -------------------------------------------------------------------------
    # Internal: frame handlers
    # -------------------------------------------------------------------------

    async def _handle_need_password(self, *_args: Any) -> None:
        if self._state.is_terminal:
            return

        if not self._config.has_password:
            _LOGGER.error(
                "[%s] Channel requires a password but none is configured",
                self._config.channel,
            )
            self._fail(CytubePasswordRequired("Channel requires password"))
            return

        self._set_state(HandshakeState.AWAITING_PASSWORD_CHALLENGE)
        try:
            await self._transport.send(FRAME_CHANNEL_PASSWORD, self._config.password)
        except CytubeClientError as err:
            self._fail(err)

    async def _handle_rank(self, *_args: Any) -> None:
        if self._state.is_terminal:
            return

        self._set_state(HandshakeState.AWAITING_LOGIN_RESULT)
        try:
            await self._transport.send(
                FRAME_LOGIN, build_login(self._config.username, self._config.auth)
            )
        except CytubeClientError as err:
            self._fail(err)

    def _handle_login(self, *args: Any) -> None:
        if self._state.is_terminal:
            return

        data = args[0] if args else None
        try:
            result = parse_login_result(data)
        except ValueError as err:
            self._fail(CytubeLoginFailure(f"Malformed login frame received: {err}"))
            return

        if not result.success:
            message = "Channel login failure"
            if result.error:
                message = f"{message}: {result.error}"
            self._fail(CytubeLoginRejected(message, reason=result.error))
            return

        self._cancel_timer()
        self._set_state(HandshakeState.READY)
        _LOGGER.info(
            "[%s] Logged in as %s",
            self._config.channel,
            result.name or self._config.username,
        )
        if self._on_ready:
            self._on_ready()

    def _handle_timeout(self) -> None:
        self._timer = None
        if self._state.is_terminal:
            return
        self._fail(
            CytubeHandshakeTimeout(
                "Channel connection failure - no response within "
                f"{self._config.handshake_timeout:g} seconds"
            )
        )

    # -------------------------------------------------------------------------
    # Internal: state
    # -------------------------------------------------------------------------

    def _fail(self, err: CytubeClientError) -> None:
        if self._state.is_terminal:
            return
        self._cancel_timer()
        self._set_state(HandshakeState.FAILED)
        _LOGGER.error("[%s] Handshake failed: %s", self._config.channel, err)
        if self._on_failure:
            self._on_failure(err)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _set_state(self, state: HandshakeState) -> None:
        if self._state is state:
            return
        _LOGGER.debug(
            "[%s] State: %s → %s", self._config.channel, self._state.value, state.value
        )
        self._state = state
        if self._on_state:
            self._on_state(state)
