"""Connection configuration for CyTube channel connectors."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Final

from .errors import CytubeConfigError

DEFAULT_USER_AGENT: Final = "cytube-client"
DEFAULT_LOOKUP_TIMEOUT: Final = 20.0
DEFAULT_HANDSHAKE_TIMEOUT: Final = 60.0

_REQUIRED_FIELDS: Final = ("channel", "host", "port", "username")

# Legacy short option names -> ConnectorConfig field names
_OPTION_ALIASES: Final = {
    "chan": "channel",
    "host": "host",
    "port": "port",
    "user": "username",
    "secure": "secure",
    "pass": "password",
    "auth": "auth",
    "agent": "user_agent",
}


@dataclass(frozen=True, slots=True)
class ConnectorConfig:
    """Immutable settings for one connector instance.

    Attributes:
        channel: Channel name to join
        host: Hostname serving the socket config lookup
        port: Port serving the socket config lookup
        username: Account name sent with the login frame
        secure: Use https for the lookup and pick secure socket servers
        password: Channel password, answered when the server asks for one
        auth: Account password/token sent with the login frame
        user_agent: User-Agent header sent with every request
        lookup_timeout: Socket config lookup timeout (seconds)
        handshake_timeout: Join-to-login completion window (seconds)
    """

    channel: str
    host: str
    port: int
    username: str
    secure: bool = True
    password: str | None = None
    auth: str | None = None
    user_agent: str = DEFAULT_USER_AGENT
    lookup_timeout: float = DEFAULT_LOOKUP_TIMEOUT
    handshake_timeout: float = DEFAULT_HANDSHAKE_TIMEOUT

    def __post_init__(self) -> None:
        for name in _REQUIRED_FIELDS:
            if not getattr(self, name):
                raise CytubeConfigError(f'Parameter "{name}" is required')
        if self.lookup_timeout <= 0 or self.handshake_timeout <= 0:
            raise CytubeConfigError("Timeouts must be positive")

    @classmethod
    def from_options(cls, options: Mapping[str, Any]) -> ConnectorConfig:
        """Build a config from the short option names (chan, user, pass, ...).

        Unknown keys are rejected so typos do not silently fall back to
        defaults. Options set to None keep the field default.
        """
        kwargs: dict[str, Any] = {}
        for key, value in options.items():
            field_name = _OPTION_ALIASES.get(key)
            if field_name is None:
                raise CytubeConfigError(f'Unknown option "{key}"')
            if value is not None:
                kwargs[field_name] = value

        missing = [name for name in _REQUIRED_FIELDS if name not in kwargs]
        if missing:
            raise CytubeConfigError(f'Parameter "{missing[0]}" is required')
        return cls(**kwargs)

    @property
    def scheme(self) -> str:
        return "https" if self.secure else "http"

    @property
    def socket_config_url(self) -> str:
        """URL of the channel's socket server list."""
        return (
            f"{self.scheme}://{self.host}:{self.port}"
            f"/socketconfig/{self.channel}.json"
        )

    @property
    def has_password(self) -> bool:
        return isinstance(self.password, str) and bool(self.password)
