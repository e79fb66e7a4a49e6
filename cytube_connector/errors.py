"""Client error types for CyTube channel connections."""

from __future__ import annotations


class CytubeClientError(Exception):
    """Base error for CyTube connector failures."""


class CytubeConfigError(CytubeClientError, ValueError):
    """Connector configuration is missing a required option."""


class CytubeLookupError(CytubeClientError):
    """Socket config lookup failed (network error, timeout or bad body)."""


class CytubeNoSuitableEndpoint(CytubeClientError):
    """No socket server in the lookup response matches the connection."""


class CytubePasswordRequired(CytubeClientError):
    """Channel asked for a password but none is configured."""


class CytubeLoginFailure(CytubeClientError):
    """Login result frame was missing or malformed."""


class CytubeLoginRejected(CytubeClientError):
    """Server explicitly rejected the channel login."""

    def __init__(self, message: str, reason: str | None = None) -> None:
        super().__init__(message)
        self.reason = reason


class CytubeHandshakeTimeout(CytubeClientError, TimeoutError):
    """Channel handshake did not complete within the allowed window."""


class CytubeNotConnected(CytubeClientError):
    """Operation requires a live transport session."""


class CytubeTransportError(CytubeClientError):
    """Low-level fault reported by the socket transport."""
