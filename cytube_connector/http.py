"""HTTP client for the CyTube socket config lookup."""

from __future__ import annotations

import logging

import aiohttp

from .config import ConnectorConfig
from .errors import CytubeLookupError, CytubeNoSuitableEndpoint
from .protocol import EndpointCandidate, parse_socket_config, select_endpoint

_LOGGER = logging.getLogger(__name__)


class CytubeHttpClient:
    """HTTP client wrapper for the channel socket config endpoint."""

    def __init__(self, session: aiohttp.ClientSession, config: ConnectorConfig) -> None:
        self._session = session
        self._config = config

    def _headers(self) -> dict[str, str]:
        return {"User-Agent": self._config.user_agent}

    async def fetch_socket_config(self) -> list[EndpointCandidate]:
        """Fetch the channel's socket server list.

        Raises:
            CytubeLookupError: If the request fails, times out, returns a
                non-200 status, or the body cannot be parsed
        """
        url = self._config.socket_config_url
        try:
            async with self._session.get(
                url,
                headers=self._headers(),
                timeout=aiohttp.ClientTimeout(total=self._config.lookup_timeout),
            ) as resp:
                if resp.status != 200:
                    raise CytubeLookupError(
                        f"Socket lookup failure - HTTP {resp.status}"
                    )
                data = await resp.json(content_type=None)
        except TimeoutError as err:
            raise CytubeLookupError("Socket lookup timed out") from err
        except aiohttp.ClientError as err:
            raise CytubeLookupError("Socket lookup failure") from err
        except ValueError as err:
            raise CytubeLookupError("Socket lookup returned invalid JSON") from err

        try:
            return parse_socket_config(data)
        except ValueError as err:
            raise CytubeLookupError(f"Malformed socket config: {err}") from err

    async def resolve_socket_url(self) -> str:
        """Resolve the socket URL matching the configured security setting.

        Raises:
            CytubeLookupError: If the lookup fails or the chosen entry has no url
            CytubeNoSuitableEndpoint: If no server entry matches
        """
        candidates = await self.fetch_socket_config()
        try:
            url = select_endpoint(candidates, secure=self._config.secure)
        except ValueError as err:
            raise CytubeLookupError(f"Malformed socket config: {err}") from err
        if url is None:
            raise CytubeNoSuitableEndpoint(
                f"No suitable socket available ({len(candidates)} servers, "
                f"secure={self._config.secure})"
            )

        _LOGGER.debug(
            "[%s] Selected socket %s from %d servers",
            self._config.channel,
            url,
            len(candidates),
        )
        return url
