"""Tests for the socket config lookup (CytubeHttpClient)."""

from __future__ import annotations

import json
from unittest.mock import MagicMock

import aiohttp
import pytest

from cytube_connector.config import ConnectorConfig
from cytube_connector.errors import CytubeLookupError, CytubeNoSuitableEndpoint
from cytube_connector.http import CytubeHttpClient
from cytube_connector.protocol import EndpointCandidate

from .conftest import create_mock_response, socket_config


@pytest.fixture
def client_config() -> ConnectorConfig:
    return ConnectorConfig(
        channel="foo",
        host="cytube.example",
        port=443,
        username="bob",
        user_agent="test-agent/1.0",
    )


class TestFetchSocketConfig:
    """Tests for fetch_socket_config()."""

    async def test_request_shape(self, mock_session: MagicMock, client_config) -> None:
        """Test GET goes to the socketconfig URL with agent and timeout."""
        mock_session.get.return_value = create_mock_response(
            json_data=socket_config({"url": "https://a:8443", "secure": True})
        )
        client = CytubeHttpClient(mock_session, client_config)

        candidates = await client.fetch_socket_config()

        assert candidates == [EndpointCandidate("https://a:8443", True)]
        mock_session.get.assert_called_once()
        call_args = mock_session.get.call_args
        assert call_args.args[0] == "https://cytube.example:443/socketconfig/foo.json"
        assert call_args.kwargs["headers"] == {"User-Agent": "test-agent/1.0"}
        timeout = call_args.kwargs["timeout"]
        assert isinstance(timeout, aiohttp.ClientTimeout)
        assert timeout.total == 20.0

    async def test_insecure_uses_http(self, mock_session: MagicMock) -> None:
        """Test insecure configs look up over http."""
        config = ConnectorConfig(
            channel="foo", host="cytube.example", port=8080, username="bob", secure=False
        )
        mock_session.get.return_value = create_mock_response(json_data=socket_config())
        await CytubeHttpClient(mock_session, config).fetch_socket_config()

        assert (
            mock_session.get.call_args.args[0]
            == "http://cytube.example:8080/socketconfig/foo.json"
        )

    async def test_timeout_raises_lookup_error(
        self, mock_session: MagicMock, client_config
    ) -> None:
        """Test timeouts surface as CytubeLookupError."""
        mock_session.get.side_effect = TimeoutError("Request timed out")

        with pytest.raises(CytubeLookupError, match="timed out"):
            await CytubeHttpClient(mock_session, client_config).fetch_socket_config()

    async def test_client_error_raises_lookup_error(
        self, mock_session: MagicMock, client_config
    ) -> None:
        """Test aiohttp failures surface as CytubeLookupError."""
        mock_session.get.side_effect = aiohttp.ClientConnectionError("refused")

        with pytest.raises(CytubeLookupError, match="Socket lookup failure"):
            await CytubeHttpClient(mock_session, client_config).fetch_socket_config()

    async def test_non_200_raises_lookup_error(
        self, mock_session: MagicMock, client_config
    ) -> None:
        """Test HTTP error statuses surface as CytubeLookupError."""
        mock_session.get.return_value = create_mock_response(status=404)

        with pytest.raises(CytubeLookupError, match="HTTP 404"):
            await CytubeHttpClient(mock_session, client_config).fetch_socket_config()

    async def test_invalid_json_raises_lookup_error(
        self, mock_session: MagicMock, client_config
    ) -> None:
        """Test unparsable bodies surface as CytubeLookupError."""
        mock_session.get.return_value = create_mock_response(
            json_error=json.JSONDecodeError("Expecting value", "<html>", 0)
        )

        with pytest.raises(CytubeLookupError, match="invalid JSON"):
            await CytubeHttpClient(mock_session, client_config).fetch_socket_config()

    async def test_malformed_body_raises_lookup_error(
        self, mock_session: MagicMock, client_config
    ) -> None:
        """Test well-formed JSON of the wrong shape is rejected."""
        mock_session.get.return_value = create_mock_response(json_data={"nope": []})

        with pytest.raises(CytubeLookupError, match="Malformed socket config"):
            await CytubeHttpClient(mock_session, client_config).fetch_socket_config()


class TestResolveSocketUrl:
    """Tests for resolve_socket_url()."""

    async def test_selects_first_matching_in_list_order(
        self, mock_session: MagicMock, client_config
    ) -> None:
        """Test wss://a wins over wss://b when both are secure."""
        mock_session.get.return_value = create_mock_response(
            json_data=socket_config(
                {"url": "wss://a", "secure": True},
                {"url": "wss://b", "secure": True},
            )
        )

        url = await CytubeHttpClient(mock_session, client_config).resolve_socket_url()
        assert url == "wss://a"

    async def test_skips_ipv6_and_wrong_security(
        self, mock_session: MagicMock, client_config
    ) -> None:
        mock_session.get.return_value = create_mock_response(
            json_data=socket_config(
                {"url": "ws://plain", "secure": False},
                {"url": "wss://v6", "secure": True, "ipv6": True},
                {"url": "wss://v4", "secure": True},
            )
        )

        url = await CytubeHttpClient(mock_session, client_config).resolve_socket_url()
        assert url == "wss://v4"

    async def test_url_checked_only_on_selected_entry(
        self, mock_session: MagicMock, client_config
    ) -> None:
        """Test url-less ipv6 and plain entries do not fail the lookup."""
        mock_session.get.return_value = create_mock_response(
            json_data=socket_config(
                {"secure": False},
                {"secure": True, "ipv6": True},
                {"url": "wss://v4", "secure": True},
            )
        )

        url = await CytubeHttpClient(mock_session, client_config).resolve_socket_url()
        assert url == "wss://v4"

    async def test_selected_entry_without_url(
        self, mock_session: MagicMock, client_config
    ) -> None:
        mock_session.get.return_value = create_mock_response(
            json_data=socket_config({"url": "", "secure": True})
        )

        with pytest.raises(CytubeLookupError, match="Malformed socket config"):
            await CytubeHttpClient(mock_session, client_config).resolve_socket_url()

    async def test_no_suitable_endpoint(
        self, mock_session: MagicMock, client_config
    ) -> None:
        """Test a list without a match raises CytubeNoSuitableEndpoint."""
        mock_session.get.return_value = create_mock_response(
            json_data=socket_config(
                {"url": "ws://plain", "secure": False},
                {"url": "wss://v6", "secure": True, "ipv6": True},
            )
        )

        with pytest.raises(CytubeNoSuitableEndpoint, match="No suitable socket"):
            await CytubeHttpClient(mock_session, client_config).resolve_socket_url()

    async def test_empty_list(self, mock_session: MagicMock, client_config) -> None:
        mock_session.get.return_value = create_mock_response(json_data=socket_config())

        with pytest.raises(CytubeNoSuitableEndpoint):
            await CytubeHttpClient(mock_session, client_config).resolve_socket_url()

    async def test_lookup_is_not_retried(
        self, mock_session: MagicMock, client_config
    ) -> None:
        """Test a failed lookup is reported after a single request."""
        mock_session.get.side_effect = TimeoutError()

        with pytest.raises(CytubeLookupError):
            await CytubeHttpClient(mock_session, client_config).resolve_socket_url()
        assert mock_session.get.call_count == 1
