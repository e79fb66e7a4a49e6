"""Client connector for CyTube channels."""

__version__ = "0.1.0"

from .config import ConnectorConfig
from .connector import CytubeConnector
from .errors import (
    CytubeClientError,
    CytubeConfigError,
    CytubeHandshakeTimeout,
    CytubeLoginFailure,
    CytubeLoginRejected,
    CytubeLookupError,
    CytubeNoSuitableEndpoint,
    CytubeNotConnected,
    CytubePasswordRequired,
    CytubeTransportError,
)
from .events import EventBus
from .handshake import Handshake, HandshakeState
from .http import CytubeHttpClient
from .protocol import (
    FRAME_CATALOG,
    FRAME_CATALOG_SET,
    EndpointCandidate,
    parse_socket_config,
    select_endpoint,
)
from .relay import FrameRelay
from .transport import CytubeTransport

__all__ = [
    "FRAME_CATALOG",
    "FRAME_CATALOG_SET",
    "ConnectorConfig",
    "CytubeClientError",
    "CytubeConfigError",
    "CytubeConnector",
    "CytubeHandshakeTimeout",
    "CytubeHttpClient",
    "CytubeLoginFailure",
    "CytubeLoginRejected",
    "CytubeLookupError",
    "CytubeNoSuitableEndpoint",
    "CytubeNotConnected",
    "CytubePasswordRequired",
    "CytubeTransport",
    "CytubeTransportError",
    "EndpointCandidate",
    "EventBus",
    "FrameRelay",
    "Handshake",
    "HandshakeState",
    "__version__",
    "parse_socket_config",
    "select_endpoint",
]
