"""Frame names and payload helpers for the CyTube channel protocol."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Final

# Handshake frames (server -> client)
FRAME_NEED_PASSWORD: Final = "needPassword"
FRAME_RANK: Final = "rank"
FRAME_LOGIN: Final = "login"

# Handshake frames (client -> server)
FRAME_JOIN_CHANNEL: Final = "joinChannel"
FRAME_CHANNEL_PASSWORD: Final = "channelPassword"

# Transport pseudo-frames
FRAME_CONNECT: Final = "connect"
FRAME_DISCONNECT: Final = "disconnect"
FRAME_ERROR: Final = "error"

# Connector lifecycle events
EVENT_CONNECTING: Final = "connecting"
EVENT_CONNECTED: Final = "connected"
EVENT_STARTING: Final = "starting"
EVENT_STARTED: Final = "started"
EVENT_READY: Final = "ready"
EVENT_ERROR: Final = "error"
EVENT_DISCONNECT: Final = "disconnect"

# Inbound frames relayed to the consumer once the channel is ready.
FRAME_CATALOG: Final[tuple[str, ...]] = (
    "disconnect",
    # user session
    "announcement",
    "clearVoteskipVote",
    "kick",
    "login",
    "setAFK",
    # channel
    "addFilterSuccess",
    "addUser",
    "banlist",
    "banlistRemove",
    "cancelNeedPassword",
    "changeMedia",
    "channelCSSJS",
    "channelNotRegistered",
    "channelOpts",
    "channelRankFail",
    "channelRanks",
    "chatFilters",
    "chatMsg",
    "clearchat",
    "clearFlag",
    "closePoll",
    "cooldown",
    "costanza",
    "delete",
    "deleteChatFilter",
    "drinkCount",
    "emoteList",
    "empty",
    "errorMsg",
    "listPlaylists",
    "loadFail",
    "mediaUpdate",
    "moveVideo",
    "needPassword",
    "newPoll",
    "noflood",
    "playlist",
    "pm",
    "queue",
    "queueFail",
    "queueWarn",
    "rank",
    "readChanLog",
    "removeEmote",
    "renameEmote",
    "searchResults",
    "setCurrent",
    "setFlag",
    "setLeader",
    "setMotd",
    "setPermissions",
    "setPlaylistLocked",
    "setPlaylistMeta",
    "setTemp",
    "setUserMeta",
    "setUserProfile",
    "setUserRank",
    "spamFiltered",
    "updateChatFilter",
    "updateEmote",
    "updatePoll",
    "usercount",
    "userLeave",
    "userlist",
    "validationError",
    "validationPassed",
    "voteskip",
    "warnLargeChandump",
)

FRAME_CATALOG_SET: Final[frozenset[str]] = frozenset(FRAME_CATALOG)


def is_catalog_frame(name: str) -> bool:
    """Return True when name is relayed to consumers."""
    return name in FRAME_CATALOG_SET


@dataclass(frozen=True, slots=True)
class EndpointCandidate:
    """One socket server entry from the socket config lookup."""

    url: str | None
    secure: bool
    ipv6: bool = False


def parse_socket_config(data: Any) -> list[EndpointCandidate]:
    """Parse a socket config body into endpoint candidates.

    Expected shape: {"servers": [{"url": str, "secure": bool, "ipv6"?: any}]}

    Any "ipv6" key marks the entry as an IPv6 server, whatever its value.
    Entry urls are checked only when the entry is selected.

    Raises:
        ValueError: If the body does not have the expected shape
    """
    if not isinstance(data, Mapping):
        raise ValueError("Socket config body must be an object")

    servers = data.get("servers")
    if not isinstance(servers, Sequence) or isinstance(servers, (str, bytes)):
        raise ValueError("Socket config body requires a servers list")

    candidates: list[EndpointCandidate] = []
    for idx, server in enumerate(servers):
        if not isinstance(server, Mapping):
            raise ValueError(f"Server entry at index {idx} must be an object")
        candidates.append(
            EndpointCandidate(
                url=server.get("url"),
                secure=server.get("secure") is True,
                ipv6="ipv6" in server,
            )
        )
    return candidates


def select_endpoint(
    candidates: Sequence[EndpointCandidate], *, secure: bool
) -> str | None:
    """Pick the socket URL to connect to.

    The list is scanned from the end and every match overwrites the previous
    pick, so the surviving URL is the match nearest the start of the list.

    Raises:
        ValueError: If the selected entry has no usable url
    """
    selected: EndpointCandidate | None = None
    for candidate in reversed(candidates):
        if candidate.secure == secure and not candidate.ipv6:
            selected = candidate
    if selected is None:
        return None
    if not isinstance(selected.url, str) or not selected.url:
        raise ValueError("Selected server entry has no url")
    return selected.url


def build_join_channel(channel: str) -> dict[str, Any]:
    """Build the joinChannel payload."""
    return {"name": channel}


def build_login(username: str, auth: str | None) -> dict[str, Any]:
    """Build the login payload; auth None logs in without an account password."""
    return {"name": username, "pw": auth}


@dataclass(frozen=True, slots=True)
class LoginResult:
    """Parsed login frame body."""

    success: bool
    name: str | None = None
    error: str | None = None


def parse_login_result(data: Any) -> LoginResult:
    """Parse a login frame body.

    Raises:
        ValueError: If the body is missing or is not an object
    """
    if not isinstance(data, Mapping):
        raise ValueError("Login frame body must be an object")

    name = data.get("name")
    error = data.get("error")
    return LoginResult(
        success=bool(data.get("success")),
        name=name if isinstance(name, str) else None,
        error=error if isinstance(error, str) else None,
    )
