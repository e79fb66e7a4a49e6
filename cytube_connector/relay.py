"""Pass-through relay of inbound channel frames onto a consumer event bus."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from .protocol import FRAME_CATALOG, is_catalog_frame

if TYPE_CHECKING:
    from .events import EventBus, Listener
    from .transport import CytubeTransport

_LOGGER = logging.getLogger(__name__)


class FrameRelay:
    """Re-emits each catalog frame under the same name with the same args.

    Only catalog frames can be relayed, so handshake requests and other
    client-only frames never reach the consumer bus.

    attach() subscribes at most once; detach() removes exactly the
    subscriptions this relay made.
    """

    def __init__(
        self,
        transport: CytubeTransport,
        bus: EventBus,
        *,
        frames: Iterable[str] = FRAME_CATALOG,
        label: str = "-",
    ) -> None:
        self._transport = transport
        self._bus = bus
        self._frames = tuple(frames)
        unknown = [frame for frame in self._frames if not is_catalog_frame(frame)]
        if unknown:
            raise ValueError(f"Frames not in the relay catalog: {', '.join(unknown)}")
        self._label = label
        self._listeners: dict[str, Listener] = {}

    @property
    def attached(self) -> bool:
        return bool(self._listeners)

    def attach(self) -> bool:
        """Subscribe to every catalog frame.

        Returns:
            False if the relay was already attached
        """
        if self._listeners:
            _LOGGER.debug("[%s] Frame relay already attached", self._label)
            return False

        for frame in self._frames:
            listener = self._make_listener(frame)
            self._listeners[frame] = listener
            self._transport.on(frame, listener)

        _LOGGER.debug("[%s] Relaying %d frames", self._label, len(self._frames))
        return True

    def detach(self) -> None:
        for frame, listener in self._listeners.items():
            self._transport.off(frame, listener)
        self._listeners.clear()

    def _make_listener(self, frame: str) -> Listener:
        def relay(*args: Any) -> None:
            self._bus.emit(frame, *args)

        return relay
