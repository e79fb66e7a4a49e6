"""Named publish/subscribe bus used for transport frames and consumer events."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

_LOGGER = logging.getLogger(__name__)

Listener = Callable[..., Any]


@dataclass(slots=True)
class _Subscription:
    listener: Listener
    once: bool


class EventBus:
    """Per-owner event emitter.

    Listeners for a name are called synchronously in registration order.
    A listener that returns an awaitable has it scheduled on the running
    loop; the task is held until it completes.

    Usage:
        bus = EventBus(label="mychannel")
        bus.on("chatMsg", handle_chat)
        bus.once("ready", handle_ready)
        bus.emit("chatMsg", {"username": "bob", "msg": "hi"})
    """

    def __init__(self, *, label: str = "-") -> None:
        self._label = label
        self._subscriptions: dict[str, list[_Subscription]] = {}
        self._tasks: set[asyncio.Task[Any]] = set()

    def on(self, name: str, listener: Listener) -> EventBus:
        """Subscribe listener to every occurrence of name."""
        self._subscriptions.setdefault(name, []).append(_Subscription(listener, False))
        return self

    def once(self, name: str, listener: Listener) -> EventBus:
        """Subscribe listener to the next occurrence of name only."""
        self._subscriptions.setdefault(name, []).append(_Subscription(listener, True))
        return self

    def off(self, name: str, listener: Listener | None = None) -> EventBus:
        """Remove listener from name, or every listener when none is given."""
        if listener is None:
            self._subscriptions.pop(name, None)
            return self

        subscriptions = self._subscriptions.get(name, [])
        for index, subscription in enumerate(subscriptions):
            if subscription.listener == listener:
                del subscriptions[index]
                break
        if not subscriptions:
            self._subscriptions.pop(name, None)
        return self

    def clear(self) -> None:
        """Drop every subscription."""
        self._subscriptions.clear()

    def listener_count(self, name: str) -> int:
        return len(self._subscriptions.get(name, ()))

    def emit(self, name: str, *args: Any) -> bool:
        """Deliver args to the listeners of name.

        Returns:
            True if at least one listener was called
        """
        subscriptions = self._subscriptions.get(name)
        if not subscriptions:
            return False

        # Snapshot so listeners may subscribe/unsubscribe while dispatching
        snapshot = list(subscriptions)
        for subscription in snapshot:
            if subscription.once:
                self._discard(name, subscription)
        for subscription in snapshot:
            self._call(name, subscription.listener, args)
        return True

    async def drain(self) -> None:
        """Wait for scheduled listener coroutines to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _discard(self, name: str, subscription: _Subscription) -> None:
        subscriptions = self._subscriptions.get(name)
        if subscriptions is None:
            return
        try:
            subscriptions.remove(subscription)
        except ValueError:
            return
        if not subscriptions:
            self._subscriptions.pop(name, None)

    def _call(self, name: str, listener: Listener, args: tuple[Any, ...]) -> None:
        try:
            result = listener(*args)
        except Exception as err:
            _LOGGER.exception(
                "[%s] Listener for %s raised: %s", self._label, name, err
            )
            return

        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._tasks.add(task)
            task.add_done_callback(lambda done: self._on_task_done(name, done))

    def _on_task_done(self, name: str, task: asyncio.Future[Any]) -> None:
        self._tasks.discard(task)  # type: ignore[arg-type]
        if task.cancelled():
            return
        err = task.exception()
        if err is not None:
            _LOGGER.error(
                "[%s] Async listener for %s raised: %s", self._label, name, err
            )
