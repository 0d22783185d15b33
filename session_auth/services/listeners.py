"""
Listener Registry - Change notification for credential state.

Subscribers register zero-argument callbacks and get back an
unsubscribe function. Notification runs every callback in registration
order; one failing callback is logged and does not stop the others.
"""

import asyncio
import inspect
from typing import Any, Callable, List, Set

from session_auth.logging import get_logger

logger = get_logger(__name__)

Listener = Callable[[], Any]
Unsubscribe = Callable[[], None]


class _Subscription:
    __slots__ = ("callback", "active")

    def __init__(self, callback: Listener):
        self.callback = callback
        self.active = True


class ListenerRegistry:
    """
    In-memory observer list.

    Lives as long as the owning store; it is never persisted and is not
    cleared on logout. Callbacks are held strongly until unsubscribed.
    A callback may return an awaitable, which is scheduled as a task on
    the running loop.
    """

    def __init__(self):
        self._subscriptions: List[_Subscription] = []
        self._tasks: Set[asyncio.Task] = set()

    def add(self, callback: Listener) -> Unsubscribe:
        """
        Register a callback.

        Args:
            callback: Zero-argument callable

        Returns:
            Function that removes this registration; calling it again is a no-op
        """
        if not callable(callback):
            raise TypeError("listener must be callable")

        subscription = _Subscription(callback)
        self._subscriptions.append(subscription)

        def unsubscribe() -> None:
            if not subscription.active:
                return
            subscription.active = False
            self._subscriptions.remove(subscription)

        return unsubscribe

    def notify(self) -> int:
        """
        Invoke every registered callback once, in registration order.

        Callbacks registered during notification wait for the next round;
        callbacks unsubscribed during notification are skipped.

        Returns:
            Number of callbacks that raised
        """
        failures = 0
        for subscription in list(self._subscriptions):
            if not subscription.active:
                continue
            try:
                result = subscription.callback()
            except Exception:
                failures += 1
                logger.exception("listener_failed", listener=_describe(subscription.callback))
                continue

            if inspect.isawaitable(result):
                self._schedule(result, subscription.callback)

        return failures

    def _schedule(self, awaitable: Any, callback: Listener) -> None:
        task = asyncio.ensure_future(awaitable)
        self._tasks.add(task)

        def _done(t: asyncio.Task) -> None:
            self._tasks.discard(t)
            if not t.cancelled() and t.exception() is not None:
                logger.error(
                    "listener_failed",
                    listener=_describe(callback),
                    error=repr(t.exception()),
                )

        task.add_done_callback(_done)

    async def drain(self) -> None:
        """Wait for async listener work scheduled by earlier notifications."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def __len__(self) -> int:
        return len(self._subscriptions)


def _describe(callback: Listener) -> str:
    return getattr(callback, "__qualname__", None) or repr(callback)
