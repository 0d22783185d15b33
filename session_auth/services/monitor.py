"""
Session Monitor - Periodic re-check of the login state.

Expiry is only discovered when something reads the credential. The
monitor is that reader: every interval it asks the store whether the
user is still logged in and reports transitions. It runs as one asyncio
task and stops deterministically via stop() or the async context manager.
"""

import asyncio
import inspect
from typing import Any, Callable, Optional

from session_auth.logging import get_logger
from session_auth.services.credential_store import CredentialStore

logger = get_logger(__name__)

StateCallback = Callable[[bool], Any]


class SessionMonitor:
    """
    Polls CredentialStore.is_user_logged_in() on a fixed interval.

    Example:
        async with SessionMonitor(store, interval_seconds=60, on_change=handle):
            await app.run()
    """

    def __init__(
        self,
        store: CredentialStore,
        interval_seconds: Optional[float] = None,
        on_change: Optional[StateCallback] = None,
    ):
        """
        Initialize monitor.

        Args:
            store: Credential store to poll
            interval_seconds: Poll period (default from store settings)
            on_change: Called with the new logged-in value whenever it flips
        """
        self._store = store
        self.interval = interval_seconds or store.settings.poll_interval_seconds
        self._on_change = on_change
        self._last: Optional[bool] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def last_state(self) -> Optional[bool]:
        return self._last

    async def check(self) -> bool:
        """
        Run one poll now.

        Returns:
            Current logged-in state
        """
        logged_in = await self._store.is_user_logged_in()
        previous, self._last = self._last, logged_in

        if previous is not None and previous != logged_in:
            logger.info("session_state_changed", logged_in=logged_in)
            if self._on_change is not None:
                result = self._on_change(logged_in)
                if inspect.isawaitable(result):
                    await result
        return logged_in

    async def start(self) -> None:
        if self.is_running:
            return
        self._last = await self._store.is_user_logged_in()
        self._task = asyncio.create_task(self._loop())
        logger.info("session_monitor_started", interval=self.interval, logged_in=self._last)

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                await self.check()
            except Exception:
                logger.exception("session_monitor_error")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("session_monitor_stopped")

    async def __aenter__(self) -> "SessionMonitor":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()
