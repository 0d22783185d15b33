"""
Session Client - High-level SDK for the application's session.

Holds "who is logged in" for the application and keeps it in step with
the credential store: restored at boot, updated on login/logout, and
cleared when the credential disappears or expires.
"""

from typing import Any, Optional

from session_auth.adapters.clock import SystemClock
from session_auth.adapters.file_storage import FileStorageAdapter
from session_auth.adapters.http_session_api import HttpSessionAPI
from session_auth.config import SessionSettings
from session_auth.domain.session import SessionGrant
from session_auth.domain.status import EligibilityReport
from session_auth.domain.user import User
from session_auth.logging import get_logger
from session_auth.ports.clock_port import ClockPort
from session_auth.ports.session_api_port import RemoteSessionPort
from session_auth.ports.storage_port import KeyValueStorePort
from session_auth.services.credential_store import CredentialStore
from session_auth.services.listeners import Listener, Unsubscribe
from session_auth.services.monitor import SessionMonitor
from session_auth.services.orchestrator import SessionOrchestrator

logger = get_logger(__name__)


class SessionClient:
    """
    High-level session client combining the store, the orchestrator and
    the login-state monitor.

    Example:
        from session_auth import SessionClient, SessionSettings

        async with SessionClient.from_settings(SessionSettings.from_env()) as client:
            await client.boot()
            if not client.is_authenticated:
                await client.login("alice", "secret")
            print(client.user.username)
    """

    def __init__(
        self,
        store: CredentialStore,
        api: RemoteSessionPort,
        monitor_interval: Optional[float] = None,
    ):
        """
        Initialize session client with its collaborators.

        Args:
            store: Credential store
            api: Remote session API
            monitor_interval: Poll period in seconds (default from store settings)
        """
        self._store = store
        self._api = api
        self._orchestrator = SessionOrchestrator(store, api)
        self._monitor = SessionMonitor(
            store,
            interval_seconds=monitor_interval,
            on_change=self._on_login_state_change,
        )
        self._user: Optional[User] = None
        self._unsubscribe: Optional[Unsubscribe] = None

    @classmethod
    def from_settings(
        cls,
        settings: Optional[SessionSettings] = None,
        storage: Optional[KeyValueStorePort] = None,
        clock: Optional[ClockPort] = None,
    ) -> "SessionClient":
        """
        Wire a client from settings: file storage plus the HTTP API.

        Args:
            settings: Configuration (default: from environment)
            storage: Storage adapter (default: FileStorageAdapter at settings.storage_path)
            clock: Time source (default: wall clock)
        """
        settings = settings or SessionSettings.from_env()
        store = CredentialStore(
            storage=storage or FileStorageAdapter(settings.storage_path),
            clock=clock or SystemClock(),
            settings=settings,
        )
        return cls(store=store, api=HttpSessionAPI(store))

    @property
    def store(self) -> CredentialStore:
        return self._store

    @property
    def orchestrator(self) -> SessionOrchestrator:
        return self._orchestrator

    @property
    def monitor(self) -> SessionMonitor:
        return self._monitor

    @property
    def user(self) -> Optional[User]:
        return self._user

    @property
    def is_authenticated(self) -> bool:
        return self._user is not None

    async def boot(self, start_monitor: bool = True) -> Optional[SessionGrant]:
        """
        Restore the previous session once at application start.

        Args:
            start_monitor: Start the periodic login-state poll

        Returns:
            Restored grant, or None if nobody is logged in
        """
        if self._unsubscribe is None:
            self._unsubscribe = self._store.add_listener(self._on_credential_change)

        grant = await self._orchestrator.attempt_auto_login()
        self._set_user(grant.user if grant else None)

        if start_monitor:
            await self._monitor.start()
        return grant

    async def login(self, username: str, password: str) -> SessionGrant:
        """
        Log in with username and password and store the credential.

        Raises:
            RemoteAuthError: If the server rejects the login
        """
        grant = await self._api.login(username, password)
        await self._store.set_credential_with_server_expiry(grant.token, grant.token_expires_at)
        self._set_user(grant.user)
        return grant

    async def logout(self) -> bool:
        """Log out locally. Returns False if storage could not be updated."""
        removed = await self._store.remove_credential()
        self._set_user(None)
        return removed

    async def force_logout(self) -> bool:
        cleared = await self._store.force_logout()
        self._set_user(None)
        return cleared

    def update_user(self, **fields: Any) -> Optional[User]:
        """Apply a partial update to the current user's profile."""
        if self._user is None:
            return None
        for name, value in fields.items():
            if not hasattr(self._user, name):
                raise AttributeError(f"User has no field {name!r}")
            setattr(self._user, name, value)
        logger.info("user_updated", fields=sorted(fields))
        return self._user

    # -- passthroughs ---------------------------------------------------

    async def attempt_auto_login(self) -> Optional[SessionGrant]:
        return await self._orchestrator.attempt_auto_login()

    async def check_eligibility(self) -> EligibilityReport:
        return await self._orchestrator.check_eligibility()

    async def force_refresh(self) -> SessionGrant:
        try:
            grant = await self._orchestrator.force_refresh()
        except Exception:
            self._set_user(None)
            raise
        self._set_user(grant.user)
        return grant

    async def get_token(self) -> Optional[str]:
        return await self._store.get_token()

    async def is_user_logged_in(self) -> bool:
        return await self._store.is_user_logged_in()

    async def remove_credential(self) -> bool:
        return await self.logout()

    def add_listener(self, callback: Listener) -> Unsubscribe:
        return self._store.add_listener(callback)

    # -- lifecycle ------------------------------------------------------

    async def close(self) -> None:
        """Stop the monitor, unsubscribe and release HTTP resources."""
        await self._monitor.stop()
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        await self._store.listeners.drain()

        close = getattr(self._api, "close", None)
        if close is not None:
            await close()

    async def __aenter__(self) -> "SessionClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # -- internals ------------------------------------------------------

    def _on_credential_change(self):
        # the store calls this synchronously; the re-check runs as a task
        return self._sync_login_state()

    async def _sync_login_state(self) -> None:
        if self._user is None:
            return
        if not await self._store.is_user_logged_in():
            self._set_user(None)

    def _on_login_state_change(self, logged_in: bool) -> None:
        if not logged_in:
            self._set_user(None)

    def _set_user(self, user: Optional[User]) -> None:
        previous = self._user
        self._user = user
        if previous is not user:
            logger.info("current_user_changed", user=user.username if user else None)
