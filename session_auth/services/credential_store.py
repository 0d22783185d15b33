"""
Credential Store - Owns the persisted token and login flag.

Persisted layout (three keys in the key-value store):
- auth_token:  {"token": str, "issuedAt": epoch-ms, "expiryTime": epoch-ms}
- user_state:  {"isLoggedIn": bool, "lastActivity": epoch-ms}
- token_expiry: legacy key, only ever deleted together with auth_token

Expiry is lazy: nothing deletes an expired record until a read notices it.
Storage failures are logged and swallowed; no persistence operation
raises out of this class.
"""

import asyncio
import json
from datetime import datetime
from typing import Iterable, Optional

from session_auth.adapters.clock import SystemClock
from session_auth.config import SessionSettings
from session_auth.domain.credential import (
    CredentialRecord,
    CredentialState,
    classify,
    parse_server_expiry,
    remaining_minutes,
)
from session_auth.domain.session import SessionFlag
from session_auth.domain.status import TokenInfo
from session_auth.errors import MalformedRecordError, StorageError
from session_auth.logging import get_logger
from session_auth.ports.clock_port import ClockPort
from session_auth.ports.storage_port import KeyValueStorePort
from session_auth.services.listeners import Listener, ListenerRegistry, Unsubscribe

logger = get_logger(__name__)

TOKEN_KEY = "auth_token"
USER_STATE_KEY = "user_state"
LEGACY_EXPIRY_KEY = "token_expiry"


class CredentialStore:
    """
    Persists the current credential and answers validity questions.

    Example:
        store = CredentialStore(storage=FileStorageAdapter("~/.app/storage.json"))
        await store.set_credential("opaque-token")
        token = await store.get_token()

    Mutations (set/remove/force-logout, and evictions found on read)
    notify registered listeners synchronously, in registration order.
    Calls are serialized with an asyncio lock so a read never sees a
    half-evicted credential.
    """

    def __init__(
        self,
        storage: KeyValueStorePort,
        clock: Optional[ClockPort] = None,
        settings: Optional[SessionSettings] = None,
        listeners: Optional[ListenerRegistry] = None,
    ):
        """
        Initialize credential store.

        Args:
            storage: Key-value storage adapter
            clock: Time source (default: wall clock)
            settings: Expiry defaults and refresh window
            listeners: Registry to notify (default: a new one)
        """
        self._storage = storage
        self._clock = clock or SystemClock()
        self._settings = settings or SessionSettings()
        self._listeners = listeners or ListenerRegistry()
        self._lock = asyncio.Lock()

    @property
    def listeners(self) -> ListenerRegistry:
        return self._listeners

    @property
    def settings(self) -> SessionSettings:
        return self._settings

    def now(self) -> datetime:
        return self._clock.now()

    # -- writes ---------------------------------------------------------

    async def set_credential(self, token: str, expiry_hours: Optional[float] = None) -> bool:
        """
        Store a token that expires a relative duration from now.

        Args:
            token: Opaque token
            expiry_hours: Validity in hours (default from settings, 24)

        Returns:
            True if persisted, False if storage failed (already logged)
        """
        if expiry_hours is None:
            expiry_hours = self._settings.default_expiry_hours
        record = CredentialRecord.create(_require_token(token), self.now(), expiry_hours)
        return await self._store(record, source="relative")

    async def set_credential_with_server_expiry(
        self,
        token: str,
        expiry_at_iso: Optional[str] = None,
    ) -> bool:
        """
        Store a token using the server's absolute expiry when it sent one.

        An absent or unparseable expiry falls back to the default
        relative validity.

        Args:
            token: Opaque token
            expiry_at_iso: ISO-8601 expiry from the server

        Returns:
            True if persisted, False if storage failed (already logged)
        """
        token = _require_token(token)
        now = self.now()
        expiry_at = parse_server_expiry(expiry_at_iso)

        if expiry_at is None:
            if expiry_at_iso:
                logger.warning("server_expiry_unparseable", value=expiry_at_iso)
            record = CredentialRecord.create(token, now, self._settings.default_expiry_hours)
            return await self._store(record, source="relative")

        record = CredentialRecord(token=token, issued_at=now, expiry_at=expiry_at)
        return await self._store(record, source="server")

    async def remove_credential(self) -> bool:
        """
        Log out: delete the credential and mark the session logged out.

        Returns:
            True if storage was updated, False if storage failed
        """
        async with self._lock:
            flag = await self._read_flag()
            try:
                await self._storage.multi_remove([TOKEN_KEY, LEGACY_EXPIRY_KEY])
                await self._write_flag(SessionFlag(False, flag.last_activity if flag else None))
            except StorageError as e:
                logger.error("credential_remove_failed", error=str(e))
                return False

            logger.info("credential_removed")
            self._listeners.notify()
        return True

    async def force_logout(self) -> bool:
        """
        Delete the credential and the session flag entirely.

        Stronger than remove_credential; used when local state can no
        longer be trusted.

        Returns:
            True if storage was updated, False if storage failed
        """
        async with self._lock:
            try:
                await self._storage.multi_remove([TOKEN_KEY, LEGACY_EXPIRY_KEY, USER_STATE_KEY])
            except StorageError as e:
                logger.error("force_logout_failed", error=str(e))
                return False

            logger.info("force_logout")
            self._listeners.notify()
        return True

    # -- reads ----------------------------------------------------------

    async def get_token(self) -> Optional[str]:
        """
        Return the stored token if it is still valid.

        An expired record is deleted here. A valid read refreshes the
        flag's last activity.

        Returns:
            Token, or None when there is no usable credential
        """
        async with self._lock:
            now = self.now()
            record = await self._read_record()
            flag = await self._read_flag()
            state = classify(record, now, self._settings.refresh_window_minutes)

            if state is CredentialState.ABSENT:
                await self._mark_logged_out(flag)
                return None
            if state is CredentialState.EXPIRED:
                await self._evict(record, flag, now)
                return None

            await self._write_flag(
                SessionFlag(flag.is_logged_in if flag else False, now),
                swallow=True,
            )
            return record.token

    async def is_credential_valid(self) -> bool:
        """Same expiry check as get_token, without touching last activity."""
        async with self._lock:
            now = self.now()
            record = await self._read_record()
            state = classify(record, now, self._settings.refresh_window_minutes)

            if state.is_usable:
                return True

            flag = await self._read_flag()
            if state is CredentialState.EXPIRED:
                await self._evict(record, flag, now)
            else:
                await self._mark_logged_out(flag)
            return False

    async def is_user_logged_in(self) -> bool:
        """
        True iff the credential is valid and the flag says logged in.

        A flag claiming logged-in next to a missing or expired credential
        is corrected before returning.
        """
        async with self._lock:
            now = self.now()
            record = await self._read_record()
            flag = await self._read_flag()
            state = classify(record, now, self._settings.refresh_window_minutes)

            if state is CredentialState.EXPIRED:
                await self._evict(record, flag, now)
                return False

            if not state.is_usable:
                if flag is not None and flag.is_logged_in:
                    logger.info("session_flag_corrected", state=state.value)
                await self._mark_logged_out(flag)
                return False

            return flag is not None and flag.is_logged_in

    async def has_valid_credential_for_auto_login(self) -> bool:
        return await self.is_credential_valid() and await self.is_user_logged_in()

    async def get_remaining_minutes(self) -> int:
        """Whole minutes until expiry, 0 when there is no record."""
        async with self._lock:
            record = await self._read_record()
            return remaining_minutes(record, self.now())

    async def should_refresh(self) -> bool:
        """True iff a live record has 0 < remaining minutes <= the refresh window."""
        async with self._lock:
            record = await self._read_record()
            state = classify(record, self.now(), self._settings.refresh_window_minutes)
            return state is CredentialState.NEAR_EXPIRY

    async def get_state(self) -> CredentialState:
        """Classify the stored credential without side effects."""
        info = await self.get_token_info()
        return info.state

    async def get_token_info(self) -> TokenInfo:
        """
        Read-only snapshot of the stored credential.

        Never deletes or rewrites anything, so it is safe for monitors
        and diagnostics.
        """
        async with self._lock:
            now = self.now()
            record = await self._read_record(repair=False)
            state = classify(record, now, self._settings.refresh_window_minutes)
            return TokenInfo(
                has_token=record is not None,
                is_valid=state.is_usable,
                state=state,
                remaining_minutes=remaining_minutes(record, now),
                issued_at=record.issued_at if record else None,
                expiry_time=record.expiry_at if record else None,
            )

    async def get_session_flag(self) -> Optional[SessionFlag]:
        """Read the persisted flag without side effects."""
        async with self._lock:
            return await self._read_flag(repair=False)

    # -- listeners ------------------------------------------------------

    def add_listener(self, callback: Listener) -> Unsubscribe:
        """
        Subscribe to credential changes.

        Returns:
            Idempotent unsubscribe function
        """
        return self._listeners.add(callback)

    # -- internals ------------------------------------------------------

    async def _store(self, record: CredentialRecord, source: str) -> bool:
        async with self._lock:
            try:
                await self._storage.set_item(TOKEN_KEY, json.dumps(record.to_dict()))
            except StorageError as e:
                logger.error("credential_store_failed", error=str(e))
                return False

            # The token is already replaced, so listeners hear about it either way
            try:
                await self._write_flag(SessionFlag(True, record.issued_at))
            except StorageError as e:
                logger.error("session_flag_store_failed", error=str(e))
                self._listeners.notify()
                return False

            logger.info(
                "credential_stored",
                expiry_source=source,
                expires_at=record.expiry_at.isoformat(),
                remaining_minutes=remaining_minutes(record, record.issued_at),
            )
            self._listeners.notify()
        return True

    async def _evict(
        self,
        record: CredentialRecord,
        flag: Optional[SessionFlag],
        now: datetime,
    ) -> None:
        try:
            await self._storage.multi_remove([TOKEN_KEY, LEGACY_EXPIRY_KEY])
        except StorageError as e:
            logger.error("credential_evict_failed", error=str(e))
            return

        await self._mark_logged_out(flag)
        logger.info(
            "credential_expired",
            expired_at=record.expiry_at.isoformat(),
            detected_at=now.isoformat(),
        )
        self._listeners.notify()

    async def _mark_logged_out(self, flag: Optional[SessionFlag]) -> None:
        # no flag at all (after force_logout) stays absent
        if flag is None or not flag.is_logged_in:
            return
        await self._write_flag(SessionFlag(False, flag.last_activity), swallow=True)

    async def _read_record(self, repair: bool = True) -> Optional[CredentialRecord]:
        raw = await self._read_raw(TOKEN_KEY)
        if raw is None:
            return None

        try:
            return CredentialRecord.from_dict(_decode(raw))
        except MalformedRecordError as e:
            logger.warning("credential_record_malformed", error=str(e), repaired=repair)
            if repair:
                await self._delete_quietly([TOKEN_KEY, LEGACY_EXPIRY_KEY])
            return None

    async def _read_flag(self, repair: bool = True) -> Optional[SessionFlag]:
        raw = await self._read_raw(USER_STATE_KEY)
        if raw is None:
            return None

        try:
            return SessionFlag.from_dict(_decode(raw))
        except MalformedRecordError as e:
            logger.warning("session_flag_malformed", error=str(e), repaired=repair)
            if repair:
                await self._delete_quietly([USER_STATE_KEY])
            return None

    async def _read_raw(self, key: str) -> Optional[str]:
        try:
            return await self._storage.get_item(key)
        except StorageError as e:
            logger.error("storage_read_failed", key=key, error=str(e))
            return None

    async def _write_flag(self, flag: SessionFlag, swallow: bool = False) -> None:
        try:
            await self._storage.set_item(USER_STATE_KEY, json.dumps(flag.to_dict()))
        except StorageError as e:
            if not swallow:
                raise
            logger.error("storage_write_failed", key=USER_STATE_KEY, error=str(e))

    async def _delete_quietly(self, keys: Iterable[str]) -> None:
        try:
            await self._storage.multi_remove(keys)
        except StorageError as e:
            logger.error("storage_delete_failed", keys=list(keys), error=str(e))


def _decode(raw: str):
    try:
        return json.loads(raw)
    except (TypeError, ValueError) as e:
        raise MalformedRecordError(f"stored value is not JSON: {e}")


def _require_token(token: str) -> str:
    if not isinstance(token, str) or not token:
        raise ValueError("token must be a non-empty string")
    return token
