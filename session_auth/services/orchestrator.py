"""
Session Orchestrator - Restores, refreshes and diagnoses sessions.

attempt_auto_login() is the boot-time check: it never raises, and a
failure is indistinguishable from "nobody was logged in". force_refresh()
is the explicit, user-initiated path and does raise.
"""

from typing import Optional

from session_auth.domain.credential import CredentialState
from session_auth.domain.session import SessionGrant
from session_auth.domain.status import EligibilityReport
from session_auth.errors import NotAuthenticatedError, RemoteAuthError
from session_auth.logging import get_logger
from session_auth.ports.session_api_port import RemoteSessionPort
from session_auth.services.credential_store import CredentialStore

logger = get_logger(__name__)

# Failures that mean "the server will not vouch for this credential"
_SESSION_FAILURES = (RemoteAuthError, NotAuthenticatedError)


class SessionOrchestrator:
    """
    Decides whether a stored credential can be used as-is, must be
    refreshed, or is unusable, and drives the matching remote calls.

    Example:
        orchestrator = SessionOrchestrator(store, HttpSessionAPI(store))
        grant = await orchestrator.attempt_auto_login()
        if grant:
            print(f"Welcome back, {grant.user.username}")
    """

    def __init__(self, store: CredentialStore, api: RemoteSessionPort):
        """
        Initialize orchestrator.

        Args:
            store: Credential store
            api: Remote session API
        """
        self._store = store
        self._api = api

    @property
    def store(self) -> CredentialStore:
        return self._store

    async def attempt_auto_login(self) -> Optional[SessionGrant]:
        """
        Try to restore the previous session silently.

        Returns:
            Grant with the active token and user, or None when no session
            was restored (ineligible, rejected, or an internal error)
        """
        logger.info("auto_login_started")
        try:
            return await self._auto_login()
        except Exception:
            logger.exception("auto_login_failed")
            return None

    async def _auto_login(self) -> Optional[SessionGrant]:
        if not await self._store.has_valid_credential_for_auto_login():
            logger.info("auto_login_skipped", reason="no valid credential")
            return None

        if await self._store.should_refresh():
            logger.info(
                "auto_login_refreshing",
                remaining_minutes=await self._store.get_remaining_minutes(),
            )
            try:
                grant = await self._api.refresh_token()
            except _SESSION_FAILURES as e:
                logger.warning("auto_login_refresh_failed", error=str(e))
            else:
                if await self._persist(grant):
                    logger.info("auto_login_succeeded", user=grant.user.username, refreshed=True)
                    return grant
                logger.warning("auto_login_refresh_unusable")

        return await self._restore_current_user()

    async def _restore_current_user(self) -> Optional[SessionGrant]:
        try:
            grant = await self._api.get_current_user()
            token = await self._store.get_token()
            if token is None:
                raise NotAuthenticatedError("credential vanished during auto-login")
        except _SESSION_FAILURES as e:
            logger.warning("auto_login_rejected", error=str(e))
            await self._store.force_logout()
            return None

        logger.info("auto_login_succeeded", user=grant.user.username, refreshed=False)
        return SessionGrant(token=token, user=grant.user, token_expires_at=grant.token_expires_at)

    async def check_eligibility(self) -> EligibilityReport:
        """
        Explain whether auto-login would proceed. Read-only.

        Returns:
            Eligibility report with a human-readable reason
        """
        info = await self._store.get_token_info()
        flag = await self._store.get_session_flag()
        logged_in = flag is not None and flag.is_logged_in

        has_valid = info.is_valid and logged_in
        should_refresh = info.state is CredentialState.NEAR_EXPIRY

        if info.state is CredentialState.ABSENT:
            reason = "no stored credential"
        elif info.state is CredentialState.EXPIRED:
            reason = "credential expired"
        elif not logged_in:
            reason = "session is logged out"
        elif should_refresh:
            reason = "credential needs refresh but auto-login is possible"
        else:
            reason = "credential is healthy"

        return EligibilityReport(
            can_auto_login=has_valid,
            has_valid_credential=has_valid,
            should_refresh=should_refresh,
            remaining_minutes=info.remaining_minutes,
            reason=reason,
        )

    async def force_refresh(self) -> SessionGrant:
        """
        Refresh the credential now, regardless of its remaining lifetime.

        Returns:
            Grant with the new token and user

        Raises:
            RemoteAuthError: If the refresh is rejected (local state is cleared first)
            NotAuthenticatedError: If there is no credential to refresh
        """
        logger.info("force_refresh_started")
        try:
            grant = await self._api.refresh_token()
        except _SESSION_FAILURES as e:
            logger.error("force_refresh_failed", error=str(e))
            await self._store.force_logout()
            raise

        if not await self._persist(grant):
            await self._store.force_logout()
            raise RemoteAuthError("refresh response carried no usable token")

        logger.info("force_refresh_succeeded", user=grant.user.username)
        return grant

    async def _persist(self, grant: SessionGrant) -> bool:
        if not grant.token:
            return False
        return await self._store.set_credential_with_server_expiry(
            grant.token, grant.token_expires_at
        )
