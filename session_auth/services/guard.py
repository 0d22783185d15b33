"""
Auth Guard - Gate for operations that need a logged-in user.
"""

from typing import Any, Awaitable, Callable, Dict, TypeVar

from session_auth.errors import NotAuthenticatedError, RemoteAuthError
from session_auth.logging import get_logger
from session_auth.services.credential_store import CredentialStore

logger = get_logger(__name__)

T = TypeVar("T")


class AuthGuard:
    """
    Checks authentication before protected work and cleans up after a
    server-side rejection.

    Example:
        guard = AuthGuard(store)
        rooms = await guard.with_auth(lambda: api.request("GET", "/api/rooms"), "list rooms")
    """

    def __init__(self, store: CredentialStore):
        self._store = store

    async def is_authenticated(self) -> bool:
        """True iff the session flag says logged in and the token is valid."""
        if not await self._store.is_user_logged_in():
            return False
        return await self._store.is_credential_valid()

    async def require_auth(self, action: str = "perform this action") -> None:
        """
        Raise unless authenticated.

        Raises:
            NotAuthenticatedError: If there is no valid session
        """
        if not await self.is_authenticated():
            logger.info("auth_required", action=action)
            raise NotAuthenticatedError(f"Login required to {action}")

    async def with_auth(
        self,
        operation: Callable[[], Awaitable[T]],
        action: str = "perform this action",
    ) -> T:
        """
        Run an async operation that needs a logged-in user.

        A 401 from the server forces logout before the error propagates.

        Args:
            operation: Zero-argument coroutine function
            action: Description used in error messages

        Returns:
            The operation's result

        Raises:
            NotAuthenticatedError: If not authenticated beforehand
            RemoteAuthError: If the server rejected the operation
        """
        await self.require_auth(action)

        try:
            return await operation()
        except RemoteAuthError as e:
            if e.is_unauthorized:
                logger.warning("session_rejected_by_server", action=action)
                await self._store.force_logout()
            raise

    async def get_auth_status(self) -> Dict[str, Any]:
        """Detailed authentication status, without side effects on the credential."""
        info = await self._store.get_token_info()
        flag = await self._store.get_session_flag()
        user_logged_in = flag is not None and flag.is_logged_in

        return {
            "is_authenticated": info.has_token and info.is_valid and user_logged_in,
            "has_token": info.has_token,
            "token_valid": info.is_valid,
            "user_logged_in": user_logged_in,
            "token_info": info.to_dict(),
        }

    async def clear_auth(self) -> bool:
        """Drop all local authentication state."""
        cleared = await self._store.force_logout()
        logger.info("auth_cleared", success=cleared)
        return cleared
