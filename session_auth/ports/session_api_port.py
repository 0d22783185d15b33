"""
Remote Session Port - Interface for the server-side session API.

Implementations:
- HttpSessionAPI: REST backend over httpx
- JWTSessionAPI: In-process JWT issuer (development and tests)
"""

from abc import ABC, abstractmethod
from session_auth.domain.session import SessionGrant


class RemoteSessionPort(ABC):
    """Port: Obtain and renew credentials from the server."""

    @abstractmethod
    async def login(self, username: str, password: str) -> SessionGrant:
        """
        Exchange user credentials for a session.

        Args:
            username: Account name
            password: Account password

        Returns:
            Grant with a new token, its server expiry and the user profile

        Raises:
            RemoteAuthError: If the server rejects the login or is unreachable
        """
        pass

    @abstractmethod
    async def refresh_token(self) -> SessionGrant:
        """
        Renew the currently stored credential.

        Returns:
            Grant with a new token, its server expiry and the user profile

        Raises:
            RemoteAuthError: If the server rejects the refresh or is unreachable
        """
        pass

    @abstractmethod
    async def get_current_user(self) -> SessionGrant:
        """
        Look up the user owning the currently stored credential.

        Returns:
            Grant carrying the user profile; token may be None

        Raises:
            RemoteAuthError: If the server rejects the credential or is unreachable
        """
        pass
