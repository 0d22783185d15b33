"""
JWT Session API Adapter - In-process Remote Session API issuing JWTs.

Stands in for the backend during local development, demos and
end-to-end tests. Tokens are signed with PyJWT; expiry is checked
against the injected clock so tests can move time.
"""

import secrets
from datetime import timedelta
from typing import Awaitable, Callable, Dict, Optional, Set, Tuple

import bcrypt
import jwt

from session_auth.adapters.clock import SystemClock
from session_auth.domain.session import SessionGrant
from session_auth.domain.user import User
from session_auth.errors import RemoteAuthError
from session_auth.ports.clock_port import ClockPort
from session_auth.ports.session_api_port import RemoteSessionPort

TokenSource = Callable[[], Awaitable[Optional[str]]]


class JWTSessionAPI(RemoteSessionPort):
    """
    JWT-based session issuer.

    Uses PyJWT for token creation and verification. Refreshed tokens
    revoke their predecessor via an in-memory blacklist.
    """

    def __init__(
        self,
        secret: str,
        token_source: TokenSource,
        algorithm: str = "HS256",
        issuer: str = "session-auth",
        expires_in: int = 3600,
        clock: Optional[ClockPort] = None,
        bcrypt_rounds: int = 10,
    ):
        """
        Initialize JWT session API.

        Args:
            secret: JWT signing secret
            token_source: Coroutine function returning the caller's current token
                (typically CredentialStore.get_token)
            algorithm: JWT algorithm (default HS256)
            issuer: Token issuer claim
            expires_in: Token lifetime in seconds
            clock: Time source (default: wall clock)
            bcrypt_rounds: Cost factor for password hashes (10-12 recommended)
        """
        self._secret = secret
        self._token_source = token_source
        self._algorithm = algorithm
        self._issuer = issuer
        self._expires_in = expires_in
        self._clock = clock or SystemClock()
        self._bcrypt_rounds = bcrypt_rounds
        self._users: Dict[str, Tuple[User, bytes]] = {}
        self._blacklist: Set[str] = set()

    def register_user(self, user: User, password: str) -> None:
        """Add a user who can log in with `password`."""
        hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=self._bcrypt_rounds))
        self._users[user.username] = (user, hashed)

    async def login(self, username: str, password: str) -> SessionGrant:
        entry = self._users.get(username)
        if entry is None:
            raise RemoteAuthError("Invalid username or password", status_code=401)

        user, hashed = entry
        if not bcrypt.checkpw(password.encode("utf-8"), hashed):
            raise RemoteAuthError("Invalid username or password", status_code=401)
        if not user.is_active:
            raise RemoteAuthError("Account is disabled", status_code=403)

        return self._issue(user)

    async def refresh_token(self) -> SessionGrant:
        token = await self._token_source()
        user = self._authenticate(token)
        self.revoke_token(token)
        return self._issue(user)

    async def get_current_user(self) -> SessionGrant:
        token = await self._token_source()
        user = self._authenticate(token)
        return SessionGrant(token=None, user=user)

    def create_token(self, user: User) -> Tuple[str, str]:
        """
        Create a JWT token for a user.

        Returns:
            (token, ISO-8601 expiry)
        """
        now = self._clock.now()
        expires_at = now + timedelta(seconds=self._expires_in)
        payload = {
            "sub": str(user.user_id),
            "username": user.username,
            "roles": list(user.roles),
            "iat": int(now.timestamp()),
            "exp": int(expires_at.timestamp()),
            "iss": self._issuer,
            "jti": secrets.token_hex(8),
        }
        token = jwt.encode(payload, self._secret, algorithm=self._algorithm)
        return token, expires_at.replace(microsecond=0).isoformat()

    def revoke_token(self, token: Optional[str]) -> bool:
        """
        Revoke a token by adding it to the blacklist.

        Returns:
            True if revoked, False if empty or already revoked
        """
        if not token or token in self._blacklist:
            return False
        self._blacklist.add(token)
        return True

    def _issue(self, user: User) -> SessionGrant:
        token, expires_at = self.create_token(user)
        return SessionGrant(token=token, user=user, token_expires_at=expires_at)

    def _authenticate(self, token: Optional[str]) -> User:
        if not token or token in self._blacklist:
            raise RemoteAuthError("Token missing or revoked", status_code=401)

        try:
            # exp/iat are checked against the injected clock below
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                issuer=self._issuer,
                options={"verify_exp": False, "verify_iat": False, "verify_nbf": False},
            )
        except jwt.InvalidTokenError as e:
            raise RemoteAuthError(f"Invalid token: {e}", status_code=401)

        if payload.get("exp", 0) <= self._clock.now().timestamp():
            raise RemoteAuthError("Token expired", status_code=401)

        entry = self._users.get(payload.get("username", ""))
        if entry is None:
            raise RemoteAuthError("Unknown user", status_code=401)
        return entry[0]
