"""
HTTP Session API Adapter - Remote Session API over REST (httpx).

Server envelope: {"data": ..., "message": str, "token": str, "tokenExpiresAt": ISO-8601}

Request policy:
- public endpoints (login, register, refresh, /api/public) need no login
- every other call requires a logged-in session and a valid token,
  otherwise NotAuthenticatedError is raised without touching the network
- a 401 response forces logout before the error propagates
"""

from typing import TYPE_CHECKING, Any, Dict, Optional, Tuple

import httpx

from session_auth.domain.session import SessionGrant
from session_auth.domain.user import User
from session_auth.errors import NotAuthenticatedError, RemoteAuthError
from session_auth.logging import get_logger
from session_auth.ports.session_api_port import RemoteSessionPort

if TYPE_CHECKING:
    from session_auth.services.credential_store import CredentialStore

logger = get_logger(__name__)

LOGIN_PATH = "/api/auth/login"
REGISTER_PATH = "/api/auth/register"
REFRESH_PATH = "/api/auth/refresh"
CURRENT_USER_PATH = "/api/auth/me"

PUBLIC_ENDPOINTS: Tuple[str, ...] = (
    LOGIN_PATH,
    REGISTER_PATH,
    REFRESH_PATH,
    "/api/public",
)


class HttpSessionAPI(RemoteSessionPort):
    """
    REST implementation of the Remote Session API.

    Reads the bearer token from the credential store for every protected
    call. Does not persist grants; that is the caller's decision.
    """

    def __init__(
        self,
        store: "CredentialStore",
        base_url: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ):
        """
        Initialize HTTP session API.

        Args:
            store: Credential store (token source, logout on 401)
            base_url: API base URL (default from store settings)
            client: Preconfigured httpx.AsyncClient (owned by the caller)
            timeout: Request timeout in seconds (default from store settings)
        """
        settings = store.settings
        self._store = store
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=base_url or settings.api_base_url,
            timeout=timeout or settings.api_timeout,
            headers={"Content-Type": "application/json"},
        )

    @staticmethod
    def requires_authentication(path: str) -> bool:
        return not any(endpoint in path for endpoint in PUBLIC_ENDPOINTS)

    async def login(self, username: str, password: str) -> SessionGrant:
        body = await self.request(
            "POST",
            LOGIN_PATH,
            json={"username": username, "password": password},
        )
        return self._grant(body, require_token=True)

    async def refresh_token(self) -> SessionGrant:
        # public endpoint, but the server identifies the session by its bearer token
        token = await self._store.get_token()
        headers = {"Authorization": f"Bearer {token}"} if token else None
        body = await self.request("POST", REFRESH_PATH, headers=headers)
        return self._grant(body, require_token=True)

    async def get_current_user(self) -> SessionGrant:
        body = await self.request("GET", CURRENT_USER_PATH)
        return self._grant(body, require_token=False)

    async def request(
        self,
        method: str,
        path: str,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        """
        Send a request under the session's request policy.

        Args:
            method: HTTP method
            path: Path relative to the base URL
            json: JSON body
            params: Query parameters
            headers: Extra headers

        Returns:
            Decoded response envelope

        Raises:
            NotAuthenticatedError: If a protected call is attempted without a session
            RemoteAuthError: If the server rejects the call or cannot be reached
        """
        request_headers = dict(headers or {})

        if self.requires_authentication(path):
            if not await self._store.is_user_logged_in():
                logger.warning("request_refused_logged_out", method=method, path=path)
                raise NotAuthenticatedError("User is not logged in")

            token = await self._store.get_token()
            if not token:
                logger.warning("request_refused_no_token", method=method, path=path)
                raise NotAuthenticatedError("No valid token, please log in again")
            request_headers["Authorization"] = f"Bearer {token}"

        logger.debug("api_request", method=method, path=path)
        try:
            response = await self._client.request(
                method,
                path,
                json=json,
                params=params,
                headers=request_headers,
            )
        except httpx.HTTPError as e:
            logger.error("api_unreachable", method=method, path=path, error=str(e))
            raise RemoteAuthError(f"Request to {path} failed: {e}")

        if response.status_code == 401:
            await self._store.force_logout()
            logger.warning("api_unauthorized", path=path)
            raise RemoteAuthError(
                _error_message(response, "Session expired, please log in again"),
                status_code=401,
            )
        if response.status_code == 403:
            raise RemoteAuthError(_error_message(response, "Permission denied"), status_code=403)
        if response.status_code >= 500:
            raise RemoteAuthError(
                _error_message(response, "Server error, please try again later"),
                status_code=response.status_code,
            )
        if not response.is_success:
            raise RemoteAuthError(
                _error_message(response, f"Request failed with status {response.status_code}"),
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError:
            raise RemoteAuthError(f"Response from {path} is not JSON", status_code=response.status_code)

        if not isinstance(body, dict):
            raise RemoteAuthError(f"Response from {path} is not an object", status_code=response.status_code)

        logger.debug("api_response", status=response.status_code, path=path)
        return body

    def _grant(self, body: Dict[str, Any], require_token: bool) -> SessionGrant:
        data = body.get("data")
        if not isinstance(data, dict):
            raise RemoteAuthError("Response carries no user profile")

        try:
            user = User.from_dict(data)
        except KeyError as e:
            raise RemoteAuthError(f"User profile is missing {e}")

        token = body.get("token") or None
        if require_token and not token:
            raise RemoteAuthError("Response carries no token")

        return SessionGrant(
            token=token,
            user=user,
            token_expires_at=body.get("tokenExpiresAt"),
        )

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "HttpSessionAPI":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()


def _error_message(response: httpx.Response, fallback: str) -> str:
    # prefer the server's own message
    try:
        body = response.json()
    except ValueError:
        return fallback
    if isinstance(body, dict) and isinstance(body.get("message"), str) and body["message"]:
        return body["message"]
    return fallback
