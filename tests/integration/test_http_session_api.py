"""
Integration tests for the HTTP Remote Session API adapter.

The server is an httpx.MockTransport handler; no network is used.
"""

import json

import httpx
import pytest

from session_auth.adapters import HttpSessionAPI
from session_auth.errors import NotAuthenticatedError, RemoteAuthError
from session_auth.services.orchestrator import SessionOrchestrator


PROFILE = {"id": 7, "username": "alice", "fullName": "Alice Liddell", "roles": ["member"]}


class FakeServer:
    """Records requests and answers from a route table."""

    def __init__(self, routes):
        self.routes = routes
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get((request.method, request.url.path))
        if handler is None:
            return httpx.Response(404, json={"message": "Not found"})
        return handler(request)

    def paths(self):
        return [r.url.path for r in self.requests]


def make_api(store, server):
    client = httpx.AsyncClient(transport=httpx.MockTransport(server), base_url="http://test")
    return HttpSessionAPI(store, client=client)


def ok(body):
    return lambda request: httpx.Response(200, json=body)


class TestLogin:
    """Test the public login endpoint."""

    @pytest.mark.asyncio
    async def test_login_parses_envelope(self, store):
        server = FakeServer({
            ("POST", "/api/auth/login"): ok({
                "data": PROFILE,
                "message": "ok",
                "token": "tok-1",
                "tokenExpiresAt": "2024-03-02T12:00:00Z",
            }),
        })
        api = make_api(store, server)

        grant = await api.login("alice", "secret")

        assert grant.token == "tok-1"
        assert grant.user.user_id == 7
        assert grant.user.full_name == "Alice Liddell"
        assert grant.token_expires_at == "2024-03-02T12:00:00Z"

        request = server.requests[0]
        assert json.loads(request.content) == {"username": "alice", "password": "secret"}
        assert "authorization" not in request.headers

    @pytest.mark.asyncio
    async def test_login_rejected_uses_server_message(self, store):
        server = FakeServer({
            ("POST", "/api/auth/login"): lambda r: httpx.Response(400, json={"message": "Wrong password"}),
        })

        with pytest.raises(RemoteAuthError, match="Wrong password") as exc_info:
            await make_api(store, server).login("alice", "nope")
        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_login_without_token_is_an_error(self, store):
        server = FakeServer({("POST", "/api/auth/login"): ok({"data": PROFILE})})

        with pytest.raises(RemoteAuthError, match="no token"):
            await make_api(store, server).login("alice", "secret")

    @pytest.mark.asyncio
    async def test_login_without_profile_is_an_error(self, store):
        server = FakeServer({("POST", "/api/auth/login"): ok({"token": "tok"})})

        with pytest.raises(RemoteAuthError, match="no user profile"):
            await make_api(store, server).login("alice", "secret")


class TestProtectedRequests:
    """Test the request policy for protected endpoints."""

    @pytest.mark.asyncio
    async def test_refused_without_session(self, store):
        server = FakeServer({("GET", "/api/auth/me"): ok({"data": PROFILE})})

        with pytest.raises(NotAuthenticatedError):
            await make_api(store, server).get_current_user()
        assert server.requests == []

    @pytest.mark.asyncio
    async def test_refused_with_expired_credential(self, store, clock):
        await store.set_credential("tok", expiry_hours=1)
        clock.advance(hours=2)
        server = FakeServer({("GET", "/api/rooms"): ok({"data": []})})

        with pytest.raises(NotAuthenticatedError):
            await make_api(store, server).request("GET", "/api/rooms")
        assert server.requests == []

    @pytest.mark.asyncio
    async def test_bearer_token_attached(self, store):
        await store.set_credential("tok-1")
        server = FakeServer({("GET", "/api/auth/me"): ok({"data": PROFILE})})

        grant = await make_api(store, server).get_current_user()

        assert grant.token is None
        assert grant.user.username == "alice"
        assert server.requests[0].headers["authorization"] == "Bearer tok-1"

    @pytest.mark.asyncio
    async def test_public_path_needs_no_session(self, store):
        server = FakeServer({("GET", "/api/public/status"): ok({"data": {"up": True}})})

        body = await make_api(store, server).request("GET", "/api/public/status")
        assert body["data"] == {"up": True}

    @pytest.mark.asyncio
    async def test_401_forces_logout(self, store, storage):
        await store.set_credential("tok")
        server = FakeServer({
            ("GET", "/api/rooms"): lambda r: httpx.Response(401, json={"message": "Token revoked"}),
        })

        with pytest.raises(RemoteAuthError) as exc_info:
            await make_api(store, server).request("GET", "/api/rooms")

        assert exc_info.value.is_unauthorized
        assert str(exc_info.value) == "Token revoked"
        assert storage.keys() == []

    @pytest.mark.asyncio
    async def test_403_keeps_session(self, store):
        await store.set_credential("tok")
        server = FakeServer({("GET", "/api/admin"): lambda r: httpx.Response(403)})

        with pytest.raises(RemoteAuthError, match="Permission denied") as exc_info:
            await make_api(store, server).request("GET", "/api/admin")

        assert exc_info.value.status_code == 403
        assert await store.get_token() == "tok"

    @pytest.mark.asyncio
    async def test_server_error(self, store):
        await store.set_credential("tok")
        server = FakeServer({("GET", "/api/rooms"): lambda r: httpx.Response(503, text="down")})

        with pytest.raises(RemoteAuthError, match="Server error") as exc_info:
            await make_api(store, server).request("GET", "/api/rooms")
        assert exc_info.value.status_code == 503

    @pytest.mark.asyncio
    async def test_non_json_body(self, store):
        await store.set_credential("tok")
        server = FakeServer({("GET", "/api/rooms"): lambda r: httpx.Response(200, text="<html>")})

        with pytest.raises(RemoteAuthError, match="not JSON"):
            await make_api(store, server).request("GET", "/api/rooms")

    @pytest.mark.asyncio
    async def test_transport_failure(self, store):
        def unreachable(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(RemoteAuthError) as exc_info:
            await make_api(store, unreachable).login("alice", "secret")
        assert exc_info.value.status_code is None


class TestRefresh:
    """Test the refresh endpoint."""

    @pytest.mark.asyncio
    async def test_refresh_sends_current_token(self, store):
        await store.set_credential("old")
        server = FakeServer({
            ("POST", "/api/auth/refresh"): ok({"data": PROFILE, "token": "new"}),
        })

        grant = await make_api(store, server).refresh_token()

        assert grant.token == "new"
        assert server.requests[0].headers["authorization"] == "Bearer old"


def test_requires_authentication():
    assert HttpSessionAPI.requires_authentication("/api/rooms")
    assert HttpSessionAPI.requires_authentication("/api/auth/me")
    assert not HttpSessionAPI.requires_authentication("/api/auth/login")
    assert not HttpSessionAPI.requires_authentication("/api/public/news")


@pytest.mark.asyncio
async def test_auto_login_over_http(store, storage, clock):
    """Test near-expiry auto-login where refresh and fallback both get 401."""
    await store.set_credential("tok", expiry_hours=1)
    clock.advance(minutes=50)
    server = FakeServer({
        ("POST", "/api/auth/refresh"): lambda r: httpx.Response(401),
        ("GET", "/api/auth/me"): lambda r: httpx.Response(401),
    })
    api = make_api(store, server)

    assert await SessionOrchestrator(store, api).attempt_auto_login() is None

    # the refresh 401 already cleared the session, so the fallback never reached the server
    assert server.paths() == ["/api/auth/refresh"]
    assert storage.keys() == []
    await api.close()


@pytest.mark.asyncio
async def test_auto_login_over_http_healthy(store, clock):
    await store.set_credential("tok", expiry_hours=2)
    server = FakeServer({("GET", "/api/auth/me"): ok({"data": PROFILE})})
    api = make_api(store, server)

    grant = await SessionOrchestrator(store, api).attempt_auto_login()

    assert grant.token == "tok"
    assert grant.user.username == "alice"
    assert server.paths() == ["/api/auth/me"]
