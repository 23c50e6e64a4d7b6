"""
Session component unit tests.

Covers bootstrap, login, registration, logout, mid-session token rejection,
refresh and local profile edits against an in-process fake server.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any

import httpx
import pytest
import pytest_asyncio

from storedesk.adapters.local_storage import InMemoryTokenStorage
from storedesk.components.session import (
    ReauthenticationRequired,
    SessionManager,
    SessionState,
    SessionSuperseded,
)
from storedesk.shell.http.client import ApiClient
from storedesk.shell.http.errors import ApiError, FailureKind

BASE_URL = "http://api.test"

ADMIN_PROFILE = {
    "id": "u-admin",
    "username": "ada",
    "email": "ada@example.com",
    "role": "admin",
    "fullname": "Ada Lovelace",
    "phoneNumber": "555-0100",
}

CUSTOMER_PROFILE = {
    "id": "u-cust",
    "username": "cam",
    "email": "cam@example.com",
    "role": "customer",
    "fullname": "Cam Buyer",
}


# --- Fake Server ---


class FakeServer:
    """Answers the auth endpoints for a fixed set of valid tokens."""

    def __init__(self) -> None:
        self.valid_tokens: set[str] = {"stored-token"}
        self.passwords = {"ada@example.com": "secret", "cam@example.com": "secret"}
        self.requests: list[httpx.Request] = []
        self.offline = False
        self.profile_body: Any = None
        self.gate: asyncio.Event | None = None
        # Per-path holds: the request waits until its event is set
        self.held: dict[str, asyncio.Event] = {}
        # Refused as bearer tokens, still accepted for refresh
        self.revoked: set[str] = set()
        self._issued = 0

    def issue(self) -> str:
        self._issued += 1
        token = f"token-{self._issued}"
        self.valid_tokens.add(token)
        return token

    def paths(self) -> list[str]:
        return [r.url.path for r in self.requests]

    async def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.gate is not None:
            await self.gate.wait()
        if request.url.path in self.held:
            await self.held[request.url.path].wait()
        if self.offline:
            raise httpx.ConnectError("connection refused", request=request)

        path = request.url.path
        body = json.loads(request.content) if request.content else {}

        if path in ("/auth/login", "/customers/login"):
            if self.passwords.get(body.get("email")) != body.get("password"):
                return httpx.Response(401, json={"success": False, "message": "Invalid email or password"})
            profile = CUSTOMER_PROFILE if path.startswith("/customers") else ADMIN_PROFILE
            return httpx.Response(200, json={"success": True, "token": self.issue(), "data": profile})

        if path == "/customers/register":
            return httpx.Response(
                201, json={"success": True, "token": self.issue(), "data": CUSTOMER_PROFILE}
            )

        if path == "/auth/register":
            return httpx.Response(201, json={"success": True, "message": "Awaiting activation"})

        if path == "/auth/refresh-token":
            if body.get("token") not in self.valid_tokens:
                return httpx.Response(401, json={"success": False, "message": "Invalid or expired token"})
            self.valid_tokens.discard(body["token"])
            return httpx.Response(200, json={"success": True, "token": self.issue()})

        # Everything else requires a valid bearer token
        bearer = request.headers.get("Authorization", "").removeprefix("Bearer ")
        if bearer not in self.valid_tokens or bearer in self.revoked:
            return httpx.Response(401, json={"success": False, "message": "Not authenticated"})

        if path == "/auth/profile":
            if self.profile_body is not None:
                return httpx.Response(200, json=self.profile_body)
            return httpx.Response(200, json={"success": True, "user": ADMIN_PROFILE})
        if path == "/orders":
            return httpx.Response(200, json={"success": True, "data": [], "pagination": {}})
        return httpx.Response(404, json={"success": False, "message": "Not found"})


# --- Fixtures ---


@pytest.fixture
def server() -> FakeServer:
    return FakeServer()


@pytest.fixture
def credentials() -> InMemoryTokenStorage:
    return InMemoryTokenStorage()


@pytest_asyncio.fixture
async def client(server: FakeServer, credentials: InMemoryTokenStorage):
    client = ApiClient(BASE_URL, credentials, transport=httpx.MockTransport(server.handle))
    yield client
    await client.aclose()


@pytest.fixture
def snapshots() -> list[SessionState]:
    return []


@pytest.fixture
def session(
    client: ApiClient, credentials: InMemoryTokenStorage, snapshots: list[SessionState]
) -> SessionManager:
    manager = SessionManager(client, credentials)
    client.on_auth_rejected(manager.handle_auth_rejected)
    manager.subscribe(snapshots.append)
    return manager


def assert_invariant(snapshots: list[SessionState]) -> None:
    for state in snapshots:
        if state.authenticated:
            assert state.token is not None
            assert state.current_user is not None


async def wait_for_request(server: FakeServer, count: int = 1) -> None:
    while len(server.requests) < count:
        await asyncio.sleep(0)


# --- Bootstrap Tests ---


class TestBootstrap:
    @pytest.mark.asyncio
    async def test_initial_state(self, session: SessionManager) -> None:
        """A fresh manager is unauthenticated and loading."""
        assert session.authenticated is False
        assert session.loading is True
        assert session.current_user is None
        assert session.token is None

    @pytest.mark.asyncio
    async def test_no_stored_token(self, session: SessionManager, server: FakeServer) -> None:
        """Without a stored credential no request is made."""
        await session.bootstrap()

        assert server.requests == []
        assert session.authenticated is False
        assert session.loading is False
        assert session.current_user is None

    @pytest.mark.asyncio
    async def test_valid_stored_token(
        self,
        session: SessionManager,
        client: ApiClient,
        credentials: InMemoryTokenStorage,
        server: FakeServer,
        snapshots: list[SessionState],
    ) -> None:
        credentials.write("stored-token")

        await session.bootstrap()

        assert session.authenticated is True
        assert session.token == "stored-token"
        assert session.current_user is not None
        assert session.current_user.email == "ada@example.com"
        assert session.current_user.full_name == "Ada Lovelace"
        assert session.loading is False
        assert client.attached_token == "stored-token"
        assert server.requests[0].headers["Authorization"] == "Bearer stored-token"
        assert_invariant(snapshots)

    @pytest.mark.asyncio
    async def test_rejected_token_clears_storage(
        self,
        session: SessionManager,
        client: ApiClient,
        credentials: InMemoryTokenStorage,
    ) -> None:
        credentials.write("expired-token")

        await session.bootstrap()

        assert session.authenticated is False
        assert session.loading is False
        assert credentials.read() is None
        assert client.attached_token is None

    @pytest.mark.asyncio
    async def test_malformed_profile_clears_storage(
        self,
        session: SessionManager,
        credentials: InMemoryTokenStorage,
        server: FakeServer,
    ) -> None:
        credentials.write("stored-token")
        server.profile_body = {"success": True}

        await session.bootstrap()

        assert session.authenticated is False
        assert credentials.read() is None

    @pytest.mark.asyncio
    async def test_transport_failure_keeps_storage(
        self,
        session: SessionManager,
        client: ApiClient,
        credentials: InMemoryTokenStorage,
        server: FakeServer,
    ) -> None:
        """An unreachable server says nothing about the token; keep it for next time."""
        credentials.write("stored-token")
        server.offline = True

        await session.bootstrap()

        assert session.authenticated is False
        assert session.loading is False
        assert client.attached_token is None
        assert credentials.read() == "stored-token"

    @pytest.mark.asyncio
    async def test_runs_once(
        self, session: SessionManager, credentials: InMemoryTokenStorage, server: FakeServer
    ) -> None:
        credentials.write("stored-token")

        await session.bootstrap()
        await session.bootstrap()

        assert server.paths() == ["/auth/profile"]

    @pytest.mark.asyncio
    async def test_concurrent_calls_share_one_request(
        self, session: SessionManager, credentials: InMemoryTokenStorage, server: FakeServer
    ) -> None:
        credentials.write("stored-token")

        await asyncio.gather(session.bootstrap(), session.bootstrap(), session.bootstrap())

        assert server.paths() == ["/auth/profile"]
        assert session.authenticated is True

    @pytest.mark.asyncio
    async def test_missing_base_url_does_not_raise(self) -> None:
        credentials = InMemoryTokenStorage("stored-token")
        client = ApiClient(None, credentials)
        manager = SessionManager(client, credentials)

        await manager.bootstrap()

        assert manager.authenticated is False
        assert manager.loading is False
        await client.aclose()


# --- Login Tests ---


class TestLogin:
    @pytest.mark.asyncio
    async def test_login_success(
        self,
        session: SessionManager,
        client: ApiClient,
        credentials: InMemoryTokenStorage,
        server: FakeServer,
        snapshots: list[SessionState],
    ) -> None:
        await session.bootstrap()

        user = await session.login("ada@example.com", "secret")

        assert user.email == "ada@example.com"
        assert session.authenticated is True
        assert session.loading is False
        assert session.token == "token-1"
        assert credentials.read() == "token-1"
        assert client.attached_token == "token-1"
        assert server.paths() == ["/auth/login"]
        assert_invariant(snapshots)

    @pytest.mark.asyncio
    async def test_token_attached_to_later_requests(
        self, session: SessionManager, client: ApiClient, server: FakeServer
    ) -> None:
        await session.login("ada@example.com", "secret")

        await client.request("GET", "/orders")

        assert server.requests[-1].headers["Authorization"] == "Bearer token-1"

    @pytest.mark.asyncio
    async def test_login_request_carries_no_bearer(
        self,
        session: SessionManager,
        credentials: InMemoryTokenStorage,
        server: FakeServer,
    ) -> None:
        credentials.write("stored-token")
        await session.bootstrap()

        await session.login("ada@example.com", "secret")

        login_request = server.requests[-1]
        assert login_request.url.path == "/auth/login"
        assert "Authorization" not in login_request.headers

    @pytest.mark.asyncio
    async def test_customer_role_uses_customer_endpoint(
        self, session: SessionManager, server: FakeServer
    ) -> None:
        user = await session.login("cam@example.com", "secret", role="customer")

        assert server.paths() == ["/customers/login"]
        assert user.role == "customer"

    @pytest.mark.asyncio
    async def test_failure_from_unauthenticated(
        self, session: SessionManager, credentials: InMemoryTokenStorage
    ) -> None:
        await session.bootstrap()

        with pytest.raises(ApiError) as exc_info:
            await session.login("ada@example.com", "wrong")

        assert exc_info.value.kind is FailureKind.UNAUTHORIZED
        assert exc_info.value.message == "Invalid email or password"
        assert session.authenticated is False
        assert session.loading is False
        assert credentials.read() is None

    @pytest.mark.asyncio
    async def test_failure_keeps_existing_session(
        self,
        session: SessionManager,
        client: ApiClient,
        credentials: InMemoryTokenStorage,
    ) -> None:
        """A wrong password while signed in must not sign anyone out."""
        credentials.write("stored-token")
        await session.bootstrap()

        with pytest.raises(ApiError):
            await session.login("ada@example.com", "wrong")

        assert session.authenticated is True
        assert session.token == "stored-token"
        assert credentials.read() == "stored-token"
        assert client.attached_token == "stored-token"
        assert session.loading is False

    @pytest.mark.asyncio
    async def test_loading_while_pending(
        self, session: SessionManager, server: FakeServer
    ) -> None:
        await session.bootstrap()
        server.gate = asyncio.Event()

        task = asyncio.create_task(session.login("ada@example.com", "secret"))
        await wait_for_request(server)
        assert session.loading is True

        server.gate.set()
        await task
        assert session.loading is False

    @pytest.mark.asyncio
    async def test_logout_supersedes_inflight_login(
        self,
        session: SessionManager,
        client: ApiClient,
        credentials: InMemoryTokenStorage,
        server: FakeServer,
    ) -> None:
        await session.bootstrap()
        server.gate = asyncio.Event()

        task = asyncio.create_task(session.login("ada@example.com", "secret"))
        await wait_for_request(server)
        session.logout()
        assert session.loading is False

        server.gate.set()
        with pytest.raises(SessionSuperseded):
            await task

        assert session.authenticated is False
        assert session.loading is False
        assert credentials.read() is None
        assert client.attached_token is None


# --- Register Tests ---


class TestRegister:
    @pytest.mark.asyncio
    async def test_customer_registration_signs_in(
        self, session: SessionManager, credentials: InMemoryTokenStorage, server: FakeServer
    ) -> None:
        body = await session.register(
            {
                "username": "cam",
                "email": "cam@example.com",
                "password": "secret",
                "role": "customer",
            }
        )

        assert body["success"] is True
        assert server.paths() == ["/customers/register"]
        assert session.authenticated is True
        assert session.current_user is not None
        assert session.current_user.role == "customer"
        assert credentials.read() == session.token

    @pytest.mark.asyncio
    async def test_staff_registration_leaves_session(
        self, session: SessionManager, credentials: InMemoryTokenStorage, server: FakeServer
    ) -> None:
        credentials.write("stored-token")
        await session.bootstrap()

        body = await session.register(
            {
                "username": "sam",
                "email": "sam@example.com",
                "password": "secret",
                "role": "staff",
                "fullname": "Sam Staff",
            }
        )

        assert body["message"] == "Awaiting activation"
        assert server.paths()[-1] == "/auth/register"
        assert json.loads(server.requests[-1].content)["fullname"] == "Sam Staff"
        assert session.token == "stored-token"
        assert session.current_user is not None
        assert session.current_user.email == "ada@example.com"


# --- Logout / Rejection Tests ---


class TestLogout:
    @pytest.mark.asyncio
    async def test_logout_clears_everything(
        self,
        session: SessionManager,
        client: ApiClient,
        credentials: InMemoryTokenStorage,
        server: FakeServer,
    ) -> None:
        await session.login("ada@example.com", "secret")
        request_count = len(server.requests)

        session.logout()

        assert session.authenticated is False
        assert session.current_user is None
        assert session.token is None
        assert session.loading is False
        assert credentials.read() is None
        assert client.attached_token is None
        # No server call
        assert len(server.requests) == request_count

    @pytest.mark.asyncio
    async def test_logout_is_idempotent(self, session: SessionManager) -> None:
        session.logout()
        session.logout()

        assert session.authenticated is False
        assert session.loading is False

    @pytest.mark.asyncio
    async def test_no_bearer_after_logout(
        self, session: SessionManager, client: ApiClient, server: FakeServer
    ) -> None:
        await session.login("ada@example.com", "secret")
        session.logout()

        with pytest.raises(ApiError):
            await client.request("GET", "/orders")

        assert "Authorization" not in server.requests[-1].headers


class TestAuthRejected:
    @pytest.mark.asyncio
    async def test_mid_session_401_clears_before_raising(
        self,
        session: SessionManager,
        client: ApiClient,
        credentials: InMemoryTokenStorage,
        server: FakeServer,
    ) -> None:
        credentials.write("stored-token")
        await session.bootstrap()
        server.valid_tokens.clear()

        try:
            await client.request("GET", "/orders")
        except ApiError as e:
            # Side effects are already visible when the caller sees the error
            assert e.kind is FailureKind.UNAUTHORIZED
            assert credentials.read() is None
            assert session.authenticated is False
            assert session.current_user is None
            assert client.attached_token is None
        else:
            pytest.fail("expected ApiError")

    @pytest.mark.asyncio
    async def test_stale_token_rejection_ignored(
        self, session: SessionManager, credentials: InMemoryTokenStorage
    ) -> None:
        await session.login("ada@example.com", "secret")

        session.handle_auth_rejected("some-older-token")

        assert session.authenticated is True
        assert credentials.read() == session.token

    @pytest.mark.asyncio
    async def test_rejection_supersedes_inflight_refresh(
        self,
        session: SessionManager,
        client: ApiClient,
        credentials: InMemoryTokenStorage,
        server: FakeServer,
    ) -> None:
        """A refresh that lands after the session was rejected must not revive it."""
        await session.login("ada@example.com", "secret")
        release = server.held["/auth/refresh-token"] = asyncio.Event()

        refresh = asyncio.create_task(session.refresh_token())
        await wait_for_request(server, 2)

        server.revoked.add("token-1")
        with pytest.raises(ApiError):
            await client.request("GET", "/orders")
        assert session.authenticated is False
        assert session.loading is False

        release.set()
        with pytest.raises(SessionSuperseded):
            await refresh

        assert session.authenticated is False
        assert session.current_user is None
        assert session.token is None
        assert session.loading is False
        assert credentials.read() is None
        assert client.attached_token is None

    @pytest.mark.asyncio
    async def test_late_rejection_of_rotated_token_keeps_session(
        self,
        session: SessionManager,
        client: ApiClient,
        credentials: InMemoryTokenStorage,
        server: FakeServer,
    ) -> None:
        """A request sent with the old token is refused after refresh rotated it."""
        await session.login("ada@example.com", "secret")
        release = server.held["/orders"] = asyncio.Event()

        pending = asyncio.create_task(client.request("GET", "/orders"))
        await wait_for_request(server, 2)
        token = await session.refresh_token()

        release.set()
        with pytest.raises(ApiError) as exc_info:
            await pending

        assert exc_info.value.kind is FailureKind.UNAUTHORIZED
        assert token == "token-2"
        assert session.authenticated is True
        assert session.token == "token-2"
        assert credentials.read() == "token-2"
        assert client.attached_token == "token-2"


# --- Refresh Tests ---


class TestRefresh:
    @pytest.mark.asyncio
    async def test_refresh_rotates_token(
        self,
        session: SessionManager,
        client: ApiClient,
        credentials: InMemoryTokenStorage,
        server: FakeServer,
    ) -> None:
        await session.login("ada@example.com", "secret")
        user = session.current_user

        token = await session.refresh_token()

        assert token == "token-2"
        assert session.token == "token-2"
        assert session.current_user == user
        assert credentials.read() == "token-2"
        assert client.attached_token == "token-2"
        assert "Authorization" not in server.requests[-1].headers

    @pytest.mark.asyncio
    async def test_refresh_without_session(self, session: SessionManager, server: FakeServer) -> None:
        with pytest.raises(ReauthenticationRequired):
            await session.refresh_token()

        assert server.requests == []
        assert session.authenticated is False
        assert session.loading is False

    @pytest.mark.asyncio
    async def test_refresh_rejected_logs_out(
        self,
        session: SessionManager,
        credentials: InMemoryTokenStorage,
        server: FakeServer,
    ) -> None:
        await session.login("ada@example.com", "secret")
        server.valid_tokens.clear()

        with pytest.raises(ReauthenticationRequired):
            await session.refresh_token()

        assert session.authenticated is False
        assert credentials.read() is None

    @pytest.mark.asyncio
    async def test_refresh_transport_failure_keeps_session(
        self,
        session: SessionManager,
        credentials: InMemoryTokenStorage,
        server: FakeServer,
    ) -> None:
        await session.login("ada@example.com", "secret")
        server.offline = True

        with pytest.raises(ApiError) as exc_info:
            await session.refresh_token()

        assert exc_info.value.kind is FailureKind.TRANSPORT
        assert session.authenticated is True
        assert session.token == "token-1"
        assert credentials.read() == "token-1"

    @pytest.mark.asyncio
    async def test_concurrent_refresh_single_flight(
        self, session: SessionManager, server: FakeServer
    ) -> None:
        await session.login("ada@example.com", "secret")

        tokens = await asyncio.gather(session.refresh_token(), session.refresh_token())

        assert tokens == ["token-2", "token-2"]
        assert server.paths().count("/auth/refresh-token") == 1


# --- Local Profile Edit Tests ---


class TestUpdateUserInStore:
    @pytest.mark.asyncio
    async def test_no_user_is_noop(self, session: SessionManager) -> None:
        assert session.update_user_in_store({"fullname": "Nobody"}) is None
        assert session.current_user is None

    @pytest.mark.asyncio
    async def test_merges_wire_and_field_names(
        self, session: SessionManager, server: FakeServer
    ) -> None:
        await session.login("ada@example.com", "secret")
        request_count = len(server.requests)

        updated = session.update_user_in_store({"fullname": "Ada King", "phone_number": "555-0199"})

        assert updated is not None
        assert session.current_user == updated
        assert updated.full_name == "Ada King"
        assert updated.phone_number == "555-0199"
        assert updated.email == "ada@example.com"
        assert session.authenticated is True
        assert len(server.requests) == request_count
