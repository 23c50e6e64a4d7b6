"""
Session component - client-side authentication lifecycle.

Owns the in-memory SessionState, mirrors the token into the credential
store and attaches it to the API client.

State machine:
    UNINITIALIZED -(bootstrap)-> AUTHENTICATED | UNAUTHENTICATED
    UNAUTHENTICATED -(login / self-activating register)-> AUTHENTICATED
    AUTHENTICATED -(logout / 401 / refresh rejected)-> UNAUTHENTICATED
    AUTHENTICATED -(refresh)-> AUTHENTICATED (token rotated)

Concurrency:
- network transitions run one at a time behind a single lock
- bootstrap() and refresh_token() are single-flight
- logout() is synchronous and supersedes every operation started before it
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from storedesk.domain.entities import RegistrationData, RoleType, UserProfile
from storedesk.ports.api_client import ApiClientPort
from storedesk.ports.credentials import CredentialStorePort
from storedesk.shell.http.errors import ApiError, ConfigurationError, FailureKind

from .models import (
    LoginResponse,
    ProfileResponse,
    ReauthenticationRequired,
    RefreshResponse,
    SessionError,
    SessionListener,
    SessionState,
    SessionSuperseded,
)

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

# --- Endpoints ---

PROFILE_PATH = "/auth/profile"
STAFF_LOGIN_PATH = "/auth/login"
CUSTOMER_LOGIN_PATH = "/customers/login"
STAFF_REGISTER_PATH = "/auth/register"
CUSTOMER_REGISTER_PATH = "/customers/register"
REFRESH_PATH = "/auth/refresh-token"


def login_path(role: RoleType | None) -> str:
    """Customers authenticate against their own endpoint; everyone else uses /auth."""
    return CUSTOMER_LOGIN_PATH if role == "customer" else STAFF_LOGIN_PATH


def register_path(role: RoleType) -> str:
    return CUSTOMER_REGISTER_PATH if role == "customer" else STAFF_REGISTER_PATH


def _parse(model: type[M], body: Any) -> M:
    """Validate a response body; a shape mismatch is a malformed response."""
    try:
        return model.model_validate(body)
    except ValidationError as e:
        raise ApiError.malformed(payload=body) from e


def _profile_aliases() -> dict[str, str]:
    aliases = {"_id": "id"}
    for name, info in UserProfile.model_fields.items():
        for alias in (info.alias, info.serialization_alias):
            if alias:
                aliases[alias] = name
    return aliases


_PROFILE_ALIASES = _profile_aliases()


class SessionManager:
    """Process-wide session; construct once and pass it to consumers."""

    def __init__(self, client: ApiClientPort, credentials: CredentialStorePort) -> None:
        self._client = client
        self._credentials = credentials
        self.state = SessionState()

        self._lock = asyncio.Lock()
        self._epoch = 0
        self._pending = 0
        self._bootstrapped = False
        self._bootstrap_task: asyncio.Task[None] | None = None
        self._refresh_task: asyncio.Task[str] | None = None
        self._listeners: list[SessionListener] = []

    # --- Read-only views ---

    @property
    def current_user(self) -> UserProfile | None:
        return self.state.current_user

    @property
    def token(self) -> str | None:
        return self.state.token

    @property
    def authenticated(self) -> bool:
        return self.state.authenticated

    @property
    def loading(self) -> bool:
        return self.state.loading

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Call listener with a state snapshot after every change. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # --- State bookkeeping ---

    def _set(self, **changes: Any) -> None:
        for key, value in changes.items():
            setattr(self.state, key, value)

        if self.state.authenticated and (self.state.token is None or self.state.current_user is None):
            raise SessionError("authenticated session without token or user")

        snapshot = self.state.snapshot()
        for listener in list(self._listeners):
            listener(snapshot)

    def _clear_session(self) -> None:
        self._set(current_user=None, token=None, authenticated=False)

    def _establish(self, token: str, user: UserProfile) -> None:
        self._credentials.write(token)
        self._client.attach_token(token)
        self._set(current_user=user, token=token, authenticated=True)

    def _begin(self) -> int:
        self._pending += 1
        self._set(loading=True)
        return self._epoch

    def _finish(self, epoch: int) -> None:
        # Superseded operations no longer own the loading flag
        if epoch != self._epoch:
            return
        self._pending -= 1
        self._set(loading=self._pending > 0)

    def _is_current(self, epoch: int) -> bool:
        return epoch == self._epoch

    # --- Bootstrap ---

    async def bootstrap(self) -> None:
        """
        Restore a session from the persisted credential.

        Runs once per manager; later calls return immediately and concurrent
        calls share the in-flight attempt. Never raises.
        """
        if self._bootstrapped:
            return
        task = self._bootstrap_task
        if task is None:
            task = self._bootstrap_task = asyncio.create_task(self._bootstrap())
        await task

    async def _bootstrap(self) -> None:
        epoch = self._begin()
        try:
            async with self._lock:
                if self._is_current(epoch):
                    await self._restore(epoch)
        except Exception:
            logger.exception("Session bootstrap failed unexpectedly")
            if self._is_current(epoch):
                self._client.detach_token()
                self._clear_session()
        finally:
            self._bootstrapped = True
            self._bootstrap_task = None
            self._finish(epoch)

    async def _restore(self, epoch: int) -> None:
        token = self._credentials.read()
        if not token:
            logger.info("No stored credential; starting unauthenticated")
            self._clear_session()
            return

        self._client.attach_token(token)
        try:
            body = await self._client.request("GET", PROFILE_PATH)
            profile = _parse(ProfileResponse, body)
            if not profile.success or profile.user is None:
                raise ApiError.malformed(payload=body)
        except ConfigurationError as e:
            logger.error(f"Cannot restore session: {e}")
            self._client.detach_token()
            self._clear_session()
            return
        except ApiError as e:
            if not self._is_current(epoch):
                return
            self._client.detach_token()
            if e.kind is FailureKind.TRANSPORT:
                # Keep the stored credential; the server was never asked
                logger.warning(f"Could not reach server to restore session: {e.message}")
            else:
                if e.is_unauthorized:
                    logger.info("Stored credential expired or invalid; starting unauthenticated")
                else:
                    logger.warning(f"Session restore failed: {e.message}")
                self._credentials.clear()
            self._clear_session()
            return

        if not self._is_current(epoch):
            return
        self._set(current_user=profile.user, token=token, authenticated=True)
        logger.info(f"Session restored for {profile.user.email} ({profile.user.role})")

    # --- Login / register ---

    async def login(self, email: str, password: str, role: RoleType | None = None) -> UserProfile:
        """
        Exchange credentials for a token.

        role selects the endpoint variant (customer vs. staff roles). A failed
        attempt leaves any existing session untouched and re-raises.
        """
        epoch = self._begin()
        try:
            async with self._lock:
                body = await self._client.request(
                    "POST",
                    login_path(role),
                    json={"email": email, "password": password},
                    authenticate=False,
                )
                result = _parse(LoginResponse, body)
                if not self._is_current(epoch):
                    raise SessionSuperseded("Login finished after logout; result discarded")
                self._establish(result.token, result.data)
                logger.info(f"Logged in as {result.data.email} ({result.data.role})")
                return result.data
        except ApiError as e:
            if e.is_unauthorized:
                logger.info("Login rejected: invalid credentials")
            else:
                logger.warning(f"Login failed: {e.message}")
            raise
        finally:
            self._finish(epoch)

    async def register(self, data: RegistrationData | Mapping[str, Any]) -> Any:
        """
        Register an account and return the server's response body.

        Customer registration grants a session immediately and is treated like
        a login. Staff-type roles need separate activation, so the session is
        left as it is.
        """
        registration = (
            data if isinstance(data, RegistrationData) else RegistrationData.model_validate(data)
        )
        epoch = self._begin()
        try:
            async with self._lock:
                body = await self._client.request(
                    "POST",
                    register_path(registration.role),
                    json=registration.to_wire(),
                    authenticate=False,
                )
                if registration.self_activating and isinstance(body, dict) and body.get("token"):
                    result = _parse(LoginResponse, body)
                    if not self._is_current(epoch):
                        raise SessionSuperseded("Registration finished after logout; session discarded")
                    self._establish(result.token, result.data)
                    logger.info(f"Registered and logged in as {result.data.email}")
                else:
                    logger.info(f"Registered {registration.email} ({registration.role}); awaiting activation")
                return body
        except ApiError as e:
            logger.warning(f"Registration failed: {e.message}")
            raise
        finally:
            self._finish(epoch)

    # --- Logout / rejection ---

    def logout(self) -> None:
        """Drop the session locally. No server call; never fails; idempotent."""
        self._epoch += 1
        self._pending = 0
        try:
            self._credentials.clear()
        except OSError as e:
            logger.warning(f"Could not clear stored credential: {e}")
        self._client.detach_token()
        self._set(current_user=None, token=None, authenticated=False, loading=False)

    def handle_auth_rejected(self, token: str) -> None:
        """
        React to the API client rejecting a bearer token mid-session.

        Only the token currently held counts; a late 401 for a token that has
        since been rotated is ignored. A rejection ends the session like
        logout(), so operations already in flight (a refresh, say) cannot
        bring a token back.
        """
        if not self.state.authenticated or token != self.state.token:
            return
        logger.info("Session token rejected by server; signing out")
        self.logout()

    # --- Refresh ---

    async def refresh_token(self) -> str:
        """
        Rotate the current token. Concurrent callers share one request.

        Raises:
            ReauthenticationRequired: No session, or the server refused the token
            ApiError: Transport failure (session left as it was)
        """
        task = self._refresh_task
        if task is None:
            task = self._refresh_task = asyncio.create_task(self._refresh())
        return await task

    async def _refresh(self) -> str:
        epoch = self._begin()
        try:
            async with self._lock:
                current = self.state.token
                if not current:
                    if self._is_current(epoch):
                        self.logout()
                    raise ReauthenticationRequired("No session to refresh")

                try:
                    body = await self._client.request(
                        "POST", REFRESH_PATH, json={"token": current}, authenticate=False
                    )
                    result = _parse(RefreshResponse, body)
                except ApiError as e:
                    if e.kind is FailureKind.TRANSPORT:
                        logger.warning(f"Token refresh could not reach server: {e.message}")
                        raise
                    logger.info(f"Token refresh rejected: {e.message}; signing out")
                    if self._is_current(epoch):
                        self.logout()
                    raise ReauthenticationRequired(e.message) from e

                if not self._is_current(epoch):
                    raise SessionSuperseded("Refresh finished after logout; token discarded")
                self._credentials.write(result.token)
                self._client.attach_token(result.token)
                self._set(token=result.token)
                logger.debug("Session token rotated")
                return result.token
        finally:
            self._refresh_task = None
            self._finish(epoch)

    # --- Local profile edits ---

    def update_user_in_store(self, partial: Mapping[str, Any]) -> UserProfile | None:
        """
        Merge a partial profile into current_user without a network call.

        Accepts wire names (fullname, phoneNumber) or field names. No-op when
        nobody is signed in.
        """
        user = self.state.current_user
        if user is None:
            return None

        merged = user.model_dump()
        for key, value in partial.items():
            merged[_PROFILE_ALIASES.get(key, key)] = value
        updated = UserProfile.model_validate(merged)
        self._set(current_user=updated)
        return updated
