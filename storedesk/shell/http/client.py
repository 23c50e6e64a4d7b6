"""
Shared HTTP client for the dashboard API.

One httpx.AsyncClient per context, decorated on both sides:

- outgoing: BearerAuth adds "Authorization: Bearer <token>" while a token
  is attached. Detached means no header at all, never an empty one.
- incoming: a response hook watches for authentication rejection. A 401
  on a request that carried a bearer token clears the persisted
  credential, drops the attached copy and notifies subscribers, all before
  the error reaches the caller. The credential is only cleared while the
  rejected token is still the attached or stored one.

The client never swallows a failure: every error status or transport
problem is raised as ApiError after the side effects above.
"""

from __future__ import annotations

import logging
from collections.abc import Generator, Mapping
from typing import Any

import httpx

from storedesk.ports.api_client import AuthRejectedCallback
from storedesk.ports.credentials import CredentialStorePort
from storedesk.shell.http.errors import (
    AUTH_REJECTION_STATUSES,
    ApiError,
    ApiResult,
    ConfigurationError,
)

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


def clean_params(params: Mapping[str, Any] | None) -> dict[str, Any] | None:
    """Drop unset query parameters so optional filters are omitted, not sent empty."""
    if params is None:
        return None
    return {k: v for k, v in params.items() if v is not None}


class BearerAuth(httpx.Auth):
    """Attach the client's current token to every outgoing request."""

    def __init__(self, client: ApiClient) -> None:
        self._client = client

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        token = self._client.attached_token
        if token:
            request.headers["Authorization"] = f"{BEARER_PREFIX}{token}"
        yield request


class ApiClient:
    """
    Request dispatcher used by the session manager and every feature store.

    The token is held in memory and changed only through attach_token() /
    detach_token(); the credential store is touched only to clear it on
    rejection.
    """

    def __init__(
        self,
        base_url: str | None,
        credentials: CredentialStorePort,
        *,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Args:
            base_url: API root, e.g. "https://api.example.com"; None defers
                the failure to the first request (ConfigurationError)
            credentials: Persisted token store to clear on rejection
            timeout: Seconds per request; None disables client-side timeouts
            transport: Optional httpx transport (MockTransport/ASGITransport in tests)
        """
        self.base_url = (base_url or "").rstrip("/")
        self._credentials = credentials
        self._token: str | None = None
        self._auth_rejected_callbacks: list[AuthRejectedCallback] = []

        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            auth=BearerAuth(self),
            timeout=timeout,
            transport=transport,
            event_hooks={"response": [self._observe_response]},
        )

    # --- Token attachment ---

    @property
    def attached_token(self) -> str | None:
        return self._token

    def attach_token(self, token: str) -> None:
        self._token = token

    def detach_token(self) -> None:
        self._token = None

    def on_auth_rejected(self, callback: AuthRejectedCallback) -> None:
        """Subscribe to bearer-token rejections; called with the rejected token."""
        self._auth_rejected_callbacks.append(callback)

    # --- Interception ---

    async def _observe_response(self, response: httpx.Response) -> None:
        if response.status_code not in AUTH_REJECTION_STATUSES:
            return

        header = response.request.headers.get("Authorization", "")
        if not header.startswith(BEARER_PREFIX):
            # Credential exchange (e.g. wrong password), not a token rejection
            return

        rejected = header[len(BEARER_PREFIX):]
        where = f"{response.request.method} {response.request.url.path}"
        # A token rotated out while the request was in flight is stale
        if self._token == rejected or self._credentials.read() == rejected:
            logger.info(
                f"Bearer token rejected ({response.status_code}) on {where}; clearing stored credential"
            )
            self._credentials.clear()
            if self._token == rejected:
                self._token = None
        else:
            logger.debug(f"Ignoring rejection of a superseded token on {where}")

        for callback in list(self._auth_rejected_callbacks):
            callback(rejected)

    # --- Requests ---

    async def send(
        self,
        method: str,
        url: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Any = None,
        headers: Mapping[str, str] | None = None,
        authenticate: bool = True,
    ) -> httpx.Response:
        """
        Send a request and return the raw response.

        Raises:
            ConfigurationError: No base URL configured (before any I/O)
            ApiError: Error status (>= 400) or transport failure
        """
        if not self.base_url:
            raise ConfigurationError()

        # auth=None disables BearerAuth for this request only
        extra: dict[str, Any] = {} if authenticate else {"auth": None}

        logger.debug(f"{method} {url} authenticate={authenticate}")
        try:
            response = await self._http.request(
                method,
                url,
                params=clean_params(params),
                json=json,
                headers=headers,
                **extra,
            )
        except httpx.TransportError as e:
            logger.warning(f"{method} {url} failed: {type(e).__name__}: {e}")
            raise ApiError.from_transport(e) from e

        if response.is_error:
            raise ApiError.from_response(response)
        return response

    async def request(
        self,
        method: str,
        url: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Any = None,
        headers: Mapping[str, str] | None = None,
        authenticate: bool = True,
    ) -> Any:
        """Send a request and return the decoded JSON body (None when empty)."""
        response = await self.send(
            method, url, params=params, json=json, headers=headers, authenticate=authenticate
        )
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise ApiError.malformed(response.status_code) from e

    async def try_request(
        self,
        method: str,
        url: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Any = None,
        headers: Mapping[str, str] | None = None,
        authenticate: bool = True,
    ) -> ApiResult[Any]:
        """Like request(), but returns the failure instead of raising it."""
        try:
            body = await self.request(
                method, url, params=params, json=json, headers=headers, authenticate=authenticate
            )
        except ApiError as e:
            return ApiResult.failure(e)
        return ApiResult.success(body)

    async def get(self, url: str, **kwargs: Any) -> Any:
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, **kwargs: Any) -> Any:
        return await self.request("POST", url, **kwargs)

    async def put(self, url: str, **kwargs: Any) -> Any:
        return await self.request("PUT", url, **kwargs)

    async def delete(self, url: str, **kwargs: Any) -> Any:
        return await self.request("DELETE", url, **kwargs)

    # --- Lifecycle ---

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> ApiClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
