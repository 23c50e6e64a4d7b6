from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any, Protocol

import httpx

if TYPE_CHECKING:
    from storedesk.shell.http.errors import ApiResult

AuthRejectedCallback = Callable[[str], None]


class ApiClientPort(Protocol):
    """What session and feature stores need from the HTTP client."""

    def attach_token(self, token: str) -> None: ...

    def detach_token(self) -> None: ...

    @property
    def attached_token(self) -> str | None: ...

    def on_auth_rejected(self, callback: AuthRejectedCallback) -> None: ...

    async def request(
        self,
        method: str,
        url: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Any = None,
        headers: Mapping[str, str] | None = None,
        authenticate: bool = True,
    ) -> Any: ...

    async def try_request(
        self,
        method: str,
        url: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Any = None,
        headers: Mapping[str, str] | None = None,
        authenticate: bool = True,
    ) -> "ApiResult[Any]": ...

    async def send(
        self,
        method: str,
        url: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Any = None,
        headers: Mapping[str, str] | None = None,
        authenticate: bool = True,
    ) -> httpx.Response: ...
