from collections.abc import Callable
from typing import Annotated, Any

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from storedesk.api.auth_utils import decode_access_token
from storedesk.api.backend import StubBackend


def get_backend(request: Request) -> StubBackend:
    backend: StubBackend = request.app.state.backend
    return backend


# --- Auth ---
bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_account(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    backend: StubBackend = Depends(get_backend),
) -> dict[str, Any]:
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = decode_access_token(credentials.credentials)
    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    account = backend.accounts.get(str(payload.get("sub")))
    if account is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )

    if account["status"] != "active":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is not active")

    return account


def require_roles(*roles: str) -> Callable[..., Any]:
    """Dependency allowing only the given roles through."""

    async def _check(
        account: dict[str, Any] = Depends(get_current_account),
    ) -> dict[str, Any]:
        if account["role"] not in roles:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")
        return account

    return _check


require_staff = require_roles("staff", "admin", "manager")
require_admin = require_roles("admin")
