from typing import Any, Literal

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel

from storedesk.api.auth_utils import decode_access_token, issue_token
from storedesk.api.backend import STAFF_ROLES, StubBackend, paginate, search_filter, sort_records
from storedesk.api.deps import get_backend, get_current_account, require_admin, require_roles

router = APIRouter()


class LoginRequest(BaseModel):
    email: str
    password: str


class RegisterRequest(BaseModel):
    username: str
    email: str
    password: str
    role: Literal["staff", "admin", "manager"]
    fullname: str = ""
    phoneNumber: str = ""


class RefreshRequest(BaseModel):
    token: str


@router.post("/login")
def login(
    body: LoginRequest, backend: StubBackend = Depends(get_backend)
) -> dict[str, Any]:
    """Staff login (admin, manager, staff)."""
    account = backend.authenticate(body.email, body.password)
    if account is None or account["role"] not in STAFF_ROLES:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password"
        )
    if account["status"] != "active":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is not active")

    return {"success": True, "token": issue_token(account), "data": backend.profile(account)}


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(
    body: RegisterRequest, backend: StubBackend = Depends(get_backend)
) -> dict[str, Any]:
    """Staff accounts start pending and get no token until activated."""
    try:
        account = backend.add_account(
            body.email,
            body.password,
            body.role,
            username=body.username,
            fullname=body.fullname,
            phone_number=body.phoneNumber,
            status="pending",
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e

    return {
        "success": True,
        "message": "Registration successful. Your account awaits activation.",
        "data": backend.profile(account),
    }


@router.get("/profile")
def profile(
    account: dict[str, Any] = Depends(get_current_account),
    backend: StubBackend = Depends(get_backend),
) -> dict[str, Any]:
    return {"success": True, "user": backend.profile(account)}


@router.post("/refresh-token")
def refresh_token(
    body: RefreshRequest, backend: StubBackend = Depends(get_backend)
) -> dict[str, Any]:
    payload = decode_access_token(body.token)
    account = backend.accounts.get(str(payload.get("sub"))) if payload else None
    if account is None or account["status"] != "active":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token"
        )
    return {"success": True, "token": issue_token(account)}


@router.get("/users")
def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
    search: str = "",
    role: str | None = None,
    user_status: str | None = Query(None, alias="status"),
    sort_by: str | None = Query(None, alias="sortBy"),
    sort_order: str | None = Query(None, alias="sortOrder"),
    _: dict[str, Any] = Depends(require_roles("admin", "manager")),
    backend: StubBackend = Depends(get_backend),
) -> dict[str, Any]:
    records = search_filter(backend.staff(), search, ("username", "fullname", "email"))
    if role:
        records = [r for r in records if r["role"] == role]
    if user_status:
        records = [r for r in records if r["status"] == user_status]
    data, pagination = paginate(sort_records(records, sort_by, sort_order), page, limit)
    return {"success": True, "data": data, "pagination": pagination}


@router.delete("/users/{user_id}")
def delete_user(
    user_id: str,
    actor: dict[str, Any] = Depends(require_admin),
    backend: StubBackend = Depends(get_backend),
) -> dict[str, Any]:
    if user_id == actor["_id"]:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot delete yourself")
    account = backend.accounts.get(user_id)
    if account is None or account["role"] not in STAFF_ROLES:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    backend.remove_account(user_id)
    return {"success": True, "message": "User deleted"}
