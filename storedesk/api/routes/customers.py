from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel

from storedesk.api.auth_utils import issue_token
from storedesk.api.backend import StubBackend, paginate, search_filter, sort_records
from storedesk.api.deps import get_backend, require_staff
from storedesk.api.routes.auth import LoginRequest

router = APIRouter()

EDITABLE_FIELDS = ("fullname", "phoneNumber", "shippingAddress", "status", "avatar")


class CustomerRegisterRequest(BaseModel):
    username: str = ""
    email: str
    password: str
    role: str = "customer"
    fullname: str = ""
    phoneNumber: str = ""


def _customer_or_404(backend: StubBackend, customer_id: str) -> dict[str, Any]:
    account = backend.accounts.get(customer_id)
    if account is None or account["role"] != "customer":
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Customer not found")
    return account


@router.post("/login")
def login(
    body: LoginRequest, backend: StubBackend = Depends(get_backend)
) -> dict[str, Any]:
    account = backend.authenticate(body.email, body.password)
    if account is None or account["role"] != "customer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password"
        )
    if account["status"] != "active":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is not active")

    return {"success": True, "token": issue_token(account), "data": backend.profile(account)}


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(
    body: CustomerRegisterRequest, backend: StubBackend = Depends(get_backend)
) -> dict[str, Any]:
    """Customers are active on registration and get a token straight away."""
    if body.role != "customer":
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Only customers can register here"
        )
    try:
        account = backend.add_account(
            body.email,
            body.password,
            "customer",
            username=body.username,
            fullname=body.fullname,
            phone_number=body.phoneNumber,
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e

    return {"success": True, "token": issue_token(account), "data": backend.profile(account)}


@router.get("")
def list_customers(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
    search: str = "",
    customer_status: str | None = Query(None, alias="status"),
    start_date: str | None = Query(None, alias="startDate"),
    end_date: str | None = Query(None, alias="endDate"),
    sort_by: str | None = Query(None, alias="sortBy"),
    sort_order: str | None = Query(None, alias="sortOrder"),
    _: dict[str, Any] = Depends(require_staff),
    backend: StubBackend = Depends(get_backend),
) -> dict[str, Any]:
    records = search_filter(backend.customers(), search, ("fullname", "email", "phoneNumber"))
    if customer_status:
        records = [r for r in records if r["status"] == customer_status]
    # ISO timestamps compare correctly as strings
    if start_date:
        records = [r for r in records if r["dateJoined"] >= start_date]
    if end_date:
        records = [r for r in records if r["dateJoined"][: len(end_date)] <= end_date]
    data, pagination = paginate(sort_records(records, sort_by, sort_order), page, limit)
    return {"success": True, "data": data, "pagination": pagination}


@router.get("/{customer_id}")
def get_customer(
    customer_id: str,
    _: dict[str, Any] = Depends(require_staff),
    backend: StubBackend = Depends(get_backend),
) -> dict[str, Any]:
    return {"success": True, "data": _customer_or_404(backend, customer_id)}


@router.put("/{customer_id}")
def update_customer(
    customer_id: str,
    changes: dict[str, Any],
    _: dict[str, Any] = Depends(require_staff),
    backend: StubBackend = Depends(get_backend),
) -> dict[str, Any]:
    account = _customer_or_404(backend, customer_id)
    account.update({k: v for k, v in changes.items() if k in EDITABLE_FIELDS})
    return {"success": True, "data": account}


@router.delete("/{customer_id}")
def delete_customer(
    customer_id: str,
    _: dict[str, Any] = Depends(require_staff),
    backend: StubBackend = Depends(get_backend),
) -> dict[str, Any]:
    _customer_or_404(backend, customer_id)
    backend.remove_account(customer_id)
    return {"success": True, "message": "Customer deleted"}
