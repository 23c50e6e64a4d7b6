from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, status

from storedesk.api.backend import STAFF_ROLES, StubBackend, paginate, search_filter, sort_records
from storedesk.api.deps import get_backend, get_current_account, require_staff
from storedesk.domain.entities import OrderDraft

router = APIRouter()

EDITABLE_FIELDS = ("status", "trackingNumber", "shippingAddress", "paymentStatus", "refund")


def _order_or_404(
    backend: StubBackend, order_id: str, account: dict[str, Any]
) -> dict[str, Any]:
    order = backend.orders.get(order_id)
    # Customers only see their own orders
    if order is None or (
        account["role"] not in STAFF_ROLES and order["customer"]["_id"] != account["_id"]
    ):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")
    return order


@router.get("")
def list_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
    search: str = "",
    order_status: str | None = Query(None, alias="status"),
    sort_by: str | None = Query(None, alias="sortBy"),
    sort_order: str | None = Query(None, alias="sortOrder"),
    account: dict[str, Any] = Depends(get_current_account),
    backend: StubBackend = Depends(get_backend),
) -> dict[str, Any]:
    records = list(backend.orders.values())
    if account["role"] not in STAFF_ROLES:
        records = [o for o in records if o["customer"]["_id"] == account["_id"]]
    records = search_filter(records, search, ("invoiceNumber",))
    if order_status:
        records = [o for o in records if o["status"] == order_status]
    data, pagination = paginate(sort_records(records, sort_by, sort_order), page, limit)
    return {"success": True, "data": data, "pagination": pagination}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_order(
    draft: OrderDraft,
    account: dict[str, Any] = Depends(get_current_account),
    backend: StubBackend = Depends(get_backend),
) -> dict[str, Any]:
    if not draft.items:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Order has no items")
    order, client_secret = backend.create_order(account, draft.to_wire())
    body: dict[str, Any] = {"success": True, "data": order}
    if client_secret is not None:
        body["clientSecret"] = client_secret
    return body


@router.get("/{order_id}")
def get_order(
    order_id: str,
    account: dict[str, Any] = Depends(get_current_account),
    backend: StubBackend = Depends(get_backend),
) -> dict[str, Any]:
    return {"success": True, "data": _order_or_404(backend, order_id, account)}


@router.put("/{order_id}")
def update_order(
    order_id: str,
    changes: dict[str, Any],
    account: dict[str, Any] = Depends(require_staff),
    backend: StubBackend = Depends(get_backend),
) -> dict[str, Any]:
    order = _order_or_404(backend, order_id, account)
    order.update({k: v for k, v in changes.items() if k in EDITABLE_FIELDS})
    return {"success": True, "data": order}


@router.delete("/{order_id}")
def delete_order(
    order_id: str,
    account: dict[str, Any] = Depends(require_staff),
    backend: StubBackend = Depends(get_backend),
) -> dict[str, Any]:
    _order_or_404(backend, order_id, account)
    del backend.orders[order_id]
    return {"success": True, "message": "Order deleted"}


@router.post("/{order_id}/process-payment")
def process_payment(
    order_id: str,
    account: dict[str, Any] = Depends(get_current_account),
    backend: StubBackend = Depends(get_backend),
) -> dict[str, Any]:
    """Marks the payment completed; stands in for the processor's webhook."""
    _order_or_404(backend, order_id, account)
    return {"success": True, "data": backend.complete_payment(order_id)}
