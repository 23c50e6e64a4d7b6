"""
In-memory state for the stub dashboard API.

Records are kept as wire-shaped dicts (camelCase keys, "_id" identifiers)
so route handlers can return them without translation. Password hashes
never leave this module.
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from storedesk.api.auth_utils import get_password_hash, verify_password
from storedesk.domain.entities import StoreSettings

STAFF_ROLES = frozenset({"staff", "admin", "manager"})


def _now() -> str:
    return datetime.now(UTC).isoformat()


def _new_id() -> str:
    return uuid4().hex[:24]


def paginate(
    records: list[dict[str, Any]], page: int, limit: int
) -> tuple[list[dict[str, Any]], dict[str, int]]:
    total = len(records)
    total_pages = max(1, -(-total // limit))
    start = (page - 1) * limit
    return records[start : start + limit], {
        "currentPage": page,
        "totalPages": total_pages,
        "totalItems": total,
    }


def search_filter(
    records: list[dict[str, Any]], term: str, fields: tuple[str, ...]
) -> list[dict[str, Any]]:
    if not term:
        return records
    needle = term.lower()
    return [r for r in records if any(needle in str(r.get(f, "")).lower() for f in fields)]


def sort_records(
    records: list[dict[str, Any]], sort_by: str | None, sort_order: str | None
) -> list[dict[str, Any]]:
    if not sort_by:
        return records
    return sorted(
        records,
        key=lambda r: (r.get(sort_by) is None, str(r.get(sort_by, ""))),
        reverse=sort_order == "desc",
    )


@dataclass
class StubBackend:
    accounts: dict[str, dict[str, Any]] = field(default_factory=dict)
    orders: dict[str, dict[str, Any]] = field(default_factory=dict)
    products: dict[str, dict[str, Any]] = field(default_factory=dict)
    settings: dict[str, Any] = field(
        default_factory=lambda: {"_id": _new_id(), **StoreSettings().to_wire()}
    )
    _hashes: dict[str, str] = field(default_factory=dict)
    _invoice_seq: int = 0

    # --- Accounts ---

    def add_account(
        self,
        email: str,
        password: str,
        role: str,
        *,
        username: str = "",
        fullname: str = "",
        phone_number: str = "",
        status: str = "active",
    ) -> dict[str, Any]:
        if self.find_by_email(email) is not None:
            raise ValueError("Email already in use")

        account = {
            "_id": _new_id(),
            "username": username or email.split("@")[0],
            "email": email,
            "fullname": fullname,
            "phoneNumber": phone_number,
            "role": role,
            "status": status,
            "dateJoined": _now(),
            "avatar": None,
        }
        if role == "customer":
            account["orders"] = []
            account["shippingAddress"] = None
        self.accounts[account["_id"]] = account
        self._hashes[account["_id"]] = get_password_hash(password)
        return account

    def find_by_email(self, email: str) -> dict[str, Any] | None:
        return next((a for a in self.accounts.values() if a["email"] == email), None)

    def authenticate(self, email: str, password: str) -> dict[str, Any] | None:
        account = self.find_by_email(email)
        if account is None or not verify_password(password, self._hashes[account["_id"]]):
            return None
        return account

    def remove_account(self, account_id: str) -> bool:
        self._hashes.pop(account_id, None)
        return self.accounts.pop(account_id, None) is not None

    def staff(self) -> list[dict[str, Any]]:
        return [a for a in self.accounts.values() if a["role"] in STAFF_ROLES]

    def customers(self) -> list[dict[str, Any]]:
        return [a for a in self.accounts.values() if a["role"] == "customer"]

    @staticmethod
    def profile(account: dict[str, Any]) -> dict[str, Any]:
        """Profile shape returned by the auth endpoints."""
        profile = {k: v for k, v in account.items() if k not in ("_id", "orders", "status")}
        profile["id"] = account["_id"]
        return profile

    # --- Orders ---

    def create_order(self, customer: dict[str, Any], draft: dict[str, Any]) -> tuple[dict[str, Any], str | None]:
        self._invoice_seq += 1
        items = draft.get("items", [])
        now = _now()
        order = {
            "_id": _new_id(),
            "invoiceNumber": f"INV-{self._invoice_seq:05d}",
            "customer": {
                "_id": customer["_id"],
                "fullname": customer.get("fullname", ""),
                "email": customer["email"],
            },
            "items": items,
            "totalAmount": round(sum(i["price"] * i["quantity"] for i in items), 2),
            "shippingAddress": draft.get("shippingAddress", {}),
            "status": "pending",
            "paymentMethod": draft.get("paymentMethod", "Transfer"),
            "paymentStatus": "pending",
            "orderTime": now,
            "createdAt": now,
            "updatedAt": now,
        }
        client_secret = None
        if order["paymentMethod"] == "Card":
            intent_id = f"pi_{secrets.token_hex(8)}"
            order["paymentIntentId"] = intent_id
            client_secret = f"{intent_id}_secret_{secrets.token_hex(8)}"
        self.orders[order["_id"]] = order
        if "orders" in customer:
            customer["orders"].append(order["_id"])
        return order, client_secret

    def complete_payment(self, order_id: str) -> dict[str, Any] | None:
        order = self.orders.get(order_id)
        if order is None:
            return None
        order["paymentStatus"] = "completed"
        if order["status"] == "pending":
            order["status"] = "processing"
        order["updatedAt"] = _now()
        return order

    # --- Products ---

    def add_product(self, data: dict[str, Any]) -> dict[str, Any]:
        now = _now()
        product = {
            "category": "",
            "stock": 0,
            "published": False,
            "description": "",
            "sku": "",
            "images": [],
            "tags": [],
            "variants": [],
            "ratings": {"average": 0, "count": 0},
            **data,
            "_id": _new_id(),
            "createdAt": now,
            "updatedAt": now,
        }
        self.products[product["_id"]] = product
        return product
