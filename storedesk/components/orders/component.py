"""
Orders component - order list, lifecycle edits and payment processing.

Endpoints: /orders, /orders/{id}, POST /orders/{id}/process-payment
"""

from __future__ import annotations

from typing import Any

from storedesk.components._collection import CollectionStore
from storedesk.domain.entities import Order, OrderDraft

from .models import CreatedOrder, OrderQuery


class OrderStore(CollectionStore[Order, OrderQuery]):
    path = "/orders"
    item_model = Order
    query_model = OrderQuery
    noun = "orders"

    async def fetch_orders(self, query: OrderQuery | None = None, **filters: Any) -> list[Order]:
        return await self.fetch(query, **filters)

    async def create_order(self, draft: OrderDraft | dict[str, Any]) -> CreatedOrder:
        """Create an order. Card orders come back with a client secret for checkout."""
        if not isinstance(draft, OrderDraft):
            draft = OrderDraft.model_validate(draft)
        body = await self._call("Failed to create order", "POST", self.path, json=draft.to_wire())
        order = self._data(body)
        self._prepend(order)
        return CreatedOrder(order=order, client_secret=body.get("clientSecret"))

    async def get_order(self, order_id: str) -> Order:
        body = await self._call("Failed to fetch order", "GET", f"{self.path}/{order_id}")
        return self._data(body)

    async def update_order(self, order_id: str, data: dict[str, Any]) -> Order:
        body = await self._call("Failed to update order", "PUT", f"{self.path}/{order_id}", json=data)
        order = self._data(body)
        self._replace(order)
        return order

    async def delete_order(self, order_id: str) -> None:
        await self._call("Failed to delete order", "DELETE", f"{self.path}/{order_id}")
        self._remove([order_id])

    async def process_payment(self, order_id: str) -> Order:
        body = await self._call(
            "Failed to process payment", "POST", f"{self.path}/{order_id}/process-payment"
        )
        order = self._data(body)
        self._replace(order)
        return order
