"""
Customers component - cached customer list and customer edits.

Endpoints: GET/PUT/DELETE /customers[/{id}]
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from storedesk.components._collection import CollectionStore
from storedesk.domain.entities import Customer

from .models import CustomerQuery


class CustomerStore(CollectionStore[Customer, CustomerQuery]):
    path = "/customers"
    item_model = Customer
    query_model = CustomerQuery
    noun = "customers"

    async def fetch_customers(self, query: CustomerQuery | None = None, **filters: Any) -> list[Customer]:
        return await self.fetch(query, **filters)

    async def get_customer(self, customer_id: str) -> Customer:
        body = await self._call("Failed to fetch customer details", "GET", f"{self.path}/{customer_id}")
        return self._data(body)

    async def update_customer(self, customer_id: str, data: dict[str, Any]) -> Customer:
        body = await self._call("Failed to update customer", "PUT", f"{self.path}/{customer_id}", json=data)
        customer = self._data(body)
        self._replace(customer)
        return customer

    async def delete_customer(self, customer_id: str) -> None:
        await self._call("Failed to delete customer", "DELETE", f"{self.path}/{customer_id}")
        self._remove([customer_id])

    async def bulk_delete_customers(self, customer_ids: Iterable[str]) -> None:
        """Delete concurrently, then reload the current page."""
        await self._delete_many(list(customer_ids), "Failed to delete customers")
        await self.fetch()
