"""
Products component - catalogue list and product edits.

Endpoints: /products, /products/{id}
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from storedesk.components._collection import CollectionStore
from storedesk.domain.entities import Product

from .models import ProductQuery


class ProductStore(CollectionStore[Product, ProductQuery]):
    path = "/products"
    item_model = Product
    query_model = ProductQuery
    noun = "products"

    async def fetch_products(self, query: ProductQuery | None = None, **filters: Any) -> list[Product]:
        return await self.fetch(query, **filters)

    async def create_product(self, data: dict[str, Any]) -> Product:
        body = await self._call("Failed to create product", "POST", self.path, json=data)
        product = self._data(body)
        self._prepend(product)
        return product

    async def update_product(self, product_id: str, data: dict[str, Any]) -> Product:
        body = await self._call("Failed to update product", "PUT", f"{self.path}/{product_id}", json=data)
        product = self._data(body)
        self._replace(product)
        return product

    async def delete_product(self, product_id: str) -> None:
        await self._call("Failed to delete product", "DELETE", f"{self.path}/{product_id}")
        self._remove([product_id])

    async def bulk_delete_products(self, product_ids: Iterable[str]) -> None:
        """Delete concurrently; the cache only drops the ids once all deletes succeed."""
        ids = list(product_ids)
        await self._delete_many(ids, "Failed to delete products")
        self._remove(ids)
