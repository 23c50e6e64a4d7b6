from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import ValidationError

from storedesk.api.backend import StubBackend, paginate, search_filter, sort_records
from storedesk.api.deps import get_backend, require_staff
from storedesk.domain.entities import Product

router = APIRouter()


def _validated(record: dict[str, Any]) -> dict[str, Any]:
    try:
        Product.model_validate(record)
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Invalid product: {e.error_count()} field error(s)",
        ) from e
    return record


def _product_or_404(backend: StubBackend, product_id: str) -> dict[str, Any]:
    product = backend.products.get(product_id)
    if product is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    return product


@router.get("")
def list_products(
    page: int = Query(1, ge=1),
    limit: int = Query(8, ge=1),
    search: str = "",
    category: str | None = None,
    min_price: float | None = Query(None, alias="minPrice"),
    max_price: float | None = Query(None, alias="maxPrice"),
    published: bool | None = None,
    sort_by: str | None = Query("createdAt", alias="sortBy"),
    sort_order: str | None = Query(None, alias="sortOrder"),
    backend: StubBackend = Depends(get_backend),
) -> dict[str, Any]:
    records = search_filter(list(backend.products.values()), search, ("name", "sku", "category"))
    if category:
        records = [p for p in records if p["category"] == category]
    if min_price is not None:
        records = [p for p in records if p["price"] >= min_price]
    if max_price is not None:
        records = [p for p in records if p["price"] <= max_price]
    if published is not None:
        records = [p for p in records if p["published"] is published]
    data, pagination = paginate(sort_records(records, sort_by, sort_order), page, limit)
    return {"success": True, "data": data, "pagination": pagination}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_product(
    data: dict[str, Any],
    _: dict[str, Any] = Depends(require_staff),
    backend: StubBackend = Depends(get_backend),
) -> dict[str, Any]:
    _validated({**data, "_id": "new"})
    return {"success": True, "data": backend.add_product(data)}


@router.put("/{product_id}")
def update_product(
    product_id: str,
    changes: dict[str, Any],
    _: dict[str, Any] = Depends(require_staff),
    backend: StubBackend = Depends(get_backend),
) -> dict[str, Any]:
    product = _product_or_404(backend, product_id)
    changes = {k: v for k, v in changes.items() if k not in ("_id", "createdAt")}
    updated = _validated({**product, **changes})
    product.update(updated)
    return {"success": True, "data": product}


@router.delete("/{product_id}")
def delete_product(
    product_id: str,
    _: dict[str, Any] = Depends(require_staff),
    backend: StubBackend = Depends(get_backend),
) -> dict[str, Any]:
    _product_or_404(backend, product_id)
    del backend.products[product_id]
    return {"success": True, "message": "Product deleted"}
