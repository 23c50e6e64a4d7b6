"""
Shared machinery for the feature stores.

A store caches one page of a server-side collection plus the query that
produced it. Pagination, search, filter and sort values are passed straight
through to the server as query-string parameters.

Conventions:
- list fetches never raise; the failure message lands in `error`
- mutations update the cached page in place and re-raise failures
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from typing import Any, ClassVar, Generic, Literal, TypeVar

from pydantic import Field, ValidationError

from storedesk.domain.entities import Pagination, WireModel
from storedesk.ports.api_client import ApiClientPort
from storedesk.shell.http.errors import ApiError, user_message

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=WireModel)
Q = TypeVar("Q", bound="ListQuery")

SortOrder = Literal["asc", "desc"]


class ListQuery(WireModel):
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1)
    search: str = ""
    sort_by: str | None = Field(default=None, alias="sortBy")
    sort_order: SortOrder | None = Field(default=None, alias="sortOrder")

    def to_params(self) -> dict[str, Any]:
        """Query-string parameters in the server's naming; unset filters are omitted."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class ListEnvelope(WireModel):
    data: list[dict[str, Any]] = Field(default_factory=list)
    pagination: Pagination = Field(default_factory=Pagination)


class CollectionStore(Generic[T, Q]):
    """Base for a cached, paginated collection behind one REST resource."""

    path: ClassVar[str]
    item_model: ClassVar[type[WireModel]]
    query_model: ClassVar[type[ListQuery]] = ListQuery
    noun: ClassVar[str] = "items"

    def __init__(self, client: ApiClientPort) -> None:
        self._client = client
        self.items: list[T] = []
        self.pagination = Pagination()
        self.loading = False
        self.error: str | None = None
        self.query: Q = self.query_model()  # type: ignore[assignment]

    # --- Fetching ---

    async def fetch(self, query: Q | None = None, **filters: Any) -> list[T]:
        """
        Fetch one page. Keyword filters are merged over the last query.

        Never raises on API failure: the cached page is kept and `error` set.
        """
        if query is None:
            query = self.query.model_copy(update=filters) if filters else self.query
        self.query = self.query_model.model_validate(query.model_dump())  # type: ignore[assignment]

        self.loading = True
        self.error = None
        try:
            result = await self._client.try_request(
                "GET", self.path, params=self.query.to_params()
            )
            if result.error is not None:
                self._fetch_failed(result.error)
                return self.items

            try:
                envelope = ListEnvelope.model_validate(result.value)
                items = [self._parse(raw) for raw in envelope.data]
            except (ApiError, ValidationError) as e:
                self._fetch_failed(e)
                return self.items

            # Page and pagination change together or not at all
            self.items = items
            self.pagination = envelope.pagination
            return self.items
        finally:
            self.loading = False

    def _fetch_failed(self, exc: Exception) -> None:
        self.error = user_message(exc, f"Failed to fetch {self.noun}")
        logger.warning(f"Fetch {self.noun} failed: {exc}")

    async def goto_page(self, page: int) -> list[T]:
        page = max(1, min(page, max(self.pagination.total_pages, 1)))
        return await self.fetch(page=page)

    async def next_page(self) -> list[T]:
        return await self.goto_page(self.query.page + 1)

    async def previous_page(self) -> list[T]:
        return await self.goto_page(self.query.page - 1)

    async def search(self, term: str) -> list[T]:
        return await self.fetch(search=term, page=1)

    async def sort(self, field: str) -> list[T]:
        """Sort by field; choosing the current sort field again flips the order."""
        order: SortOrder = "asc"
        if self.query.sort_by == field and self.query.sort_order == "asc":
            order = "desc"
        return await self.fetch(sort_by=field, sort_order=order, page=1)

    # --- Mutations ---

    async def _call(self, fallback: str, method: str, url: str, **kwargs: Any) -> Any:
        self.loading = True
        self.error = None
        try:
            return await self._client.request(method, url, **kwargs)
        except ApiError as e:
            self.error = user_message(e, fallback)
            logger.warning(f"{fallback}: {e.message}")
            raise
        finally:
            self.loading = False

    async def _delete_many(self, ids: list[str], fallback: str) -> None:
        """
        Delete concurrently under a single loading/error window.

        The flag stays set until every delete has settled; the first failure
        is recorded and re-raised.
        """
        self.loading = True
        self.error = None
        try:
            outcomes = await asyncio.gather(
                *(self._client.request("DELETE", f"{self.path}/{i}") for i in ids),
                return_exceptions=True,
            )
        finally:
            self.loading = False

        failures = [o for o in outcomes if isinstance(o, Exception)]
        if failures:
            first = failures[0]
            if isinstance(first, ApiError):
                self.error = user_message(first, fallback)
                logger.warning(f"{fallback}: {len(failures)} of {len(ids)} failed, first: {first.message}")
            raise first

    def _parse(self, raw: Any) -> T:
        try:
            return self.item_model.model_validate(raw)  # type: ignore[return-value]
        except ValidationError as e:
            raise ApiError.malformed(payload=raw) from e

    def _data(self, body: Any) -> T:
        if not isinstance(body, dict):
            raise ApiError.malformed(payload=body)
        return self._parse(body.get("data"))

    def _replace(self, item: T) -> None:
        item_id = getattr(item, "id", None)
        self.items = [item if getattr(i, "id", None) == item_id else i for i in self.items]

    def _prepend(self, item: T) -> None:
        self.items = [item, *self.items]

    def _remove(self, ids: Iterable[str]) -> None:
        gone = set(ids)
        self.items = [i for i in self.items if getattr(i, "id", None) not in gone]
