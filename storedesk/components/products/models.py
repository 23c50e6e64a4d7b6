from pydantic import Field

from storedesk.components._collection import ListQuery


class ProductQuery(ListQuery):
    limit: int = Field(default=8, ge=1)
    category: str = ""
    min_price: float | None = Field(default=None, alias="minPrice")
    max_price: float | None = Field(default=None, alias="maxPrice")
    sort_by: str | None = Field(default="createdAt", alias="sortBy")
    published: bool | None = None
