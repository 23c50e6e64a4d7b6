from pydantic import Field

from storedesk.components._collection import ListQuery
from storedesk.domain.entities import CustomerStatus


class CustomerQuery(ListQuery):
    status: CustomerStatus | None = None
    start_date: str | None = Field(default=None, alias="startDate")
    end_date: str | None = Field(default=None, alias="endDate")
