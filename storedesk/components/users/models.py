from storedesk.components._collection import ListQuery
from storedesk.domain.entities import StaffRoleType


class StaffQuery(ListQuery):
    role: StaffRoleType | None = None
    status: str | None = None
