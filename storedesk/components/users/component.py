"""
Users component - staff accounts (admins, managers, staff).

Endpoints: GET /auth/users, DELETE /auth/users/{id}
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from storedesk.components._collection import CollectionStore
from storedesk.domain.entities import StaffUser

from .models import StaffQuery


class StaffStore(CollectionStore[StaffUser, StaffQuery]):
    path = "/auth/users"
    item_model = StaffUser
    query_model = StaffQuery
    noun = "users"

    async def fetch_users(self, query: StaffQuery | None = None, **filters: Any) -> list[StaffUser]:
        return await self.fetch(query, **filters)

    async def delete_user(self, user_id: str) -> None:
        await self._call("Failed to delete user", "DELETE", f"{self.path}/{user_id}")
        self._remove([user_id])

    async def bulk_delete_users(self, user_ids: Iterable[str]) -> None:
        await self._delete_many(list(user_ids), "Failed to delete users")
        await self.fetch()
