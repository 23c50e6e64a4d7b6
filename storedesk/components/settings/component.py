"""
Settings component - store-wide settings (admin only).

Endpoints: GET/PUT /api/settings

The settings endpoint sits behind HTTP caches; reads always ask for a fresh
copy, and a 304 is answered by re-requesting with Pragma: no-cache too.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from storedesk.domain.entities import StoreSettings, UserProfile
from storedesk.ports.api_client import ApiClientPort
from storedesk.shell.http.errors import ApiError, user_message

logger = logging.getLogger(__name__)

SETTINGS_PATH = "/api/settings"
NO_CACHE = {"Cache-Control": "no-cache"}
NO_CACHE_STRICT = {"Cache-Control": "no-cache", "Pragma": "no-cache"}


class SettingsStore:
    def __init__(self, client: ApiClientPort) -> None:
        self._client = client
        self.settings: StoreSettings | None = None
        self.loading = False
        self.error: str | None = None

    @staticmethod
    def can_manage(user: UserProfile | None) -> bool:
        return user is not None and user.role == "admin"

    async def fetch_settings(self) -> StoreSettings:
        self.loading = True
        self.error = None
        try:
            response = await self._client.send("GET", SETTINGS_PATH, headers=NO_CACHE)
            if response.status_code == 304:
                logger.debug("Settings answered 304; re-requesting without cache")
                response = await self._client.send("GET", SETTINGS_PATH, headers=NO_CACHE_STRICT)
            self.settings = self._parse(_json(response))
            return self.settings
        except ApiError as e:
            self.error = user_message(e, "Failed to fetch settings")
            logger.warning(f"Fetch settings failed: {e.message}")
            raise
        finally:
            self.loading = False

    async def update_settings(self, data: StoreSettings | dict[str, Any]) -> StoreSettings:
        payload = data.to_wire() if isinstance(data, StoreSettings) else data
        self.loading = True
        self.error = None
        try:
            body = await self._client.request("PUT", SETTINGS_PATH, json=payload)
            self.settings = self._parse(body)
            return self.settings
        except ApiError as e:
            self.error = user_message(e, "Failed to update settings")
            logger.warning(f"Update settings failed: {e.message}")
            raise
        finally:
            self.loading = False

    @staticmethod
    def _parse(body: Any) -> StoreSettings:
        if not isinstance(body, dict) or not isinstance(body.get("data"), dict):
            raise ApiError.malformed(payload=body)
        try:
            return StoreSettings.model_validate(body["data"])
        except ValidationError as e:
            raise ApiError.malformed(payload=body) from e


def _json(response: Any) -> Any:
    try:
        return response.json()
    except ValueError as e:
        raise ApiError.malformed(response.status_code) from e
