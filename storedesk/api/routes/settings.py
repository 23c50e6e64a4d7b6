import hashlib
import json
from typing import Any

from fastapi import APIRouter, Depends, Header, HTTPException, Response, status
from pydantic import ValidationError

from storedesk.api.backend import StubBackend
from storedesk.api.deps import get_backend, require_admin
from storedesk.domain.entities import StoreSettings

router = APIRouter()


def _etag(settings: dict[str, Any]) -> str:
    digest = hashlib.sha256(json.dumps(settings, sort_keys=True).encode()).hexdigest()
    return f'"{digest[:16]}"'


@router.get("")
def get_settings(
    response: Response,
    if_none_match: str | None = Header(None),
    cache_control: str | None = Header(None),
    _: dict[str, Any] = Depends(require_admin),
    backend: StubBackend = Depends(get_backend),
) -> Any:
    """
    Current store settings.

    Conditional requests get a 304 unless the client asked for no-cache.
    """
    etag = _etag(backend.settings)
    if if_none_match == etag and "no-cache" not in (cache_control or ""):
        return Response(status_code=status.HTTP_304_NOT_MODIFIED, headers={"ETag": etag})

    response.headers["ETag"] = etag
    return {"success": True, "data": backend.settings}


@router.put("")
def update_settings(
    changes: dict[str, Any],
    _: dict[str, Any] = Depends(require_admin),
    backend: StubBackend = Depends(get_backend),
) -> dict[str, Any]:
    try:
        merged = StoreSettings.model_validate({**backend.settings, **changes})
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Invalid settings: {e.error_count()} field error(s)",
        ) from e

    backend.settings = {**merged.to_wire(), "_id": backend.settings["_id"]}
    return {"success": True, "data": backend.settings}
