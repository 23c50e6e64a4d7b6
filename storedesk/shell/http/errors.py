"""
Client-side error taxonomy.

Server error bodies come in several shapes ({"message": ...},
{"detail": ...}, plain text, nothing at all). They are normalized here into
ApiError with a closed FailureKind so callers branch on kind instead of
probing nested fields.

Mapping:
- 401                          -> UNAUTHORIZED
- 400 / 409 / 422              -> VALIDATION
- httpx.TransportError         -> TRANSPORT (connect, timeout, DNS, ...)
- other statuses, bad bodies   -> UNKNOWN
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

import httpx

T = TypeVar("T")

AUTH_REJECTION_STATUSES: frozenset[int] = frozenset({401})
VALIDATION_STATUSES: frozenset[int] = frozenset({400, 409, 422})

GENERIC_FAILURE_MESSAGE = "Request failed"
MALFORMED_RESPONSE_MESSAGE = "Malformed response from server"


class FailureKind(str, Enum):
    UNAUTHORIZED = "unauthorized"
    TRANSPORT = "transport"
    VALIDATION = "validation"
    UNKNOWN = "unknown"


class ConfigurationError(Exception):
    """Raised before any I/O when the API base address is not configured."""

    def __init__(self, message: str = "API base URL is not configured") -> None:
        super().__init__(message)


class ApiError(Exception):
    """A failed API call, normalized."""

    def __init__(
        self,
        kind: FailureKind,
        message: str,
        *,
        status_code: int | None = None,
        payload: Any = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def __repr__(self) -> str:
        return f"ApiError(kind={self.kind.value}, status={self.status_code}, message={self.message!r})"

    @property
    def is_unauthorized(self) -> bool:
        return self.kind is FailureKind.UNAUTHORIZED

    @classmethod
    def from_response(cls, response: httpx.Response, fallback: str | None = None) -> ApiError:
        payload = _safe_json(response)
        return cls(
            classify_status(response.status_code),
            extract_message(payload) or fallback or GENERIC_FAILURE_MESSAGE,
            status_code=response.status_code,
            payload=payload,
        )

    @classmethod
    def from_transport(cls, exc: httpx.TransportError) -> ApiError:
        return cls(FailureKind.TRANSPORT, str(exc) or type(exc).__name__)

    @classmethod
    def malformed(cls, status_code: int | None = None, payload: Any = None) -> ApiError:
        return cls(
            FailureKind.UNKNOWN,
            MALFORMED_RESPONSE_MESSAGE,
            status_code=status_code,
            payload=payload,
        )


def classify_status(status_code: int) -> FailureKind:
    if status_code in AUTH_REJECTION_STATUSES:
        return FailureKind.UNAUTHORIZED
    if status_code in VALIDATION_STATUSES:
        return FailureKind.VALIDATION
    return FailureKind.UNKNOWN


def extract_message(payload: Any) -> str | None:
    """Pull a human-readable message out of an error body, if there is one."""
    if isinstance(payload, dict):
        for key in ("message", "detail", "error"):
            value = payload.get(key)
            if isinstance(value, str) and value:
                return value
    return None


def user_message(exc: BaseException, fallback: str) -> str:
    """Message suitable for display: the server's when known, else the fallback."""
    if isinstance(exc, ApiError) and exc.kind is not FailureKind.TRANSPORT:
        if exc.message and exc.message not in (GENERIC_FAILURE_MESSAGE, MALFORMED_RESPONSE_MESSAGE):
            return exc.message
    return fallback


def _safe_json(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return None


@dataclass(frozen=True)
class ApiResult(Generic[T]):
    """Either a value or an ApiError; never both."""

    value: T | None = None
    error: ApiError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def kind(self) -> FailureKind | None:
        return self.error.kind if self.error else None

    @classmethod
    def success(cls, value: T) -> ApiResult[T]:
        return cls(value=value)

    @classmethod
    def failure(cls, error: ApiError) -> ApiResult[T]:
        return cls(error=error)

    def unwrap(self) -> T:
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]
