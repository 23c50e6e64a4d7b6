from collections.abc import Callable
from dataclasses import dataclass, replace

from storedesk.domain.entities import RoleType, UserProfile, WireModel

# --- Session ---


@dataclass
class SessionState:
    """
    In-memory session record.

    authenticated implies token and current_user are both set; the reverse
    does not hold while a restored token is still being validated.
    """

    current_user: UserProfile | None = None
    token: str | None = None
    authenticated: bool = False
    loading: bool = True

    @property
    def role(self) -> RoleType | None:
        return self.current_user.role if self.current_user else None

    def snapshot(self) -> "SessionState":
        return replace(self)


SessionListener = Callable[[SessionState], None]


# --- Wire envelopes ---


class ProfileResponse(WireModel):
    success: bool = False
    user: UserProfile | None = None


class LoginResponse(WireModel):
    token: str
    data: UserProfile


class RefreshResponse(WireModel):
    token: str


# --- Errors ---


class SessionError(Exception):
    """Base class for session lifecycle errors."""


class ReauthenticationRequired(SessionError):
    """The session is gone; the caller must log in again."""


class SessionSuperseded(SessionError):
    """An operation finished after a logout that was requested later; its result was discarded."""
