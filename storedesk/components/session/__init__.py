"""
Session component - Authentication lifecycle on the client side.

Handles bootstrap from the persisted credential, login, registration,
logout, token refresh and local profile edits.
"""

from .component import (
    CUSTOMER_LOGIN_PATH,
    CUSTOMER_REGISTER_PATH,
    PROFILE_PATH,
    REFRESH_PATH,
    STAFF_LOGIN_PATH,
    STAFF_REGISTER_PATH,
    SessionManager,
    login_path,
    register_path,
)
from .models import (
    LoginResponse,
    ProfileResponse,
    ReauthenticationRequired,
    RefreshResponse,
    SessionError,
    SessionListener,
    SessionState,
    SessionSuperseded,
)

__all__ = [
    # Manager
    "SessionManager",
    "login_path",
    "register_path",
    # Endpoints
    "PROFILE_PATH",
    "STAFF_LOGIN_PATH",
    "CUSTOMER_LOGIN_PATH",
    "STAFF_REGISTER_PATH",
    "CUSTOMER_REGISTER_PATH",
    "REFRESH_PATH",
    # Models
    "LoginResponse",
    "ProfileResponse",
    "RefreshResponse",
    "SessionListener",
    "SessionState",
    # Errors
    "ReauthenticationRequired",
    "SessionError",
    "SessionSuperseded",
]
