"""Domain models for the authentication session."""

from enum import StrEnum

from pydantic import BaseModel


class SessionState(StrEnum):
    """Lifecycle states of the client session."""

    UNKNOWN = "UNKNOWN"
    CHECKING = "CHECKING"
    AUTHENTICATED = "AUTHENTICATED"
    UNAUTHENTICATED = "UNAUTHENTICATED"


class CredentialBlock(BaseModel):
    """Persisted key/value preferences, including the session credentials."""

    auth_token: str | None = None
    user_id: int | None = None
    user_email: str | None = None
    user_name: str | None = None
    is_logged_in: bool = False
    theme_mode: str = "system"
    last_sync: int | None = None
