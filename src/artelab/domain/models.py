"""Domain models for the ArteLab client."""

from dataclasses import dataclass, field
from datetime import UTC, datetime


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass(frozen=True)
class UserRecord:
    """Represents a user cached in the local database."""

    id: int
    name: str
    email: str
    avatar_locator: str | None = None
    created_at: datetime = field(default_factory=_utcnow)


@dataclass(frozen=True)
class ArtworkRecord:
    """Represents an artwork cached for the home feed."""

    title: str
    author: str
    image_locator: str
    owner_user_id: int
    description: str | None = None
    id: int | None = None
    created_at: datetime = field(default_factory=_utcnow)
    like_count: int = 0


@dataclass(frozen=True)
class UserIdentity:
    """User identity as reported by the remote API."""

    id: int
    email: str
    name: str
    created_at: int | None = None
    avatar_url: str | None = None


@dataclass(frozen=True)
class AuthResult:
    """Token and identity returned by signup or login."""

    token: str
    user: UserIdentity


@dataclass(frozen=True)
class Profile:
    """Server identity merged with the device-local avatar."""

    id: int
    email: str
    name: str
    avatar_locator: str | None = None
