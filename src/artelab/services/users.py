"""User cache business logic."""

import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol

from artelab.domain.models import UserIdentity, UserRecord
from artelab.domain.ui_state import Error, Success, UiState

_logger = logging.getLogger(__name__)


class UserRepository(Protocol):
    """Persistence interface for cached users."""

    def insert_user(self, user: UserRecord) -> None:
        """Insert a user, replacing any row with the same id."""

    def update_user(self, user: UserRecord) -> None:
        """Overwrite every column of an existing user row."""

    def update_avatar_locator(self, user_id: int, locator: str | None) -> bool:
        """Set the avatar locator of a user; return True if a row changed."""

    def get_user_by_id(self, user_id: int) -> UserRecord | None:
        """Return the user with this id, if present."""

    def get_user_by_email(self, email: str) -> UserRecord | None:
        """Return the user with this email, if present."""

    def watch_all_users(self) -> AsyncIterator[list[UserRecord]]:
        """Observe all users, newest first."""

    def delete_user(self, user_id: int) -> None:
        """Delete a user by id."""

    def delete_all_users(self) -> None:
        """Delete every cached user."""


@dataclass
class UserService:
    """Keeps the local user cache in step with the remote identity."""

    repository: UserRepository

    def ensure_user(self, identity: UserIdentity) -> UserRecord:
        """Return the cached user for this identity, creating the row if missing."""
        existing = self.repository.get_user_by_id(identity.id)
        if existing:
            return existing

        created = UserRecord(
            id=identity.id,
            name=identity.name,
            email=identity.email,
            created_at=_created_at(identity.created_at),
        )
        self.repository.insert_user(created)
        _logger.info("Cached new user row: user_id=%s", identity.id)
        return created

    def cached_avatar(self, user_id: int) -> str | None:
        """Return the device-local avatar locator for a user, if any."""
        user = self.repository.get_user_by_id(user_id)
        return user.avatar_locator if user else None

    def update_avatar(self, user_id: int, locator: str) -> UiState:
        """Store a newly captured or picked avatar for the user."""
        try:
            changed = self.repository.update_avatar_locator(user_id, locator)
            # An unchanged row is fine when it already holds this locator.
            if not changed and self.repository.get_user_by_id(user_id) is None:
                _logger.warning("Avatar update for uncached user_id=%s", user_id)
                return Error(message="Could not save photo: unknown user")
        except Exception as exc:
            _logger.exception("Failed to save avatar", extra={"user_id": user_id})
            return Error(message=f"Could not save photo: {exc}")
        return Success(locator)


def _created_at(epoch_millis: int | None) -> datetime:
    if epoch_millis is None:
        return datetime.now(tz=UTC)
    return datetime.fromtimestamp(epoch_millis / 1000, tz=UTC)
