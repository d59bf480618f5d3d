"""Durable credential and preference storage."""

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Generic, Protocol, TypeVar

from artelab.domain.sessions import CredentialBlock
from artelab.services.observable import ChangeNotifier

T = TypeVar("T")

_SESSION_KEYS = ("auth_token", "user_id", "user_email", "user_name")
_MISSING = object()

_logger = logging.getLogger(__name__)


class PreferencesStorage(Protocol):
    """Key/value document storage backing the credential store."""

    def read(self) -> dict[str, object]:
        """Return the stored document, or an empty dict when nothing is stored."""

    def write(self, data: dict[str, object]) -> None:
        """Replace the stored document."""


@dataclass
class PreferenceStream(Generic[T]):
    """A stored value that can be read once or observed for changes."""

    notifier: ChangeNotifier
    read: Callable[[], Awaitable[T]]

    async def first(self) -> T:
        """Return the current value."""
        return await self.read()

    def __aiter__(self) -> AsyncIterator[T]:
        return self._distinct_values()

    async def _distinct_values(self) -> AsyncIterator[T]:
        last: object = _MISSING
        changes = self.notifier.observe(self.read)
        try:
            async for value in changes:
                if value != last:
                    last = value
                    yield value
        finally:
            await changes.aclose()


@dataclass
class CredentialStore:
    """Persists the auth token, cached identity and app preferences."""

    storage: PreferencesStorage
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False, repr=False)
    _notifier: ChangeNotifier = field(
        default_factory=ChangeNotifier, init=False, repr=False
    )

    async def save_session(
        self, user_id: int, email: str, name: str, token: str
    ) -> None:
        """Store the identity and token of a freshly authenticated user."""

        def apply(data: dict[str, object]) -> None:
            data.update(
                {
                    "user_id": user_id,
                    "user_email": email,
                    "user_name": name,
                    "auth_token": token,
                    "is_logged_in": True,
                }
            )

        await self._edit(apply)

    async def clear_session(self) -> None:
        """Forget the session credentials, keeping unrelated preferences."""

        def apply(data: dict[str, object]) -> None:
            for key in _SESSION_KEYS:
                data.pop(key, None)
            data["is_logged_in"] = False

        await self._edit(apply)

    async def clear_all(self) -> None:
        """Wipe every stored key."""
        await self._edit(lambda data: data.clear())

    async def save_theme_mode(self, mode: str) -> None:
        await self._edit(lambda data: data.update({"theme_mode": mode}))

    async def save_last_sync(self, timestamp: int | None = None) -> None:
        """Record the last sync time in epoch milliseconds (now by default)."""
        if timestamp is None:
            timestamp = int(datetime.now(tz=UTC).timestamp() * 1000)
        await self._edit(lambda data: data.update({"last_sync": timestamp}))

    def get_token(self) -> PreferenceStream[str | None]:
        return self._stream(lambda block: block.auth_token)

    def get_user_id(self) -> PreferenceStream[int | None]:
        return self._stream(lambda block: block.user_id)

    def get_user_email(self) -> PreferenceStream[str | None]:
        return self._stream(lambda block: block.user_email)

    def get_user_name(self) -> PreferenceStream[str | None]:
        return self._stream(lambda block: block.user_name)

    def is_logged_in(self) -> PreferenceStream[bool]:
        return self._stream(lambda block: block.is_logged_in)

    def get_theme_mode(self) -> PreferenceStream[str]:
        return self._stream(lambda block: block.theme_mode)

    def get_last_sync(self) -> PreferenceStream[int | None]:
        return self._stream(lambda block: block.last_sync)

    async def read_block(self) -> CredentialBlock:
        """Return a snapshot of every stored preference."""
        return CredentialBlock.model_validate(await self._read_raw())

    def _stream(self, select: Callable[[CredentialBlock], T]) -> PreferenceStream[T]:
        async def read() -> T:
            return select(await self.read_block())

        return PreferenceStream(notifier=self._notifier, read=read)

    async def _read_raw(self) -> dict[str, object]:
        try:
            return await asyncio.to_thread(self.storage.read)
        except OSError:
            _logger.warning("Preferences read failed; using empty preferences")
            return {}

    async def _edit(self, apply: Callable[[dict[str, object]], None]) -> None:
        async with self._lock:
            data = dict(await self._read_raw())
            apply(data)
            await asyncio.to_thread(self.storage.write, data)
        self._notifier.notify()
