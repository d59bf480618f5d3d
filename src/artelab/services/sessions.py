"""Session state machine for authentication."""

import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass, field
from typing import Protocol

from artelab.adapters.artelab_client import ArtelabApi
from artelab.domain.errors import ArtelabApiError, FailureReason
from artelab.domain.models import AuthResult, Profile, UserIdentity, UserRecord
from artelab.domain.sessions import SessionState
from artelab.domain.ui_state import Error, Success, UiState
from artelab.services.credentials import CredentialStore
from artelab.services.observable import ChangeNotifier

LOGIN = "login"
SIGNUP = "signup"
PROFILE = "profile"

NO_SESSION_MESSAGE = "No active session."
BUSY_MESSAGE = "Another request is already in progress."

_ACTION_MESSAGES: dict[tuple[str, FailureReason], str] = {
    (LOGIN, FailureReason.UNAUTHORIZED): "Incorrect email or password.",
    (LOGIN, FailureReason.NOT_FOUND): "User not found.",
    (SIGNUP, FailureReason.CONFLICT): "That email is already registered.",
    (SIGNUP, FailureReason.INVALID_INPUT): "Invalid data. Check the form fields.",
    (PROFILE, FailureReason.UNAUTHORIZED): "Session expired. Please log in again.",
}
_CONNECTION_MESSAGE = "Connection error. Check your internet connection."
_SERVER_MESSAGE = "Server error. Try again later."

_logger = logging.getLogger(__name__)


class IdentityCache(Protocol):
    """The slice of the local user cache the session needs."""

    def ensure_user(self, identity: UserIdentity) -> UserRecord:
        """Return the cached user row, creating it when missing."""

    def cached_avatar(self, user_id: int) -> str | None:
        """Return the device-local avatar locator for a user."""


@dataclass
class SessionManager:
    """Drives login, signup, logout and profile loading.

    The session is considered active while a non-empty token is stored. The token
    is never validated proactively: a revoked token surfaces as an unauthorized
    error the next time the profile is fetched.
    """

    api: ArtelabApi
    credentials: CredentialStore
    identity_cache: IdentityCache
    state: SessionState = SessionState.UNKNOWN
    _notifier: ChangeNotifier = field(
        default_factory=ChangeNotifier, init=False, repr=False
    )
    _in_flight: bool = field(default=False, init=False, repr=False)

    def watch_state(self) -> AsyncIterator[SessionState]:
        """Observe the session state, starting with the current one."""

        async def current() -> SessionState:
            return self.state

        return self._notifier.observe(current)

    async def check_session(self) -> SessionState:
        """Decide from the stored token alone whether a session is active."""
        self._transition(SessionState.CHECKING)
        token = await self.credentials.get_token().first()
        self._transition(
            SessionState.AUTHENTICATED if token else SessionState.UNAUTHENTICATED
        )
        return self.state

    async def login(self, email: str, password: str) -> UiState:
        """Log in and store the returned session."""
        return await self._exclusive(
            lambda: self._authenticate(LOGIN, lambda: self.api.login(email, password))
        )

    async def signup(self, email: str, password: str, name: str) -> UiState:
        """Register a new account and store the returned session."""
        return await self._exclusive(
            lambda: self._authenticate(
                SIGNUP, lambda: self.api.signup(email, password, name)
            )
        )

    async def logout(self) -> None:
        """Forget the stored session. Never contacts the server."""
        try:
            await self.credentials.clear_session()
        finally:
            self._transition(SessionState.UNAUTHENTICATED)

    async def fetch_profile(self) -> UiState:
        """Load the server identity merged with the locally cached avatar.

        An unauthorized error means the stored token is stale. The state is left
        untouched; acting on it (usually by logging out) is up to the caller.
        """
        if self.state is not SessionState.AUTHENTICATED:
            return Error(message=NO_SESSION_MESSAGE, reason=FailureReason.UNAUTHORIZED)
        return await self._exclusive(self._load_profile)

    async def _load_profile(self) -> UiState:
        outcome = await self._call(PROFILE, self.api.fetch_current_user)
        if isinstance(outcome, Error):
            return outcome
        identity: UserIdentity = outcome

        async def merge() -> Profile:
            self.identity_cache.ensure_user(identity)
            return Profile(
                id=identity.id,
                email=identity.email,
                name=identity.name,
                avatar_locator=self.identity_cache.cached_avatar(identity.id),
            )

        profile = await self._call(PROFILE, merge)
        if isinstance(profile, Error):
            return profile
        return Success(profile)

    async def _authenticate(
        self, action: str, call: Callable[[], Awaitable[AuthResult]]
    ) -> UiState:
        outcome = await self._call(action, call)
        if isinstance(outcome, Error):
            return outcome
        result: AuthResult = outcome

        # The user row is mirrored first so a failure leaves no token behind.
        async def store() -> None:
            self.identity_cache.ensure_user(result.user)
            await self.credentials.save_session(
                user_id=result.user.id,
                email=result.user.email,
                name=result.user.name,
                token=result.token,
            )

        stored = await self._call(action, store)
        if isinstance(stored, Error):
            return stored
        self._transition(SessionState.AUTHENTICATED)
        return Success(result.user)

    async def _exclusive(self, operation: Callable[[], Awaitable[UiState]]) -> UiState:
        """Run one operation at a time; overlapping requests are rejected."""
        if self._in_flight:
            return Error(message=BUSY_MESSAGE)
        self._in_flight = True
        try:
            return await operation()
        finally:
            self._in_flight = False

    async def _call(self, action: str, call: Callable[[], Awaitable[object]]) -> object:
        """Run one remote call, turning failures into an ``Error`` state."""
        try:
            return await call()
        except ArtelabApiError as exc:
            _logger.warning("Session %s failed (%s): %s", action, exc.reason, exc)
            return Error(message=failure_message(action, exc), reason=exc.reason)
        except Exception as exc:
            _logger.exception("Session %s failed unexpectedly", action)
            return Error(message=f"Unknown error: {exc}", reason=FailureReason.UNKNOWN)

    def _transition(self, new_state: SessionState) -> None:
        if new_state is self.state:
            return
        _logger.info("Session state: %s -> %s", self.state, new_state)
        self.state = new_state
        self._notifier.notify()


def failure_message(action: str, error: ArtelabApiError) -> str:
    """Return the user-facing message for a failed session action."""
    specific = _ACTION_MESSAGES.get((action, error.reason))
    if specific:
        return specific
    if error.reason is FailureReason.CONNECTION:
        return _CONNECTION_MESSAGE
    if error.reason is FailureReason.UNKNOWN:
        return f"Unknown error: {error}"
    return _SERVER_MESSAGE
