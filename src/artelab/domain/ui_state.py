"""Result wrapper exposed to the UI layer.

A ``UiState`` is one of ``Idle``, ``Loading``, ``Success``, ``Error`` or ``Empty``.
Callers branch on the variant with ``match`` or ``isinstance``.
"""

from dataclasses import dataclass
from typing import Generic, TypeVar

from artelab.domain.errors import FailureReason

T = TypeVar("T")


@dataclass(frozen=True)
class Idle:
    """No operation has been started."""


@dataclass(frozen=True)
class Loading:
    """An operation is in progress."""


@dataclass(frozen=True)
class Success(Generic[T]):
    """The operation completed with data."""

    data: T


@dataclass(frozen=True)
class Error:
    """The operation failed with a user-facing message."""

    message: str
    reason: FailureReason | None = None


@dataclass(frozen=True)
class Empty:
    """The operation completed without data."""


UiState = Idle | Loading | Success[T] | Error | Empty


def is_loading(state: UiState) -> bool:
    return isinstance(state, Loading)


def is_success(state: UiState) -> bool:
    return isinstance(state, Success)


def is_error(state: UiState) -> bool:
    return isinstance(state, Error)


def data_or_none(state: UiState) -> object | None:
    """Return the payload of a ``Success`` state, if any."""
    if isinstance(state, Success):
        return state.data
    return None


def error_or_none(state: UiState) -> str | None:
    """Return the message of an ``Error`` state, if any."""
    if isinstance(state, Error):
        return state.message
    return None
