"""Errors raised by the ArteLab API client."""

from enum import StrEnum


class FailureReason(StrEnum):
    """Classification of a failed remote operation."""

    CONNECTION = "connection"
    UNAUTHORIZED = "unauthorized"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    INVALID_INPUT = "invalid_input"
    SERVER = "server"
    UNKNOWN = "unknown"


class ArtelabApiError(Exception):
    """Base class for failures reported by the API client."""

    reason: FailureReason = FailureReason.UNKNOWN

    def __init__(self, message: str) -> None:
        super().__init__(message)


class ApiConnectionError(ArtelabApiError):
    """Raised when the server could not be reached (network, DNS, timeout)."""

    reason = FailureReason.CONNECTION


class UnauthorizedError(ArtelabApiError):
    """Raised for bad credentials or a missing, invalid or expired token."""

    reason = FailureReason.UNAUTHORIZED


class ConflictError(ArtelabApiError):
    """Raised when signing up with an email that is already registered."""

    reason = FailureReason.CONFLICT


class NotFoundError(ArtelabApiError):
    """Raised when logging in to an account that does not exist."""

    reason = FailureReason.NOT_FOUND


class InvalidInputError(ArtelabApiError):
    """Raised when the server rejects the request payload."""

    reason = FailureReason.INVALID_INPUT


class ServerError(ArtelabApiError):
    """Raised for any other non-2xx response."""

    reason = FailureReason.SERVER

    def __init__(self, message: str, status_code: int) -> None:
        self.status_code = status_code
        super().__init__(message)


class UnknownApiError(ArtelabApiError):
    """Raised for unexpected failures, such as an unreadable response body."""

    reason = FailureReason.UNKNOWN
