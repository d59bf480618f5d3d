"""ArteLab REST API client."""

import logging
from collections.abc import AsyncGenerator, Awaitable, Callable
from dataclasses import dataclass
from typing import Protocol, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from artelab.adapters.artelab_models import (
    AuthResponse,
    LoginRequest,
    SignupRequest,
    UserResponse,
)
from artelab.domain.errors import (
    ApiConnectionError,
    ArtelabApiError,
    ConflictError,
    InvalidInputError,
    NotFoundError,
    ServerError,
    UnauthorizedError,
    UnknownApiError,
)
from artelab.domain.models import AuthResult, UserIdentity

DEFAULT_BASE_URL = "https://x8ki-letl-twmt.n7.xano.io/api:Rfm_61dW/"

M = TypeVar("M", bound=BaseModel)

TokenProvider = Callable[[], Awaitable[str | None]]

_SIGNUP_ERRORS: dict[int, type[ArtelabApiError]] = {
    400: InvalidInputError,
    409: ConflictError,
}
_LOGIN_ERRORS: dict[int, type[ArtelabApiError]] = {
    401: UnauthorizedError,
    404: NotFoundError,
}
_ME_ERRORS: dict[int, type[ArtelabApiError]] = {
    401: UnauthorizedError,
}

_logger = logging.getLogger(__name__)


class ArtelabApi(Protocol):
    """Interface for ArteLab API interactions."""

    async def signup(self, email: str, password: str, name: str) -> AuthResult:
        """Register a new account and return its token and identity."""

    async def login(self, email: str, password: str) -> AuthResult:
        """Log in and return the token and identity."""

    async def fetch_current_user(self) -> UserIdentity:
        """Return the identity that owns the stored token."""


class BearerTokenAuth(httpx.Auth):
    """Adds ``Authorization: Bearer <token>`` using the currently stored token."""

    def __init__(self, token_provider: TokenProvider) -> None:
        self.token_provider = token_provider

    async def async_auth_flow(
        self, request: httpx.Request
    ) -> AsyncGenerator[httpx.Request, httpx.Response]:
        token = await self.token_provider()
        if not token:
            raise UnauthorizedError("No active session token")
        request.headers["Authorization"] = f"Bearer {token}"
        yield request


@dataclass
class HttpxArtelabClient(ArtelabApi):
    """ArteLab client implemented with httpx.

    The client-level auth attaches the bearer token to every request; signup and
    login opt out of it.
    """

    http_client: httpx.AsyncClient

    @classmethod
    def create(
        cls,
        token_provider: TokenProvider,
        base_url: str = DEFAULT_BASE_URL,
        timeout_seconds: float = 30.0,
        retries: int = 1,
    ) -> "HttpxArtelabClient":
        """Create a client with a managed httpx session."""
        return cls(
            http_client=httpx.AsyncClient(
                base_url=base_url,
                auth=BearerTokenAuth(token_provider),
                timeout=httpx.Timeout(timeout_seconds),
                transport=httpx.AsyncHTTPTransport(retries=retries),
                event_hooks={"request": [_log_request], "response": [_log_response]},
            )
        )

    async def signup(self, email: str, password: str, name: str) -> AuthResult:
        """Register a new account via POST auth/signup."""
        body = SignupRequest(email=email, password=password, name=name)
        payload = await self._send(
            "POST", "auth/signup", errors=_SIGNUP_ERRORS, body=body, auth=None
        )
        return _parse(AuthResponse, payload).to_result()

    async def login(self, email: str, password: str) -> AuthResult:
        """Log in via POST auth/login."""
        body = LoginRequest(email=email, password=password)
        payload = await self._send(
            "POST", "auth/login", errors=_LOGIN_ERRORS, body=body, auth=None
        )
        return _parse(AuthResponse, payload).to_result()

    async def fetch_current_user(self) -> UserIdentity:
        """Fetch the authenticated user via GET auth/me."""
        payload = await self._send("GET", "auth/me", errors=_ME_ERRORS)
        return _parse(UserResponse, payload).to_identity()

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()

    async def _send(
        self,
        method: str,
        path: str,
        *,
        errors: dict[int, type[ArtelabApiError]],
        body: BaseModel | None = None,
        auth: object = httpx.USE_CLIENT_DEFAULT,
    ) -> object:
        try:
            response = await self.http_client.request(
                method,
                path,
                json=body.model_dump() if body is not None else None,
                auth=auth,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise _status_error(method, path, exc.response.status_code, errors) from exc
        except httpx.TransportError as exc:
            raise ApiConnectionError(f"{method} {path} failed: {exc}") from exc
        except httpx.RequestError as exc:
            raise UnknownApiError(f"{method} {path} failed: {exc}") from exc
        try:
            return response.json()
        except ValueError as exc:
            raise UnknownApiError(f"{method} {path} returned invalid JSON") from exc


def _status_error(
    method: str,
    path: str,
    status_code: int,
    errors: dict[int, type[ArtelabApiError]],
) -> ArtelabApiError:
    message = f"{method} {path} returned HTTP {status_code}"
    error_class = errors.get(status_code)
    if error_class is None:
        return ServerError(message, status_code=status_code)
    return error_class(message)


def _parse(model: type[M], payload: object) -> M:
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise UnknownApiError(f"Unexpected response shape: {exc}") from exc


async def _log_request(request: httpx.Request) -> None:
    headers = {
        name: ("<redacted>" if name.lower() == "authorization" else value)
        for name, value in request.headers.items()
    }
    _logger.debug("--> %s %s headers=%s", request.method, request.url, headers)


async def _log_response(response: httpx.Response) -> None:
    request = response.request
    _logger.debug("<-- %s %s %s", response.status_code, request.method, request.url)
