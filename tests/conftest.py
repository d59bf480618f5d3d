"""Shared test fixtures."""

import json
from collections.abc import AsyncIterator
from dataclasses import dataclass, field

import httpx
import pytest

from artelab.adapters.artelab_client import BearerTokenAuth, HttpxArtelabClient
from artelab.adapters.sqlalchemy_artwork_repository import SqlAlchemyArtworkRepository
from artelab.adapters.sqlalchemy_tables import (
    create_cache_engine,
    create_session_factory,
)
from artelab.adapters.sqlalchemy_user_repository import SqlAlchemyUserRepository
from artelab.config import Settings
from artelab.domain.models import UserRecord
from artelab.services.credentials import CredentialStore, PreferencesStorage
from artelab.services.observable import ChangeNotifier
from artelab.services.sessions import SessionManager
from artelab.services.users import UserRepository, UserService

API_BASE_URL = "https://api.test/api:test/"


@dataclass
class InMemoryPreferencesStorage(PreferencesStorage):
    """In-memory preferences document for tests."""

    data: dict[str, object] = field(default_factory=dict)
    read_error: Exception | None = None
    writes: int = 0

    def read(self) -> dict[str, object]:
        if self.read_error is not None:
            raise self.read_error
        return dict(self.data)

    def write(self, data: dict[str, object]) -> None:
        self.writes += 1
        self.data = dict(data)


@dataclass
class InMemoryUserRepository(UserRepository):
    """In-memory user repository for tests."""

    users: dict[int, UserRecord] = field(default_factory=dict)
    notifier: ChangeNotifier = field(default_factory=ChangeNotifier)
    fail_avatar_updates: bool = False

    def insert_user(self, user: UserRecord) -> None:
        self.users[user.id] = user
        self.notifier.notify()

    def update_user(self, user: UserRecord) -> None:
        if user.id in self.users:
            self.users[user.id] = user
            self.notifier.notify()

    def update_avatar_locator(self, user_id: int, locator: str | None) -> bool:
        if self.fail_avatar_updates:
            raise RuntimeError("disk full")
        current = self.users.get(user_id)
        if current is None or current.avatar_locator == locator:
            return False
        self.users[user_id] = UserRecord(
            id=current.id,
            name=current.name,
            email=current.email,
            avatar_locator=locator,
            created_at=current.created_at,
        )
        self.notifier.notify()
        return True

    def get_user_by_id(self, user_id: int) -> UserRecord | None:
        return self.users.get(user_id)

    def get_user_by_email(self, email: str) -> UserRecord | None:
        for user in self.users.values():
            if user.email == email:
                return user
        return None

    def watch_all_users(self) -> AsyncIterator[list[UserRecord]]:
        async def fetch() -> list[UserRecord]:
            return sorted(
                self.users.values(), key=lambda user: user.created_at, reverse=True
            )

        return self.notifier.observe(fetch)

    def delete_user(self, user_id: int) -> None:
        self.users.pop(user_id, None)
        self.notifier.notify()

    def delete_all_users(self) -> None:
        self.users.clear()
        self.notifier.notify()


@dataclass
class FakeArtelabServer:
    """Mock ArteLab backend served through ``httpx.MockTransport``."""

    accounts: dict[str, dict[str, object]] = field(default_factory=dict)
    tokens: dict[str, str] = field(default_factory=dict)
    requests: list[httpx.Request] = field(default_factory=list)
    next_user_id: int = 100
    revoked: set[str] = field(default_factory=set)

    def add_account(self, user_id: int, email: str, name: str, password: str) -> None:
        self.accounts[email] = {
            "id": user_id,
            "email": email,
            "name": name,
            "password": password,
        }

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path.endswith("/auth/login"):
            return self._login(json.loads(request.content))
        if path.endswith("/auth/signup"):
            return self._signup(json.loads(request.content))
        if path.endswith("/auth/me"):
            return self._me(request.headers.get("Authorization", ""))
        return httpx.Response(500, json={"message": "unexpected path"})

    def client(self, token_provider) -> HttpxArtelabClient:  # type: ignore[no-untyped-def]
        return HttpxArtelabClient(
            http_client=httpx.AsyncClient(
                base_url=API_BASE_URL,
                auth=BearerTokenAuth(token_provider),
                transport=httpx.MockTransport(self.handler),
            )
        )

    def _issue_token(self, email: str) -> str:
        token = f"T{len(self.tokens) + 1}"
        self.tokens[token] = email
        return token

    def _public(self, account: dict[str, object]) -> dict[str, object]:
        return {
            "id": account["id"],
            "email": account["email"],
            "name": account["name"],
        }

    def _login(self, body: dict[str, str]) -> httpx.Response:
        account = self.accounts.get(body.get("email", ""))
        if account is None:
            return httpx.Response(404, json={"message": "not found"})
        if account["password"] != body.get("password"):
            return httpx.Response(401, json={"message": "bad credentials"})
        token = self._issue_token(body["email"])
        return httpx.Response(
            200, json={"authToken": token, "user": self._public(account)}
        )

    def _signup(self, body: dict[str, str]) -> httpx.Response:
        if not all(body.get(key) for key in ("email", "password", "name")):
            return httpx.Response(400, json={"message": "invalid input"})
        if body["email"] in self.accounts:
            return httpx.Response(409, json={"message": "duplicate"})
        self.add_account(self.next_user_id, body["email"], body["name"], body["password"])
        self.next_user_id += 1
        token = self._issue_token(body["email"])
        account = self.accounts[body["email"]]
        return httpx.Response(
            200, json={"authToken": token, "user": self._public(account)}
        )

    def _me(self, authorization: str) -> httpx.Response:
        token = authorization.removeprefix("Bearer ")
        email = self.tokens.get(token)
        if not email or token in self.revoked:
            return httpx.Response(401, json={"message": "unauthorized"})
        return httpx.Response(200, json=self._public(self.accounts[email]))


@pytest.fixture
def settings(tmp_path) -> Settings:  # type: ignore[no-untyped-def]
    return Settings(
        api_base_url=API_BASE_URL,
        database_url=f"sqlite:///{tmp_path / 'artelab.db'}",
        preferences_path=tmp_path / "preferences.json",
    )


@pytest.fixture
def preferences_storage() -> InMemoryPreferencesStorage:
    return InMemoryPreferencesStorage()


@pytest.fixture
def credential_store(preferences_storage: InMemoryPreferencesStorage) -> CredentialStore:
    return CredentialStore(preferences_storage)


@pytest.fixture
def session_factory():  # type: ignore[no-untyped-def]
    engine = create_cache_engine("sqlite://")
    yield create_session_factory(engine)
    engine.dispose()


@pytest.fixture
def user_repository(session_factory) -> SqlAlchemyUserRepository:  # type: ignore[no-untyped-def]
    return SqlAlchemyUserRepository(session_factory)


@pytest.fixture
def artwork_repository(session_factory) -> SqlAlchemyArtworkRepository:  # type: ignore[no-untyped-def]
    return SqlAlchemyArtworkRepository(session_factory)


@pytest.fixture
def server() -> FakeArtelabServer:
    fake = FakeArtelabServer()
    fake.add_account(7, "a@b.com", "Ana", "secret1")
    return fake


@pytest.fixture
def session_manager(
    server: FakeArtelabServer,
    credential_store: CredentialStore,
    user_repository: SqlAlchemyUserRepository,
) -> SessionManager:
    return SessionManager(
        api=server.client(credential_store.get_token().first),
        credentials=credential_store,
        identity_cache=UserService(user_repository),
    )
