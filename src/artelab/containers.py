"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from artelab.adapters.artelab_client import ArtelabApi, HttpxArtelabClient
from artelab.adapters.json_preferences_storage import JsonFilePreferencesStorage
from artelab.adapters.sqlalchemy_artwork_repository import SqlAlchemyArtworkRepository
from artelab.adapters.sqlalchemy_tables import (
    create_cache_engine,
    create_session_factory,
)
from artelab.adapters.sqlalchemy_user_repository import SqlAlchemyUserRepository
from artelab.app_logging import configure_logging
from artelab.config import Settings
from artelab.services.artworks import FeedService
from artelab.services.credentials import CredentialStore
from artelab.services.sessions import SessionManager
from artelab.services.users import UserService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    api_client: ArtelabApi
    credential_store: CredentialStore
    user_service: UserService
    feed_service: FeedService
    session_manager: SessionManager
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    configure_logging(resolved_settings.log_level)

    credential_store = CredentialStore(
        JsonFilePreferencesStorage(resolved_settings.preferences_path)
    )
    engine = create_cache_engine(resolved_settings.database_url)
    session_factory = create_session_factory(engine)
    user_service = UserService(SqlAlchemyUserRepository(session_factory))
    feed_service = FeedService(SqlAlchemyArtworkRepository(session_factory))
    api_client = HttpxArtelabClient.create(
        token_provider=credential_store.get_token().first,
        base_url=resolved_settings.api_base_url,
        timeout_seconds=resolved_settings.http_timeout_seconds,
        retries=resolved_settings.http_retries,
    )
    session_manager = SessionManager(
        api=api_client,
        credentials=credential_store,
        identity_cache=user_service,
    )

    async def close_resources() -> None:
        await api_client.close()
        engine.dispose()

    return AppContainer(
        settings=resolved_settings,
        api_client=api_client,
        credential_store=credential_store,
        user_service=user_service,
        feed_service=feed_service,
        session_manager=session_manager,
        close_resources=close_resources,
    )
