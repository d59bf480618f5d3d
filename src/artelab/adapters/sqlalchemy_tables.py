"""SQLAlchemy tables and engine for the local cache database."""

from datetime import UTC, datetime

from sqlalchemy import DateTime, Engine, Integer, String, Text, create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, sessionmaker
from sqlalchemy.pool import StaticPool


class Base(DeclarativeBase):
    """Base class for cache tables."""


class UserRow(Base):
    """Cached user, keyed by the server-assigned id."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    name: Mapped[str] = mapped_column(String(255))
    email: Mapped[str] = mapped_column(String(255), index=True)
    avatar_locator: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, index=True)


class ArtworkRow(Base):
    """Cached artwork shown in the home feed."""

    __tablename__ = "artworks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255))
    author: Mapped[str] = mapped_column(String(255))
    image_locator: Mapped[str] = mapped_column(String(2048))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    owner_user_id: Mapped[int] = mapped_column(Integer, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, index=True)
    like_count: Mapped[int] = mapped_column(Integer, default=0)


def create_cache_engine(database_url: str) -> Engine:
    """Create the SQLite engine and make sure the tables exist."""
    url = make_url(database_url)
    if url.database in (None, "", ":memory:"):
        # An in-memory database lives as long as its single connection.
        engine = create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        engine = create_engine(url, connect_args={"check_same_thread": False})
    Base.metadata.create_all(engine)
    return engine


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(engine, expire_on_commit=False)


def to_db_timestamp(value: datetime) -> datetime:
    """Normalise to naive UTC, the form SQLite stores."""
    if value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


def from_db_timestamp(value: datetime) -> datetime:
    return value.replace(tzinfo=UTC)
