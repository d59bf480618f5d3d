"""SQLAlchemy-backed artwork cache repository."""

from collections.abc import AsyncIterator
from dataclasses import dataclass, field

from sqlalchemy import Select, delete, func, select, update
from sqlalchemy.orm import sessionmaker

from artelab.adapters.sqlalchemy_tables import (
    ArtworkRow,
    from_db_timestamp,
    to_db_timestamp,
)
from artelab.domain.models import ArtworkRecord
from artelab.services.artworks import ArtworkRepository
from artelab.services.observable import ChangeNotifier


@dataclass
class SqlAlchemyArtworkRepository(ArtworkRepository):
    """SQLite implementation of the artwork cache."""

    session_factory: sessionmaker
    notifier: ChangeNotifier = field(default_factory=ChangeNotifier)

    def insert_artwork(self, artwork: ArtworkRecord) -> int:
        """Insert an artwork, replacing the whole row on id conflict."""
        if artwork.like_count < 0:
            raise ValueError("like_count must not be negative")
        with self.session_factory() as session:
            row = session.merge(_to_row(artwork))
            session.commit()
            artwork_id = row.id
        self.notifier.notify()
        return artwork_id

    def update_artwork(self, artwork: ArtworkRecord) -> None:
        """Overwrite an existing artwork row."""
        if artwork.id is None:
            raise ValueError("Cannot update an artwork without an id")
        if artwork.like_count < 0:
            raise ValueError("like_count must not be negative")
        with self.session_factory() as session:
            result = session.execute(
                update(ArtworkRow)
                .where(ArtworkRow.id == artwork.id)
                .values(
                    title=artwork.title,
                    author=artwork.author,
                    image_locator=artwork.image_locator,
                    description=artwork.description,
                    owner_user_id=artwork.owner_user_id,
                    created_at=to_db_timestamp(artwork.created_at),
                    like_count=artwork.like_count,
                )
                .execution_options(synchronize_session=False)
            )
            session.commit()
        if result.rowcount:
            self.notifier.notify()

    def get_artwork_by_id(self, artwork_id: int) -> ArtworkRecord | None:
        """Return the artwork with this id, if present."""
        with self.session_factory() as session:
            row = session.get(ArtworkRow, artwork_id)
            return _to_record(row) if row else None

    def list_artworks(
        self, owner_user_id: int | None = None, title_query: str | None = None
    ) -> list[ArtworkRecord]:
        """Return artworks newest first, optionally filtered."""
        statement: Select = select(ArtworkRow)
        if owner_user_id is not None:
            statement = statement.where(ArtworkRow.owner_user_id == owner_user_id)
        if title_query is not None:
            statement = statement.where(
                ArtworkRow.title.contains(title_query, autoescape=True)
            )
        statement = statement.order_by(
            ArtworkRow.created_at.desc(), ArtworkRow.id.desc()
        )
        with self.session_factory() as session:
            return [_to_record(row) for row in session.scalars(statement).all()]

    def watch_all_artworks(self) -> AsyncIterator[list[ArtworkRecord]]:
        return self._watch()

    def watch_artworks_by_owner(
        self, owner_user_id: int
    ) -> AsyncIterator[list[ArtworkRecord]]:
        return self._watch(owner_user_id=owner_user_id)

    def search_artworks_by_title(self, query: str) -> AsyncIterator[list[ArtworkRecord]]:
        return self._watch(title_query=query)

    def increment_like_count(self, artwork_id: int) -> None:
        """Add one like with a single relative UPDATE."""
        with self.session_factory() as session:
            result = session.execute(
                update(ArtworkRow)
                .where(ArtworkRow.id == artwork_id)
                .values(like_count=ArtworkRow.like_count + 1)
                .execution_options(synchronize_session=False)
            )
            session.commit()
        if result.rowcount:
            self.notifier.notify()

    def delete_artwork(self, artwork_id: int) -> None:
        with self.session_factory() as session:
            session.execute(delete(ArtworkRow).where(ArtworkRow.id == artwork_id))
            session.commit()
        self.notifier.notify()

    def delete_artworks_by_owner(self, owner_user_id: int) -> None:
        with self.session_factory() as session:
            session.execute(
                delete(ArtworkRow).where(ArtworkRow.owner_user_id == owner_user_id)
            )
            session.commit()
        self.notifier.notify()

    def delete_all_artworks(self) -> None:
        with self.session_factory() as session:
            session.execute(delete(ArtworkRow))
            session.commit()
        self.notifier.notify()

    def count_artworks_by_owner(self, owner_user_id: int) -> int:
        with self.session_factory() as session:
            return session.scalar(
                select(func.count())
                .select_from(ArtworkRow)
                .where(ArtworkRow.owner_user_id == owner_user_id)
            )

    def _watch(
        self, owner_user_id: int | None = None, title_query: str | None = None
    ) -> AsyncIterator[list[ArtworkRecord]]:
        async def fetch() -> list[ArtworkRecord]:
            return self.list_artworks(
                owner_user_id=owner_user_id, title_query=title_query
            )

        return self.notifier.observe(fetch)


def _to_row(artwork: ArtworkRecord) -> ArtworkRow:
    return ArtworkRow(
        id=artwork.id,
        title=artwork.title,
        author=artwork.author,
        image_locator=artwork.image_locator,
        description=artwork.description,
        owner_user_id=artwork.owner_user_id,
        created_at=to_db_timestamp(artwork.created_at),
        like_count=artwork.like_count,
    )


def _to_record(row: ArtworkRow) -> ArtworkRecord:
    return ArtworkRecord(
        id=row.id,
        title=row.title,
        author=row.author,
        image_locator=row.image_locator,
        description=row.description,
        owner_user_id=row.owner_user_id,
        created_at=from_db_timestamp(row.created_at),
        like_count=row.like_count,
    )
