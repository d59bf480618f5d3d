"""Artwork feed business logic."""

from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Protocol

from artelab.domain.models import ArtworkRecord
from artelab.domain.ui_state import Empty, Success, UiState


class ArtworkRepository(Protocol):
    """Persistence interface for cached artworks."""

    def insert_artwork(self, artwork: ArtworkRecord) -> int:
        """Insert an artwork, replacing any row with the same id; return its id."""

    def update_artwork(self, artwork: ArtworkRecord) -> None:
        """Overwrite every column of an existing artwork row."""

    def get_artwork_by_id(self, artwork_id: int) -> ArtworkRecord | None:
        """Return the artwork with this id, if present."""

    def watch_all_artworks(self) -> AsyncIterator[list[ArtworkRecord]]:
        """Observe all artworks, newest first."""

    def watch_artworks_by_owner(
        self, owner_user_id: int
    ) -> AsyncIterator[list[ArtworkRecord]]:
        """Observe the artworks of one user, newest first."""

    def search_artworks_by_title(self, query: str) -> AsyncIterator[list[ArtworkRecord]]:
        """Observe artworks whose title contains the query, newest first."""

    def increment_like_count(self, artwork_id: int) -> None:
        """Add one like to an artwork."""

    def delete_artwork(self, artwork_id: int) -> None:
        """Delete an artwork by id."""

    def delete_artworks_by_owner(self, owner_user_id: int) -> None:
        """Delete every artwork of one user."""

    def delete_all_artworks(self) -> None:
        """Delete every cached artwork."""

    def count_artworks_by_owner(self, owner_user_id: int) -> int:
        """Return how many artworks one user owns."""


@dataclass
class FeedService:
    """Home feed and gallery operations over the artwork cache."""

    repository: ArtworkRepository

    def publish(  # noqa: PLR0913
        self,
        *,
        title: str,
        author: str,
        image_locator: str,
        owner_user_id: int,
        description: str | None = None,
    ) -> ArtworkRecord:
        """Add a new artwork to the local feed and return it."""
        if not title.strip():
            raise ValueError("Artwork title must not be blank")
        draft = ArtworkRecord(
            title=title.strip(),
            author=author,
            image_locator=image_locator,
            owner_user_id=owner_user_id,
            description=description,
        )
        artwork_id = self.repository.insert_artwork(draft)
        stored = self.repository.get_artwork_by_id(artwork_id)
        if stored is None:
            raise RuntimeError(f"Artwork {artwork_id} missing after insert")
        return stored

    def like(self, artwork_id: int) -> ArtworkRecord | None:
        """Like an artwork and return its updated row."""
        self.repository.increment_like_count(artwork_id)
        return self.repository.get_artwork_by_id(artwork_id)

    def owner_artwork_count(self, owner_user_id: int) -> int:
        return self.repository.count_artworks_by_owner(owner_user_id)

    def feed(self) -> AsyncIterator[UiState]:
        """Observe the whole feed as UI states."""
        return _as_ui_states(self.repository.watch_all_artworks())

    def gallery(self, owner_user_id: int) -> AsyncIterator[UiState]:
        """Observe one user's artworks as UI states."""
        return _as_ui_states(self.repository.watch_artworks_by_owner(owner_user_id))

    def search(self, query: str) -> AsyncIterator[UiState]:
        """Observe a title search as UI states."""
        return _as_ui_states(self.repository.search_artworks_by_title(query))


async def _as_ui_states(
    rows: AsyncIterator[list[ArtworkRecord]],
) -> AsyncIterator[UiState]:
    try:
        async for artworks in rows:
            yield Success(artworks) if artworks else Empty()
    finally:
        aclose = getattr(rows, "aclose", None)
        if aclose is not None:
            await aclose()
