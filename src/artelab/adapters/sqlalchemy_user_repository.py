"""SQLAlchemy-backed user cache repository."""

from collections.abc import AsyncIterator
from dataclasses import dataclass, field

from sqlalchemy import delete, select, update
from sqlalchemy.orm import sessionmaker

from artelab.adapters.sqlalchemy_tables import (
    UserRow,
    from_db_timestamp,
    to_db_timestamp,
)
from artelab.domain.models import UserRecord
from artelab.services.observable import ChangeNotifier
from artelab.services.users import UserRepository


@dataclass
class SqlAlchemyUserRepository(UserRepository):
    """SQLite implementation of the user cache."""

    session_factory: sessionmaker
    notifier: ChangeNotifier = field(default_factory=ChangeNotifier)

    def insert_user(self, user: UserRecord) -> None:
        """Insert a user row, replacing the whole row on id conflict."""
        with self.session_factory() as session:
            session.merge(_to_row(user))
            session.commit()
        self.notifier.notify()

    def update_user(self, user: UserRecord) -> None:
        """Overwrite an existing user row."""
        with self.session_factory() as session:
            result = session.execute(
                update(UserRow)
                .where(UserRow.id == user.id)
                .values(
                    name=user.name,
                    email=user.email,
                    avatar_locator=user.avatar_locator,
                    created_at=to_db_timestamp(user.created_at),
                )
                .execution_options(synchronize_session=False)
            )
            session.commit()
        if result.rowcount:
            self.notifier.notify()

    def update_avatar_locator(self, user_id: int, locator: str | None) -> bool:
        """Update only the avatar column; a repeated call changes nothing."""
        with self.session_factory() as session:
            result = session.execute(
                update(UserRow)
                .where(UserRow.id == user_id)
                .where(UserRow.avatar_locator.is_distinct_from(locator))
                .values(avatar_locator=locator)
                .execution_options(synchronize_session=False)
            )
            session.commit()
        changed = bool(result.rowcount)
        if changed:
            self.notifier.notify()
        return changed

    def get_user_by_id(self, user_id: int) -> UserRecord | None:
        """Return the user with this id, if present."""
        with self.session_factory() as session:
            row = session.get(UserRow, user_id)
            return _to_record(row) if row else None

    def get_user_by_email(self, email: str) -> UserRecord | None:
        """Return the first user with this email, if present."""
        with self.session_factory() as session:
            row = session.scalars(
                select(UserRow).where(UserRow.email == email).limit(1)
            ).first()
            return _to_record(row) if row else None

    def list_users(self) -> list[UserRecord]:
        """Return all users, newest first."""
        with self.session_factory() as session:
            rows = session.scalars(
                select(UserRow).order_by(UserRow.created_at.desc(), UserRow.id.desc())
            ).all()
            return [_to_record(row) for row in rows]

    def watch_all_users(self) -> AsyncIterator[list[UserRecord]]:
        """Observe all users, newest first."""

        async def fetch() -> list[UserRecord]:
            return self.list_users()

        return self.notifier.observe(fetch)

    def delete_user(self, user_id: int) -> None:
        with self.session_factory() as session:
            session.execute(delete(UserRow).where(UserRow.id == user_id))
            session.commit()
        self.notifier.notify()

    def delete_all_users(self) -> None:
        with self.session_factory() as session:
            session.execute(delete(UserRow))
            session.commit()
        self.notifier.notify()


def _to_row(user: UserRecord) -> UserRow:
    return UserRow(
        id=user.id,
        name=user.name,
        email=user.email,
        avatar_locator=user.avatar_locator,
        created_at=to_db_timestamp(user.created_at),
    )


def _to_record(row: UserRow) -> UserRecord:
    return UserRecord(
        id=row.id,
        name=row.name,
        email=row.email,
        avatar_locator=row.avatar_locator,
        created_at=from_db_timestamp(row.created_at),
    )
