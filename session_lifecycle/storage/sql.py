# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""SQLAlchemy-backed durable storage."""

from sqlalchemy import Engine, create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from session_lifecycle.models.base import Base
from session_lifecycle.models.storage_entry import StorageEntry
from session_lifecycle.storage.base import StorageError, StoragePort


def build_engine(database_url: str) -> Engine:
    """Create an engine, allowing SQLite connections across threads."""
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    return create_engine(database_url, connect_args=connect_args)


class SqlStorage(StoragePort):
    """Durable storage with one row per (namespace, key).

    Each call runs in its own short transaction.
    """

    def __init__(self, engine: Engine, namespace: str = "default") -> None:
        self.namespace = namespace
        self._session_factory = sessionmaker(
            autocommit=False, autoflush=False, bind=engine
        )
        Base.metadata.create_all(bind=engine, tables=[StorageEntry.__table__])

    def _find(self, db, key: str) -> StorageEntry | None:
        return (
            db.query(StorageEntry)
            .filter(StorageEntry.namespace == self.namespace, StorageEntry.key == key)
            .first()
        )

    def get(self, key: str) -> str | None:
        try:
            with self._session_factory() as db:
                entry = self._find(db, key)
                return entry.value if entry else None
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to read storage key {key}") from e

    def set(self, key: str, value: str) -> None:
        try:
            with self._session_factory() as db:
                entry = self._find(db, key)
                if entry:
                    entry.value = value
                else:
                    db.add(StorageEntry(namespace=self.namespace, key=key, value=value))
                db.commit()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to write storage key {key}") from e

    def remove(self, key: str) -> None:
        try:
            with self._session_factory() as db:
                (
                    db.query(StorageEntry)
                    .filter(
                        StorageEntry.namespace == self.namespace,
                        StorageEntry.key == key,
                    )
                    .delete()
                )
                db.commit()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to remove storage key {key}") from e
