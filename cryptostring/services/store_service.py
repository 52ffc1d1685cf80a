from datetime import datetime, timezone
from typing import Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from cryptostring.models.store import StoreEntry


class KeyValueStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class SqlKeyValueStore:
    """String values by string key, one row per entry in ``store_entries``."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, key: str) -> str | None:
        row = self.db.query(StoreEntry).filter_by(key=key).first()
        return row.value if row else None

    def set(self, key: str, value: str) -> None:
        now = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
        self.db.merge(StoreEntry(key=key, value=value, updated_at=now))
        self._commit()

    def remove(self, key: str) -> None:
        self.db.query(StoreEntry).filter_by(key=key).delete()
        self._commit()

    def _commit(self) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
