"""Key/value persistence for calculator state.

This module keeps string values under string keys in a database table. It
defaults to SQLite for local development, but accepts any
SQLAlchemy-compatible URL (e.g. PostgreSQL/MySQL) for shared deployments.
There is no versioning: the last write to a key wins.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import Column, DateTime, String, Text, create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

logger = logging.getLogger(__name__)

Base = declarative_base()

DEFAULT_DATABASE_URL = "sqlite:///mortgage_state.sqlite3"


class StateEntryModel(Base):
    __tablename__ = "state_entries"

    key = Column(String(255), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class KeyValueStore:
    """Database-backed key/value store."""

    def __init__(self, url: str) -> None:
        self._engine = create_engine(url, future=True)
        Base.metadata.create_all(self._engine)
        self._session_factory = sessionmaker(self._engine, expire_on_commit=False, future=True)

    def get(self, key: str) -> Optional[str]:
        with self._session_factory() as session:
            row = session.get(StateEntryModel, key)
            return row.value if row else None

    def put(self, key: str, value: str) -> None:
        with self._session_factory() as session:
            row = session.get(StateEntryModel, key)
            if row is None:
                session.add(StateEntryModel(key=key, value=value))
            else:
                row.value = value
                row.updated_at = datetime.utcnow()
            session.commit()
        logger.debug("Stored %d characters under %r", len(value), key)

    def delete(self, key: str) -> None:
        with self._session_factory() as session:
            row = session.get(StateEntryModel, key)
            if row:
                session.delete(row)
                session.commit()


def create_store_from_env(url: str | None) -> KeyValueStore:
    return KeyValueStore(url or DEFAULT_DATABASE_URL)
