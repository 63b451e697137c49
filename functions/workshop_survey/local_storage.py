"""
Durable local storage used as the fallback write target.

The contract mirrors browser local storage: string values under string
keys. Submissions live as one JSON array under a single key and are read
and written wholesale.
"""

from __future__ import annotations

import json
import os
import time
from typing import Optional, Protocol

from sqlalchemy import Column, Float, String, Text, create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from workshop_survey.errors import LocalStoreError, NotFoundError


class KeyValueStore(Protocol):
    def get_item(self, key: str) -> Optional[str]:
        ...

    def set_item(self, key: str, value: str) -> None:
        ...

    def remove_item(self, key: str) -> None:
        ...


class InMemoryKeyValueStore:
    """Process-local store for development and tests."""

    def __init__(self):
        self.items: dict[str, str] = {}

    def get_item(self, key: str) -> Optional[str]:
        return self.items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self.items[key] = value

    def remove_item(self, key: str) -> None:
        self.items.pop(key, None)

    def reset(self) -> None:
        self.items.clear()


Base = declarative_base()


class LocalItemRow(Base):
    __tablename__ = "local_storage"

    key = Column(String, primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(Float, nullable=False)


class SqlKeyValueStore:
    """
    SQLAlchemy-backed key/value table. Accepts any SQLAlchemy URL; SQLite
    files are the usual choice for a single-host deployment.
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("A database URL is required for SqlKeyValueStore")
        url = make_url(database_url)
        engine_kwargs: dict = {"future": True}
        if url.get_backend_name() == "sqlite":
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if not url.database or url.database == ":memory:":
                engine_kwargs["poolclass"] = StaticPool
            else:
                directory = os.path.dirname(url.database)
                if directory:
                    os.makedirs(directory, exist_ok=True)
        else:
            engine_kwargs["pool_pre_ping"] = True
        self.engine = create_engine(database_url, **engine_kwargs)
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)

    def get_item(self, key: str) -> Optional[str]:
        with self.Session() as session:
            row = session.get(LocalItemRow, key)
            return row.value if row else None

    def set_item(self, key: str, value: str) -> None:
        with self.Session() as session:
            row = session.get(LocalItemRow, key)
            if row:
                row.value = value
                row.updated_at = time.time()
            else:
                session.add(
                    LocalItemRow(key=key, value=value, updated_at=time.time())
                )
            session.commit()

    def remove_item(self, key: str) -> None:
        with self.Session() as session:
            row = session.get(LocalItemRow, key)
            if row:
                session.delete(row)
                session.commit()


class LocalSubmissionStore:
    """The JSON array of submission entries kept under one key."""

    def __init__(self, kv: KeyValueStore, key: str = "survey_submissions"):
        self.kv = kv
        self.key = key

    def read_all(self) -> list[dict]:
        try:
            raw = self.kv.get_item(self.key)
        except SQLAlchemyError as exc:
            raise LocalStoreError(f"Local storage unreadable: {exc}") from exc
        if not raw:
            return []
        try:
            entries = json.loads(raw)
        except ValueError as exc:
            raise LocalStoreError(f"Local storage is corrupt: {exc}") from exc
        if not isinstance(entries, list):
            raise LocalStoreError("Local storage does not hold a list")
        return [entry for entry in entries if isinstance(entry, dict)]

    def write_all(self, entries: list[dict]) -> None:
        try:
            self.kv.set_item(self.key, json.dumps(entries, default=str))
        except SQLAlchemyError as exc:
            raise LocalStoreError(f"Local storage unwritable: {exc}") from exc

    def append(self, entry: dict) -> None:
        entries = self.read_all()
        entries.append(entry)
        self.write_all(entries)

    def replace_entry(self, entry_id: str, entry: dict) -> dict:
        entries = self.read_all()
        for index, existing in enumerate(entries):
            if str(existing.get("id")) == entry_id:
                entries[index] = entry
                self.write_all(entries)
                return entry
        raise NotFoundError(f"Submission {entry_id} not found in local storage")

    def remove_entry(self, entry_id: str) -> None:
        entries = self.read_all()
        remaining = [e for e in entries if str(e.get("id")) != entry_id]
        if len(remaining) == len(entries):
            raise NotFoundError(f"Submission {entry_id} not found in local storage")
        self.write_all(remaining)

    def find(self, entry_id: str) -> Optional[dict]:
        for entry in self.read_all():
            if str(entry.get("id")) == entry_id:
                return entry
        return None
