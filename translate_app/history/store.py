from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass, field
from pathlib import Path
import sqlite3
import threading
from typing import Final, TypeAlias

from translate_app import telemetry
from translate_app.history.bridge import SharedFeed, Subscription
from translate_core.domain.errors import StorageError
from translate_core.domain.models import HistoryItem

HistorySnapshot: TypeAlias = tuple[HistoryItem, ...]
HistoryListener: TypeAlias = Callable[[HistorySnapshot], None]

IN_MEMORY: Final[str] = ":memory:"

_SCHEMA: Final[str] = """
CREATE TABLE IF NOT EXISTS history (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    from_language_code TEXT NOT NULL,
    from_text TEXT NOT NULL,
    to_language_code TEXT NOT NULL,
    to_text TEXT NOT NULL
)
"""
_INSERT: Final[str] = (
    "INSERT INTO history "
    "(from_language_code, from_text, to_language_code, to_text) "
    "VALUES (?, ?, ?, ?)"
)
_SELECT: Final[str] = (
    "SELECT id, from_language_code, from_text, to_language_code, to_text "
    "FROM history ORDER BY id DESC"
)


def _listener_map() -> dict[int, HistoryListener]:
    return {}


@dataclass(slots=True)
class SqliteHistoryStore:
    """Append-only translation history kept in a SQLite table.

    Observers see the whole log newest first. A new snapshot is published
    only after the insert transaction has committed, so a failed write never
    reaches observers.
    """

    db_path: Path | str = IN_MEMORY
    _conn: sqlite3.Connection | None = field(default=None, init=False, repr=False)
    _lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False
    )
    _listeners: dict[int, HistoryListener] = field(
        default_factory=_listener_map, init=False, repr=False
    )
    _next_listener: int = field(default=0, init=False, repr=False)
    _version: int = field(default=0, init=False, repr=False)
    _published_version: int = field(default=0, init=False, repr=False)
    _feed: SharedFeed[HistorySnapshot] | None = field(
        default=None, init=False, repr=False
    )
    _closed: bool = field(default=False, init=False, repr=False)

    @property
    def feed(self) -> SharedFeed[HistorySnapshot]:
        if self._feed is None:
            self._feed = SharedFeed(self, name="history")
        return self._feed

    def observe(self, listener: HistoryListener) -> Subscription:
        return self.feed.subscribe(listener)

    def stream(self) -> AsyncIterator[HistorySnapshot]:
        return self.feed.stream()

    async def insert(self, item: HistoryItem) -> None:
        _validate(item)
        version, snapshot = await asyncio.to_thread(self._write, item)
        self._notify(version, snapshot)

    def snapshot(self) -> HistorySnapshot:
        with self._lock:
            return self._read_locked()

    def add_change_listener(self, listener: HistoryListener) -> Callable[[], None]:
        with self._lock:
            token = self._next_listener
            self._next_listener += 1
            self._listeners[token] = listener

        def remove() -> None:
            with self._lock:
                self._listeners.pop(token, None)

        return remove

    def close(self) -> None:
        if self._feed is not None:
            self._feed.close()
        with self._lock:
            self._closed = True
            conn = self._conn
            self._conn = None
            self._listeners.clear()
        if conn is not None:
            conn.close()

    def _write(self, item: HistoryItem) -> tuple[int, HistorySnapshot]:
        with self._lock:
            conn = self._connect_locked()
            try:
                with conn:
                    cursor = conn.execute(
                        _INSERT,
                        (
                            item.from_language_code,
                            item.from_text,
                            item.to_language_code,
                            item.to_text,
                        ),
                    )
            except sqlite3.Error as exc:
                telemetry.log_error("history.insert_failed", exc)
                raise StorageError("Failed to store history item") from exc
            telemetry.log_event(
                "history.inserted",
                id=cursor.lastrowid,
                from_lang=item.from_language_code,
                to_lang=item.to_language_code,
            )
            self._version += 1
            return self._version, self._read_locked()

    def _read_locked(self) -> HistorySnapshot:
        conn = self._connect_locked()
        try:
            rows = conn.execute(_SELECT).fetchall()
        except sqlite3.Error as exc:
            telemetry.log_error("history.read_failed", exc)
            raise StorageError("Failed to read history") from exc
        return tuple(_row_to_item(row) for row in rows)

    def _connect_locked(self) -> sqlite3.Connection:
        if self._closed:
            raise StorageError("History store is closed")
        if self._conn is not None:
            return self._conn
        target = str(self.db_path)
        try:
            if target != IN_MEMORY:
                Path(target).parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(target, check_same_thread=False)
            conn.row_factory = sqlite3.Row
            with conn:
                conn.execute(_SCHEMA)
        except (OSError, sqlite3.Error) as exc:
            telemetry.log_error("history.open_failed", exc, path=target)
            raise StorageError(f"Failed to open history at {target}") from exc
        self._conn = conn
        return conn

    def _notify(self, version: int, snapshot: HistorySnapshot) -> None:
        with self._lock:
            # Overlapping inserts may finish out of order; never publish an
            # older snapshot after a newer one.
            if version <= self._published_version:
                return
            self._published_version = version
            listeners = list(self._listeners.values())
        for listener in listeners:
            try:
                listener(snapshot)
            except Exception as exc:
                telemetry.log_error("history.listener_failed", exc)


def _validate(item: HistoryItem) -> None:
    if item.id is not None:
        raise StorageError(f"History item {item.id} is already stored")
    if not item.from_text.strip() or not item.to_text.strip():
        raise StorageError("History items need both source and translated text")


def _row_to_item(row: sqlite3.Row) -> HistoryItem:
    return HistoryItem(
        id=int(row["id"]),
        from_language_code=str(row["from_language_code"]),
        from_text=str(row["from_text"]),
        to_language_code=str(row["to_language_code"]),
        to_text=str(row["to_text"]),
    )
