from __future__ import annotations

import asyncio
from contextlib import closing
from pathlib import Path
import sqlite3

import pytest

from translate_app.history.store import HistorySnapshot, SqliteHistoryStore
from translate_core.domain.errors import StorageError
from translate_core.domain.models import HistoryItem


def _item(text: str, translated: str | None = None) -> HistoryItem:
    return HistoryItem(
        id=None,
        from_language_code="en",
        from_text=text,
        to_language_code="fr",
        to_text=translated or f"{text}-fr",
    )


def _insert_all(store: SqliteHistoryStore, *texts: str) -> None:
    async def scenario() -> None:
        for text in texts:
            await store.insert(_item(text))

    asyncio.run(scenario())


def _reject_inserts(db_path: Path) -> None:
    with closing(sqlite3.connect(db_path)) as conn, conn:
        conn.execute(
            "CREATE TRIGGER reject_insert BEFORE INSERT ON history "
            "BEGIN SELECT RAISE(ABORT, 'disk full'); END"
        )


def test_history_store_assigns_increasing_ids_newest_first() -> None:
    store = SqliteHistoryStore()

    _insert_all(store, "one", "two", "three")
    snapshot = store.snapshot()

    assert [item.from_text for item in snapshot] == ["three", "two", "one"]
    ids = [item.id for item in snapshot]
    assert all(isinstance(item_id, int) for item_id in ids)
    assert ids == sorted(ids, reverse=True)
    assert all(item.is_persisted for item in snapshot)


def test_history_store_keeps_duplicates() -> None:
    store = SqliteHistoryStore()

    _insert_all(store, "hello", "hello")

    assert [item.from_text for item in store.snapshot()] == ["hello", "hello"]


def test_observe_delivers_current_snapshot_then_changes() -> None:
    store = SqliteHistoryStore()
    _insert_all(store, "first")
    seen: list[HistorySnapshot] = []

    subscription = store.observe(seen.append)
    _insert_all(store, "second")
    subscription.close()
    _insert_all(store, "third")

    assert [[item.from_text for item in snapshot] for snapshot in seen] == [
        ["first"],
        ["second", "first"],
    ]


def test_observe_on_empty_store_delivers_empty_snapshot() -> None:
    seen: list[HistorySnapshot] = []

    SqliteHistoryStore().observe(seen.append)

    assert seen == [()]


def test_history_store_persists_between_instances(tmp_path: Path) -> None:
    db_path = tmp_path / "nested" / "history.sqlite3"
    store = SqliteHistoryStore(db_path=db_path)
    _insert_all(store, "hello")
    store.close()

    reopened = SqliteHistoryStore(db_path=db_path)
    snapshot = reopened.snapshot()
    reopened.close()

    assert len(snapshot) == 1
    assert (snapshot[0].from_text, snapshot[0].to_text) == ("hello", "hello-fr")
    assert (snapshot[0].from_language_code, snapshot[0].to_language_code) == (
        "en",
        "fr",
    )


def test_failed_insert_raises_and_does_not_notify(tmp_path: Path) -> None:
    db_path = tmp_path / "history.sqlite3"
    store = SqliteHistoryStore(db_path=db_path)
    seen: list[HistorySnapshot] = []
    store.observe(seen.append)
    _reject_inserts(db_path)

    with pytest.raises(StorageError):
        _insert_all(store, "hello")

    assert seen == [()]
    assert store.snapshot() == ()
    store.close()


def test_insert_rejects_blank_text() -> None:
    store = SqliteHistoryStore()

    with pytest.raises(StorageError):
        asyncio.run(store.insert(_item("   ")))
    with pytest.raises(StorageError):
        asyncio.run(store.insert(_item("hello", " ")))

    assert store.snapshot() == ()


def test_insert_rejects_persisted_item() -> None:
    store = SqliteHistoryStore()

    with pytest.raises(StorageError):
        asyncio.run(store.insert(_item("hello").with_id(3)))


def test_observers_see_every_persisted_row() -> None:
    store = SqliteHistoryStore()
    seen: list[HistorySnapshot] = []
    store.observe(seen.append)

    _insert_all(store, "one", "two", "three")

    assert [item.from_text for item in seen[-1]] == ["three", "two", "one"]
    assert seen[-1] == store.snapshot()


def test_closed_store_raises_storage_error() -> None:
    store = SqliteHistoryStore()
    store.snapshot()
    store.close()

    with pytest.raises(StorageError):
        store.snapshot()


def test_failing_listener_does_not_block_others() -> None:
    store = SqliteHistoryStore()
    seen: list[HistorySnapshot] = []

    def broken(_: HistorySnapshot) -> None:
        raise RuntimeError("listener failed")

    store.add_change_listener(broken)
    store.add_change_listener(seen.append)
    _insert_all(store, "hello")

    assert len(seen) == 1
    assert seen[0][0].from_text == "hello"


def test_stream_yields_snapshots() -> None:
    store = SqliteHistoryStore()

    async def scenario() -> list[list[str]]:
        stream = store.stream()
        first = await stream.__anext__()
        await store.insert(_item("hello"))
        second = await stream.__anext__()
        await stream.aclose()
        return [
            [item.from_text for item in first],
            [item.from_text for item in second],
        ]

    assert asyncio.run(scenario()) == [[], ["hello"]]
