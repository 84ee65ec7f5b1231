from __future__ import annotations

from translate_app.history.bridge import SharedFeed as SharedFeed
from translate_app.history.bridge import Subscription as Subscription
from translate_app.history.store import HistorySnapshot as HistorySnapshot
from translate_app.history.store import SqliteHistoryStore as SqliteHistoryStore
