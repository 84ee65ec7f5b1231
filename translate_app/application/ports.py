from __future__ import annotations

from collections.abc import Callable
from typing import Protocol

from translate_app.history.bridge import Subscription
from translate_app.history.store import HistorySnapshot
from translate_core.domain.models import HistoryItem


class HistoryPort(Protocol):
    def observe(
        self, listener: Callable[[HistorySnapshot], None]
    ) -> Subscription: ...

    async def insert(self, item: HistoryItem) -> None: ...
