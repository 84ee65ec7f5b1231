from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class NotificationLevel(Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class NotificationDuration(Enum):
    LONG = 3500


@dataclass(frozen=True, slots=True)
class Notification:
    message: str
    level: NotificationLevel
    duration: NotificationDuration = NotificationDuration.LONG
