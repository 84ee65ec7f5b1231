from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum

from translate_core.domain.errors import TranslateError
from translate_core.domain.languages import find_language
from translate_core.domain.models import HistoryItem, Language


class Phase(Enum):
    IDLE = "idle"
    EDITING = "editing"
    TRANSLATING = "translating"
    SHOWING_RESULT = "showing_result"


class LanguageSide(Enum):
    FROM = "from"
    TO = "to"


@dataclass(frozen=True, slots=True)
class UiHistoryItem:
    id: int | None
    from_text: str
    to_text: str
    from_language: Language
    to_language: Language


@dataclass(frozen=True, slots=True)
class TranslateState:
    from_language: Language
    to_language: Language
    from_text: str = ""
    to_text: str = ""
    phase: Phase = Phase.IDLE
    choosing: LanguageSide | None = None
    error: TranslateError | None = None
    history: tuple[UiHistoryItem, ...] = ()

    @classmethod
    def initial(
        cls, from_language: Language, to_language: Language
    ) -> "TranslateState":
        return cls(from_language=from_language, to_language=to_language)

    @property
    def is_translating(self) -> bool:
        return self.phase is Phase.TRANSLATING

    @property
    def is_showing_result(self) -> bool:
        return self.phase is Phase.SHOWING_RESULT

    @property
    def is_choosing_from_language(self) -> bool:
        return self.choosing is LanguageSide.FROM

    @property
    def is_choosing_to_language(self) -> bool:
        return self.choosing is LanguageSide.TO

    @property
    def can_edit_text(self) -> bool:
        return self.phase in (Phase.IDLE, Phase.EDITING)

    def with_input(self, text: str) -> "TranslateState":
        return replace(self, from_text=text, to_text="", phase=input_phase(text))


def input_phase(text: str) -> Phase:
    if not text:
        return Phase.IDLE
    return Phase.EDITING


def to_ui_history_item(item: HistoryItem) -> UiHistoryItem | None:
    from_language = find_language(item.from_language_code)
    to_language = find_language(item.to_language_code)
    if from_language is None or to_language is None:
        return None
    return UiHistoryItem(
        id=item.id,
        from_text=item.from_text,
        to_text=item.to_text,
        from_language=from_language,
        to_language=to_language,
    )
