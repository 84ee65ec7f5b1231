from __future__ import annotations

from dataclasses import dataclass
from typing import TypeAlias

from translate_app.application.state import UiHistoryItem
from translate_core.domain.models import Language


@dataclass(frozen=True, slots=True)
class ChangeText:
    text: str


@dataclass(frozen=True, slots=True)
class OpenFromLanguageDropDown:
    pass


@dataclass(frozen=True, slots=True)
class OpenToLanguageDropDown:
    pass


@dataclass(frozen=True, slots=True)
class StopChoosingLanguage:
    pass


@dataclass(frozen=True, slots=True)
class ChooseFromLanguage:
    language: Language


@dataclass(frozen=True, slots=True)
class ChooseToLanguage:
    language: Language


@dataclass(frozen=True, slots=True)
class SwapLanguages:
    pass


@dataclass(frozen=True, slots=True)
class Translate:
    pass


@dataclass(frozen=True, slots=True)
class EditTranslation:
    pass


@dataclass(frozen=True, slots=True)
class CloseTranslation:
    pass


@dataclass(frozen=True, slots=True)
class SelectHistoryItem:
    item: UiHistoryItem


@dataclass(frozen=True, slots=True)
class OnErrorSeen:
    pass


TranslateEvent: TypeAlias = (
    ChangeText
    | OpenFromLanguageDropDown
    | OpenToLanguageDropDown
    | StopChoosingLanguage
    | ChooseFromLanguage
    | ChooseToLanguage
    | SwapLanguages
    | Translate
    | EditTranslation
    | CloseTranslation
    | SelectHistoryItem
    | OnErrorSeen
)
