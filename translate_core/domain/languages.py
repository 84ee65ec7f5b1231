from __future__ import annotations

from typing import Final

from translate_core.domain.errors import UnknownLanguageError
from translate_core.domain.models import Language

DEFAULT_FROM_CODE: Final[str] = "en"
DEFAULT_TO_CODE: Final[str] = "de"

_LANGUAGES: Final[tuple[Language, ...]] = (
    Language(code="ar", name="Arabic", locale="ar_SA"),
    Language(code="az", name="Azerbaijani", locale="az_AZ"),
    Language(code="zh", name="Chinese", locale="zh_CN"),
    Language(code="cs", name="Czech", locale="cs_CZ"),
    Language(code="da", name="Danish", locale="da_DK"),
    Language(code="nl", name="Dutch", locale="nl_NL"),
    Language(code="en", name="English", locale="en_US"),
    Language(code="fi", name="Finnish", locale="fi_FI"),
    Language(code="fr", name="French", locale="fr_FR"),
    Language(code="de", name="German", locale="de_DE"),
    Language(code="el", name="Greek", locale="el_GR"),
    Language(code="he", name="Hebrew", locale="he_IL"),
    Language(code="hi", name="Hindi", locale="hi_IN"),
    Language(code="hu", name="Hungarian", locale="hu_HU"),
    Language(code="id", name="Indonesian", locale="id_ID"),
    Language(code="ga", name="Irish", locale="ga_IE"),
    Language(code="it", name="Italian", locale="it_IT"),
    Language(code="ja", name="Japanese", locale="ja_JP"),
    Language(code="ko", name="Korean", locale="ko_KR"),
    Language(code="fa", name="Persian", locale="fa_IR"),
    Language(code="pl", name="Polish", locale="pl_PL"),
    Language(code="pt", name="Portuguese", locale="pt_PT"),
    Language(code="ru", name="Russian", locale="ru_RU"),
    Language(code="sk", name="Slovak", locale="sk_SK"),
    Language(code="es", name="Spanish", locale="es_ES"),
    Language(code="sv", name="Swedish", locale="sv_SE"),
    Language(code="tr", name="Turkish", locale="tr_TR"),
    Language(code="uk", name="Ukrainian", locale="uk_UA"),
)

LANGUAGES_BY_CODE: Final[dict[str, Language]] = {
    language.code: language for language in _LANGUAGES
}


def all_languages() -> tuple[Language, ...]:
    return tuple(sorted(_LANGUAGES, key=lambda language: language.name))


def find_language(code: str) -> Language | None:
    return LANGUAGES_BY_CODE.get(_normalize_code(code))


def language_by_code(code: str) -> Language:
    language = find_language(code)
    if language is None:
        raise UnknownLanguageError(code)
    return language


def default_from_language() -> Language:
    return language_by_code(DEFAULT_FROM_CODE)


def default_to_language() -> Language:
    return language_by_code(DEFAULT_TO_CODE)


def _normalize_code(code: str) -> str:
    return code.strip().lower()
