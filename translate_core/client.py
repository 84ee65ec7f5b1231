from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Final, Protocol

import aiohttp

from translate_core.domain.errors import TranslateError, TranslateException
from translate_core.domain.models import Language
from translate_core.http import (
    DEFAULT_TIMEOUT_SECONDS,
    FetchError,
    JsonValue,
    classify_fetch_error,
    post_json_async,
)

DEFAULT_SERVICE_URL: Final[str] = "https://translate.pl-coding.com/translate"


class TranslateClient(Protocol):
    async def translate(
        self, from_language: Language, text: str, to_language: Language
    ) -> str: ...


def build_translate_payload(
    from_language: Language, text: str, to_language: Language
) -> dict[str, JsonValue]:
    return {
        "textToTranslate": text,
        "sourceLanguageCode": from_language.code,
        "targetLanguageCode": to_language.code,
    }


def parse_translated_text(payload: JsonValue) -> str | None:
    if not isinstance(payload, dict):
        return None
    value = payload.get("translatedText")
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    return stripped or None


@dataclass(slots=True)
class HttpTranslateClient:
    base_url: str = DEFAULT_SERVICE_URL
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    session: aiohttp.ClientSession | None = None
    _owns_session: bool = field(default=False, init=False, repr=False)
    _lock: asyncio.Lock | None = field(default=None, init=False, repr=False)

    async def translate(
        self, from_language: Language, text: str, to_language: Language
    ) -> str:
        session = await self._ensure_session()
        payload = build_translate_payload(from_language, text, to_language)
        try:
            data = await post_json_async(
                self.base_url, payload, session, self.timeout_seconds
            )
        except FetchError as exc:
            raise TranslateException(classify_fetch_error(exc), str(exc)) from exc
        translated = parse_translated_text(data)
        if translated is None:
            raise TranslateException(
                TranslateError.UNKNOWN_ERROR, "Malformed translation payload"
            )
        return translated

    async def close(self) -> None:
        session = self.session
        if session is None or not self._owns_session:
            return
        await session.close()
        self.session = None
        self._owns_session = False

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self.session is not None:
            return self.session
        lock = self._lock
        if lock is None:
            lock = asyncio.Lock()
            self._lock = lock
        async with lock:
            if self.session is None:
                self.session = aiohttp.ClientSession()
                self._owns_session = True
            return self.session
