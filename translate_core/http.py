from __future__ import annotations

import asyncio
import json
from typing import TypeAlias

import aiohttp

from translate_core.domain.errors import TranslateError

DEFAULT_TIMEOUT_SECONDS = 10.0
DEFAULT_USER_AGENT = "translate-history/0.1"

JsonValue: TypeAlias = (
    dict[str, "JsonValue"] | list["JsonValue"] | str | int | float | bool | None
)


class FetchError(Exception):
    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class FetchTimeoutError(FetchError):
    pass


class FetchConnectionError(FetchError):
    pass


class FetchDecodeError(FetchError):
    pass


class FetchStatusError(FetchError):
    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


async def post_json_async(
    url: str,
    payload: dict[str, JsonValue],
    session: aiohttp.ClientSession,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
) -> JsonValue:
    timeout_config = aiohttp.ClientTimeout(total=timeout)
    try:
        async with session.post(
            url,
            json=payload,
            headers={"User-Agent": DEFAULT_USER_AGENT},
            timeout=timeout_config,
        ) as response:
            body = await response.text(errors="replace")
            if not 200 <= response.status < 300:
                raise FetchStatusError(
                    f"Failed to post {url}: HTTP {response.status}",
                    status_code=response.status,
                )
    except FetchStatusError:
        raise
    except asyncio.TimeoutError as exc:
        raise FetchTimeoutError(f"Timed out posting {url}") from exc
    except aiohttp.ClientConnectionError as exc:
        raise FetchConnectionError(f"Failed to reach {url}") from exc
    except aiohttp.ClientError as exc:
        raise FetchError(f"Failed to post {url}") from exc
    try:
        return json.loads(body)
    except json.JSONDecodeError as exc:
        raise FetchDecodeError(f"Malformed JSON from {url}") from exc


def classify_status(status_code: int) -> TranslateError | None:
    if 200 <= status_code < 300:
        return None
    if 400 <= status_code < 500:
        return TranslateError.CLIENT_ERROR
    if 500 <= status_code < 600:
        return TranslateError.SERVER_ERROR
    return TranslateError.UNKNOWN_ERROR


def classify_fetch_error(error: FetchError) -> TranslateError:
    if isinstance(error, (FetchTimeoutError, FetchConnectionError)):
        return TranslateError.SERVICE_UNAVAILABLE
    if isinstance(error, FetchStatusError):
        return classify_status(error.status_code) or TranslateError.UNKNOWN_ERROR
    return TranslateError.UNKNOWN_ERROR
