from __future__ import annotations

from dataclasses import dataclass
import json
import os
from pathlib import Path
from typing import Final

from translate_core.client import DEFAULT_SERVICE_URL
from translate_core.domain.languages import (
    DEFAULT_FROM_CODE,
    DEFAULT_TO_CODE,
    find_language,
)
from translate_core.http import DEFAULT_TIMEOUT_SECONDS

CONFIG_DIR_NAME: Final[str] = "translate_history"
CONFIG_FILE_NAME: Final[str] = "config.json"
HISTORY_DB_NAME: Final[str] = "history.sqlite3"
SERVICE_URL_ENV: Final[str] = "TRANSLATE_HISTORY_SERVICE_URL"
DB_PATH_ENV: Final[str] = "TRANSLATE_HISTORY_DB"


@dataclass(frozen=True, slots=True)
class LanguageConfig:
    source: str
    target: str


@dataclass(frozen=True, slots=True)
class ServiceConfig:
    url: str
    timeout_seconds: float


@dataclass(frozen=True, slots=True)
class StorageConfig:
    db_path: Path
    history_limit: int | None


@dataclass(frozen=True, slots=True)
class AppConfig:
    languages: LanguageConfig
    service: ServiceConfig
    storage: StorageConfig


def config_dir() -> Path:
    xdg_home = os.environ.get("XDG_CONFIG_HOME", "").strip()
    base = Path(xdg_home) if xdg_home else Path.home() / ".config"
    return base / CONFIG_DIR_NAME


def config_path() -> Path:
    return config_dir() / CONFIG_FILE_NAME


def default_db_path() -> Path:
    return config_dir() / HISTORY_DB_NAME


def load_config() -> AppConfig:
    path = config_path()
    if not path.exists():
        return _apply_env(default_config())
    try:
        raw_data = path.read_text(encoding="utf-8")
        payload: object = json.loads(raw_data)
    except (OSError, json.JSONDecodeError):
        return _apply_env(default_config())
    return _apply_env(_parse_config(payload))


def save_config(config: AppConfig) -> None:
    path = config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = _config_to_dict(config)
    data = json.dumps(payload, ensure_ascii=True, indent=2)
    path.write_text(data, encoding="utf-8")


def default_config() -> AppConfig:
    return AppConfig(
        languages=LanguageConfig(source=DEFAULT_FROM_CODE, target=DEFAULT_TO_CODE),
        service=ServiceConfig(
            url=DEFAULT_SERVICE_URL,
            timeout_seconds=DEFAULT_TIMEOUT_SECONDS,
        ),
        storage=StorageConfig(db_path=default_db_path(), history_limit=None),
    )


def _parse_config(payload: object) -> AppConfig:
    defaults = default_config()
    payload_dict = _get_dict(payload)
    if payload_dict is None:
        return defaults
    language_data = _get_dict(payload_dict.get("languages")) or {}
    service_data = _get_dict(payload_dict.get("service")) or {}
    storage_data = _get_dict(payload_dict.get("storage")) or {}

    source = _get_language_code(
        language_data.get("source"), defaults.languages.source
    )
    target = _get_language_code(
        language_data.get("target"), defaults.languages.target
    )
    if source == target:
        source, target = defaults.languages.source, defaults.languages.target

    db_value = _get_str(storage_data.get("db_path"), "")
    db_path = Path(db_value).expanduser() if db_value else defaults.storage.db_path
    return AppConfig(
        languages=LanguageConfig(source=source, target=target),
        service=ServiceConfig(
            url=_get_str(service_data.get("url"), defaults.service.url),
            timeout_seconds=_get_positive_float(
                service_data.get("timeout_seconds"),
                defaults.service.timeout_seconds,
            ),
        ),
        storage=StorageConfig(
            db_path=db_path,
            history_limit=_get_optional_positive_int(
                storage_data.get("history_limit")
            ),
        ),
    )


def _apply_env(config: AppConfig) -> AppConfig:
    url = os.environ.get(SERVICE_URL_ENV, "").strip()
    db_path = os.environ.get(DB_PATH_ENV, "").strip()
    service = config.service
    storage = config.storage
    if url:
        service = ServiceConfig(url=url, timeout_seconds=service.timeout_seconds)
    if db_path:
        storage = StorageConfig(
            db_path=Path(db_path).expanduser(),
            history_limit=storage.history_limit,
        )
    return AppConfig(languages=config.languages, service=service, storage=storage)


def _config_to_dict(config: AppConfig) -> dict[str, object]:
    return {
        "languages": {
            "source": config.languages.source,
            "target": config.languages.target,
        },
        "service": {
            "url": config.service.url,
            "timeout_seconds": config.service.timeout_seconds,
        },
        "storage": {
            "db_path": str(config.storage.db_path),
            "history_limit": config.storage.history_limit,
        },
    }


def _get_dict(value: object) -> dict[str, object] | None:
    if isinstance(value, dict):
        return value
    return None


def _get_str(value: object, fallback: str) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return fallback


def _get_language_code(value: object, fallback: str) -> str:
    code = _get_str(value, fallback)
    language = find_language(code)
    if language is None:
        return fallback
    return language.code


def _get_positive_float(value: object, fallback: float) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return fallback
    if value <= 0:
        return fallback
    return float(value)


def _get_optional_positive_int(value: object) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    if value <= 0:
        return None
    return value
