from __future__ import annotations

import atexit
from datetime import datetime, timezone
import hashlib
import json
import logging
import logging.handlers
import os
from pathlib import Path
import queue
import sys
import threading
from typing import Final

from translate_core.domain.errors import TranslateException

_LOGGER_NAME: Final[str] = "translate_history"
_LOG_DIR_ENV: Final[str] = "TRANSLATE_HISTORY_LOG_DIR"
_LOG_ENABLED_ENV: Final[str] = "TRANSLATE_HISTORY_LOGGING"
_LOG_LEVEL_ENV: Final[str] = "TRANSLATE_HISTORY_LOG_LEVEL"
_LOG_STDERR_ENV: Final[str] = "TRANSLATE_HISTORY_LOG_STDERR"
_logger: logging.Logger | None = None
_listener: logging.handlers.QueueListener | None = None
_sinks: list[logging.Handler] = []
_setup_lock = threading.Lock()


def log_path() -> Path:
    override = os.environ.get(_LOG_DIR_ENV, "").strip()
    if override:
        return Path(override) / "translate_history.log"
    return Path.home() / ".translate_history" / "logs" / "translate_history.log"


def setup(*, reset: bool, stderr: bool | None = None) -> None:
    global _logger, _listener
    if not _is_enabled():
        return
    with _setup_lock:
        if _logger is not None:
            return
        level = _level_from_env()
        sinks = _build_sinks(reset=reset, stderr=_flag(_LOG_STDERR_ENV, stderr))
        if not sinks:
            return
        record_queue: queue.SimpleQueue[logging.LogRecord] = queue.SimpleQueue()
        logger = logging.getLogger(_LOGGER_NAME)
        logger.setLevel(level)
        logger.propagate = False
        logger.addHandler(logging.handlers.QueueHandler(record_queue))
        listener = logging.handlers.QueueListener(
            record_queue,
            *sinks,
            respect_handler_level=True,
        )
        listener.start()
        _logger = logger
        _listener = listener
        _sinks.extend(sinks)
    atexit.register(shutdown)


def shutdown() -> None:
    global _logger, _listener
    with _setup_lock:
        if _listener is not None:
            _listener.stop()
            _listener = None
        for sink in _sinks:
            sink.close()
        _sinks.clear()
        if _logger is not None:
            _logger.handlers.clear()
            _logger = None


def log_event(event: str, **fields: object) -> None:
    _emit(logging.INFO, event, None, fields)


def log_warning(event: str, **fields: object) -> None:
    _emit(logging.WARNING, event, None, fields)


def log_error(event: str, exc: BaseException | None = None, **fields: object) -> None:
    _emit(logging.ERROR, event, exc, fields)


def text_meta(value: str | None) -> dict[str, object]:
    # User text never reaches the log file, only its size and digest.
    if not value:
        return {"text_len": 0, "text_hash": ""}
    data = value.encode("utf-8", errors="ignore")
    digest = hashlib.sha256(data).hexdigest()
    return {"text_len": len(value), "text_hash": digest}


def _emit(
    level: int,
    event: str,
    exc: BaseException | None,
    fields: dict[str, object],
) -> None:
    if _logger is None:
        setup(reset=False)
    logger = _logger
    if logger is None or not logger.isEnabledFor(level):
        return
    payload = _base_payload(event)
    if exc is not None:
        payload.update(_error_fields(exc))
    if fields:
        payload.update(_sanitize_fields(fields))
    logger.log(level, json.dumps(payload, ensure_ascii=True, separators=(",", ":")))


def _build_sinks(*, reset: bool, stderr: bool) -> list[logging.Handler]:
    formatter = logging.Formatter("%(message)s")
    sinks: list[logging.Handler] = []
    path = log_path()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(
            path, mode="w" if reset else "a", encoding="utf-8"
        )
    except OSError:
        pass
    else:
        file_handler.setFormatter(formatter)
        sinks.append(file_handler)
    if stderr:
        stream_handler = logging.StreamHandler(sys.stderr)
        stream_handler.setFormatter(formatter)
        stream_handler.setLevel(logging.WARNING)
        sinks.append(stream_handler)
    return sinks


def _is_enabled() -> bool:
    return os.environ.get(_LOG_ENABLED_ENV, "1").strip() != "0"


def _flag(name: str, explicit: bool | None) -> bool:
    if explicit is not None:
        return explicit
    return os.environ.get(name, "").strip().lower() in {"1", "true", "yes", "on"}


def _level_from_env() -> int:
    raw = os.environ.get(_LOG_LEVEL_ENV, "").strip().upper()
    level = logging.getLevelName(raw) if raw else logging.INFO
    if not isinstance(level, int):
        return logging.INFO
    return level


def _base_payload(event: str) -> dict[str, object]:
    return {
        "ts": datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
        "event": event,
        "pid": os.getpid(),
        "thread": threading.get_ident(),
    }


def _error_fields(exc: BaseException) -> dict[str, object]:
    fields: dict[str, object] = {
        "error_type": exc.__class__.__name__,
        "error": str(exc),
    }
    if isinstance(exc, TranslateException):
        fields["error_kind"] = exc.error.value
    return fields


def _sanitize_fields(fields: dict[str, object]) -> dict[str, object]:
    sanitized: dict[str, object] = {}
    for key, value in fields.items():
        if isinstance(value, (str, int, float, bool)) or value is None:
            sanitized[key] = value
        else:
            sanitized[key] = str(value)
    return sanitized
