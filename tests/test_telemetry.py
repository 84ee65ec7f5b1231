from __future__ import annotations

import hashlib
import json
from pathlib import Path

import pytest

from translate_app import telemetry
from translate_core.domain.errors import TranslateError, TranslateException


def _records() -> list[dict[str, object]]:
    telemetry.shutdown()
    lines = telemetry.log_path().read_text(encoding="utf-8").splitlines()
    return [json.loads(line) for line in lines]


def test_text_meta_hides_text() -> None:
    meta = telemetry.text_meta("secret words")

    assert meta["text_len"] == len("secret words")
    assert meta["text_hash"] == hashlib.sha256(b"secret words").hexdigest()
    assert "secret" not in json.dumps(meta)


def test_text_meta_for_empty_text() -> None:
    assert telemetry.text_meta("") == {"text_len": 0, "text_hash": ""}
    assert telemetry.text_meta(None) == {"text_len": 0, "text_hash": ""}


def test_log_path_follows_environment(tmp_path: Path) -> None:
    assert telemetry.log_path() == tmp_path / "logs" / "translate_history.log"


def test_events_are_written_as_json_lines() -> None:
    telemetry.setup(reset=True)
    telemetry.log_event("test.event", count=2, path=Path("a"))
    telemetry.log_error(
        "test.failed", TranslateException(TranslateError.SERVER_ERROR, "HTTP 500")
    )

    records = _records()

    assert [record["event"] for record in records] == ["test.event", "test.failed"]
    assert records[0]["count"] == 2
    assert records[0]["path"] == "a"
    assert records[1]["error_type"] == "TranslateException"
    assert records[1]["error_kind"] == "server_error"
    assert records[1]["error"] == "HTTP 500"


def test_logging_can_be_disabled(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TRANSLATE_HISTORY_LOGGING", "0")

    telemetry.log_event("test.silent")

    assert not telemetry.log_path().exists()


def test_log_level_filters_events(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TRANSLATE_HISTORY_LOG_LEVEL", "warning")
    telemetry.setup(reset=True)
    telemetry.log_event("test.info")
    telemetry.log_warning("test.warning")

    assert [record["event"] for record in _records()] == ["test.warning"]
