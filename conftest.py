from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest

from translate_app import telemetry


def pytest_ignore_collect(
    collection_path: Path, config: pytest.Config
) -> bool | None:
    del config
    ignored_parts = {".venv", "__pycache__", "build", "dist"}
    if any(part in collection_path.parts for part in ignored_parts):
        return True
    return None


@pytest.fixture(autouse=True)
def isolated_environment(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Iterator[Path]:
    # Keep logs, config and history databases inside the test's tmp dir.
    monkeypatch.setenv("TRANSLATE_HISTORY_LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.delenv("TRANSLATE_HISTORY_SERVICE_URL", raising=False)
    monkeypatch.delenv("TRANSLATE_HISTORY_DB", raising=False)
    monkeypatch.delenv("TRANSLATE_HISTORY_LOGGING", raising=False)
    yield tmp_path
    telemetry.shutdown()
