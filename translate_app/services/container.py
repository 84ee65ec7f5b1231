from __future__ import annotations

from dataclasses import dataclass

from translate_app import telemetry
from translate_app.application.events import TranslateEvent
from translate_app.application.orchestrator import TranslateOrchestrator
from translate_app.application.state import TranslateState
from translate_app.config import AppConfig, load_config
from translate_app.history.store import SqliteHistoryStore
from translate_app.services.runtime import AsyncRuntime
from translate_core.client import HttpTranslateClient, TranslateClient
from translate_core.domain.languages import language_by_code

DEFAULT_STOP_TIMEOUT_SECONDS = 5.0


@dataclass(slots=True)
class AppServices:
    config: AppConfig
    runtime: AsyncRuntime
    client: TranslateClient
    history: SqliteHistoryStore
    orchestrator: TranslateOrchestrator

    @classmethod
    def create(
        cls,
        config: AppConfig | None = None,
        *,
        client: TranslateClient | None = None,
    ) -> "AppServices":
        resolved = config or load_config()
        runtime = AsyncRuntime()
        translate_client = client or HttpTranslateClient(
            base_url=resolved.service.url,
            timeout_seconds=resolved.service.timeout_seconds,
        )
        history = SqliteHistoryStore(db_path=resolved.storage.db_path)
        orchestrator = TranslateOrchestrator(
            client=translate_client,
            history=history,
            from_language=language_by_code(resolved.languages.source),
            to_language=language_by_code(resolved.languages.target),
            history_limit=resolved.storage.history_limit,
        )
        return cls(
            config=resolved,
            runtime=runtime,
            client=translate_client,
            history=history,
            orchestrator=orchestrator,
        )

    @property
    def state(self) -> TranslateState:
        return self.orchestrator.state

    def start(self) -> None:
        self.runtime.start()
        self.runtime.run(self.orchestrator.start())
        telemetry.log_event("services.started", db=str(self.config.storage.db_path))

    def send(self, event: TranslateEvent) -> None:
        self.orchestrator.send(event)

    def settle(self, timeout: float | None = None) -> TranslateState:
        self.runtime.run(self.orchestrator.settle(), timeout=timeout)
        return self.orchestrator.state

    def stop(self) -> None:
        try:
            self.runtime.run(
                self.orchestrator.stop(), timeout=DEFAULT_STOP_TIMEOUT_SECONDS
            )
            if isinstance(self.client, HttpTranslateClient):
                self.runtime.run(
                    self.client.close(), timeout=DEFAULT_STOP_TIMEOUT_SECONDS
                )
        except Exception as exc:
            telemetry.log_error("services.stop_failed", exc)
        finally:
            self.history.close()
            self.runtime.stop()
        telemetry.log_event("services.stopped")
