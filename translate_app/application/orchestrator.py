from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from typing import TypeAlias

from translate_app import telemetry
from translate_app.application.events import (
    ChangeText,
    ChooseFromLanguage,
    ChooseToLanguage,
    CloseTranslation,
    EditTranslation,
    OnErrorSeen,
    OpenFromLanguageDropDown,
    OpenToLanguageDropDown,
    SelectHistoryItem,
    StopChoosingLanguage,
    SwapLanguages,
    Translate,
    TranslateEvent,
)
from translate_app.application.ports import HistoryPort
from translate_app.application.state import (
    LanguageSide,
    Phase,
    TranslateState,
    UiHistoryItem,
    input_phase,
    to_ui_history_item,
)
from translate_app.history.bridge import Subscription
from translate_app.history.store import HistorySnapshot
from translate_core.client import TranslateClient
from translate_core.domain.errors import (
    StorageError,
    TranslateError,
    TranslateException,
)
from translate_core.domain.languages import default_from_language, default_to_language
from translate_core.domain.models import HistoryItem, Language

StateListener: TypeAlias = Callable[[TranslateState], None]


@dataclass(frozen=True, slots=True)
class _TranslationRequest:
    generation: int
    from_language: Language
    text: str
    to_language: Language


@dataclass(frozen=True, slots=True)
class _TranslationFinished:
    request: _TranslationRequest
    translated: str | None
    error: TranslateError | None


@dataclass(frozen=True, slots=True)
class _HistoryChanged:
    items: HistorySnapshot


_Message: TypeAlias = TranslateEvent | _TranslationFinished | _HistoryChanged


def _task_set() -> set[asyncio.Task[None]]:
    return set()


def _listener_map() -> dict[int, StateListener]:
    return {}


@dataclass(slots=True)
class TranslateOrchestrator:
    """Single owner of ``TranslateState``.

    Every user event and every asynchronous completion goes through one
    queue and is applied by one consumer task, in arrival order. Remote
    translations carry the generation they were started in; a completion
    from a superseded generation is dropped.
    """

    client: TranslateClient
    history: HistoryPort
    from_language: Language = field(default_factory=default_from_language)
    to_language: Language = field(default_factory=default_to_language)
    history_limit: int | None = None

    _state: TranslateState = field(init=False)
    _loop: asyncio.AbstractEventLoop | None = field(default=None, init=False)
    _queue: asyncio.Queue[_Message] | None = field(default=None, init=False)
    _consumer: asyncio.Task[None] | None = field(default=None, init=False)
    _translations: set[asyncio.Task[None]] = field(
        default_factory=_task_set, init=False
    )
    _background: set[asyncio.Task[None]] = field(default_factory=_task_set, init=False)
    _subscription: Subscription | None = field(default=None, init=False)
    _listeners: dict[int, StateListener] = field(
        default_factory=_listener_map, init=False
    )
    _next_listener: int = field(default=0, init=False)
    _generation: int = field(default=0, init=False)

    def __post_init__(self) -> None:
        if self.from_language == self.to_language:
            raise ValueError("Source and target languages must differ.")
        self._state = TranslateState.initial(self.from_language, self.to_language)

    @property
    def state(self) -> TranslateState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._consumer is not None and not self._consumer.done()

    async def start(self) -> None:
        if self.is_running:
            return
        self._loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue()
        self._consumer = asyncio.create_task(self._consume())
        self._subscription = self.history.observe(self._on_history)
        telemetry.log_event(
            "orchestrator.started",
            from_lang=self._state.from_language.code,
            to_lang=self._state.to_language.code,
        )

    async def stop(self) -> None:
        if self._subscription is not None:
            self._subscription.close()
            self._subscription = None
        translations = list(self._translations)
        for task in translations:
            task.cancel()
        if translations:
            await asyncio.gather(*translations, return_exceptions=True)
        if self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)
        consumer = self._consumer
        if consumer is not None:
            consumer.cancel()
            await asyncio.gather(consumer, return_exceptions=True)
        self._consumer = None
        telemetry.log_event("orchestrator.stopped")

    def send(self, event: TranslateEvent) -> None:
        self._post(event)

    async def drain(self) -> None:
        await self._require_queue().join()

    async def settle(self) -> None:
        queue = self._require_queue()
        while True:
            await queue.join()
            pending = self._pending_tasks()
            if pending:
                await asyncio.wait(pending)
                continue
            # A task can post its completion and finish before join() resumes.
            if queue.empty():
                return

    def add_listener(self, listener: StateListener) -> Callable[[], None]:
        token = self._next_listener
        self._next_listener += 1
        self._listeners[token] = listener
        self._deliver(listener, self._state)

        def remove() -> None:
            self._listeners.pop(token, None)

        return remove

    def _post(self, message: _Message) -> None:
        loop = self._loop
        queue = self._require_queue()
        if loop is None:
            raise RuntimeError("Orchestrator is not started.")
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is loop:
            queue.put_nowait(message)
        else:
            loop.call_soon_threadsafe(queue.put_nowait, message)

    def _require_queue(self) -> asyncio.Queue[_Message]:
        if self._queue is None:
            raise RuntimeError("Orchestrator is not started.")
        return self._queue

    def _pending_tasks(self) -> set[asyncio.Task[None]]:
        tasks = self._translations | self._background
        return {task for task in tasks if not task.done()}

    async def _consume(self) -> None:
        queue = self._require_queue()
        while True:
            message = await queue.get()
            try:
                self._apply(message)
            except Exception as exc:
                telemetry.log_error(
                    "orchestrator.event_failed", exc, event=type(message).__name__
                )
            finally:
                queue.task_done()

    def _apply(self, message: _Message) -> None:
        previous = self._state
        self._state = self._reduce(previous, message)
        if self._state != previous:
            for listener in list(self._listeners.values()):
                self._deliver(listener, self._state)

    def _reduce(self, state: TranslateState, message: _Message) -> TranslateState:
        if isinstance(message, ChangeText):
            if not state.can_edit_text:
                return state
            return replace(
                state, from_text=message.text, phase=input_phase(message.text)
            )
        if isinstance(message, OpenFromLanguageDropDown):
            return replace(state, choosing=LanguageSide.FROM)
        if isinstance(message, OpenToLanguageDropDown):
            return replace(state, choosing=LanguageSide.TO)
        if isinstance(message, StopChoosingLanguage):
            return replace(state, choosing=None)
        if isinstance(message, ChooseFromLanguage):
            if message.language == state.to_language:
                return state
            if message.language == state.from_language:
                return replace(state, choosing=None)
            return self._supersede(
                replace(state, from_language=message.language, choosing=None),
                reason="language",
            )
        if isinstance(message, ChooseToLanguage):
            if message.language == state.from_language:
                return state
            if message.language == state.to_language:
                return replace(state, choosing=None)
            return self._supersede(
                replace(state, to_language=message.language, choosing=None),
                reason="language",
            )
        if isinstance(message, SwapLanguages):
            return self._swap(state)
        if isinstance(message, Translate):
            return self._begin_translation(state)
        if isinstance(message, EditTranslation):
            if not state.is_showing_result:
                return state
            self._generation += 1
            return state.with_input(state.from_text)
        if isinstance(message, CloseTranslation):
            self._generation += 1
            return replace(state.with_input(""), error=None)
        if isinstance(message, SelectHistoryItem):
            return self._select(state, message.item)
        if isinstance(message, OnErrorSeen):
            if state.error is None:
                return state
            return replace(state, error=None)
        if isinstance(message, _TranslationFinished):
            return self._finish_translation(state, message)
        if isinstance(message, _HistoryChanged):
            return replace(
                state, history=_project_history(message.items, self.history_limit)
            )
        raise TypeError(f"Unsupported event: {message!r}")

    def _swap(self, state: TranslateState) -> TranslateState:
        swapped = replace(
            state,
            from_language=state.to_language,
            to_language=state.from_language,
        )
        if state.is_showing_result:
            return replace(swapped, from_text=state.to_text, to_text=state.from_text)
        return self._supersede(swapped, reason="swap")

    def _supersede(self, state: TranslateState, *, reason: str) -> TranslateState:
        # A pending response targets the old language pair.
        if not state.is_translating:
            return state
        self._generation += 1
        telemetry.log_event("orchestrator.translation_superseded", reason=reason)
        return replace(state, phase=input_phase(state.from_text))

    def _select(self, state: TranslateState, item: UiHistoryItem) -> TranslateState:
        self._generation += 1
        return replace(
            state,
            from_language=item.from_language,
            to_language=item.to_language,
            from_text=item.from_text,
            to_text=item.to_text,
            phase=Phase.SHOWING_RESULT,
            choosing=None,
        )

    def _begin_translation(self, state: TranslateState) -> TranslateState:
        if state.is_translating:
            telemetry.log_event("orchestrator.translate_ignored", reason="in_flight")
            return state
        if not state.from_text.strip():
            telemetry.log_event("orchestrator.translate_ignored", reason="blank")
            return state
        self._generation += 1
        request = _TranslationRequest(
            generation=self._generation,
            from_language=state.from_language,
            text=state.from_text,
            to_language=state.to_language,
        )
        task = asyncio.create_task(self._run_translation(request))
        self._translations.add(task)
        task.add_done_callback(self._translations.discard)
        telemetry.log_event(
            "orchestrator.translate_started",
            generation=request.generation,
            from_lang=request.from_language.code,
            to_lang=request.to_language.code,
            **telemetry.text_meta(request.text),
        )
        return replace(state, to_text="", phase=Phase.TRANSLATING)

    async def _run_translation(self, request: _TranslationRequest) -> None:
        try:
            translated = await self.client.translate(
                request.from_language, request.text, request.to_language
            )
        except TranslateException as exc:
            telemetry.log_error(
                "orchestrator.translate_failed", exc, generation=request.generation
            )
            self._post(_TranslationFinished(request, None, exc.error))
            return
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            telemetry.log_error(
                "orchestrator.translate_crashed", exc, generation=request.generation
            )
            self._post(
                _TranslationFinished(request, None, TranslateError.UNKNOWN_ERROR)
            )
            return
        self._post(_TranslationFinished(request, translated, None))

    def _finish_translation(
        self, state: TranslateState, message: _TranslationFinished
    ) -> TranslateState:
        request = message.request
        if request.generation != self._generation or not state.is_translating:
            telemetry.log_event(
                "orchestrator.stale_response_dropped",
                generation=request.generation,
                current=self._generation,
            )
            return state
        if message.translated is None or not message.translated.strip():
            return replace(
                state,
                phase=input_phase(state.from_text),
                error=message.error or TranslateError.UNKNOWN_ERROR,
            )
        self._schedule_insert(
            HistoryItem.pending(
                request.from_language,
                request.text,
                request.to_language,
                message.translated,
            )
        )
        return replace(state, to_text=message.translated, phase=Phase.SHOWING_RESULT)

    def _schedule_insert(self, item: HistoryItem) -> None:
        task = asyncio.create_task(self._store(item))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _store(self, item: HistoryItem) -> None:
        try:
            await self.history.insert(item)
        except StorageError as exc:
            telemetry.log_error("orchestrator.history_insert_failed", exc)

    def _on_history(self, items: HistorySnapshot) -> None:
        self._post(_HistoryChanged(items))

    def _deliver(self, listener: StateListener, state: TranslateState) -> None:
        try:
            listener(state)
        except Exception as exc:
            telemetry.log_error("orchestrator.listener_failed", exc)


def _project_history(
    items: HistorySnapshot, limit: int | None
) -> tuple[UiHistoryItem, ...]:
    projected: list[UiHistoryItem] = []
    for item in items:
        if limit is not None and len(projected) >= limit:
            break
        ui_item = to_ui_history_item(item)
        if ui_item is None:
            telemetry.log_warning(
                "orchestrator.history_item_skipped",
                id=item.id,
                from_lang=item.from_language_code,
                to_lang=item.to_language_code,
            )
            continue
        projected.append(ui_item)
    return tuple(projected)
