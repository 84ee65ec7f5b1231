from __future__ import annotations

import argparse
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import replace
import json
from pathlib import Path
import sys
from typing import Sequence

from translate_app import telemetry
from translate_app.application.events import ChangeText, Translate
from translate_app.application.state import TranslateState
from translate_app.config import AppConfig, LanguageConfig, load_config
from translate_app.history.store import SqliteHistoryStore
from translate_app.notifications import messages
from translate_app.services.container import AppServices
from translate_core.domain.errors import StorageError
from translate_core.domain.languages import all_languages, find_language
from translate_core.domain.models import HistoryItem

DEFAULT_SETTLE_TIMEOUT_SECONDS = 30.0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="translate-history",
        description="Translate text and browse the local translation history.",
    )
    parser.add_argument(
        "--db",
        type=Path,
        default=None,
        help="SQLite history database path.",
    )
    parser.add_argument("--service-url", default=None, help="Translation endpoint.")
    commands = parser.add_subparsers(dest="command", required=True)

    translate = commands.add_parser("translate", help="Translate text once.")
    translate.add_argument("text", help="Text to translate.")
    translate.add_argument("--source", default=None)
    translate.add_argument("--target", default=None)
    translate.add_argument(
        "--format",
        choices=("lines", "json"),
        default="lines",
        help="Output format.",
    )

    history = commands.add_parser("history", help="Show stored translations.")
    history.add_argument("--limit", type=int, default=None)
    history.add_argument(
        "--format",
        choices=("lines", "json"),
        default="lines",
        help="Output format.",
    )

    commands.add_parser("languages", help="List supported languages.")
    return parser


def _resolve_config(args: argparse.Namespace) -> AppConfig:
    config = load_config()
    if args.db is not None:
        config = replace(config, storage=replace(config.storage, db_path=args.db))
    if args.service_url:
        config = replace(
            config, service=replace(config.service, url=args.service_url)
        )
    return config


def _item_payload(item: HistoryItem) -> dict[str, object]:
    return {
        "id": item.id,
        "from": item.from_language_code,
        "from_text": item.from_text,
        "to": item.to_language_code,
        "to_text": item.to_text,
    }


def _run_translate(args: argparse.Namespace, config: AppConfig) -> int:
    source = args.source or config.languages.source
    target = args.target or config.languages.target
    for code in (source, target):
        if find_language(code) is None:
            print(f"Unknown language code: {code}", file=sys.stderr)
            return 2
    if source == target:
        print("Source and target languages must differ.", file=sys.stderr)
        return 2
    config = replace(config, languages=LanguageConfig(source=source, target=target))
    services = AppServices.create(config)
    services.start()
    try:
        services.send(ChangeText(args.text))
        services.send(Translate())
        try:
            state = services.settle(timeout=DEFAULT_SETTLE_TIMEOUT_SECONDS)
        except FutureTimeoutError:
            telemetry.log_warning(
                "cli.translate_timeout", timeout=DEFAULT_SETTLE_TIMEOUT_SECONDS
            )
            print("The translation did not finish in time.", file=sys.stderr)
            return 1
    finally:
        services.stop()
    return _print_translation(state, args.format)


def _print_translation(state: TranslateState, output_format: str) -> int:
    if state.error is not None:
        print(messages.translate_error(state.error).message, file=sys.stderr)
        return 1
    if not state.is_showing_result:
        print("Nothing to translate.", file=sys.stderr)
        return 1
    if output_format == "json":
        payload = {
            "from": state.from_language.code,
            "from_text": state.from_text,
            "to": state.to_language.code,
            "to_text": state.to_text,
        }
        print(json.dumps(payload, ensure_ascii=False, indent=2))
    else:
        print(state.to_text)
    return 0


def _run_history(args: argparse.Namespace, config: AppConfig) -> int:
    limit = args.limit if args.limit is not None else config.storage.history_limit
    store = SqliteHistoryStore(db_path=config.storage.db_path)
    try:
        items = store.snapshot()
    except StorageError as exc:
        print(str(exc), file=sys.stderr)
        return 1
    finally:
        store.close()
    if limit is not None:
        items = items[:limit]
    if args.format == "json":
        payload = [_item_payload(item) for item in items]
        print(json.dumps(payload, ensure_ascii=False, indent=2))
        return 0
    for item in items:
        print(
            f"{item.id}. [{item.from_language_code} -> {item.to_language_code}] "
            f"{item.from_text} => {item.to_text}"
        )
    return 0


def _run_languages() -> int:
    for language in all_languages():
        print(f"{language.code}\t{language.name}")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    telemetry.setup(reset=False)
    telemetry.log_event("cli.start", command=args.command)
    if args.command == "languages":
        return _run_languages()
    config = _resolve_config(args)
    if args.command == "history":
        return _run_history(args, config)
    return _run_translate(args, config)


if __name__ == "__main__":
    raise SystemExit(main())
