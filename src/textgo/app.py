"""Application entry point for textgo."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from dataclasses import dataclass
from logging.handlers import RotatingFileHandler
from typing import Optional, Sequence

from art import tprint
from rich.console import Console
from rich.table import Table

from textgo import settings
from textgo.adapters.classifier import TrigramClassifier
from textgo.adapters.desktop import DesktopAdapter
from textgo.adapters.hotkeys import LocalHotkeyBackend, TriggerEventSource
from textgo.adapters.language_detection import LinguaNaturalDetector, MagikaProgrammingDetector
from textgo.adapters.llm import PROVIDER_API_KEYS, ChatSession, create_llm_client
from textgo.adapters.script_runtime import SubprocessScriptRuntime
from textgo.adapters.sqlite_storage import SQLiteStorage
from textgo.core.executor import ExecutorChain
from textgo.core.history import HistoryRing
from textgo.core.matcher import Matcher
from textgo.core.models import Entry, ModelDef, Rule
from textgo.core.ports import HistoryPort, LanguageDetector
from textgo.core.recognizers import RecognizerChain, guess_programming_language
from textgo.core.registry import ShortcutRegistry
from textgo.core.rules_engine import UserCatalog, build_catalog, build_shortcuts, find_dangling_references
from textgo.core.shortcuts import normalize_shortcut
from textgo.core.validators import ensure_valid

NAME = "TEXTGO"
FONT = "small"

LOGGER = logging.getLogger(__name__)


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


class _RedactingFormatter(logging.Formatter):
    """Masks secret values (API keys) in every formatted record."""

    def __init__(self, secrets: list[str], fmt: str, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self._secrets = [secret for secret in secrets if secret]

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, "***")
        return message


def _collect_redaction_values(config: dict) -> list[str]:
    # Provider keys are always masked; extra variables can be listed in config.
    names = set(PROVIDER_API_KEYS.values())
    names.update(config.get("redact", {}).get("patterns", []) if config else [])
    names.update(entry.get("api_key_env", "") for entry in settings.CONFIG.get("providers", []))
    values = {os.getenv(name) for name in names if name}
    return sorted((value for value in values if value), key=len, reverse=True)


def _configure_logging(verbose: bool = False) -> None:
    config = settings.LOGGING or {}
    level_name = "DEBUG" if verbose else str(config.get("level", "WARNING")).upper()
    level = getattr(logging, level_name, logging.WARNING)

    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    formatter = _RedactingFormatter(_collect_redaction_values(config), fmt=fmt, datefmt=datefmt)

    handlers: list[logging.Handler] = []

    if config.get("console", True) or verbose:
        # stderr keeps stdout free for results written in place of the selection.
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        path = file_cfg.get("path", "logs/textgo.log")
        if not os.path.isabs(path):
            path = os.path.join(settings.PROJECT_ROOT, path)
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        file_handler = RotatingFileHandler(
            path,
            maxBytes=int(file_cfg.get("max_bytes", 5 * 1024 * 1024)),
            backupCount=int(file_cfg.get("backup_count", 5)),
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if handlers:
        logging.basicConfig(level=level, handlers=handlers, force=True)


@dataclass
class Services:
    """Everything wired together for one CLI invocation."""

    catalog: UserCatalog
    problems: list[str]
    storage: SQLiteStorage
    history: HistoryPort
    classifier: TrigramClassifier
    programming: LanguageDetector
    desktop: DesktopAdapter
    hotkeys: LocalHotkeyBackend
    matcher: Matcher
    executor: ExecutorChain
    registry: ShortcutRegistry


def _build_services(console: Console, tui: bool = False) -> Services:
    catalog, problems = build_catalog(settings.CONFIG)

    os.makedirs(settings.DATA_DIR, exist_ok=True)
    storage = SQLiteStorage(settings.DB_PATH, settings.HISTORY.max_size)
    storage.init_db()
    # Without persistence the history only lives as long as this process.
    history: HistoryPort = storage if settings.HISTORY.persist else HistoryRing(settings.HISTORY.max_size)

    classifier = TrigramClassifier(settings.MODELS_DIR)
    programming = MagikaProgrammingDetector()
    chain = RecognizerChain.build(catalog, LinguaNaturalDetector(), programming, classifier)
    matcher = Matcher(chain)
    desktop = DesktopAdapter(console=console, config_path=settings.CONFIG_PATH)
    executor = ExecutorChain.build(catalog, desktop, SubprocessScriptRuntime(settings.RUNTIMES), history)
    hotkeys = LocalHotkeyBackend()
    registry = ShortcutRegistry(hotkeys, matcher, executor, desktop, build_shortcuts(settings.SHORTCUTS_CONFIG))

    services = Services(
        catalog, problems, storage, history, classifier, programming, desktop, hotkeys, matcher, executor, registry
    )
    if tui:
        _attach_surfaces(services)
    return services


async def _result_language(detector: LanguageDetector, entry: Entry) -> Optional[str]:
    """Guess which highlightable language a non-prompt result is written in."""

    from textgo.frontend.highlight import LEXER_ALIASES

    if entry.action_type == "prompt" or not entry.result:
        return None
    return await guess_programming_language(detector, entry.result, list(LEXER_ALIASES))


def _attach_surfaces(services: Services) -> None:
    """Route popups and toolbars to the Textual apps."""

    from textgo.frontend.popup import PopupApp
    from textgo.frontend.toolbar import ToolbarApp

    async def show_popup(entry: Entry) -> None:
        start_chat = None
        if entry.action_type == "prompt":
            try:
                client = create_llm_client(entry.provider or "", settings.HOSTS, settings.PROVIDERS)
            except ValueError as exc:
                LOGGER.error("Cannot start chat: %s", exc)
            else:
                def start_chat(target: Entry, on_chunk) -> ChatSession:
                    return ChatSession(client, target, services.history, services.storage, on_chunk)

        language = await _result_language(services.programming, entry)
        await PopupApp(
            entry, start_chat=start_chat, copy=services.desktop.set_clipboard, language=language
        ).run_async()

    async def show_toolbar(shortcut: str, rules: Sequence[Rule], selection: str) -> None:
        rule = await ToolbarApp(shortcut, rules, selection, execute=services.registry.execute).run_async()
        if rule is not None:
            await services.registry.execute(rule, selection)

    services.desktop.set_surfaces(popup=show_popup, toolbar=show_toolbar)


def _read_stdin() -> str:
    return "" if sys.stdin.isatty() else sys.stdin.read()


async def _run(console: Console, events_path: Optional[str], tui: bool) -> None:
    services = _build_services(console, tui=tui)
    registry = services.registry
    await registry.start()
    LOGGER.info("Listening for trigger events")

    stream = open(events_path, "r", encoding="utf-8") if events_path else None
    try:
        source = TriggerEventSource(services.hotkeys, stream)
        async for event in source.events():
            await registry.dispatch(event.shortcut, event.selection, app_id=event.app_id, url=event.url)
    finally:
        if stream is not None:
            stream.close()
        await registry.shutdown()


async def _dispatch(console: Console, shortcut: str, text: Optional[str], tui: bool) -> int:
    services = _build_services(console, tui=tui)
    await services.registry.start()
    try:
        matched = await services.registry.dispatch(shortcut, text if text is not None else _read_stdin())
    finally:
        await services.registry.shutdown()
    return 0 if matched else 1


async def _match(console: Console, text: str, shortcut: Optional[str], collect_all: bool) -> int:
    services = _build_services(console)
    snapshot = services.registry.snapshot()
    if shortcut:
        try:
            key = normalize_shortcut(shortcut)
        except ValueError as exc:
            console.print(f"[red]{exc}[/red]")
            return 2
        rules = list(snapshot[key].rules) if key in snapshot else []
    else:
        rules = [rule for item in snapshot.values() for rule in item.rules]

    if collect_all:
        matched = await services.matcher.match_all(text, rules)
    else:
        first = await services.matcher.match_one(text, rules)
        matched = [first] if first else []

    if not matched:
        console.print("No matching rule.")
        return 1
    table = Table("shortcut", "case", "action", "label")
    for rule in matched:
        table.add_row(rule.shortcut, rule.case.key or "(skip)", rule.action.key or "(main window)", rule.case_label or "")
    console.print(table)
    return 0


def _check(console: Console) -> int:
    services = _build_services(console)
    problems = services.problems + find_dangling_references(services.registry.snapshot(), services.catalog)
    if not problems:
        console.print(f"[green]{settings.CONFIG_PATH}: OK[/green]")
        return 0
    for problem in problems:
        console.print(f"[red]-[/red] {problem}", highlight=False)
    return 1


def _history(console: Console, limit: int) -> int:
    if not settings.HISTORY.persist:
        console.print("History is kept in memory only (history.persist is false).")
        return 0
    os.makedirs(settings.DATA_DIR, exist_ok=True)
    storage = SQLiteStorage(settings.DB_PATH, settings.HISTORY.max_size)
    storage.init_db()
    table = Table("datetime", "shortcut", "case", "action", "result")
    for entry in storage.list_entries(limit):
        result = entry.response or entry.result or ""
        table.add_row(entry.datetime, entry.shortcut, entry.case_label or "", entry.action_label or "", result[:60])
    console.print(table)
    return 0


def _set_model_trained(model_id: str, trained: bool) -> None:
    config = dict(settings.CONFIG)
    for model in config.get("models", []):
        if model.get("id") == model_id:
            model["trained"] = trained
    settings.save_json_config(config)


async def _train(console: Console, model_id: str) -> int:
    classifier = TrigramClassifier(settings.MODELS_DIR)
    raw = next((item for item in settings.CONFIG.get("models", []) if item.get("id") == model_id), None)
    if raw is None:
        console.print(f"[red]Unknown model: {model_id}[/red]")
        return 1
    try:
        model = ModelDef(
            id=model_id,
            sample=raw.get("sample", ""),
            threshold=float(raw.get("threshold", 0.5)),
        )
        ensure_valid(model)
        await classifier.train(model_id, model.sample)
    except ValueError as exc:
        console.print(f"[red]{exc}[/red]")
        return 1
    _set_model_trained(model_id, True)
    info = await classifier.get_model_info(model_id)
    console.print(f"Trained {model_id} ({info.get('sizeKB', 0)} KB)")
    return 0


async def _forget(console: Console, model_id: str) -> int:
    await TrigramClassifier(settings.MODELS_DIR).clear_saved_model(model_id)
    _set_model_trained(model_id, False)
    console.print(f"Removed {model_id}")
    return 0


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="textgo")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command")

    run_parser = subparsers.add_parser("run", help="Dispatch trigger events read as JSON lines")
    run_parser.add_argument("--events", help="Read events from this file instead of stdin")
    run_parser.add_argument("--tui", action="store_true", help="Show toolbar and popup windows")

    dispatch_parser = subparsers.add_parser("dispatch", help="Dispatch one trigger")
    dispatch_parser.add_argument("shortcut")
    dispatch_parser.add_argument("text", nargs="?", help="Selection (stdin when omitted)")
    dispatch_parser.add_argument("--tui", action="store_true", help="Show toolbar and popup windows")

    match_parser = subparsers.add_parser("match", help="Show matching rules without executing")
    match_parser.add_argument("text")
    match_parser.add_argument("--shortcut")
    match_parser.add_argument("--all", action="store_true", dest="collect_all")

    subparsers.add_parser("check", help="Validate config.json")

    history_parser = subparsers.add_parser("history", help="Show recent history")
    history_parser.add_argument("--limit", type=int, default=20)

    train_parser = subparsers.add_parser("train", help="Train a custom model from its sample")
    train_parser.add_argument("model_id")
    forget_parser = subparsers.add_parser("forget", help="Remove a trained custom model")
    forget_parser.add_argument("model_id")

    args = parser.parse_args(argv)
    _configure_logging(args.verbose)
    console = Console()

    if args.command == "dispatch":
        sys.exit(asyncio.run(_dispatch(console, args.shortcut, args.text, args.tui)))
    if args.command == "match":
        sys.exit(asyncio.run(_match(console, args.text, args.shortcut, args.collect_all)))
    if args.command == "check":
        _print_banner()
        sys.exit(_check(console))
    if args.command == "history":
        sys.exit(_history(console, args.limit))
    if args.command == "train":
        sys.exit(asyncio.run(_train(console, args.model_id)))
    if args.command == "forget":
        sys.exit(asyncio.run(_forget(console, args.model_id)))

    _print_banner()
    try:
        asyncio.run(_run(console, getattr(args, "events", None), getattr(args, "tui", False)))
    except KeyboardInterrupt:
        LOGGER.info("Stopped")


if __name__ == "__main__":
    main()
