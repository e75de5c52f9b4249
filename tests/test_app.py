from __future__ import annotations

import asyncio
import io
import logging

from fakes import FakeDetector
from rich.console import Console

from textgo import settings
from textgo.adapters.sqlite_storage import SQLiteStorage
from textgo.app import _build_services, _RedactingFormatter, _result_language, main
from textgo.core.config import HistoryConfig
from textgo.core.history import HistoryRing
from textgo.core.models import Entry


def _entry(action_type: str, result: str) -> Entry:
    return Entry(
        id="1",
        shortcut="Alt+A",
        datetime="",
        clipboard="",
        selection="x",
        action_type=action_type,
        result=result,
    )


def _isolate(monkeypatch, tmp_path, persist: bool) -> None:
    monkeypatch.setattr(settings, "CONFIG", {})
    monkeypatch.setattr(settings, "SHORTCUTS_CONFIG", {})
    monkeypatch.setattr(settings, "HISTORY", HistoryConfig(max_size=5, persist=persist))
    monkeypatch.setattr(settings, "DATA_DIR", str(tmp_path))
    monkeypatch.setattr(settings, "DB_PATH", str(tmp_path / "textgo.db"))
    monkeypatch.setattr(settings, "MODELS_DIR", str(tmp_path / "models"))


def test_redacting_formatter_masks_secrets() -> None:
    formatter = _RedactingFormatter(["sk-secret", ""], fmt="%(message)s")
    record = logging.LogRecord("textgo", logging.INFO, __file__, 1, "key=%s", ("sk-secret",), None)
    assert formatter.format(record) == "key=***"


def test_unknown_command_exits() -> None:
    try:
        main(["no-such-command"])
    except SystemExit as exc:
        assert exc.code == 2
    else:
        raise AssertionError("argparse should reject the command")


def test_history_is_kept_in_memory_when_not_persisted(monkeypatch, tmp_path) -> None:
    _isolate(monkeypatch, tmp_path, persist=False)
    services = _build_services(Console(file=io.StringIO()))

    assert isinstance(services.history, HistoryRing)
    assert services.history.max_size == 5


def test_history_is_persisted_by_default(monkeypatch, tmp_path) -> None:
    _isolate(monkeypatch, tmp_path, persist=True)
    services = _build_services(Console(file=io.StringIO()))

    assert isinstance(services.history, SQLiteStorage)
    assert services.history is services.storage


def test_result_language_guesses_code_results() -> None:
    detector = FakeDetector([("go", 0.9), ("py", 0.05)])
    assert asyncio.run(_result_language(detector, _entry("script", "package main"))) == "go"


def test_result_language_skips_prompts_and_empty_results() -> None:
    detector = FakeDetector([("go", 0.9)])
    assert asyncio.run(_result_language(detector, _entry("prompt", "package main"))) is None
    assert asyncio.run(_result_language(detector, _entry("builtin", ""))) is None
    assert detector.calls == 0


def test_result_language_ignores_low_confidence() -> None:
    detector = FakeDetector([("go", 0.05)])
    assert asyncio.run(_result_language(detector, _entry("builtin", "text"))) is None
