"""Ports (interfaces) used by the core.

Ports define the minimal contracts for hotkeys, classifiers, runtimes,
desktop surfaces and history so that the core can be reused with different
backends and tested with fakes.
"""

from __future__ import annotations

from typing import Any, Optional, Protocol, Sequence

from textgo.core.models import Entry, ExecutionResult, Rule

# Ranked (code, confidence) pairs, highest confidence first.
Ranking = list[tuple[str, float]]


class HotkeyBackend(Protocol):
    """OS-level keyboard shortcut binding."""

    async def is_registered(self, shortcut: str) -> bool:
        ...

    async def register(self, shortcut: str) -> None:
        ...

    async def unregister(self, shortcut: str) -> None:
        ...


class LanguageDetector(Protocol):
    """Ranks candidate languages for a text."""

    async def detect(self, text: str) -> Ranking:
        ...


class ClassifierPort(Protocol):
    """User-trainable text classifier."""

    async def train(self, model_id: str, sample: str) -> None:
        ...

    async def predict(self, model_id: str, text: str) -> Optional[float]:
        ...

    async def clear_saved_model(self, model_id: str) -> None:
        ...

    async def get_model_info(self, model_id: str) -> dict[str, Any]:
        ...


class ScriptRuntimePort(Protocol):
    """Runs user code that defines ``process(data)``."""

    async def run(self, lang: str, code: str, data: dict[str, str]) -> ExecutionResult:
        ...


class DesktopPort(Protocol):
    """Clipboard, text entry, UI surfaces and OS openers."""

    async def get_clipboard(self) -> str:
        ...

    async def set_clipboard(self, text: str) -> None:
        ...

    async def replace_text(self, text: str, clipboard: bool) -> None:
        ...

    async def show_popup(self, entry: Entry) -> None:
        ...

    async def show_toolbar(self, shortcut: str, rules: Sequence[Rule], selection: str) -> None:
        ...

    async def show_main_window(self) -> None:
        ...

    async def open_url(self, url: str, browser: Optional[str] = None) -> None:
        ...

    async def open_path(self, path: str) -> None:
        ...


class HistoryPort(Protocol):
    """Bounded history of dispatched actions, newest first."""

    def append(self, entry: Entry) -> None:
        ...

    def update_response(self, entry_id: str, response: str) -> None:
        ...

    def list_entries(self, limit: Optional[int] = None) -> list[Entry]:
        ...


class ResponseCachePort(Protocol):
    """Completed AI responses keyed by the rendered prompt."""

    def get_cached_response(self, prompt: str) -> Optional[str]:
        ...

    def set_cached_response(self, prompt: str, response: str) -> None:
        ...
