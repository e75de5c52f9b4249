from __future__ import annotations

import asyncio
import io
import json
import webbrowser

from rich.console import Console

from textgo.adapters.desktop import DesktopAdapter
from textgo.core.models import SKIP, Action, ActionKind, Entry, Rule


def _console() -> tuple[Console, io.StringIO]:
    buffer = io.StringIO()
    return Console(file=buffer, width=200, color_system=None), buffer


def test_replace_text_writes_result_verbatim() -> None:
    console, buffer = _console()
    asyncio.run(DesktopAdapter(console).replace_text("[bold]x[/bold]", clipboard=False))
    assert buffer.getvalue() == "[bold]x[/bold]\n"


def test_popup_uses_launcher_when_attached() -> None:
    console, buffer = _console()
    shown: list[Entry] = []

    async def launcher(entry: Entry) -> None:
        shown.append(entry)

    desktop = DesktopAdapter(console)
    desktop.set_surfaces(popup=launcher)
    entry = Entry(id="1", shortcut="Alt+A", datetime="", clipboard="", selection="x", result="done")
    asyncio.run(desktop.show_popup(entry))

    assert shown == [entry]
    assert buffer.getvalue() == ""


def test_toolbar_fallback_prints_rules_as_json() -> None:
    console, buffer = _console()
    rule = Rule(id="r1", shortcut="Alt+T", case=SKIP, action=Action(ActionKind.BUILTIN, "trim"))

    asyncio.run(DesktopAdapter(console).show_toolbar("Alt+T", [rule], " hi "))

    payload = json.loads(buffer.getvalue())
    assert payload["selection"] == " hi "
    assert payload["rules"][0]["id"] == "r1"
    assert payload["rules"][0]["action"] == "trim"


class _Controller:
    def __init__(self, opened: list[tuple[str, str]], name: str) -> None:
        self._opened = opened
        self._name = name

    def open(self, url: str) -> bool:
        self._opened.append((self._name, url))
        return True


def test_unknown_browser_falls_back_to_default(monkeypatch) -> None:
    opened: list[tuple[str, str]] = []

    def fake_get(using=None):
        if using is not None:
            raise webbrowser.Error("could not locate runnable browser")
        return _Controller(opened, "default")

    monkeypatch.setattr(webbrowser, "get", fake_get)
    console, _ = _console()

    asyncio.run(DesktopAdapter(console).open_url("https://example.com/?q=x", browser="Google Chrome"))

    assert opened == [("default", "https://example.com/?q=x")]


def test_known_browser_is_used(monkeypatch) -> None:
    opened: list[tuple[str, str]] = []
    monkeypatch.setattr(webbrowser, "get", lambda using=None: _Controller(opened, using or "default"))
    console, _ = _console()

    asyncio.run(DesktopAdapter(console).open_url("https://example.com", browser="firefox"))

    assert opened == [("firefox", "https://example.com")]
