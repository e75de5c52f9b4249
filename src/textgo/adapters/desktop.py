"""Desktop surface adapter.

Implements the core DesktopPort: clipboard access through pyperclip, URL
opening through webbrowser, file paths through the platform opener. The
toolbar and popup surfaces are injected by the app so this module does not
depend on the Textual frontend.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import sys
import webbrowser
from typing import Awaitable, Callable, Optional, Sequence

import pyperclip
from rich.console import Console

from textgo.core.models import Entry, Rule
from textgo.core.rules_engine import rule_to_dict

LOGGER = logging.getLogger(__name__)

PopupLauncher = Callable[[Entry], Awaitable[None]]
ToolbarLauncher = Callable[[str, Sequence[Rule], str], Awaitable[None]]


class DesktopAdapter:
    """Clipboard, text output, UI surfaces and OS openers."""

    def __init__(
        self,
        console: Optional[Console] = None,
        popup: Optional[PopupLauncher] = None,
        toolbar: Optional[ToolbarLauncher] = None,
        config_path: Optional[str] = None,
    ) -> None:
        self._console = console or Console()
        self._popup = popup
        self._toolbar = toolbar
        self._config_path = config_path

    def set_surfaces(self, popup: Optional[PopupLauncher] = None, toolbar: Optional[ToolbarLauncher] = None) -> None:
        if popup is not None:
            self._popup = popup
        if toolbar is not None:
            self._toolbar = toolbar

    async def get_clipboard(self) -> str:
        try:
            return await asyncio.to_thread(pyperclip.paste) or ""
        except pyperclip.PyperclipException as exc:
            LOGGER.warning("Clipboard is not available: %s", exc)
            return ""

    async def set_clipboard(self, text: str) -> None:
        await asyncio.to_thread(pyperclip.copy, text)

    async def replace_text(self, text: str, clipboard: bool) -> None:
        """Write the result in place of the selection (stdout for the CLI)."""

        self._console.print(text, markup=False, highlight=False, soft_wrap=True)
        if clipboard:
            await self.set_clipboard(text)

    async def show_popup(self, entry: Entry) -> None:
        if self._popup is not None:
            await self._popup(entry)
            return
        self._console.print(entry.result or "", markup=False, highlight=False, soft_wrap=True)
        if entry.copy_on_popup and entry.result:
            await self.set_clipboard(entry.result)

    async def show_toolbar(self, shortcut: str, rules: Sequence[Rule], selection: str) -> None:
        if self._toolbar is not None:
            await self._toolbar(shortcut, rules, selection)
            return
        payload = {"rules": [rule_to_dict(rule) for rule in rules], "selection": selection}
        self._console.print_json(json.dumps(payload, ensure_ascii=False))

    async def show_main_window(self) -> None:
        if self._config_path:
            await self.open_path(self._config_path)
        else:
            LOGGER.info("No main window configured")

    async def open_url(self, url: str, browser: Optional[str] = None) -> None:
        def _open() -> bool:
            controller = None
            if browser:
                try:
                    controller = webbrowser.get(browser)
                except webbrowser.Error:
                    LOGGER.warning("Browser %r is not available, using the default browser", browser)
            if controller is None:
                controller = webbrowser.get()
            return controller.open(url)

        if not await asyncio.to_thread(_open):
            raise RuntimeError(f"Failed to open {url}")
        LOGGER.debug("Opened %s", url)

    async def open_path(self, path: str) -> None:
        path = os.path.expanduser(path)
        if sys.platform.startswith("win"):
            await asyncio.to_thread(os.startfile, path)  # type: ignore[attr-defined]
            return
        opener = "open" if sys.platform == "darwin" else "xdg-open"
        process = await asyncio.create_subprocess_exec(
            opener,
            path,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.PIPE,
        )
        _, stderr = await process.communicate()
        if process.returncode != 0:
            raise RuntimeError(f"{opener} {path} failed: {stderr.decode(errors='replace').strip()}")
        LOGGER.debug("Opened %s", path)
