"""Result popup: shows an entry's result or streams its AI response."""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Optional

from rich.text import Text
from textual.app import App, ComposeResult
from textual.containers import Container, VerticalScroll
from textual.widgets import Footer, Static

from textgo.adapters.llm import ChatSession
from textgo.core.models import Entry

from .constants import ACCENT
from .highlight import code_renderable

StartChat = Callable[[Entry, Callable[[str], None]], ChatSession]
Copy = Callable[[str], Awaitable[None]]


class PopupApp(App[None]):
    """Popup for one history entry.

    Prompt entries start a streaming chat on mount. Other results are
    highlighted when ``language`` names the code they contain. Escape aborts
    a running stream; the entry keeps whatever was received.
    """

    CSS = f"""
    #meta {{ color: $text-muted; height: auto; }}
    #body {{ border: round {ACCENT}; padding: 0 1; }}
    #status {{ height: 1; color: $text-muted; }}
    """

    BINDINGS = [
        ("escape", "abort_or_close", "Stop/Close"),
        ("c", "copy", "Copy"),
        ("r", "regenerate", "Regenerate"),
        ("q", "close", "Close"),
    ]

    def __init__(
        self,
        entry: Entry,
        start_chat: Optional[StartChat] = None,
        copy: Optional[Copy] = None,
        language: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self._entry = entry
        self._start_chat = start_chat
        self._copy = copy
        self._language = language
        self._session: Optional[ChatSession] = None
        self._text = ""

    @property
    def streams(self) -> bool:
        return self._entry.action_type == "prompt" and self._start_chat is not None

    def compose(self) -> ComposeResult:
        with Container(id="header"):
            yield Static(Text.assemble(("TEXTGO", ACCENT), (f" > {self._entry.action_label or ''}", "bold")))
            yield Static(self._meta_text(), id="meta", markup=False)
        with VerticalScroll(id="body"):
            yield Static("", id="content", markup=False)
        yield Static("", id="status")
        yield Footer()

    def on_mount(self) -> None:
        if self.streams:
            self._start(use_cache=True)
        else:
            self._set_text(self._entry.result or "")
            self.run_worker(self._auto_copy(), exclusive=True)

    def _meta_text(self) -> str:
        parts = [self._entry.shortcut, self._entry.datetime]
        if self._entry.provider:
            parts.append(f"{self._entry.provider}/{self._entry.model or ''}")
        return "  ".join(part for part in parts if part)

    def _start(self, use_cache: bool) -> None:
        assert self._start_chat is not None
        self._set_text("")
        self._set_status("streaming... (esc to stop)")
        self._session = self._start_chat(self._entry, self._on_chunk)
        self.run_worker(self._stream(self._session, use_cache), exclusive=True)

    async def _stream(self, session: ChatSession, use_cache: bool) -> None:
        await session.run(use_cache=use_cache)
        if session.error:
            self._set_status(session.error)
        elif session.aborted:
            self._set_status("stopped")
        else:
            self._set_status("done")
            await self._auto_copy()

    async def _auto_copy(self) -> None:
        if self._entry.copy_on_popup:
            await self.action_copy()

    def _on_chunk(self, chunk: str) -> None:
        self._set_text(self._text + chunk)

    def _set_text(self, text: str) -> None:
        self._text = text
        renderable = code_renderable(text, self._language) if self._language else text
        self.query_one("#content", Static).update(renderable)

    def _set_status(self, status: str) -> None:
        self.query_one("#status", Static).update(status)

    def _running(self) -> bool:
        return self._session is not None and not self._session.aborted and any(
            worker.is_running for worker in self.workers
        )

    async def action_copy(self) -> None:
        if self._copy is not None and self._text:
            await self._copy(self._text)
            self._set_status("copied")

    def action_regenerate(self) -> None:
        if not self.streams or self._running():
            return
        self._start(use_cache=False)

    def action_abort_or_close(self) -> None:
        if self._running():
            assert self._session is not None
            self._session.abort()
            return
        self.exit()

    def action_close(self) -> None:
        if self._session is not None:
            self._session.abort()
        self.exit()
