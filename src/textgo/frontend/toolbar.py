"""Interactive toolbar: every matching rule for one selection."""

from __future__ import annotations

import dataclasses
from typing import Any, Awaitable, Callable, Optional, Sequence

from rich.text import Text
from textual.app import App, ComposeResult
from textual.containers import Container, Horizontal, VerticalScroll
from textual.widgets import Button, Footer, Static

from textgo.core.models import DisplayMode, Rule

from .constants import ACCENT

Execute = Callable[[Rule, str], Awaitable[Optional[str]]]


def rule_caption(rule: Rule) -> str:
    """Button text for a rule according to its display mode."""

    action = rule.action_label or rule.action.id or "open"
    case = rule.case_label or rule.case.id
    if rule.display_mode is DisplayMode.ICON:
        return action
    if rule.display_mode is DisplayMode.LABEL:
        return f"{case}: {action}" if case else action
    return f"[{case or '*'}] {action}"


class ToolbarApp(App[Optional[Rule]]):
    """Lets the user pick one of the matched rules.

    Rules flagged for preview show their result first; Apply commits it.
    The app exits with the rule to commit and the caller executes it, so
    popups never open on top of the toolbar.
    """

    CSS = f"""
    #selection {{ color: $text-muted; height: auto; max-height: 6; }}
    #rules {{ height: auto; }}
    #rules Button {{ margin: 0 1 0 0; }}
    #preview {{ border: round {ACCENT}; height: auto; max-height: 12; padding: 0 1; }}
    #preview-actions {{ height: auto; }}
    .hidden {{ display: none; }}
    """

    BINDINGS = [
        ("escape", "close", "Close"),
        ("q", "close", "Close"),
    ]

    def __init__(self, shortcut: str, rules: Sequence[Rule], selection: str, execute: Execute, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._shortcut = shortcut
        self._rules = list(rules)
        self._selection = selection
        self._execute = execute
        self._pending: Optional[Rule] = None

    def compose(self) -> ComposeResult:
        with Container(id="header"):
            yield Static(Text.assemble(("TEXTGO", ACCENT), (f" > {self._shortcut}", "bold")))
            yield Static(self._selection[:400], id="selection", markup=False)
        with Horizontal(id="rules"):
            for index, rule in enumerate(self._rules):
                yield Button(rule_caption(rule), id=f"rule-{index}")
        with VerticalScroll(id="preview", classes="hidden"):
            yield Static("", id="preview-text", markup=False)
        yield Horizontal(
            Button("Apply", id="preview-apply", variant="success"),
            Button("Cancel", id="preview-cancel"),
            id="preview-actions",
            classes="hidden",
        )
        yield Footer()

    async def on_button_pressed(self, event: Button.Pressed) -> None:
        button_id = event.button.id or ""
        if button_id == "preview-apply" and self._pending is not None:
            rule = dataclasses.replace(self._pending, preview=False)
            self.exit(rule)
        elif button_id == "preview-cancel":
            self._show_preview(None, "")
        elif button_id.startswith("rule-"):
            rule = self._rules[int(button_id.split("-", 1)[1])]
            if not rule.preview:
                self.exit(rule)
                return
            result = await self._execute(rule, self._selection)
            if result is None:
                self.exit(dataclasses.replace(rule, preview=False))
            else:
                self._show_preview(rule, result)

    def _show_preview(self, rule: Optional[Rule], text: str) -> None:
        self._pending = rule
        self.query_one("#preview-text", Static).update(text)
        for widget_id in ("#preview", "#preview-actions"):
            self.query_one(widget_id).set_class(rule is None, "hidden")

    def action_close(self) -> None:
        self.exit(None)
