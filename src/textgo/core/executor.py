"""Executor chain (core domain).

Executors are tried in a fixed order and the one handling the rule's action
kind performs it. Every execution builds one Entry; it is appended to
history when the rule asks for it, whether or not the result is applied.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional, Protocol, Sequence

from textgo.core.actions import find_builtin_action
from textgo.core.models import ActionKind, Entry, ExecutionResult, OutputMode, PromptDef, Rule
from textgo.core.ports import DesktopPort, HistoryPort, ScriptRuntimePort
from textgo.core.rules_engine import UserCatalog, resolve_output_mode

LOGGER = logging.getLogger(__name__)


def render_prompt(prompt: PromptDef, entry: Entry) -> str:
    """Substitute template parameters into the prompt's user message."""

    result = prompt.prompt or ""
    result = result.replace("{{clipboard}}", entry.clipboard)
    result = result.replace("{{selection}}", entry.selection)
    result = result.replace("{{datetime}}", entry.datetime)
    return result


def render_search_url(template: str, selection: str) -> str:
    return template.replace("{{selection}}", selection.strip())


class Executor(Protocol):
    kind: ActionKind

    async def run(self, rule: Rule, entry: Entry) -> Optional[str]:
        ...


class _BaseExecutor:
    """Shared history and output routing for the concrete executors."""

    def __init__(self, desktop: DesktopPort, history: Optional[HistoryPort]) -> None:
        self._desktop = desktop
        self._history = history

    def _save(self, rule: Rule, entry: Entry) -> None:
        if rule.save_history and self._history is not None:
            self._history.append(entry)

    async def _deliver(self, rule: Rule, entry: Entry, text: str) -> str:
        """Apply a textual result, unless the rule only previews it."""

        if rule.preview:
            return text
        mode = resolve_output_mode(rule.action, rule.output_mode)
        try:
            if mode is OutputMode.REPLACE:
                await self._desktop.replace_text(text, clipboard=rule.copy_to_clipboard)
            elif mode is OutputMode.POPUP:
                entry.copy_on_popup = rule.copy_to_clipboard
                await self._desktop.show_popup(entry)
        except Exception:
            LOGGER.exception("Failed to output result of rule %s", rule.id)
        return text


class DefaultExecutor(_BaseExecutor):
    """No action bound: bring up the main configuration surface."""

    kind = ActionKind.NONE

    async def run(self, rule: Rule, entry: Entry) -> Optional[str]:
        try:
            await self._desktop.show_main_window()
        except Exception:
            LOGGER.exception("Failed to show main window")
        return None


class ScriptExecutor(_BaseExecutor):
    kind = ActionKind.SCRIPT

    def __init__(
        self,
        catalog: UserCatalog,
        runtime: ScriptRuntimePort,
        desktop: DesktopPort,
        history: Optional[HistoryPort],
    ) -> None:
        super().__init__(desktop, history)
        self._catalog = catalog
        self._runtime = runtime

    async def run(self, rule: Rule, entry: Entry) -> Optional[str]:
        script = self._catalog.scripts.get(rule.action.id)
        if script is None:
            LOGGER.warning("Script %s is not defined", rule.action.id)
            return None

        LOGGER.debug("Executing script: %s", script.id)
        data = {"datetime": entry.datetime, "clipboard": entry.clipboard, "selection": entry.selection}
        try:
            result = await self._runtime.run(script.lang, script.script, data)
        except Exception as exc:
            LOGGER.exception("Script %s raised", script.id)
            result = ExecutionResult(text=str(exc), error=True)

        entry.action_type = "script"
        entry.action_label = script.id
        entry.result = result.text
        entry.script_lang = script.lang
        self._save(rule, entry)

        # Error text is recorded in history but never applied as output.
        if result.error:
            LOGGER.warning("Script %s failed: %s", script.id, result.text)
            return None
        return await self._deliver(rule, entry, result.text)


class PromptExecutor(_BaseExecutor):
    """Renders the prompt; the popup surface starts the streaming chat."""

    kind = ActionKind.PROMPT

    def __init__(self, catalog: UserCatalog, desktop: DesktopPort, history: Optional[HistoryPort]) -> None:
        super().__init__(desktop, history)
        self._catalog = catalog

    async def run(self, rule: Rule, entry: Entry) -> Optional[str]:
        prompt = self._catalog.prompts.get(rule.action.id)
        if prompt is None:
            LOGGER.warning("Prompt %s is not defined", rule.action.id)
            return None

        LOGGER.debug("Rendering prompt: %s", prompt.id)
        message = render_prompt(prompt, entry)
        entry.action_type = "prompt"
        entry.action_label = prompt.id
        entry.result = message
        entry.system_prompt = prompt.system_prompt
        entry.provider = prompt.provider
        entry.model = prompt.model
        self._save(rule, entry)
        return await self._deliver(rule, entry, message)


class SearcherExecutor(_BaseExecutor):
    kind = ActionKind.SEARCHER

    def __init__(self, catalog: UserCatalog, desktop: DesktopPort, history: Optional[HistoryPort]) -> None:
        super().__init__(desktop, history)
        self._catalog = catalog

    async def run(self, rule: Rule, entry: Entry) -> Optional[str]:
        searcher = self._catalog.searchers.get(rule.action.id)
        if searcher is None:
            LOGGER.warning("Searcher %s is not defined", rule.action.id)
            return None

        url = render_search_url(searcher.url, entry.selection)
        entry.action_type = "searcher"
        entry.action_label = searcher.id
        entry.result = url
        self._save(rule, entry)

        if rule.preview:
            return url
        LOGGER.debug("Opening URL for searcher: %s", searcher.id)
        try:
            await self._desktop.open_url(url, searcher.browser)
        except Exception:
            LOGGER.exception("Failed to open URL for searcher %s", searcher.id)
        return url


class BuiltinExecutor(_BaseExecutor):
    kind = ActionKind.BUILTIN

    async def run(self, rule: Rule, entry: Entry) -> Optional[str]:
        processor = find_builtin_action(rule.action.id)
        if processor is None:
            LOGGER.warning("Builtin action %s is not defined", rule.action.id)
            return None

        LOGGER.debug("Executing builtin action: %s", processor.value)
        entry.action_type = "builtin"
        entry.action_label = processor.label

        if processor.no_result:
            self._save(rule, entry)
            # Side effects are commits, so a preview performs nothing.
            if not rule.preview and processor.effect is not None:
                try:
                    await processor.effect(entry.selection, self._desktop)
                except Exception:
                    LOGGER.exception("Builtin action %s failed", processor.value)
            return None

        try:
            result = processor.process(entry.selection)
        except Exception:
            LOGGER.exception("Builtin action %s failed", processor.value)
            return None
        entry.result = result
        self._save(rule, entry)
        return await self._deliver(rule, entry, result)


class ExecutorChain:
    """Ordered executors; the one handling the rule's action kind runs it."""

    def __init__(self, executors: Sequence[Executor], desktop: DesktopPort) -> None:
        self._executors = list(executors)
        self._desktop = desktop

    @classmethod
    def build(
        cls,
        catalog: UserCatalog,
        desktop: DesktopPort,
        runtime: ScriptRuntimePort,
        history: Optional[HistoryPort] = None,
    ) -> "ExecutorChain":
        return cls(
            [
                DefaultExecutor(desktop, history),
                ScriptExecutor(catalog, runtime, desktop, history),
                PromptExecutor(catalog, desktop, history),
                SearcherExecutor(catalog, desktop, history),
                BuiltinExecutor(desktop, history),
            ],
            desktop,
        )

    async def execute(self, rule: Rule, selection: str) -> Optional[str]:
        """Perform the rule's action on ``selection`` and return its text result."""

        entry = await self._new_entry(rule, selection)
        for executor in self._executors:
            if executor.kind is rule.action.kind:
                return await executor.run(rule, entry)
        LOGGER.warning("No executor handles action %s", rule.action.key)
        return None

    async def _new_entry(self, rule: Rule, selection: str) -> Entry:
        try:
            clipboard = await self._desktop.get_clipboard()
        except Exception:
            LOGGER.exception("Failed to read clipboard")
            clipboard = ""
        return Entry(
            id=str(uuid.uuid4()),
            shortcut=rule.shortcut,
            datetime=datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
            clipboard=clipboard,
            selection=selection,
            case_label=rule.case_label,
        )
