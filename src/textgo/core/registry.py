"""Shortcut/rule registry (core domain).

The registry owns the trigger -> shortcut mapping and is the only place that
talks to the hotkey backend. It is constructed explicitly and started and
shut down by its owner; there is no module-level instance.
"""

from __future__ import annotations

import dataclasses
import fnmatch
import logging
from typing import Iterable, Optional

from textgo.core.executor import ExecutorChain
from textgo.core.matcher import Matcher
from textgo.core.models import Action, ActionKind, Case, CaseKind, ExecutionMode, Rule, Shortcut
from textgo.core.ports import DesktopPort, HotkeyBackend
from textgo.core.shortcuts import is_mouse_shortcut, normalize_shortcut

LOGGER = logging.getLogger(__name__)


class DuplicateRuleError(ValueError):
    """A shortcut already holds a rule with the same case and action."""


class ShortcutError(RuntimeError):
    """A trigger could not be bound, unbound, created or deleted."""


def _canonical(trigger: str) -> str:
    try:
        return normalize_shortcut(trigger)
    except ValueError as exc:
        raise ShortcutError(str(exc)) from exc


def is_blacklisted(blacklist: Iterable[str], app_id: Optional[str], url: Optional[str] = None) -> bool:
    """Return True when the frontmost app (or page URL) matches a blacklist pattern.

    Patterns use ``*`` and ``?`` wildcards and compare case-insensitively.
    Patterns starting with ``http://`` or ``https://`` are tested against the
    URL instead of the app identifier.
    """

    for pattern in blacklist:
        pattern = pattern.strip().lower()
        if not pattern:
            continue
        if pattern.startswith(("http://", "https://")):
            if url and fnmatch.fnmatchcase(url.lower().rstrip("/"), pattern.rstrip("/")):
                return True
        elif app_id and fnmatch.fnmatchcase(app_id.lower(), pattern):
            return True
    return False


class ShortcutRegistry:
    """Maps triggers to rule lists and dispatches trigger events."""

    def __init__(
        self,
        hotkeys: HotkeyBackend,
        matcher: Matcher,
        executor: ExecutorChain,
        desktop: DesktopPort,
        shortcuts: Optional[dict[str, Shortcut]] = None,
    ) -> None:
        self._hotkeys = hotkeys
        self._matcher = matcher
        self._executor = executor
        self._desktop = desktop
        self._shortcuts: dict[str, Shortcut] = {}
        for shortcut in (shortcuts or {}).values():
            key = _canonical(shortcut.trigger)
            self._shortcuts[key] = dataclasses.replace(
                shortcut,
                trigger=key,
                rules=list(shortcut.rules),
                blacklist=list(shortcut.blacklist),
            )
        self._paused = False
        self._suspended: set[str] = set()

    # --- lifecycle -------------------------------------------------------

    async def start(self) -> None:
        """Bind every keyboard trigger known to the registry."""

        for key in list(self._shortcuts):
            if not is_mouse_shortcut(key):
                await self._bind(key)
        LOGGER.info("Shortcut registry started with %d shortcut(s)", len(self._shortcuts))

    async def shutdown(self) -> None:
        """Unbind every keyboard trigger; rules stay in place."""

        for key in list(self._shortcuts):
            if is_mouse_shortcut(key):
                continue
            try:
                await self._unbind(key)
            except ShortcutError:
                LOGGER.exception("Failed to unbind %s on shutdown", key)
        self._suspended.clear()
        self._paused = False
        LOGGER.info("Shortcut registry stopped")

    async def pause(self) -> None:
        """Unbind all keyboard triggers without touching any rule."""

        if self._paused:
            return
        suspended: set[str] = set()
        for key in list(self._shortcuts):
            if is_mouse_shortcut(key):
                continue
            if await self._hotkeys.is_registered(key):
                await self._unbind(key)
                suspended.add(key)
        self._suspended = suspended
        self._paused = True
        LOGGER.info("Paused %d shortcut(s)", len(suspended))

    async def resume(self) -> None:
        """Rebind the triggers that were bound when the registry was paused."""

        if not self._paused:
            return
        self._paused = False
        suspended, self._suspended = self._suspended, set()
        for key in sorted(suspended):
            if key in self._shortcuts:
                await self._bind(key)
        LOGGER.info("Resumed %d shortcut(s)", len(suspended))

    @property
    def paused(self) -> bool:
        return self._paused

    # --- shortcuts -------------------------------------------------------

    async def create_shortcut(
        self,
        trigger: str,
        mode: ExecutionMode = ExecutionMode.QUIET,
        blacklist: Optional[Iterable[str]] = None,
    ) -> Shortcut:
        """Create an empty shortcut and bind its trigger."""

        key = _canonical(trigger)
        if key in self._shortcuts:
            raise ShortcutError(f"Shortcut {key} is already registered")
        if not is_mouse_shortcut(key):
            await self._bind(key)
        shortcut = Shortcut(trigger=key, mode=mode, blacklist=list(blacklist or []))
        self._shortcuts[key] = shortcut
        LOGGER.info("Created shortcut %s (%s)", key, mode.value)
        return self._copy(shortcut)

    async def update_shortcut(
        self,
        trigger: str,
        mode: Optional[ExecutionMode] = None,
        blacklist: Optional[Iterable[str]] = None,
        disabled: Optional[bool] = None,
    ) -> Shortcut:
        shortcut = self._require(trigger)
        if mode is not None:
            shortcut.mode = mode
        if blacklist is not None:
            shortcut.blacklist = list(blacklist)
        if disabled is not None:
            shortcut.disabled = disabled
        return self._copy(shortcut)

    async def delete_shortcut(self, trigger: str) -> None:
        """Delete a shortcut. Only allowed once every rule is unregistered."""

        shortcut = self._require(trigger)
        if shortcut.rules:
            raise ShortcutError(f"Shortcut {shortcut.trigger} still has {len(shortcut.rules)} rule(s)")
        if not is_mouse_shortcut(shortcut.trigger):
            await self._unbind(shortcut.trigger)
        del self._shortcuts[shortcut.trigger]
        LOGGER.info("Deleted shortcut %s", shortcut.trigger)

    def get_shortcut(self, trigger: str) -> Optional[Shortcut]:
        try:
            key = _canonical(trigger)
        except ShortcutError:
            return None
        shortcut = self._shortcuts.get(key)
        return self._copy(shortcut) if shortcut else None

    def snapshot(self) -> dict[str, Shortcut]:
        """Copies of every shortcut; mutating them never affects the registry."""

        return {key: self._copy(shortcut) for key, shortcut in self._shortcuts.items()}

    # --- rules -----------------------------------------------------------

    async def register(self, rule: Rule, mode: ExecutionMode = ExecutionMode.QUIET) -> None:
        """Add a rule to its shortcut, binding the trigger first if needed.

        ``mode`` only applies when the shortcut does not exist yet. A second
        rule for the same (case, action) pair raises DuplicateRuleError, even
        when it is the same rule registered again; any other rule whose id
        is already present is ignored.
        """

        key = _canonical(rule.shortcut)
        shortcut = self._shortcuts.get(key)
        if shortcut is not None:
            for existing in shortcut.rules:
                if existing.case == rule.case and existing.action == rule.action:
                    raise DuplicateRuleError(
                        f"Shortcut {key} already has a rule for {rule.case.key or 'skip'} -> "
                        f"{rule.action.key or 'default'}"
                    )
            if any(existing.id == rule.id for existing in shortcut.rules):
                LOGGER.debug("Rule %s already registered on %s", rule.id, key)
                return

        if not is_mouse_shortcut(key):
            await self._bind(key)
        if shortcut is None:
            shortcut = Shortcut(trigger=key, mode=mode)
            self._shortcuts[key] = shortcut
        shortcut.rules.append(dataclasses.replace(rule, shortcut=key))
        LOGGER.info("Registered rule %s on %s", rule.id, key)

    async def unregister(self, rule: Rule) -> bool:
        """Remove a rule by id. Returns False when it was not registered."""

        key = _canonical(rule.shortcut)
        shortcut = self._shortcuts.get(key)
        if shortcut is None:
            return False
        remaining = [existing for existing in shortcut.rules if existing.id != rule.id]
        if len(remaining) == len(shortcut.rules):
            return False
        shortcut.rules = remaining
        LOGGER.info("Unregistered rule %s from %s", rule.id, key)
        if not remaining and not is_mouse_shortcut(key):
            await self._unbind(key)
        return True

    def rename_case(self, kind: CaseKind, old_id: str, new_id: str) -> int:
        """Point every rule using a renamed user case at its new id."""

        return self._rewrite_rules(
            lambda rule: rule.case == Case(kind, old_id),
            lambda rule: dataclasses.replace(rule, case=Case(kind, new_id)),
        )

    def rename_action(self, kind: ActionKind, old_id: str, new_id: str) -> int:
        """Point every rule using a renamed user action at its new id."""

        return self._rewrite_rules(
            lambda rule: rule.action == Action(kind, old_id),
            lambda rule: dataclasses.replace(rule, action=Action(kind, new_id)),
        )

    # --- dispatch --------------------------------------------------------

    async def dispatch(
        self,
        trigger: str,
        selection: str,
        app_id: Optional[str] = None,
        url: Optional[str] = None,
    ) -> list[Rule]:
        """Handle one trigger event and return the rules it resolved to."""

        shortcut = self.get_shortcut(trigger)
        if shortcut is None:
            LOGGER.debug("No shortcut registered for %s", trigger)
            return []
        if shortcut.disabled or not shortcut.rules:
            LOGGER.debug("Shortcut %s is disabled or has no rules", shortcut.trigger)
            return []
        if is_blacklisted(shortcut.blacklist, app_id, url):
            LOGGER.info("Shortcut %s ignored in %s", shortcut.trigger, url or app_id)
            return []

        try:
            if shortcut.mode is ExecutionMode.TOOLBAR:
                matched = await self._matcher.match_all(selection, shortcut.rules)
                if not matched:
                    LOGGER.warning("No matching rule for %s", shortcut.trigger)
                    return []
                await self._desktop.show_toolbar(shortcut.trigger, matched, selection)
                return matched

            rule = await self._matcher.match_one(selection, shortcut.rules)
            if rule is None:
                LOGGER.warning("No matching rule for %s", shortcut.trigger)
                return []
            await self._executor.execute(rule, selection)
            return [rule]
        except Exception:
            LOGGER.exception("Dispatch of %s failed", shortcut.trigger)
            return []

    async def execute(self, rule: Rule, selection: str) -> Optional[str]:
        """Run one resolved rule, e.g. the one picked on the toolbar."""

        try:
            return await self._executor.execute(rule, selection)
        except Exception:
            LOGGER.exception("Execution of rule %s failed", rule.id)
            return None

    # --- internals -------------------------------------------------------

    def _require(self, trigger: str) -> Shortcut:
        key = _canonical(trigger)
        shortcut = self._shortcuts.get(key)
        if shortcut is None:
            raise ShortcutError(f"Shortcut {key} is not registered")
        return shortcut

    def _rewrite_rules(self, predicate, rewrite) -> int:
        changed = 0
        for shortcut in self._shortcuts.values():
            rules = []
            for rule in shortcut.rules:
                if predicate(rule):
                    rule = rewrite(rule)
                    changed += 1
                rules.append(rule)
            shortcut.rules = rules
        if changed:
            LOGGER.info("Rewrote %d rule(s)", changed)
        return changed

    async def _bind(self, key: str) -> None:
        if self._paused:
            self._suspended.add(key)
            return
        try:
            if not await self._hotkeys.is_registered(key):
                await self._hotkeys.register(key)
                LOGGER.debug("Bound %s", key)
        except Exception as exc:
            raise ShortcutError(f"Failed to bind {key}: {exc}") from exc

    async def _unbind(self, key: str) -> None:
        if self._paused:
            self._suspended.discard(key)
            return
        try:
            if await self._hotkeys.is_registered(key):
                await self._hotkeys.unregister(key)
                LOGGER.debug("Unbound %s", key)
        except Exception as exc:
            raise ShortcutError(f"Failed to unbind {key}: {exc}") from exc

    @staticmethod
    def _copy(shortcut: Shortcut) -> Shortcut:
        return dataclasses.replace(shortcut, rules=list(shortcut.rules), blacklist=list(shortcut.blacklist))
