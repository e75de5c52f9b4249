"""Hotkey backend and trigger event source.

OS-level key grabbing is outside this package. The local backend keeps the
set of bound triggers and the event source only delivers events for bound
keyboard triggers, as an OS hook would. Events arrive as JSON lines:
``{"shortcut": "...", "selection": "...", "app_id": "...", "url": "..."}``.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from dataclasses import dataclass
from typing import AsyncIterator, Optional, TextIO

from textgo.core.shortcuts import is_mouse_shortcut, normalize_shortcut

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class TriggerEvent:
    shortcut: str
    selection: str
    app_id: Optional[str] = None
    url: Optional[str] = None


class LocalHotkeyBackend:
    """Tracks bound triggers; binding an already bound trigger is an error."""

    def __init__(self) -> None:
        self._bound: set[str] = set()

    async def is_registered(self, shortcut: str) -> bool:
        return shortcut in self._bound

    async def register(self, shortcut: str) -> None:
        if shortcut in self._bound:
            raise RuntimeError(f"Shortcut {shortcut} is already registered")
        self._bound.add(shortcut)
        LOGGER.debug("Hotkey %s bound", shortcut)

    async def unregister(self, shortcut: str) -> None:
        self._bound.discard(shortcut)
        LOGGER.debug("Hotkey %s unbound", shortcut)

    @property
    def bound(self) -> frozenset[str]:
        return frozenset(self._bound)


def parse_event(line: str) -> Optional[TriggerEvent]:
    """Parse one JSON line; malformed lines are logged and skipped."""

    line = line.strip()
    if not line:
        return None
    try:
        payload = json.loads(line)
        shortcut = normalize_shortcut(str(payload["shortcut"]))
    except (json.JSONDecodeError, KeyError, TypeError, ValueError) as exc:
        LOGGER.warning("Ignoring malformed trigger event %r: %s", line[:80], exc)
        return None
    return TriggerEvent(
        shortcut=shortcut,
        selection=str(payload.get("selection", "")),
        app_id=payload.get("app_id"),
        url=payload.get("url"),
    )


class TriggerEventSource:
    """Reads trigger events from a text stream (stdin by default)."""

    def __init__(self, backend: LocalHotkeyBackend, stream: Optional[TextIO] = None) -> None:
        self._backend = backend
        self._stream = stream or sys.stdin

    async def events(self) -> AsyncIterator[TriggerEvent]:
        while True:
            line = await asyncio.to_thread(self._stream.readline)
            if not line:
                return
            event = parse_event(line)
            if event is None:
                continue
            if not is_mouse_shortcut(event.shortcut) and not await self._backend.is_registered(event.shortcut):
                LOGGER.debug("Dropping event for unbound shortcut %s", event.shortcut)
                continue
            yield event
