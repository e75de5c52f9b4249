"""Helpers for working with shortcut trigger strings.

Keyboard combinations use a canonical form: modifiers sorted by name and
joined with ``+`` in front of the key. Pointer gestures use fixed sentinel
strings that can never be produced by a keyboard combination.
"""

from __future__ import annotations

DRAG_SHORTCUT = "MouseClick+MouseMove"
DBCLICK_SHORTCUT = "MouseClick+MouseClick"
SHIFT_CLICK_SHORTCUT = "Shift+MouseClick"
LONG_PRESS_SHORTCUT = "LongPress"

MOUSE_SHORTCUTS = frozenset({DRAG_SHORTCUT, DBCLICK_SHORTCUT, SHIFT_CLICK_SHORTCUT, LONG_PRESS_SHORTCUT})

_MODIFIER_ALIASES = {
    "alt": "Alt",
    "option": "Alt",
    "control": "Control",
    "ctrl": "Control",
    "meta": "Meta",
    "cmd": "Meta",
    "command": "Meta",
    "super": "Meta",
    "win": "Meta",
    "shift": "Shift",
}


def is_mouse_shortcut(shortcut: str) -> bool:
    return shortcut in MOUSE_SHORTCUTS


def normalize_shortcut(shortcut: str) -> str:
    """Return the canonical form of a trigger string.

    Raises ValueError for keyboard combinations without a key, with an
    unknown modifier, or with a repeated modifier.
    """

    shortcut = shortcut.strip()
    if is_mouse_shortcut(shortcut):
        return shortcut

    keys = [part.strip() for part in shortcut.split("+")]
    if not keys or not keys[-1]:
        raise ValueError(f"Missing key code in shortcut: {shortcut!r}")

    modifiers: list[str] = []
    for raw in keys[:-1]:
        modifier = _MODIFIER_ALIASES.get(raw.lower())
        if modifier is None:
            raise ValueError(f"Unsupported modifier: {raw}")
        if modifier in modifiers:
            raise ValueError(f"Repeated modifier: {raw}")
        modifiers.append(modifier)

    key = keys[-1]
    if len(key) == 1:
        key = key.upper()
    return "+".join([*sorted(modifiers), key])
