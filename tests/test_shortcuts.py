from __future__ import annotations

import pytest

from textgo.core.shortcuts import (
    DBCLICK_SHORTCUT,
    DRAG_SHORTCUT,
    LONG_PRESS_SHORTCUT,
    SHIFT_CLICK_SHORTCUT,
    is_mouse_shortcut,
    normalize_shortcut,
)


def test_modifiers_are_sorted_and_aliased() -> None:
    assert normalize_shortcut("shift+ctrl+k") == "Control+Shift+K"
    assert normalize_shortcut("cmd+option+Space") == "Alt+Meta+Space"
    assert normalize_shortcut(" Alt + a ") == "Alt+A"
    assert normalize_shortcut("Control+Shift+K") == "Control+Shift+K"


def test_named_keys_keep_their_case() -> None:
    assert normalize_shortcut("alt+Enter") == "Alt+Enter"
    assert normalize_shortcut("F5") == "F5"


def test_mouse_shortcuts_pass_through() -> None:
    for shortcut in (DRAG_SHORTCUT, DBCLICK_SHORTCUT, SHIFT_CLICK_SHORTCUT, LONG_PRESS_SHORTCUT):
        assert is_mouse_shortcut(shortcut)
        assert normalize_shortcut(shortcut) == shortcut
    assert not is_mouse_shortcut("Alt+A")


@pytest.mark.parametrize("shortcut", ["", "Alt+", "Hyper+A", "Alt+alt+A"])
def test_invalid_shortcuts(shortcut: str) -> None:
    with pytest.raises(ValueError):
        normalize_shortcut(shortcut)
