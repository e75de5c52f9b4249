"""Static registries of built-in actions.

Pure processors map text to text. Side-effect actions (copy, open) produce
no textual result and perform their work through the desktop port.
"""

from __future__ import annotations

import html
import logging
import re
import unicodedata
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from textgo.core.ports import DesktopPort

LOGGER = logging.getLogger(__name__)

URL_REGEX = re.compile(r"https?://(?:www\.)?[-a-zA-Z0-9@:%._+~#=]{1,256}\.[a-zA-Z0-9()]{1,6}\b[-a-zA-Z0-9()@:%_+.~#?&/=]*")
PATH_REGEX = re.compile(
    r'(?:[a-zA-Z]:\\[^<>:"|?*\n\r/]+(?:\\[^<>:"|?*\n\r/]+)*|~?/[^<>:"|?*\n\r\\]+(?:/[^<>:"|?*\n\r\\]+)*)'
)

# Uppercase-led words, digit runs, all-caps runs and any other letter runs.
_WORD_REGEX = re.compile(r"[A-Z]?[a-z]+|[0-9]+|[A-Z]+(?![a-z])|[^\W\d_]+")

Effect = Callable[[str, DesktopPort], Awaitable[None]]


@dataclass(frozen=True)
class Processor:
    """A built-in action: a text transform plus an optional side effect."""

    value: str
    label: str
    process: Callable[[str], str]
    effect: Optional[Effect] = None
    no_result: bool = False


def words(text: str) -> list[str]:
    """Split text into words across case, digit and separator boundaries."""

    return _WORD_REGEX.findall(text)


def _capitalize(word: str) -> str:
    return word[:1].upper() + word[1:].lower()


def camel_case(text: str) -> str:
    parts = words(text)
    if not parts:
        return ""
    return parts[0].lower() + "".join(_capitalize(part) for part in parts[1:])


def pascal_case(text: str) -> str:
    return "".join(_capitalize(part) for part in words(text))


def lower_case(text: str) -> str:
    return " ".join(part.lower() for part in words(text))


def start_case(text: str) -> str:
    return " ".join(_capitalize(part) for part in words(text))


def upper_case(text: str) -> str:
    return " ".join(part.upper() for part in words(text))


def snake_case(text: str) -> str:
    return "_".join(part.lower() for part in words(text))


def kebab_case(text: str) -> str:
    return "-".join(part.lower() for part in words(text))


def constant_case(text: str) -> str:
    return "_".join(part.upper() for part in words(text))


def deburr(text: str) -> str:
    """Strip combining diacritical marks (é -> e)."""

    decomposed = unicodedata.normalize("NFD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def _no_text(_: str) -> str:
    return ""


async def _copy(text: str, desktop: DesktopPort) -> None:
    if text:
        await desktop.set_clipboard(text)


async def _open_urls(text: str, desktop: DesktopPort) -> None:
    for url in URL_REGEX.findall(text):
        try:
            await desktop.open_url(url)
        except Exception:
            LOGGER.exception("Failed to open URL %s", url)


async def _open_paths(text: str, desktop: DesktopPort) -> None:
    for path in PATH_REGEX.findall(text):
        try:
            await desktop.open_path(path)
        except Exception:
            LOGGER.exception("Failed to open path %s", path)


DEFAULT_ACTIONS: list[Processor] = [
    Processor("copy", "Copy", _no_text, effect=_copy, no_result=True),
]

GENERAL_ACTIONS: list[Processor] = [
    Processor("open_urls", "Open URLs", _no_text, effect=_open_urls, no_result=True),
    Processor("open_paths", "Open paths", _no_text, effect=_open_paths, no_result=True),
]

CONVERT_ACTIONS: list[Processor] = [
    Processor("camel_case", "camelCase", camel_case),
    Processor("pascal_case", "PascalCase", pascal_case),
    Processor("lower_case", "lower case", lower_case),
    Processor("start_case", "Start Case", start_case),
    Processor("upper_case", "UPPER CASE", upper_case),
    Processor("snake_case", "snake_case", snake_case),
    Processor("kebab_case", "kebab-case", kebab_case),
    Processor("constant_case", "CONSTANT_CASE", constant_case),
]

PROCESS_ACTIONS: list[Processor] = [
    Processor("words", "Words", lambda text: " ".join(words(text))),
    Processor("reverse", "Reverse", lambda text: text[::-1]),
    Processor("trim", "Trim", str.strip),
    Processor("ltrim", "Trim start", str.lstrip),
    Processor("rtrim", "Trim end", str.rstrip),
    Processor("deburr", "Deburr", deburr),
    Processor("escape", "Escape HTML", html.escape),
    Processor("unescape", "Unescape HTML", html.unescape),
]

BUILTIN_ACTIONS: dict[str, Processor] = {
    action.value: action for action in [*DEFAULT_ACTIONS, *GENERAL_ACTIONS, *CONVERT_ACTIONS, *PROCESS_ACTIONS]
}


def find_builtin_action(action_id: str) -> Optional[Processor]:
    return BUILTIN_ACTIONS.get(action_id)
