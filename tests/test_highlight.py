from __future__ import annotations

from rich.syntax import Syntax
from rich.text import Text

from textgo.core.cases import PROGRAMMING_IDS
from textgo.frontend.highlight import LEXER_ALIASES, code_renderable


def test_known_language_is_highlighted() -> None:
    renderable = code_renderable("print('hi')", "py")
    assert isinstance(renderable, Syntax)
    assert renderable.code == "print('hi')"


def test_unknown_language_is_plain_text() -> None:
    assert isinstance(code_renderable("a,b", "csv"), Text)
    assert isinstance(code_renderable("x", None), Text)


def test_lexer_table_only_targets_known_ids() -> None:
    assert set(LEXER_ALIASES) <= set(PROGRAMMING_IDS)
