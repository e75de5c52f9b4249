"""Syntax highlighting for code shown in the popup."""

from __future__ import annotations

from typing import Optional, Union

from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound
from rich.syntax import Syntax
from rich.text import Text

# Programming case id -> pygments lexer alias. Ids without a lexer are shown as plain text.
LEXER_ALIASES: dict[str, str] = {
    "asm": "nasm",
    "bat": "batch",
    "c": "c",
    "cs": "csharp",
    "cpp": "cpp",
    "clj": "clojure",
    "cmake": "cmake",
    "cbl": "cobol",
    "coffee": "coffeescript",
    "css": "css",
    "dart": "dart",
    "dockerfile": "docker",
    "ex": "elixir",
    "erl": "erlang",
    "f90": "fortran",
    "go": "go",
    "groovy": "groovy",
    "hs": "haskell",
    "html": "html",
    "ini": "ini",
    "java": "java",
    "js": "javascript",
    "json": "json",
    "jl": "julia",
    "kt": "kotlin",
    "lisp": "common-lisp",
    "lua": "lua",
    "makefile": "make",
    "md": "markdown",
    "matlab": "matlab",
    "mm": "objective-c",
    "ml": "ocaml",
    "pas": "delphi",
    "pm": "perl",
    "php": "php",
    "ps1": "powershell",
    "prolog": "prolog",
    "py": "python",
    "r": "r",
    "rb": "ruby",
    "rs": "rust",
    "scala": "scala",
    "sh": "bash",
    "sql": "sql",
    "swift": "swift",
    "tex": "tex",
    "toml": "toml",
    "ts": "typescript",
    "v": "verilog",
    "vba": "vb.net",
    "xml": "xml",
    "yaml": "yaml",
}


def code_renderable(text: str, language_id: Optional[str]) -> Union[Syntax, Text]:
    """Highlight ``text`` as ``language_id`` when a lexer exists for it."""

    alias = LEXER_ALIASES.get(language_id or "")
    if alias is None:
        return Text(text)
    try:
        lexer = get_lexer_by_name(alias)
    except ClassNotFound:
        return Text(text)
    return Syntax(text, lexer, word_wrap=True, background_color="default")
