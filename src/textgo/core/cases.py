"""Static registries of recognizable text cases.

Patterns are compiled once at import time and are always applied with
``fullmatch``, so they carry no anchors.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class CaseOption:
    """A recognizable case with its display label and optional pattern."""

    value: str
    label: str
    pattern: Optional[re.Pattern] = None


_OCTET = r"(?:25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)"
_IPV4_TAIL = r"(?:(?:25[0-5]|(?:2[0-4]|1?[0-9])?[0-9])\.){3}(?:25[0-5]|(?:2[0-4]|1?[0-9])?[0-9])"

GENERAL_CASES: list[CaseOption] = [
    CaseOption(
        "url",
        "URL",
        re.compile(r"https?://(?:www\.)?[-a-zA-Z0-9@:%._+~#=]{1,256}\.[a-zA-Z0-9()]{1,6}\b[-a-zA-Z0-9()@:%_+.~#?&/=]*"),
    ),
    CaseOption(
        "path",
        "Path",
        re.compile(
            r'(?:[a-zA-Z]:\\[^<>:"|?*\n\r/]+(?:\\[^<>:"|?*\n\r/]+)*'
            r'|~?/[^<>:"|?*\n\r\\]+(?:/[^<>:"|?*\n\r\\]+)*)'
        ),
    ),
    CaseOption(
        "email",
        "Email",
        re.compile(
            r"""[a-z0-9!#$%&'*+/=?^_`{|}~-]+(?:\.[a-z0-9!#$%&'*+/=?^_`{|}~-]+)*"""
            r"@(?:[a-z0-9](?:[a-z0-9-]*[a-z0-9])?\.)+[a-z0-9](?:[a-z0-9-]*[a-z0-9])?",
            re.IGNORECASE,
        ),
    ),
    CaseOption("numbers", "Numbers", re.compile(r"[0-9]+")),
    CaseOption("small_letters", "Small letters", re.compile(r"(?=.*[a-z])[a-z0-9_\W]+", re.ASCII)),
    CaseOption("capital_letters", "Capital letters", re.compile(r"(?=.*[A-Z])[A-Z0-9_\W]+", re.ASCII)),
    CaseOption(
        "uuid",
        "UUID",
        re.compile(r"[0-9a-f]{8}-[0-9a-f]{4}-[0-5][0-9a-f]{3}-[089ab][0-9a-f]{3}-[0-9a-f]{12}", re.IGNORECASE),
    ),
    CaseOption(
        "guid",
        "GUID",
        re.compile(r"\{?[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}\}?", re.IGNORECASE),
    ),
    CaseOption("ipv4", "IPv4", re.compile(rf"{_OCTET}\.{_OCTET}\.{_OCTET}\.{_OCTET}")),
    CaseOption(
        "ipv6",
        "IPv6",
        re.compile(
            r"(?:(?:[0-9a-f]{1,4}:){7}[0-9a-f]{1,4}"
            r"|(?:[0-9a-f]{1,4}:){1,7}:"
            r"|(?:[0-9a-f]{1,4}:){1,6}:[0-9a-f]{1,4}"
            r"|(?:[0-9a-f]{1,4}:){1,5}(?::[0-9a-f]{1,4}){1,2}"
            r"|(?:[0-9a-f]{1,4}:){1,4}(?::[0-9a-f]{1,4}){1,3}"
            r"|(?:[0-9a-f]{1,4}:){1,3}(?::[0-9a-f]{1,4}){1,4}"
            r"|(?:[0-9a-f]{1,4}:){1,2}(?::[0-9a-f]{1,4}){1,5}"
            r"|[0-9a-f]{1,4}:(?::[0-9a-f]{1,4}){1,6}"
            r"|:(?:(?::[0-9a-f]{1,4}){1,7}|:)"
            r"|fe80:(?::[0-9a-f]{0,4}){0,4}%[0-9a-z]+"
            rf"|::(?:ffff(?::0{{1,4}})?:)?{_IPV4_TAIL}"
            rf"|(?:[0-9a-f]{{1,4}}:){{1,4}}:{_IPV4_TAIL})",
            re.IGNORECASE,
        ),
    ),
    CaseOption("info_hash", "Info hash", re.compile(r"(?:[0-9a-zA-Z]{32}|[0-9a-fA-F]{40}|1220[0-9a-fA-F]{64})")),
    CaseOption(
        "iso8601",
        "ISO 8601",
        re.compile(
            r"(?:(?:\d\d[2468][048]|\d\d[13579][26]|\d\d0[48]|[02468][048]00|[13579][26]00)-02-29"
            r"|\d{4}-(?:(?:0[13578]|1[02])-(?:0[1-9]|[12]\d|3[01])|(?:0[469]|11)-(?:0[1-9]|[12]\d|30)"
            r"|02-(?:0[1-9]|1\d|2[0-8])))"
            r"T(?:[01]\d|2[0-3]):[0-5]\d:[0-5]\d(?:\.\d+)?(?:[+-](?:[01]\d|2[0-3]):[0-5]\d|Z)?",
            re.ASCII,
        ),
    ),
    # 10-digit seconds or 13-digit milliseconds, between 2001 and 2286
    CaseOption("timestamp", "Timestamp", re.compile(r"(?:[1-9]\d{9}|[1-9]\d{12})", re.ASCII)),
]

TEXT_CASES: list[CaseOption] = [
    CaseOption("camel_case", "camelCase", re.compile(r"[a-z][a-z0-9]*(?:[A-Z][a-z0-9]*)+")),
    CaseOption("pascal_case", "PascalCase", re.compile(r"[A-Z]+[a-z0-9]+(?:[A-Z][a-z0-9]*)+|[A-Z]{2,}[a-z0-9]+")),
    CaseOption("lower_case", "lower case", re.compile(r"(?=.*[a-z])[a-z0-9]+(?: [a-z0-9]+)*")),
    CaseOption("start_case", "Start Case", re.compile(r"[A-Z][a-z0-9]*(?: [A-Z][a-z0-9]+)+")),
    CaseOption("upper_case", "UPPER CASE", re.compile(r"(?=.*[A-Z])[A-Z0-9]+(?: [A-Z0-9]+)*")),
    CaseOption("snake_case", "snake_case", re.compile(r"[a-z0-9]+(?:_[a-z0-9]+)+")),
    CaseOption("kebab_case", "kebab-case", re.compile(r"[a-z0-9]+(?:-[a-z0-9]+)+")),
    CaseOption("constant_case", "CONSTANT_CASE", re.compile(r"[A-Z0-9]+(?:_[A-Z0-9]+)+")),
]

# ISO 639-3 codes.
NATURAL_CASES: list[CaseOption] = [
    CaseOption("eng", "English"),
    CaseOption("cmn", "Chinese"),
    CaseOption("jpn", "Japanese"),
    CaseOption("kor", "Korean"),
    CaseOption("rus", "Russian"),
    CaseOption("fra", "French"),
    CaseOption("deu", "German"),
    CaseOption("spa", "Spanish"),
    CaseOption("por", "Portuguese"),
    CaseOption("arb", "Arabic"),
]

PROGRAMMING_CASES: list[CaseOption] = [
    CaseOption(value, label)
    for value, label in [
        ("asm", "Assembly"),
        ("bat", "Batchfile"),
        ("c", "C"),
        ("cs", "C#"),
        ("cpp", "C++"),
        ("clj", "Clojure"),
        ("cmake", "CMake"),
        ("cbl", "COBOL"),
        ("coffee", "CoffeeScript"),
        ("css", "CSS"),
        ("csv", "CSV"),
        ("dart", "Dart"),
        ("dm", "DM"),
        ("dockerfile", "Dockerfile"),
        ("ex", "Elixir"),
        ("erl", "Erlang"),
        ("f90", "Fortran"),
        ("go", "Go"),
        ("groovy", "Groovy"),
        ("hs", "Haskell"),
        ("html", "HTML"),
        ("ini", "INI"),
        ("java", "Java"),
        ("js", "JavaScript"),
        ("json", "JSON"),
        ("jl", "Julia"),
        ("kt", "Kotlin"),
        ("lisp", "Lisp"),
        ("lua", "Lua"),
        ("makefile", "Makefile"),
        ("md", "Markdown"),
        ("matlab", "Matlab"),
        ("mm", "Objective-C"),
        ("ml", "OCaml"),
        ("pas", "Pascal"),
        ("pm", "Perl"),
        ("php", "PHP"),
        ("ps1", "PowerShell"),
        ("prolog", "Prolog"),
        ("py", "Python"),
        ("r", "R"),
        ("rb", "Ruby"),
        ("rs", "Rust"),
        ("scala", "Scala"),
        ("sh", "Shell"),
        ("sql", "SQL"),
        ("swift", "Swift"),
        ("tex", "TeX"),
        ("toml", "TOML"),
        ("ts", "TypeScript"),
        ("v", "Verilog"),
        ("vba", "Visual Basic"),
        ("xml", "XML"),
        ("yaml", "YAML"),
    ]
]

BUILTIN_CASES: dict[str, CaseOption] = {case.value: case for case in [*GENERAL_CASES, *TEXT_CASES]}
NATURAL_CODES: dict[str, CaseOption] = {case.value: case for case in NATURAL_CASES}
PROGRAMMING_IDS: dict[str, CaseOption] = {case.value: case for case in PROGRAMMING_CASES}


def find_builtin_case(case_id: str) -> Optional[CaseOption]:
    return BUILTIN_CASES.get(case_id)


def find_natural_case(code: str) -> Optional[CaseOption]:
    return NATURAL_CODES.get(code)


def find_programming_case(language_id: str) -> Optional[CaseOption]:
    return PROGRAMMING_IDS.get(language_id)
