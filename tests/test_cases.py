from __future__ import annotations

from textgo.core.cases import (
    PROGRAMMING_CASES,
    find_builtin_case,
    find_natural_case,
    find_programming_case,
)


def _matches(case_id: str, text: str) -> bool:
    case = find_builtin_case(case_id)
    assert case is not None and case.pattern is not None
    return case.pattern.fullmatch(text) is not None


def test_general_patterns() -> None:
    assert _matches("email", "jane.doe@example.com")
    assert not _matches("email", "not an email")
    assert _matches("numbers", "12345")
    assert not _matches("numbers", "12a")
    assert _matches("uuid", "123e4567-e89b-42d3-a456-426614174000")
    assert _matches("ipv4", "192.168.0.1")
    assert not _matches("ipv4", "256.1.1.1")
    assert _matches("ipv6", "::1")
    assert _matches("timestamp", "1700000000")
    assert _matches("path", "/usr/local/bin")


def test_iso8601_checks_calendar() -> None:
    assert _matches("iso8601", "2024-02-29T12:30:00Z")
    assert not _matches("iso8601", "2023-02-29T12:30:00Z")
    assert _matches("iso8601", "2023-11-30T08:00:00.123+02:00")


def test_naming_convention_patterns() -> None:
    assert _matches("camel_case", "helloWorld")
    assert not _matches("camel_case", "hello")
    assert _matches("snake_case", "hello_world")
    assert _matches("kebab_case", "hello-world")
    assert _matches("constant_case", "HELLO_WORLD")
    assert _matches("start_case", "Hello World")


def test_language_catalogs() -> None:
    assert find_natural_case("eng").label == "English"
    assert find_natural_case("xyz") is None
    assert find_programming_case("py").label == "Python"
    assert len(PROGRAMMING_CASES) == 54
    assert all(case.pattern is None for case in PROGRAMMING_CASES)
