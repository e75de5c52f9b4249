from __future__ import annotations

import asyncio

from fakes import FakeDetector

from textgo.core.matcher import Matcher
from textgo.core.models import NO_ACTION, SKIP, Action, ActionKind, Case, CaseKind, Rule
from textgo.core.recognizers import RecognizerChain
from textgo.core.rules_engine import UserCatalog

UPPER = Action(ActionKind.BUILTIN, "upper_case")
SNAKE = Action(ActionKind.BUILTIN, "snake_case")
TRIM = Action(ActionKind.BUILTIN, "trim")


def _rule(rule_id: str, case: Case, action: Action) -> Rule:
    return Rule(id=rule_id, shortcut="Alt+A", case=case, action=action)


def _matcher(natural: FakeDetector | None = None, programming: FakeDetector | None = None) -> Matcher:
    chain = RecognizerChain.build(
        UserCatalog(),
        natural or FakeDetector([("eng", 0.9)]),
        programming or FakeDetector([("py", 0.9)]),
    )
    return Matcher(chain)


RULES = [
    _rule("numbers-upper", Case(CaseKind.BUILTIN, "numbers"), UPPER),
    _rule("english-upper", Case(CaseKind.NATURAL, "eng"), UPPER),
    _rule("english-snake", Case(CaseKind.NATURAL, "eng"), SNAKE),
    _rule("french-trim", Case(CaseKind.NATURAL, "fra"), TRIM),
    _rule("skip-trim", SKIP, TRIM),
    _rule("skip-open", SKIP, NO_ACTION),
]


def test_match_all_dedups_by_action() -> None:
    matched = asyncio.run(_matcher().match_all("hello world", RULES))

    assert [rule.id for rule in matched] == ["english-upper", "english-snake", "skip-trim", "skip-open"]
    actions = [rule.action for rule in matched]
    assert len(actions) == len(set(actions))


def test_match_all_first_rule_per_action_wins() -> None:
    matched = asyncio.run(_matcher().match_all("12345", RULES))
    assert matched[0].id == "numbers-upper"
    assert "english-upper" not in [rule.id for rule in matched]


def test_match_one_is_first_of_match_all() -> None:
    matcher = _matcher()
    for text in ["hello world", "12345", ""]:
        every = asyncio.run(matcher.match_all(text, RULES))
        first = asyncio.run(matcher.match_one(text, RULES))
        assert first is not None
        assert first == every[0]


def test_detection_runs_once_per_call() -> None:
    natural = FakeDetector([("eng", 0.9)])
    matcher = _matcher(natural=natural)

    asyncio.run(matcher.match_all("hello world", RULES))
    assert natural.calls == 1

    # A new call gets a new cache.
    asyncio.run(matcher.match_all("hello world", RULES))
    assert natural.calls == 2


def test_match_one_stops_before_detection_when_earlier_rule_matches() -> None:
    natural = FakeDetector([("eng", 0.9)])
    matched = asyncio.run(_matcher(natural=natural).match_one("12345", RULES))

    assert matched is not None
    assert matched.id == "numbers-upper"
    assert natural.calls == 0


def test_no_match_is_empty_not_error() -> None:
    rules = [_rule("fr", Case(CaseKind.NATURAL, "fra"), TRIM)]
    matcher = _matcher()
    assert asyncio.run(matcher.match_all("hello", rules)) == []
    assert asyncio.run(matcher.match_one("hello", rules)) is None
    assert asyncio.run(matcher.match_all("hello", [])) == []


def test_matched_rules_carry_case_labels() -> None:
    matched = asyncio.run(_matcher().match_all("hello world", RULES))
    assert matched[0].case_label == "English"
