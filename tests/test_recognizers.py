from __future__ import annotations

import asyncio

from fakes import FakeClassifier, FakeDetector

from textgo.core.models import NO_ACTION, SKIP, Action, ActionKind, Case, CaseKind, ModelDef, RegexpDef, Rule
from textgo.core.recognizers import (
    CustomModelRecognizer,
    DetectionCache,
    RecognizerChain,
    guess_programming_language,
    rank_adjusted_match,
)
from textgo.core.rules_engine import UserCatalog


def _rule(case: Case, action: Action = NO_ACTION) -> Rule:
    return Rule(id="r1", shortcut="Alt+A", case=case, action=action)


def _chain(
    catalog: UserCatalog | None = None,
    natural: FakeDetector | None = None,
    programming: FakeDetector | None = None,
    classifier: FakeClassifier | None = None,
) -> RecognizerChain:
    return RecognizerChain.build(
        catalog or UserCatalog(),
        natural or FakeDetector([]),
        programming or FakeDetector([]),
        classifier,
    )


def _recognize(chain: RecognizerChain, text: str, rule: Rule, cache: DetectionCache | None = None):
    return asyncio.run(chain.recognize(text, rule, cache or DetectionCache()))


def test_rank_adjusted_primary_match() -> None:
    ranking = [("A", 0.55), ("B", 0.3), ("C", 0.1)]
    assert rank_adjusted_match("A", ranking)


def test_rank_adjusted_fallback_margin_match() -> None:
    ranking = [("A", 0.55), ("B", 0.3), ("C", 0.1)]
    assert rank_adjusted_match("B", ranking)


def test_rank_adjusted_low_confidence_rejected() -> None:
    ranking = [("A", 0.55), ("B", 0.3), ("C", 0.1)]
    assert not rank_adjusted_match("C", ranking)


def test_rank_adjusted_absent_target_rejected() -> None:
    assert not rank_adjusted_match("D", [("A", 0.9)])
    assert not rank_adjusted_match("A", [])


def test_rank_adjusted_primary_bar_rises_with_rank() -> None:
    # 0.58 would clear the rank 0 bar but not the rank 1 bar of 0.6.
    ranking = [("A", 0.7), ("B", 0.58), ("C", 0.5)]
    assert not rank_adjusted_match("B", ranking)
    assert rank_adjusted_match("B", [("A", 0.7), ("B", 0.61), ("C", 0.5)])


def test_rank_adjusted_fallback_rejects_rank_three_and_beyond() -> None:
    ranking = [("A", 0.9), ("B", 0.8), ("C", 0.75), ("D", 0.7), ("E", 0.1)]
    assert not rank_adjusted_match("D", ranking)


def test_rank_adjusted_fallback_uses_zero_when_last() -> None:
    assert rank_adjusted_match("B", [("A", 0.6), ("B", 0.4)])


def test_skip_always_matches_without_detection() -> None:
    natural = FakeDetector([("eng", 0.99)])
    programming = FakeDetector([("py", 0.99)])
    chain = _chain(natural=natural, programming=programming)
    rule = _rule(SKIP)

    for text in ["", "hello", "def f(): pass"]:
        assert _recognize(chain, text, rule) == rule

    assert natural.calls == 0
    assert programming.calls == 0


def test_builtin_pattern_is_anchored() -> None:
    chain = _chain()
    rule = _rule(Case(CaseKind.BUILTIN, "url"))

    matched = _recognize(chain, "https://example.com/path?q=1", rule)
    assert matched is not None
    assert matched.case_label == "URL"
    assert _recognize(chain, "see https://example.com", rule) is None


def test_builtin_pattern_rejects_empty_text() -> None:
    assert _recognize(_chain(), "", _rule(Case(CaseKind.BUILTIN, "numbers"))) is None


def test_natural_language_uses_confidence_rule() -> None:
    chain = _chain(natural=FakeDetector([("eng", 0.55), ("fra", 0.3), ("deu", 0.1)]))

    assert _recognize(chain, "hello there", _rule(Case(CaseKind.NATURAL, "eng"))) is not None
    assert _recognize(chain, "hello there", _rule(Case(CaseKind.NATURAL, "fra"))) is not None
    assert _recognize(chain, "hello there", _rule(Case(CaseKind.NATURAL, "deu"))) is None


def test_detection_failure_is_cached_as_no_match() -> None:
    detector = FakeDetector([], error=RuntimeError("model missing"))
    chain = _chain(natural=detector)
    cache = DetectionCache()

    assert _recognize(chain, "hello", _rule(Case(CaseKind.NATURAL, "eng")), cache) is None
    assert _recognize(chain, "hello", _rule(Case(CaseKind.NATURAL, "fra")), cache) is None
    assert detector.calls == 1
    assert cache.natural == []


def test_programming_language_label() -> None:
    chain = _chain(programming=FakeDetector([("py", 0.8)]))
    matched = _recognize(chain, "import os", _rule(Case(CaseKind.PROGRAMMING, "py")))
    assert matched is not None
    assert matched.case_label == "Python"


def test_custom_regex_matches_anywhere() -> None:
    catalog = UserCatalog(regexps={"ticket": RegexpDef("ticket", r"[A-Z]+-\d+")})
    chain = _chain(catalog=catalog)
    rule = _rule(Case(CaseKind.REGEXP, "ticket"))

    matched = _recognize(chain, "fixes ABC-123 today", rule)
    assert matched is not None
    assert matched.case_label == "ticket"
    assert _recognize(chain, "nothing here", rule) is None


def test_custom_regex_flags() -> None:
    catalog = UserCatalog(regexps={"hi": RegexpDef("hi", r"^hello$", flags="im")})
    chain = _chain(catalog=catalog)
    assert _recognize(chain, "first\nHELLO\nlast", _rule(Case(CaseKind.REGEXP, "hi"))) is not None


def test_malformed_custom_regex_is_no_match() -> None:
    catalog = UserCatalog(regexps={"bad": RegexpDef("bad", r"([a-z")})
    chain = _chain(catalog=catalog)
    assert _recognize(chain, "abc", _rule(Case(CaseKind.REGEXP, "bad"))) is None


def test_unknown_custom_regex_is_no_match() -> None:
    assert _recognize(_chain(), "abc", _rule(Case(CaseKind.REGEXP, "missing"))) is None


def test_custom_model_threshold_is_inclusive() -> None:
    catalog = UserCatalog(models={"m": ModelDef("m", sample="x", threshold=0.5, trained=True)})
    rule = _rule(Case(CaseKind.MODEL, "m"))

    assert _recognize(_chain(catalog=catalog, classifier=FakeClassifier(0.5)), "text", rule) is not None
    assert _recognize(_chain(catalog=catalog, classifier=FakeClassifier(0.49)), "text", rule) is None
    assert _recognize(_chain(catalog=catalog, classifier=FakeClassifier(None)), "text", rule) is None


def test_custom_model_requires_training() -> None:
    catalog = UserCatalog(models={"m": ModelDef("m", sample="x", threshold=0.1, trained=False)})
    classifier = FakeClassifier(0.9)
    assert _recognize(_chain(catalog=catalog, classifier=classifier), "text", _rule(Case(CaseKind.MODEL, "m"))) is None
    assert classifier.calls == 0


def test_custom_model_failure_is_no_match() -> None:
    catalog = UserCatalog(models={"m": ModelDef("m", sample="x", trained=True)})
    recognizer = CustomModelRecognizer(catalog, FakeClassifier(None, error=OSError("weights missing")))
    rule = _rule(Case(CaseKind.MODEL, "m"))
    assert asyncio.run(recognizer.try_match("text", rule, DetectionCache())) is None


def test_recognized_rule_keeps_its_action() -> None:
    action = Action(ActionKind.BUILTIN, "upper_case")
    matched = _recognize(_chain(), "123", _rule(Case(CaseKind.BUILTIN, "numbers"), action))
    assert matched is not None
    assert matched.action == action
    assert matched.id == "r1"


def test_guess_programming_language_restricts_candidates() -> None:
    detector = FakeDetector([("js", 0.9), ("py", 0.4), ("rb", 0.05)])

    assert asyncio.run(guess_programming_language(detector, "x", ["py", "rb"])) == "py"
    assert asyncio.run(guess_programming_language(detector, "x", ["rb"])) is None
    assert asyncio.run(guess_programming_language(detector, "x", ["go"])) is None
