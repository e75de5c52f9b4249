"""Recognizer chain (core domain).

Each recognizer handles exactly one case kind. The chain tries them in a
fixed priority order and the first one returning a match wins. Expensive
language rankings live in a per-call DetectionCache so each classification
runs at most once per text, no matter how many rules ask for it.
"""

from __future__ import annotations

import dataclasses
import functools
import logging
import re
from dataclasses import dataclass
from typing import Optional, Protocol, Sequence

from textgo.core.cases import find_builtin_case, find_natural_case, find_programming_case
from textgo.core.models import CaseKind, Rule
from textgo.core.ports import ClassifierPort, LanguageDetector, Ranking
from textgo.core.rules_engine import UserCatalog
from textgo.core.validators import regexp_flags

LOGGER = logging.getLogger(__name__)

# Rank-adjusted confidence constants.
INITIAL_THRESHOLD = 0.5
RANK_STEP = 0.1
MIN_CONFIDENCE = 0.2
MAX_FALLBACK_RANK = 3
RELATIVE_THRESHOLD = 0.15


@dataclass
class DetectionCache:
    """Lazily filled language rankings for one text, scoped to one match call."""

    natural: Optional[Ranking] = None
    programming: Optional[Ranking] = None


def rank_adjusted_match(target: str, ranking: Ranking) -> bool:
    """Decide whether ``target`` is a credible detection in ``ranking``.

    The primary test is an absolute bar that rises by RANK_STEP per rank.
    When it fails, a target within the top MAX_FALLBACK_RANK positions with
    more than MIN_CONFIDENCE still matches if it leads the next candidate by
    more than RELATIVE_THRESHOLD.
    """

    index = next((i for i, (code, _) in enumerate(ranking) if code == target), -1)
    if index == -1:
        return False
    confidence = ranking[index][1]

    if confidence > INITIAL_THRESHOLD + RANK_STEP * index:
        return True

    if confidence <= MIN_CONFIDENCE or index >= MAX_FALLBACK_RANK:
        return False
    next_confidence = ranking[index + 1][1] if index + 1 < len(ranking) else 0.0
    return confidence - next_confidence > RELATIVE_THRESHOLD


@functools.lru_cache(maxsize=256)
def compile_user_pattern(pattern: str, flags: str) -> re.Pattern:
    return re.compile(pattern, regexp_flags(flags))


class Recognizer(Protocol):
    kind: CaseKind

    async def try_match(self, text: str, rule: Rule, cache: DetectionCache) -> Optional[Rule]:
        ...


class SkipRecognizer:
    """Matches the empty case, meaning no recognition step gates the action."""

    kind = CaseKind.SKIP

    async def try_match(self, text: str, rule: Rule, cache: DetectionCache) -> Optional[Rule]:
        LOGGER.debug("Skipping text recognition for rule %s", rule.id)
        return rule


class BuiltinPatternRecognizer:
    kind = CaseKind.BUILTIN

    async def try_match(self, text: str, rule: Rule, cache: DetectionCache) -> Optional[Rule]:
        if not text:
            return None
        builtin = find_builtin_case(rule.case.id)
        if builtin and builtin.pattern and builtin.pattern.fullmatch(text):
            LOGGER.debug("Builtin pattern matched: %s", builtin.label)
            return dataclasses.replace(rule, case_label=builtin.label)
        return None


class NaturalLanguageRecognizer:
    kind = CaseKind.NATURAL

    def __init__(self, detector: LanguageDetector) -> None:
        self._detector = detector

    async def try_match(self, text: str, rule: Rule, cache: DetectionCache) -> Optional[Rule]:
        natural = find_natural_case(rule.case.id)
        if not text or natural is None:
            return None
        if cache.natural is None:
            try:
                cache.natural = await self._detector.detect(text)
            except Exception:
                LOGGER.exception("Natural language detection failed")
                cache.natural = []
            LOGGER.debug("Natural language ranking: %s", cache.natural)
        if rank_adjusted_match(rule.case.id, cache.natural):
            LOGGER.debug("Natural language detected: %s", natural.label)
            return dataclasses.replace(rule, case_label=natural.label)
        return None


class ProgrammingLanguageRecognizer:
    kind = CaseKind.PROGRAMMING

    def __init__(self, detector: LanguageDetector) -> None:
        self._detector = detector

    async def try_match(self, text: str, rule: Rule, cache: DetectionCache) -> Optional[Rule]:
        programming = find_programming_case(rule.case.id)
        if not text or programming is None:
            return None
        if cache.programming is None:
            try:
                cache.programming = await self._detector.detect(text)
            except Exception:
                LOGGER.exception("Programming language detection failed")
                cache.programming = []
            LOGGER.debug("Programming language ranking: %s", cache.programming)
        if rank_adjusted_match(rule.case.id, cache.programming):
            LOGGER.debug("Programming language detected: %s", programming.label)
            return dataclasses.replace(rule, case_label=programming.label)
        return None


class CustomRegexRecognizer:
    """Tests a user pattern for any match, not necessarily anchored."""

    kind = CaseKind.REGEXP

    def __init__(self, catalog: UserCatalog) -> None:
        self._catalog = catalog

    async def try_match(self, text: str, rule: Rule, cache: DetectionCache) -> Optional[Rule]:
        regexp = self._catalog.regexps.get(rule.case.id)
        if not text or regexp is None or not regexp.pattern:
            return None
        try:
            pattern = compile_user_pattern(regexp.pattern, regexp.flags)
        except (re.error, ValueError):
            LOGGER.exception("Custom regex %s failed to compile", regexp.id)
            return None
        if pattern.search(text):
            LOGGER.debug("Custom regex matched: %s", regexp.id)
            return dataclasses.replace(rule, case_label=regexp.id)
        return None


class CustomModelRecognizer:
    """Matches when the trained classifier's confidence reaches the threshold."""

    kind = CaseKind.MODEL

    def __init__(self, catalog: UserCatalog, classifier: Optional[ClassifierPort]) -> None:
        self._catalog = catalog
        self._classifier = classifier

    async def try_match(self, text: str, rule: Rule, cache: DetectionCache) -> Optional[Rule]:
        model = self._catalog.models.get(rule.case.id)
        if not text or model is None or not model.trained or self._classifier is None:
            return None
        try:
            confidence = await self._classifier.predict(model.id, text)
        except Exception:
            LOGGER.exception("Custom model %s prediction failed", model.id)
            return None
        if confidence is not None and confidence >= model.threshold:
            LOGGER.debug("Custom model matched: %s (%.3f)", model.id, confidence)
            return dataclasses.replace(rule, case_label=model.id)
        return None


class RecognizerChain:
    """Ordered recognizers; the first one that matches a rule wins."""

    def __init__(self, recognizers: Sequence[Recognizer]) -> None:
        self._recognizers = list(recognizers)

    @classmethod
    def build(
        cls,
        catalog: UserCatalog,
        natural_detector: LanguageDetector,
        programming_detector: LanguageDetector,
        classifier: Optional[ClassifierPort] = None,
    ) -> "RecognizerChain":
        return cls(
            [
                SkipRecognizer(),
                BuiltinPatternRecognizer(),
                NaturalLanguageRecognizer(natural_detector),
                ProgrammingLanguageRecognizer(programming_detector),
                CustomRegexRecognizer(catalog),
                CustomModelRecognizer(catalog, classifier),
            ]
        )

    async def recognize(self, text: str, rule: Rule, cache: DetectionCache) -> Optional[Rule]:
        for recognizer in self._recognizers:
            if recognizer.kind is not rule.case.kind:
                continue
            matched = await recognizer.try_match(text, rule, cache)
            if matched is not None:
                return matched
        return None


async def guess_programming_language(
    detector: LanguageDetector, text: str, candidates: Sequence[str]
) -> Optional[str]:
    """Return the best-ranked candidate language, or None if not confident."""

    try:
        ranking = await detector.detect(text)
    except Exception:
        LOGGER.exception("Programming language detection failed")
        return None
    ranking = [(code, confidence) for code, confidence in ranking if code in candidates]
    if not ranking:
        return None
    code, confidence = ranking[0]
    return code if confidence >= MIN_CONFIDENCE / 2 else None
