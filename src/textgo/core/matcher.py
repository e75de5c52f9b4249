"""Match orchestration over a rule list (core domain)."""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from textgo.core.models import Rule
from textgo.core.recognizers import DetectionCache, RecognizerChain

LOGGER = logging.getLogger(__name__)


class Matcher:
    """Evaluates rules against one text in first-match or collect-all mode."""

    def __init__(self, chain: RecognizerChain) -> None:
        self._chain = chain

    async def match_one(self, text: str, rules: Iterable[Rule]) -> Optional[Rule]:
        """Return the first rule, in list order, whose case matches ``text``."""

        matched = await self._match(text, rules, collect_all=False)
        return matched[0] if matched else None

    async def match_all(self, text: str, rules: Iterable[Rule]) -> List[Rule]:
        """Return every matching rule, keeping only the first rule per action."""

        return await self._match(text, rules, collect_all=True)

    async def _match(self, text: str, rules: Iterable[Rule], collect_all: bool) -> List[Rule]:
        rules = list(rules)
        LOGGER.debug("Matching cases: %s", ", ".join(rule.case.key or "skip" for rule in rules))

        # One cache per call; it dies with the call and is shared by every rule.
        cache = DetectionCache()
        matched: List[Rule] = []
        matched_actions: set[str] = set()

        for rule in rules:
            if rule.action.key in matched_actions:
                continue
            result = await self._chain.recognize(text, rule, cache)
            if result is None:
                continue
            matched.append(result)
            if not collect_all:
                break
            matched_actions.add(result.action.key)

        return matched
