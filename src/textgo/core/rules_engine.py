"""Rule deserialization and the user catalog (core domain).

Case and action identifiers are parsed into tagged variants once, here, so
the recognizer and executor chains never re-parse prefixed strings.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Optional, TypeVar

from textgo.core.actions import find_builtin_action
from textgo.core.cases import find_builtin_case, find_natural_case, find_programming_case
from textgo.core.models import (
    MODEL_MARK,
    NO_ACTION,
    PROMPT_MARK,
    REGEXP_MARK,
    SCRIPT_MARK,
    SEARCHER_MARK,
    SKIP,
    Action,
    ActionKind,
    Case,
    CaseKind,
    DisplayMode,
    ExecutionMode,
    ModelDef,
    OutputMode,
    PromptDef,
    RegexpDef,
    Rule,
    ScriptDef,
    SearcherDef,
    Shortcut,
)
from textgo.core.shortcuts import normalize_shortcut
from textgo.core.validators import (
    validate_model,
    validate_prompt,
    validate_regexp,
    validate_script,
    validate_searcher,
)

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


def parse_case(raw: str) -> Case:
    """Decide the case variant for its string form."""

    raw = raw or ""
    if not raw:
        return SKIP
    if raw.startswith(REGEXP_MARK):
        return Case(CaseKind.REGEXP, raw[len(REGEXP_MARK) :])
    if raw.startswith(MODEL_MARK):
        return Case(CaseKind.MODEL, raw[len(MODEL_MARK) :])
    if find_builtin_case(raw):
        return Case(CaseKind.BUILTIN, raw)
    if find_natural_case(raw):
        return Case(CaseKind.NATURAL, raw)
    if find_programming_case(raw):
        return Case(CaseKind.PROGRAMMING, raw)
    raise ValueError(f"Unknown case: {raw}")


def parse_action(raw: str) -> Action:
    """Decide the action variant for its string form."""

    raw = raw or ""
    if not raw:
        return NO_ACTION
    if raw.startswith(SCRIPT_MARK):
        return Action(ActionKind.SCRIPT, raw[len(SCRIPT_MARK) :])
    if raw.startswith(PROMPT_MARK):
        return Action(ActionKind.PROMPT, raw[len(PROMPT_MARK) :])
    if raw.startswith(SEARCHER_MARK):
        return Action(ActionKind.SEARCHER, raw[len(SEARCHER_MARK) :])
    if find_builtin_action(raw):
        return Action(ActionKind.BUILTIN, raw)
    raise ValueError(f"Unknown action: {raw}")


def resolve_output_mode(action: Action, requested: Optional[OutputMode]) -> OutputMode:
    """Return the output mode an action can actually honor.

    No-result actions never output, prompt actions always stream into a
    popup, and searchers only open a browser.
    """

    if action.kind in (ActionKind.NONE, ActionKind.SEARCHER):
        return OutputMode.NONE
    if action.kind is ActionKind.PROMPT:
        return OutputMode.POPUP
    if action.kind is ActionKind.BUILTIN:
        processor = find_builtin_action(action.id)
        if processor and processor.no_result:
            return OutputMode.NONE
    return requested or OutputMode.REPLACE


def build_rule(raw: dict[str, Any], shortcut: str) -> Rule:
    """Normalize one rule config into a Rule value."""

    case = parse_case(raw.get("case", ""))
    action = parse_action(raw.get("action", ""))
    requested = raw.get("output_mode") or raw.get("outputMode")
    return Rule(
        id=raw.get("id") or str(uuid.uuid4()),
        shortcut=shortcut,
        case=case,
        action=action,
        display_mode=DisplayMode(raw.get("display_mode") or raw.get("displayMode") or DisplayMode.ICON.value),
        output_mode=resolve_output_mode(action, OutputMode(requested) if requested else None),
        preview=bool(raw.get("preview", False)),
        save_history=bool(raw.get("history", raw.get("save_history", True))),
        copy_to_clipboard=bool(raw.get("clipboard", raw.get("copy_to_clipboard", False))),
    )


def rule_to_dict(rule: Rule) -> dict[str, Any]:
    """Serialize a rule back to its config/toolbar payload form."""

    payload: dict[str, Any] = {
        "id": rule.id,
        "shortcut": rule.shortcut,
        "case": rule.case.key,
        "action": rule.action.key,
        "display_mode": rule.display_mode.value,
        "output_mode": rule.output_mode.value if rule.output_mode else None,
        "preview": rule.preview,
        "history": rule.save_history,
        "clipboard": rule.copy_to_clipboard,
    }
    if rule.case_label:
        payload["case_label"] = rule.case_label
    if rule.action_label:
        payload["action_label"] = rule.action_label
    return payload


def build_shortcuts(shortcuts_config: dict[str, dict[str, Any]]) -> dict[str, Shortcut]:
    """Build shortcuts from config, skipping rules that fail to parse."""

    shortcuts: dict[str, Shortcut] = {}
    for trigger, raw in shortcuts_config.items():
        try:
            key = normalize_shortcut(trigger)
        except ValueError:
            LOGGER.warning("Skipping shortcut %r: invalid trigger", trigger)
            continue
        rules: list[Rule] = []
        for raw_rule in raw.get("rules", []) or []:
            try:
                rule = build_rule(raw_rule, key)
            except ValueError as exc:
                LOGGER.warning("Skipping rule on %s: %s", key, exc)
                continue
            if any(existing.case == rule.case and existing.action == rule.action for existing in rules):
                LOGGER.warning("Skipping duplicate rule on %s: %s -> %s", key, rule.case.key, rule.action.key)
                continue
            rules.append(rule)
        shortcuts[key] = Shortcut(
            trigger=key,
            mode=ExecutionMode(raw.get("mode", ExecutionMode.QUIET.value)),
            rules=rules,
            blacklist=list(raw.get("blacklist", []) or []),
            disabled=bool(raw.get("disabled", False)),
        )
    return shortcuts


@dataclass
class UserCatalog:
    """User-owned cases and actions, keyed by their unprefixed id."""

    regexps: dict[str, RegexpDef] = field(default_factory=dict)
    models: dict[str, ModelDef] = field(default_factory=dict)
    scripts: dict[str, ScriptDef] = field(default_factory=dict)
    prompts: dict[str, PromptDef] = field(default_factory=dict)
    searchers: dict[str, SearcherDef] = field(default_factory=dict)


def _collect(
    kind: str,
    items: Iterable[dict[str, Any]],
    factory: Callable[[dict[str, Any]], T],
    validator: Callable[[T], Optional[str]],
    problems: list[str],
) -> dict[str, T]:
    collected: dict[str, T] = {}
    for raw in items:
        try:
            item = factory(raw)
        except (KeyError, TypeError, ValueError) as exc:
            problems.append(f"{kind} {raw.get('id', '?')}: malformed definition ({exc})")
            continue
        error = validator(item)
        item_id = getattr(item, "id")
        if error:
            problems.append(f"{kind} {item_id}: {error}")
            continue
        if item_id in collected:
            problems.append(f"{kind} {item_id}: duplicate id")
            continue
        collected[item_id] = item
    return collected


def build_catalog(config: dict[str, Any]) -> tuple[UserCatalog, list[str]]:
    """Build the user catalog, returning it with any validation problems.

    Invalid definitions are left out of the catalog so they can never be
    matched or executed.
    """

    problems: list[str] = []
    catalog = UserCatalog(
        regexps=_collect(
            "regexp",
            config.get("regexps", []),
            lambda raw: RegexpDef(id=raw["id"], pattern=raw.get("pattern", ""), flags=raw.get("flags", "") or ""),
            validate_regexp,
            problems,
        ),
        models=_collect(
            "model",
            config.get("models", []),
            lambda raw: ModelDef(
                id=raw["id"],
                sample=raw.get("sample", ""),
                threshold=float(raw.get("threshold", 0.5)),
                trained=bool(raw.get("trained", raw.get("modelTrained", False))),
            ),
            validate_model,
            problems,
        ),
        scripts=_collect(
            "script",
            config.get("scripts", []),
            lambda raw: ScriptDef(id=raw["id"], lang=raw.get("lang", ""), script=raw.get("script", "")),
            validate_script,
            problems,
        ),
        prompts=_collect(
            "prompt",
            config.get("prompts", []),
            lambda raw: PromptDef(
                id=raw["id"],
                provider=raw.get("provider", ""),
                model=raw.get("model", ""),
                prompt=raw.get("prompt", ""),
                system_prompt=raw.get("system_prompt") or raw.get("systemPrompt"),
            ),
            validate_prompt,
            problems,
        ),
        searchers=_collect(
            "searcher",
            config.get("searchers", []),
            lambda raw: SearcherDef(id=raw["id"], url=raw.get("url", ""), browser=raw.get("browser") or None),
            validate_searcher,
            problems,
        ),
    )
    for problem in problems:
        LOGGER.warning("Rejected %s", problem)
    return catalog, problems


def find_dangling_references(shortcuts: dict[str, Shortcut], catalog: UserCatalog) -> list[str]:
    """List rules whose user case or action is missing from the catalog."""

    case_sources = {CaseKind.REGEXP: catalog.regexps, CaseKind.MODEL: catalog.models}
    action_sources = {
        ActionKind.SCRIPT: catalog.scripts,
        ActionKind.PROMPT: catalog.prompts,
        ActionKind.SEARCHER: catalog.searchers,
    }
    problems: list[str] = []
    for key, shortcut in shortcuts.items():
        for rule in shortcut.rules:
            cases = case_sources.get(rule.case.kind)
            if cases is not None and rule.case.id not in cases:
                problems.append(f"rule {rule.id} on {key}: unknown case {rule.case.key}")
            actions = action_sources.get(rule.action.kind)
            if actions is not None and rule.action.id not in actions:
                problems.append(f"rule {rule.id} on {key}: unknown action {rule.action.key}")
    return problems
