"""Validation helpers for user-defined cases and actions.

Every validator returns a human-readable message for the first problem it
finds, or None when the definition is usable. Invalid definitions are
rejected at configuration time and never reach the recognizer or executor
chains.
"""

from __future__ import annotations

import re
from typing import Optional

from textgo.core.models import ModelDef, PromptDef, RegexpDef, ScriptDef, SearcherDef

SCRIPT_LANGUAGES = ("python", "javascript")
REGEXP_FLAGS = "gimsuy"

_FLAG_BITS = {"i": re.IGNORECASE, "m": re.MULTILINE, "s": re.DOTALL}


class ValidationError(ValueError):
    """Raised when a user definition cannot be accepted."""


def regexp_flags(flags: str) -> int:
    """Translate JavaScript-style flag letters into ``re`` flag bits.

    ``g``, ``u`` and ``y`` have no effect on a single ``search`` and are
    accepted without changing the result.
    """

    bits = 0
    for flag in flags or "":
        if flag not in REGEXP_FLAGS:
            raise ValueError(f"unsupported flag: {flag}")
        bits |= _FLAG_BITS.get(flag, 0)
    return bits


def validate_id(value: str) -> Optional[str]:
    if not value or not value.strip():
        return "id is required"
    if any(ch.isspace() for ch in value):
        return "id must not contain whitespace"
    return None


def validate_regexp(regexp: RegexpDef) -> Optional[str]:
    error = validate_id(regexp.id)
    if error:
        return error
    if not regexp.pattern:
        return "pattern is required"
    try:
        re.compile(regexp.pattern, regexp_flags(regexp.flags))
    except (re.error, ValueError) as exc:
        return f"invalid pattern: {exc}"
    return None


def validate_model(model: ModelDef) -> Optional[str]:
    error = validate_id(model.id)
    if error:
        return error
    if not model.sample.strip():
        return "training sample is required"
    if not 0 <= model.threshold <= 1:
        return "threshold must be between 0 and 1"
    return None


def validate_script(script: ScriptDef) -> Optional[str]:
    error = validate_id(script.id)
    if error:
        return error
    if script.lang not in SCRIPT_LANGUAGES:
        return f"unsupported script language: {script.lang}"
    if not script.script.strip():
        return "script is required"
    return None


def validate_prompt(prompt: PromptDef) -> Optional[str]:
    error = validate_id(prompt.id)
    if error:
        return error
    if not prompt.provider:
        return "provider is required"
    if not prompt.model:
        return "model is required"
    if not prompt.prompt.strip():
        return "prompt is required"
    return None


def validate_searcher(searcher: SearcherDef) -> Optional[str]:
    error = validate_id(searcher.id)
    if error:
        return error
    url = searcher.url.strip()
    if not url:
        return "url is required"
    if not url.lower().startswith(("http://", "https://")):
        return "url must start with http:// or https://"
    return None


_VALIDATORS = {
    RegexpDef: validate_regexp,
    ModelDef: validate_model,
    ScriptDef: validate_script,
    PromptDef: validate_prompt,
    SearcherDef: validate_searcher,
}


def ensure_valid(definition: RegexpDef | ModelDef | ScriptDef | PromptDef | SearcherDef) -> None:
    """Raise ValidationError when a user definition is not usable."""

    error = _VALIDATORS[type(definition)](definition)
    if error:
        raise ValidationError(f"{definition.id}: {error}")
