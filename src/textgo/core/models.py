"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to any UI or storage specific types.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Optional

# Prefixes marking user-defined cases and actions in their string form.
REGEXP_MARK = "regexp-"
MODEL_MARK = "model-"
SCRIPT_MARK = "script-"
PROMPT_MARK = "prompt-"
SEARCHER_MARK = "searcher-"


class CaseKind(str, Enum):
    SKIP = "skip"
    BUILTIN = "builtin"
    NATURAL = "natural"
    PROGRAMMING = "programming"
    REGEXP = "regexp"
    MODEL = "model"


class ActionKind(str, Enum):
    NONE = "none"
    BUILTIN = "builtin"
    SCRIPT = "script"
    PROMPT = "prompt"
    SEARCHER = "searcher"


class ExecutionMode(str, Enum):
    QUIET = "quiet"
    TOOLBAR = "toolbar"


class OutputMode(str, Enum):
    REPLACE = "replace"
    POPUP = "popup"
    NONE = "none"


class DisplayMode(str, Enum):
    ICON = "icon"
    LABEL = "label"
    BOTH = "both"


_CASE_MARKS = {CaseKind.REGEXP: REGEXP_MARK, CaseKind.MODEL: MODEL_MARK}
_ACTION_MARKS = {
    ActionKind.SCRIPT: SCRIPT_MARK,
    ActionKind.PROMPT: PROMPT_MARK,
    ActionKind.SEARCHER: SEARCHER_MARK,
}


@dataclass(frozen=True)
class Case:
    """A text classification test, tagged by the strategy that evaluates it."""

    kind: CaseKind
    id: str = ""

    @property
    def key(self) -> str:
        """Serialized identifier, unique across built-in and user cases."""

        return f"{_CASE_MARKS.get(self.kind, '')}{self.id}"


@dataclass(frozen=True)
class Action:
    """A side-effecting operation, tagged by the executor that performs it."""

    kind: ActionKind
    id: str = ""

    @property
    def key(self) -> str:
        return f"{_ACTION_MARKS.get(self.kind, '')}{self.id}"


SKIP = Case(CaseKind.SKIP)
NO_ACTION = Action(ActionKind.NONE)


@dataclass(frozen=True)
class Rule:
    """A (case, action, options) triple bound to a shortcut."""

    id: str
    shortcut: str
    case: Case
    action: Action
    display_mode: DisplayMode = DisplayMode.ICON
    output_mode: Optional[OutputMode] = None
    preview: bool = False
    save_history: bool = True
    copy_to_clipboard: bool = False
    case_label: Optional[str] = None
    action_label: Optional[str] = None


@dataclass
class Shortcut:
    """A trigger plus its execution mode and ordered rule list."""

    trigger: str
    mode: ExecutionMode = ExecutionMode.QUIET
    rules: list[Rule] = field(default_factory=list)
    blacklist: list[str] = field(default_factory=list)
    disabled: bool = False


@dataclass
class Entry:
    """History record of one dispatched action."""

    id: str
    shortcut: str
    datetime: str
    clipboard: str
    selection: str
    case_label: Optional[str] = None
    action_type: Optional[str] = None
    action_label: Optional[str] = None
    result: Optional[str] = None
    script_lang: Optional[str] = None
    provider: Optional[str] = None
    model: Optional[str] = None
    system_prompt: Optional[str] = None
    response: Optional[str] = None
    copy_on_popup: Optional[bool] = None

    def to_dict(self) -> dict[str, Any]:
        """Return the popup/history payload, omitting unset fields."""

        return {key: value for key, value in asdict(self).items() if value is not None}

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "Entry":
        known = {name for name in cls.__dataclass_fields__}
        return cls(**{key: value for key, value in payload.items() if key in known})


@dataclass(frozen=True)
class RegexpDef:
    id: str
    pattern: str
    flags: str = ""


@dataclass(frozen=True)
class ModelDef:
    id: str
    sample: str
    threshold: float = 0.5
    trained: bool = False


@dataclass(frozen=True)
class ScriptDef:
    id: str
    lang: str
    script: str


@dataclass(frozen=True)
class PromptDef:
    id: str
    provider: str
    model: str
    prompt: str
    system_prompt: Optional[str] = None


@dataclass(frozen=True)
class SearcherDef:
    id: str
    url: str
    browser: Optional[str] = None


@dataclass(frozen=True)
class ExecutionResult:
    """Text produced by a script or runtime, flagged when it is an error."""

    text: str
    error: bool = False
