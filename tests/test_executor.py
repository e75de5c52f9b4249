from __future__ import annotations

import asyncio

from fakes import FakeDesktop, FakeHistory, FakeRuntime

from textgo.core.executor import ExecutorChain, render_prompt
from textgo.core.models import (
    NO_ACTION,
    SKIP,
    Action,
    ActionKind,
    Entry,
    ExecutionResult,
    OutputMode,
    PromptDef,
    Rule,
    ScriptDef,
    SearcherDef,
)
from textgo.core.rules_engine import UserCatalog

CATALOG = UserCatalog(
    scripts={"shout": ScriptDef("shout", "python", "def process(data):\n    return data['selection'].upper()")},
    prompts={
        "explain": PromptDef(
            "explain",
            provider="ollama",
            model="llama3",
            prompt="Explain {{selection}} (clipboard: {{clipboard}})",
            system_prompt="Be brief.",
        )
    },
    searchers={"google": SearcherDef("google", "https://www.google.com/search?q={{selection}}", browser="firefox")},
)


def _rule(action: Action, **kwargs) -> Rule:
    return Rule(id="r1", shortcut="Alt+A", case=SKIP, action=action, **kwargs)


def _chain(
    desktop: FakeDesktop,
    history: FakeHistory | None = None,
    runtime: FakeRuntime | None = None,
) -> ExecutorChain:
    return ExecutorChain.build(CATALOG, desktop, runtime or FakeRuntime(ExecutionResult("SCRIPTED")), history)


def test_default_action_shows_main_window() -> None:
    desktop = FakeDesktop()
    result = asyncio.run(_chain(desktop).execute(_rule(NO_ACTION), "text"))
    assert result is None
    assert desktop.main_window == 1
    assert desktop.replaced == []


def test_builtin_replaces_selection() -> None:
    desktop = FakeDesktop()
    history = FakeHistory()
    rule = _rule(Action(ActionKind.BUILTIN, "snake_case"), copy_to_clipboard=True)

    result = asyncio.run(_chain(desktop, history).execute(rule, "helloWorld"))

    assert result == "hello_world"
    assert desktop.replaced == [("hello_world", True)]
    assert history.entries[0].result == "hello_world"
    assert history.entries[0].action_type == "builtin"
    assert history.entries[0].action_label == "snake_case"


def test_builtin_popup_output() -> None:
    desktop = FakeDesktop()
    rule = _rule(Action(ActionKind.BUILTIN, "reverse"), output_mode=OutputMode.POPUP, copy_to_clipboard=True)

    asyncio.run(_chain(desktop).execute(rule, "abc"))

    assert desktop.replaced == []
    assert len(desktop.popups) == 1
    assert desktop.popups[0].result == "cba"
    assert desktop.popups[0].copy_on_popup is True


def test_preview_never_replaces_or_pops_up() -> None:
    desktop = FakeDesktop()
    history = FakeHistory()
    chain = _chain(desktop, history)

    rules = [
        _rule(Action(ActionKind.BUILTIN, "upper_case"), preview=True),
        _rule(Action(ActionKind.BUILTIN, "upper_case"), output_mode=OutputMode.POPUP, preview=True),
        _rule(Action(ActionKind.SCRIPT, "shout"), preview=True),
        _rule(Action(ActionKind.PROMPT, "explain"), preview=True),
    ]
    results = [asyncio.run(chain.execute(rule, "hello")) for rule in rules]

    assert results[:3] == ["HELLO", "HELLO", "SCRIPTED"]
    assert results[3].startswith("Explain hello")
    assert desktop.replaced == []
    assert desktop.popups == []
    # History is still written for previews.
    assert len(history.entries) == 4


def test_preview_of_side_effect_action_does_nothing() -> None:
    desktop = FakeDesktop(clipboard="before")
    result = asyncio.run(_chain(desktop).execute(_rule(Action(ActionKind.BUILTIN, "copy"), preview=True), "new"))
    assert result is None
    assert desktop.clipboard == "before"


def test_copy_action_sets_clipboard() -> None:
    desktop = FakeDesktop(clipboard="before")
    result = asyncio.run(_chain(desktop).execute(_rule(Action(ActionKind.BUILTIN, "copy")), "new"))
    assert result is None
    assert desktop.clipboard == "new"
    assert desktop.replaced == []


def test_open_urls_opens_each_url() -> None:
    desktop = FakeDesktop()
    text = "see https://example.com and http://test.org/page"
    asyncio.run(_chain(desktop).execute(_rule(Action(ActionKind.BUILTIN, "open_urls")), text))
    assert [url for url, _ in desktop.urls] == ["https://example.com", "http://test.org/page"]


def test_script_receives_data_and_replaces() -> None:
    desktop = FakeDesktop(clipboard="clip")
    history = FakeHistory()
    runtime = FakeRuntime(ExecutionResult("HELLO"))

    result = asyncio.run(_chain(desktop, history, runtime).execute(_rule(Action(ActionKind.SCRIPT, "shout")), "hello"))

    assert result == "HELLO"
    lang, _, data = runtime.calls[0]
    assert lang == "python"
    assert data["selection"] == "hello"
    assert data["clipboard"] == "clip"
    assert data["datetime"]
    assert desktop.replaced == [("HELLO", False)]
    assert history.entries[0].script_lang == "python"


def test_script_error_is_recorded_but_not_applied() -> None:
    desktop = FakeDesktop()
    history = FakeHistory()
    runtime = FakeRuntime(ExecutionResult("Python execution failed:\n\nTraceback", error=True))

    result = asyncio.run(_chain(desktop, history, runtime).execute(_rule(Action(ActionKind.SCRIPT, "shout")), "hi"))

    assert result is None
    assert desktop.replaced == []
    assert history.entries[0].result.startswith("Python execution failed")


def test_prompt_renders_template_and_opens_popup() -> None:
    desktop = FakeDesktop(clipboard="CLIP")
    history = FakeHistory()

    result = asyncio.run(_chain(desktop, history).execute(_rule(Action(ActionKind.PROMPT, "explain")), "x + y"))

    assert result == "Explain x + y (clipboard: CLIP)"
    assert desktop.replaced == []
    entry = desktop.popups[0]
    assert entry.provider == "ollama"
    assert entry.model == "llama3"
    assert entry.system_prompt == "Be brief."
    assert history.entries[0] is entry


def test_searcher_opens_trimmed_url() -> None:
    desktop = FakeDesktop()
    result = asyncio.run(_chain(desktop).execute(_rule(Action(ActionKind.SEARCHER, "google")), "  textgo  "))
    assert result == "https://www.google.com/search?q=textgo"
    assert desktop.urls == [("https://www.google.com/search?q=textgo", "firefox")]
    assert desktop.replaced == []


def test_save_history_flag_is_respected() -> None:
    history = FakeHistory()
    chain = _chain(FakeDesktop(), history)
    for action in [Action(ActionKind.BUILTIN, "trim"), Action(ActionKind.PROMPT, "explain")]:
        asyncio.run(chain.execute(_rule(action, save_history=False), "text"))
    assert history.entries == []


def test_unknown_user_action_produces_nothing() -> None:
    desktop = FakeDesktop()
    assert asyncio.run(_chain(desktop).execute(_rule(Action(ActionKind.SCRIPT, "missing")), "x")) is None
    assert desktop.replaced == []


def test_entry_records_shortcut_and_case_label() -> None:
    history = FakeHistory()
    rule = Rule(
        id="r1",
        shortcut="Alt+A",
        case=SKIP,
        action=Action(ActionKind.BUILTIN, "trim"),
        case_label="English",
    )
    asyncio.run(_chain(FakeDesktop(), history).execute(rule, " x "))
    entry = history.entries[0]
    assert entry.shortcut == "Alt+A"
    assert entry.case_label == "English"
    assert entry.selection == " x "


def test_render_prompt_substitutes_all_parameters() -> None:
    prompt = PromptDef("p", "openai", "gpt", "{{selection}}|{{clipboard}}|{{datetime}}|{{selection}}")
    entry = Entry(id="1", shortcut="Alt+A", datetime="2024-01-01T00:00:00.000+00:00", clipboard="c", selection="s")
    assert render_prompt(prompt, entry) == "s|c|2024-01-01T00:00:00.000+00:00|s"
