"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

DEFAULT_HISTORY_SIZE = 100


@dataclass(frozen=True)
class HistoryConfig:
    """Bounded history ring settings; ``persist`` keeps it in SQLite."""

    max_size: int = DEFAULT_HISTORY_SIZE
    persist: bool = True


@dataclass(frozen=True)
class RuntimeConfig:
    """Interpreter locations for user scripts; empty means search PATH."""

    python_path: Optional[str] = None
    node_path: Optional[str] = None
    deno_path: Optional[str] = None


@dataclass(frozen=True)
class ProviderConfig:
    """A user-defined OpenAI-compatible LLM provider."""

    name: str
    base_url: str
    api_key: str = ""


@dataclass(frozen=True)
class HostsConfig:
    """Base URLs of locally hosted LLM servers."""

    ollama: str = "http://127.0.0.1:11434"
    lmstudio: str = "http://127.0.0.1:1234"
