"""Static configuration for textgo.

All user-editable settings (shortcuts, rules, user cases and actions,
providers) live in a single JSON file. Secrets stay in the environment and
are loaded from ``.env``.
"""

import json
import os

from dotenv import load_dotenv

from textgo.core.config import DEFAULT_HISTORY_SIZE, HistoryConfig, HostsConfig, ProviderConfig, RuntimeConfig

load_dotenv()

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))

# TEXTGO_CONFIG overrides the config location, e.g. for a per-user file.
CONFIG_PATH = os.getenv("TEXTGO_CONFIG") or os.path.join(PROJECT_ROOT, "config.json")

# History database and trained models.
DATA_DIR = os.getenv("TEXTGO_DATA_DIR") or os.path.join(PROJECT_ROOT, "data")
DB_PATH = os.path.join(DATA_DIR, "textgo.db")
MODELS_DIR = os.path.join(DATA_DIR, "models")


def _load_json_config() -> dict:
    """Load config.json; a missing file means an empty configuration."""

    if not os.path.exists(CONFIG_PATH):
        return {}

    with open(CONFIG_PATH, "r", encoding="utf-8") as handle:
        loaded = json.load(handle)
    if not isinstance(loaded, dict):
        raise ValueError(f"Config root must be an object: {CONFIG_PATH}")
    return loaded


def save_json_config(config: dict) -> None:
    """Write the config back, keeping it human-editable."""

    directory = os.path.dirname(CONFIG_PATH)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(CONFIG_PATH, "w", encoding="utf-8") as handle:
        handle.write(json.dumps(config, indent=2, ensure_ascii=False) + "\n")


def _providers(raw_providers: list[dict]) -> dict[str, ProviderConfig]:
    """Custom OpenAI-compatible providers; keys come from the named env var."""

    providers: dict[str, ProviderConfig] = {}
    for entry in raw_providers:
        name = entry.get("name")
        base_url = entry.get("base_url")
        if not name or not base_url:
            continue
        api_key = os.getenv(entry.get("api_key_env", ""), "") if entry.get("api_key_env") else ""
        providers[name] = ProviderConfig(name=name, base_url=base_url, api_key=api_key)
    return providers


_CONFIG = _load_json_config()

# Expose the raw config for modules that need structured access.
CONFIG = _CONFIG

# Trigger -> {mode, rules, blacklist, disabled}.
SHORTCUTS_CONFIG = _CONFIG.get("shortcuts", {})

_history = _CONFIG.get("history", {})
HISTORY = HistoryConfig(
    max_size=int(_history.get("max_size", DEFAULT_HISTORY_SIZE)),
    persist=bool(_history.get("persist", True)),
)

_runtimes = _CONFIG.get("runtimes", {})
RUNTIMES = RuntimeConfig(
    python_path=_runtimes.get("python_path"),
    node_path=_runtimes.get("node_path"),
    deno_path=_runtimes.get("deno_path"),
)

_hosts = _CONFIG.get("hosts", {})
HOSTS = HostsConfig(
    ollama=_hosts.get("ollama", HostsConfig.ollama),
    lmstudio=_hosts.get("lmstudio", HostsConfig.lmstudio),
)

PROVIDERS = _providers(_CONFIG.get("providers", []))

# Logging configuration (optional).
LOGGING = _CONFIG.get("logging", {})
