"""Streaming LLM clients.

Every supported provider exposes an OpenAI-compatible chat completions
endpoint, so one AsyncOpenAI based client covers all of them. Prompts are
rendered by the executor; this module only streams the conversation and
writes the response back into the history entry.
"""

from __future__ import annotations

import asyncio
import logging
import os
from typing import AsyncIterator, Callable, Mapping, Optional

from openai import AsyncOpenAI

from textgo.core.config import HostsConfig, ProviderConfig
from textgo.core.models import Entry
from textgo.core.ports import HistoryPort, ResponseCachePort

LOGGER = logging.getLogger(__name__)

PROVIDER_BASE_URLS = {
    "openai": "https://api.openai.com/v1",
    "anthropic": "https://api.anthropic.com/v1",
    "google": "https://generativelanguage.googleapis.com/v1beta/openai",
    "openrouter": "https://openrouter.ai/api/v1",
    "xai": "https://api.x.ai/v1",
}

PROVIDER_API_KEYS = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "google": "GOOGLE_API_KEY",
    "openrouter": "OPENROUTER_API_KEY",
    "xai": "XAI_API_KEY",
}


class OpenAICompatibleClient:
    """Streams chat completions from one OpenAI-compatible endpoint."""

    def __init__(self, base_url: str, api_key: str, client: Optional[AsyncOpenAI] = None) -> None:
        self.base_url = base_url
        # Local servers ignore the key, but the SDK refuses an empty one.
        self._client = client or AsyncOpenAI(base_url=base_url, api_key=api_key or "not-needed")

    async def chat(self, model: str, messages: list[dict[str, str]]) -> AsyncIterator[str]:
        stream = await self._client.chat.completions.create(model=model, messages=messages, stream=True)
        try:
            async for chunk in stream:
                if not chunk.choices:
                    continue
                content = chunk.choices[0].delta.content
                if content:
                    yield content
        finally:
            await stream.close()


def create_llm_client(
    provider: str,
    hosts: Optional[HostsConfig] = None,
    providers: Optional[Mapping[str, ProviderConfig]] = None,
    env: Optional[Mapping[str, str]] = None,
) -> OpenAICompatibleClient:
    """Build the client for a builtin or user-defined provider name."""

    hosts = hosts or HostsConfig()
    env = os.environ if env is None else env
    if provider == "ollama":
        return OpenAICompatibleClient(f"{hosts.ollama.rstrip('/')}/v1", "ollama")
    if provider == "lmstudio":
        return OpenAICompatibleClient(f"{hosts.lmstudio.rstrip('/')}/v1", "lmstudio")
    if provider in PROVIDER_BASE_URLS:
        return OpenAICompatibleClient(PROVIDER_BASE_URLS[provider], env.get(PROVIDER_API_KEYS[provider], ""))
    custom = (providers or {}).get(provider)
    if custom is not None:
        return OpenAICompatibleClient(custom.base_url.rstrip("/"), custom.api_key)
    raise ValueError(f"Unknown LLM provider: {provider}")


def build_messages(entry: Entry) -> list[dict[str, str]]:
    messages = []
    if entry.system_prompt:
        messages.append({"role": "system", "content": entry.system_prompt})
    messages.append({"role": "user", "content": entry.result or ""})
    return messages


def cache_key(entry: Entry) -> str:
    return "\n\n".join(part for part in (entry.system_prompt or "", entry.result or "") if part)


class ChatSession:
    """One streamed answer for a prompt entry, with an explicit abort handle.

    Aborting stops consuming the stream. The popup and the history entry are
    left in place; the partial response is kept.
    """

    def __init__(
        self,
        client: OpenAICompatibleClient,
        entry: Entry,
        history: Optional[HistoryPort] = None,
        cache: Optional[ResponseCachePort] = None,
        on_chunk: Optional[Callable[[str], None]] = None,
    ) -> None:
        self._client = client
        self._entry = entry
        self._history = history
        self._cache = cache
        self._on_chunk = on_chunk
        self._task: Optional[asyncio.Task] = None
        self._aborted = False
        self.response = ""
        self.error: Optional[str] = None

    @property
    def aborted(self) -> bool:
        return self._aborted

    def abort(self) -> None:
        self._aborted = True
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def run(self, use_cache: bool = True) -> str:
        key = cache_key(self._entry)
        cached = self._cache.get_cached_response(key) if (self._cache and use_cache) else None
        if cached is not None:
            LOGGER.debug("Using cached response for entry %s", self._entry.id)
            self._emit(cached)
        else:
            self._task = asyncio.create_task(self._stream())
            try:
                await self._task
            except asyncio.CancelledError:
                if not self._aborted:
                    raise
                LOGGER.info("Chat for entry %s aborted", self._entry.id)
            except Exception as exc:
                LOGGER.exception("Chat for entry %s failed", self._entry.id)
                self.error = f"Request failed: {exc}"
            finally:
                self._task = None
            if self._cache and not self._aborted and self.error is None and self.response:
                self._cache.set_cached_response(key, self.response)

        self._entry.response = self.response
        if self._history is not None:
            self._history.update_response(self._entry.id, self.response)
        return self.response

    async def _stream(self) -> None:
        model = self._entry.model or ""
        async for chunk in self._client.chat(model, build_messages(self._entry)):
            self._emit(chunk)

    def _emit(self, chunk: str) -> None:
        self.response += chunk
        if self._on_chunk is not None:
            self._on_chunk(chunk)
