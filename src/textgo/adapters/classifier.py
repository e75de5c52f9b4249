"""Trainable custom classifier adapter.

Each model is a character trigram profile of the user's positive samples,
stored as JSON next to the other app data. Prediction is the cosine
similarity between that profile and the text's own trigrams.
"""

from __future__ import annotations

import asyncio
import json
import logging
import math
import os
import re
from collections import Counter
from typing import Any, Optional

LOGGER = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")
_UNSAFE_NAME = re.compile(r"[^A-Za-z0-9_.-]")


def trigrams(text: str) -> Counter:
    normalized = f"  {_WHITESPACE.sub(' ', text.strip().lower())}  "
    return Counter(normalized[i : i + 3] for i in range(len(normalized) - 2))


def cosine_similarity(left: dict[str, float], right: dict[str, float]) -> float:
    if not left or not right:
        return 0.0
    dot = sum(value * right.get(key, 0.0) for key, value in left.items())
    norm = math.sqrt(sum(v * v for v in left.values())) * math.sqrt(sum(v * v for v in right.values()))
    return dot / norm if norm else 0.0


class TrigramClassifier:
    """Satisfies the ClassifierPort contract with one JSON file per model."""

    def __init__(self, models_dir: str) -> None:
        self._models_dir = models_dir
        self._profiles: dict[str, dict[str, float]] = {}

    def _path(self, model_id: str) -> str:
        return os.path.join(self._models_dir, f"{_UNSAFE_NAME.sub('_', model_id)}.json")

    def _load(self, model_id: str) -> Optional[dict[str, float]]:
        if model_id in self._profiles:
            return self._profiles[model_id]
        path = self._path(model_id)
        if not os.path.exists(path):
            return None
        with open(path, "r", encoding="utf-8") as handle:
            profile = json.load(handle).get("profile", {})
        self._profiles[model_id] = profile
        return profile

    def train_sync(self, model_id: str, sample: str) -> None:
        # Every non-empty line of the sample is one positive example.
        examples = [line for line in sample.splitlines() if line.strip()]
        if not examples:
            raise ValueError("Training sample is empty")
        profile: Counter = Counter()
        for example in examples:
            profile.update(trigrams(example))
        total = sum(profile.values())
        normalized = {gram: count / total for gram, count in profile.items()}

        os.makedirs(self._models_dir, exist_ok=True)
        with open(self._path(model_id), "w", encoding="utf-8") as handle:
            json.dump({"id": model_id, "examples": len(examples), "profile": normalized}, handle, ensure_ascii=False)
        self._profiles[model_id] = normalized
        LOGGER.info("Trained model %s on %d example(s)", model_id, len(examples))

    def predict_sync(self, model_id: str, text: str) -> Optional[float]:
        profile = self._load(model_id)
        if profile is None:
            return None
        return cosine_similarity(dict(trigrams(text)), profile)

    async def train(self, model_id: str, sample: str) -> None:
        await asyncio.to_thread(self.train_sync, model_id, sample)

    async def predict(self, model_id: str, text: str) -> Optional[float]:
        return await asyncio.to_thread(self.predict_sync, model_id, text)

    async def clear_saved_model(self, model_id: str) -> None:
        self._profiles.pop(model_id, None)
        path = self._path(model_id)
        if os.path.exists(path):
            os.remove(path)
            LOGGER.info("Removed model %s", model_id)

    async def get_model_info(self, model_id: str) -> dict[str, Any]:
        path = self._path(model_id)
        if not os.path.exists(path):
            return {}
        return {"sizeKB": round(os.path.getsize(path) / 1024, 2)}
