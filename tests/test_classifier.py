from __future__ import annotations

import asyncio

import pytest

from textgo.adapters.classifier import TrigramClassifier, cosine_similarity, trigrams


def test_trigrams_are_padded_and_lowercased() -> None:
    grams = trigrams("Ab")
    assert grams["  a"] == 1
    assert grams[" ab"] == 1
    assert grams["ab "] == 1
    assert grams["b  "] == 1


def test_cosine_similarity_bounds() -> None:
    assert cosine_similarity({"a": 1.0}, {"a": 2.0}) == pytest.approx(1.0)
    assert cosine_similarity({"a": 1.0}, {"b": 1.0}) == 0.0
    assert cosine_similarity({}, {"a": 1.0}) == 0.0


def test_train_predict_and_forget(tmp_path) -> None:
    models_dir = str(tmp_path / "models")
    classifier = TrigramClassifier(models_dir)
    sample = "Order #1234 has shipped\nOrder #98 has shipped\nOrder #5512 is on its way"

    assert asyncio.run(classifier.predict("orders", "anything")) is None

    asyncio.run(classifier.train("orders", sample))

    similar = asyncio.run(classifier.predict("orders", "Order #777 has shipped"))
    unrelated = asyncio.run(classifier.predict("orders", "zzz qqq xxx"))
    assert similar is not None and unrelated is not None
    assert similar > 0.4
    assert similar > unrelated
    assert asyncio.run(classifier.get_model_info("orders"))["sizeKB"] > 0

    # A fresh instance reads the stored profile.
    reloaded = TrigramClassifier(models_dir)
    assert asyncio.run(reloaded.predict("orders", "Order #777 has shipped")) == pytest.approx(similar)

    asyncio.run(classifier.clear_saved_model("orders"))
    assert asyncio.run(classifier.predict("orders", "Order #777 has shipped")) is None
    assert asyncio.run(classifier.get_model_info("orders")) == {}


def test_empty_sample_is_rejected(tmp_path) -> None:
    classifier = TrigramClassifier(str(tmp_path))
    with pytest.raises(ValueError):
        asyncio.run(classifier.train("empty", "\n  \n"))
