"""Language detection adapters.

Natural language ranking uses lingua's n-gram models restricted to the
supported codes. Programming language ranking uses magika's pretrained
content-type model. Both detectors are built lazily on first use and shared
for the rest of the process.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Optional

from lingua import Language, LanguageDetector, LanguageDetectorBuilder
from magika import Magika, PredictionMode

from textgo.core.cases import NATURAL_CODES, PROGRAMMING_IDS
from textgo.core.ports import Ranking

LOGGER = logging.getLogger(__name__)

NATURAL_LANGUAGES: dict[str, Language] = {
    "eng": Language.ENGLISH,
    "cmn": Language.CHINESE,
    "jpn": Language.JAPANESE,
    "kor": Language.KOREAN,
    "rus": Language.RUSSIAN,
    "fra": Language.FRENCH,
    "deu": Language.GERMAN,
    "spa": Language.SPANISH,
    "por": Language.PORTUGUESE,
    "arb": Language.ARABIC,
}

# magika content type label -> programming case id. Other labels are never ranked.
MAGIKA_LABELS: dict[str, str] = {
    "asm": "asm",
    "batch": "bat",
    "c": "c",
    "cs": "cs",
    "cpp": "cpp",
    "clojure": "clj",
    "cmake": "cmake",
    "cobol": "cbl",
    "coffeescript": "coffee",
    "css": "css",
    "csv": "csv",
    "dart": "dart",
    "dm": "dm",
    "dockerfile": "dockerfile",
    "elixir": "ex",
    "erlang": "erl",
    "fortran": "f90",
    "go": "go",
    "groovy": "groovy",
    "haskell": "hs",
    "html": "html",
    "ini": "ini",
    "java": "java",
    "javascript": "js",
    "json": "json",
    "julia": "jl",
    "kotlin": "kt",
    "lisp": "lisp",
    "lua": "lua",
    "makefile": "makefile",
    "markdown": "md",
    "matlab": "matlab",
    "objectivec": "mm",
    "ocaml": "ml",
    "pascal": "pas",
    "perl": "pm",
    "php": "php",
    "powershell": "ps1",
    "prolog": "prolog",
    "python": "py",
    "r": "r",
    "ruby": "rb",
    "rust": "rs",
    "scala": "scala",
    "shell": "sh",
    "sql": "sql",
    "swift": "swift",
    "latex": "tex",
    "toml": "toml",
    "typescript": "ts",
    "verilog": "v",
    "vba": "vba",
    "xml": "xml",
    "yaml": "yaml",
}


class LinguaNaturalDetector:
    """Ranks the supported natural languages of a text."""

    def __init__(self, min_length: int = 2) -> None:
        self._min_length = min_length
        self._detector: Optional[LanguageDetector] = None
        self._lock = threading.Lock()
        self._codes = {language: code for code, language in NATURAL_LANGUAGES.items() if code in NATURAL_CODES}

    def _get_detector(self) -> LanguageDetector:
        with self._lock:
            if self._detector is None:
                LOGGER.info("Loading natural language models")
                self._detector = LanguageDetectorBuilder.from_languages(*self._codes).build()
            return self._detector

    def rank(self, text: str) -> Ranking:
        text = text.strip()
        if len(text) < self._min_length:
            return []
        values = self._get_detector().compute_language_confidence_values(text)
        ranking = [(self._codes[value.language], float(value.value)) for value in values if value.language in self._codes]
        ranking.sort(key=lambda item: item[1], reverse=True)
        return ranking

    async def detect(self, text: str) -> Ranking:
        return await asyncio.to_thread(self.rank, text)


class MagikaProgrammingDetector:
    """Ranks programming languages with magika's pretrained content-type model.

    magika reports its best guess and that guess's probability, so the
    ranking holds at most one language.
    """

    def __init__(self, magika: Optional[Magika] = None) -> None:
        self._magika = magika
        self._lock = threading.Lock()

    def _get_magika(self) -> Magika:
        with self._lock:
            if self._magika is None:
                LOGGER.info("Loading programming language model")
                # Best guess mode keeps low-confidence code labels instead of folding them into "txt".
                self._magika = Magika(prediction_mode=PredictionMode.BEST_GUESS)
            return self._magika

    def rank(self, text: str) -> Ranking:
        if not text.strip():
            return []
        result = self._get_magika().identify_bytes(text.encode("utf-8"))
        if not result.ok:
            LOGGER.warning("Programming language model failed: %s", result.status)
            return []
        label = str(result.output.label)
        language_id = MAGIKA_LABELS.get(label)
        if language_id is None or language_id not in PROGRAMMING_IDS:
            LOGGER.debug("Content type %s is not a programming language", label)
            return []
        return [(language_id, float(result.score))]

    async def detect(self, text: str) -> Ranking:
        return await asyncio.to_thread(self.rank, text)
