"""
Language Detector: guesses the spoken language from a media filename.

Filenames are short and noisy, so detection runs as a cascade from the
cheapest and most certain method to the most uncertain one:

  1. Pattern map     -- configured substrings such as "arabic" or "[es]"
  2. Script ranges   -- Unicode blocks present in the name (enhanced+)
  3. Text classifier -- langdetect on the cleaned-up name (auto only)
  4. "auto"          -- let the transcription engine detect it

Each detector returns a language code or None; the first code wins.
"""

import logging
import os
import re
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from langdetect import DetectorFactory, detect_langs
from langdetect.lang_detect_exception import LangDetectException

from .video_id import VIDEO_ID_PATTERN

logger = logging.getLogger(__name__)

# Deterministic classifier results across runs
DetectorFactory.seed = 0

AUTO = "auto"

METHOD_LEVELS = {"manual": 0, "enhanced": 1, "auto": 2}

# (language, [(first, last), ...]) in priority order.
# Kana comes before Han so Japanese names mixing kanji and kana are not
# reported as Chinese.
SCRIPT_RANGES: List[Tuple[str, List[Tuple[int, int]]]] = [
    ("ar", [(0x0600, 0x06FF), (0x0750, 0x077F), (0x08A0, 0x08FF),
            (0xFB50, 0xFDFF), (0xFE70, 0xFEFF)]),
    ("ja", [(0x3040, 0x309F), (0x30A0, 0x30FF), (0x31F0, 0x31FF)]),
    ("ko", [(0xAC00, 0xD7AF), (0x1100, 0x11FF), (0x3130, 0x318F)]),
    ("zh", [(0x4E00, 0x9FFF), (0x3400, 0x4DBF), (0xF900, 0xFAFF)]),
    ("ru", [(0x0400, 0x04FF), (0x0500, 0x052F)]),
    ("el", [(0x0370, 0x03FF), (0x1F00, 0x1FFF)]),
    ("he", [(0x0590, 0x05FF)]),
    ("hi", [(0x0900, 0x097F)]),
    ("bn", [(0x0980, 0x09FF)]),
    ("ta", [(0x0B80, 0x0BFF)]),
    ("th", [(0x0E00, 0x0E7F)]),
    ("ka", [(0x10A0, 0x10FF)]),
    ("hy", [(0x0530, 0x058F)]),
]

# langdetect output -> transcription engine language code
LANGDETECT_CODES = {
    "af": "af", "ar": "ar", "bg": "bg", "bn": "bn", "ca": "ca",
    "cs": "cs", "cy": "cy", "da": "da", "de": "de", "el": "el",
    "en": "en", "es": "es", "et": "et", "fa": "fa", "fi": "fi",
    "fr": "fr", "gu": "gu", "he": "he", "iw": "he", "hi": "hi",
    "hr": "hr", "hu": "hu", "id": "id", "it": "it", "ja": "ja",
    "kn": "kn", "ko": "ko", "lt": "lt", "lv": "lv", "mk": "mk",
    "ml": "ml", "mr": "mr", "ne": "ne", "nl": "nl", "no": "no",
    "pa": "pa", "pl": "pl", "pt": "pt", "ro": "ro", "ru": "ru",
    "sk": "sk", "sl": "sl", "so": "so", "sq": "sq", "sv": "sv",
    "sw": "sw", "ta": "ta", "te": "te", "th": "th", "tl": "tl",
    "tr": "tr", "uk": "uk", "ur": "ur", "vi": "vi",
    "zh-cn": "zh", "zh-tw": "zh",
}

_DIGITS = re.compile(r"\d+")
_PUNCTUATION = re.compile(r"[^\w\s]|_")
_SPACES = re.compile(r"\s+")


@dataclass(frozen=True)
class LanguageResult:
    """Outcome of the cascade; ``language`` is a code, AUTO, or None."""
    language: Optional[str]
    method: str

    @property
    def is_auto(self) -> bool:
        return self.language == AUTO

    @property
    def engine_language(self) -> Optional[str]:
        """Value for the engine's language option (None = engine detects)."""
        if self.language in (None, AUTO):
            return None
        return self.language


def detect_script(text: str) -> Optional[str]:
    """Language of the first SCRIPT_RANGES entry with a codepoint in ``text``."""
    codepoints = {ord(ch) for ch in text}
    for language, ranges in SCRIPT_RANGES:
        for first, last in ranges:
            if any(first <= cp <= last for cp in codepoints):
                return language
    return None


def clean_phrase(filename: str) -> str:
    """Strip extension, video ID, digits and punctuation from a filename."""
    stem = os.path.splitext(os.path.basename(filename))[0]
    stem = VIDEO_ID_PATTERN.sub("", stem)
    stem = _DIGITS.sub(" ", stem)
    stem = _PUNCTUATION.sub(" ", stem)
    return _SPACES.sub(" ", stem).strip()


class LanguageDetector:
    """
    Runs the detection cascade for one configuration.

    Args:
        config: LanguageConfig (detect, default_language, method, map,
            min_phrase_length, min_confidence).
    """

    def __init__(self, config):
        self.enabled = getattr(config, "detect", True)
        self.default_language = getattr(config, "default_language", None)
        self.method = getattr(config, "method", "enhanced")
        self.patterns = getattr(config, "patterns", None) or OrderedDict()
        self.min_phrase_length = getattr(config, "min_phrase_length", 10)
        self.min_confidence = getattr(config, "min_confidence", 0.8)

        level = METHOD_LEVELS.get(self.method, METHOD_LEVELS["enhanced"])
        chain: List[Tuple[str, int, Callable[[str], Optional[str]]]] = [
            ("pattern", METHOD_LEVELS["manual"], self.match_pattern),
            ("script", METHOD_LEVELS["enhanced"], self.match_script),
            ("classifier", METHOD_LEVELS["auto"], self.classify),
        ]
        self.detectors = [(name, fn) for name, min_level, fn in chain if level >= min_level]

    def detect(self, filename: str) -> LanguageResult:
        """
        Pick the language parameter for a media file.

        Returns:
            The configured default when detection is disabled, the first
            detector hit otherwise, or AUTO when nothing matched.
        """
        if not self.enabled:
            return LanguageResult(self.default_language, "default")

        for name, detector in self.detectors:
            language = detector(filename)
            if language:
                logger.info(f"Language detected for {filename}: {language} (via {name})")
                return LanguageResult(language, name)

        logger.info(f"No language detected for {filename}, engine will auto-detect")
        return LanguageResult(AUTO, AUTO)

    def match_pattern(self, filename: str) -> Optional[str]:
        lowered = filename.lower()
        for pattern, language in self.patterns.items():
            if pattern.lower() in lowered:
                logger.debug(f"Pattern '{pattern}' matched {filename}")
                return language
        return None

    def match_script(self, filename: str) -> Optional[str]:
        return detect_script(os.path.basename(filename))

    def classify(self, filename: str) -> Optional[str]:
        """langdetect on the cleaned name; None when unsure or unmapped."""
        phrase = clean_phrase(filename)
        if len(phrase) <= self.min_phrase_length:
            return None

        try:
            candidates = detect_langs(phrase)
        except LangDetectException as e:
            logger.debug(f"Classifier gave no result for '{phrase}': {e}")
            return None

        if not candidates:
            return None

        best = candidates[0]
        if best.prob < self.min_confidence:
            logger.debug(f"Classifier unsure for '{phrase}': {best.lang} ({best.prob:.2f})")
            return None

        language = LANGDETECT_CODES.get(best.lang)
        if language is None:
            logger.debug(f"Classifier language '{best.lang}' has no engine code")
        return language
