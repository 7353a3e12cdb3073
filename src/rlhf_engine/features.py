"""Interpretable response features used by the reward model.

Every response maps onto the same closed set of seven features, each
pre-normalized so that learned weights stay comparable across responses.
"""
from __future__ import annotations

import re
from typing import Dict, Tuple

import numpy as np

FEATURE_NAMES: Tuple[str, ...] = (
    "length",
    "questionOverlap",
    "hasGreeting",
    "hasEmoji",
    "isPolite",
    "hasQuestion",
    "sentenceCount",
)

LENGTH_NORMALIZER = 500
SENTENCE_NORMALIZER = 5
MIN_WORD_LENGTH = 4

GREETINGS = (
    "olá", "oi", "bom dia", "boa tarde", "boa noite",
    "hello", "hi", "hey", "good morning", "good afternoon", "good evening",
)
POLITENESS_MARKERS = (
    "obrigado", "obrigada", "por favor", "desculpe",
    "thank you", "thanks", "please", "sorry",
)

_GREETING_RE = re.compile(r"^(?:%s)\b" % "|".join(re.escape(g) for g in GREETINGS), re.IGNORECASE)
_POLITE_RE = re.compile("|".join(re.escape(p) for p in POLITENESS_MARKERS), re.IGNORECASE)
_EMOJI_RE = re.compile("[\U0001F300-\U0001F9FF]")
_TERMINATOR_RE = re.compile(r"[.!?]+")


def _require_text(value, name: str) -> str:
    if not isinstance(value, str):
        raise TypeError(f"{name} must be str, got {type(value).__name__}")
    return value


def _content_words(text: str) -> set:
    return {w for w in text.lower().split() if len(w) >= MIN_WORD_LENGTH}


def _sentence_segments(text: str) -> int:
    # A non-empty text opens one segment; each terminator run opens the next.
    if not text:
        return 0
    return len(_TERMINATOR_RE.split(text))


def extract_features(response: str, question: str) -> Dict[str, float]:
    """Derive the feature vector for ``response`` answering ``question``.

    Pure and total for any text, including empty strings. Raises
    ``TypeError`` for non-text arguments instead of coercing them.
    """
    response = _require_text(response, "response")
    question = _require_text(question, "question")

    q_words = _content_words(question)
    r_words = _content_words(response)
    overlap = len(q_words & r_words) / max(1, len(q_words))

    return {
        "length": min(1.0, len(response) / LENGTH_NORMALIZER),
        "questionOverlap": overlap,
        "hasGreeting": 1.0 if _GREETING_RE.match(response) else 0.0,
        "hasEmoji": 0.5 if _EMOJI_RE.search(response) else 0.0,
        "isPolite": 1.0 if _POLITE_RE.search(response) else 0.0,
        "hasQuestion": 0.5 if "?" in response else 0.0,
        "sentenceCount": _sentence_segments(response) / SENTENCE_NORMALIZER,
    }


def feature_array(features: Dict[str, float]) -> np.ndarray:
    """Features as a vector ordered by ``FEATURE_NAMES``."""
    return np.array([features.get(name, 0.0) for name in FEATURE_NAMES], dtype=float)
