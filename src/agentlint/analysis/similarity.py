"""Token-overlap similarity for duplicate and contradiction detection.

The heuristic is a Jaccard ratio over lowercase word sets. Threshold,
minimum token length and polarity vocabularies are module constants so
each can be tuned and tested on its own.
"""

from __future__ import annotations

import re
from collections.abc import Set

MIN_TOKEN_LENGTH = 3
DUPLICATE_SIMILARITY_THRESHOLD = 0.8
CONTRADICTION_SUBJECT_THRESHOLD = 0.5
MIN_DUPLICATE_FILES = 3

POSITIVE_POLARITY: tuple[str, ...] = ("always", "must", "required")
NEGATIVE_POLARITY: tuple[str, ...] = (
    "never",
    "forbidden",
    "do not",
    "don't",
    "must not",
)

_WORD = re.compile(r"[a-z0-9_']+")
_POLARITY = re.compile(
    r"\b(?:must not|do not|don't|never|forbidden|always|must|required"
    r"|critical|important)\b",
    re.IGNORECASE,
)


def tokenize(text: str) -> set[str]:
    """Lowercase word set, dropping tokens shorter than MIN_TOKEN_LENGTH."""
    return {
        word
        for word in _WORD.findall(text.lower())
        if len(word) >= MIN_TOKEN_LENGTH
    }


def calculate_similarity(a: object, b: object) -> float:
    """Jaccard ratio of significant word sets; 0.0 for unusable input."""
    if not isinstance(a, str) or not isinstance(b, str):
        return 0.0
    return token_similarity(tokenize(a), tokenize(b))


def token_similarity(left: Set[str], right: Set[str]) -> float:
    """Jaccard ratio of two already tokenized word sets."""
    if not left or not right:
        return 0.0
    return len(left & right) / len(left | right)


def polarity(text: str) -> int:
    """+1 for affirmative rules, -1 for prohibitions, 0 when neutral.

    Negative markers win so "MUST NOT" reads as a prohibition.
    """
    lowered = text.lower()
    for marker in NEGATIVE_POLARITY:
        if re.search(rf"\b{re.escape(marker)}\b", lowered):
            return -1
    for marker in POSITIVE_POLARITY:
        if re.search(rf"\b{re.escape(marker)}\b", lowered):
            return 1
    return 0


def strip_polarity(text: str) -> str:
    """Remove rule keywords, leaving the subject of the instruction."""
    return _POLARITY.sub(" ", text)


def normalize_instruction(text: str) -> str:
    return " ".join(text.lower().split())
