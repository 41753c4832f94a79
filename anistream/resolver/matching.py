"""Title similarity scoring used to gate provider search hits."""
from __future__ import annotations

import re
import unicodedata
from difflib import SequenceMatcher

DEFAULT_THRESHOLD = 0.6

_NON_WORD = re.compile(r"[^\w\s]", re.UNICODE)
_SPACES = re.compile(r"\s+")


def normalize_title(title: str) -> str:
    value = unicodedata.normalize("NFKC", title or "").casefold()
    value = value.replace("_", " ")
    value = _NON_WORD.sub(" ", value)
    return _SPACES.sub(" ", value).strip()


def title_confidence(query: str, candidate: str) -> float:
    """Score in [0, 1]: the better of edit-distance ratio and token overlap."""

    left = normalize_title(query)
    right = normalize_title(candidate)
    if not left or not right:
        return 0.0
    if left == right:
        return 1.0

    ratio = SequenceMatcher(None, left, right).ratio()
    left_tokens = set(left.split())
    right_tokens = set(right.split())
    overlap = len(left_tokens & right_tokens) / len(left_tokens | right_tokens)
    return round(max(ratio, overlap), 4)


def is_accepted(confidence: float, threshold: float = DEFAULT_THRESHOLD) -> bool:
    return confidence >= threshold
