"""Claim text cleanup, length window, and the "looks like a claim" heuristic."""

import re

CLAIM_MIN_LENGTH = 25
CLAIM_MAX_LENGTH = 280

COMMON_VERBS = (
    "is", "are", "was", "were", "be", "have", "has", "had",
    "show", "shows", "suggest", "suggests", "demonstrate", "demonstrates",
    "indicate", "indicates", "increase", "increases", "decrease", "decreases",
    "improve", "improves", "reduce", "reduces", "cause", "causes",
    "correlate", "correlates", "predict", "predicts",
)

_SPACE_RE = re.compile(r"\s+")
_VERB_RE = re.compile(r"\b(?:" + "|".join(COMMON_VERBS) + r")\b", re.IGNORECASE)
_BOUNDARY_RE = re.compile(r"[.!?;:]$")


def clean_claim_text(value) -> str:
    """Collapse runs of whitespace and trim. Non-strings become ""."""
    if not isinstance(value, str):
        return ""
    return _SPACE_RE.sub(" ", value).strip()


def is_length_allowed(
    text: str,
    min_length: int = CLAIM_MIN_LENGTH,
    max_length: int = CLAIM_MAX_LENGTH,
) -> bool:
    return min_length <= len(text) <= max_length


def has_verb(text: str) -> bool:
    return bool(_VERB_RE.search(text))


def has_punctuation_boundary(text: str) -> bool:
    return bool(_BOUNDARY_RE.search(text))


def is_likely_claim(
    text: str,
    min_length: int = CLAIM_MIN_LENGTH,
    max_length: int = CLAIM_MAX_LENGTH,
) -> bool:
    """Advisory check: needs a verb-like token and terminal punctuation."""
    cleaned = clean_claim_text(text)
    if not cleaned or not is_length_allowed(cleaned, min_length, max_length):
        return False
    return has_verb(cleaned) and has_punctuation_boundary(cleaned)
