"""Multi-factor confidence scoring of Sources against a claim.

Four independent sub-scores, each in [0, 1]:

- lexical: token overlap between the claim and the title / abstract
- quality: source type plus venue and DOI presence
- recency: bucketed by publication age
- citation: log-scaled citation count

The weighted sum is clamped to [0, 1] and rounded to 4 decimals.
"""

import logging
import math
import re
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field

from sourcefinder.search.models import ScoredSource, Source, SubScores

logger = logging.getLogger(__name__)


class RankingWeights(BaseModel):
    """Relative weight of each sub-score in the combined confidence."""

    lexical: float = Field(default=0.45, ge=0.0)
    quality: float = Field(default=0.25, ge=0.0)
    recency: float = Field(default=0.2, ge=0.0)
    citation: float = Field(default=0.1, ge=0.0)


STOP_WORDS = frozenset({
    "a", "an", "and", "are", "as", "at", "be", "by", "for", "from",
    "in", "is", "it", "of", "on", "or", "that", "the", "to", "with",
})

TYPE_QUALITY_SCORES: dict[str, float] = {
    "journal-article": 1.0,
    "article-journal": 1.0,
    "article": 0.95,
    "proceedings-article": 0.8,
    "proceedings-paper": 0.8,
    "conference-paper": 0.8,
    "book-chapter": 0.75,
    "book": 0.72,
    "report": 0.7,
    "preprint": 0.6,
}
UNKNOWN_TYPE_QUALITY = 0.55
VENUE_BONUS = 0.12
DOI_BONUS = 0.08

TITLE_WEIGHT = 0.75
ABSTRACT_WEIGHT = 0.25
PHRASE_BONUS = 0.08
PHRASE_PREFIX_CHARS = 80

MISSING_YEAR_RECENCY = 0.35
# (max age in years, score), checked in order
RECENCY_BUCKETS = ((2, 1.0), (5, 0.85), (10, 0.7), (20, 0.5))
OLDEST_RECENCY = 0.3

CITATION_REFERENCE_COUNT = 1000

# Re-ranking a ScoredSource starts from its plain Source fields
_SCORE_FIELDS = {"scores", "confidence", "why"}

_SPACE_RE = re.compile(r"\s+")
_NON_ALNUM_RE = re.compile(r"[^a-z0-9\s]")


# ── Tokens ───────────────────────────────────────────────────────────


def _lower_clean(value) -> str:
    if not isinstance(value, str):
        return ""
    return _SPACE_RE.sub(" ", value.lower()).strip()


def tokenize(value) -> set[str]:
    """Lower-cased alphanumeric word set minus short tokens and stop words."""
    words = _NON_ALNUM_RE.sub(" ", _lower_clean(value)).split()
    return {w for w in words if len(w) > 2 and w not in STOP_WORDS}


def overlap_score(left: set[str], right: set[str]) -> float:
    if not left or not right:
        return 0.0
    return len(left & right) / max(len(left), len(right))


# ── Sub-scores ───────────────────────────────────────────────────────


def compute_lexical_score(claim: str, source: Source) -> float:
    claim_tokens = tokenize(claim)
    title_overlap = overlap_score(claim_tokens, tokenize(source.title))
    abstract_overlap = overlap_score(claim_tokens, tokenize(source.abstract_snippet))

    prefix = _lower_clean(claim)[:PHRASE_PREFIX_CHARS]
    bonus = PHRASE_BONUS if prefix and prefix in _lower_clean(source.title) else 0.0

    return min(1.0, title_overlap * TITLE_WEIGHT + abstract_overlap * ABSTRACT_WEIGHT + bonus)


def compute_quality_score(source: Source) -> float:
    base = TYPE_QUALITY_SCORES.get(_lower_clean(source.source_type), UNKNOWN_TYPE_QUALITY)
    venue = VENUE_BONUS if source.venue else 0.0
    doi = DOI_BONUS if source.doi else 0.0
    return min(1.0, base + venue + doi)


def compute_recency_score(year: Optional[int], now_year: Optional[int] = None) -> float:
    """Bucketed by age; a missing year gets a middle value, not zero."""
    if not isinstance(year, int) or isinstance(year, bool):
        return MISSING_YEAR_RECENCY
    if now_year is None:
        now_year = current_year()
    age = max(0, now_year - year)
    for max_age, score in RECENCY_BUCKETS:
        if age <= max_age:
            return score
    return OLDEST_RECENCY


def compute_citation_score(citation_count) -> float:
    try:
        count = max(0.0, float(citation_count))
    except (TypeError, ValueError):
        return 0.0
    normalized = math.log10(count + 1) / math.log10(CITATION_REFERENCE_COUNT + 1)
    if not math.isfinite(normalized):
        return 0.0
    return min(1.0, max(0.0, normalized))


def current_year() -> int:
    return datetime.now(timezone.utc).year


# ── Explanation ──────────────────────────────────────────────────────


def build_why(scores: SubScores, source: Source) -> str:
    reasons = []

    if scores.lexical >= 0.6:
        reasons.append("strong topical match")
    elif scores.lexical >= 0.4:
        reasons.append("moderate topical match")

    if scores.quality >= 0.8:
        reasons.append("high-quality scholarly venue")

    if source.year is not None:
        if scores.recency >= 0.85:
            reasons.append(f"recent publication ({source.year})")
        else:
            reasons.append(f"published in {source.year}")

    if scores.citation >= 0.5:
        reasons.append(f"well cited ({source.citation_count})")

    if not reasons:
        return "relevant scholarly source candidate"
    return ", ".join(reasons)


# ── Ranker ───────────────────────────────────────────────────────────


class Ranker:
    """Scores and orders Sources for one claim."""

    def __init__(
        self,
        weights: RankingWeights | None = None,
        now_year: Optional[int] = None,
    ):
        self.weights = weights or RankingWeights()
        self.now_year = now_year

    def with_weights(self, **overrides: float) -> "Ranker":
        """Copy of this ranker with any subset of weights replaced."""
        merged = self.weights.model_copy(update=overrides)
        return Ranker(RankingWeights.model_validate(merged.model_dump()), self.now_year)

    def score(self, claim: str, source: Source) -> ScoredSource:
        scores = SubScores(
            lexical=compute_lexical_score(claim, source),
            quality=compute_quality_score(source),
            recency=compute_recency_score(source.year, self.now_year),
            citation=compute_citation_score(source.citation_count),
        )
        w = self.weights
        combined = (
            scores.lexical * w.lexical
            + scores.quality * w.quality
            + scores.recency * w.recency
            + scores.citation * w.citation
        )
        confidence = round(min(1.0, max(0.0, combined)), 4)

        return ScoredSource(
            **source.model_dump(exclude=_SCORE_FIELDS),
            scores=scores,
            confidence=confidence,
            why=build_why(scores, source),
        )

    def rank(self, claim: str, sources: list[Source]) -> list[ScoredSource]:
        """Score every source; sort by confidence, ties keep input order."""
        scored = [self.score(claim, s) for s in sources]
        scored.sort(key=lambda s: s.confidence, reverse=True)
        logger.debug("Ranked %d sources for claim of %d chars", len(scored), len(claim))
        return scored
