"""Shared data models for provider adapters, dedup, and ranking."""

import re
from typing import Optional

from pydantic import BaseModel, Field, field_validator

_DOI_PREFIX_RE = re.compile(r"^(?:https?://(?:dx\.)?doi\.org/|doi:)", re.IGNORECASE)


def normalize_doi(value: Optional[str]) -> Optional[str]:
    """Strip a doi.org / doi: prefix, lower-case, trim. Empty becomes None."""
    if not isinstance(value, str):
        return None
    doi = _DOI_PREFIX_RE.sub("", value.strip().lower()).strip()
    return doi or None


class Author(BaseModel):
    """Structured author name: either family/given or a single literal."""

    family: Optional[str] = None
    given: Optional[str] = None
    literal: Optional[str] = None

    @property
    def display_name(self) -> str:
        if self.literal:
            return self.literal
        return " ".join(p for p in (self.given, self.family) if p)


class Source(BaseModel):
    """A bibliographic record normalized from any provider."""

    id: str
    provider: str
    title: str = ""
    url: str = ""
    doi: Optional[str] = None
    authors: list[Author] = Field(default_factory=list)
    author_names: list[str] = Field(default_factory=list)
    year: Optional[int] = None
    venue: Optional[str] = None
    abstract_snippet: Optional[str] = None
    citation_count: int = Field(default=0, ge=0)
    source_type: str = "journal-article"

    @field_validator("doi", mode="before")
    @classmethod
    def _normalize_doi(cls, v):
        return normalize_doi(v)

    @field_validator("source_type", mode="before")
    @classmethod
    def _default_source_type(cls, v):
        if not isinstance(v, str) or not v.strip():
            return "journal-article"
        return v.strip()

    @property
    def is_usable(self) -> bool:
        """Only records with a title, URL, and id flow downstream."""
        return bool(self.title and self.url and self.id)


class SubScores(BaseModel):
    """The four independent ranking factors, each in [0, 1]."""

    lexical: float = Field(ge=0.0, le=1.0)
    quality: float = Field(ge=0.0, le=1.0)
    recency: float = Field(ge=0.0, le=1.0)
    citation: float = Field(ge=0.0, le=1.0)


class ScoredSource(Source):
    """A Source ranked against one claim."""

    scores: SubScores
    confidence: float = Field(ge=0.0, le=1.0)
    why: str
