"""CSL-like citation entries built fresh for each formatting call."""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from sourcefinder.search.models import Author, Source
from sourcefinder.search.normalize import clean_text, parse_author_name


class DateParts(BaseModel):
    """CSL date: {"date-parts": [[year, month?, day?]]}."""

    model_config = ConfigDict(populate_by_name=True)

    date_parts: list[list[int]] = Field(alias="date-parts")

    @property
    def year(self) -> Optional[int]:
        if self.date_parts and self.date_parts[0]:
            return self.date_parts[0][0]
        return None

    @classmethod
    def from_parts(cls, *parts: int) -> "DateParts":
        return cls(date_parts=[list(parts)])


class CitationEntry(BaseModel):
    """Canonical record handed to a formatter."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    type: str
    title: str
    url: str = Field(default="", alias="URL")
    author: list[Author] = Field(default_factory=list)
    issued: Optional[DateParts] = None
    container_title: Optional[str] = Field(default=None, alias="container-title")
    doi: Optional[str] = Field(default=None, alias="DOI")
    accessed: DateParts

    def to_csl(self) -> dict:
        """CSL-JSON shaped dict (hyphenated / upper-case keys, no empties)."""
        return self.model_dump(by_alias=True, exclude_none=True)


def today_parts() -> DateParts:
    now = datetime.now(timezone.utc)
    return DateParts.from_parts(now.year, now.month, now.day)


def infer_csl_type(source_type: str) -> str:
    normalized = clean_text(source_type).lower()
    if "journal" in normalized:
        return "article-journal"
    if "conference" in normalized or "proceedings" in normalized:
        return "paper-conference"
    if "chapter" in normalized:
        return "chapter"
    if "book" in normalized:
        return "book"
    if "report" in normalized:
        return "report"
    return "article"


def entry_authors(source: Source) -> list[Author]:
    """Structured authors, else parsed from the display names."""
    if source.authors:
        return list(source.authors)
    return [a for a in (parse_author_name(n) for n in source.author_names) if a]


def to_citation_entry(source: Source) -> CitationEntry:
    return CitationEntry(
        id=clean_text(source.id or source.doi or source.url or source.title),
        type=infer_csl_type(source.source_type),
        title=clean_text(source.title),
        url=clean_text(source.url),
        author=entry_authors(source),
        issued=DateParts.from_parts(source.year) if source.year is not None else None,
        container_title=source.venue or None,
        doi=source.doi,
        accessed=today_parts(),
    )
