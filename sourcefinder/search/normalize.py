"""Normalization helpers shared by the provider adapters."""

import math
import re
from typing import Optional

from pyalex import invert_abstract

from sourcefinder.search.models import Author, normalize_doi

_SPACE_RE = re.compile(r"\s+")
_TAG_RE = re.compile(r"<[^>]+>")

# Ordered date fields checked when inferring a publication year
YEAR_FIELDS = (
    "issued",
    "published",
    "published-print",
    "published-online",
    "created",
)


# ── Text ─────────────────────────────────────────────────────────────


def clean_text(value) -> str:
    """Collapse whitespace and trim. Non-strings become ""."""
    if not isinstance(value, str):
        return ""
    return _SPACE_RE.sub(" ", value).strip()


def strip_markup(text) -> str:
    """Drop XML/HTML tags (Crossref abstracts arrive as JATS)."""
    return clean_text(_TAG_RE.sub(" ", text)) if isinstance(text, str) else ""


def first_non_empty(*values) -> str:
    for value in values:
        cleaned = clean_text(value)
        if cleaned:
            return cleaned
    return ""


def first_item(value) -> str:
    """Crossref wraps most strings in single-element lists."""
    if isinstance(value, list):
        return clean_text(value[0]) if value else ""
    return clean_text(value)


# ── Authors ──────────────────────────────────────────────────────────


def parse_author_name(name) -> Optional[Author]:
    """Parse a display name into a structured author.

    "Doe, Jane" -> family/given split at the first comma.
    "Jane Q Doe" -> last token is the family name.
    "Plato" -> literal.
    """
    cleaned = clean_text(name)
    if not cleaned:
        return None

    if "," in cleaned:
        family, _, rest = cleaned.partition(",")
        family = clean_text(family)
        given = clean_text(rest.replace(",", " "))
        if not family:
            return None
        return Author(family=family, given=given or None)

    tokens = cleaned.split(" ")
    if len(tokens) == 1:
        return Author(literal=tokens[0])
    return Author(family=tokens[-1], given=" ".join(tokens[:-1]))


def parse_structured_author(raw) -> Optional[Author]:
    """Parse a {family, given, name} author object (Crossref shape)."""
    if not isinstance(raw, dict):
        return None
    family = clean_text(raw.get("family"))
    given = clean_text(raw.get("given"))
    literal = clean_text(raw.get("name"))
    if family:
        return Author(family=family, given=given or None)
    if literal:
        return Author(literal=literal)
    return None


def structured_display_name(raw) -> str:
    if not isinstance(raw, dict):
        return ""
    family = clean_text(raw.get("family"))
    given = clean_text(raw.get("given"))
    if family and given:
        return f"{given} {family}"
    return family or clean_text(raw.get("name"))


# ── Dates ────────────────────────────────────────────────────────────


def infer_year(record: dict, fields=YEAR_FIELDS) -> Optional[int]:
    """Return the first integer year found in the ordered date fields.

    Fields hold either a CSL date object ({"date-parts": [[2021, 3]]}) or a
    bare integer (OpenAlex "publication_year").
    """
    for field in fields:
        value = record.get(field)
        if isinstance(value, dict):
            parts = value.get("date-parts")
            if isinstance(parts, list) and parts and isinstance(parts[0], list) and parts[0]:
                value = parts[0][0]
            else:
                continue
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    return None


# ── Abstracts ────────────────────────────────────────────────────────


def reconstruct_abstract(inverted_index: dict | None) -> str | None:
    """Reassemble abstract text from a {token: [position, ...]} index.

    Invalid positions are ignored; gaps in the position sequence are skipped.
    Each position holds one token; a later token claiming it replaces the
    earlier one. Returns None if nothing usable remains.
    """
    if not isinstance(inverted_index, dict) or not inverted_index:
        return None

    slots: dict[int, str] = {}
    for token, positions in inverted_index.items():
        if not isinstance(positions, list):
            continue
        for p in positions:
            if isinstance(p, int) and not isinstance(p, bool) and p >= 0:
                slots[p] = token

    if not slots:
        return None

    cleaned: dict[str, list[int]] = {}
    for position, token in slots.items():
        cleaned.setdefault(token, []).append(position)
    return clean_text(invert_abstract(cleaned)) or None


# ── Venue / URL / DOI ────────────────────────────────────────────────


def choose_venue(work: dict) -> Optional[str]:
    """Primary venue, then host venue / container title, then topic."""
    primary = work.get("primary_location") or {}
    source = primary.get("source") or {}
    host = work.get("host_venue") or {}
    topic = work.get("primary_topic") or {}
    venue = first_non_empty(
        source.get("display_name"),
        host.get("display_name"),
        first_item(work.get("container-title")),
        topic.get("display_name"),
    )
    return venue or None


def doi_url(doi: Optional[str]) -> str:
    return f"https://doi.org/{doi}" if doi else ""


def choose_url(landing_url, doi: Optional[str], record_id) -> str:
    """Landing page, else a DOI URL, else the record's own identifier."""
    return first_non_empty(landing_url, doi_url(normalize_doi(doi)), record_id)


def coerce_count(value) -> int:
    """Non-negative integer count; anything non-numeric or non-finite is 0."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    if not math.isfinite(value):
        return 0
    return max(0, int(value))
