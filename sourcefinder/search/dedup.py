"""Collapse duplicate Source records within and across providers."""

import logging
import re

from pydantic import BaseModel

from sourcefinder.search.models import Source

logger = logging.getLogger(__name__)


# ── Result Model ─────────────────────────────────────────────────────


class DedupResult(BaseModel):
    """Result of deduplicating a candidate pool."""

    unique_sources: list[Source]
    stats: dict


# ── Public API ───────────────────────────────────────────────────────


def deduplicate(sources: list[Source]) -> DedupResult:
    """Keep one record per dedup key.

    Among records sharing a key the higher citation count wins; ties keep the
    record seen first, and the survivor holds the first record's position.
    """
    kept: dict[str, Source] = {}
    duplicates = 0
    dropped = 0

    for source in sources:
        key = dedup_key(source)
        if key is None:
            dropped += 1
            continue

        existing = kept.get(key)
        if existing is None:
            kept[key] = source
            continue

        duplicates += 1
        if source.citation_count > existing.citation_count:
            kept[key] = source

    unique = list(kept.values())
    stats = {
        "input_total": len(sources),
        "duplicates_found": duplicates,
        "dropped_keyless": dropped,
        "unique_total": len(unique),
    }

    logger.info(
        "Deduplication: %d in → %d unique (%d duplicates, %d without key)",
        stats["input_total"],
        stats["unique_total"],
        stats["duplicates_found"],
        stats["dropped_keyless"],
    )

    return DedupResult(unique_sources=unique, stats=stats)


# ── Keys ─────────────────────────────────────────────────────────────


def dedup_key(source: Source) -> str | None:
    """DOI first, then normalized title, then raw id. None if all are empty."""
    if source.doi:
        return f"doi:{source.doi.strip().lower()}"

    title = normalize_title(source.title)
    if title:
        return f"title:{title}"

    raw_id = _SPACE_RE.sub(" ", source.id or "").strip()
    if raw_id:
        return f"id:{raw_id}"
    return None


# ── Helpers ──────────────────────────────────────────────────────────


_NON_ALNUM_RE = re.compile(r"[^a-z0-9\s]")
_SPACE_RE = re.compile(r"\s+")


def normalize_title(title: str) -> str:
    """Lowercase, collapse whitespace, drop anything but ASCII letters and digits."""
    t = _NON_ALNUM_RE.sub("", (title or "").lower())
    return _SPACE_RE.sub(" ", t).strip()
