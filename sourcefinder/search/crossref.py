"""Crossref adapter: the citation-metadata registry used as fallback."""

import logging

from sourcefinder.search.base import (
    CancellationToken,
    SearchOptions,
    SourceProvider,
    fetch_json,
)
from sourcefinder.search.models import Source, normalize_doi
from sourcefinder.search.normalize import (
    choose_url,
    choose_venue,
    clean_text,
    coerce_count,
    first_item,
    first_non_empty,
    infer_year,
    parse_structured_author,
    strip_markup,
    structured_display_name,
)

logger = logging.getLogger(__name__)

CROSSREF_WORKS_URL = "https://api.crossref.org/works"


class CrossrefProvider(SourceProvider):
    """Bibliographic free-text search against the Crossref works endpoint."""

    name = "crossref"

    def __init__(self, base_url: str = CROSSREF_WORKS_URL):
        self.base_url = base_url

    def search(
        self,
        claim: str,
        options: SearchOptions,
        token: CancellationToken | None = None,
    ) -> list[Source]:
        query = clean_text(claim)
        if not query:
            return []

        token = token or CancellationToken(options.timeout_seconds)
        logger.info("Crossref query: %s (limit %d)", query, options.limit)

        payload = fetch_json(
            self.name,
            self.base_url,
            build_params(query, options),
            options.headers,
            token,
        )
        message = payload.get("message") if isinstance(payload, dict) else None
        items = message.get("items") if isinstance(message, dict) else None
        if not isinstance(items, list):
            items = []

        sources = [s for s in (parse_item(i) for i in items) if s is not None]
        logger.info("Crossref returned %d items, %d usable", len(items), len(sources))
        return sources


# ── Query ────────────────────────────────────────────────────────────


def build_params(query: str, options: SearchOptions) -> dict:
    params = {
        "query.bibliographic": query,
        "rows": str(options.limit),
        "sort": "relevance",
        "order": "desc",
    }
    if options.contact_email:
        params["mailto"] = options.contact_email
    return params


# ── Item → Source ────────────────────────────────────────────────────


def parse_item(item) -> Source | None:
    """Convert a Crossref work item into a Source, or None if unusable."""
    if not isinstance(item, dict):
        return None

    doi = normalize_doi(item.get("DOI"))
    title = first_item(item.get("title"))
    url = choose_url(item.get("URL"), doi, None)

    raw_authors = item.get("author") if isinstance(item.get("author"), list) else []
    authors = [a for a in (parse_structured_author(r) for r in raw_authors) if a]
    author_names = [n for n in (structured_display_name(r) for r in raw_authors) if n]

    cited_by = item.get("is-referenced-by-count")
    source = Source(
        id=first_non_empty(doi, item.get("URL"), title),
        provider=CrossrefProvider.name,
        title=title,
        url=url,
        doi=doi,
        authors=authors,
        author_names=author_names,
        year=infer_year(item),
        venue=choose_venue(item),
        abstract_snippet=strip_markup(item.get("abstract")) or None,
        citation_count=coerce_count(cited_by),
        source_type=clean_text(item.get("type")),
    )
    return source if source.is_usable else None
