"""OpenAlex adapter: the broad-coverage primary index."""

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
    first_non_empty,
    infer_year,
    parse_author_name,
    reconstruct_abstract,
)

logger = logging.getLogger(__name__)

OPENALEX_WORKS_URL = "https://api.openalex.org/works"


class OpenAlexProvider(SourceProvider):
    """Free-text search against the OpenAlex works endpoint."""

    name = "openalex"

    def __init__(self, base_url: str = OPENALEX_WORKS_URL):
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
        logger.info("OpenAlex query: %s (limit %d)", query, options.limit)

        payload = fetch_json(
            self.name,
            self.base_url,
            build_params(query, options),
            options.headers,
            token,
        )
        works = payload.get("results") if isinstance(payload, dict) else None
        if not isinstance(works, list):
            works = []

        sources = [s for s in (parse_work(w) for w in works) if s is not None]
        logger.info("OpenAlex returned %d works, %d usable", len(works), len(sources))
        return sources


# ── Query ────────────────────────────────────────────────────────────


def build_params(query: str, options: SearchOptions) -> dict:
    params = {"search": query, "per-page": str(options.limit)}
    if options.contact_email:
        params["mailto"] = options.contact_email
    return params


# ── Work → Source ────────────────────────────────────────────────────


def parse_work(work) -> Source | None:
    """Convert an OpenAlex Work dict into a Source, or None if unusable."""
    if not isinstance(work, dict):
        return None

    title = first_non_empty(work.get("display_name"), work.get("title"))
    doi = normalize_doi(work.get("doi"))
    primary = work.get("primary_location") or {}
    url = choose_url(primary.get("landing_page_url"), doi, work.get("id"))

    author_names = []
    for authorship in work.get("authorships") or []:
        author = (authorship or {}).get("author") or {}
        name = clean_text(author.get("display_name"))
        if name:
            author_names.append(name)
    authors = [a for a in (parse_author_name(n) for n in author_names) if a]

    cited_by = work.get("cited_by_count")
    source = Source(
        id=first_non_empty(work.get("id"), doi, url, title),
        provider=OpenAlexProvider.name,
        title=title,
        url=url,
        doi=doi,
        authors=authors,
        author_names=author_names,
        year=infer_year(work, fields=("publication_year",)),
        venue=choose_venue(work),
        abstract_snippet=reconstruct_abstract(work.get("abstract_inverted_index")),
        citation_count=coerce_count(cited_by),
        source_type=clean_text(work.get("type")),
    )
    return source if source.is_usable else None
