"""Citation for an arbitrary web page, built from its HTML metadata."""

import logging
import re
from datetime import datetime
from typing import Optional
from urllib.parse import urljoin, urlparse

import requests
from bs4 import BeautifulSoup
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from sourcefinder.citation.csl import CitationEntry, DateParts, today_parts
from sourcefinder.citation.formatter import CitationFormatter
from sourcefinder.core.errors import ProviderError, ValidationError
from sourcefinder.core.styles import StyleRegistry
from sourcefinder.search.models import Author
from sourcefinder.search.normalize import clean_text, first_non_empty, parse_author_name

logger = logging.getLogger(__name__)

PAGE_PROVIDER = "page"
HTML_TYPES = ("text/html", "application/xhtml+xml")
PAGE_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
}

_AUTHOR_SPLIT_RE = re.compile(r"\s*;\s*|\s+and\s+|\s+&\s+", re.IGNORECASE)
_BY_RE = re.compile(r"^by\s+", re.IGNORECASE)
_DATE_RE = re.compile(r"^(\d{4})(?:[-/](\d{1,2}))?(?:[-/](\d{1,2}))?")


class PageMetadata(BaseModel):
    """What could be scraped from a page, before CSL conversion."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    title: str = ""
    author_text: str = ""
    published_text: str = ""
    site_name: str = ""
    canonical_url: str
    final_url: str
    requested_url: str


# ── URL ──────────────────────────────────────────────────────────────


def normalize_url(raw_url) -> str:
    """Add a missing https:// scheme and reject anything unparseable."""
    if not isinstance(raw_url, str) or not raw_url.strip():
        raise ValidationError("A URL is required.")
    trimmed = raw_url.strip()
    candidate = trimmed if re.match(r"^https?://", trimmed, re.IGNORECASE) else f"https://{trimmed}"
    parsed = urlparse(candidate)
    if not parsed.netloc or " " in parsed.netloc:
        raise ValidationError(f'Invalid URL: "{raw_url}".')
    return candidate


def website_name(url: str) -> str:
    host = urlparse(url).hostname or ""
    return re.sub(r"^www\.", "", host, flags=re.IGNORECASE)


# ── Authors / Dates ──────────────────────────────────────────────────


def parse_authors(author_text) -> list[Author]:
    """Split "By A; B and C & D" into structured authors."""
    cleaned = _BY_RE.sub("", clean_text(author_text))
    if not cleaned:
        return []
    chunks = [c for c in (clean_text(p) for p in _AUTHOR_SPLIT_RE.split(cleaned)) if c]
    return [a for a in (parse_author_name(n) for n in chunks or [cleaned]) if a]


def parse_date_parts(raw_date) -> Optional[list[int]]:
    """[year, month?, day?] from an ISO-ish or free-form date string."""
    cleaned = clean_text(raw_date)
    if not cleaned:
        return None

    match = _DATE_RE.match(cleaned)
    if match:
        parts = [int(match.group(1))]
        month = int(match.group(2)) if match.group(2) else None
        day = int(match.group(3)) if match.group(3) else None
        if month and 1 <= month <= 12:
            parts.append(month)
            if day and 1 <= day <= 31:
                parts.append(day)
        return parts

    for fmt in ("%B %d, %Y", "%b %d, %Y", "%d %B %Y", "%d %b %Y", "%B %Y"):
        try:
            parsed = datetime.strptime(cleaned, fmt)
        except ValueError:
            continue
        if "%d" in fmt:
            return [parsed.year, parsed.month, parsed.day]
        return [parsed.year, parsed.month]
    return None


# ── Fetch & Parse ────────────────────────────────────────────────────


def _meta(soup: BeautifulSoup, **attrs) -> str:
    tag = soup.find("meta", attrs=attrs)
    return tag.get("content", "") if tag else ""


def extract_metadata(html: str, final_url: str, requested_url: str) -> PageMetadata:
    soup = BeautifulSoup(html, "html.parser")

    title = first_non_empty(
        _meta(soup, property="og:title"),
        _meta(soup, name="twitter:title"),
        _meta(soup, name="title"),
        soup.title.get_text() if soup.title else "",
    )
    author_text = first_non_empty(
        _meta(soup, name="author"),
        _meta(soup, property="article:author"),
        _meta(soup, name="parsely-author"),
        _meta(soup, name="dc.creator"),
        _meta(soup, itemprop="author"),
    )
    time_tag = soup.find("time", attrs={"datetime": True})
    published_text = first_non_empty(
        _meta(soup, property="article:published_time"),
        _meta(soup, name="publish-date"),
        _meta(soup, name="pubdate"),
        _meta(soup, name="date"),
        _meta(soup, itemprop="datePublished"),
        time_tag.get("datetime") if time_tag else "",
    )
    site_name = first_non_empty(
        _meta(soup, property="og:site_name"),
        _meta(soup, name="application-name"),
        website_name(final_url),
    )
    canonical = soup.find("link", rel="canonical")
    canonical_href = canonical.get("href") if canonical else ""
    canonical_url = first_non_empty(
        urljoin(final_url, canonical_href) if canonical_href else "",
        final_url,
    )

    return PageMetadata(
        title=title,
        author_text=author_text,
        published_text=published_text,
        site_name=site_name,
        canonical_url=canonical_url,
        final_url=final_url,
        requested_url=requested_url,
    )


def fetch_page_metadata(
    raw_url: str,
    timeout_seconds: float = 10.0,
    user_agent: str = "sourcefinder/1.0",
) -> PageMetadata:
    url = normalize_url(raw_url)
    headers = {**PAGE_HEADERS, "User-Agent": user_agent}

    try:
        response = requests.get(url, headers=headers, timeout=timeout_seconds, allow_redirects=True)
    except requests.Timeout as exc:
        raise ProviderError(PAGE_PROVIDER, f"timed out fetching {url}", timed_out=True) from exc
    except requests.RequestException as exc:
        raise ProviderError(PAGE_PROVIDER, f"failed to fetch {url}: {exc}") from exc

    if not 200 <= response.status_code < 300:
        raise ProviderError(PAGE_PROVIDER, f"Failed to fetch URL (HTTP {response.status_code}).")

    final_url = response.url or url
    content_type = response.headers.get("content-type", "")
    if not any(t in content_type for t in HTML_TYPES):
        logger.info("Non-HTML response (%s) for %s; using URL-only metadata", content_type, url)
        return PageMetadata(
            site_name=website_name(final_url),
            canonical_url=final_url,
            final_url=final_url,
            requested_url=url,
        )

    return extract_metadata(response.text, final_url, url)


# ── CSL ──────────────────────────────────────────────────────────────


def build_page_entry(metadata: PageMetadata) -> CitationEntry:
    date_parts = parse_date_parts(metadata.published_text)
    return CitationEntry(
        id=metadata.canonical_url,
        type="webpage",
        title=metadata.title or metadata.site_name or metadata.canonical_url,
        url=metadata.canonical_url,
        author=parse_authors(metadata.author_text),
        issued=DateParts.from_parts(*date_parts) if date_parts else None,
        container_title=metadata.site_name or None,
        accessed=today_parts(),
    )


def generate_citation_from_url(
    raw_url: str,
    style_input: str | None,
    styles: StyleRegistry,
    formatter: CitationFormatter,
    timeout_seconds: float = 10.0,
    user_agent: str = "sourcefinder/1.0",
) -> dict:
    """Fetch a page and render its bibliography entry in the requested style."""
    style = styles.resolve(style_input)
    metadata = fetch_page_metadata(raw_url, timeout_seconds, user_agent)
    formatted = formatter.format(build_page_entry(metadata), style)
    return {
        "style": formatted.style,
        "styleLabel": formatted.style_label,
        "citation": formatted.bibliography,
        "inTextCitation": formatted.in_text,
        "metadata": metadata.model_dump(by_alias=True),
    }
