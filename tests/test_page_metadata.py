"""Tests for web page metadata scraping and URL citations."""

from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest
import requests

from sourcefinder.citation.formatter import TextCitationFormatter
from sourcefinder.citation.page_metadata import (
    build_page_entry,
    extract_metadata,
    fetch_page_metadata,
    generate_citation_from_url,
    normalize_url,
    parse_authors,
    parse_date_parts,
    website_name,
)
from sourcefinder.core.errors import ProviderError, ValidationError
from sourcefinder.core.styles import DEFAULT_STYLE_ALIASES, DEFAULT_STYLES, StyleRegistry

PAGE_URL = "https://www.scienceweekly.example/articles/sleep-memory?utm_source=x"

ARTICLE_HTML = """
<html>
<head>
  <title>Fallback Title | Science Weekly</title>
  <meta property="og:title" content="How Sleep Shapes Memory">
  <meta name="author" content="By Jane Doe and John Smith">
  <meta property="article:published_time" content="2024-03-05T10:00:00Z">
  <meta property="og:site_name" content="Science Weekly">
  <link rel="canonical" href="/articles/sleep-memory">
</head>
<body><p>Body text.</p></body>
</html>
"""

BARE_HTML = """
<html><head><title> Plain   page </title></head>
<body><time datetime="2023-11-02">November 2</time></body></html>
"""


def _response(status=200, content_type="text/html; charset=utf-8", text=ARTICLE_HTML, url=PAGE_URL):
    resp = MagicMock()
    resp.status_code = status
    resp.headers = {"content-type": content_type}
    resp.text = text
    resp.url = url
    return resp


# ── URL Handling ─────────────────────────────────────────────────────


def test_normalize_url_adds_scheme():
    assert normalize_url("example.com/page") == "https://example.com/page"
    assert normalize_url("  http://example.com ") == "http://example.com"


@pytest.mark.parametrize("bad", ["", "   ", None, "http://", "https:// bad host"])
def test_normalize_url_rejects(bad):
    with pytest.raises(ValidationError):
        normalize_url(bad)


def test_website_name():
    assert website_name("https://www.example.org/a/b") == "example.org"
    assert website_name("https://news.example.org") == "news.example.org"


# ── Authors and Dates ────────────────────────────────────────────────


def test_parse_authors_splits_conjunctions():
    authors = parse_authors("By Jane Doe and John Smith & Plato")
    assert [(a.family, a.given, a.literal) for a in authors] == [
        ("Doe", "Jane", None),
        ("Smith", "John", None),
        (None, None, "Plato"),
    ]


def test_parse_authors_inverted_with_semicolons():
    authors = parse_authors("Doe, Jane; Roe, Richard")
    assert [a.family for a in authors] == ["Doe", "Roe"]
    assert authors[1].given == "Richard"


def test_parse_authors_empty():
    assert parse_authors("") == []
    assert parse_authors(None) == []


@pytest.mark.parametrize(
    "raw, parts",
    [
        ("2024-03-05T10:00:00Z", [2024, 3, 5]),
        ("2024/3", [2024, 3]),
        ("2024", [2024]),
        ("2024-13-01", [2024]),
        ("March 5, 2024", [2024, 3, 5]),
        ("5 March 2024", [2024, 3, 5]),
        ("March 2024", [2024, 3]),
        ("someday", None),
        ("", None),
    ],
)
def test_parse_date_parts(raw, parts):
    assert parse_date_parts(raw) == parts


# ── Extraction ───────────────────────────────────────────────────────


def test_extract_metadata_prefers_open_graph():
    meta = extract_metadata(ARTICLE_HTML, PAGE_URL, PAGE_URL)
    assert meta.title == "How Sleep Shapes Memory"
    assert meta.author_text == "By Jane Doe and John Smith"
    assert meta.published_text == "2024-03-05T10:00:00Z"
    assert meta.site_name == "Science Weekly"
    assert meta.canonical_url == "https://www.scienceweekly.example/articles/sleep-memory"


def test_extract_metadata_falls_back_to_title_and_time():
    meta = extract_metadata(BARE_HTML, "https://www.example.org/p", "https://example.org/p")
    assert meta.title == "Plain page"
    assert meta.author_text == ""
    assert meta.published_text == "2023-11-02"
    assert meta.site_name == "example.org"
    assert meta.canonical_url == "https://www.example.org/p"
    assert meta.requested_url == "https://example.org/p"


def test_build_page_entry():
    entry = build_page_entry(extract_metadata(ARTICLE_HTML, PAGE_URL, PAGE_URL))
    today = datetime.now(timezone.utc)

    assert entry.type == "webpage"
    assert entry.title == "How Sleep Shapes Memory"
    assert entry.url == "https://www.scienceweekly.example/articles/sleep-memory"
    assert entry.container_title == "Science Weekly"
    assert entry.issued.date_parts == [[2024, 3, 5]]
    assert entry.accessed.year == today.year
    assert [a.family for a in entry.author] == ["Doe", "Smith"]


# ── Fetching ─────────────────────────────────────────────────────────


@patch("sourcefinder.citation.page_metadata.requests.get")
def test_fetch_page_metadata_html(mock_get):
    mock_get.return_value = _response()
    meta = fetch_page_metadata("scienceweekly.example/articles/sleep-memory", 5.0, "ua/1")

    assert meta.title == "How Sleep Shapes Memory"
    assert meta.requested_url == "https://scienceweekly.example/articles/sleep-memory"
    assert meta.final_url == PAGE_URL
    _, kwargs = mock_get.call_args
    assert kwargs["timeout"] == 5.0
    assert kwargs["headers"]["User-Agent"] == "ua/1"


@patch("sourcefinder.citation.page_metadata.requests.get")
def test_fetch_page_metadata_non_html(mock_get):
    mock_get.return_value = _response(
        content_type="application/pdf", text="", url="https://www.example.org/paper.pdf"
    )
    meta = fetch_page_metadata("https://www.example.org/paper.pdf")

    assert meta.title == ""
    assert meta.site_name == "example.org"
    assert meta.canonical_url == "https://www.example.org/paper.pdf"
    assert build_page_entry(meta).title == "example.org"


@patch("sourcefinder.citation.page_metadata.requests.get")
def test_fetch_page_metadata_http_error(mock_get):
    mock_get.return_value = _response(status=404)
    with pytest.raises(ProviderError, match="HTTP 404"):
        fetch_page_metadata("https://example.org/missing")


@patch("sourcefinder.citation.page_metadata.requests.get")
def test_fetch_page_metadata_timeout(mock_get):
    mock_get.side_effect = requests.Timeout("slow")
    with pytest.raises(ProviderError) as excinfo:
        fetch_page_metadata("https://example.org/slow")
    assert excinfo.value.timed_out is True
    assert excinfo.value.provider == "page"


def test_fetch_rejects_invalid_url_without_request():
    with patch("sourcefinder.citation.page_metadata.requests.get") as mock_get:
        with pytest.raises(ValidationError):
            fetch_page_metadata("")
        mock_get.assert_not_called()


# ── End to End ───────────────────────────────────────────────────────


@patch("sourcefinder.citation.page_metadata.requests.get")
def test_generate_citation_from_url(mock_get):
    mock_get.return_value = _response()
    styles = StyleRegistry(DEFAULT_STYLES, DEFAULT_STYLE_ALIASES)

    result = generate_citation_from_url(PAGE_URL, "APA", styles, TextCitationFormatter())

    assert result["style"] == "apa"
    assert result["styleLabel"] == "APA (7th Edition)"
    assert result["inTextCitation"] == "(Doe & Smith, 2024)"
    assert "How Sleep Shapes Memory" in result["citation"]
    assert result["metadata"]["siteName"] == "Science Weekly"
    assert result["metadata"]["canonicalUrl"].endswith("/articles/sleep-memory")


def test_generate_citation_rejects_style_before_fetch():
    styles = StyleRegistry(DEFAULT_STYLES, DEFAULT_STYLE_ALIASES)
    with patch("sourcefinder.citation.page_metadata.requests.get") as mock_get:
        with pytest.raises(ValidationError):
            generate_citation_from_url(PAGE_URL, "bluebook", styles, TextCitationFormatter())
        mock_get.assert_not_called()
