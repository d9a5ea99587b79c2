"""Tests for the FastAPI surface."""

from unittest.mock import MagicMock, patch

import pytest
import requests
from fastapi.testclient import TestClient

from sourcefinder.api.main import _cors_kwargs, create_app
from sourcefinder.core.settings import Settings
from sourcefinder.discovery.orchestrator import SourceDiscovery
from sourcefinder.ranking.ranker import Ranker
from sourcefinder.search.base import SourceProvider
from sourcefinder.search.models import Source

CLAIM = "Regular physical activity improves cardiovascular health outcomes in adults."

PAGE_HTML = """
<html><head>
<meta property="og:title" content="Walking and Heart Health">
<meta name="author" content="Jane Doe">
<meta name="date" content="2023-06-01">
<meta property="og:site_name" content="Health Notes">
</head><body></body></html>
"""


class StubProvider(SourceProvider):
    def __init__(self, name, sources):
        self.name = name
        self.sources = sources

    def search(self, claim, options, token=None):
        return list(self.sources)


def _source(i):
    return Source(
        id=f"https://openalex.org/W{i}",
        provider="openalex",
        title=f"Regular physical activity improves cardiovascular health outcomes in adults: study {i}",
        url=f"https://example.org/{i}",
        doi=f"10.1000/api.{i}",
        author_names=["Jane Doe", "John Smith"],
        year=2025,
        venue="Heart Journal",
        citation_count=80,
        abstract_snippet="Cohort evidence on activity and cardiovascular outcomes.",
    )


@pytest.fixture()
def settings():
    return Settings(cors_origins=["https://app.example.com", "chrome-extension://*"])


@pytest.fixture()
def client(settings):
    discovery = SourceDiscovery(
        settings,
        primary=StubProvider("openalex", [_source(i) for i in range(6)]),
        secondary=StubProvider("crossref", []),
        ranker=Ranker(now_year=2026),
    )
    return TestClient(create_app(settings, discovery))


# ── Health / Styles ──────────────────────────────────────────────────


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_root(client):
    body = client.get("/").json()
    assert body["name"] == "sourcefinder"
    assert "/sources/suggest" in body["endpoints"]


def test_styles(client):
    styles = client.get("/styles").json()["styles"]
    assert [s["id"] for s in styles] == ["apa", "mla", "chicago", "ieee", "harvard", "vancouver"]
    assert styles[3] == {"id": "ieee", "label": "IEEE"}


# ── Suggest ──────────────────────────────────────────────────────────


def test_suggest_returns_camel_case_suggestions(client):
    resp = client.post("/sources/suggest", json={"claim": CLAIM, "style": "mla"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["claim"] == CLAIM
    assert body["style"] == "mla"
    assert "diagnostics" not in body
    assert len(body["suggestions"]) == 5

    top = body["suggestions"][0]
    assert top["inTextCitation"] == "(Doe and Smith)"
    assert top["bibliographyCitation"].startswith("Doe, Jane, and John Smith.")
    assert top["abstractSnippet"].startswith("Cohort evidence")
    assert top["authors"] == ["Jane Doe", "John Smith"]
    assert 0.55 <= top["confidence"] <= 1.0


def test_suggest_accepts_string_max_results(client):
    resp = client.post("/sources/suggest", json={"claim": CLAIM, "maxResults": "2"})
    assert resp.status_code == 200
    assert len(resp.json()["suggestions"]) == 2


def test_suggest_unparseable_max_results_uses_default(client):
    resp = client.post("/sources/suggest", json={"claim": CLAIM, "maxResults": "lots"})
    assert resp.status_code == 200
    assert len(resp.json()["suggestions"]) == 5


def test_suggest_ignores_context(client):
    resp = client.post("/sources/suggest", json={"claim": CLAIM, "context": "Paragraph around it."})
    assert resp.status_code == 200


def test_suggest_short_claim_is_400(client):
    resp = client.post("/sources/suggest", json={"claim": "Too short."})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Claim length must be between 25 and 280 characters."}


def test_suggest_missing_claim_is_400(client):
    resp = client.post("/sources/suggest", json={})
    assert resp.status_code == 400
    assert resp.json() == {"error": "A claim is required."}


def test_suggest_bad_style_is_400(client):
    resp = client.post("/sources/suggest", json={"claim": CLAIM, "style": "bluebook"})
    assert resp.status_code == 400
    assert resp.json()["error"].startswith('Unsupported style "bluebook"')


def test_suggest_malformed_body_is_400(client):
    resp = client.post(
        "/sources/suggest",
        content="not json",
        headers={"content-type": "application/json"},
    )
    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid request payload"}


def test_suggest_unexpected_failure_is_500(settings):
    discovery = MagicMock()
    discovery.suggest.side_effect = RuntimeError("boom")
    client = TestClient(create_app(settings, discovery), raise_server_exceptions=False)

    resp = client.post("/sources/suggest", json={"claim": CLAIM})

    assert resp.status_code == 500
    assert resp.json() == {"error": "Internal server error"}


# ── Cite ─────────────────────────────────────────────────────────────


def _page_response():
    resp = MagicMock()
    resp.status_code = 200
    resp.headers = {"content-type": "text/html"}
    resp.text = PAGE_HTML
    resp.url = "https://healthnotes.example/walking"
    return resp


@patch("sourcefinder.citation.page_metadata.requests.get")
def test_cite_url(mock_get, client):
    mock_get.return_value = _page_response()

    resp = client.post("/cite", json={"url": "healthnotes.example/walking", "style": "apa"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["style"] == "apa"
    assert body["inTextCitation"] == "(Doe, 2023)"
    assert "Walking and Heart Health" in body["citation"]
    assert body["metadata"]["siteName"] == "Health Notes"
    assert mock_get.call_args[0][0] == "https://healthnotes.example/walking"


def test_cite_missing_url_is_400(client):
    resp = client.post("/cite", json={"url": "  "})
    assert resp.status_code == 400
    assert resp.json() == {"error": "A URL is required."}


@patch("sourcefinder.citation.page_metadata.requests.get")
def test_cite_fetch_failure_is_502(mock_get, client):
    mock_get.side_effect = requests.ConnectionError("refused")
    resp = client.post("/cite", json={"url": "https://healthnotes.example/walking"})
    assert resp.status_code == 502
    assert "error" in resp.json()


# ── CORS ─────────────────────────────────────────────────────────────


def test_cors_allows_configured_origin(client):
    resp = client.get("/health", headers={"Origin": "https://app.example.com"})
    assert resp.headers["access-control-allow-origin"] == "https://app.example.com"


def test_cors_allows_wildcard_prefix(client):
    resp = client.get("/health", headers={"Origin": "chrome-extension://abcdef"})
    assert resp.headers["access-control-allow-origin"] == "chrome-extension://abcdef"


def test_cors_rejects_other_origin(client):
    resp = client.get("/health", headers={"Origin": "https://evil.example"})
    assert "access-control-allow-origin" not in resp.headers


def test_cors_kwargs():
    assert _cors_kwargs([]) == {"allow_origins": ["*"]}
    assert _cors_kwargs(["*"]) == {"allow_origins": ["*"]}
    assert _cors_kwargs(["https://a.example", "moz-extension://*"]) == {
        "allow_origins": ["https://a.example"],
        "allow_origin_regex": "moz\\-extension://.*",
    }


# ── Module App ───────────────────────────────────────────────────────


def test_module_level_app_serves_requests():
    from sourcefinder.api.main import app

    resp = TestClient(app).get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}
