"""Tests for style resolution."""

import pytest

from sourcefinder.core.errors import ValidationError
from sourcefinder.core.styles import DEFAULT_STYLE_ALIASES, DEFAULT_STYLES, Style, StyleRegistry


@pytest.fixture()
def registry():
    return StyleRegistry(DEFAULT_STYLES, DEFAULT_STYLE_ALIASES)


def test_resolve_aliases(registry):
    assert registry.resolve("APA").id == "apa"
    assert registry.resolve(" chicago-author-date ").id == "chicago"
    assert registry.resolve("harvard1").id == "harvard"


def test_resolve_default(registry):
    assert registry.resolve(None).id == "apa"
    assert registry.resolve("").id == "apa"


def test_resolve_unknown_raises(registry):
    with pytest.raises(ValidationError, match='Unsupported style "turabian"'):
        registry.resolve("turabian")


def test_options_in_declaration_order(registry):
    options = registry.options()
    assert [o["id"] for o in options] == ["apa", "mla", "chicago", "ieee", "harvard", "vancouver"]
    assert options[0] == {"id": "apa", "label": "APA (7th Edition)"}


def test_numeric_styles(registry):
    numeric = {s.id for s in DEFAULT_STYLES if s.numeric}
    assert numeric == {"ieee", "vancouver"}


def test_alias_to_unknown_style_rejected():
    with pytest.raises(ValueError):
        StyleRegistry([Style(id="apa", template="apa", label="APA")], {"mla": "mla"})


def test_contains(registry):
    assert "IEEE" in registry
    assert "bluebook" not in registry
