"""Result and diagnostics models for the suggest flow."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Suggestion(_CamelModel):
    """One ranked, rendered source returned to the caller."""

    id: str
    title: str
    url: str
    doi: Optional[str] = None
    authors: list[str] = Field(default_factory=list)
    year: Optional[int] = None
    venue: Optional[str] = None
    abstract_snippet: Optional[str] = None
    confidence: float
    why: str
    in_text_citation: str
    bibliography_citation: str


class ProviderDiagnostics(_CamelModel):
    provider: str
    latency_ms: int = 0
    result_count: int = 0
    error: Optional[str] = None
    timed_out: bool = False


class Diagnostics(_CamelModel):
    providers: list[ProviderDiagnostics] = Field(default_factory=list)
    fallback_used: bool = False
    dropped_low_confidence: int = 0
    dropped_render_failures: int = 0
    low_confidence_threshold: float
    likely_claim: bool = False


class DiscoveryResult(_CamelModel):
    claim: str
    style: str
    suggestions: list[Suggestion]
    diagnostics: Diagnostics
