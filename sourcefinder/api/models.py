"""Request and response bodies for the HTTP surface."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from sourcefinder.discovery.models import Suggestion


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SuggestRequest(_CamelModel):
    claim: str = ""
    style: Optional[str] = None
    context: str = ""
    max_results: Optional[int] = None

    @field_validator("max_results", mode="before")
    @classmethod
    def _lenient_max_results(cls, v: Any):
        # "7" is accepted; anything unparseable falls back to the default
        if isinstance(v, bool):
            return None
        if isinstance(v, int):
            return v
        try:
            return int(str(v).strip())
        except (TypeError, ValueError):
            return None


class SuggestResponse(_CamelModel):
    claim: str
    style: str
    suggestions: list[Suggestion]


class CiteRequest(_CamelModel):
    url: str = ""
    style: Optional[str] = None


class StyleOption(BaseModel):
    id: str
    label: str


class StylesResponse(BaseModel):
    styles: list[StyleOption] = Field(default_factory=list)
