"""Service settings: YAML file, pydantic validation, environment overrides."""

import logging
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, model_validator

from sourcefinder.core.styles import (
    DEFAULT_STYLE_ALIASES,
    DEFAULT_STYLES,
    Style,
    StyleRegistry,
)
from sourcefinder.ranking.ranker import RankingWeights
from sourcefinder.search.base import SearchOptions
from sourcefinder.search.crossref import CROSSREF_WORKS_URL
from sourcefinder.search.openalex import OPENALEX_WORKS_URL

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "SOURCEFINDER_CONFIG"


# ── Sections ─────────────────────────────────────────────────────────


class ProviderSettings(BaseModel):
    """Outbound provider calls."""

    timeout_seconds: float = Field(default=8.0, gt=0)
    candidate_limit: int = Field(default=10, ge=1, le=25)
    contact_email: str = ""
    user_agent: str = "sourcefinder/1.0"
    openalex_url: str = OPENALEX_WORKS_URL
    crossref_url: str = CROSSREF_WORKS_URL
    page_fetch_timeout_seconds: float = Field(default=10.0, gt=0)

    def search_options(self) -> SearchOptions:
        return SearchOptions(
            limit=self.candidate_limit,
            contact_email=self.contact_email,
            user_agent=self.user_agent,
            timeout_seconds=self.timeout_seconds,
        )


class DiscoverySettings(BaseModel):
    """Thresholds and bounds for the suggest flow."""

    confidence_threshold: float = Field(default=0.55, ge=0.0, le=1.0)
    fallback_trigger_count: int = Field(default=3, ge=0)
    default_max_results: int = Field(default=5, ge=1)
    max_results_ceiling: int = Field(default=10, ge=1)
    claim_min_length: int = Field(default=25, ge=1)
    claim_max_length: int = Field(default=280, ge=1)
    prefetch_secondary: bool = False

    @model_validator(mode="after")
    def _consistent_bounds(self) -> "DiscoverySettings":
        if self.claim_min_length > self.claim_max_length:
            raise ValueError(
                f"claim_min_length ({self.claim_min_length}) must be <= "
                f"claim_max_length ({self.claim_max_length})"
            )
        if self.default_max_results > self.max_results_ceiling:
            raise ValueError(
                f"default_max_results ({self.default_max_results}) must be <= "
                f"max_results_ceiling ({self.max_results_ceiling})"
            )
        return self


# ── Top-level ────────────────────────────────────────────────────────


class Settings(BaseModel):
    """Process-wide configuration, read-only once the service starts."""

    providers: ProviderSettings = Field(default_factory=ProviderSettings)
    discovery: DiscoverySettings = Field(default_factory=DiscoverySettings)
    weights: RankingWeights = Field(default_factory=RankingWeights)
    styles: list[Style] = Field(default_factory=lambda: list(DEFAULT_STYLES))
    style_aliases: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_STYLE_ALIASES))
    default_style: str = "apa"
    cors_origins: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _styles_resolve(self) -> "Settings":
        # Fail at startup, not on the first request
        self.style_registry()
        return self

    def style_registry(self) -> StyleRegistry:
        return StyleRegistry(self.styles, self.style_aliases, self.default_style)


# ── Loading ──────────────────────────────────────────────────────────


def _apply_env_overrides(raw: dict) -> dict:
    providers = raw.setdefault("providers", {}) or {}
    raw["providers"] = providers

    email = os.getenv("SOURCEFINDER_CONTACT_EMAIL", "").strip()
    if email:
        providers["contact_email"] = email

    user_agent = os.getenv("SOURCEFINDER_USER_AGENT", "").strip()
    if user_agent:
        providers["user_agent"] = user_agent

    origins = os.getenv("SOURCEFINDER_CORS_ORIGINS", "")
    parsed = [o.strip() for o in origins.split(",") if o.strip()]
    if parsed:
        raw["cors_origins"] = parsed

    return raw


def load_settings(path: str | Path | None = None) -> Settings:
    """Load settings from YAML (explicit path, then $SOURCEFINDER_CONFIG).

    With no file, the built-in defaults apply. Environment variables
    override the contact email, user agent, and CORS origins.
    """
    path = path or os.getenv(CONFIG_ENV_VAR)
    raw: dict = {}
    if path:
        path = Path(path)
        with open(path) as f:
            raw = yaml.safe_load(f) or {}
        if not isinstance(raw, dict):
            raise ValueError(f"Settings file {path} must contain a mapping")
        logger.info("Loaded settings from %s", path)

    return Settings.model_validate(_apply_env_overrides(raw))
