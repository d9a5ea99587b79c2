"""Claim-to-citation discovery: query, rank, fall back, filter, render."""

import json
import logging
import time
from concurrent.futures import ThreadPoolExecutor

from sourcefinder.citation.csl import to_citation_entry
from sourcefinder.citation.formatter import CitationFormatter, TextCitationFormatter
from sourcefinder.core.claims import clean_claim_text, is_length_allowed, is_likely_claim
from sourcefinder.core.errors import ProviderError, RenderError, ValidationError
from sourcefinder.core.settings import Settings
from sourcefinder.core.styles import Style
from sourcefinder.discovery.models import (
    Diagnostics,
    DiscoveryResult,
    ProviderDiagnostics,
    Suggestion,
)
from sourcefinder.ranking.ranker import Ranker
from sourcefinder.search.base import CancellationToken, SearchOptions, SourceProvider
from sourcefinder.search.crossref import CrossrefProvider
from sourcefinder.search.dedup import deduplicate
from sourcefinder.search.models import ScoredSource, Source
from sourcefinder.search.openalex import OpenAlexProvider

logger = logging.getLogger(__name__)

ProviderOutcome = tuple[list[Source], ProviderDiagnostics]


class SourceDiscovery:
    """Runs one suggest request end to end.

    Holds only read-only collaborators; every call builds its own state, so
    one instance serves concurrent requests.
    """

    def __init__(
        self,
        settings: Settings,
        primary: SourceProvider,
        secondary: SourceProvider,
        formatter: CitationFormatter | None = None,
        ranker: Ranker | None = None,
    ):
        self.settings = settings
        self.styles = settings.style_registry()
        self.primary = primary
        self.secondary = secondary
        self.formatter = formatter or TextCitationFormatter()
        self.ranker = ranker or Ranker(settings.weights)

    # ── Public API ───────────────────────────────────────────────────

    def suggest(
        self,
        claim,
        style: str | None = None,
        max_results=None,
        threshold: float | None = None,
        context: str = "",
    ) -> DiscoveryResult:
        """Return ranked, rendered suggestions for a claim.

        Raises ValidationError for bad input before any provider is called.
        Provider and per-item rendering failures degrade instead of raising.
        """
        cfg = self.settings.discovery
        cleaned = self.validate_claim(claim)
        resolved_style = self.styles.resolve(style)
        limit = self._max_results(max_results)
        threshold = self._threshold(threshold)
        if context:
            logger.debug("Ignoring %d chars of surrounding context", len(context))

        diagnostics = Diagnostics(
            low_confidence_threshold=threshold,
            likely_claim=is_likely_claim(cleaned, cfg.claim_min_length, cfg.claim_max_length),
        )
        options = self.settings.providers.search_options()

        if cfg.prefetch_secondary:
            ranked = self._discover_prefetched(cleaned, options, threshold, diagnostics)
        else:
            ranked = self._discover_sequential(cleaned, options, threshold, diagnostics)

        confident = [s for s in ranked if s.confidence >= threshold]
        diagnostics.dropped_low_confidence = len(ranked) - len(confident)

        suggestions = []
        for source in confident[:limit]:
            suggestion = self._render(source, resolved_style)
            if suggestion is None:
                diagnostics.dropped_render_failures += 1
            else:
                suggestions.append(suggestion)

        result = DiscoveryResult(
            claim=cleaned,
            style=resolved_style.id,
            suggestions=suggestions,
            diagnostics=diagnostics,
        )
        logger.info(
            "sources_suggest %s",
            json.dumps({
                "claimLength": len(cleaned),
                "suggestionCount": len(suggestions),
                "diagnostics": diagnostics.model_dump(by_alias=True),
            }),
        )
        return result

    def validate_claim(self, claim) -> str:
        cfg = self.settings.discovery
        cleaned = clean_claim_text(claim)
        if not cleaned:
            raise ValidationError("A claim is required.")
        if not is_length_allowed(cleaned, cfg.claim_min_length, cfg.claim_max_length):
            raise ValidationError(
                f"Claim length must be between {cfg.claim_min_length} and "
                f"{cfg.claim_max_length} characters."
            )
        return cleaned

    # ── Flow ─────────────────────────────────────────────────────────

    def _needs_fallback(self, ranked: list[ScoredSource], threshold: float) -> bool:
        confident = sum(1 for s in ranked if s.confidence >= threshold)
        return confident < self.settings.discovery.fallback_trigger_count

    def _rank(self, claim: str, sources: list[Source]) -> list[ScoredSource]:
        return self.ranker.rank(claim, deduplicate(sources).unique_sources)

    def _discover_sequential(
        self,
        claim: str,
        options: SearchOptions,
        threshold: float,
        diagnostics: Diagnostics,
    ) -> list[ScoredSource]:
        primary_sources, primary_diag = self._query(self.primary, claim, options)
        diagnostics.providers.append(primary_diag)

        ranked = self._rank(claim, primary_sources)
        if not self._needs_fallback(ranked, threshold):
            return ranked

        diagnostics.fallback_used = True
        secondary_sources, secondary_diag = self._query(self.secondary, claim, options)
        diagnostics.providers.append(secondary_diag)

        # Scores depend on the pool, so the merged set is ranked from scratch
        return self._rank(claim, primary_sources + secondary_sources)

    def _discover_prefetched(
        self,
        claim: str,
        options: SearchOptions,
        threshold: float,
        diagnostics: Diagnostics,
    ) -> list[ScoredSource]:
        secondary_token = CancellationToken(options.timeout_seconds)
        pool = ThreadPoolExecutor(max_workers=2, thread_name_prefix="provider")
        use_secondary = False
        try:
            primary_future = pool.submit(self._query, self.primary, claim, options)
            secondary_future = pool.submit(
                self._query, self.secondary, claim, options, secondary_token
            )

            primary_sources, primary_diag = primary_future.result()
            diagnostics.providers.append(primary_diag)
            ranked = self._rank(claim, primary_sources)

            if not self._needs_fallback(ranked, threshold):
                secondary_token.cancel()
                return ranked

            use_secondary = True
            diagnostics.fallback_used = True
            # Barrier: the secondary call is bounded by its own token timeout
            secondary_sources, secondary_diag = secondary_future.result()
            diagnostics.providers.append(secondary_diag)
        finally:
            # A discarded secondary call is left to finish in the background
            pool.shutdown(wait=use_secondary, cancel_futures=not use_secondary)

        return self._rank(claim, primary_sources + secondary_sources)

    # ── Providers ────────────────────────────────────────────────────

    def _query(
        self,
        provider: SourceProvider,
        claim: str,
        options: SearchOptions,
        token: CancellationToken | None = None,
    ) -> ProviderOutcome:
        """One attempt against one provider; failures become an empty set."""
        token = token or CancellationToken(options.timeout_seconds)
        diag = ProviderDiagnostics(provider=provider.name)
        started = time.monotonic()
        sources: list[Source] = []

        try:
            sources = [s for s in provider.search(claim, options, token) if s.is_usable]
        except ProviderError as exc:
            logger.warning("%s search failed: %s", provider.name, exc)
            diag.error = str(exc)
            diag.timed_out = exc.timed_out
        except Exception as exc:
            logger.error("%s search raised unexpectedly", provider.name, exc_info=True)
            diag.error = f"{type(exc).__name__}: {exc}"

        diag.latency_ms = int((time.monotonic() - started) * 1000)
        diag.result_count = len(sources)
        return sources, diag

    # ── Rendering ────────────────────────────────────────────────────

    def _render(self, source: ScoredSource, style: Style) -> Suggestion | None:
        try:
            formatted = self.formatter.format(to_citation_entry(source), style)
        except RenderError as exc:
            logger.warning("Citation rendering failed for %r: %s", source.title, exc)
            return None
        except Exception:
            logger.error("Citation rendering raised for %r", source.title, exc_info=True)
            return None

        return Suggestion(
            id=source.id,
            title=source.title,
            url=source.url,
            doi=source.doi,
            authors=list(source.author_names),
            year=source.year,
            venue=source.venue,
            abstract_snippet=source.abstract_snippet,
            confidence=source.confidence,
            why=source.why,
            in_text_citation=formatted.in_text,
            bibliography_citation=formatted.bibliography,
        )

    # ── Input Bounds ─────────────────────────────────────────────────

    def _max_results(self, value) -> int:
        cfg = self.settings.discovery
        if not isinstance(value, int) or isinstance(value, bool):
            return cfg.default_max_results
        return max(1, min(value, cfg.max_results_ceiling))

    def _threshold(self, value) -> float:
        if value is None:
            return self.settings.discovery.confidence_threshold
        if not isinstance(value, (int, float)) or not 0.0 <= value <= 1.0:
            raise ValidationError("Confidence threshold must be between 0 and 1.")
        return float(value)


def build_discovery(settings: Settings) -> SourceDiscovery:
    """Default wiring: OpenAlex first, Crossref as the fallback registry."""
    return SourceDiscovery(
        settings,
        primary=OpenAlexProvider(settings.providers.openalex_url),
        secondary=CrossrefProvider(settings.providers.crossref_url),
        formatter=TextCitationFormatter(),
    )
