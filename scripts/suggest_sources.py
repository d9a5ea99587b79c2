#!/usr/bin/env python3
"""Suggest scholarly sources for a claim from the command line."""

import argparse
import json
import logging
import sys
from pathlib import Path

# Ensure project root is on sys.path
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from sourcefinder.core.errors import ValidationError
from sourcefinder.core.settings import load_settings
from sourcefinder.discovery.orchestrator import build_discovery

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("suggest")


# ── CLI ──────────────────────────────────────────────────────────────


def main():
    parser = argparse.ArgumentParser(description="Find sources that support a claim")
    parser.add_argument("--claim", required=True, help="The sentence to substantiate")
    parser.add_argument("--style", default=None, help="Citation style (apa, mla, chicago, ieee, harvard, vancouver)")
    parser.add_argument("--max-results", type=int, default=None, help="Maximum suggestions to return")
    parser.add_argument("--threshold", type=float, default=None, help="Override the confidence threshold")
    parser.add_argument("--config", default=None, help="Path to a settings YAML file")
    parser.add_argument("--json", action="store_true", help="Print the full result as JSON")
    args = parser.parse_args()

    settings = load_settings(args.config)
    discovery = build_discovery(settings)

    try:
        result = discovery.suggest(
            args.claim,
            style=args.style,
            max_results=args.max_results,
            threshold=args.threshold,
        )
    except ValidationError as exc:
        logger.error("%s", exc)
        sys.exit(2)

    if args.json:
        print(json.dumps(result.model_dump(by_alias=True), indent=2))
        return

    if not result.suggestions:
        print("No sources met the confidence threshold.")
    for i, s in enumerate(result.suggestions, 1):
        print(f"{i}. [{s.confidence:.2f}] {s.title}")
        print(f"   {s.why}")
        print(f"   {s.in_text_citation}")
        print(f"   {s.bibliography_citation}")
    d = result.diagnostics
    logger.info(
        "fallback=%s dropped=%d threshold=%.2f likely_claim=%s",
        d.fallback_used,
        d.dropped_low_confidence,
        d.low_confidence_threshold,
        d.likely_claim,
    )


if __name__ == "__main__":
    main()
