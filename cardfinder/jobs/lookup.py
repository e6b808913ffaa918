"""
One-shot autocomplete lookup.

Runs a single resolution against the configured search API and prints
the results. No translation dictionary is loaded here, so non-English
lookups exercise the fallback path.

Usage:
    python -m cardfinder.jobs.lookup "underground sea"
    python -m cardfinder.jobs.lookup "sottomare" --lang it
"""

import argparse
import asyncio
import logging

from cardfinder.config import settings
from cardfinder.models.search import CardResult, ResolutionOutcome
from cardfinder.services.resolution_engine import ResolutionEngine
from cardfinder.services.search_client import CanonicalSearchClient
from cardfinder.services.translation_index import EmptyTranslationIndex

logger = logging.getLogger(__name__)


def format_outcome(outcome: ResolutionOutcome | None) -> list[str]:
    """Render an outcome as printable lines."""
    if outcome is None:
        return ["Dictionary still loading, nothing to show."]
    if outcome.failure is not None:
        return [f"Error: {outcome.failure.message}"]
    if not outcome.items:
        return ["No results."]

    lines: list[str] = []
    if outcome.translated_label:
        lines.append(f"Translated: {outcome.translated_label}")
    for item in outcome.items:
        if isinstance(item, CardResult):
            name = item.display_name
            if item.original_name and item.original_name != item.display_name:
                name += f" ({item.original_name})"
            lines.append(f"card  {name} [{item.set_name} #{item.collector_number}]")
        else:
            lines.append(f"set   {item.name} [{item.code}]")
    if outcome.cached:
        lines.append("(cached)")
    return lines


async def run_lookup(term: str, language: str) -> ResolutionOutcome | None:
    """Resolve one term with a fresh client."""
    async with CanonicalSearchClient() as client:
        engine = ResolutionEngine(client=client, index=EmptyTranslationIndex())
        outcome = await engine.resolve(term, language)

    logger.info(
        "Lookup finished for %r (%s): %d items",
        term,
        language,
        len(outcome.items) if outcome else 0,
    )
    return outcome


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Autocomplete lookup")
    parser.add_argument("term", help="Search term")
    parser.add_argument(
        "--lang",
        default=settings.canonical_language,
        help="Language of the term (default: canonical language)",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    outcome = asyncio.run(run_lookup(args.term, args.lang))
    for line in format_outcome(outcome):
        print(line)


if __name__ == "__main__":
    main()
