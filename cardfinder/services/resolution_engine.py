"""
Hybrid Autocomplete Resolution Engine.

Resolves a typed term into card and set results while bridging the
language gap between the user and the English-keyed search index.

Per query the engine either:
- searches the canonical index by term (canonical language), or
- translates the term through the fuzzy dictionary and fetches the
  matched oracle ids in one batch, or
- falls back to the term search when the dictionary has no match.

INVARIANTS:
1. Terms shorter than min_length never reach the network
2. Canonical-language results carry no translation metadata
3. Fallback results tag every card with original_name == display_name
4. Translated cards keep the English name in original_name
5. A resolution never raises past resolve(); failures become outcomes
6. Cancellation propagates untouched and produces no outcome
"""

import logging
from dataclasses import dataclass, replace

from cardfinder.config import settings
from cardfinder.models.failure import (
    DEFAULT_FAILURE_MESSAGE,
    FailureDetail,
    FailureKind,
    KnownError,
)
from cardfinder.models.search import (
    CardResult,
    ResolutionOutcome,
    ResultItem,
    SearchResponse,
    TranslationCandidate,
)
from cardfinder.services.search_client import CanonicalSearchClient
from cardfinder.services.translation_index import DictionaryState, TranslationIndex

logger = logging.getLogger(__name__)


def _failed_from_response(response: SearchResponse) -> ResolutionOutcome:
    return ResolutionOutcome.failed(
        FailureDetail(
            kind=response.error_kind or FailureKind.REMOTE_ERROR,
            message=response.error or DEFAULT_FAILURE_MESSAGE,
        )
    )


def _fallback_items(items: tuple[ResultItem, ...]) -> tuple[ResultItem, ...]:
    return tuple(
        item.with_original_name() if isinstance(item, CardResult) else item for item in items
    )


def _translated_items(
    items: tuple[ResultItem, ...],
    id_to_preferred: dict[str, str],
) -> tuple[CardResult, ...]:
    # The batch endpoint only returns printings; anything else is ignored
    return tuple(
        item.translated(id_to_preferred.get(item.canonical_id))
        for item in items
        if isinstance(item, CardResult)
    )


def distinct_ids(candidates: list[TranslationCandidate]) -> list[str]:
    """Candidate oracle ids, first-seen order, deduplicated by id only."""
    return list(dict.fromkeys(c.canonical_id for c in candidates))


def preferred_names(candidates: list[TranslationCandidate]) -> dict[str, str]:
    """oracle id -> preferred name. Later candidates win on duplicate ids."""
    return {c.canonical_id: c.preferred_name for c in candidates}


@dataclass
class ResolutionEngine:
    """
    Stateless per-query resolver.

    Each resolve() is a function of (term, language, dictionary snapshot,
    rate-limit state). The engine keeps nothing between calls.
    """

    client: CanonicalSearchClient
    index: TranslationIndex
    canonical_language: str = settings.canonical_language
    min_length: int = settings.min_length
    dictionary_limit: int = settings.dictionary_limit

    def with_index(self, index: TranslationIndex) -> "ResolutionEngine":
        """Same engine bound to another language's dictionary."""
        return replace(self, index=index)

    async def resolve(self, term: str, language: str) -> ResolutionOutcome | None:
        """
        Resolve a term for the given language.

        Args:
            term: Raw term as typed
            language: Language the user selected

        Returns:
            The outcome, or None if the dictionary is still loading
            (nothing to emit; the next query retries)
        """
        stripped = term.strip()
        if len(stripped) < self.min_length:
            return ResolutionOutcome.empty()

        try:
            return await self._resolve(stripped, language)
        except KnownError as e:
            logger.info(
                "RESOLUTION_FAILED",
                extra={"kind": e.kind.value, "language": language, "detail": e.detail},
            )
            return ResolutionOutcome.failed(e.to_detail())
        except Exception as e:
            logger.exception("RESOLUTION_FAILED_UNEXPECTEDLY", extra={"language": language})
            return ResolutionOutcome.failed(FailureDetail.unknown(type(e).__name__))

    async def _resolve(self, term: str, language: str) -> ResolutionOutcome | None:
        if language == self.canonical_language:
            return await self._search_term(term, translate_attempted=False)

        state = self.index.state
        if state == DictionaryState.LOADING:
            logger.debug("RESOLUTION_SUSPENDED", extra={"language": language})
            return None
        if state == DictionaryState.READY_EMPTY:
            return await self._search_term(term, translate_attempted=True)

        candidates = self.index.lookup(term, limit=self.dictionary_limit)
        if not candidates:
            logger.debug("NO_TRANSLATION_FOUND", extra={"language": language})
            return await self._search_term(term, translate_attempted=True)

        return await self._search_translated(candidates)

    async def _search_term(self, term: str, translate_attempted: bool) -> ResolutionOutcome:
        response = await self.client.search_by_term(term)
        if not response.success:
            return _failed_from_response(response)

        items = _fallback_items(response.items) if translate_attempted else response.items

        return ResolutionOutcome(items=items, cached=response.cached)

    async def _search_translated(
        self,
        candidates: list[TranslationCandidate],
    ) -> ResolutionOutcome:
        id_to_preferred = preferred_names(candidates)
        response = await self.client.search_by_ids(distinct_ids(candidates))
        if not response.success:
            return _failed_from_response(response)

        items = _translated_items(response.items, id_to_preferred)
        logger.debug(
            "TRANSLATED_RESULTS",
            extra={"candidates": len(candidates), "cards": len(items)},
        )
        return ResolutionOutcome(
            items=items,
            cached=response.cached,
            # First dictionary hit, whether or not its card came back
            translated_label=candidates[0].preferred_name or None,
        )

