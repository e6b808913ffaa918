"""
Tests for the hybrid resolution engine.

INVARIANTS:
1. Short terms never reach the network
2. Canonical-language results carry no translation metadata
3. Fallback results tag every card with original_name == display_name
4. Translated cards show the preferred name and keep the English one
5. Failures become outcomes; they never raise past resolve()
"""

import asyncio
from unittest.mock import AsyncMock

import httpx
import pytest
import respx

from cardfinder.models.failure import UNRECOGNIZED_FORMAT_MESSAGE, FailureKind
from cardfinder.models.search import CardResult, CollectionResult, ResolutionOutcome
from cardfinder.services.resolution_engine import (
    ResolutionEngine,
    distinct_ids,
    preferred_names,
)
from cardfinder.services.search_client import CanonicalSearchClient
from cardfinder.services.translation_index import DictionaryState, EmptyTranslationIndex


def _term_reply(*entries: dict, cached: bool = False) -> httpx.Response:
    return httpx.Response(200, json={"success": True, "cached": cached, "data": list(entries)})


def _ids_reply(*cards: dict, cached: bool = False) -> httpx.Response:
    return httpx.Response(
        200,
        json={
            "success": True,
            "cached": cached,
            "data": {"pagination": {"page": 1}, "data": list(cards)},
        },
    )


@pytest.fixture
def engine(search_client: CanonicalSearchClient) -> ResolutionEngine:
    return ResolutionEngine(
        client=search_client,
        index=EmptyTranslationIndex(),
        canonical_language="en",
        min_length=2,
        dictionary_limit=10,
    )


class TestShortTerms:
    @pytest.mark.parametrize("term", ["", " ", "a", "  b  "])
    async def test_short_term_is_empty_without_network(
        self,
        engine: ResolutionEngine,
        api_mock: respx.MockRouter,
        term: str,
    ) -> None:
        route = api_mock.get("/autocomplete").mock(return_value=_term_reply())

        outcome = await engine.resolve(term, "en")

        assert outcome == ResolutionOutcome.empty()
        assert outcome.failure is None
        assert outcome.translated_label is None
        assert not route.called


class TestCanonicalLanguage:
    async def test_results_carry_no_translation(
        self,
        engine: ResolutionEngine,
        api_mock: respx.MockRouter,
        underground_sea: dict,
        alpha_set: dict,
    ) -> None:
        api_mock.get("/autocomplete").mock(
            return_value=_term_reply(underground_sea, alpha_set, cached=True)
        )

        outcome = await engine.resolve("underground", "en")

        assert outcome.cached
        assert outcome.translated_label is None
        card, collection = outcome.items
        assert isinstance(card, CardResult)
        assert card.original_name is None
        assert card.preferred_name is None
        assert isinstance(collection, CollectionResult)

    async def test_dictionary_is_not_consulted(
        self,
        engine: ResolutionEngine,
        api_mock: respx.MockRouter,
        make_index,
    ) -> None:
        index = make_index([("abc", "mare sotterraneo")])
        api_mock.get("/autocomplete").mock(return_value=_term_reply())

        await engine.with_index(index).resolve("sottomare", "en")

        assert index.lookups == []


class TestFallback:
    async def test_no_dictionary_match_falls_back_to_term_search(
        self,
        engine: ResolutionEngine,
        api_mock: respx.MockRouter,
        make_index,
        make_printing,
        alpha_set: dict,
    ) -> None:
        term_route = api_mock.get("/autocomplete").mock(
            return_value=_term_reply(
                make_printing("abc", "Underground Sea"),
                make_printing("def", "Underground River"),
                alpha_set,
            )
        )
        ids_route = api_mock.get("/cards/by-oracle-ids")

        outcome = await engine.with_index(make_index([])).resolve("underground", "it")

        assert term_route.call_count == 1
        assert not ids_route.called
        assert outcome.translated_label is None
        cards = [item for item in outcome.items if isinstance(item, CardResult)]
        assert len(cards) == 2
        for card in cards:
            assert card.original_name == card.display_name
            assert card.preferred_name is None
        assert isinstance(outcome.items[2], CollectionResult)

    async def test_empty_dictionary_falls_back(
        self,
        engine: ResolutionEngine,
        api_mock: respx.MockRouter,
        underground_sea: dict,
    ) -> None:
        api_mock.get("/autocomplete").mock(return_value=_term_reply(underground_sea))

        outcome = await engine.resolve("underground", "it")

        (card,) = outcome.items
        assert card.original_name == "Underground Sea"
        assert card.display_name == "Underground Sea"

    async def test_loading_dictionary_suspends(
        self,
        engine: ResolutionEngine,
        api_mock: respx.MockRouter,
        make_index,
    ) -> None:
        """A loading dictionary emits nothing and never falls back early."""
        route = api_mock.get("/autocomplete").mock(return_value=_term_reply())
        index = make_index([("abc", "mare sotterraneo")], state=DictionaryState.LOADING)

        outcome = await engine.with_index(index).resolve("sottomare", "it")

        assert outcome is None
        assert not route.called
        assert index.lookups == []


class TestTranslatedSearch:
    async def test_sottomare_resolves_to_underground_sea(
        self,
        engine: ResolutionEngine,
        api_mock: respx.MockRouter,
        make_index,
    ) -> None:
        index = make_index([("abc", "mare sotterraneo")])
        route = api_mock.get("/cards/by-oracle-ids").mock(
            return_value=_ids_reply(
                {"oracle_id": "abc", "printing_id": "p1", "name": "Underground Sea"}
            )
        )

        outcome = await engine.with_index(index).resolve("  sottomare ", "it")

        assert index.lookups == [("sottomare", 10)]
        assert route.calls.last.request.url.params["ids"] == "abc"
        (card,) = outcome.items
        assert card.display_name == "mare sotterraneo"
        assert card.preferred_name == "mare sotterraneo"
        assert card.original_name == "Underground Sea"
        assert outcome.translated_label == "mare sotterraneo"

    async def test_unmapped_card_keeps_english_name(
        self,
        engine: ResolutionEngine,
        api_mock: respx.MockRouter,
        make_index,
    ) -> None:
        index = make_index([("abc", "mare sotterraneo")])
        api_mock.get("/cards/by-oracle-ids").mock(
            return_value=_ids_reply(
                {"oracle_id": "abc", "printing_id": "p1", "name": "Underground Sea"},
                {"oracle_id": "zzz", "printing_id": "p2", "name": "Volcanic Island"},
            )
        )

        outcome = await engine.with_index(index).resolve("sottomare", "it")

        unmapped = outcome.items[1]
        assert unmapped.display_name == "Volcanic Island"
        assert unmapped.preferred_name is None
        assert unmapped.original_name == "Volcanic Island"

    async def test_ids_are_deduplicated_and_last_name_wins(
        self,
        engine: ResolutionEngine,
        api_mock: respx.MockRouter,
        make_index,
    ) -> None:
        index = make_index(
            [
                ("abc", "mare sotterraneo"),
                ("def", "fiume sotterraneo"),
                ("abc", "mare del sottosuolo"),
            ]
        )
        route = api_mock.get("/cards/by-oracle-ids").mock(
            return_value=_ids_reply(
                {"oracle_id": "abc", "printing_id": "p1", "name": "Underground Sea"}
            )
        )

        outcome = await engine.with_index(index).resolve("sotterraneo", "it")

        assert route.calls.last.request.url.params["ids"] == "abc,def"
        assert outcome.items[0].display_name == "mare del sottosuolo"
        # Label is the first candidate, independent of the id map
        assert outcome.translated_label == "mare sotterraneo"

    async def test_label_kept_when_first_candidate_card_is_absent(
        self,
        engine: ResolutionEngine,
        api_mock: respx.MockRouter,
        make_index,
    ) -> None:
        index = make_index([("abc", "mare sotterraneo"), ("def", "fiume sotterraneo")])
        api_mock.get("/cards/by-oracle-ids").mock(
            return_value=_ids_reply(
                {"oracle_id": "def", "printing_id": "p2", "name": "Underground River"}
            )
        )

        outcome = await engine.with_index(index).resolve("sotterraneo", "it")

        assert [item.display_name for item in outcome.items] == ["fiume sotterraneo"]
        assert outcome.translated_label == "mare sotterraneo"

    async def test_empty_preferred_name_gives_no_label(
        self,
        engine: ResolutionEngine,
        api_mock: respx.MockRouter,
        make_index,
    ) -> None:
        index = make_index([("abc", "")])
        api_mock.get("/cards/by-oracle-ids").mock(
            return_value=_ids_reply(
                {"oracle_id": "abc", "printing_id": "p1", "name": "Underground Sea"}
            )
        )

        outcome = await engine.with_index(index).resolve("sottomare", "it")

        (card,) = outcome.items
        assert card.display_name == "Underground Sea"
        assert card.preferred_name is None
        assert outcome.translated_label is None

    async def test_sets_in_batch_reply_are_filtered(
        self,
        engine: ResolutionEngine,
        api_mock: respx.MockRouter,
        make_index,
        underground_sea: dict,
        alpha_set: dict,
    ) -> None:
        api_mock.get("/cards/by-oracle-ids").mock(
            return_value=httpx.Response(
                200, json={"success": True, "data": [underground_sea, alpha_set]}
            )
        )

        outcome = await engine.with_index(make_index([("abc", "mare sotterraneo")])).resolve(
            "sottomare", "it"
        )

        assert all(isinstance(item, CardResult) for item in outcome.items)
        assert len(outcome.items) == 1


class TestFailures:
    async def test_http_error_becomes_failed_outcome(
        self,
        engine: ResolutionEngine,
        api_mock: respx.MockRouter,
    ) -> None:
        api_mock.get("/autocomplete").mock(return_value=httpx.Response(500))

        outcome = await engine.resolve("bolt", "en")

        assert outcome.items == ()
        assert not outcome.cached
        assert outcome.failure.kind == FailureKind.HTTP_ERROR
        assert outcome.failure.message == "Server error: HTTP 500"

    async def test_rate_limited_outcome(
        self,
        engine: ResolutionEngine,
        api_mock: respx.MockRouter,
        make_index,
    ) -> None:
        route = api_mock.get("/cards/by-oracle-ids").mock(return_value=httpx.Response(429))
        index = make_index([("abc", "mare sotterraneo")])
        translating = engine.with_index(index)

        first = await translating.resolve("sottomare", "it")
        second = await translating.resolve("sottomare", "it")

        assert first.failure.kind == FailureKind.RATE_LIMITED
        assert second.failure.kind == FailureKind.RATE_LIMITED
        assert second.failure.message == "Too many requests. Wait 30 seconds."
        assert route.call_count == 1

    async def test_network_error_outcome(
        self,
        engine: ResolutionEngine,
        api_mock: respx.MockRouter,
    ) -> None:
        api_mock.get("/autocomplete").mock(side_effect=httpx.ReadError("reset"))

        outcome = await engine.resolve("bolt", "en")

        assert outcome.failure.kind == FailureKind.NETWORK
        assert outcome.items == ()

    async def test_unrecognized_batch_shape(
        self,
        engine: ResolutionEngine,
        api_mock: respx.MockRouter,
        make_index,
    ) -> None:
        api_mock.get("/cards/by-oracle-ids").mock(
            return_value=httpx.Response(200, json={"success": True, "data": "???"})
        )

        outcome = await engine.with_index(make_index([("abc", "x")])).resolve("sottomare", "it")

        assert outcome.failure.kind == FailureKind.MALFORMED_RESPONSE
        assert outcome.failure.message == UNRECOGNIZED_FORMAT_MESSAGE
        assert outcome.translated_label is None

    async def test_server_reported_failure(
        self,
        engine: ResolutionEngine,
        api_mock: respx.MockRouter,
    ) -> None:
        api_mock.get("/autocomplete").mock(
            return_value=httpx.Response(200, json={"success": False, "data": []})
        )

        outcome = await engine.resolve("bolt", "en")

        assert outcome.failure.kind == FailureKind.REMOTE_ERROR
        assert outcome.failure.message == "Search failed"

    async def test_unexpected_exception_is_contained(self) -> None:
        client = AsyncMock(spec=CanonicalSearchClient)
        client.search_by_term.side_effect = KeyError("boom")
        engine = ResolutionEngine(client=client, index=EmptyTranslationIndex())

        outcome = await engine.resolve("bolt", engine.canonical_language)

        assert outcome.failure.kind == FailureKind.UNKNOWN
        assert outcome.failure.detail == "KeyError"

    async def test_cancellation_propagates(self) -> None:
        client = AsyncMock(spec=CanonicalSearchClient)
        client.search_by_term.side_effect = asyncio.CancelledError()
        engine = ResolutionEngine(client=client, index=EmptyTranslationIndex())

        with pytest.raises(asyncio.CancelledError):
            await engine.resolve("bolt", engine.canonical_language)


class TestCandidateHelpers:
    def test_distinct_ids_keeps_first_seen_order(self, make_index) -> None:
        index = make_index([("b", "1"), ("a", "2"), ("b", "3")])
        assert distinct_ids(index.candidates) == ["b", "a"]

    def test_preferred_names_last_write_wins(self, make_index) -> None:
        index = make_index([("b", "1"), ("a", "2"), ("b", "3")])
        assert preferred_names(index.candidates) == {"b": "3", "a": "2"}
