from collections.abc import AsyncIterator, Iterator

import httpx
import pytest
import respx

from cardfinder.config import Settings
from cardfinder.models.search import TranslationCandidate
from cardfinder.services.rate_limiter import RateLimiter
from cardfinder.services.search_client import CanonicalSearchClient
from cardfinder.services.translation_index import DictionaryState

API_URL = "https://search.test/api"


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeTranslationIndex:
    """In-memory dictionary returning canned candidates in order."""

    def __init__(
        self,
        candidates: list[TranslationCandidate] | None = None,
        state: DictionaryState | None = None,
    ) -> None:
        self.candidates = list(candidates or [])
        self._state = state or DictionaryState.READY
        self.lookups: list[tuple[str, int]] = []

    @property
    def state(self) -> DictionaryState:
        return self._state

    def lookup(self, term: str, limit: int) -> list[TranslationCandidate]:
        self.lookups.append((term, limit))
        return self.candidates[:limit]


def _printing(
    oracle_id: str,
    name: str,
    printing_id: str | None = None,
    **extra: str,
) -> dict:
    entry = {
        "type": "card",
        "oracle_id": oracle_id,
        "printing_id": printing_id or f"print-{oracle_id}",
        "name": name,
        "set_name": "Limited Edition Beta",
        "collector_number": "287",
        "image_uri_small": f"https://img.test/{oracle_id}/small.jpg",
    }
    entry.update(extra)
    return entry


@pytest.fixture
def search_settings() -> Settings:
    return Settings(search_api_url=API_URL, canonical_language="en")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def rate_limiter(clock: FakeClock) -> RateLimiter:
    return RateLimiter(cooldown_seconds=30, clock=clock)


@pytest.fixture
async def search_client(
    search_settings: Settings,
    rate_limiter: RateLimiter,
) -> AsyncIterator[CanonicalSearchClient]:
    async with httpx.AsyncClient() as http_client:
        yield CanonicalSearchClient(
            rate_limiter=rate_limiter,
            client=http_client,
            config=search_settings,
        )


@pytest.fixture
def underground_sea() -> dict:
    return _printing("abc", "Underground Sea")


@pytest.fixture
def alpha_set() -> dict:
    return {
        "type": "set",
        "code": "lea",
        "name": "Limited Edition Alpha",
        "set_type": "core",
        "released_at": "1993-08-05",
        "icon_svg_uri": "https://img.test/sets/lea.svg",
    }


@pytest.fixture
def make_printing():
    """Factory for term-search / flat batch printing entries."""
    return _printing


@pytest.fixture
def make_index():
    """Factory for in-memory translation dictionaries."""

    def _make(
        pairs: list[tuple[str, str]] | None = None,
        state: DictionaryState = DictionaryState.READY,
    ) -> FakeTranslationIndex:
        candidates = [TranslationCandidate(cid, name) for cid, name in pairs or []]
        return FakeTranslationIndex(candidates, state=state)

    return _make


@pytest.fixture
def api_mock() -> Iterator[respx.MockRouter]:
    """Mocked search API. Routes are relative to API_URL."""
    with respx.mock(base_url=API_URL, assert_all_called=False) as mock:
        yield mock
