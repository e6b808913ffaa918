"""
Canonical search client.

Queries the canonical-language (English) search API by term or by a
batch of oracle ids and normalizes both response envelopes into
SearchResponse.

Every call goes through the shared RateLimiter first.
"""

import logging
from types import TracebackType
from typing import Any

import httpx

from cardfinder.config import BY_IDS_PAGE, BY_IDS_SORT, Settings, settings
from cardfinder.models.failure import (
    HttpStatusError,
    MalformedResponseError,
    NetworkError,
    RateLimitedError,
)
from cardfinder.models.search import SearchResponse
from cardfinder.parsers.search_api import parse_ids_response, parse_term_response
from cardfinder.services.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


def _retry_after_hint(response: httpx.Response) -> float | None:
    value = response.headers.get("Retry-After")
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        return None


class CanonicalSearchClient:
    """
    Async client for the canonical search API.

    Pass an httpx.AsyncClient for connection reuse (and for tests);
    otherwise the client owns one and closes it in aclose().
    """

    def __init__(
        self,
        rate_limiter: RateLimiter | None = None,
        client: httpx.AsyncClient | None = None,
        config: Settings | None = None,
    ) -> None:
        self._config = config or settings
        self.rate_limiter = rate_limiter or RateLimiter(
            cooldown_seconds=self._config.rate_limit_cooldown_seconds
        )
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=self._config.request_timeout)

    @property
    def autocomplete_url(self) -> str:
        return self._config.search_api_url.rstrip("/") + self._config.autocomplete_path

    @property
    def by_ids_url(self) -> str:
        return self._config.search_api_url.rstrip("/") + self._config.by_ids_path

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "CanonicalSearchClient":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def search_by_term(self, term: str) -> SearchResponse:
        """
        Search the canonical index by term.

        Args:
            term: Search term; surrounding whitespace is stripped

        Returns:
            SearchResponse with mixed card and set items

        Raises:
            RateLimitedError: If inside a cooldown, or the server throttled
            HttpStatusError: On any other non-2xx status
            NetworkError: On transport failure
            MalformedResponseError: If the body is not JSON
        """
        payload = await self._get_json(self.autocomplete_url, {"term": term.strip()})
        return parse_term_response(payload)

    async def search_by_ids(self, ids: list[str]) -> SearchResponse:
        """
        Fetch the first page of printings for a batch of oracle ids.

        Args:
            ids: Oracle ids, sent comma-joined

        Returns:
            SearchResponse with card items

        Raises:
            Same as search_by_term
        """
        params = {
            "ids": ",".join(ids),
            "page": str(BY_IDS_PAGE),
            "sort": BY_IDS_SORT,
        }
        payload = await self._get_json(self.by_ids_url, params)
        return parse_ids_response(payload)

    async def _get_json(self, url: str, params: dict[str, str]) -> Any:
        self.rate_limiter.check_or_raise()

        try:
            response = await self._client.get(
                url,
                params=params,
                headers={
                    "Accept": "application/json",
                    "User-Agent": self._config.user_agent,
                },
            )
        except httpx.RequestError as e:
            logger.warning("SEARCH_REQUEST_FAILED", extra={"url": url, "error": str(e)})
            raise NetworkError(detail=f"{type(e).__name__}: {e}") from e

        if response.status_code == 429:
            self.rate_limiter.record_throttled(_retry_after_hint(response))
            raise RateLimitedError(self.rate_limiter.cooldown_seconds)

        self.rate_limiter.record_success()

        if not response.is_success:
            logger.warning(
                "SEARCH_HTTP_ERROR",
                extra={"url": url, "status": response.status_code},
            )
            raise HttpStatusError(response.status_code)

        try:
            return response.json()
        except ValueError as e:
            raise MalformedResponseError(detail="Response body is not JSON") from e
