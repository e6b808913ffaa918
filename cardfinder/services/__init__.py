"""
CardFinder services.

Rate limiting, search transport, resolution and query sessions.
"""

from cardfinder.services.query_session import QuerySession
from cardfinder.services.rate_limiter import RateLimiter, RateLimitState
from cardfinder.services.resolution_engine import ResolutionEngine
from cardfinder.services.search_client import CanonicalSearchClient
from cardfinder.services.search_plan import SearchPlan, plan_search
from cardfinder.services.translation_index import (
    DictionaryState,
    EmptyTranslationIndex,
    TranslationIndex,
)

__all__ = [
    "CanonicalSearchClient",
    "DictionaryState",
    "EmptyTranslationIndex",
    "QuerySession",
    "RateLimitState",
    "RateLimiter",
    "ResolutionEngine",
    "SearchPlan",
    "TranslationIndex",
    "plan_search",
]
