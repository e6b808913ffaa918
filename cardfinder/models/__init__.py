from cardfinder.models.failure import (
    DEFAULT_FAILURE_MESSAGE,
    UNRECOGNIZED_FORMAT_MESSAGE,
    FailureDetail,
    FailureKind,
    HttpStatusError,
    KnownError,
    MalformedResponseError,
    NetworkError,
    RateLimitedError,
)
from cardfinder.models.search import (
    CardResult,
    CollectionResult,
    Query,
    ResolutionOutcome,
    ResultItem,
    SearchResponse,
    TranslationCandidate,
)
from cardfinder.models.state import AutocompleteState

__all__ = [
    "AutocompleteState",
    "CardResult",
    "CollectionResult",
    "DEFAULT_FAILURE_MESSAGE",
    "FailureDetail",
    "FailureKind",
    "HttpStatusError",
    "KnownError",
    "MalformedResponseError",
    "NetworkError",
    "Query",
    "RateLimitedError",
    "ResolutionOutcome",
    "ResultItem",
    "SearchResponse",
    "TranslationCandidate",
    "UNRECOGNIZED_FORMAT_MESSAGE",
]
