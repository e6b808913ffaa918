"""
Failure Classification — Search Error Taxonomy.

Every failure a resolution can end in is classified into a FailureKind
and carried to the observable state as a FailureDetail.

INVARIANTS:
- Classified failures replace results with an empty list
- Cancellation (asyncio.CancelledError) is NEVER classified
- No automatic retries; the rate-limit cooldown is the only backoff
"""

import math
from enum import Enum

from pydantic import BaseModel, Field


class FailureKind(str, Enum):
    """Classification of resolution failures."""

    # Client-side gate
    RATE_LIMITED = "rate_limited"

    # Transport failures
    NETWORK = "network"
    HTTP_ERROR = "http_error"

    # Response failures
    MALFORMED_RESPONSE = "malformed_response"
    REMOTE_ERROR = "remote_error"

    # Unknown
    UNKNOWN = "unknown"


# Fixed, user-facing fallback message
DEFAULT_FAILURE_MESSAGE = "Search failed"

UNRECOGNIZED_FORMAT_MESSAGE = "unrecognized response format"


class FailureDetail(BaseModel):
    """Detailed information about a failure."""

    kind: FailureKind = Field(
        ...,
        description="Classification of the failure",
    )
    message: str = Field(
        ...,
        description="User-appropriate explanation of what went wrong",
    )
    detail: str | None = Field(
        default=None,
        description="Additional technical detail (optional)",
    )
    suggestion: str | None = Field(
        default=None,
        description="Suggested action for the user",
    )

    @classmethod
    def unknown(cls, detail: str | None = None) -> "FailureDetail":
        """Failure for an exception the engine did not anticipate."""
        return cls(
            kind=FailureKind.UNKNOWN,
            message=DEFAULT_FAILURE_MESSAGE,
            detail=detail,
            suggestion="If this persists, please report the issue.",
        )


class KnownError(Exception):
    """
    Base class for exceptions that represent known, explainable failures.

    Subclass this for errors where the system knows exactly what went wrong.
    """

    def __init__(
        self,
        kind: FailureKind,
        message: str,
        detail: str | None = None,
        suggestion: str | None = None,
        status_code: int | None = None,
    ):
        self.kind = kind
        self.message = message
        self.detail = detail
        self.suggestion = suggestion
        self.status_code = status_code
        super().__init__(message)

    def to_detail(self) -> FailureDetail:
        """Convert to a FailureDetail."""
        return FailureDetail(
            kind=self.kind,
            message=self.message,
            detail=self.detail,
            suggestion=self.suggestion,
        )


class RateLimitedError(KnownError):
    """
    Raised while the client is inside a rate-limit cooldown window.

    No request is made when this is raised.
    """

    def __init__(self, seconds_remaining: float):
        self.seconds_remaining = max(0, math.ceil(seconds_remaining))
        super().__init__(
            kind=FailureKind.RATE_LIMITED,
            message=f"Too many requests. Wait {self.seconds_remaining} seconds.",
            detail=f"Cooldown: {self.seconds_remaining}s remaining",
            suggestion="Keep typing once the cooldown expires.",
            status_code=429,
        )


class NetworkError(KnownError):
    """Transport or connectivity failure."""

    def __init__(self, detail: str | None = None):
        super().__init__(
            kind=FailureKind.NETWORK,
            message="Connection error. Check your network and try again.",
            detail=detail,
        )


class HttpStatusError(KnownError):
    """Non-2xx response other than 429."""

    def __init__(self, status: int):
        self.status = status
        super().__init__(
            kind=FailureKind.HTTP_ERROR,
            message=f"Server error: HTTP {status}",
            detail=f"status={status}",
            status_code=status,
        )


class MalformedResponseError(KnownError):
    """Response body could not be decoded or did not match any known envelope."""

    def __init__(self, detail: str | None = None):
        super().__init__(
            kind=FailureKind.MALFORMED_RESPONSE,
            message=UNRECOGNIZED_FORMAT_MESSAGE,
            detail=detail,
        )
