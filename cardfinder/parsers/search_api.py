"""
Search API envelope parser.

Normalizes the two response families of the canonical search API into
SearchResponse:

- Term search: {success, cached, data: [printing | set, ...], error?}
- Batch by oracle ids, one of
    1. {success, cached?, data: {pagination, data: [card, ...]}}
    2. {success, cached?, data: [printing, ...]}

Anything else is reported as an unrecognized format. The remote contract
is not assumed stable.
"""

import logging
from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError

from cardfinder.models.failure import (
    DEFAULT_FAILURE_MESSAGE,
    UNRECOGNIZED_FORMAT_MESSAGE,
    FailureKind,
)
from cardfinder.models.search import CardResult, CollectionResult, ResultItem, SearchResponse

logger = logging.getLogger(__name__)

SET_TYPE_TAG = "set"


class PrintingRecord(BaseModel):
    """A card printing as returned by the term search and the flat batch shape."""

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    oracle_id: str | None = None
    printing_id: str | None = None
    name: str
    set_name: str | None = None
    collector_number: str | None = None
    image_uri_small: str | None = None

    def to_result(self) -> CardResult | None:
        if not self.oracle_id:
            return None
        return CardResult(
            canonical_id=self.oracle_id,
            display_name=self.name,
            set_name=self.set_name or "",
            collector_number=self.collector_number or "",
            printing_id=self.printing_id,
            thumbnail_uri=self.image_uri_small,
        )


class CardRecord(BaseModel):
    """A full card as returned inside the paginated batch shape."""

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    oracle_id: str | None = None
    printing_id: str | None = None
    name: str
    set_name: str | None = None
    collector_number: str | None = None
    image_uri_small: str | None = None
    front_image_url: str | None = None
    image_uri_normal: str | None = None

    @property
    def thumbnail_uri(self) -> str | None:
        """First available image: small, then front, then normal."""
        return self.image_uri_small or self.front_image_url or self.image_uri_normal or None

    def to_result(self) -> CardResult | None:
        # Both identifiers are needed to link to a printing
        if not self.oracle_id or not self.printing_id:
            return None
        return CardResult(
            canonical_id=self.oracle_id,
            display_name=self.name,
            set_name=self.set_name or "",
            collector_number=self.collector_number or "",
            printing_id=self.printing_id,
            thumbnail_uri=self.thumbnail_uri,
        )


class SetRecord(BaseModel):
    """A set as returned by the term search."""

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    code: str
    name: str
    set_type: str | None = None
    released_at: str | None = None
    icon_svg_uri: str | None = None

    def to_result(self) -> CollectionResult:
        return CollectionResult(
            code=self.code,
            name=self.name,
            kind=self.set_type or "",
            release_date=self.released_at,
            icon_uri=self.icon_svg_uri,
        )


def parse_result_item(raw: Any) -> ResultItem | None:
    """
    Convert one raw term-search entry into a ResultItem.

    Entries tagged "set" become CollectionResult; everything else is a card.

    Returns:
        The normalized item, or None if the entry is unusable
    """
    if not isinstance(raw, dict):
        return None

    try:
        if raw.get("type") == SET_TYPE_TAG:
            return SetRecord.model_validate(raw).to_result()
        return PrintingRecord.model_validate(raw).to_result()
    except ValidationError as e:
        logger.debug("SKIPPED_INVALID_ITEM", extra={"errors": e.error_count()})
        return None


def parse_card_record(raw: Any) -> CardResult | None:
    """Convert one paginated-shape card into a CardResult, or None if dropped."""
    if not isinstance(raw, dict):
        return None

    try:
        return CardRecord.model_validate(raw).to_result()
    except ValidationError as e:
        logger.debug("SKIPPED_INVALID_CARD", extra={"errors": e.error_count()})
        return None


def _collect(
    entries: list[Any],
    parse: Callable[[Any], ResultItem | None],
) -> tuple[ResultItem, ...]:
    items: list[ResultItem] = []
    for entry in entries:
        item = parse(entry)
        if item is not None:
            items.append(item)

    dropped = len(entries) - len(items)
    if dropped:
        logger.debug("DROPPED_ITEMS", extra={"dropped": dropped, "kept": len(items)})
    return tuple(items)


def _remote_failure(payload: dict[str, Any]) -> SearchResponse:
    error = payload.get("error")
    return SearchResponse(
        success=False,
        error=error if isinstance(error, str) and error else DEFAULT_FAILURE_MESSAGE,
        error_kind=FailureKind.REMOTE_ERROR,
    )


def unrecognized_response() -> SearchResponse:
    """Response for an envelope matching no known shape."""
    return SearchResponse(
        success=False,
        error=UNRECOGNIZED_FORMAT_MESSAGE,
        error_kind=FailureKind.MALFORMED_RESPONSE,
    )


def parse_term_response(payload: Any) -> SearchResponse:
    """
    Parse a term search response.

    Args:
        payload: Decoded JSON body

    Returns:
        SearchResponse with mixed card and set items
    """
    if not isinstance(payload, dict):
        return unrecognized_response()

    if payload.get("success") is False:
        return _remote_failure(payload)

    data = payload.get("data")
    if not payload.get("success") or not isinstance(data, list):
        return unrecognized_response()

    return SearchResponse(
        success=True,
        cached=bool(payload.get("cached", False)),
        items=_collect(data, parse_result_item),
    )


def parse_ids_response(payload: Any) -> SearchResponse:
    """
    Parse a batch-by-oracle-ids response in either supported shape.

    The paginated shape is unwrapped and each card converted; cards missing
    an oracle id or printing id are dropped. The flat shape is already
    normalized and passed through.

    Args:
        payload: Decoded JSON body

    Returns:
        SearchResponse; the flat shape is passed through unfiltered
    """
    if not isinstance(payload, dict):
        return unrecognized_response()

    if payload.get("success") is False:
        return _remote_failure(payload)

    if not payload.get("success"):
        return unrecognized_response()

    cached = bool(payload.get("cached", False))
    data = payload.get("data")

    if isinstance(data, dict) and isinstance(data.get("data"), list):
        return SearchResponse(
            success=True,
            cached=cached,
            items=_collect(data["data"], parse_card_record),
        )

    if isinstance(data, list):
        return SearchResponse(
            success=True,
            cached=cached,
            items=_collect(data, parse_result_item),
        )

    return unrecognized_response()
