"""
Search Result Models.

Normalized shapes shared by the search client, the resolution engine
and the query session.

INVARIANTS:
- All models are frozen (immutable after construction)
- If CardResult.preferred_name is set, display_name == preferred_name
  and original_name holds the canonical-language name
- CollectionResult never carries translation metadata
"""

from dataclasses import dataclass, replace
from typing import Literal

from cardfinder.models.failure import FailureDetail, FailureKind


@dataclass(frozen=True, slots=True)
class Query:
    """
    A single debounced query issued by a session.

    Attributes:
        term: Raw term as typed
        language: Language the user selected (e.g., "it")
        sequence_id: Monotonic per-session counter used for supersession
    """

    term: str
    language: str
    sequence_id: int


@dataclass(frozen=True, slots=True)
class TranslationCandidate:
    """
    A fuzzy dictionary hit.

    Attributes:
        canonical_id: Oracle ID of the matched card
        preferred_name: Localized name to display
    """

    canonical_id: str
    preferred_name: str


@dataclass(frozen=True, slots=True)
class CardResult:
    """
    A card printing returned by the canonical index.

    Attributes:
        canonical_id: Oracle ID (stable across printings)
        display_name: Name to show; the preferred name when translated
        set_name: Printing's set name
        collector_number: Collector number within the set
        printing_id: Printing ID of this specific printing
        thumbnail_uri: Small image, if any
        original_name: Canonical-language name, set when translation was attempted
        preferred_name: Localized name, set only when a translation matched
    """

    canonical_id: str
    display_name: str
    set_name: str = ""
    collector_number: str = ""
    printing_id: str | None = None
    thumbnail_uri: str | None = None
    original_name: str | None = None
    preferred_name: str | None = None
    type: Literal["card"] = "card"

    def with_original_name(self) -> "CardResult":
        """Tag a card whose translation was attempted but unavailable."""
        return replace(self, original_name=self.display_name, preferred_name=None)

    def translated(self, preferred_name: str | None) -> "CardResult":
        """Apply a dictionary translation, preserving the canonical name."""
        return replace(
            self,
            display_name=preferred_name or self.display_name,
            preferred_name=preferred_name or None,
            original_name=self.display_name,
        )


@dataclass(frozen=True, slots=True)
class CollectionResult:
    """
    A set (collection) returned by the term search.

    Attributes:
        code: Set code (e.g., "lea")
        name: Set name
        kind: Set type (e.g., "expansion", "core")
        release_date: ISO release date, if known
        icon_uri: Set symbol, if any
    """

    code: str
    name: str
    kind: str = ""
    release_date: str | None = None
    icon_uri: str | None = None
    type: Literal["set"] = "set"


ResultItem = CardResult | CollectionResult


@dataclass(frozen=True, slots=True)
class SearchResponse:
    """
    Normalized response of either search operation.

    error/error_kind are set only when success is False.
    """

    success: bool
    cached: bool = False
    items: tuple[ResultItem, ...] = ()
    error: str | None = None
    error_kind: FailureKind | None = None


@dataclass(frozen=True, slots=True)
class ResolutionOutcome:
    """Result of one completed resolution."""

    items: tuple[ResultItem, ...] = ()
    cached: bool = False
    translated_label: str | None = None
    failure: FailureDetail | None = None

    @property
    def succeeded(self) -> bool:
        """True if the resolution ended without a classified failure."""
        return self.failure is None

    @classmethod
    def empty(cls) -> "ResolutionOutcome":
        """Outcome for terms too short to search."""
        return cls()

    @classmethod
    def failed(cls, failure: FailureDetail) -> "ResolutionOutcome":
        """Failed outcome: no items, never cached."""
        return cls(items=(), cached=False, translated_label=None, failure=failure)
