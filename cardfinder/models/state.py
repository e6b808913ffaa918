"""
Observable autocomplete state.

The snapshot a QuerySession hands to its presentation layer after every
committed change.
"""

from dataclasses import dataclass, field, replace

from cardfinder.config import settings
from cardfinder.models.failure import FailureKind
from cardfinder.models.search import ResolutionOutcome, ResultItem


@dataclass(frozen=True, slots=True)
class AutocompleteState:
    """
    What presentation renders.

    Attributes:
        results: Items of the latest committed resolution
        loading: True while a resolution is in flight
        error: Human-readable message of the latest failure
        error_kind: Classification of the latest failure
        cached: True if the remote index served the results from cache
        translated_label: First dictionary hit's preferred name
        display_limit: Cap applied by display_results
    """

    results: tuple[ResultItem, ...] = ()
    loading: bool = False
    error: str | None = None
    error_kind: FailureKind | None = None
    cached: bool = False
    translated_label: str | None = None
    display_limit: int = field(default=settings.max_display_results, compare=False)

    @property
    def display_results(self) -> tuple[ResultItem, ...]:
        """Results capped for display."""
        return self.results[: self.display_limit]

    def started(self) -> "AutocompleteState":
        """Same results, marked loading; the previous error and label are cleared."""
        return replace(self, loading=True, error=None, error_kind=None, translated_label=None)

    def idle(self) -> "AutocompleteState":
        """Same results, no longer loading."""
        return replace(self, loading=False)

    @classmethod
    def from_outcome(
        cls,
        outcome: ResolutionOutcome,
        display_limit: int = settings.max_display_results,
    ) -> "AutocompleteState":
        """Build the settled state for a completed resolution."""
        failure = outcome.failure
        return cls(
            results=outcome.items,
            loading=False,
            error=failure.message if failure else None,
            error_kind=failure.kind if failure else None,
            cached=outcome.cached,
            translated_label=outcome.translated_label,
            display_limit=display_limit,
        )
