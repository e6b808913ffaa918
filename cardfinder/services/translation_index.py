"""
Fuzzy translation index contract.

The index itself (loading, fuzzy matching over both the canonical name
and the localized name) lives outside this package. The engine consumes
it only through TranslationIndex.
"""

from enum import Enum
from typing import Protocol

from cardfinder.models.search import TranslationCandidate


class DictionaryState(str, Enum):
    """Readiness of a translation dictionary."""

    LOADING = "loading"
    READY_EMPTY = "ready_empty"
    READY = "ready"


class TranslationIndex(Protocol):
    """
    Localized name -> canonical id lookup.

    lookup() must return best matches first and at most `limit` candidates.
    It is only called when state is READY.
    """

    @property
    def state(self) -> DictionaryState: ...

    def lookup(self, term: str, limit: int) -> list[TranslationCandidate]: ...


class EmptyTranslationIndex:
    """Index for when no dictionary is available for the language."""

    @property
    def state(self) -> DictionaryState:
        return DictionaryState.READY_EMPTY

    def lookup(self, term: str, limit: int) -> list[TranslationCandidate]:
        return []
