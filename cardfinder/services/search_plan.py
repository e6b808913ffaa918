"""
Full-search submission planning.

When the user submits the search box instead of picking a suggestion,
the full results page is queried either by term (canonical language)
or by the oracle ids the dictionary translated the term into.
"""

from dataclasses import dataclass

from cardfinder.config import settings
from cardfinder.services.resolution_engine import distinct_ids
from cardfinder.services.translation_index import DictionaryState, TranslationIndex

MIN_SUBMIT_LENGTH = 2


@dataclass(frozen=True, slots=True)
class SearchPlan:
    """
    How to run a submitted search.

    Exactly one of term / ids is set.

    Attributes:
        language: Language of the results page
        term: Canonical-language term search
        ids: Oracle ids to fetch after translation
        original_term: What the user typed, kept for display on id searches
    """

    language: str
    term: str | None = None
    ids: tuple[str, ...] = ()
    original_term: str | None = None

    @property
    def is_translated(self) -> bool:
        return bool(self.ids)

    def to_query_params(self) -> dict[str, str]:
        """Query string parameters for the results page."""
        if self.is_translated:
            return {
                "ids": ",".join(self.ids),
                "lang": self.language,
                "originalTerm": self.original_term or "",
            }
        return {"term": self.term or "", "lang": self.language}


def plan_search(
    term: str,
    language: str,
    index: TranslationIndex,
    canonical_language: str = settings.canonical_language,
    limit: int = settings.submit_dictionary_limit,
) -> SearchPlan | None:
    """
    Decide how a submitted term is searched.

    Args:
        term: Raw submitted text
        language: Selected language
        index: Dictionary for the selected language
        canonical_language: Language the index is keyed by
        limit: Max dictionary candidates to consider

    Returns:
        The plan, or None if the term is too short to submit
    """
    stripped = term.strip()
    if len(stripped) < MIN_SUBMIT_LENGTH:
        return None

    term_plan = SearchPlan(language=canonical_language, term=stripped)
    if language == canonical_language or index.state != DictionaryState.READY:
        return term_plan

    candidates = index.lookup(stripped, limit=limit)
    if not candidates:
        return term_plan

    return SearchPlan(
        language=language,
        ids=tuple(distinct_ids(candidates)),
        original_term=stripped,
    )
