"""
Query session controller.

Turns raw keystrokes into debounced resolutions and publishes the
resulting AutocompleteState.

INVARIANTS:
- At most ONE pending debounce timer and ONE in-flight resolution
- New input cancels both; the newest debounced query always wins
- An outcome is committed only if its sequence id is still the latest
- Cancellation never reaches the observable state
- After close(), no timer or network call survives
"""

import asyncio
import contextlib
import logging
from collections.abc import Callable
from types import TracebackType

from cardfinder.config import settings
from cardfinder.models.search import Query, ResolutionOutcome
from cardfinder.models.state import AutocompleteState
from cardfinder.services.resolution_engine import ResolutionEngine
from cardfinder.services.translation_index import TranslationIndex

logger = logging.getLogger(__name__)

StateListener = Callable[[AutocompleteState], None]


class QuerySession:
    """
    Debounce + supersession around a ResolutionEngine.

    Must be driven from a running asyncio event loop. All state is
    mutated on that loop only.
    """

    def __init__(
        self,
        engine: ResolutionEngine,
        language: str | None = None,
        debounce_ms: int = settings.debounce_ms,
        max_display_results: int = settings.max_display_results,
    ) -> None:
        self._engine = engine
        self._language = language or engine.canonical_language
        self._debounce_seconds = debounce_ms / 1000

        self._display_limit = max_display_results
        self._state = AutocompleteState(display_limit=max_display_results)
        self._listeners: list[StateListener] = []

        self._term: str | None = None
        self._sequence = 0
        self._timer: asyncio.TimerHandle | None = None
        self._inflight: asyncio.Task[None] | None = None
        self._idle = asyncio.Event()
        self._idle.set()
        self._closed = False

    @property
    def state(self) -> AutocompleteState:
        return self._state

    @property
    def language(self) -> str:
        return self._language

    @property
    def sequence_id(self) -> int:
        """Sequence id of the most recently issued query."""
        return self._sequence

    @property
    def closed(self) -> bool:
        return self._closed

    def subscribe(self, listener: StateListener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: StateListener) -> None:
        with contextlib.suppress(ValueError):
            self._listeners.remove(listener)

    def update(self, term: str) -> Query:
        """
        Register a raw term change.

        Cancels the pending timer and any in-flight resolution, then
        schedules a new resolution after the debounce delay.

        Args:
            term: Current input text

        Returns:
            The query that will run when the debounce fires

        Raises:
            RuntimeError: If the session is closed
        """
        if self._closed:
            raise RuntimeError("QuerySession is closed")

        self._cancel_pending()

        self._term = term
        self._sequence += 1
        query = Query(term=term, language=self._language, sequence_id=self._sequence)

        self._idle.clear()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self._debounce_seconds, self._start, query)
        return query

    def set_language(self, language: str, index: TranslationIndex | None = None) -> Query | None:
        """
        Switch language, optionally with that language's dictionary.

        The current term, if any, is re-issued as a new query.
        """
        self._language = language
        if index is not None:
            self._engine = self._engine.with_index(index)

        if self._term is None or self._closed:
            return None
        return self.update(self._term)

    async def wait_idle(self) -> None:
        """Wait until the latest query has settled (or the session closed)."""
        await self._idle.wait()

    def close(self) -> None:
        """Cancel the timer and the in-flight resolution. Idempotent."""
        if self._closed:
            return
        self._closed = True
        self._cancel_pending()
        self._idle.set()

    async def aclose(self) -> None:
        """close(), then wait for the cancelled resolution to unwind."""
        task = self._inflight
        self.close()
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)

    async def __aenter__(self) -> "QuerySession":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    def _cancel_pending(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

        if self._inflight is not None and not self._inflight.done():
            self._inflight.cancel()
            logger.debug("RESOLUTION_CANCELLED", extra={"sequence_id": self._sequence})
        self._inflight = None

    def _start(self, query: Query) -> None:
        self._timer = None
        if query.sequence_id != self._sequence or self._closed:
            return

        if len(query.term.strip()) >= self._engine.min_length:
            self._commit(self._state.started())

        self._inflight = asyncio.create_task(self._run(query))

    async def _run(self, query: Query) -> None:
        try:
            outcome = await self._engine.resolve(query.term, query.language)
            self._settle(query, outcome)
        finally:
            if query.sequence_id == self._sequence:
                self._inflight = None
                self._idle.set()

    def _settle(self, query: Query, outcome: ResolutionOutcome | None) -> None:
        if query.sequence_id != self._sequence or self._closed:
            logger.debug(
                "RESOLUTION_SUPERSEDED",
                extra={"sequence_id": query.sequence_id, "latest": self._sequence},
            )
            return

        if outcome is None:
            # Dictionary still loading: keep current results, wait for next input
            self._commit(self._state.idle())
            return

        self._commit(AutocompleteState.from_outcome(outcome, self._display_limit))

    def _commit(self, state: AutocompleteState) -> None:
        self._state = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("LISTENER_FAILED", extra={"sequence_id": self._sequence})
