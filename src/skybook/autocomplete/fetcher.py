"""Suggestion fetcher with a minimum-length gate and a staleness guard.

The debounce limits how often searches start, not the order in which they
finish. Each ``fetch()`` therefore takes a sequence number when it is
issued, and a response only touches the field state if its number is still
the latest one issued. Late answers to superseded keywords are dropped.

Searches run as asyncio tasks wrapped in single-value observables, so
``dispose()`` can cancel whatever is still in flight when a field goes
away.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Sequence

import reactivex as rx
from reactivex.abc import DisposableBase
from reactivex.disposable import Disposable

from skybook.autocomplete.store import FieldStateStore
from skybook.models import Suggestion
from skybook.telemetry import ATTR_RESULT_COUNT, Telemetry, get_telemetry

logger = logging.getLogger(__name__)

SearchFn = Callable[[str], Awaitable[Sequence[Suggestion]]]

# Shorter keywords never reach the suggestion source.
MIN_QUERY_LENGTH = 2


def defer_search(
    coro_factory: Callable[[], Awaitable[Any]],
    loop: asyncio.AbstractEventLoop | None = None,
) -> rx.Observable:
    """Wrap one search coroutine as an observable backed by an asyncio.Task.

    Subscribing starts the task. The observable emits the task's result and
    completes, or emits its exception as ``on_error``. Disposing the
    subscription cancels a task that has not finished yet; a cancelled task
    emits nothing.
    """

    def subscribe(observer, scheduler=None):
        _loop = loop or asyncio.get_running_loop()
        task = _loop.create_task(coro_factory())

        def on_done(t: asyncio.Task) -> None:
            if t.cancelled():
                return
            exc = t.exception()
            if exc is not None:
                observer.on_error(exc)
            else:
                observer.on_next(t.result())
                observer.on_completed()

        task.add_done_callback(on_done)
        return Disposable(lambda: task.cancel() if not task.done() else None)

    return rx.create(subscribe)


class SuggestionFetcher:
    """Issues searches for a field and applies only the freshest answer.

    Args:
        store: Store whose suggestion list and loading flag are updated.
        search: The suggestion source, ``async (keyword) -> [Suggestion]``.
        min_query_length: Keywords shorter than this clear the list instead
            of searching.
        on_update: Called after every state change the fetcher applies.
        on_error: Called with ``(keyword, exc)`` for every failed search,
            including superseded ones.
        telemetry: Span/log facade; defaults to the process-wide instance.
        loop: Event loop for search tasks; defaults to the running loop.
    """

    def __init__(
        self,
        store: FieldStateStore,
        search: SearchFn,
        min_query_length: int = MIN_QUERY_LENGTH,
        on_update: Callable[[], None] | None = None,
        on_error: Callable[[str, BaseException], None] | None = None,
        telemetry: Telemetry | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._store = store
        self._search = search
        self.min_query_length = min_query_length
        self._on_update = on_update
        self._on_error = on_error
        self._telemetry = telemetry
        self._loop = loop
        self._seq = 0
        self._in_flight: dict[int, DisposableBase] = {}
        self._disposed = False

    @property
    def telemetry(self) -> Telemetry:
        return self._telemetry if self._telemetry is not None else get_telemetry()

    @property
    def issued_seq(self) -> int:
        """Sequence number of the most recently issued request."""
        return self._seq

    @property
    def in_flight(self) -> int:
        """Number of searches started and not yet settled."""
        return len(self._in_flight)

    def _changed(self) -> None:
        if self._on_update is not None:
            self._on_update()

    def fetch(self, keyword: str) -> None:
        """Start a search for *keyword*, superseding any earlier one."""
        if self._disposed:
            logger.debug("fetch ignored after dispose keyword=%r", keyword)
            return

        self._seq += 1
        seq = self._seq

        if len(keyword) < self.min_query_length:
            self._store.clear_suggestions()
            self._changed()
            return

        self._store.set_loading(True)
        self._changed()

        observable = defer_search(lambda: self._run(seq, keyword), self._loop)
        self._in_flight[seq] = observable.subscribe(
            on_next=lambda results: self._on_results(seq, keyword, results),
            on_error=lambda exc: self._on_failure(seq, keyword, exc),
        )

    async def _run(self, seq: int, keyword: str) -> list[Suggestion]:
        with self.telemetry.search_span(keyword, seq) as span:
            results = list(await self._search(keyword))
            span.set_attribute(ATTR_RESULT_COUNT, len(results))
            return results

    def _on_results(self, seq: int, keyword: str, results: list[Suggestion]) -> None:
        self._in_flight.pop(seq, None)
        if seq != self._seq:
            logger.debug(
                "discarding stale results keyword=%r seq=%d latest=%d",
                keyword, seq, self._seq,
            )
            return
        self._store.set_suggestions(results)
        self._changed()

    def _on_failure(self, seq: int, keyword: str, exc: BaseException) -> None:
        self._in_flight.pop(seq, None)
        self.telemetry.search_failed(keyword, seq, self._seq, exc)
        if self._on_error is not None:
            self._on_error(keyword, exc)
        if seq != self._seq:
            return
        self._store.clear_suggestions()
        self._changed()

    def invalidate(self) -> None:
        """Supersede every request issued so far and end any loading state."""
        self._seq += 1
        if self._store.state.loading:
            self._store.set_loading(False)

    def dispose(self) -> None:
        """Cancel in-flight searches; later ``fetch()`` calls do nothing."""
        self._disposed = True
        self._seq += 1
        for subscription in list(self._in_flight.values()):
            subscription.dispose()
        self._in_flight.clear()
