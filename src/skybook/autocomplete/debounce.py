"""Trailing-edge debounce on the asyncio event loop.

A DebounceScheduler holds at most one armed timer. Arming it again before
expiry disposes the previous timer, so a burst of calls spaced closer than
the delay produces exactly one callback, carrying the last value.

Timers are scheduled through reactivex's AsyncIOScheduler and held in a
SerialDisposable. ``dispose()`` (or leaving the ``with`` block) releases the
armed timer and turns every later ``schedule()`` into a no-op, so nothing
fires against a torn-down field.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Generic, TypeVar

from reactivex.disposable import SerialDisposable
from reactivex.scheduler.eventloop import AsyncIOScheduler

logger = logging.getLogger(__name__)

T = TypeVar("T")


class DebounceScheduler(Generic[T]):
    """Coalesce rapid ``schedule(value)`` calls into one ``callback(value)``.

    Args:
        callback: Invoked on the event loop with the last scheduled value.
        delay_ms: Default quiet period in milliseconds.
        loop: Event loop to schedule on. Defaults to the running loop at
            the first ``schedule()`` call.
    """

    def __init__(
        self,
        callback: Callable[[T], Any],
        delay_ms: int = 300,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._callback = callback
        self.delay_ms = delay_ms
        self._loop = loop
        self._scheduler: AsyncIOScheduler | None = None
        self._timer = SerialDisposable()
        # Bumped on every arm/cancel; a firing timer whose generation is
        # behind has been superseded and drops itself.
        self._generation = 0
        self._pending = False
        self._disposed = False

    @property
    def pending(self) -> bool:
        """True while a timer is armed and has not fired."""
        return self._pending

    @property
    def disposed(self) -> bool:
        return self._disposed

    def _rx_scheduler(self) -> AsyncIOScheduler:
        if self._scheduler is None:
            self._scheduler = AsyncIOScheduler(self._loop or asyncio.get_running_loop())
        return self._scheduler

    def schedule(self, value: T, delay_ms: int | None = None) -> None:
        """Arm the timer for *value*, replacing any timer already armed."""
        if self._disposed:
            logger.debug("schedule ignored after dispose value=%r", value)
            return

        delay = self.delay_ms if delay_ms is None else delay_ms
        self._generation += 1
        gen = self._generation

        def fire(scheduler: Any, state: Any = None) -> None:
            if gen != self._generation or self._disposed:
                return
            self._pending = False
            self._callback(value)

        self._pending = True
        self._timer.disposable = self._rx_scheduler().schedule_relative(
            delay / 1000.0, fire
        )

    def cancel(self) -> None:
        """Disarm the pending timer, if any."""
        self._generation += 1
        self._pending = False
        if not self._disposed:
            self._timer.disposable = None

    def dispose(self) -> None:
        """Release the timer for good; later ``schedule()`` calls do nothing."""
        self._generation += 1
        self._pending = False
        self._disposed = True
        self._timer.dispose()

    def __enter__(self) -> "DebounceScheduler[T]":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.dispose()
