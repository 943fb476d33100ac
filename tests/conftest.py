"""Shared pytest fixtures for the Skybook autocomplete tests.

Provides a hand-driven suggestion source whose searches stay pending until
the test resolves them, fast timing constants, and a factory for mounted
controllers that records every on_commit notification.
"""

from __future__ import annotations

import asyncio

import pytest

from skybook.autocomplete import AutocompleteController
from skybook.config import AutocompleteConfig
from skybook.models import Suggestion
from skybook.telemetry import Telemetry

# Short delays keep the suite fast; sleeps in tests are multiples of these.
DEBOUNCE_MS = 20
BLUR_GRACE_MS = 20
WAIT = 0.06

JFK = Suggestion(key="JFK", label="John F. Kennedy Intl (JFK)")
LGA = Suggestion(key="LGA", label="LaGuardia (LGA)")
LHR = Suggestion(key="LHR", label="Heathrow (LHR) - London")
LON = Suggestion(key="LON", label="London (LON) - London")


class ControlledSource:
    """Suggestion source whose calls block until the test settles them.

    ``calls`` records keywords in issue order; ``resolve(i, ...)`` and
    ``fail(i, ...)`` settle the i-th call.
    """

    def __init__(self) -> None:
        self.calls: list[str] = []
        self.futures: list[asyncio.Future] = []

    async def search(self, keyword: str) -> list[Suggestion]:
        future = asyncio.get_running_loop().create_future()
        self.calls.append(keyword)
        self.futures.append(future)
        return await future

    def resolve(self, index: int, results: list[Suggestion]) -> None:
        self.futures[index].set_result(results)

    def fail(self, index: int, exc: BaseException) -> None:
        self.futures[index].set_exception(exc)


async def settle(rounds: int = 5) -> None:
    """Let completed futures propagate through tasks and done-callbacks."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def source() -> ControlledSource:
    return ControlledSource()


@pytest.fixture
def fast_config() -> AutocompleteConfig:
    return AutocompleteConfig(debounce_ms=DEBOUNCE_MS, blur_grace_ms=BLUR_GRACE_MS)


@pytest.fixture
def telemetry_pair():
    """``(Telemetry, InMemorySpanExporter)`` for span assertions."""
    return Telemetry.for_testing()


@pytest.fixture
async def make_controller(source, fast_config, telemetry_pair):
    """Factory for mounted controllers; every controller is unmounted afterwards.

    Returns ``(controller, commits)`` where ``commits`` lists every key the
    controller reported through on_commit.
    """
    created: list[AutocompleteController] = []

    def factory(external_value: str = "", search=None, **kwargs):
        commits: list[str] = []
        controller = AutocompleteController.from_config(
            search or source.search,
            fast_config,
            on_commit=commits.append,
            field_id="origin",
            telemetry=telemetry_pair[0],
            **kwargs,
        )
        controller.mount(external_value)
        created.append(controller)
        return controller, commits

    yield factory

    for controller in created:
        controller.unmount()
