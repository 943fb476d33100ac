"""Skybook flight search form.

Textual App hosting the "Search Flights" form: two airport autocomplete
fields plus reset, swap and (simulated) submit actions. The App owns the
committed origin/destination codes; the fields own everything about what
is displayed.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Awaitable, Callable

from textual import events
from textual.app import App, ComposeResult
from textual.containers import Vertical
from textual.reactive import reactive
from textual.widgets import Footer, Header, Input, RadioButton, RadioSet, Static

from skybook.autocomplete.fetcher import SearchFn
from skybook.config import AutocompleteConfig
from skybook.telemetry import Telemetry, set_telemetry
from skybook.tui.messages import SuggestionCommitted, SuggestionSearchFailed
from skybook.tui.state import FlightSearchParams
from skybook.tui.widgets import AutocompleteInput

ORIGIN_FIELD = "origin"
DESTINATION_FIELD = "destination"
ADULTS_INPUT = "adults"
TRIP_TYPES = ("one-way", "round-trip")


class FlightSearchApp(App):
    """Flight search page with origin and destination autocomplete fields."""

    TITLE = "Skybook"
    SUB_TITLE = "Search Flights"

    CSS = """
    #form {
        width: 80;
        height: auto;
        padding: 1 2;
        border: round $primary;
    }

    #form-title {
        text-style: bold;
        margin-bottom: 1;
    }

    #status-bar {
        dock: bottom;
        height: 1;
        background: $primary-background;
        color: $text;
        padding: 0 1;
    }
    """

    BINDINGS = [
        ("ctrl+s", "submit_search", "Search"),
        ("ctrl+r", "reset_form", "Reset"),
        ("ctrl+t", "swap_airports", "Swap"),
    ]

    params: reactive[FlightSearchParams] = reactive(FlightSearchParams)

    def __init__(
        self,
        search: SearchFn,
        config: AutocompleteConfig | None = None,
        telemetry: Telemetry | None = None,
        initial: FlightSearchParams | None = None,
        on_shutdown: Callable[[], Awaitable[None]] | None = None,
    ) -> None:
        """Initialize the form.

        Args:
            search: Suggestion source shared by both airport fields.
            config: Autocomplete timing; defaults to AutocompleteConfig().
            telemetry: OTel facade. Defaults to no-op if not provided.
            initial: Prefilled form values (airport codes).
            on_shutdown: Awaited when the app unmounts, e.g. to close the
                HTTP client behind *search*.
        """
        super().__init__()
        self.search = search
        self.config = config or AutocompleteConfig()
        self.telemetry = telemetry if telemetry is not None else Telemetry.noop()
        set_telemetry(self.telemetry)
        self._initial = initial or FlightSearchParams()
        self.last_submission: FlightSearchParams | None = None
        self._on_shutdown = on_shutdown

    def compose(self) -> ComposeResult:
        yield Header()
        with Vertical(id="form"):
            yield Static("Search Flights", id="form-title")
            yield AutocompleteInput(
                self.search,
                field_id=ORIGIN_FIELD,
                label="From (Airport Code)",
                placeholder="e.g., LOS",
                value=self._initial.origin,
                config=self.config,
            )
            yield AutocompleteInput(
                self.search,
                field_id=DESTINATION_FIELD,
                label="To (Airport Code)",
                placeholder="e.g., JFK",
                value=self._initial.destination,
                config=self.config,
            )
            with RadioSet(id="trip-type"):
                yield RadioButton(
                    "One Way", id="one-way", value=self._initial.trip_type == "one-way"
                )
                yield RadioButton(
                    "Round Trip", id="round-trip", value=self._initial.trip_type == "round-trip"
                )
            yield Input(
                value=str(self._initial.adults),
                placeholder="Adults (12+)",
                type="integer",
                id=ADULTS_INPUT,
            )
        yield Static("", id="status-bar")
        yield Footer()

    def on_mount(self) -> None:
        self.params = replace(self._initial)
        self.telemetry.log.info("flight search form mounted")

    async def on_unmount(self) -> None:
        if self._on_shutdown is not None:
            await self._on_shutdown()

    def field(self, field_id: str) -> AutocompleteInput:
        return self.query_one(f"#{field_id}", AutocompleteInput)

    # ------------------------------------------------------------------
    # Field messages
    # ------------------------------------------------------------------

    def on_suggestion_committed(self, event: SuggestionCommitted) -> None:
        """Record a field's committed airport code in the form state."""
        if event.field_id == ORIGIN_FIELD:
            self.params = replace(self.params, origin=event.key)
        elif event.field_id == DESTINATION_FIELD:
            self.params = replace(self.params, destination=event.key)

    def on_suggestion_search_failed(self, event: SuggestionSearchFailed) -> None:
        self.telemetry.log.info(
            f"suggestions unavailable field={event.field_id} keyword={event.keyword!r}"
        )

    def on_radio_set_changed(self, event: RadioSet.Changed) -> None:
        trip_type = event.pressed.id
        if trip_type in TRIP_TYPES:
            self.params = replace(self.params, trip_type=trip_type)

    def on_input_changed(self, event: Input.Changed) -> None:
        """Track the adult count; blank or non-positive input keeps the last value."""
        if event.input.id != ADULTS_INPUT:
            return
        try:
            adults = int(event.value)
        except ValueError:
            return
        if adults >= 1:
            self.params = replace(self.params, adults=adults)

    def watch_params(self, params: FlightSearchParams) -> None:
        try:
            status = self.query_one("#status-bar", Static)
        except Exception:
            return
        origin = params.origin or "-"
        destination = params.destination or "-"
        status.update(
            f"From: {origin} | To: {destination} | {params.trip_type}, "
            f"adults {params.adults} | Ctrl+S: Search"
        )

    def on_mouse_down(self, event: events.MouseDown) -> None:
        """Close suggestion lists of fields the pointer went down outside of."""
        for field in self.query(AutocompleteInput):
            if not field.region.contains(event.screen_x, event.screen_y):
                field.dismiss_suggestions()

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def action_reset_form(self) -> None:
        """Clear the form; the airport fields reconcile to the empty value."""
        self.params = FlightSearchParams()
        self.field(ORIGIN_FIELD).set_external_value("")
        self.field(DESTINATION_FIELD).set_external_value("")
        self.query_one("#one-way", RadioButton).value = True
        self.query_one(f"#{ADULTS_INPUT}", Input).value = "1"
        self.telemetry.log.info("form reset")

    def action_swap_airports(self) -> None:
        """Exchange origin and destination."""
        self.params = self.params.swapped()
        self.field(ORIGIN_FIELD).set_external_value(self.params.origin)
        self.field(DESTINATION_FIELD).set_external_value(self.params.destination)

    def action_submit_search(self) -> None:
        """Simulate submitting the flight search."""
        params = self.params
        if not params.is_complete():
            self.notify("Select both departure and arrival airports", severity="warning")
            return
        query = params.to_query_params()
        with self.telemetry.submit_span(query):
            self.last_submission = params
            self.notify(f"Searching flights {params.origin} -> {params.destination}")
            self.telemetry.log.info(f"flight search submitted params={query}")
