"""Autocomplete input widget for airport/city fields.

A label, a text Input and a suggestion OptionList driven by an
AutocompleteController. The widget only translates Textual events into
controller events and redraws from the controller's state; all debounce,
staleness and reconciliation logic lives in the controller.

The suggestion list cannot take focus, so clicking a suggestion does not
steal focus from the input. Blur resolution is delayed by the controller's
grace period either way, which lets the click's selection land first.
"""

from __future__ import annotations

from textual import events
from textual.app import ComposeResult
from textual.containers import Vertical
from textual.widgets import Input, Label, OptionList
from textual.widgets.option_list import Option

from skybook.autocomplete import AutocompleteController
from skybook.autocomplete.fetcher import SearchFn
from skybook.config import AutocompleteConfig
from skybook.tui.messages import SuggestionCommitted, SuggestionSearchFailed

LOADING_OPTION_ID = "__loading__"


class SuggestionList(OptionList, can_focus=False):
    """Candidate list shown under an autocomplete input."""


class AutocompleteInput(Vertical):
    """Text field with debounced remote suggestions.

    Posts SuggestionCommitted whenever the committed key changes. The
    parent pushes its own value changes back with ``set_external_value``.

    Args:
        search: Suggestion source, ``async (keyword) -> [Suggestion]``.
        field_id: Widget id; also identifies the field in messages.
        label: Text shown above the input.
        placeholder: Input placeholder.
        value: Initial committed key held by the parent.
        config: Timing constants; defaults to AutocompleteConfig().
    """

    DEFAULT_CSS = """
    AutocompleteInput {
        height: auto;
        margin-bottom: 1;
    }

    AutocompleteInput SuggestionList {
        max-height: 10;
        border: round $primary;
        display: none;
    }
    """

    def __init__(
        self,
        search: SearchFn,
        *,
        field_id: str,
        label: str = "",
        placeholder: str = "",
        value: str = "",
        config: AutocompleteConfig | None = None,
    ) -> None:
        super().__init__(id=field_id)
        self.field_id = field_id
        self._initial_value = value
        # True while a user edit is being forwarded; the Input already shows it.
        self._editing = False
        self.controller = AutocompleteController.from_config(
            search,
            config or AutocompleteConfig(),
            on_commit=self._committed,
            field_id=field_id,
            label=label,
            placeholder=placeholder,
            on_change=self._render_state,
            on_error=self._search_failed,
        )

    def compose(self) -> ComposeResult:
        yield Label(self.controller.label)
        yield Input(
            placeholder=self.controller.placeholder,
            id=f"{self.field_id}-input",
        )
        yield SuggestionList(id=f"{self.field_id}-suggestions")

    @property
    def text_input(self) -> Input:
        return self.query_one(f"#{self.field_id}-input", Input)

    @property
    def suggestion_list(self) -> SuggestionList:
        return self.query_one(SuggestionList)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def on_mount(self) -> None:
        self.controller.mount(self._initial_value)
        self._render_state()

    def on_unmount(self) -> None:
        self.controller.unmount()

    # ------------------------------------------------------------------
    # Controller callbacks
    # ------------------------------------------------------------------

    def _committed(self, key: str) -> None:
        self.post_message(SuggestionCommitted(self.field_id, key))

    def _search_failed(self, keyword: str, error: BaseException) -> None:
        self.post_message(SuggestionSearchFailed(self.field_id, keyword, error))

    def _render_state(self) -> None:
        """Redraw the input text and the suggestion list from controller state."""
        if not self.is_mounted:
            return
        state = self.controller.state
        field_input = self.text_input
        if not self._editing and field_input.value != state.raw_text:
            with field_input.prevent(Input.Changed):
                field_input.value = state.raw_text

        options = self.suggestion_list
        options.clear_options()
        if state.loading:
            options.add_option(Option("Loading...", id=LOADING_OPTION_ID, disabled=True))
        else:
            options.add_options([Option(s.label, id=s.key) for s in state.suggestions])
        options.display = self.controller.list_visible

    # ------------------------------------------------------------------
    # Textual events
    # ------------------------------------------------------------------

    def on_input_changed(self, event: Input.Changed) -> None:
        """Forward a user edit without writing it back into the Input.

        Keys can be applied to the Input before their Changed messages are
        handled, so ``event.value`` may lag the Input's current text.
        Programmatic writes are made under ``prevent(Input.Changed)`` and
        never arrive here.
        """
        event.stop()
        self._editing = True
        try:
            self.controller.on_input(event.value)
        finally:
            self._editing = False

    def on_input_submitted(self, event: Input.Submitted) -> None:
        """Enter selects the highlighted suggestion, if the list is open."""
        event.stop()
        options = self.suggestion_list
        if not self.controller.list_visible or options.highlighted is None:
            return
        option = options.get_option_at_index(options.highlighted)
        if option.id and option.id != LOADING_OPTION_ID:
            self.controller.select_key(option.id)

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        event.stop()
        if event.option_id and event.option_id != LOADING_OPTION_ID:
            self.controller.select_key(event.option_id)

    def on_descendant_focus(self, event: events.DescendantFocus) -> None:
        self.controller.on_focus()

    def on_descendant_blur(self, event: events.DescendantBlur) -> None:
        self.controller.on_blur()

    def on_key(self, event: events.Key) -> None:
        """Down/Up move the highlight; Escape closes the list."""
        if not self.controller.list_visible:
            return
        options = self.suggestion_list
        if event.key == "down":
            options.action_cursor_down()
            event.prevent_default()
        elif event.key == "up":
            options.action_cursor_up()
            event.prevent_default()
        elif event.key == "escape":
            self.controller.on_click_outside()
            event.prevent_default()
            event.stop()

    # ------------------------------------------------------------------
    # Parent-facing API
    # ------------------------------------------------------------------

    def set_external_value(self, key: str) -> None:
        """Reconcile with a value the parent form changed on its own."""
        self.controller.set_external_value(key)

    def dismiss_suggestions(self) -> None:
        """Close the list without touching text or selection."""
        self.controller.on_click_outside()
