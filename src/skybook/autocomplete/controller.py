"""Autocomplete input controller.

Wires the field state store, keystroke debounce, suggestion fetcher and
reconciler into one object per rendered field. UI layers forward raw
events (``on_input``, ``on_select``, ``on_focus``, ``on_blur``,
``on_click_outside``) and parent value changes (``set_external_value``),
then redraw from ``state`` whenever ``on_change`` fires.

Control flow::

    keystroke -> store.set_raw_text (commitment cleared, parent told "")
              -> debounce armed
    timer     -> fetcher.fetch (sequence-tagged search)
    response  -> suggestions, if still the latest request
    select    -> store.commit (parent told the key)
    blur      -> grace period -> reconciler.resolve_blur
"""

from __future__ import annotations

import logging
from typing import Callable

from skybook.autocomplete.debounce import DebounceScheduler
from skybook.autocomplete.fetcher import MIN_QUERY_LENGTH, SearchFn, SuggestionFetcher
from skybook.autocomplete.fsm import FieldInteractionSM, create_fsm
from skybook.autocomplete.reconciler import BLUR_GRACE_MS, Reconciler, list_visible
from skybook.autocomplete.store import FieldStateStore
from skybook.config import AutocompleteConfig
from skybook.models import FieldState, Suggestion
from skybook.telemetry import Telemetry

logger = logging.getLogger(__name__)

DEBOUNCE_MS = 300


class AutocompleteController:
    """State machine behind one autocomplete text field.

    Args:
        search: Suggestion source, ``async (keyword) -> [Suggestion]``.
        on_commit: Receives the committed key whenever it changes,
            including ``""`` when typing or blur invalidates a selection.
        field_id: Identifier used in logs and by UI layers.
        label: Field label, for UI layers.
        placeholder: Placeholder text, for UI layers.
        min_query_length: Shortest keyword that is searched.
        debounce_ms: Quiet period before a keystroke triggers a search.
        blur_grace_ms: Delay between blur and its resolution.
        on_change: Render hook, called after every state change.
        on_error: Receives ``(keyword, exc)`` for failed searches.
        telemetry: Span/log facade; defaults to the process-wide one.

    Usage::

        ctl = AutocompleteController(client.search, on_commit=form.set_origin)
        ctl.mount(external_value=form.origin)
        ctl.on_focus()
        ctl.on_input("NY")
        ...
        ctl.unmount()
    """

    def __init__(
        self,
        search: SearchFn,
        on_commit: Callable[[str], None] | None = None,
        *,
        field_id: str = "",
        label: str = "",
        placeholder: str = "",
        min_query_length: int = MIN_QUERY_LENGTH,
        debounce_ms: int = DEBOUNCE_MS,
        blur_grace_ms: int = BLUR_GRACE_MS,
        on_change: Callable[[], None] | None = None,
        on_error: Callable[[str, BaseException], None] | None = None,
        telemetry: Telemetry | None = None,
    ) -> None:
        self.field_id = field_id
        self.label = label
        self.placeholder = placeholder
        self.min_query_length = min_query_length
        self._on_commit = on_commit
        self._on_change = on_change
        self._mounted = False

        self.store = FieldStateStore(on_commit=self._commit_changed)
        self.fetcher = SuggestionFetcher(
            self.store,
            search,
            min_query_length=min_query_length,
            on_update=self._changed,
            on_error=on_error,
            telemetry=telemetry,
        )
        self.debouncer: DebounceScheduler[str] = DebounceScheduler(
            self.fetcher.fetch, debounce_ms
        )
        self.fsm: FieldInteractionSM = create_fsm()
        self.reconciler = Reconciler(
            self.store,
            self.fetcher,
            self.debouncer,
            self.fsm,
            min_query_length=min_query_length,
            blur_grace_ms=blur_grace_ms,
            on_update=self._changed,
        )

    @classmethod
    def from_config(
        cls,
        search: SearchFn,
        config: AutocompleteConfig,
        on_commit: Callable[[str], None] | None = None,
        **kwargs,
    ) -> "AutocompleteController":
        """Build a controller with timing constants taken from *config*."""
        return cls(
            search,
            on_commit,
            min_query_length=config.min_query_length,
            debounce_ms=config.debounce_ms,
            blur_grace_ms=config.blur_grace_ms,
            **kwargs,
        )

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def state(self) -> FieldState:
        return self.store.state

    @property
    def interaction_state(self) -> str:
        """Current FSM state value: idle, typing, suggestions_open or blurring."""
        return self.fsm.current_state.value

    @property
    def list_visible(self) -> bool:
        return list_visible(self.store.state, self.min_query_length)

    @property
    def mounted(self) -> bool:
        return self._mounted

    @property
    def quiescent(self) -> bool:
        """No pending debounce, blur resolution, or in-flight search."""
        return not (
            self.debouncer.pending
            or self.reconciler.blur_pending
            or self.fetcher.in_flight
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def mount(self, external_value: str = "") -> None:
        """Start accepting events, seeded from the parent's current value.

        Raises:
            RuntimeError: If the controller was already unmounted; its timers
                and fetcher are released for good, so build a new one.
        """
        if self.debouncer.disposed:
            raise RuntimeError(f"field {self.field_id!r} was unmounted and cannot be mounted again")
        self._mounted = True
        if external_value:
            self.reconciler.on_external_change(external_value)
        logger.debug("mounted field=%r external=%r", self.field_id, external_value)

    def unmount(self) -> None:
        """Release timers and in-flight searches; later events are ignored."""
        self._mounted = False
        self.debouncer.dispose()
        self.reconciler.dispose()
        self.fetcher.dispose()
        logger.debug("unmounted field=%r", self.field_id)

    def _accepting(self, event: str) -> bool:
        if not self._mounted:
            logger.debug("%s ignored, field=%r not mounted", event, self.field_id)
        return self._mounted

    def _commit_changed(self, key: str) -> None:
        self.reconciler.external_value = key
        if self._on_commit is not None:
            self._on_commit(key)

    def _changed(self) -> None:
        self.reconciler.sync_list_state()
        if self._on_change is not None:
            self._on_change()

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def on_input(self, text: str) -> None:
        """The user edited the text."""
        if not self._accepting("input"):
            return
        self.reconciler.cancel_blur()
        self.store.set_raw_text(text)
        self.reconciler.transition("keystroke")
        self.debouncer.schedule(text)
        self._changed()

    def on_select(self, suggestion: Suggestion) -> None:
        """The user picked *suggestion* from the list."""
        if not self._accepting("select"):
            return
        self.debouncer.cancel()
        self.fetcher.invalidate()
        self.store.commit(suggestion)
        self.reconciler.transition("select")
        self._changed()

    def select_key(self, key: str) -> bool:
        """Select the current suggestion with *key*; False if none matches."""
        suggestion = self.store.state.find(key)
        if suggestion is None:
            return False
        self.on_select(suggestion)
        return True

    def clear(self) -> None:
        """Empty the field and tell the parent (e.g. a clear button)."""
        if not self._accepting("clear"):
            return
        self.debouncer.cancel()
        self.fetcher.invalidate()
        self.store.clear()
        self.store.clear_suggestions()
        self.store.set_visible(False)
        self.reconciler.transition("external_change")
        self._changed()

    def on_focus(self) -> None:
        if self._accepting("focus"):
            self.reconciler.on_focus()

    def on_blur(self) -> None:
        if self._accepting("blur"):
            self.reconciler.on_blur()

    def on_click_outside(self) -> None:
        if self._accepting("click_outside"):
            self.reconciler.on_click_outside()

    def set_external_value(self, key: str) -> None:
        """The parent changed its value on its own (reset, prefill, swap)."""
        if self._accepting("external_change"):
            self.reconciler.on_external_change(key)
