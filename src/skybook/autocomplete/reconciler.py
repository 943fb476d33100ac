"""Reconciles a field's displayed text with the parent-owned committed value.

Runs on focus, blur, clicks outside the field, and external value changes.
Blur resolution is deferred by a short grace period so that a pointer-down
selection on the suggestion list is applied before the blur decides what
the typed text means.

Blur resolution policy, evaluated once per blur:

1. Empty text: clear the commitment (the parent hears ``""``).
2. Text equal to the committed label: keep the selection untouched.
3. Anything else: the text matches no confirmed selection, so both the
   text and the commitment are cleared.
"""

from __future__ import annotations

import logging
from typing import Callable

from statemachine.exceptions import TransitionNotAllowed

from skybook.autocomplete.debounce import DebounceScheduler
from skybook.autocomplete.fetcher import SuggestionFetcher
from skybook.autocomplete.fsm import FieldInteractionSM
from skybook.autocomplete.store import FieldStateStore
from skybook.models import FieldState

logger = logging.getLogger(__name__)

BLUR_GRACE_MS = 100


def list_visible(state: FieldState, min_query_length: int) -> bool:
    """Whether the suggestion list (or its loading row) should be drawn."""
    return (
        state.visible
        and len(state.raw_text) >= min_query_length
        and (bool(state.suggestions) or state.loading)
    )


class Reconciler:
    """Focus/blur/external-change handling for one autocomplete field.

    Args:
        store: The field's state store.
        fetcher: Used to discard in-flight searches on resolution.
        debouncer: The keystroke debounce; re-armed on focus.
        fsm: Interaction state machine, advanced on every handled event.
        min_query_length: Text length at which focus re-opens the list.
        blur_grace_ms: Delay between blur and its resolution.
        on_update: Render hook, called after every handled event.
    """

    def __init__(
        self,
        store: FieldStateStore,
        fetcher: SuggestionFetcher,
        debouncer: DebounceScheduler[str],
        fsm: FieldInteractionSM,
        min_query_length: int = 2,
        blur_grace_ms: int = BLUR_GRACE_MS,
        on_update: Callable[[], None] | None = None,
    ) -> None:
        self._store = store
        self._fetcher = fetcher
        self._debouncer = debouncer
        self._fsm = fsm
        self.min_query_length = min_query_length
        self._on_update = on_update
        self._blur_timer: DebounceScheduler[None] = DebounceScheduler(
            lambda _: self.resolve_blur(), blur_grace_ms
        )
        # Last value known to be held by the parent form.
        self.external_value = ""

    @property
    def blur_pending(self) -> bool:
        return self._blur_timer.pending

    def transition(self, event: str) -> None:
        """Advance the interaction FSM; an illegal event is logged, not raised."""
        try:
            self._fsm.send(event)
        except TransitionNotAllowed:
            logger.warning(
                "ignored illegal transition event=%s state=%s",
                event, self._fsm.current_state.value,
            )

    def _updated(self) -> None:
        if self._on_update is not None:
            self._on_update()

    def sync_list_state(self) -> None:
        """Move between typing and suggestions_open as the list appears/disappears."""
        current = self._fsm.current_state.value
        shown = list_visible(self._store.state, self.min_query_length)
        if current == "typing" and shown:
            self.transition("open_list")
        elif current == "suggestions_open" and not shown:
            self.transition("close_list")

    # ------------------------------------------------------------------
    # Focus
    # ------------------------------------------------------------------

    def on_focus(self) -> None:
        """Re-open suggestions for existing text, or refill an emptied field."""
        self._blur_timer.cancel()
        state = self._store.state

        if len(state.raw_text) >= self.min_query_length:
            self._store.set_visible(True)
            self._debouncer.schedule(state.raw_text)
            self.transition("open_list")
        elif not state.raw_text and (state.committed_key or self.external_value):
            text = self._store.rehydrate(self.external_value)
            self.transition("rehydrate")
            self._store.set_visible(True)
            self._debouncer.schedule(text)
        else:
            self.transition("refocus")
        self._updated()

    # ------------------------------------------------------------------
    # Blur
    # ------------------------------------------------------------------

    def on_blur(self) -> None:
        """Start the grace period; resolution runs when it expires."""
        self.transition("blur")
        self._blur_timer.schedule(None)

    def cancel_blur(self) -> None:
        self._blur_timer.cancel()

    def resolve_blur(self) -> None:
        """Apply the blur resolution policy to the current state."""
        state = self._store.state
        self._debouncer.cancel()
        self._fetcher.invalidate()
        self._store.clear_suggestions()
        self._store.set_visible(False)

        if not state.raw_text:
            self._store.clear()
            outcome = "cleared-empty"
        elif state.matches_commitment():
            outcome = "kept"
        else:
            self._store.clear()
            outcome = "cleared-unmatched"

        logger.debug("blur resolved outcome=%s key=%r", outcome, state.committed_key)
        self.transition("resolve")
        self._updated()

    # ------------------------------------------------------------------
    # Outside click and external changes
    # ------------------------------------------------------------------

    def on_click_outside(self) -> None:
        """Hide the list; text and commitment stay as they are."""
        if not self._store.state.visible:
            return
        self._store.set_visible(False)
        self.transition("dismiss")
        self._updated()

    def on_external_change(self, key: str) -> None:
        """Adopt a value the parent changed independently of this field."""
        self.external_value = key
        if key and key == self._store.state.committed_key:
            return
        self._debouncer.cancel()
        self._fetcher.invalidate()
        self._store.sync_from_external(key)
        self.transition("external_change")
        self._updated()

    def dispose(self) -> None:
        self._blur_timer.dispose()
