"""Field state store: the single writer of an autocomplete field's FieldState.

Every mutation that touches the committed selection goes through here so
the commit invariants hold after each call:

* a non-empty ``committed_key`` is only ever set together with
  ``raw_text == committed_label``;
* user typing clears the commitment in the same call that changes the text.

The store notifies the owning form through ``on_commit``. It does not arm
the debounce timer itself; the controller does that right after
``set_raw_text``.
"""

from __future__ import annotations

import logging
from typing import Callable, Sequence

from skybook.models import FieldState, Suggestion, dedupe_by_key

logger = logging.getLogger(__name__)


class FieldStateStore:
    """Owns one FieldState and the parent notification callback."""

    def __init__(
        self,
        on_commit: Callable[[str], None] | None = None,
        state: FieldState | None = None,
    ) -> None:
        self.state = state if state is not None else FieldState()
        self._on_commit = on_commit

    def _notify(self, key: str) -> None:
        if self._on_commit is not None:
            self._on_commit(key)

    # ------------------------------------------------------------------
    # Commitment operations
    # ------------------------------------------------------------------

    def set_raw_text(self, text: str) -> None:
        """Apply a user keystroke: new text, no commitment, list shown.

        The parent is told the committed value is now empty straight away,
        not at blur.
        """
        self.state.raw_text = text
        self.state.committed_key = ""
        self.state.committed_label = ""
        self.state.visible = True
        self._notify("")

    def commit(self, suggestion: Suggestion) -> None:
        """Accept *suggestion* as the field's selection."""
        self.state.raw_text = suggestion.label
        self.state.committed_key = suggestion.key
        self.state.committed_label = suggestion.label
        self.state.suggestions = []
        self.state.loading = False
        self.state.visible = False
        logger.debug("committed key=%r label=%r", suggestion.key, suggestion.label)
        self._notify(suggestion.key)

    def clear(self, notify: bool = True) -> None:
        """Empty the text and the commitment.

        Args:
            notify: Tell the parent its value is now ``""``. External
                resets pass False since the parent already holds ``""``.
        """
        self.state.raw_text = ""
        self.state.committed_key = ""
        self.state.committed_label = ""
        if notify:
            self._notify("")

    def sync_from_external(self, key: str) -> bool:
        """Adopt a value the parent set on its own (form reset, prefill, swap).

        An empty key clears the field. A key equal to the current commitment
        is a no-op. Otherwise the label is looked up in the current
        suggestions, falling back to showing the key itself.

        Returns:
            True if the state changed.
        """
        if not key:
            changed = bool(self.state.raw_text or self.state.committed_key)
            self.clear(notify=False)
            self.state.suggestions = []
            self.state.loading = False
            self.state.visible = False
            return changed

        if key == self.state.committed_key:
            return False

        found = self.state.find(key)
        label = found.label if found is not None else key
        self.state.raw_text = label
        self.state.committed_key = key
        self.state.committed_label = label
        self.state.suggestions = []
        self.state.loading = False
        self.state.visible = False
        logger.debug(
            "synced external key=%r label=%r resolved=%s", key, label, found is not None
        )
        return True

    def rehydrate(self, external_value: str) -> str:
        """Refill empty text from the cached label, or the key, on re-focus.

        Returns:
            The text now displayed (``""`` when there was nothing to restore).
        """
        key = self.state.committed_key or external_value
        if not key:
            return ""
        label = self.state.committed_label or key
        self.state.raw_text = label
        self.state.committed_key = key
        self.state.committed_label = label
        return label

    # ------------------------------------------------------------------
    # Presentation flags and suggestion list
    # ------------------------------------------------------------------

    def set_suggestions(self, suggestions: Sequence[Suggestion]) -> None:
        """Store a deduplicated candidate list and end loading."""
        self.state.suggestions = dedupe_by_key(suggestions)
        self.state.loading = False

    def clear_suggestions(self) -> None:
        self.state.suggestions = []
        self.state.loading = False

    def set_loading(self, loading: bool) -> None:
        self.state.loading = loading

    def set_visible(self, visible: bool) -> None:
        self.state.visible = visible
