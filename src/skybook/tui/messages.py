"""Custom Textual Message types posted by the flight search form widgets.

Widgets never call each other; they post these messages and the App
updates its reactive form state.
"""

from __future__ import annotations

from textual.message import Message


class SuggestionCommitted(Message):
    """Fired by an autocomplete field whenever its committed key changes.

    ``key`` is ``""`` when typing or blur invalidated the selection.
    """

    def __init__(self, field_id: str, key: str) -> None:
        self.field_id = field_id
        self.key = key
        super().__init__()


class SuggestionSearchFailed(Message):
    """Fired when a field's suggestion lookup fails."""

    def __init__(self, field_id: str, keyword: str, error: BaseException) -> None:
        self.field_id = field_id
        self.keyword = keyword
        self.error = error
        super().__init__()
