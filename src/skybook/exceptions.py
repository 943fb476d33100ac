"""Exceptions raised by location suggestion sources."""

from __future__ import annotations


class SuggestionSourceError(Exception):
    """Raised when a suggestion source cannot answer a lookup."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RateLimitError(SuggestionSourceError):
    """Raised when the backend returns a 429 rate-limit response."""
