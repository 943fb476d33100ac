"""Data models for autocomplete suggestions and per-field state."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable


@dataclass(frozen=True)
class Suggestion:
    """One candidate returned by a suggestion source.

    ``key`` is the unique identifier (e.g. an IATA airport code) and
    ``label`` is the human-readable string displayed in the field.
    """

    key: str
    label: str


@dataclass
class FieldState:
    """Everything one rendered autocomplete field knows about itself.

    Owned exclusively by the field's controller. ``committed_key`` is the
    externally visible selection; ``committed_label`` caches the label it
    was committed with so blur handling can tell whether ``raw_text`` still
    matches the last confirmed selection.
    """

    raw_text: str = ""
    committed_key: str = ""
    committed_label: str = ""
    suggestions: list[Suggestion] = field(default_factory=list)
    loading: bool = False
    visible: bool = False

    def has_commitment(self) -> bool:
        """Return True if a confirmed selection is currently held."""
        return bool(self.committed_key)

    def matches_commitment(self) -> bool:
        """Return True if the displayed text is the committed label."""
        return self.has_commitment() and self.raw_text == self.committed_label

    def find(self, key: str) -> Suggestion | None:
        """Return the current suggestion with *key*, if any."""
        return next((s for s in self.suggestions if s.key == key), None)


def dedupe_by_key(suggestions: Iterable[Suggestion]) -> list[Suggestion]:
    """Drop repeated keys, keeping the first occurrence in source order."""
    unique: list[Suggestion] = []
    seen: set[str] = set()
    for suggestion in suggestions:
        if suggestion.key in seen:
            continue
        seen.add(suggestion.key)
        unique.append(suggestion)
    return unique
