"""Widgets for the Skybook flight search form."""

from .autocomplete_input import AutocompleteInput, SuggestionList

__all__ = ["AutocompleteInput", "SuggestionList"]
