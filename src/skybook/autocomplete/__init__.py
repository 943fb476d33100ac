"""Autocomplete field controller and its cooperating parts."""

from .controller import AutocompleteController
from .debounce import DebounceScheduler
from .fetcher import SuggestionFetcher
from .fsm import FieldInteractionSM, create_fsm
from .reconciler import Reconciler, list_visible
from .store import FieldStateStore

__all__ = [
    "AutocompleteController",
    "DebounceScheduler",
    "FieldInteractionSM",
    "FieldStateStore",
    "Reconciler",
    "SuggestionFetcher",
    "create_fsm",
    "list_visible",
]
