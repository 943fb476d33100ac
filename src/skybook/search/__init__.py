"""Location suggestion sources for the autocomplete field."""

from .client import LocationSearchClient
from .schemas import LocationRow
from .static import StaticLocationSource

__all__ = ["LocationRow", "LocationSearchClient", "StaticLocationSource"]
