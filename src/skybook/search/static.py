"""In-process location source for offline use and demos.

Implements the same ``async search(keyword)`` interface as
LocationSearchClient over a fixed airport table.
"""

from __future__ import annotations

import asyncio
from typing import Sequence

from skybook.models import Suggestion
from skybook.search.schemas import LocationRow

DEFAULT_LOCATIONS: tuple[LocationRow, ...] = (
    LocationRow(iata_code="LOS", name="Murtala Muhammed Intl", city="Lagos", country="Nigeria", type="AIRPORT"),
    LocationRow(iata_code="ABV", name="Nnamdi Azikiwe Intl", city="Abuja", country="Nigeria", type="AIRPORT"),
    LocationRow(iata_code="PHC", name="Port Harcourt Intl", city="Port Harcourt", country="Nigeria", type="AIRPORT"),
    LocationRow(iata_code="ACC", name="Kotoka Intl", city="Accra", country="Ghana", type="AIRPORT"),
    LocationRow(iata_code="NYC", name="New York", city="New York", country="United States", type="CITY"),
    LocationRow(iata_code="JFK", name="John F. Kennedy Intl", city="New York", country="United States", type="AIRPORT"),
    LocationRow(iata_code="LGA", name="LaGuardia", city="New York", country="United States", type="AIRPORT"),
    LocationRow(iata_code="EWR", name="Newark Liberty Intl", city="Newark", country="United States", type="AIRPORT"),
    LocationRow(iata_code="LON", name="London", city="London", country="United Kingdom", type="CITY"),
    LocationRow(iata_code="LHR", name="Heathrow", city="London", country="United Kingdom", type="AIRPORT"),
    LocationRow(iata_code="LGW", name="Gatwick", city="London", country="United Kingdom", type="AIRPORT"),
    LocationRow(iata_code="CDG", name="Charles de Gaulle", city="Paris", country="France", type="AIRPORT"),
    LocationRow(iata_code="DXB", name="Dubai Intl", city="Dubai", country="United Arab Emirates", type="AIRPORT"),
    LocationRow(iata_code="JNB", name="O. R. Tambo Intl", city="Johannesburg", country="South Africa", type="AIRPORT"),
)


class StaticLocationSource:
    """Case-insensitive lookup over a fixed list of locations.

    A row matches when the keyword prefixes its IATA code or appears in its
    name or city. Results keep table order and are capped at *limit*.

    Args:
        locations: Rows to search; defaults to a small built-in table.
        limit: Maximum number of suggestions returned.
        latency: Artificial delay in seconds, to mimic a network call.
    """

    def __init__(
        self,
        locations: Sequence[LocationRow] = DEFAULT_LOCATIONS,
        limit: int = 10,
        latency: float = 0.0,
    ) -> None:
        self._locations = tuple(locations)
        self._limit = limit
        self._latency = latency

    def _matches(self, row: LocationRow, needle: str) -> bool:
        return (
            (row.iata_code or "").lower().startswith(needle)
            or needle in row.name.lower()
            or needle in (row.city or "").lower()
        )

    async def search(self, keyword: str) -> list[Suggestion]:
        if self._latency:
            await asyncio.sleep(self._latency)
        needle = keyword.strip().lower()
        if not needle:
            return []
        hits = [
            row.to_suggestion()
            for row in self._locations
            if row.iata_code and self._matches(row, needle)
        ]
        return hits[: self._limit]
