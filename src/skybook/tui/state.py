"""Form state for the flight search page."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class FlightSearchParams:
    """Values owned by the flight search form.

    ``origin`` and ``destination`` hold committed IATA codes; they are the
    "external values" each autocomplete field reconciles against.
    """

    origin: str = ""
    destination: str = ""
    trip_type: str = "one-way"
    adults: int = 1

    def is_complete(self) -> bool:
        """Return True once both airports have been chosen."""
        return bool(self.origin and self.destination)

    def swapped(self) -> "FlightSearchParams":
        """Return a copy with origin and destination exchanged."""
        return FlightSearchParams(
            origin=self.destination,
            destination=self.origin,
            trip_type=self.trip_type,
            adults=self.adults,
        )

    def to_query_params(self) -> dict[str, str]:
        """Query-string parameters for the flight search request."""
        return {
            "origin": self.origin,
            "destination": self.destination,
            "tripType": self.trip_type,
            "adults": str(self.adults),
        }
