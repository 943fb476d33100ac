"""Pydantic v2 wire models for the booking backend's location lookup.

Separate from skybook.models (dataclasses): these describe JSON exactly as
the backend sends it, including its camelCase field names.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from skybook.models import Suggestion


class LocationRow(BaseModel):
    """One airport or city row from ``/locations/autocomplete-locations``."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    iata_code: str | None = Field(default=None, alias="iataCode")
    name: str = ""
    detailed_name: str | None = Field(default=None, alias="detailedName")
    city: str | None = None
    country: str | None = None
    type: str | None = Field(default=None, description="AIRPORT or CITY")

    def display_label(self) -> str:
        """Backend-provided label, or ``"NAME (CODE) - CITY"`` built locally."""
        if self.detailed_name:
            return self.detailed_name
        place = self.city or self.country or ""
        label = f"{self.name} ({self.iata_code}) - {place}".strip()
        return label.removesuffix(" -")

    def to_suggestion(self) -> Suggestion:
        return Suggestion(key=self.iata_code or "", label=self.display_label())
