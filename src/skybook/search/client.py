"""HTTP suggestion source backed by the booking backend's location lookup.

``GET {api_base_url}/locations/autocomplete-locations?keyword=...`` returns
a JSON array of location rows. The client converts rows with an IATA code
into Suggestions and maps HTTP failures onto SuggestionSourceError. It does
not retry: the autocomplete field simply shows no candidates and the next
keystroke asks again.
"""

from __future__ import annotations

import logging

import httpx
from pydantic import ValidationError

from skybook.config import ClientConfig
from skybook.exceptions import RateLimitError, SuggestionSourceError
from skybook.models import Suggestion
from skybook.search.schemas import LocationRow

logger = logging.getLogger(__name__)

AUTOCOMPLETE_PATH = "/locations/autocomplete-locations"
MIN_KEYWORD_LENGTH = 2


class LocationSearchClient:
    """Async client for airport/city suggestions.

    Usage::

        async with LocationSearchClient("http://localhost:5000/api") as client:
            suggestions = await client.search("NY")

    Args:
        base_url: API root, e.g. ``http://localhost:5000/api``.
        timeout: Per-request timeout in seconds.
        http_client: Optional pre-built ``httpx.AsyncClient``. A client
            passed in is not closed by ``aclose()``.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout)

    @classmethod
    def from_config(cls, config: ClientConfig) -> "LocationSearchClient":
        return cls(config.api_base_url, timeout=config.timeout_seconds)

    @property
    def endpoint(self) -> str:
        return f"{self._base_url}{AUTOCOMPLETE_PATH}"

    async def search(self, keyword: str) -> list[Suggestion]:
        """Look up locations matching *keyword*.

        Raises:
            ValueError: If *keyword* is shorter than 2 characters.
            RateLimitError: On HTTP 429.
            SuggestionSourceError: On any other HTTP, transport, or payload error.
        """
        if len(keyword) < MIN_KEYWORD_LENGTH:
            raise ValueError(
                f"keyword must have at least {MIN_KEYWORD_LENGTH} characters"
            )

        try:
            response = await self._client.get(self.endpoint, params={"keyword": keyword})
        except httpx.HTTPError as exc:
            raise SuggestionSourceError(f"location lookup failed: {exc}") from exc

        if response.status_code >= 400:
            message = _error_message(response)
            if response.status_code == 429:
                raise RateLimitError(message, status_code=429)
            raise SuggestionSourceError(message, status_code=response.status_code)

        try:
            payload = response.json()
        except ValueError as exc:
            raise SuggestionSourceError("location lookup returned invalid JSON") from exc
        if not isinstance(payload, list):
            raise SuggestionSourceError("location lookup returned a non-list payload")

        suggestions: list[Suggestion] = []
        for item in payload:
            try:
                row = LocationRow.model_validate(item)
            except ValidationError as exc:
                logger.warning("skipping malformed location row %r: %s", item, exc)
                continue
            if not row.iata_code:
                continue
            suggestions.append(row.to_suggestion())

        logger.debug("lookup keyword=%r rows=%d kept=%d", keyword, len(payload), len(suggestions))
        return suggestions

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "LocationSearchClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


def _error_message(response: httpx.Response) -> str:
    """Prefer the backend's ``{"message": ...}`` body over the bare status."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return f"location lookup failed with HTTP {response.status_code}"
