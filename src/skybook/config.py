"""Configuration loading for the suggestion client and autocomplete fields."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, fields
from pathlib import Path

DEFAULT_CONFIG_PATH = Path("config/skybook.json")
API_BASE_URL_ENV = "SKYBOOK_API_BASE_URL"


@dataclass
class AutocompleteConfig:
    """Timing and gating constants shared by every autocomplete field."""

    min_query_length: int = 2
    debounce_ms: int = 300
    blur_grace_ms: int = 100

    def __post_init__(self) -> None:
        if self.min_query_length < 1:
            raise ValueError("min_query_length must be at least 1")
        if self.debounce_ms < 0 or self.blur_grace_ms < 0:
            raise ValueError("delays must not be negative")


@dataclass
class ClientConfig:
    """Where the booking backend lives and how long to wait for it."""

    api_base_url: str = "http://localhost:5000/api"
    timeout_seconds: float = 10.0

    def __post_init__(self) -> None:
        self.api_base_url = self.api_base_url.rstrip("/")


def _pick(cls: type, data: dict) -> dict:
    """Keep only the keys of *data* that name fields of dataclass *cls*."""
    names = {f.name for f in fields(cls)}
    return {k: v for k, v in data.items() if k in names}


def load_config(
    config_path: Path | None = None,
) -> tuple[ClientConfig, AutocompleteConfig]:
    """Load client and autocomplete settings from JSON, falling back to defaults.

    Reads ``config/skybook.json`` when *config_path* is ``None``. A missing
    file yields defaults. Unknown keys are ignored. The
    ``SKYBOOK_API_BASE_URL`` environment variable overrides the base URL
    from the file.

    Args:
        config_path: Optional explicit path to the JSON file.

    Returns:
        ``(ClientConfig, AutocompleteConfig)``.
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    data: dict = {}
    if config_path.exists():
        with open(config_path) as f:
            data = json.load(f)

    client = ClientConfig(**_pick(ClientConfig, data))
    autocomplete = AutocompleteConfig(**_pick(AutocompleteConfig, data))

    env_url = os.environ.get(API_BASE_URL_ENV)
    if env_url:
        client.api_base_url = env_url.rstrip("/")

    return client, autocomplete
