"""Skybook terminal frontend.

Provides the Textual flight search form whose airport fields use the
autocomplete controller.
"""

from __future__ import annotations


def run_tui(
    api_base_url: str | None = None,
    offline: bool = False,
    log_dir: str | None = "logs",
) -> None:
    """Build the suggestion source and run the flight search form.

    All imports are deferred so ``skybook --help`` stays fast.

    Args:
        api_base_url: Backend API root; defaults to the configured one.
        offline: Use the built-in airport table instead of the backend.
        log_dir: Directory for JSON-lines logs; ``None`` disables file logging.
    """
    from skybook.config import load_config
    from skybook.search import LocationSearchClient, StaticLocationSource
    from skybook.telemetry import Telemetry, configure_file_logging
    from skybook.tui.app import FlightSearchApp

    client_config, autocomplete_config = load_config()
    if api_base_url:
        client_config.api_base_url = api_base_url.rstrip("/")

    if log_dir:
        configure_file_logging(log_dir)

    client = None
    if offline:
        search = StaticLocationSource(latency=0.15).search
    else:
        client = LocationSearchClient.from_config(client_config)
        search = client.search

    app = FlightSearchApp(
        search=search,
        config=autocomplete_config,
        telemetry=Telemetry.noop(),
        on_shutdown=client.aclose if client is not None else None,
    )
    app.run()
