from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent

DEFAULT_COMPLETION_ENDPOINT_URL = "https://finallorealchatbot-worker.treyzangel.workers.dev/"


@dataclass(frozen=True)
class Settings:
    """Configuration container for the catalog source, storage and completion endpoint."""
    completion_endpoint_url: str
    catalog_source: str
    selection_store_path: Path
    search_debounce_ms: int
    request_timeout_seconds: float
    max_attempts: int
    retry_backoff_seconds: float

    @property
    def search_debounce_seconds(self) -> float:
        return self.search_debounce_ms / 1000.0


def load_settings() -> Settings:
    """Purpose: Load configuration from environment variables and defaults.
    Inputs/Outputs: No inputs; returns a Settings instance.
    Side Effects / State: Reads environment variables and filesystem paths.
    Dependencies: Uses os.getenv and BASE_DIR for default paths.
    Failure Modes: Invalid numeric env values raise ValueError; MAX_ATTEMPTS below 1
        and SEARCH_DEBOUNCE_MS below 300 are rejected.
    If Removed: App cannot locate its catalog, storage or endpoint and fails at startup.
    Testing Notes: Verify defaults and overrides via environment variables.
    """
    # Resolve catalog and storage locations, then build Settings.
    catalog_source = os.getenv("CATALOG_SOURCE") or str(BASE_DIR / "data" / "products.json")
    store_path = os.getenv("SELECTION_STORE_PATH")
    if store_path:
        selection_store_path = Path(store_path)
    else:
        selection_store_path = (BASE_DIR / "data" / "storage.json").resolve()

    search_debounce_ms = int(os.getenv("SEARCH_DEBOUNCE_MS", "300"))
    if search_debounce_ms < 300:
        raise ValueError("SEARCH_DEBOUNCE_MS must be at least 300")
    max_attempts = int(os.getenv("MAX_ATTEMPTS", "1"))
    if max_attempts < 1:
        raise ValueError("MAX_ATTEMPTS must be at least 1")

    return Settings(
        completion_endpoint_url=os.getenv("COMPLETION_ENDPOINT_URL", DEFAULT_COMPLETION_ENDPOINT_URL),
        catalog_source=catalog_source,
        selection_store_path=selection_store_path,
        search_debounce_ms=search_debounce_ms,
        request_timeout_seconds=float(os.getenv("REQUEST_TIMEOUT_SECONDS", "60")),
        max_attempts=max_attempts,
        retry_backoff_seconds=float(os.getenv("RETRY_BACKOFF_SECONDS", "0.5")),
    )
