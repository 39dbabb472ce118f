"""Catalog store for the routine builder.

Loads the products document once at startup into frozen Product records and
provides the lookups used by selection, filtering and the HTTP layer.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, List, Optional, Tuple, Union

import requests
from pydantic import ValidationError

from .errors import CatalogLoadError
from .models import Product

logger = logging.getLogger("routine_builder.catalog")

CatalogSource = Union[str, Path]


class CatalogStore:
    """Owner of the immutable product list."""

    def __init__(self, session: Optional[requests.Session] = None, timeout: float = 30.0) -> None:
        """Purpose: Create an empty store.
        Inputs/Outputs: Optional requests session and timeout for URL sources; no return.
        Side Effects / State: Initializes an empty product tuple.
        Dependencies: requests for http(s) sources.
        Failure Modes: None at init; load() reports read/parse errors.
        If Removed: Nothing can resolve product ids or filter the catalog.
        Testing Notes: Instantiate, load a temp JSON file, and check find_by_id.
        """
        self._session = session
        self._timeout = timeout
        self._products: Tuple[Product, ...] = ()

    @property
    def products(self) -> Tuple[Product, ...]:
        return self._products

    def __len__(self) -> int:
        return len(self._products)

    def load(self, source: CatalogSource) -> List[Product]:
        """Purpose: Fetch and parse the catalog document and replace the held products.
        Inputs/Outputs: Input is a filesystem path or http(s) URL; returns the products.
        Side Effects / State: Replaces self._products; empties it on failure.
        Dependencies: Uses _read_source, parse_catalog.
        Failure Modes: Network errors and malformed JSON raise CatalogLoadError.
        If Removed: The app starts with no catalog and every lookup misses.
        Testing Notes: Cover bare-array, {"products": [...]}, other shapes and bad JSON.
        """
        # Clear first so a failed reload never leaves a half-loaded catalog.
        self._products = ()
        raw = self._read_source(source)
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise CatalogLoadError(f"Malformed catalog JSON in {source}: {exc}") from exc
        products = parse_catalog(data)
        self._products = tuple(products)
        logger.info("catalog loaded source=%s products=%d", source, len(products))
        return list(products)

    def find_by_id(self, product_id: int) -> Optional[Product]:
        """Purpose: Resolve a product id to its catalog record.
        Inputs/Outputs: Integer id; returns the Product or None.
        Side Effects / State: None.
        Dependencies: Loaded product list.
        Failure Modes: Unknown ids return None rather than raising.
        If Removed: Selection restore and the detail route cannot validate ids.
        Testing Notes: Look up a known and an unknown id.
        """
        for product in self._products:
            if product.id == product_id:
                return product
        return None

    def categories(self) -> List[str]:
        """Return distinct categories, sorted case-insensitively."""
        seen = {}
        for product in self._products:
            key = product.category.lower()
            if key and key not in seen:
                seen[key] = product.category
        return [seen[key] for key in sorted(seen)]

    def reset(self) -> None:
        self._products = ()

    def _read_source(self, source: CatalogSource) -> str:
        # URLs go through requests; anything else is treated as a local file.
        text = str(source)
        if text.startswith(("http://", "https://")):
            session = self._session or requests.Session()
            try:
                response = session.get(text, timeout=self._timeout)
                response.raise_for_status()
            except requests.RequestException as exc:
                raise CatalogLoadError(f"Could not fetch catalog from {text}: {exc}") from exc
            return response.text
        try:
            return Path(text).read_bytes().decode("utf-8-sig")
        except (OSError, UnicodeDecodeError) as exc:
            raise CatalogLoadError(f"Could not read catalog file {text}: {exc}") from exc


def parse_catalog(data: Any) -> List[Product]:
    """Purpose: Turn a decoded catalog document into Product records.
    Inputs/Outputs: Input is decoded JSON; output is a list of Product.
    Side Effects / State: None; logs skipped entries.
    Dependencies: pydantic validation through Product.
    Failure Modes: Unknown document shapes yield an empty list; invalid entries are skipped.
    If Removed: load() cannot accept both catalog layouts.
    Testing Notes: Mixed valid/invalid entries keep only the valid ones, in order.
    """
    # Tagged dispatch on the two supported layouts; everything else is empty.
    if isinstance(data, list):
        entries = data
    elif isinstance(data, dict) and isinstance(data.get("products"), list):
        entries = data["products"]
    else:
        logger.warning("catalog document has unsupported shape type=%s", type(data).__name__)
        return []

    products: List[Product] = []
    seen_ids = set()
    for index, entry in enumerate(entries):
        if not isinstance(entry, dict):
            logger.warning("catalog entry skipped index=%d reason=not-an-object", index)
            continue
        try:
            product = Product(**entry)
        except ValidationError as exc:
            logger.warning("catalog entry skipped index=%d reason=%s", index, exc.errors()[0].get("msg"))
            continue
        if product.id in seen_ids:
            logger.warning("catalog entry skipped index=%d reason=duplicate-id id=%d", index, product.id)
            continue
        seen_ids.add(product.id)
        products.append(product)
    return products
