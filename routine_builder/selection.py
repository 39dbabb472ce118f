from __future__ import annotations

import json
import logging
import threading
from typing import Any, List, Optional

from .catalog_store import CatalogStore
from .errors import StorageError
from .models import Product
from .storage import KeyValueStorage

logger = logging.getLogger("routine_builder.selection")

SELECTION_STORAGE_KEY = "loreal_selected_products"


class SelectionManager:
    """Ordered set of selected products, mirrored to durable storage on every change."""

    def __init__(self, catalog: CatalogStore, storage: KeyValueStorage) -> None:
        """Purpose: Wire the selection to its catalog and storage slot.
        Inputs/Outputs: Inputs are a CatalogStore and a KeyValueStorage; no return value.
        Side Effects / State: Starts with an empty selection; call restore() to hydrate.
        Dependencies: CatalogStore.find_by_id for resolution, KeyValueStorage for persistence.
        Failure Modes: None at init.
        If Removed: Users cannot build a selection for routine generation.
        Testing Notes: Toggle, clear and restore against a tmp_path storage file.
        """
        self._catalog = catalog
        self._storage = storage
        self._lock = threading.RLock()
        self._selected: List[Product] = []

    def current(self) -> List[Product]:
        with self._lock:
            return list(self._selected)

    def count(self) -> int:
        with self._lock:
            return len(self._selected)

    def ids(self) -> List[int]:
        with self._lock:
            return [product.id for product in self._selected]

    def is_selected(self, product_id: int) -> bool:
        with self._lock:
            return any(product.id == product_id for product in self._selected)

    def toggle(self, product_id: int) -> bool:
        """Purpose: Add or remove a product from the selection.
        Inputs/Outputs: Input is a product id; returns True when selected afterwards.
        Side Effects / State: Mutates the selection and persists it.
        Dependencies: CatalogStore.find_by_id on the add path; _persist.
        Failure Modes: Unknown ids are a no-op; storage failures are logged only.
        If Removed: Product cards cannot be selected or deselected.
        Testing Notes: Toggling twice restores the previous ids and order.
        """
        with self._lock:
            if self.is_selected(product_id):
                self._selected = [product for product in self._selected if product.id != product_id]
                selected = False
            else:
                product = self._catalog.find_by_id(product_id)
                if product is None:
                    logger.debug("toggle ignored unknown product id=%s", product_id)
                    return False
                self._selected.append(product)
                selected = True
            self._persist()
            logger.info("selection toggled id=%s selected=%s count=%d", product_id, selected, len(self._selected))
            return selected

    def clear(self) -> None:
        """Empty the selection and persist the empty list."""
        with self._lock:
            self._selected = []
            self._persist()
        logger.info("selection cleared")

    def restore(self) -> List[Product]:
        """Purpose: Hydrate the selection from durable storage at startup.
        Inputs/Outputs: No inputs; returns the restored selection.
        Side Effects / State: Replaces the in-memory selection.
        Dependencies: KeyValueStorage.get_item and the loaded CatalogStore.
        Failure Modes: Unreadable or corrupt payloads reset to empty; ids missing from
            the catalog are dropped.
        If Removed: Selections are lost on every restart.
        Testing Notes: Persist, build a new manager, restore, compare ids in order.
        """
        # Load after the catalog so stored ids can be checked against it.
        with self._lock:
            self._selected = []
            try:
                raw = self._storage.get_item(SELECTION_STORAGE_KEY)
            except StorageError as exc:
                logger.warning("selection restore failed, starting empty: %s", exc)
                return []
            if not raw:
                return []
            try:
                entries = json.loads(raw)
            except json.JSONDecodeError as exc:
                logger.warning("selection payload is not JSON, starting empty: %s", exc)
                return []
            if not isinstance(entries, list):
                logger.warning("selection payload is not a list, starting empty")
                return []

            restored: List[Product] = []
            for entry in entries:
                product_id = _entry_id(entry)
                if product_id is None:
                    logger.warning("selection entry skipped: no usable id")
                    continue
                product = self._catalog.find_by_id(product_id)
                if product is None:
                    logger.warning("selection entry dropped: id=%s not in catalog", product_id)
                    continue
                if any(existing.id == product_id for existing in restored):
                    continue
                restored.append(product)
            self._selected = restored
            logger.info("selection restored count=%d", len(restored))
            return list(restored)

    def _persist(self) -> None:
        # In-memory state wins; the durable copy is best-effort.
        payload = json.dumps([product.model_dump() for product in self._selected], ensure_ascii=False)
        try:
            self._storage.set_item(SELECTION_STORAGE_KEY, payload)
        except StorageError as exc:
            logger.warning("selection not persisted: %s", exc)


def _entry_id(entry: Any) -> Optional[int]:
    # Stored entries are product objects; bare ids are accepted too.
    value = entry.get("id") if isinstance(entry, dict) else entry
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value)
    return None
