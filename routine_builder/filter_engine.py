from __future__ import annotations

import threading
from typing import Any, Callable, Iterable, List, Optional, Tuple

from .models import Product

ALL_CATEGORIES = "all"
SEARCH_FIELDS = ("name", "brand", "category", "description")


def filter_products(
    catalog: Iterable[Product],
    query: Optional[str] = "",
    category: Optional[str] = ALL_CATEGORIES,
) -> List[Product]:
    """Purpose: Compute the visible subset of the catalog for a query and category.
    Inputs/Outputs: Inputs are products, free-text query and category; returns a new list
        in catalog order.
    Side Effects / State: None; pure function.
    Dependencies: None beyond Product fields.
    Failure Modes: None; empty query and empty/"all" category match everything.
    If Removed: Search box and category drop-down stop narrowing the grid.
    Testing Notes: Category is exact (case-insensitive); query is a substring on any
        of name/brand/category/description.
    """
    # Lower-case only; surrounding whitespace is part of the constraint.
    wanted_category = (category or "").lower()
    if wanted_category == ALL_CATEGORIES:
        wanted_category = ""
    needle = (query or "").lower()

    results: List[Product] = []
    for product in catalog:
        if wanted_category and product.category.lower() != wanted_category:
            continue
        if needle and not _matches_text(product, needle):
            continue
        results.append(product)
    return results


def _matches_text(product: Product, needle: str) -> bool:
    return any(needle in getattr(product, field).lower() for field in SEARCH_FIELDS)


class Debouncer:
    """Trailing-edge debounce: run fn once the calls have been quiet for wait_seconds."""

    def __init__(self, fn: Callable[..., Any], wait_seconds: float = 0.3) -> None:
        self._fn = fn
        self._wait = wait_seconds
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._args: Optional[Tuple[Any, ...]] = None

    @property
    def wait_seconds(self) -> float:
        return self._wait

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._timer is not None

    def call(self, *args: Any) -> None:
        """Restart the quiescence window with the latest arguments."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._args = args
            self._timer = threading.Timer(self._wait, self._fire)
            self._timer.daemon = True
            self._timer.start()

    def flush(self) -> Any:
        """Run the pending call immediately; returns its result or None."""
        args = self._take()
        if args is None:
            return None
        return self._fn(*args)

    def cancel(self) -> None:
        self._take()

    def _take(self) -> Optional[Tuple[Any, ...]]:
        with self._lock:
            if self._timer is None:
                return None
            self._timer.cancel()
            self._timer = None
            args, self._args = self._args, None
            return args

    def _fire(self) -> None:
        # A superseded timer may still fire; only the current one may run fn.
        args = self._take_fired()
        if args is not None:
            self._fn(*args)

    def _take_fired(self) -> Optional[Tuple[Any, ...]]:
        with self._lock:
            if self._timer is None or self._timer is not threading.current_thread():
                return None
            self._timer = None
            args, self._args = self._args, None
            return args


class LiveFilter:
    """Visible catalog subset driven by UI events.

    Free-text input is debounced; category changes refilter immediately. Each
    refresh hands the new subset to on_change, when given, which owns presentation.
    """

    def __init__(
        self,
        catalog: Callable[[], Iterable[Product]],
        on_change: Optional[Callable[[List[Product]], Any]] = None,
        debounce_seconds: float = 0.3,
    ) -> None:
        self._catalog = catalog
        self._on_change = on_change
        self._lock = threading.Lock()
        self._query = ""
        self._category = ALL_CATEGORIES
        self._visible: List[Product] = []
        self._debouncer = Debouncer(self._apply_query, debounce_seconds)

    @property
    def debounce_seconds(self) -> float:
        return self._debouncer.wait_seconds

    @property
    def pending(self) -> bool:
        return self._debouncer.pending

    @property
    def query(self) -> str:
        return self._query

    @property
    def category(self) -> str:
        return self._category

    @property
    def visible(self) -> List[Product]:
        with self._lock:
            return list(self._visible)

    def set_query(self, text: str) -> None:
        self._debouncer.call(text)

    def set_category(self, category: str) -> List[Product]:
        with self._lock:
            self._category = category or ALL_CATEGORIES
        return self.refresh()

    def flush(self) -> None:
        self._debouncer.flush()

    def refresh(self) -> List[Product]:
        with self._lock:
            self._visible = filter_products(self._catalog(), self._query, self._category)
            visible = list(self._visible)
        if self._on_change is not None:
            self._on_change(visible)
        return visible

    def close(self) -> None:
        self._debouncer.cancel()

    def _apply_query(self, text: str) -> None:
        with self._lock:
            self._query = text or ""
        self.refresh()
