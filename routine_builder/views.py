from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

from .models import CatalogView, ConversationTurn, Product, ProductCard, SelectionView, StateView

NO_PRODUCTS_FOUND = "No products found. Try adjusting your search or filter."
NO_PRODUCTS_SELECTED = "No products selected yet. Click on products above to add them to your routine."
CATALOG_LOAD_FAILED = "Error loading products. Please refresh the page."

RTL_LANGUAGES = frozenset({"ar", "he", "fa"})


def text_direction(language: Optional[str]) -> str:
    """Return "rtl" when the preferred language is Arabic, Hebrew or Persian, else "ltr".

    Only the primary subtag of the first language range counts, so "es-AR" and
    "en-US,ar;q=0.1" stay left-to-right.
    """
    first_range = (language or "").split(",")[0].split(";")[0].strip().lower()
    primary = first_range.split("-")[0]
    return "rtl" if primary in RTL_LANGUAGES else "ltr"


def render_catalog(
    products: Iterable[Product],
    selection: Sequence[Product],
    catalog_error: bool = False,
) -> CatalogView:
    """Purpose: Turn the visible products into grid cards with their selected flag.
    Inputs/Outputs: Visible products and the current selection; returns CatalogView.
    Side Effects / State: None.
    Dependencies: Product ids for the selected marker.
    Failure Modes: catalog_error wins over the empty-result placeholder.
    If Removed: The grid loses its selected highlight and placeholders.
    Testing Notes: Empty products without catalog_error show NO_PRODUCTS_FOUND.
    """
    selected_ids = {product.id for product in selection}
    cards = [ProductCard(product=product, selected=product.id in selected_ids) for product in products]
    placeholder = None
    if catalog_error:
        placeholder = CATALOG_LOAD_FAILED
    elif not cards:
        placeholder = NO_PRODUCTS_FOUND
    return CatalogView(items=cards, placeholder=placeholder)


def render_selection(selection: Sequence[Product]) -> SelectionView:
    """Selected-products panel: count, items, button visibility and placeholder."""
    has_items = bool(selection)
    return SelectionView(
        count=len(selection),
        items=list(selection),
        can_generate=has_items,
        show_clear=has_items,
        placeholder=None if has_items else NO_PRODUCTS_SELECTED,
    )


def render_state(
    products: Iterable[Product],
    selection: Sequence[Product],
    transcript: Sequence[ConversationTurn],
    categories: List[str],
    language: Optional[str] = None,
    catalog_error: bool = False,
) -> StateView:
    """Build the full snapshot the front-end renders from; calling it never mutates state."""
    return StateView(
        catalog=render_catalog(products, selection, catalog_error=catalog_error),
        selection=render_selection(selection),
        transcript=list(transcript),
        categories=categories,
        direction=text_direction(language),
    )
