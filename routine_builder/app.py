from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Request

from .assistant import RoutineAssistant
from .catalog_store import CatalogStore
from .completion_client import CompletionClient
from .config import Settings, load_settings
from .conversation import ConversationManager
from .errors import CatalogLoadError
from .filter_engine import LiveFilter, filter_products
from .models import (
    AssistantReply,
    CatalogView,
    ChatRequest,
    ConversationTurn,
    LiveSearchView,
    Product,
    SearchCategoryRequest,
    SearchQueryRequest,
    SelectionView,
    StateView,
    ToggleRequest,
)
from .selection import SelectionManager
from .storage import KeyValueStorage
from .views import render_catalog, render_selection, render_state

BASE_DIR = Path(__file__).resolve().parent

log_level_name = os.getenv("LOG_LEVEL", "INFO").upper()
log_level = getattr(logging, log_level_name, logging.INFO)
if not logging.getLogger().handlers:
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

logging.getLogger("routine_builder").setLevel(log_level)
logger = logging.getLogger("routine_builder.app")

ENV_PATH = BASE_DIR / ".env"
if ENV_PATH.exists():
    load_dotenv(ENV_PATH, override=False)


def create_app(
    settings: Optional[Settings] = None,
    client: Optional[CompletionClient] = None,
    storage: Optional[KeyValueStorage] = None,
) -> FastAPI:
    """Purpose: Build the FastAPI app with its catalog, selection and chat state.
    Inputs/Outputs: Optional Settings, completion client and storage; returns FastAPI.
    Side Effects / State: Loads the catalog and restores the selection from storage.
    Dependencies: CatalogStore, SelectionManager, ConversationManager, RoutineAssistant.
    Failure Modes: Catalog load failures are logged and leave an empty catalog with a
        placeholder; nothing here aborts startup.
    If Removed: The front-end has no backend to talk to.
    Testing Notes: Pass tmp_path settings and a fake client, then use TestClient.
    """
    # Bootstrap state in dependency order: catalog, then selection, then chat.
    settings = settings or load_settings()
    catalog = CatalogStore(timeout=settings.request_timeout_seconds)
    catalog_error = False
    try:
        catalog.load(settings.catalog_source)
    except CatalogLoadError as exc:
        logger.error("Error loading products: %s", exc)
        catalog_error = True

    selection = SelectionManager(catalog, storage or KeyValueStorage(settings.selection_store_path))
    selection.restore()
    conversation = ConversationManager()
    assistant = RoutineAssistant(selection, conversation, client or CompletionClient(settings))
    live_filter = LiveFilter(lambda: catalog.products, debounce_seconds=settings.search_debounce_seconds)
    live_filter.refresh()

    app = FastAPI(title="L'Oréal Routine Builder")
    app.state.settings = settings
    app.state.catalog = catalog
    app.state.selection = selection
    app.state.conversation = conversation
    app.state.assistant = assistant
    app.state.live_filter = live_filter
    app.state.catalog_error = catalog_error

    def live_search_view() -> LiveSearchView:
        return LiveSearchView(
            query=live_filter.query,
            category=live_filter.category,
            pending=live_filter.pending,
            catalog=render_catalog(
                live_filter.visible, selection.current(), catalog_error=app.state.catalog_error
            ),
        )

    @app.get("/api/products", response_model=CatalogView)
    def list_products(q: str = "", category: str = "all") -> CatalogView:
        """Purpose: Return the catalog grid filtered by an explicit query and category.
        Inputs/Outputs: Query params q and category; returns CatalogView.
        Side Effects / State: None; stateless counterpart of /api/search.
        Dependencies: filter_products, render_catalog.
        Failure Modes: Failed catalog load yields an empty grid with a placeholder.
        If Removed: Clients cannot fetch a one-off filtered grid.
        Testing Notes: Query "serum" returns only the serum card.
        """
        visible = filter_products(catalog.products, q, category)
        return render_catalog(visible, selection.current(), catalog_error=app.state.catalog_error)

    @app.get("/api/search", response_model=LiveSearchView)
    def get_live_search() -> LiveSearchView:
        """Purpose: Return the live search state driven by keystrokes and category changes.
        Inputs/Outputs: No inputs; returns LiveSearchView.
        Side Effects / State: None.
        Dependencies: LiveFilter owned by the app.
        Failure Modes: None.
        If Removed: The search box cannot poll for its settled result.
        Testing Notes: After a keystroke, pending is True until the debounce window closes.
        """
        return live_search_view()

    @app.post("/api/search/query", response_model=LiveSearchView)
    def search_keystroke(request: SearchQueryRequest) -> LiveSearchView:
        """Purpose: Feed a search box keystroke through the debounce window.
        Inputs/Outputs: Input is SearchQueryRequest; returns the current LiveSearchView.
        Side Effects / State: Restarts the SEARCH_DEBOUNCE_MS quiescence timer.
        Dependencies: LiveFilter.set_query.
        Failure Modes: None; the grid refreshes once typing settles.
        If Removed: Every keystroke would have to refilter immediately.
        Testing Notes: Flush the app's live filter to apply the latest query.
        """
        live_filter.set_query(request.query)
        return live_search_view()

    @app.post("/api/search/category", response_model=LiveSearchView)
    def search_category(request: SearchCategoryRequest) -> LiveSearchView:
        """Purpose: Apply a category drop-down change immediately.
        Inputs/Outputs: Input is SearchCategoryRequest; returns the refreshed LiveSearchView.
        Side Effects / State: Refilters the live grid without debouncing.
        Dependencies: LiveFilter.set_category.
        Failure Modes: None.
        If Removed: Category changes would wait on the search debounce.
        Testing Notes: The response already reflects the new category.
        """
        live_filter.set_category(request.category)
        return live_search_view()

    @app.get("/api/products/{product_id}", response_model=Product)
    def get_product(product_id: int) -> Product:
        """Purpose: Return a single product for the detail view.
        Inputs/Outputs: Path param product_id; returns Product.
        Side Effects / State: None.
        Dependencies: CatalogStore.find_by_id.
        Failure Modes: Unknown id returns 404.
        If Removed: The product detail modal has nothing to show.
        Testing Notes: Request a known and an unknown id.
        """
        product = catalog.find_by_id(product_id)
        if product is None:
            raise HTTPException(status_code=404, detail="Product not found")
        return product

    @app.get("/api/categories")
    def list_categories() -> List[str]:
        """Purpose: List distinct catalog categories for the drop-down.
        Inputs/Outputs: No inputs; returns a sorted list of category names.
        Side Effects / State: None.
        Dependencies: CatalogStore.categories.
        Failure Modes: Empty catalog returns an empty list.
        If Removed: The category drop-down cannot be populated.
        Testing Notes: Mixed-case categories sort case-insensitively.
        """
        return catalog.categories()

    @app.get("/api/selection", response_model=SelectionView)
    def get_selection() -> SelectionView:
        """Purpose: Return the selected products panel state.
        Inputs/Outputs: No inputs; returns SelectionView.
        Side Effects / State: None.
        Dependencies: SelectionManager.current, render_selection.
        Failure Modes: None.
        If Removed: The panel cannot show restored selections on page load.
        Testing Notes: Restored ids appear in stored order.
        """
        return render_selection(selection.current())

    @app.post("/api/selection/toggle", response_model=SelectionView)
    def toggle_selection(request: ToggleRequest) -> SelectionView:
        """Purpose: Select or deselect a product.
        Inputs/Outputs: Input is ToggleRequest; returns SelectionView.
        Side Effects / State: Mutates and persists the selection.
        Dependencies: SelectionManager.toggle.
        Failure Modes: Unknown ids leave the selection unchanged.
        If Removed: Product cards cannot be selected.
        Testing Notes: Toggling twice returns count to zero.
        """
        selection.toggle(request.product_id)
        return render_selection(selection.current())

    @app.delete("/api/selection", response_model=SelectionView)
    def clear_selection() -> SelectionView:
        """Purpose: Clear every selected product.
        Inputs/Outputs: No inputs; returns the empty SelectionView.
        Side Effects / State: Empties and persists the selection.
        Dependencies: SelectionManager.clear.
        Failure Modes: Storage failures are logged only.
        If Removed: The "Clear all" button has no backend.
        Testing Notes: can_generate is False afterwards.
        """
        selection.clear()
        return render_selection(selection.current())

    @app.post("/api/routine", response_model=AssistantReply)
    def generate_routine() -> AssistantReply:
        """Purpose: Generate a routine from the current selection.
        Inputs/Outputs: No body; returns AssistantReply (sent=False on empty selection).
        Side Effects / State: Appends user and assistant turns to the transcript.
        Dependencies: RoutineAssistant.generate_routine.
        Failure Modes: Endpoint failures come back as the routine fallback text.
        If Removed: The "Generate Routine" button has no backend.
        Testing Notes: Select a product, post, and check the transcript grows by two.
        """
        return assistant.generate_routine()

    @app.post("/api/chat", response_model=AssistantReply)
    def chat(request: ChatRequest) -> AssistantReply:
        """Purpose: Send a chat message with the current selection as context.
        Inputs/Outputs: Input is ChatRequest; returns AssistantReply.
        Side Effects / State: Appends user and assistant turns to the transcript.
        Dependencies: RoutineAssistant.send_message.
        Failure Modes: Blank messages are ignored; endpoint failures return the fallback.
        If Removed: The chat form has no backend.
        Testing Notes: Check the transcript holds the bare message, not the prefixed one.
        """
        return assistant.send_message(request.message)

    @app.get("/api/transcript", response_model=List[ConversationTurn])
    def get_transcript() -> List[ConversationTurn]:
        """Purpose: Return the recorded chat transcript.
        Inputs/Outputs: No inputs; returns the user/assistant turns in order.
        Side Effects / State: None.
        Dependencies: ConversationManager.transcript.
        Failure Modes: None.
        If Removed: The chat window cannot be redrawn from state.
        Testing Notes: System turns never appear here.
        """
        return list(conversation.transcript)

    @app.delete("/api/transcript", response_model=List[ConversationTurn])
    def reset_transcript() -> List[ConversationTurn]:
        """Purpose: Start a new conversation.
        Inputs/Outputs: No inputs; returns an empty list.
        Side Effects / State: Empties the transcript.
        Dependencies: ConversationManager.reset.
        Failure Modes: None.
        If Removed: History accumulates for the process lifetime.
        Testing Notes: A following GET returns an empty list.
        """
        conversation.reset()
        return []

    @app.get("/api/state", response_model=StateView)
    def get_state(request: Request, q: str = "", category: str = "all") -> StateView:
        """Purpose: Return the full render snapshot for the front-end.
        Inputs/Outputs: Query params q and category plus Accept-Language; returns StateView.
        Side Effects / State: None.
        Dependencies: render_state over catalog, selection and transcript.
        Failure Modes: Failed catalog load yields a placeholder, not an error.
        If Removed: The page cannot render from a single consistent snapshot.
        Testing Notes: An Arabic Accept-Language yields direction "rtl".
        """
        return render_state(
            filter_products(catalog.products, q, category),
            selection.current(),
            conversation.transcript,
            catalog.categories(),
            language=request.headers.get("accept-language"),
            catalog_error=app.state.catalog_error,
        )

    return app


app = create_app()
