from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

Role = Literal["system", "user", "assistant"]


class Product(BaseModel):
    """Catalog record; frozen once loaded."""
    model_config = ConfigDict(frozen=True, extra="ignore")

    id: int
    name: str
    brand: str
    category: str
    description: str = ""
    image: str = ""


class ConversationTurn(BaseModel):
    """Single chat message as sent to the completion endpoint."""
    model_config = ConfigDict(frozen=True)

    role: Role
    content: str


class ProductCard(BaseModel):
    """Product as displayed in the catalog grid."""
    product: Product
    selected: bool


class CatalogView(BaseModel):
    """Filtered catalog grid with an optional placeholder message."""
    items: List[ProductCard]
    placeholder: Optional[str] = None


class SelectionView(BaseModel):
    """Selected products panel state."""
    count: int
    items: List[Product]
    can_generate: bool
    show_clear: bool
    placeholder: Optional[str] = None


class StateView(BaseModel):
    """Full render snapshot for the front-end."""
    catalog: CatalogView
    selection: SelectionView
    transcript: List[ConversationTurn]
    categories: List[str]
    direction: Literal["ltr", "rtl"]


class LiveSearchView(BaseModel):
    """Live search box state; pending is True while keystrokes are still settling."""
    query: str
    category: str
    pending: bool
    catalog: CatalogView


class SearchQueryRequest(BaseModel):
    """Request payload for a search box keystroke."""
    query: str = Field(default="")


class SearchCategoryRequest(BaseModel):
    """Request payload for a category drop-down change."""
    category: str = Field(default="all")


class ToggleRequest(BaseModel):
    """Request payload for toggling a product selection."""
    product_id: int


class ChatRequest(BaseModel):
    """Request payload for chat API."""
    message: str = Field(default="")


class AssistantReply(BaseModel):
    """Outcome of a chat or routine request."""
    sent: bool
    answer_text: Optional[str] = None
    fallback: bool = False
    error_kind: Optional[str] = None
