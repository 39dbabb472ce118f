from __future__ import annotations

import logging
import threading
from typing import List, Optional, Sequence, Tuple

from .models import ConversationTurn, Product

logger = logging.getLogger("routine_builder.conversation")

SYSTEM_PROMPT = (
    "You are a helpful L'Oréal beauty consultant. Help users create personalized skincare and "
    "beauty routines based on their selected products and preferences. Provide detailed, "
    "professional advice."
)

ROUTINE_REQUEST_PREFIX = "Generate a personalized beauty routine using these products: "


def summarize_selection(selection: Sequence[Product]) -> str:
    """Return "brand name (category)" per product, comma-joined."""
    return ", ".join(f"{product.brand} {product.name} ({product.category})" for product in selection)


def contextualize_message(user_message: str, selection: Sequence[Product]) -> str:
    if not selection:
        return user_message
    return f"Selected products: {summarize_selection(selection)}. User question: {user_message}"


def build_routine_request(selection: Sequence[Product]) -> str:
    return ROUTINE_REQUEST_PREFIX + summarize_selection(selection)


class ConversationManager:
    """Append-only transcript of confirmed user and assistant turns."""

    def __init__(self, system_prompt: str = SYSTEM_PROMPT) -> None:
        self._system_prompt = system_prompt
        self._lock = threading.Lock()
        self._turns: List[ConversationTurn] = []

    @property
    def system_prompt(self) -> str:
        return self._system_prompt

    @property
    def transcript(self) -> Tuple[ConversationTurn, ...]:
        with self._lock:
            return tuple(self._turns)

    def __len__(self) -> int:
        with self._lock:
            return len(self._turns)

    def record_user_turn(self, text: str) -> Optional[ConversationTurn]:
        return self._append("user", text)

    def record_assistant_turn(self, text: str) -> Optional[ConversationTurn]:
        return self._append("assistant", text)

    def build_request_payload(
        self, user_message: str, current_selection: Sequence[Product]
    ) -> List[ConversationTurn]:
        """Purpose: Assemble the message list sent to the completion endpoint.
        Inputs/Outputs: Inputs are the bare user message and the selection snapshot;
            returns [system] + transcript + [contextualized user turn].
        Side Effects / State: None; the transcript is not modified.
        Dependencies: contextualize_message for the selection summary.
        Failure Modes: None.
        If Removed: The endpoint loses history and selection context.
        Testing Notes: With a selection the last turn starts with "Selected products:"
            and ends with the bare message; without one it equals the message.
        """
        # Snapshot the selection text now; later selection changes do not leak in.
        system_turn = ConversationTurn(role="system", content=self._system_prompt)
        final_turn = ConversationTurn(
            role="user",
            content=contextualize_message(user_message, current_selection),
        )
        with self._lock:
            history = list(self._turns)
        return [system_turn, *history, final_turn]

    def reset(self) -> None:
        with self._lock:
            self._turns = []
        logger.info("transcript reset")

    def _append(self, role: str, text: str) -> Optional[ConversationTurn]:
        # Blank turns are dropped so the endpoint never sees empty content.
        if text is None or not text.strip():
            return None
        turn = ConversationTurn(role=role, content=text)
        with self._lock:
            self._turns.append(turn)
            size = len(self._turns)
        logger.debug("turn recorded role=%s transcript_len=%d", role, size)
        return turn
