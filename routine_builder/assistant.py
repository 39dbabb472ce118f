"""Routine assistant orchestration.

Role:
    Connects the selection, the transcript and the completion client for the two
    user actions that reach the model: free-form chat and "generate routine".

Turn ordering contract:
    - The bare user message is recorded before its request is issued.
    - The assistant turn (content or fallback) is recorded after the response.
    - Requests are serialised per transcript, so turns always alternate and the
      history sent with a request never includes a half-finished exchange.

Error contract:
    Completion failures never propagate. Each maps to a fixed fallback message;
    the error kind is logged and returned for diagnostics only.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional, Sequence

from .completion_client import CompletionClient
from .conversation import ConversationManager, build_routine_request
from .errors import CompletionError
from .models import AssistantReply, Product
from .selection import SelectionManager

logger = logging.getLogger("routine_builder.assistant")

CHAT_FALLBACK_REPLY = "Sorry, I encountered an error. Please try again."
ROUTINE_FALLBACK_REPLY = (
    "Sorry, I encountered an error while generating your routine. Please try again."
)


class RoutineAssistant:
    """Runs chat and routine requests against the completion endpoint."""

    def __init__(
        self,
        selection: SelectionManager,
        conversation: ConversationManager,
        client: CompletionClient,
    ) -> None:
        self._selection = selection
        self._conversation = conversation
        self._client = client
        self._request_lock = threading.Lock()

    def send_message(self, text: Optional[str]) -> AssistantReply:
        """Purpose: Handle a chat form submission.
        Inputs/Outputs: Input is the raw user text; returns an AssistantReply.
        Side Effects / State: Appends a user turn and an assistant turn to the transcript.
        Dependencies: ConversationManager, SelectionManager.current, CompletionClient.
        Failure Modes: Blank text is a no-op (sent=False); completion errors become the
            chat fallback message.
        If Removed: The chat box stops working.
        Testing Notes: Use a fake client; check the transcript holds the bare message.
        """
        message = (text or "").strip()
        if not message:
            return AssistantReply(sent=False)
        return self._exchange(message, CHAT_FALLBACK_REPLY, self._selection.current())

    def generate_routine(self) -> AssistantReply:
        """Purpose: Ask for a routine built from the current selection.
        Inputs/Outputs: No inputs; returns an AssistantReply.
        Side Effects / State: Appends the routine request and the answer to the transcript.
        Dependencies: build_routine_request, _exchange.
        Failure Modes: Empty selection is a no-op; errors become the routine fallback.
        If Removed: The "Generate Routine" action does nothing.
        Testing Notes: Empty selection must not call the client.
        """
        selection = self._selection.current()
        if not selection:
            return AssistantReply(sent=False)
        return self._exchange(build_routine_request(selection), ROUTINE_FALLBACK_REPLY, selection)

    def _exchange(self, message: str, fallback: str, selection: Sequence[Product]) -> AssistantReply:
        # Payload is built before the user turn lands, so history excludes it once.
        # Context comes from the caller's selection snapshot.
        with self._request_lock:
            payload = self._conversation.build_request_payload(message, selection)
            self._conversation.record_user_turn(message)
            try:
                answer = self._client.complete(payload)
            except CompletionError as exc:
                logger.warning("completion failed kind=%s error=%s", exc.kind, exc)
                self._conversation.record_assistant_turn(fallback)
                return AssistantReply(sent=True, answer_text=fallback, fallback=True, error_kind=exc.kind)
            if not answer.strip():
                logger.warning("completion returned blank content")
                self._conversation.record_assistant_turn(fallback)
                return AssistantReply(sent=True, answer_text=fallback, fallback=True, error_kind="protocol")
            self._conversation.record_assistant_turn(answer)
            return AssistantReply(sent=True, answer_text=answer)
