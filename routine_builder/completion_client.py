from __future__ import annotations

import logging
import time
from typing import Any, Callable, Optional, Sequence

import requests

from .config import Settings
from .errors import CompletionError, NetworkError, ProtocolError, TransportError, UpstreamError
from .models import ConversationTurn

logger = logging.getLogger("routine_builder.completion")


class CompletionClient:
    """Thin HTTP wrapper around the chat completion endpoint."""

    def __init__(
        self,
        settings: Settings,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Purpose: Configure the endpoint URL, timeout and retry budget.
        Inputs/Outputs: Input is Settings plus optional session/sleep hooks; no return value.
        Side Effects / State: Creates a requests.Session when none is supplied.
        Dependencies: Uses requests and Settings from config.
        Failure Modes: Raises ValueError if the endpoint URL is missing.
        If Removed: Chat and routine generation cannot reach the model.
        Testing Notes: Inject a fake session and a no-op sleep.
        """
        # Keep the endpoint config; no API key is ever attached here.
        if not settings.completion_endpoint_url:
            raise ValueError("COMPLETION_ENDPOINT_URL is required")
        self._url = settings.completion_endpoint_url
        self._timeout = settings.request_timeout_seconds
        self._max_attempts = max(1, settings.max_attempts)
        self._backoff = settings.retry_backoff_seconds
        self._session = session or requests.Session()
        self._sleep = sleep

    def complete(self, messages: Sequence[ConversationTurn]) -> str:
        """Purpose: Send the message list and return the assistant content.
        Inputs/Outputs: Input is a sequence of ConversationTurn; returns the content string.
        Side Effects / State: One HTTP POST per attempt.
        Dependencies: Uses _post_once and parse_completion.
        Failure Modes: NetworkError, TransportError, UpstreamError or ProtocolError.
            Only NetworkError and 5xx TransportError are retried, up to max_attempts.
        If Removed: No assistant turns are ever produced.
        Testing Notes: Feed canned bodies for success, error object and {}.
        """
        # Retry only failures that a later attempt could fix.
        payload = {"messages": [turn.model_dump() for turn in messages]}
        attempt = 1
        while True:
            try:
                body = self._post_once(payload)
                content = parse_completion(body)
                logger.info("completion ok attempt=%d chars=%d", attempt, len(content))
                return content
            except (NetworkError, TransportError) as exc:
                if attempt >= self._max_attempts or not _is_retryable(exc):
                    raise
                delay = self._backoff * (2 ** (attempt - 1))
                logger.warning(
                    "completion attempt=%d failed kind=%s, retrying in %.2fs", attempt, exc.kind, delay
                )
                self._sleep(delay)
                attempt += 1

    def _post_once(self, payload: dict) -> Any:
        try:
            response = self._session.post(
                self._url,
                json=payload,
                headers={"Content-Type": "application/json"},
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            raise NetworkError(f"Failed to reach completion endpoint: {exc}") from exc
        if not 200 <= response.status_code < 300:
            raise TransportError(response.status_code)
        try:
            return response.json()
        except ValueError as exc:
            raise ProtocolError("response body is not JSON") from exc


def parse_completion(body: Any) -> str:
    """Purpose: Extract the assistant content from a decoded response body.
    Inputs/Outputs: Input is decoded JSON; returns choices[0].message.content.
    Side Effects / State: None.
    Dependencies: None.
    Failure Modes: {"error": {"message": ...}} raises UpstreamError; any other shape
        raises ProtocolError.
    If Removed: complete() cannot tell success from upstream errors.
    Testing Notes: {} and {"choices": []} are protocol errors.
    """
    # Tagged branches: success shape, then error shape, then fallback.
    content = _dig(body, "choices", 0, "message", "content")
    if isinstance(content, str):
        return content
    message = _dig(body, "error", "message")
    if isinstance(message, str):
        raise UpstreamError(message)
    raise ProtocolError()


def _dig(data: Any, *path: Any) -> Any:
    for key in path:
        if isinstance(key, int):
            if not isinstance(data, list) or len(data) <= key:
                return None
        elif not isinstance(data, dict):
            return None
        data = data[key] if isinstance(key, int) else data.get(key)
    return data


def _is_retryable(exc: CompletionError) -> bool:
    if isinstance(exc, TransportError):
        return exc.status_code >= 500
    return isinstance(exc, NetworkError)
