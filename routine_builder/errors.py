"""Error taxonomy for the routine builder.

Every error here is caught at the boundary nearest its origin: catalog errors
degrade to an empty catalog, storage errors to a log line, and completion
errors to a generic fallback chat message.
"""

from __future__ import annotations

from typing import Optional


class RoutineBuilderError(Exception):
    """Base class for all routine builder failures."""


class CatalogLoadError(RoutineBuilderError):
    """The product catalog could not be fetched or parsed."""


class StorageError(RoutineBuilderError):
    """Durable key/value storage could not be read or written."""


class CompletionError(RoutineBuilderError):
    """Base class for completion endpoint failures."""

    kind = "completion"


class NetworkError(CompletionError):
    """DNS failure, refused connection or timeout before any HTTP status."""

    kind = "network"


class TransportError(CompletionError):
    """The endpoint answered with a non-success HTTP status."""

    kind = "transport"

    def __init__(self, status_code: int, message: Optional[str] = None) -> None:
        self.status_code = status_code
        super().__init__(message or f"HTTP error! status: {status_code}")


class UpstreamError(CompletionError):
    """The endpoint returned an explicit error object."""

    kind = "upstream"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ProtocolError(CompletionError):
    """The response body did not match any known shape."""

    kind = "protocol"

    def __init__(self, message: str = "unexpected response format") -> None:
        super().__init__(message)
