"""Exception taxonomy surfaced by the Assist gateway.

Every error carries a ``kind`` and a message; stream failures additionally
carry the text accumulated before the failure.  The core never retries.
"""

from __future__ import annotations


class AssistError(Exception):
    """Base exception for all gateway failures."""

    def __init__(self, message: str, *, partial_text: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.partial_text = partial_text

    @property
    def kind(self) -> str:
        return type(self).__name__


class ConfigurationError(AssistError):
    """Raised when the selected backends cannot be wired together."""

    pass


class BackendError(AssistError):
    """Transport or authentication failure talking to the model backend."""

    pass


class MalformedResponseError(AssistError):
    """A decoded backend response lacks the expected field or has the wrong type."""

    pass


class StreamTimeoutError(AssistError, TimeoutError):
    """The stream did not finish within the configured bound; partial text is discarded."""

    pass


class StreamError(AssistError):
    """The backend signalled a failure mid-stream; ``partial_text`` holds the progress."""

    pass


class StoreError(AssistError):
    """Persistence or similarity-search collaborator failure."""

    pass


__all__ = ["AssistError", "ConfigurationError", "BackendError", "MalformedResponseError", "StreamTimeoutError", "StreamError", "StoreError"]
