"""Error kinds raised by the journal core.

ValidationError:  malformed input, rejected immediately and never retried.
UpstreamError:    the LLM provider answered with a failure (status + body).
TransportError:   network failure or timeout; retryable by the caller.
NotSignedInError: a store operation was attempted without an identity.
SessionBusyError: another turn still holds the conversation.
"""
from typing import Optional


class JournalError(Exception):
    """Base class for all journal core errors."""


class ValidationError(JournalError):
    """Raised when input is malformed (e.g. empty message list)."""


class UpstreamError(JournalError):
    """Raised when the LLM provider returns a non-success response."""

    def __init__(self, message: str, status: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status = status
        self.body = body

    def __str__(self) -> str:
        base = super().__str__()
        if self.status is not None:
            return f"{base} (status {self.status})"
        return base


class TransportError(JournalError):
    """Raised on network failure or timeout. Callers may retry."""

    retryable = True


class NotSignedInError(JournalError):
    """Raised when a persistence operation runs without a signed-in user."""

    def __init__(self, message: str = "Not signed in"):
        super().__init__(message)


class SessionBusyError(JournalError):
    """Raised when a turn cannot acquire its conversation in time."""
