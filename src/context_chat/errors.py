"""Errors that cross the chat engine boundary.

Only these two families are ever raised to callers. Local retrieval and
web search faults are absorbed inside their components.
"""


class ChatError(Exception):
    """Base exception for chat failures, carrying an HTTP-ish status code."""

    status_code = 500

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)


class ConfigurationError(ChatError):
    """The feature is disabled or the credential is missing."""

    status_code = 503


class UpstreamError(ChatError):
    """The completion endpoint failed, timed out, or returned no usable text."""

    status_code = 502
