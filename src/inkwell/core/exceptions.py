"""Core exceptions for Inkwell."""


class InkwellError(Exception):
    """Base exception for all Inkwell errors."""


class ConfigurationError(InkwellError):
    """Raised when required settings (token, owner) are missing."""


class TransportFailure(InkwellError):
    """Raised when the hosting API answers with a non-success status or cannot be reached.

    Attributes:
        status_code: HTTP status, or None for network-level failures
        message: Server-provided message when available

    """

    def __init__(self, status_code: int | None, message: str = "") -> None:
        self.status_code = status_code
        self.message = message
        label = status_code if status_code is not None else "network"
        super().__init__(f"GitHub API error: {label} - {message}" if message else f"GitHub API error: {label}")

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404


class ConcurrentModification(TransportFailure):
    """Raised when a write is rejected because the supplied revision is stale."""


class MalformedDocument(InkwellError):
    """Raised when serialized post text lacks its front-matter delimiters."""
