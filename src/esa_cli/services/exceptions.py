"""Custom exceptions for esa-cli."""

from typing import Optional


class EsaCliError(Exception):
    """Base exception for errors surfaced to the user by a single action."""

    pass


class PostTextError(EsaCliError):
    """Edited scratch-file text could not be turned into a post."""

    pass


class ContentShapeError(PostTextError):
    """Raised when the text lacks the name line, the body marker, or the body line."""

    pass


class EmptyTitleError(PostTextError):
    """Raised when the title line yields an empty post name."""

    pass


class ProcessError(EsaCliError):
    """Raised when the editor cannot be launched or the scratch file cannot be used.

    Attributes:
        path: Scratch file or editor path involved, if known
    """

    def __init__(self, message: str, path: Optional[str] = None):
        self.path = path
        super().__init__(message)


class TransportError(EsaCliError):
    """Network or HTTP-layer failure talking to the esa API."""

    pass


class ApiError(EsaCliError):
    """Structured error returned by the esa API.

    Attributes:
        code: Machine-readable error code (e.g. "not_found")
        message: Human-readable message from the server
        status_code: HTTP status of the response
    """

    def __init__(self, code: str, message: str, status_code: Optional[int] = None):
        self.code = code
        self.message = message
        self.status_code = status_code
        super().__init__(f"error: {code}, message: {message}")
