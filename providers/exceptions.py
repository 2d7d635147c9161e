"""Exceptions raised by providers to the host."""

from typing import Optional, Any, Dict


class ProviderError(Exception):
    """Base exception for all provider errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class InvalidArgument(ProviderError, ValueError):
    """Raised when a required argument is missing or empty."""

    def __init__(self, argument: str, message: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message or f"Argument '{argument}' is required", details)
        self.argument = argument


class NotFound(ProviderError):
    """Raised when no remote object matches an identifier."""


class Ambiguous(ProviderError):
    """Raised when more than one remote object matches an identifier that should be unique."""


class DirectoryNotFound(ProviderError, FileNotFoundError):
    """Raised when a local target directory does not exist."""

    def __init__(self, path: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(f"targetPath not found: {path}", details)
        self.path = path


class PermissionDenied(ProviderError, PermissionError):
    """Raised when the remote server refuses read access."""


class ConnectionUnavailable(ProviderError):
    """Raised when the remote server cannot be reached or authenticated against."""

    def __init__(self, message: str, cause: Optional[BaseException] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.cause = cause


class UnexpectedItemKind(ProviderError):
    """Raised when a remote item is neither a file nor a folder."""

    def __init__(self, path: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            f"Item type returned for '{path}' was Any; expected File or Folder.", details
        )
        self.path = path
