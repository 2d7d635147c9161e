"""Providers - host contracts for issue tracking and source control plugins."""

from providers.interfaces import (
    ProviderInterface,
    IssueTrackingProviderInterface,
    UpdatingProviderInterface,
    CategoryFilterableInterface,
    SourceControlProviderInterface,
    VersioningProviderInterface,
    RevisionProviderInterface,
)
from providers.types import Issue, Category, FileEntryInfo, DirectoryEntryInfo
from providers.exceptions import (
    ProviderError,
    InvalidArgument,
    NotFound,
    Ambiguous,
    DirectoryNotFound,
    PermissionDenied,
    ConnectionUnavailable,
    UnexpectedItemKind,
)
from providers.plugin import register_provider, registry, PluginRegistry

__version__ = "0.1.0"

__all__ = [
    # Interfaces
    "ProviderInterface",
    "IssueTrackingProviderInterface",
    "UpdatingProviderInterface",
    "CategoryFilterableInterface",
    "SourceControlProviderInterface",
    "VersioningProviderInterface",
    "RevisionProviderInterface",
    # Types
    "Issue",
    "Category",
    "FileEntryInfo",
    "DirectoryEntryInfo",
    # Errors
    "ProviderError",
    "InvalidArgument",
    "NotFound",
    "Ambiguous",
    "DirectoryNotFound",
    "PermissionDenied",
    "ConnectionUnavailable",
    "UnexpectedItemKind",
    # Plugin system
    "register_provider",
    "registry",
    "PluginRegistry",
]
