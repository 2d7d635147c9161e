"""Interfaces for host providers.

This module defines the contracts that providers must implement
to be hosted by the release-automation platform.
"""

from abc import ABC, abstractmethod
from typing import List

from providers.types import Issue, Category, DirectoryEntryInfo


class ProviderInterface(ABC):
    """Base interface for all providers."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Get the provider name."""
        pass

    @property
    @abstractmethod
    def description(self) -> str:
        """Get the provider description."""
        pass

    @property
    @abstractmethod
    def kind(self) -> str:
        """Get the provider kind ("issue_tracking" or "source_control")."""
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """Indicates whether the provider can be used in the current execution context."""
        pass

    @abstractmethod
    def validate_connection(self) -> None:
        """Attempt to connect with the current configuration.

        Raises:
            ConnectionUnavailable: If the connection could not be established
        """
        pass


class IssueTrackingProviderInterface(ProviderInterface):
    """Interface for issue tracking providers."""

    @property
    def kind(self) -> str:
        return "issue_tracking"

    @abstractmethod
    def get_issues(self, release_number: str) -> List[Issue]:
        """Get the issues for a release.

        Args:
            release_number: The release whose issues are returned

        Returns:
            List of issues, empty if there are none
        """
        pass

    @abstractmethod
    def is_issue_closed(self, issue: Issue) -> bool:
        """Determine whether an issue is closed."""
        pass

    @abstractmethod
    def get_issue_url(self, issue: Issue) -> str:
        """Get a URL to the specified issue."""
        pass


class UpdatingProviderInterface(ABC):
    """Interface for issue tracking providers that can write back to issues."""

    @property
    @abstractmethod
    def can_append_issue_descriptions(self) -> bool:
        pass

    @property
    @abstractmethod
    def can_change_issue_statuses(self) -> bool:
        pass

    @property
    @abstractmethod
    def can_close_issues(self) -> bool:
        pass

    @abstractmethod
    def append_issue_description(self, issue_id: str, text_to_append: str) -> None:
        """Append text to an issue's description."""
        pass

    @abstractmethod
    def change_issue_status(self, issue_id: str, new_status: str) -> None:
        """Change an issue's status."""
        pass

    @abstractmethod
    def close_issue(self, issue_id: str) -> None:
        """Close an issue."""
        pass


class CategoryFilterableInterface(ABC):
    """Interface for providers whose scope can be narrowed by a category filter."""

    @property
    @abstractmethod
    def category_id_filter(self) -> List[str]:
        pass

    @property
    @abstractmethod
    def category_type_names(self) -> List[str]:
        """Names of each category level, outermost first."""
        pass

    @abstractmethod
    def get_categories(self) -> List[Category]:
        """Get every category defined within the provider.

        The nesting depth equals the length of category_type_names.
        """
        pass


class SourceControlProviderInterface(ProviderInterface):
    """Interface for source control providers."""

    @property
    def kind(self) -> str:
        return "source_control"

    @property
    @abstractmethod
    def directory_separator(self) -> str:
        """Separator used between path segments."""
        pass

    @abstractmethod
    def get_latest(self, source_path: str, target_path: str) -> None:
        """Retrieve the latest version of source_path into target_path."""
        pass

    @abstractmethod
    def get_directory_entry_info(self, source_path: str) -> DirectoryEntryInfo:
        """List one level of source_path."""
        pass

    @abstractmethod
    def get_file_contents(self, file_path: str) -> bytes:
        """Get the contents of a file."""
        pass


class VersioningProviderInterface(ABC):
    """Interface for source control providers that support labels."""

    @abstractmethod
    def apply_label(self, label: str, source_path: str) -> None:
        """Apply a label to source_path."""
        pass

    @abstractmethod
    def get_labeled(self, label: str, source_path: str, target_path: str) -> None:
        """Retrieve the labeled version of source_path into target_path."""
        pass


class RevisionProviderInterface(ABC):
    """Interface for source control providers that can fingerprint a path."""

    @abstractmethod
    def get_current_revision(self, path: str) -> bytes:
        """Get a fingerprint of the current revision of path.

        Two fingerprints compare equal if and only if nothing changed.
        """
        pass
