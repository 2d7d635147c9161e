"""Team Foundation Server Plugin.

This plugin connects the host to a Team Foundation Server: work items as
issues, and TFVC version control for getting, browsing and labeling source.
"""

from plugins.tfs.types import TfsConnectionConfig, TfsIssue, TfsCategory, DefaultStatusNames
from plugins.tfs.issue_tracking_provider import TfsIssueTrackingProvider
from plugins.tfs.source_control_provider import TfsSourceControlProvider

__all__ = [
    "TfsConnectionConfig",
    "TfsIssue",
    "TfsCategory",
    "DefaultStatusNames",
    "TfsIssueTrackingProvider",
    "TfsSourceControlProvider",
]
