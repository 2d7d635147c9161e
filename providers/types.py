"""
Types exchanged between the host and its providers.

These are the host-side shapes that providers project remote objects into.
"""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class Issue(BaseModel):
    """An issue as seen by the host."""

    issue_id: str
    issue_status: str = ""
    issue_title: str = ""
    issue_description: str = ""
    release_number: str = ""

    model_config = ConfigDict(frozen=True)


class Category(BaseModel):
    """A node in a provider's category tree."""

    category_id: str
    category_name: str
    sub_categories: List["Category"] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)


class FileEntryInfo(BaseModel):
    """A file in a directory listing."""

    name: str
    path: str
    size: Optional[int] = None
    last_modified: Optional[datetime] = None
    attributes: str = "Normal"


class DirectoryEntryInfo(BaseModel):
    """A directory listing; children carry their full remote paths."""

    name: str
    path: str
    sub_directories: Optional[List["DirectoryEntryInfo"]] = None
    files: Optional[List[FileEntryInfo]] = None


Category.model_rebuild()
DirectoryEntryInfo.model_rebuild()
