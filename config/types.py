from typing import Optional
from pydantic import BaseModel


class RepositoryInfo(BaseModel):
    """Model representing the local repository the host is running from"""

    git_root: Optional[str] = None
