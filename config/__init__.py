"""
TFS Providers Configuration Package.

This package contains the centralized configuration layer that hands
persisted key/value settings to the providers.
"""

from config.manager import EnvironmentManager, env_manager
from config.types import RepositoryInfo

# Re-export the singleton instance for easy access
env = env_manager

__all__ = [
    "EnvironmentManager",
    "env_manager",
    "env",
    "RepositoryInfo",
]
