"""Provider Plugins Package.

This package contains plugins that implement the host provider contracts.
Each subdirectory contains a separate plugin implementation.
"""

# Import plugin modules
from plugins import tfs

# List of all plugin modules for easy importing
__all__ = ["tfs"]
