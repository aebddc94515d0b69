"""
Storage module for caching intermediate pipeline results.

Finished podcast responses are cached on disk, keyed by a hash of the
prompt.
"""

from .base import BaseStorage
from .local import LocalStorage

__all__ = [
    "BaseStorage",
    "LocalStorage",
]
