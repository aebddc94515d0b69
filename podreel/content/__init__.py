"""
Content preparation module.

Turns a generated podcast into per-clip video render requests.
"""

from .processor import ContentProcessor
from .words import extract_words

__all__ = ["ContentProcessor", "extract_words"]
