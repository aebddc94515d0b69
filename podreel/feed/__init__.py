"""
Completion feed module.

Provides the Kafka-backed listener that turns completion messages published
by the render service into CorrelationTracker updates.
"""

from .config import FeedConfig
from .listener import CompletionEvent, CompletionFeedListener, parse_event

__all__ = ["FeedConfig", "CompletionEvent", "CompletionFeedListener", "parse_event"]
