"""
podreel: turns a prompt into a narrated podcast video.

Subpackages:
    services: HTTP clients for the podcast, image and video services
    content: clip extraction and render request preparation
    polling: batch polling engine and retry policy
    tracking: correlation tracker for push-based completion
    feed: Kafka completion feed listener
    pipeline: batch orchestration, concatenation and CLI
"""

__version__ = "0.1.0"
