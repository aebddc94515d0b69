"""
Podcast video pipeline module.

This module orchestrates the complete workflow from prompt to final video:
    1. Podcast generation (podreel.services.PodcastClient)
    2. Clip preparation (podreel.content)
    3. Render job submission (podreel.services.VideoRenderClient)
    4. Completion tracking (podreel.polling or podreel.feed + podreel.tracking)
    5. Concatenation (ffmpeg)

Usage:
    # CLI interface
    python -m podreel.pipeline --prompt "..." --output final.mp4
    python -m podreel.pipeline --prompt "..." --output final.mp4 --strategy feed

    # Programmatic interface
    from podreel.pipeline import run_pipeline
    report = asyncio.run(run_pipeline("...", "final.mp4", strategy="poll"))
"""

from .concat import concat_videos, write_concat_list
from .orchestrator import (
    STRATEGY_NAMES,
    BatchOrchestrator,
    RunReport,
    build_strategy,
    run_pipeline,
)
from .strategy import CompletionStrategy, FeedStrategy, PollingStrategy

__all__ = [
    "STRATEGY_NAMES",
    "BatchOrchestrator",
    "RunReport",
    "build_strategy",
    "run_pipeline",
    "concat_videos",
    "write_concat_list",
    "CompletionStrategy",
    "FeedStrategy",
    "PollingStrategy",
]
