import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional, Protocol, Sequence

from podreel.content import ContentProcessor
from podreel.errors import PodreelError
from podreel.feed import CompletionFeedListener, FeedConfig
from podreel.logger import log_function
from podreel.polling import BatchOutcome, PollConfig, ProgressBoard, check_batch
from podreel.services import PodcastClient, ServiceConfig, VideoRenderClient
from podreel.tracking import CorrelationTracker
from .concat import concat_videos
from .strategy import CompletionStrategy, FeedStrategy, PollingStrategy


STRATEGY_NAMES = ("poll", "feed")


class Submitter(Protocol):
    async def bulk_submit(self, units: list[Any]) -> list[str]: ...


Concatenator = Callable[[Sequence[str], str], Awaitable[str]]


@dataclass
class RunReport:
    """Result of one orchestrated batch."""

    job_ids: list[str]
    output_paths: list[str]
    outcome: BatchOutcome
    final_output_path: Optional[str] = None
    failed: list[int] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.final_output_path is not None


class BatchOrchestrator:
    """
    Drives one batch: submit every unit, wait for completion with the chosen
    strategy, then concatenate the clips in order.

    Args:
        submitter: Anything with an async bulk_submit(units) -> job ids
        strategies: Completion strategies, keyed by name ("poll", "feed")
        concatenator: Async callable joining clip paths into the final file
    """

    def __init__(
        self,
        submitter: Submitter,
        strategies: dict[str, CompletionStrategy],
        concatenator: Concatenator = concat_videos,
    ):
        self.submitter = submitter
        self.strategies = strategies
        self.concatenator = concatenator
        self.logger = logging.getLogger("pipeline")

    def get_strategy(self, name: str) -> CompletionStrategy:
        strategy = self.strategies.get(name)
        if strategy is None:
            raise ValueError(
                f"Unknown completion strategy '{name}' (available: {', '.join(self.strategies)})"
            )
        return strategy

    @log_function(logger_name="pipeline", log_execution_time=True)
    async def run(
        self, units: Sequence[Any], final_output_path: str, strategy: str = "poll"
    ) -> RunReport:
        """
        Run a batch end to end.

        Each unit must carry an output_file_path; the clip rendered for unit i
        is written there.

        Returns:
            RunReport: job ids, per-index outcome and the final path (None when
            any clip failed and nothing was concatenated)

        Raises:
            ValueError: For an unknown strategy or an empty batch (before any request)
            SubmissionError: If any unit is rejected
        """
        completion = self.get_strategy(strategy)
        if not units:
            raise ValueError("No units to process.")
        output_paths = [unit.output_file_path for unit in units]

        await completion.prepare()

        self.logger.info(f"Requesting creation of {len(units)} videos...")
        job_ids = await self.submitter.bulk_submit(list(units))
        check_batch(job_ids, output_paths)
        self.logger.debug(f"Job ids received: {job_ids}")

        self.logger.info(f"Waiting for video completion ({completion.name})...")
        outcome = await completion.wait(job_ids, output_paths)

        if not outcome.all_completed:
            failed = outcome.failed
            self.logger.error(
                f"{len(failed)} of {len(job_ids)} videos failed (clips "
                f"{', '.join(str(i + 1) for i in failed)}); skipping concatenation"
            )
            return RunReport(job_ids, output_paths, outcome, failed=failed)

        self.logger.info("All videos processed and downloaded!")
        await self.concatenator(output_paths, final_output_path)
        return RunReport(job_ids, output_paths, outcome, final_output_path)


def build_strategy(
    name: str,
    video_client: VideoRenderClient,
    poll_config: Optional[PollConfig] = None,
    feed_config: Optional[FeedConfig] = None,
    feed_timeout: Optional[float] = None,
) -> CompletionStrategy:
    if name == "poll":
        return PollingStrategy(video_client, poll_config, ProgressBoard())
    if name == "feed":
        tracker = CorrelationTracker()
        listener = CompletionFeedListener(tracker, feed_config)
        return FeedStrategy(listener, tracker, video_client, timeout=feed_timeout)
    raise ValueError(f"Unknown completion strategy '{name}' (available: {', '.join(STRATEGY_NAMES)})")


@log_function(logger_name="pipeline", log_execution_time=True)
async def run_pipeline(
    prompt: str,
    final_output_path: str,
    strategy: str = "poll",
    poll_config: Optional[PollConfig] = None,
    service_config: Optional[ServiceConfig] = None,
    feed_config: Optional[FeedConfig] = None,
    feed_timeout: Optional[float] = None,
) -> RunReport:
    """
    Generate a podcast for prompt and render it into one video.

    Steps:
        1. Check the podcast service health
        2. Generate the podcast (or load it from cache)
        3. Build one render request per clip
        4. Submit, wait and concatenate through BatchOrchestrator
    """
    logger = logging.getLogger("pipeline")
    if strategy not in STRATEGY_NAMES:
        raise ValueError(f"Unknown completion strategy '{strategy}' (available: {', '.join(STRATEGY_NAMES)})")

    config = service_config or ServiceConfig()
    config_errors = config.validate()
    if config_errors:
        raise ValueError(f"Invalid service configuration: {'; '.join(config_errors)}")

    logger.info("=== PIPELINE STARTED ===")
    async with PodcastClient(config) as podcast_client, VideoRenderClient(config) as video_client:
        processor = ContentProcessor(podcast_client, config)
        completion = build_strategy(strategy, video_client, poll_config, feed_config, feed_timeout)
        try:
            if not await processor.check_service_health():
                raise PodreelError("Podcast service is not healthy")

            response = await processor.generate_content(prompt)
            if not response:
                raise PodreelError("Content generation failed")

            clips = processor.extract_clips_from_response(response)
            options = await processor.compile_video_creation_options(clips)
            logger.info(f"Compiled {len(options)} video creation requests")

            orchestrator = BatchOrchestrator(video_client, {strategy: completion})
            report = await orchestrator.run(options, final_output_path, strategy)
        finally:
            try:
                await completion.close()
            finally:
                await processor.aclose()

    if report.succeeded:
        logger.info("=== PIPELINE COMPLETED SUCCESSFULLY ===")
    return report
