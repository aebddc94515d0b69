#!/usr/bin/env python3
"""
CLI interface for the podcast video pipeline.

This pipeline turns a prompt into one narrated video:
    1. Generate a bilingual podcast (script, audio, clips)
    2. Fetch images for every clip
    3. Submit one render job per clip
    4. Wait for every job (polling or completion feed)
    5. Concatenate the clips with ffmpeg

Usage:
    python -m podreel.pipeline --prompt "Tell me about Kyoto" --output out/kyoto.mp4
    python -m podreel.pipeline --prompt "Tell me about Kyoto" --output out/kyoto.mp4 --strategy feed

Examples:
    # Poll every second, give up after 10 minutes
    python -m podreel.pipeline --prompt "..." --output final.mp4 --max-attempts 600 --delay 1

    # Show the run configuration without calling any service
    python -m podreel.pipeline --prompt "..." --output final.mp4 --dry-run --verbose
"""

import argparse
import asyncio
import sys

from podreel.feed import FeedConfig
from podreel.logger import debug_logging_enabled, setup_logging
from podreel.polling import PollConfig
from podreel.services import ServiceConfig
from .orchestrator import STRATEGY_NAMES, run_pipeline


def build_poll_config(args: argparse.Namespace) -> PollConfig:
    """
    Build the polling configuration from command-line arguments.

    Args:
        args: Parsed command-line arguments

    Returns:
        PollConfig (defaults: 1200 rounds, 1s apart)
    """
    config = PollConfig(max_attempts=60 * 20, delay=1.0)
    if args.max_attempts is not None:
        config.max_attempts = args.max_attempts
    if args.delay is not None:
        config.delay = args.delay
    return config


def validate_args(args: argparse.Namespace) -> list[str]:
    errors = []
    if not args.prompt.strip():
        errors.append("--prompt must not be empty")
    errors.extend(build_poll_config(args).validate())
    if args.feed_timeout is not None and args.feed_timeout <= 0:
        errors.append("--feed-timeout must be positive")
    errors.extend(ServiceConfig().validate())
    if args.strategy == "feed":
        errors.extend(FeedConfig().validate())
    return errors


def print_dry_run_summary(args: argparse.Namespace) -> None:
    """
    Print dry-run summary showing what would be run.

    Args:
        args: Parsed command-line arguments
    """
    service_config = ServiceConfig()
    poll_config = build_poll_config(args)

    print("=" * 80)
    print("DRY RUN - No service will be called")
    print("=" * 80)
    print()
    print(f"Prompt: {args.prompt}")
    print(f"Final output: {args.output}")
    print()

    print("Services:")
    print(f"  Podcast: {service_config.podcast_api_url}")
    print(f"  Images:  {service_config.image_api_url}")
    print(f"  Video:   {service_config.video_api_url}")
    print(f"  Cache:   {service_config.cache_dir}")
    print()

    print(f"Completion strategy: {args.strategy}")
    if args.strategy == "poll":
        print(f"  → Up to {poll_config.max_attempts} rounds, {poll_config.delay}s apart")
    else:
        feed_config = FeedConfig()
        print(f"  → Topic {feed_config.topic} on {feed_config.bootstrap_servers}")
        print(f"  → Consumer group {feed_config.group_id}")
        if args.feed_timeout:
            print(f"  → Give up after {args.feed_timeout}s")

    print()
    print("=" * 80)
    print("End of dry run")
    print("=" * 80)


def parse_arguments() -> argparse.Namespace:
    """
    Parse command-line arguments.

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        description="Podcast Video Pipeline - Generates a podcast, renders one clip per segment and joins them",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Completion strategies:
  poll              Query the render service for every clip each round (default)
  feed              Wait for completion events on the Kafka topic, then download

Environment:
  PODCAST_API_URL, IMAGE_API_URL, VIDEO_API_URL   Service endpoints
  KAFKA_BROKERS, VIDEO_COMPLETION_GATHER_TOPIC     Completion feed (feed strategy)
  CACHE_DIR, WORK_DIR, MUSIC_FILE_PATH             Local paths

Notes:
  - Generated podcasts are cached per prompt in CACHE_DIR
  - Clips are only concatenated when every clip rendered successfully
  - Logs written to logs/pipeline.log
        """,
    )

    parser.add_argument("--prompt", type=str, required=True, help="Podcast prompt")
    parser.add_argument(
        "--output", type=str, required=True, metavar="PATH", help="Final video path"
    )

    strategy_group = parser.add_argument_group("completion")
    strategy_group.add_argument(
        "--strategy",
        choices=STRATEGY_NAMES,
        default="poll",
        help="How to learn that clips are rendered (default: poll)",
    )
    strategy_group.add_argument(
        "--max-attempts",
        type=int,
        metavar="N",
        help="Polling rounds before giving up (default: 1200)",
    )
    strategy_group.add_argument(
        "--delay",
        type=float,
        metavar="SECONDS",
        help="Seconds between polling rounds (default: 1)",
    )
    strategy_group.add_argument(
        "--feed-timeout",
        type=float,
        metavar="SECONDS",
        help="Give up waiting for completion events after this long (default: wait forever)",
    )

    options_group = parser.add_argument_group("options")
    options_group.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be run without calling any service",
    )
    options_group.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging output",
    )

    return parser.parse_args()


def main():
    """Main entry point for the pipeline CLI."""
    args = parse_arguments()

    logger = setup_logging(
        logger_name="pipeline",
        log_file="logs/pipeline.log",
        verbose=args.verbose or debug_logging_enabled(),
    )

    validation_errors = validate_args(args)
    if validation_errors:
        for error in validation_errors:
            print(f"✗ Error: {error}", file=sys.stderr)
        print("Run with --help for usage information", file=sys.stderr)
        sys.exit(1)

    if args.dry_run:
        logger.info("Running in dry-run mode (no service will be called)")
        print_dry_run_summary(args)
        sys.exit(0)

    logger.info("=" * 80)
    logger.info("Pipeline execution started")
    logger.info(f"Strategy: {args.strategy}")
    logger.info(f"Output: {args.output}")
    logger.info("=" * 80)

    try:
        report = asyncio.run(
            run_pipeline(
                prompt=args.prompt,
                final_output_path=args.output,
                strategy=args.strategy,
                poll_config=build_poll_config(args),
                feed_timeout=args.feed_timeout,
            )
        )
    except Exception as e:
        logger.error(f"Pipeline execution failed: {e}")
        print(f"\n✗ PIPELINE FAILED: {e}", file=sys.stderr)
        sys.exit(1)

    if not report.succeeded:
        clips = ", ".join(str(i + 1) for i in report.failed)
        logger.error(f"Pipeline finished with failed clips: {clips}")
        print(f"\n✗ PIPELINE FAILED: clips {clips} were not rendered", file=sys.stderr)
        sys.exit(1)

    logger.info("Pipeline execution completed successfully")
    print("\n" + "=" * 80)
    print(f"✓ PIPELINE COMPLETED SUCCESSFULLY: {report.final_output_path}")
    print("=" * 80)


if __name__ == "__main__":
    main()
