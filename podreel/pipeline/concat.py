"""Final concatenation of rendered clips with ffmpeg."""

import asyncio
import logging
import os
from typing import Sequence

from podreel.errors import ConcatenationError
from podreel.logger import log_function

CONCAT_LIST_NAME = "concat_list.txt"


def write_concat_list(inputs: Sequence[str], list_path: str) -> str:
    """Write an ffmpeg concat demuxer list, one quoted input per line."""
    lines = []
    for path in inputs:
        escaped = os.path.abspath(path).replace("'", "'\\''")
        lines.append(f"file '{escaped}'")
    with open(list_path, "w", encoding="utf-8") as f:
        f.write("\n".join(lines))
    return list_path


@log_function(logger_name="pipeline", log_execution_time=True)
async def concat_videos(
    inputs: Sequence[str], output_path: str, ffmpeg: str = "ffmpeg"
) -> str:
    """
    Concatenate video files in order without re-encoding.

    The list file is written next to output_path and removed once ffmpeg exits.

    Args:
        inputs: Clip paths, in playback order
        output_path: Final video path
        ffmpeg: ffmpeg executable

    Returns:
        str: output_path

    Raises:
        ValueError: If inputs is empty
        ConcatenationError: If ffmpeg exits with a non-zero code
    """
    if not inputs:
        raise ValueError("No input videos to concatenate.")

    logger = logging.getLogger("pipeline")
    output_dir = os.path.dirname(os.path.abspath(output_path))
    os.makedirs(output_dir, exist_ok=True)
    list_path = write_concat_list(inputs, os.path.join(output_dir, CONCAT_LIST_NAME))

    args = ["-f", "concat", "-safe", "0", "-i", list_path, "-c", "copy", output_path]
    logger.debug(f"Running ffmpeg with args: {' '.join(args)}")

    try:
        process = await asyncio.create_subprocess_exec(
            ffmpeg,
            *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        stdout, stderr = await process.communicate()
        if stdout:
            logger.debug(f"ffmpeg stdout: {stdout.decode(errors='replace')}")

        if process.returncode != 0:
            message = stderr.decode(errors="replace") if stderr else ""
            logger.error(f"ffmpeg stderr: {message}")
            raise ConcatenationError(process.returncode, message)
    finally:
        if os.path.exists(list_path):
            os.remove(list_path)

    logger.info(f"Final video concatenated at {output_path}")
    return output_path
