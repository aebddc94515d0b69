"""Word timing extraction for clip subtitles."""

import logging

from podreel.errors import InvalidWordTimingError
from podreel.logger import log_with_timer
from podreel.models import Clip, Word

logger = logging.getLogger("content")

# Words shorter than this right after a sentence end are merged with the next word
SHORT_WORD_SEC = 0.11
ZERO_LENGTH_PAD_SEC = 0.001


@log_with_timer("content")
def extract_words(clip: Clip) -> list[Word]:
    """
    Flatten the timed words of every segment of a clip.

    Times are rounded to milliseconds. A zero-length word is stretched by one
    millisecond. A very short word directly after a word ending in "." is
    merged with the following word.

    Raises:
        InvalidWordTimingError: If a word starts after it ends
    """
    words = [
        Word(
            word=str(raw["word"]),
            start=round(float(raw["start"]), 3),
            end=round(float(raw["end"]), 3),
        )
        for segment in clip.segments
        for raw in segment.get("words") or []
    ]

    result = []
    i = 0
    while i < len(words):
        word = words[i]
        if word.start == word.end:
            word.end += ZERO_LENGTH_PAD_SEC
        if word.start >= word.end:
            raise InvalidWordTimingError(
                f"Invalid word timing for '{word.word}': start {word.start} >= end {word.end}"
            )

        if (
            i > 0
            and word.end - word.start < SHORT_WORD_SEC
            and words[i - 1].word.endswith(".")
            and i < len(words) - 1
        ):
            logger.debug(f"Short word detected at {i}: {word}")
            following = words[i + 1]
            word = Word(f"{word.word} {following.word}", word.start, following.end)
            i += 1

        result.append(word)
        i += 1

    return result
