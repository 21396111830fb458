"""
Caption Grouper: reassembles fragmentary captions into readable lines.

Transcription engines often emit one caption per character or sub-word
token, especially for non-Latin scripts. Consecutive fragments are
accumulated until a caption that can stand on its own is reached; the
accumulated group is then emitted as one caption timed at its first member.
"""

import logging
import re
from typing import List

from .captions import (
    CaptionEntry, parse_srt, parse_vtt, serialize_srt, serialize_vtt,
)

logger = logging.getLogger(__name__)

DEFAULT_MIN_WORDS = 5
FRAGMENT_MAX_CHARS = 3

_WHITESPACE = re.compile(r"\s+")


def count_words(text: str) -> int:
    """
    Count whitespace-delimited words.

    Scripts written without spaces between words (Chinese, Japanese) are
    undercounted; a whole unsegmented line counts as one word.
    """
    return len([token for token in _WHITESPACE.split(text) if token])


class CaptionGrouper:
    """
    Merges short captions into lines of at least ``min_words_per_line`` words.

    Rules, applied to each caption in order:
    1. Text of at most 3 characters, or fewer than ``min_words_per_line``
       words, is a fragment and joins the pending group.
    2. Any other caption flushes the pending group (if any) and is emitted
       unchanged.
    3. A pending group left at end of input is flushed.

    A flushed group takes the timing of its first member and the
    space-joined text of all members.
    """

    def __init__(self, min_words_per_line: int = DEFAULT_MIN_WORDS):
        self.min_words_per_line = min_words_per_line

    def is_fragment(self, text: str) -> bool:
        return (len(text) <= FRAGMENT_MAX_CHARS or
                count_words(text) < self.min_words_per_line)

    def group(self, entries: List[CaptionEntry]) -> List[CaptionEntry]:
        """
        Group caption entries.

        Ordinals on the returned entries are left unset; serializers
        renumber SRT output.
        """
        result: List[CaptionEntry] = []
        pending: List[str] = []
        pending_timing = ""

        for entry in entries:
            if self.is_fragment(entry.text):
                if not pending:
                    pending_timing = entry.timing
                pending.append(entry.text)
                continue

            if pending:
                result.append(CaptionEntry(pending_timing, " ".join(pending)))
                pending = []

            result.append(CaptionEntry(entry.timing, entry.text))

        if pending:
            result.append(CaptionEntry(pending_timing, " ".join(pending)))

        logger.debug(f"Grouped {len(entries)} captions -> {len(result)} lines")
        return result

    def group_srt(self, content: str) -> str:
        """Group SRT content; output is renumbered from 1."""
        return serialize_srt(self.group(parse_srt(content)))

    def group_vtt(self, content: str) -> str:
        """Group WebVTT content; the header line is kept verbatim."""
        header, entries = parse_vtt(content)
        return serialize_vtt(header, self.group(entries))


def group_srt(content: str, min_words_per_line: int = DEFAULT_MIN_WORDS) -> str:
    return CaptionGrouper(min_words_per_line).group_srt(content)


def group_vtt(content: str, min_words_per_line: int = DEFAULT_MIN_WORDS) -> str:
    return CaptionGrouper(min_words_per_line).group_vtt(content)
