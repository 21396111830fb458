"""
Duplicate Filter: collapses runs of repeated caption text.

Whisper-style engines sometimes loop on a phrase and emit the same caption
many times in a row. Only consecutive repeats are collapsed; the same text
appearing again after a different caption is kept.
"""

import logging
from typing import List, Optional

from .captions import (
    VTT, CaptionEntry, detect_format, detect_separator, parse_srt_block,
    parse_vtt_block, serialize_srt, serialize_vtt, split_blocks,
)

logger = logging.getLogger(__name__)


def normalize_text(text: str) -> str:
    """Comparison key for caption text: lower-cased and trimmed."""
    return text.lower().strip()


def filter_duplicates(entries: List[CaptionEntry], max_duplicates: int = 1) -> List[CaptionEntry]:
    """
    Keep at most ``max_duplicates`` consecutive captions with the same text.

    The first caption of a run is always kept, so values below 1 behave
    like 1. Dropped captions do not change the comparison state.
    """
    kept: List[CaptionEntry] = []
    last_key: Optional[str] = None
    repeats = 0

    for entry in entries:
        key = normalize_text(entry.text)

        if key == last_key:
            repeats += 1
            if repeats > max_duplicates:
                continue
        else:
            last_key = key
            repeats = 1

        kept.append(entry)

    return kept


def deduplicate(content: str, max_duplicates: int = 1) -> str:
    """
    Remove excess consecutive duplicates from SRT or WebVTT content.

    The entry separator (CRLF or LF blank line) is detected and reused for
    the output. SRT ordinals are kept as they are; WebVTT keeps its header
    line.

    Args:
        content: Caption file content.
        max_duplicates: Allowed consecutive captions with identical text.

    Returns:
        The filtered content.
    """
    separator = detect_separator(content)
    fmt = detect_format(content)
    blocks = split_blocks(content, separator)

    if fmt == VTT:
        header = content.split("\n", 1)[0].rstrip("\r")
        blocks = blocks[1:]
        parse_block = parse_vtt_block
    else:
        parse_block = parse_srt_block

    entries = []
    for block in blocks:
        entry = parse_block(block)
        if entry is None:
            logger.debug(f"Skipping malformed caption entry: {block[:40]!r}")
            continue
        entries.append(entry)

    kept = filter_duplicates(entries, max_duplicates)
    if len(kept) < len(entries):
        logger.info(f"Removed {len(entries) - len(kept)} duplicate captions")

    if fmt == VTT:
        return serialize_vtt(header, kept, separator)
    return serialize_srt(kept, renumber=False, separator=separator)
