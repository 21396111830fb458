"""
Caption model and the SRT / WebVTT block parsers shared by grouping and dedup.

Entries are separated by a blank line. CRLF files are recognised by their
``\\r\\n\\r\\n`` separator; everything else is treated as LF.

    SRT block              VTT block
    1                      00:00:01.000 --> 00:00:02.000
    00:00:01,000 --> ...   Hello there
    Hello there
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)

SRT = "srt"
VTT = "vtt"

CRLF_SEPARATOR = "\r\n\r\n"
LF_SEPARATOR = "\n\n"
VTT_HEADER = "WEBVTT"
BOM = "\ufeff"


@dataclass
class CaptionEntry:
    """One timed caption. ``timing`` is opaque and never rewritten."""
    timing: str
    text: str
    ordinal: Optional[int] = None

    def to_block(self, newline: str = "\n") -> str:
        lines = [self.timing, self.text]
        if self.ordinal is not None:
            lines.insert(0, str(self.ordinal))
        return newline.join(lines)


def detect_separator(content: str) -> str:
    """Return the entry separator used by ``content``."""
    return CRLF_SEPARATOR if CRLF_SEPARATOR in content else LF_SEPARATOR


def detect_format(content: str) -> str:
    """SRT unless the content opens with the WebVTT header token."""
    return VTT if content.lstrip(BOM).startswith(VTT_HEADER) else SRT


def split_blocks(content: str, separator: Optional[str] = None) -> List[str]:
    """Split caption content into non-empty entry blocks."""
    separator = separator or detect_separator(content)
    return [block for block in content.split(separator) if block.strip()]


def _newline(separator: str) -> str:
    return separator[: len(separator) // 2]


def _block_lines(block: str) -> List[str]:
    return [line for line in block.splitlines() if line]


def parse_srt_block(block: str) -> Optional[CaptionEntry]:
    """
    Parse ``ordinal / timing / text...`` into a CaptionEntry.

    Text lines are joined with single spaces. Returns None for anomalous
    blocks (fewer than two lines, or a non-numeric ordinal). A byte-order
    mark in front of the first ordinal is dropped.
    """
    lines = _block_lines(block)
    if len(lines) < 2:
        return None

    ordinal = lines[0].lstrip(BOM).strip()
    if not ordinal.isdigit():
        return None

    text = " ".join(lines[2:]).strip()
    return CaptionEntry(timing=lines[1], text=text, ordinal=int(ordinal))


def parse_vtt_block(block: str) -> Optional[CaptionEntry]:
    """Parse ``timing / text...``; None when the block has fewer than two lines."""
    lines = _block_lines(block)
    if len(lines) < 2:
        return None

    text = " ".join(lines[1:]).strip()
    return CaptionEntry(timing=lines[0], text=text)


def parse_srt(content: str) -> List[CaptionEntry]:
    """Parse SRT content, skipping malformed entries."""
    entries = []
    for block in split_blocks(content):
        entry = parse_srt_block(block)
        if entry is None:
            logger.debug(f"Skipping malformed SRT entry: {block[:40]!r}")
            continue
        entries.append(entry)
    return entries


def parse_vtt(content: str) -> Tuple[str, List[CaptionEntry]]:
    """
    Parse WebVTT content.

    The first line of the file is the header and is returned verbatim; the
    rest of the first block (header metadata) is not part of any entry.

    Returns:
        (header line, entries)
    """
    header = content.split("\n", 1)[0].rstrip("\r")
    entries = []

    for block in split_blocks(content)[1:]:
        entry = parse_vtt_block(block)
        if entry is None:
            logger.debug(f"Skipping malformed VTT entry: {block[:40]!r}")
            continue
        entries.append(entry)

    return header, entries


def serialize_srt(entries: List[CaptionEntry], renumber: bool = True,
                  separator: str = LF_SEPARATOR) -> str:
    """Serialize SRT entries, renumbering from 1 unless told otherwise."""
    newline = _newline(separator)
    blocks = []
    for i, entry in enumerate(entries, start=1):
        ordinal = i if renumber else entry.ordinal
        blocks.append(CaptionEntry(entry.timing, entry.text, ordinal).to_block(newline))
    return separator.join(blocks) + separator


def serialize_vtt(header: str, entries: List[CaptionEntry],
                  separator: str = LF_SEPARATOR) -> str:
    """Serialize VTT entries behind the header line."""
    newline = _newline(separator)
    blocks = [header] + [CaptionEntry(e.timing, e.text).to_block(newline) for e in entries]
    return separator.join(blocks) + separator
