"""
Subtitle Post-Processor: groups fragments and removes repeats in place.
"""

import logging
from pathlib import Path
from typing import Iterable, List

from .dedup import deduplicate
from .grouping import CaptionGrouper
from .video_id import VideoIdentity

logger = logging.getLogger(__name__)

CAPTION_EXTENSIONS = (".srt", ".vtt")


class SubtitlePostProcessor:
    """
    Rewrites SRT / WebVTT files produced by the engine:
    fragment grouping first, then (optionally) duplicate removal.
    """

    def __init__(self, config):
        self.min_words_per_line = getattr(config, "min_words_per_line", 7)
        self.deduplicate = getattr(config, "deduplicate", True)
        self.max_duplicates = getattr(config, "max_duplicates", 1)
        self.grouper = CaptionGrouper(self.min_words_per_line)

    def process_content(self, content: str, extension: str) -> str:
        if extension == ".srt":
            processed = self.grouper.group_srt(content)
        else:
            processed = self.grouper.group_vtt(content)

        if self.deduplicate:
            processed = deduplicate(processed, self.max_duplicates)
        return processed

    def process_file(self, path: Path) -> bool:
        """
        Post-process one caption file in place.

        Returns:
            False when the extension is not SRT / WebVTT (file untouched).

        Raises:
            OSError, UnicodeDecodeError: on read / write problems.
        """
        path = Path(path)
        extension = path.suffix.lower()
        if extension not in CAPTION_EXTENSIONS:
            return False

        content = path.read_text(encoding="utf-8")
        path.write_text(self.process_content(content, extension), encoding="utf-8")
        logger.info(f"Post-processed subtitle file: {path.name}")
        return True

    def process_outputs(
        self,
        output_dir: Path,
        identity: VideoIdentity,
        extensions: Iterable[str] = CAPTION_EXTENSIONS,
    ) -> List[Path]:
        """
        Post-process the caption files generated for one source.

        Each caption file is looked up under the full source stem, then under
        the bare base name. A failing file is logged and skipped.

        Returns:
            Paths that were rewritten.
        """
        output_dir = Path(output_dir)
        processed = []

        for extension in extensions:
            if extension not in CAPTION_EXTENSIONS:
                continue

            candidates = [output_dir / f"{identity.stem}{extension}"]
            if identity.video_id:
                candidates.append(output_dir / f"{identity.base_name}{extension}")

            path = next((p for p in candidates if p.is_file()), None)
            if path is None:
                continue

            try:
                self.process_file(path)
            except (OSError, ValueError) as e:
                logger.error(f"Error post-processing subtitle file {path}: {e}")
                continue
            processed.append(path)

        return processed
