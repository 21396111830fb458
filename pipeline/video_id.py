"""
Video ID Codec: keeps the opaque video identifier embedded in filenames.

Source files follow the convention ``<base>-vi<alphanumeric><ext>``, e.g.
``report-viAB12cd.mp4``. Every artifact generated for such a file must carry
the same ``-vi...`` suffix before its own extension.
"""

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional

logger = logging.getLogger(__name__)

VIDEO_ID_PATTERN = re.compile(r"-vi[a-zA-Z0-9]+$")


@dataclass(frozen=True)
class VideoIdentity:
    """Filename split into base name, optional video ID and extension."""
    base_name: str
    video_id: Optional[str]
    extension: str

    @property
    def stem(self) -> str:
        """The full name without extension (base name plus video ID)."""
        return self.base_name + (self.video_id or "")

    @property
    def filename(self) -> str:
        return recompose(self.base_name, self.video_id, self.extension)


def extract(filename: str) -> VideoIdentity:
    """
    Split a filename into its VideoIdentity.

    Only the final path component is considered. The extension is the last
    dot-suffix (``.mp4``); a name without a dot has an empty extension.

    Args:
        filename: File name or path.

    Returns:
        VideoIdentity; ``video_id`` includes the leading hyphen, or is None
        when the name carries no ID.
    """
    name = os.path.basename(filename)
    stem, extension = os.path.splitext(name)

    match = VIDEO_ID_PATTERN.search(stem)
    if match:
        video_id = match.group(0)
        return VideoIdentity(stem[: -len(video_id)], video_id, extension)

    return VideoIdentity(stem, None, extension)


def recompose(base_name: str, video_id: Optional[str], extension: str) -> str:
    """Concatenate ``base_name + video_id + extension`` without any validation."""
    return f"{base_name}{video_id or ''}{extension}"


def filename_with_id(original_filename: str, new_base_name: str, new_extension: str) -> str:
    """Build a new filename that carries the video ID of ``original_filename``."""
    identity = extract(original_filename)
    return recompose(new_base_name, identity.video_id, new_extension)


def preserve_video_id(
    source_path: Path,
    output_dir: Path,
    extensions: Iterable[str],
) -> List[Path]:
    """
    Rename generated artifacts so they carry the source file's video ID.

    An artifact qualifies when its extension is one of ``extensions`` and its
    stem is exactly the source's base name (the ID was dropped). Targets that
    already exist are left alone. Individual rename failures are logged and
    do not stop the remaining renames.

    Args:
        source_path: Original media file.
        output_dir: Directory holding the generated artifacts.
        extensions: Known output extensions (with leading dot).

    Returns:
        Paths of the renamed files (new names).
    """
    identity = extract(Path(source_path).name)
    output_dir = Path(output_dir)
    if not identity.video_id or not output_dir.is_dir():
        return []

    known = {ext.lower() for ext in extensions}
    renamed = []

    for path in sorted(output_dir.iterdir()):
        if not path.is_file() or path.suffix.lower() not in known:
            continue
        if path.stem != identity.base_name or identity.video_id in path.name:
            continue

        target = output_dir / recompose(identity.base_name, identity.video_id, path.suffix)
        if target.exists():
            logger.warning(f"Not renaming {path.name}: {target.name} already exists")
            continue

        try:
            path.rename(target)
        except OSError as e:
            logger.error(f"Error renaming {path.name}: {e}")
            continue

        logger.info(f"Renamed: {path.name} -> {target.name}")
        renamed.append(target)

    return renamed
