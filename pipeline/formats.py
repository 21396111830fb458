"""
Transcript Writer: serializes transcribed segments into every output format.

Supported formats and the files they produce for ``<stem>``:

    srt   -> <stem>.srt   SubRip, HH:MM:SS,mmm timestamps
    vtt   -> <stem>.vtt   WebVTT, HH:MM:SS.mmm timestamps
    json  -> <stem>.json  segments, words and detected language
    text  -> <stem>.txt   one segment per line
    words -> <stem>.wts   one word per line with its interval
    lrc   -> <stem>.lrc   [mm:ss.xx] lyric lines
    csv   -> <stem>.csv   start,end,text in milliseconds
"""

import csv
import json
import logging
from pathlib import Path
from typing import Iterable, List, Optional

logger = logging.getLogger(__name__)

FORMAT_EXTENSIONS = {
    "srt": ".srt",
    "vtt": ".vtt",
    "json": ".json",
    "text": ".txt",
    "words": ".wts",
    "lrc": ".lrc",
    "csv": ".csv",
}


class TranscriptWriter:
    """
    Writes transcript segments (objects with ``start_sec``, ``end_sec``,
    ``text`` and an optional ``words`` list) to files next to each other.
    """

    def write_all(
        self,
        segments: List,
        output_dir: Path,
        stem: str,
        formats: Iterable[str],
        language: Optional[str] = None,
    ) -> List[Path]:
        """
        Write one file per requested format.

        Returns:
            Paths of the written files, in ``formats`` order.
        """
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        written = []

        for fmt in formats:
            path = output_dir / f"{stem}{FORMAT_EXTENSIONS[fmt]}"
            getattr(self, f"write_{fmt}")(segments, path, language=language)
            written.append(path)

        logger.info(f"Wrote {len(segments)} segments as {', '.join(p.suffix for p in written)} for {stem}")
        return written

    def write_srt(self, segments: List, output_path: Path, **_):
        with open(output_path, "w", encoding="utf-8") as f:
            for i, seg in enumerate(segments):
                # Re-index sequentially
                f.write(f"{i + 1}\n")
                f.write(
                    f"{self._format_timestamp(seg.start_sec)} --> "
                    f"{self._format_timestamp(seg.end_sec)}\n"
                )
                f.write(f"{seg.text}\n")
                f.write("\n")

    def write_vtt(self, segments: List, output_path: Path, **_):
        with open(output_path, "w", encoding="utf-8") as f:
            f.write("WEBVTT\n\n")
            for seg in segments:
                f.write(
                    f"{self._format_timestamp(seg.start_sec, '.')} --> "
                    f"{self._format_timestamp(seg.end_sec, '.')}\n"
                )
                f.write(f"{seg.text}\n")
                f.write("\n")

    def write_json(self, segments: List, output_path: Path, language: Optional[str] = None, **_):
        data = {
            "language": language,
            "segments": [
                {
                    "start": round(seg.start_sec, 3),
                    "end": round(seg.end_sec, 3),
                    "text": seg.text,
                    "words": [
                        {"start": round(w.start_sec, 3), "end": round(w.end_sec, 3),
                         "word": w.word, "probability": round(w.probability, 4)}
                        for w in (getattr(seg, "words", None) or [])
                    ],
                }
                for seg in segments
            ],
        }
        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)

    def write_text(self, segments: List, output_path: Path, **_):
        with open(output_path, "w", encoding="utf-8") as f:
            for seg in segments:
                f.write(f"{seg.text}\n")

    def write_words(self, segments: List, output_path: Path, **_):
        with open(output_path, "w", encoding="utf-8") as f:
            for seg in segments:
                words = getattr(seg, "words", None) or [seg]
                for w in words:
                    text = getattr(w, "word", None) or getattr(w, "text", "")
                    f.write(
                        f"{self._format_timestamp(w.start_sec)} --> "
                        f"{self._format_timestamp(w.end_sec)} {text.strip()}\n"
                    )

    def write_lrc(self, segments: List, output_path: Path, **_):
        with open(output_path, "w", encoding="utf-8") as f:
            for seg in segments:
                f.write(f"[{self._format_lrc_timestamp(seg.start_sec)}]{seg.text}\n")

    def write_csv(self, segments: List, output_path: Path, **_):
        with open(output_path, "w", encoding="utf-8", newline="") as f:
            writer = csv.writer(f)
            writer.writerow(["start", "end", "text"])
            for seg in segments:
                writer.writerow([
                    int(round(seg.start_sec * 1000)),
                    int(round(seg.end_sec * 1000)),
                    seg.text,
                ])

    @staticmethod
    def _format_timestamp(seconds: float, millis_sep: str = ",") -> str:
        """
        Convert seconds to HH:MM:SS,mmm (SRT) or HH:MM:SS.mmm (VTT).

        Args:
            seconds: Time in seconds (e.g., 125.340)
            millis_sep: Separator before the milliseconds.

        Returns:
            Formatted timestamp string (e.g., "00:02:05,340")
        """
        if seconds < 0:
            seconds = 0.0

        hours = int(seconds // 3600)
        minutes = int((seconds % 3600) // 60)
        secs = int(seconds % 60)
        millis = int(round((seconds % 1) * 1000))

        # Clamp milliseconds (rounding could push to 1000)
        if millis >= 1000:
            millis = 999

        return f"{hours:02d}:{minutes:02d}:{secs:02d}{millis_sep}{millis:03d}"

    @staticmethod
    def _format_lrc_timestamp(seconds: float) -> str:
        """LRC uses mm:ss.xx with hundredths; minutes may exceed 59."""
        if seconds < 0:
            seconds = 0.0
        centis = int(round(seconds * 100))
        minutes, centis = divmod(centis, 6000)
        secs, centis = divmod(centis, 100)
        return f"{minutes:02d}:{secs:02d}.{centis:02d}"

    def write_preview(self, segments: List, max_entries: int = 10) -> str:
        """
        Generate a text preview of the transcript segments.

        Args:
            segments: Transcript segments.
            max_entries: Maximum entries to include in preview.

        Returns:
            Formatted string preview.
        """
        lines = []
        shown = min(len(segments), max_entries)

        for seg in segments[:shown]:
            ts_start = self._format_timestamp(seg.start_sec)
            ts_end = self._format_timestamp(seg.end_sec)
            text_preview = seg.text[:80]
            if len(seg.text) > 80:
                text_preview += "..."
            lines.append(f"  [{ts_start} -> {ts_end}] {text_preview}")

        if len(segments) > shown:
            lines.append(f"  ... and {len(segments) - shown} more entries")

        return "\n".join(lines)
