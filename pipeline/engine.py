"""
Transcription Engine: speech-to-text for whole media files via Faster-Whisper.

Uses the CTranslate2 backend (INT8 quantization by default). The engine
decodes the media file itself, transcribes it and writes every requested
output format next to each other as ``<output_stem>.<ext>``.

All options reach the engine through an explicit TranscriptionRequest, so
a request can be pickled and handed to a worker process unchanged.
"""

import os
import logging
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

from .formats import TranscriptWriter

logger = logging.getLogger(__name__)


class TranscriptionError(RuntimeError):
    """The engine failed to transcribe a file (distinct from producing nothing)."""


@dataclass(frozen=True)
class TranscriptionRequest:
    """Everything the engine needs for one job."""
    source_path: str
    output_dir: str
    output_stem: str
    language: Optional[str] = None   # None = engine auto-detects
    formats: Tuple[str, ...] = ("srt", "vtt")
    word_timestamps: bool = True
    split_on_word: bool = True
    translate_to_english: bool = False
    max_words_per_line: int = 7


@dataclass
class WordTiming:
    start_sec: float
    end_sec: float
    word: str
    probability: float = 0.0


@dataclass
class TranscriptSegment:
    """A transcribed span with absolute timestamps."""
    start_sec: float
    end_sec: float
    text: str
    words: List[WordTiming] = field(default_factory=list)

    def __repr__(self):
        return (f"TranscriptSegment({self.start_sec:.2f}-{self.end_sec:.2f}s, "
                f"'{self.text[:40]}')")


def split_on_words(segments: List[TranscriptSegment], max_words: int) -> List[TranscriptSegment]:
    """
    Re-cut segments on word boundaries into lines of at most ``max_words``.

    Segments without word timings are passed through unchanged.
    """
    result = []
    for seg in segments:
        if not seg.words or len(seg.words) <= max_words:
            result.append(seg)
            continue

        for i in range(0, len(seg.words), max_words):
            chunk = seg.words[i:i + max_words]
            text = "".join(w.word for w in chunk).strip()
            if not text:
                continue
            result.append(TranscriptSegment(chunk[0].start_sec, chunk[-1].end_sec, text, chunk))

    return result


class WhisperEngine:
    """
    Whole-file transcription with Faster-Whisper.

    Features:
      - Lazy, thread-safe model loading (one model per engine)
      - Language forced per request or auto-detected by the model
      - Optional translation to English
      - Word-level timestamps and word-boundary line splitting
    """

    def __init__(self, config, num_workers: int = 1):
        self.model_size = getattr(config, "model", "base")
        self.device = getattr(config, "device", "cpu")
        self.compute_type = getattr(config, "compute_type", "int8")
        self.beam_size = getattr(config, "beam_size", 5)
        self.num_workers = max(1, num_workers)

        # Thread count: 0 = auto-detect
        raw_threads = getattr(config, "threads", 0)
        if raw_threads <= 0:
            self.cpu_threads = os.cpu_count() or 4
        else:
            self.cpu_threads = raw_threads

        self.writer = TranscriptWriter()

        # Lazy-loaded
        self._model = None
        self._load_lock = threading.Lock()

    def _load_model(self):
        """Load the Faster-Whisper model on first use."""
        with self._load_lock:
            if self._model is not None:
                return

            from faster_whisper import WhisperModel

            logger.info(
                f"Loading Faster-Whisper model '{self.model_size}' "
                f"(device={self.device}, compute_type={self.compute_type}, "
                f"threads={self.cpu_threads}, workers={self.num_workers})"
            )

            self._model = WhisperModel(
                self.model_size,
                device=self.device,
                compute_type=self.compute_type,
                cpu_threads=self.cpu_threads,
                num_workers=self.num_workers,
            )

            logger.info("Faster-Whisper model loaded successfully.")

    def transcribe(self, request: TranscriptionRequest) -> List[Path]:
        """
        Transcribe one media file and write its output files.

        Args:
            request: Job parameters.

        Returns:
            Paths of the written files (may be empty for silent media).

        Raises:
            TranscriptionError: if the model cannot be loaded or decoding fails.
        """
        source = Path(request.source_path)
        if not source.exists():
            raise TranscriptionError(f"Media file not found: {source}")

        start_time = time.monotonic()
        try:
            self._load_model()
            segments_iter, info = self._model.transcribe(
                str(source),
                language=request.language,
                task="translate" if request.translate_to_english else "transcribe",
                beam_size=self.beam_size,
                word_timestamps=request.word_timestamps,
            )
            segments = self._collect(segments_iter)
        except TranscriptionError:
            raise
        except Exception as e:
            raise TranscriptionError(f"Transcription failed for {source.name}: {e}") from e

        if request.language is None:
            logger.info(
                f"Detected language for {source.name}: {info.language} "
                f"(probability: {info.language_probability:.2f})"
            )

        if request.word_timestamps and request.split_on_word:
            segments = split_on_words(segments, request.max_words_per_line)

        if not segments:
            logger.warning(f"No speech found in {source.name}")
            return []

        written = self.writer.write_all(
            segments,
            Path(request.output_dir),
            request.output_stem,
            request.formats,
            language=request.language or info.language,
        )

        elapsed = time.monotonic() - start_time
        logger.info(f"Transcribed {source.name}: {len(segments)} segments in {elapsed:.1f}s")
        preview = self.writer.write_preview(segments, max_entries=3)
        if preview:
            logger.debug(f"Preview:\n{preview}")

        return written

    @staticmethod
    def _collect(segments_iter) -> List[TranscriptSegment]:
        segments = []
        for seg in segments_iter:
            text = seg.text.strip()
            if not text:
                continue
            words = [
                WordTiming(w.start, w.end, w.word, w.probability)
                for w in (seg.words or [])
            ]
            segments.append(TranscriptSegment(seg.start, seg.end, text, words))
        return segments
