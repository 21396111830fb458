"""
Batch Scheduler: runs transcription jobs on a bounded worker pool.

Per job:
  1. Language detection from the filename
  2. Transcription on a pool worker (Faster-Whisper)
  3. Caption grouping + duplicate removal on the produced SRT / VTT files
  4. Video ID restored on renamed artifacts
  5. Progress update

Only the thread calling run() changes the queue, the running set and the
progress counter. Workers report back through a completion queue.
"""

import time
import logging
import threading
from collections import deque
from concurrent.futures import BrokenExecutor, Future, ProcessPoolExecutor, ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from queue import Queue
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from .engine import TranscriptionRequest, WhisperEngine
from .formats import FORMAT_EXTENSIONS
from .language import LanguageDetector
from .postprocess import CAPTION_EXTENSIONS, SubtitlePostProcessor
from .video_id import VideoIdentity, extract, preserve_video_id
from .worker import JobOutcome, run_transcription

logger = logging.getLogger(__name__)

# Type alias for progress callbacks: (message: str, percent: int) -> None
ProgressCallback = Optional[Callable[[str, int], None]]


class JobStatus(Enum):
    QUEUED = "queued"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.SUCCEEDED, JobStatus.FAILED)


@dataclass
class Job:
    """One media file moving through Queued -> Running -> Succeeded/Failed."""
    source_path: Path
    status: JobStatus = JobStatus.QUEUED
    language: Optional[str] = None
    error: Optional[str] = None
    outputs: List[Path] = field(default_factory=list)

    @property
    def identity(self) -> VideoIdentity:
        return extract(self.source_path.name)

    @property
    def name(self) -> str:
        return self.source_path.name


class ProgressCounter:
    """Completed / total jobs for the batch."""

    def __init__(self, total: int = 0):
        self._lock = threading.Lock()
        self._completed = 0
        self._total = total

    def reset(self, total: int):
        with self._lock:
            self._completed = 0
            self._total = total

    def increment(self) -> Tuple[int, int]:
        with self._lock:
            self._completed += 1
            return self._completed, self._total

    @property
    def completed(self) -> int:
        with self._lock:
            return self._completed

    @property
    def total(self) -> int:
        with self._lock:
            return self._total

    @property
    def percent(self) -> int:
        with self._lock:
            if self._total == 0:
                return 100
            return round(self._completed * 100 / self._total)


@dataclass
class BatchSummary:
    total: int
    succeeded: List[Path] = field(default_factory=list)
    failed: List[Tuple[Path, str]] = field(default_factory=list)
    elapsed_sec: float = 0.0

    @property
    def all_succeeded(self) -> bool:
        return not self.failed


class BatchScheduler:
    """
    Fans a batch of media files out over at most ``max_concurrent`` workers.

    Usage:
        config = load_config()
        scheduler = BatchScheduler(config)
        scheduler.submit_batch(paths)
        summary = scheduler.run()

    A failed transcription marks only its own job Failed; the batch always
    runs to completion. Post-processing problems are logged and never change
    a job's status.
    """

    def __init__(self, config, engine=None, progress_cb: ProgressCallback = None):
        config.validate()
        self.config = config
        self.progress_cb = progress_cb

        self.max_concurrent = config.scheduler.max_concurrent
        self.worker_mode = config.scheduler.worker_mode
        self.formats = tuple(config.formats.enabled())

        self.detector = LanguageDetector(config.language)
        self.postprocessor = SubtitlePostProcessor(config.postprocess)

        if engine is None and self.worker_mode == "thread":
            engine = WhisperEngine(config.engine, num_workers=self.max_concurrent)
        self.engine = engine

        self.jobs: List[Job] = []
        self.progress = ProgressCounter()
        self._queue: deque = deque()
        self._running: Dict[int, Job] = {}
        self._completions: Queue = Queue()
        self._executor = None

    def submit_batch(self, paths: Iterable[Path]) -> List[Job]:
        """Queue one job per path, in the given order."""
        self.jobs = [Job(Path(p)) for p in paths]
        self._queue = deque(self.jobs)
        self._running = {}
        self.progress.reset(len(self.jobs))
        logger.info(f"Queued {len(self.jobs)} files ({self.max_concurrent} concurrent, {self.worker_mode} workers)")
        return self.jobs

    def run(self) -> BatchSummary:
        """
        Process every queued job.

        Returns once all jobs reached a terminal state.
        """
        start_time = time.monotonic()

        if self.jobs:
            self._executor = self._make_executor()
            try:
                while self._queue or self._running:
                    while self._queue and len(self._running) < self.max_concurrent:
                        self._start(self._queue.popleft())

                    job_key, future = self._completions.get()
                    self._complete(self._running.pop(job_key), future)
            except BaseException:
                # Interrupted: in-flight jobs are abandoned, queued ones never start
                self._executor.shutdown(wait=False, cancel_futures=True)
                raise
            self._executor.shutdown(wait=True)

        summary = BatchSummary(
            total=len(self.jobs),
            succeeded=[j.source_path for j in self.jobs if j.status is JobStatus.SUCCEEDED],
            failed=[(j.source_path, j.error or "unknown error")
                    for j in self.jobs if j.status is JobStatus.FAILED],
            elapsed_sec=time.monotonic() - start_time,
        )

        logger.info(
            f"Batch complete in {summary.elapsed_sec:.1f}s: "
            f"{len(summary.succeeded)} succeeded, {len(summary.failed)} failed "
            f"(of {summary.total})"
        )
        return summary

    def _make_executor(self):
        if self.worker_mode == "process":
            return ProcessPoolExecutor(max_workers=self.max_concurrent)
        return ThreadPoolExecutor(max_workers=self.max_concurrent, thread_name_prefix="transcribe")

    def _output_dir(self, job: Job) -> Path:
        return self.config.output_dir or job.source_path.parent

    def _start(self, job: Job):
        job.status = JobStatus.RUNNING
        logger.info(f"Starting: {job.name}")

        result = self.detector.detect(job.name)
        job.language = result.engine_language
        if job.language:
            logger.info(f"Using language for {job.name}: {job.language}")
        else:
            logger.info(f"No specific language for {job.name}, letting the engine auto-detect")

        engine_config = self.config.engine
        request = TranscriptionRequest(
            source_path=str(job.source_path),
            output_dir=str(self._output_dir(job)),
            output_stem=job.identity.stem,
            language=job.language,
            formats=self.formats,
            word_timestamps=engine_config.word_timestamps,
            split_on_word=engine_config.split_on_word,
            translate_to_english=engine_config.translate_to_english,
            max_words_per_line=engine_config.max_words_per_line,
        )

        job_key = id(job)
        self._running[job_key] = job
        future = self._submit(request, engine_config)
        future.add_done_callback(lambda f, key=job_key: self._completions.put((key, f)))

    def _submit(self, request: TranscriptionRequest, engine_config) -> Future:
        """
        Hand a request to the pool.

        A pool broken by a dead worker process is replaced once. If the
        replacement cannot take the job either, a failed Future is returned
        so the job still goes through the normal completion path.
        """
        try:
            return self._executor.submit(run_transcription, request, self.engine, engine_config)
        except BrokenExecutor as e:
            logger.warning(f"Worker pool is broken ({e}), starting a new one")
            self._executor.shutdown(wait=False)
            self._executor = self._make_executor()

        try:
            return self._executor.submit(run_transcription, request, self.engine, engine_config)
        except RuntimeError as e:
            future = Future()
            future.set_exception(e)
            return future

    def _complete(self, job: Job, future: Future):
        """Handle one terminal signal from a worker."""
        try:
            outcome: JobOutcome = future.result()
        except Exception as e:
            # Worker crashed before it could report (e.g. a dead process pool)
            outcome = JobOutcome(str(job.source_path), False, error=f"{type(e).__name__}: {e}")

        self._post_process(job)

        if outcome.succeeded:
            job.status = JobStatus.SUCCEEDED
            job.outputs = [Path(p) for p in outcome.outputs]
        else:
            job.status = JobStatus.FAILED
            job.error = outcome.error
            logger.error(f"Error processing {job.name}: {outcome.error}")

        completed, total = self.progress.increment()
        pct = self.progress.percent
        label = "Completed" if outcome.succeeded else "Failed"
        self._report(f"{label}: {job.name} ({completed}/{total}, {pct}% complete)", pct)

    def _post_process(self, job: Job):
        output_dir = self._output_dir(job)
        identity = job.identity
        caption_extensions = [FORMAT_EXTENSIONS[f] for f in self.formats
                              if FORMAT_EXTENSIONS[f] in CAPTION_EXTENSIONS]

        try:
            self.postprocessor.process_outputs(output_dir, identity, caption_extensions)
        except OSError as e:
            logger.error(f"Post-processing error for {job.name}: {e}")

        try:
            preserve_video_id(job.source_path, output_dir, FORMAT_EXTENSIONS.values())
        except OSError as e:
            logger.error(f"Could not restore video ID for {job.name}: {e}")

    def _report(self, msg: str, pct: int):
        """Report progress to logger and optional callback."""
        logger.info(msg)
        if self.progress_cb:
            self.progress_cb(msg, pct)
