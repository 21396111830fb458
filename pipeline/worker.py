"""
Worker entry points: run one transcription job and report its outcome.

Workers never touch scheduler state. They receive a picklable
TranscriptionRequest, call the engine, and return a JobOutcome that the
scheduler consumes.
"""

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .engine import TranscriptionRequest, WhisperEngine

logger = logging.getLogger(__name__)

# One engine per worker process, keyed by engine settings
_process_engines: Dict[tuple, WhisperEngine] = {}
_process_engines_lock = threading.Lock()


@dataclass
class JobOutcome:
    """Result message sent from a worker back to the scheduler."""
    source_path: str
    succeeded: bool
    outputs: List[str] = field(default_factory=list)
    error: Optional[str] = None
    elapsed_sec: float = 0.0


def _engine_for(engine_config) -> WhisperEngine:
    key = (
        getattr(engine_config, "model", None),
        getattr(engine_config, "device", None),
        getattr(engine_config, "compute_type", None),
        getattr(engine_config, "threads", None),
        getattr(engine_config, "beam_size", None),
    )
    with _process_engines_lock:
        engine = _process_engines.get(key)
        if engine is None:
            engine = WhisperEngine(engine_config)
            _process_engines[key] = engine
    return engine


def run_transcription(request: TranscriptionRequest, engine=None, engine_config=None) -> JobOutcome:
    """
    Transcribe one file. Failures are returned, not raised.

    Args:
        request: Job parameters.
        engine: Engine instance shared by thread workers.
        engine_config: Used to build a per-process engine when ``engine``
            is not given (process workers).
    """
    start = time.monotonic()
    try:
        if engine is None:
            engine = _engine_for(engine_config)
        outputs = engine.transcribe(request)
    except Exception as e:
        logger.debug(f"Worker failed on {request.source_path}", exc_info=True)
        return JobOutcome(
            source_path=request.source_path,
            succeeded=False,
            error=f"{type(e).__name__}: {e}",
            elapsed_sec=time.monotonic() - start,
        )

    return JobOutcome(
        source_path=request.source_path,
        succeeded=True,
        outputs=[str(p) for p in outputs],
        elapsed_sec=time.monotonic() - start,
    )
