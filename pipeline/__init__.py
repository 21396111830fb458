"""
Batch Subtitle Generator: Pipeline Package

Modular processing pipeline for batch subtitle generation:
  - video_id: video ID extraction and artifact renaming
  - language: filename language detection cascade
  - engine: whole-file speech-to-text via Faster-Whisper
  - formats: SRT / VTT / JSON / text / words / LRC / CSV output
  - captions: caption entry parsing and serialization
  - grouping: merging fragmentary captions into readable lines
  - dedup: removal of consecutive repeated captions
  - postprocess: grouping + dedup applied to generated files
  - worker: worker entry points
  - scheduler: bounded-concurrency batch scheduler
"""
