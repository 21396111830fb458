"""
Batch Subtitle Generator: CLI Entry Point

Usage:
    python main.py videos/
    python main.py videos/ -o subtitles/
    python main.py videos/ --model small -j 4
    python main.py videos/ --language ar --min-words 7
"""

import sys
import argparse
import logging
from pathlib import Path
from typing import List

from config import (
    AVAILABLE_MODELS, DETECTION_METHODS, SUPPORTED_EXTENSIONS, ConfigError,
    load_config,
)
from pipeline.scheduler import BatchScheduler


def setup_logging(level: str = "INFO", log_file: str = None):
    """Configure logging for the application."""
    log_format = (
        "%(asctime)s | %(levelname)-7s | %(name)-20s | %(message)s"
    )
    date_format = "%H:%M:%S"

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=log_format,
        datefmt=date_format,
        handlers=handlers
    )

    # Suppress noisy third-party loggers
    logging.getLogger("faster_whisper").setLevel(logging.WARNING)
    logging.getLogger("langdetect").setLevel(logging.WARNING)


def print_banner():
    """Print the application banner."""
    banner = """
==========================================================
          Batch Subtitle Generator

  Speech Recognition  +  Caption Grouping
  Powered by Faster-Whisper
==========================================================
"""
    print(banner)


def print_progress(message: str, percent: int):
    """Console progress callback with progress bar."""
    bar_width = 30
    filled = int(bar_width * percent / 100)
    bar = "#" * filled + "-" * (bar_width - filled)
    print(f"\r  [{bar}] {percent:3d}%  {message:<60}", end="", flush=True)
    if percent >= 100:
        print()  # Newline at completion


def find_media_files(videos_dir: Path) -> List[Path]:
    """
    List supported media files in a directory, sorted by name.

    Raises:
        FileNotFoundError / NotADirectoryError: if the directory is unusable.
    """
    return sorted(
        p for p in Path(videos_dir).iterdir()
        if p.is_file() and p.suffix.lower() in SUPPORTED_EXTENSIONS
    )


def main():
    parser = argparse.ArgumentParser(
        description="Batch Subtitle Generator: transcribe every video in a "
                    "directory and clean up the generated subtitles.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py videos/                      # Basic usage
  python main.py videos/ -o subs/             # Write subtitles elsewhere
  python main.py videos/ --model small -j 3   # Three files at a time
  python main.py videos/ --language ar        # Force Arabic for every file
  python main.py videos/ --method auto        # Also guess from filename text
  python main.py videos/ --formats srt,vtt,json
        """
    )

    parser.add_argument(
        "videos_dir",
        type=Path,
        nargs="?",
        default=None,
        help="Directory with the media files (default: from config.yaml)"
    )
    parser.add_argument(
        "-o", "--output-dir",
        type=Path,
        default=None,
        help="Directory for generated files (default: next to each video)"
    )
    parser.add_argument(
        "-m", "--model",
        default=None,
        choices=AVAILABLE_MODELS,
        help="Whisper model (default: from config.yaml, usually 'base')"
    )
    parser.add_argument(
        "-l", "--language",
        default=None,
        help="Force language code for every file (disables detection)"
    )
    parser.add_argument(
        "--method",
        default=None,
        choices=DETECTION_METHODS,
        help="Filename language detection level (default: enhanced)"
    )
    parser.add_argument(
        "-j", "--jobs",
        type=int,
        default=None,
        help="Number of files transcribed concurrently (default: 1)"
    )
    parser.add_argument(
        "--processes",
        action="store_true",
        help="Run workers as separate processes instead of threads"
    )
    parser.add_argument(
        "--min-words",
        type=int,
        default=None,
        help="Minimum words per subtitle line (default: 7)"
    )
    parser.add_argument(
        "--max-duplicates",
        type=int,
        default=None,
        help="Consecutive identical subtitles to keep (default: 1)"
    )
    parser.add_argument(
        "--no-dedup",
        action="store_true",
        help="Keep repeated subtitle lines"
    )
    parser.add_argument(
        "--formats",
        default=None,
        help="Comma-separated output formats: srt,vtt,json,text,words,lrc,csv"
    )
    parser.add_argument(
        "--translate",
        action="store_true",
        help="Translate speech to English"
    )
    parser.add_argument(
        "--cuda",
        action="store_true",
        help="Run the model on a CUDA GPU"
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to custom config.yaml file"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose (DEBUG) logging"
    )
    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Suppress all output except the progress bar"
    )

    args = parser.parse_args()

    # ── Load config ──
    config = load_config(args.config)

    try:
        config.update_from_args(args)
    except ConfigError as e:
        print(f"Error: {e}")
        sys.exit(1)

    # ── Setup logging ──
    log_level = "DEBUG" if args.verbose else ("WARNING" if args.quiet else config.logging.level)
    setup_logging(level=log_level, log_file=config.logging.file)

    videos_dir = Path(config.paths.videos_dir)

    # ── Banner ──
    if not args.quiet:
        print_banner()
        print(f"  Input:    {videos_dir}")
        print(f"  Output:   {config.output_dir or 'next to each video'}")
        print(f"  Model:    Faster-Whisper {config.engine.model} ({config.engine.compute_type}, {config.engine.device})")
        print(f"  Workers:  {config.max_concurrent} ({config.scheduler.worker_mode})")
        print(f"  Formats:  {', '.join(config.formats.enabled())}")
        if config.language.detect:
            print(f"  Language: Detect from filename ({config.language.method})")
        else:
            print(f"  Language: {config.language.default_language or 'Auto-detect'}")
        print()

    # ── Run batch ──
    try:
        if config.output_dir:
            config.output_dir.mkdir(parents=True, exist_ok=True)

        media_files = find_media_files(videos_dir)
        if not media_files:
            print(f"No media files found in {videos_dir}")
            return

        scheduler = BatchScheduler(config, progress_cb=print_progress if not args.quiet else None)
        scheduler.submit_batch(media_files)
        summary = scheduler.run()

        if not args.quiet:
            print(f"\n  [OK] {len(summary.succeeded)}/{summary.total} files transcribed "
                  f"in {summary.elapsed_sec:.1f}s")
            for path, error in summary.failed:
                print(f"  [FAILED] {path.name}: {error}")

        if not summary.all_succeeded:
            sys.exit(2)

    except KeyboardInterrupt:
        print("\n\n  [WARN] Processing interrupted by user.")
        sys.exit(130)
    except ConfigError as e:
        print(f"\n  [ERROR] {e}")
        sys.exit(1)
    except (FileNotFoundError, NotADirectoryError) as e:
        print(f"\n  [ERROR] Cannot read input directory: {e}")
        sys.exit(1)
    except Exception as e:
        logging.exception("Unexpected error")
        print(f"\n  [ERROR] Unexpected error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
