"""
Configuration loader for the Batch Subtitle Generator.
Loads from config.yaml and allows CLI argument overrides.
"""

import yaml
import logging
from collections import OrderedDict
from pathlib import Path
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

from pipeline.formats import FORMAT_EXTENSIONS

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent / "config.yaml"

# Media files picked up from the videos directory (audio formats included)
SUPPORTED_EXTENSIONS = (
    ".mp4", ".avi", ".mov", ".mkv",
    ".webm", ".flv", ".wmv", ".m4v",
    ".mp3", ".wav", ".ogg", ".aac",
)

AVAILABLE_MODELS = (
    "tiny", "tiny.en",
    "base", "base.en",
    "small", "small.en",
    "medium", "medium.en",
    "large-v1", "large-v2", "large-v3",
    "large", "large-v3-turbo",
)

DEVICES = ("cpu", "cuda", "auto")
DETECTION_METHODS = ("manual", "enhanced", "auto")
WORKER_MODES = ("thread", "process")


class ConfigError(ValueError):
    """Raised when the configuration cannot be used for a batch."""


@dataclass
class PathsConfig:
    videos_dir: str = "videos"
    output_dir: Optional[str] = None  # None = alongside the videos


@dataclass
class EngineConfig:
    model: str = "base"
    device: str = "cpu"
    compute_type: str = "int8"
    threads: int = 0  # 0 = auto-detect CPU cores
    beam_size: int = 5
    word_timestamps: bool = True
    split_on_word: bool = True
    translate_to_english: bool = False
    max_words_per_line: int = 7


@dataclass
class FormatsConfig:
    srt: bool = True
    vtt: bool = True
    json: bool = False
    text: bool = False
    words: bool = False
    lrc: bool = False
    csv: bool = False

    def enabled(self) -> List[str]:
        """Names of the enabled formats, in FORMAT_EXTENSIONS order."""
        return [name for name in FORMAT_EXTENSIONS if getattr(self, name)]


@dataclass
class LanguageConfig:
    detect: bool = True
    default_language: Optional[str] = None
    method: str = "enhanced"
    # pattern -> language code; also accepts "pattern:code,pattern:code"
    map: Union[Dict[str, str], str, None] = None
    min_phrase_length: int = 10
    min_confidence: float = 0.8

    @property
    def patterns(self) -> "OrderedDict[str, str]":
        return parse_language_map(self.map)


@dataclass
class PostProcessConfig:
    min_words_per_line: int = 7
    deduplicate: bool = True
    max_duplicates: int = 1


@dataclass
class SchedulerConfig:
    max_concurrent: int = 1
    worker_mode: str = "thread"


@dataclass
class LoggingConfig:
    level: str = "INFO"
    file: Optional[str] = None


@dataclass
class AppConfig:
    """Top-level application configuration."""
    paths: PathsConfig = field(default_factory=PathsConfig)
    engine: EngineConfig = field(default_factory=EngineConfig)
    formats: FormatsConfig = field(default_factory=FormatsConfig)
    language: LanguageConfig = field(default_factory=LanguageConfig)
    postprocess: PostProcessConfig = field(default_factory=PostProcessConfig)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @property
    def max_concurrent(self) -> int:
        return self.scheduler.max_concurrent

    @property
    def output_dir(self) -> Optional[Path]:
        if self.paths.output_dir:
            return Path(self.paths.output_dir)
        return None

    def update_from_args(self, args):
        """Override config values from CLI arguments."""
        if getattr(args, "videos_dir", None):
            self.paths.videos_dir = str(args.videos_dir)
        if getattr(args, "output_dir", None):
            self.paths.output_dir = str(args.output_dir)
        if getattr(args, "model", None):
            self.engine.model = args.model
        if getattr(args, "cuda", False):
            self.engine.device = "cuda"
        if getattr(args, "translate", False):
            self.engine.translate_to_english = True
        if getattr(args, "language", None):
            self.language.detect = False
            self.language.default_language = args.language
        if getattr(args, "method", None):
            self.language.method = args.method
        if getattr(args, "jobs", None):
            self.scheduler.max_concurrent = args.jobs
        if getattr(args, "processes", False):
            self.scheduler.worker_mode = "process"
        if getattr(args, "min_words", None):
            self.postprocess.min_words_per_line = args.min_words
        if getattr(args, "max_duplicates", None) is not None:
            self.postprocess.max_duplicates = args.max_duplicates
        if getattr(args, "no_dedup", False):
            self.postprocess.deduplicate = False
        if getattr(args, "formats", None):
            requested = {name.strip() for name in args.formats.split(",") if name.strip()}
            unknown = requested - set(FORMAT_EXTENSIONS)
            if unknown:
                raise ConfigError(f"Unknown output format(s): {', '.join(sorted(unknown))}")
            for name in FORMAT_EXTENSIONS:
                setattr(self.formats, name, name in requested)

    def validate(self):
        """
        Check the whole configuration once, before a batch starts.

        Raises:
            ConfigError: listing every problem found.
        """
        problems = []

        if self.scheduler.max_concurrent < 1:
            problems.append("scheduler.max_concurrent must be at least 1")
        if self.scheduler.worker_mode not in WORKER_MODES:
            problems.append(f"scheduler.worker_mode must be one of {WORKER_MODES}")
        if self.engine.model not in AVAILABLE_MODELS:
            problems.append(f"engine.model '{self.engine.model}' is not one of {AVAILABLE_MODELS}")
        if self.engine.device not in DEVICES:
            problems.append(f"engine.device must be one of {DEVICES}")
        if self.engine.max_words_per_line < 1:
            problems.append("engine.max_words_per_line must be at least 1")
        if self.language.method not in DETECTION_METHODS:
            problems.append(f"language.method must be one of {DETECTION_METHODS}")
        if self.postprocess.min_words_per_line < 1:
            problems.append("postprocess.min_words_per_line must be at least 1")
        if self.postprocess.max_duplicates < 0:
            problems.append("postprocess.max_duplicates must not be negative")
        if not self.formats.enabled():
            problems.append("at least one output format must be enabled")

        try:
            parse_language_map(self.language.map)
        except ConfigError as e:
            problems.append(str(e))

        if problems:
            raise ConfigError("Invalid configuration: " + "; ".join(problems))


def parse_language_map(raw) -> "OrderedDict[str, str]":
    """
    Parse the language pattern table.

    Accepts a mapping (YAML) or the serialized form
    ``"arabic:ar,_ar_:ar,spanish:es"``. Insertion order is preserved; it
    decides which pattern wins when several match.

    Raises:
        ConfigError: on an entry without a pattern or a code.
    """
    patterns: "OrderedDict[str, str]" = OrderedDict()
    if not raw:
        return patterns

    if isinstance(raw, dict):
        items = [(str(k), str(v)) for k, v in raw.items()]
    else:
        items = []
        for pair in str(raw).split(","):
            if not pair.strip():
                continue
            pattern, sep, code = pair.rpartition(":")
            if not sep:
                raise ConfigError(f"Language map entry '{pair.strip()}' is not 'pattern:code'")
            items.append((pattern, code))

    for pattern, code in items:
        pattern, code = pattern.strip(), code.strip()
        if not pattern or not code:
            raise ConfigError(f"Language map entry '{pattern}:{code}' needs both pattern and code")
        patterns[pattern] = code

    return patterns


def _dict_to_dataclass(cls, data: dict):
    """Recursively convert a dict to a dataclass, ignoring unknown keys."""
    if data is None:
        return cls()
    field_names = {f.name for f in cls.__dataclass_fields__.values()}
    filtered = {k: v for k, v in data.items() if k in field_names}
    return cls(**filtered)


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """
    Load configuration from a YAML file.
    Falls back to defaults if file is missing.
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH

    if not path.exists():
        logger.warning(f"Config file not found at {path}, using defaults.")
        return AppConfig()

    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    config = AppConfig(
        paths=_dict_to_dataclass(PathsConfig, raw.get("paths")),
        engine=_dict_to_dataclass(EngineConfig, raw.get("engine")),
        formats=_dict_to_dataclass(FormatsConfig, raw.get("formats")),
        language=_dict_to_dataclass(LanguageConfig, raw.get("language")),
        postprocess=_dict_to_dataclass(PostProcessConfig, raw.get("postprocess")),
        scheduler=_dict_to_dataclass(SchedulerConfig, raw.get("scheduler")),
        logging=_dict_to_dataclass(LoggingConfig, raw.get("logging")),
    )

    logger.info(f"Configuration loaded from {path}")
    return config
