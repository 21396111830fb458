"""
Tests for configuration loading, overrides and validation.
"""

import argparse

import pytest
from config import (
    DEFAULT_CONFIG_PATH, AppConfig, ConfigError, load_config, parse_language_map,
)


def write_yaml(tmp_path, text):
    path = tmp_path / "config.yaml"
    path.write_text(text, encoding="utf-8")
    return path


class TestLoad:
    """Test YAML loading."""

    def test_missing_file_uses_defaults(self, tmp_path):
        config = load_config(tmp_path / "nope.yaml")
        assert config == AppConfig()
        assert config.postprocess.min_words_per_line == 7
        assert config.formats.enabled() == ["srt", "vtt"]

    def test_values_and_unknown_keys(self, tmp_path):
        path = write_yaml(tmp_path, (
            "scheduler:\n  max_concurrent: 3\n  surprise: true\n"
            "formats:\n  json: true\n"
            "postprocess:\n  max_duplicates: 2\n"
        ))
        config = load_config(path)
        assert config.scheduler.max_concurrent == 3
        assert config.formats.enabled() == ["srt", "vtt", "json"]
        assert config.postprocess.max_duplicates == 2

    def test_empty_file(self, tmp_path):
        assert load_config(write_yaml(tmp_path, "")) == AppConfig()

    def test_shipped_config_is_valid(self):
        config = load_config(DEFAULT_CONFIG_PATH)
        config.validate()
        assert config.language.patterns["arabic"] == "ar"


class TestLanguageMap:
    """Test pattern table parsing."""

    def test_serialized_form_keeps_order(self):
        patterns = parse_language_map("arabic:ar, _es_:es ,french:fr")
        assert list(patterns.items()) == [("arabic", "ar"), ("_es_", "es"), ("french", "fr")]

    def test_mapping_form(self, tmp_path):
        config = load_config(write_yaml(tmp_path, "language:\n  map:\n    lesson: en\n    arabic: ar\n"))
        assert list(config.language.patterns) == ["lesson", "arabic"]

    def test_empty(self):
        assert parse_language_map(None) == {}
        assert parse_language_map("") == {}

    @pytest.mark.parametrize("raw", ["arabic", "arabic:", ":ar"])
    def test_malformed(self, raw):
        with pytest.raises(ConfigError):
            parse_language_map(raw)


class TestValidate:
    """Test one-shot validation."""

    def test_defaults_valid(self):
        AppConfig().validate()

    def test_collects_all_problems(self):
        config = AppConfig()
        config.scheduler.max_concurrent = 0
        config.engine.model = "huge"
        config.language.method = "psychic"
        config.postprocess.max_duplicates = -1
        config.language.map = "broken"

        with pytest.raises(ConfigError) as exc:
            config.validate()

        message = str(exc.value)
        for fragment in ("max_concurrent", "huge", "language.method", "max_duplicates", "broken"):
            assert fragment in message

    def test_no_formats(self):
        config = AppConfig()
        config.formats.srt = config.formats.vtt = False
        with pytest.raises(ConfigError, match="output format"):
            config.validate()


class TestOverrides:
    """Test CLI overrides."""

    def test_update_from_args(self):
        args = argparse.Namespace(
            videos_dir="in", output_dir="out", model="small", cuda=True,
            translate=True, language="ar", method="auto", jobs=4,
            processes=True, min_words=5, max_duplicates=0, no_dedup=True,
            formats="srt,json",
        )
        config = AppConfig()
        config.update_from_args(args)

        assert config.paths.videos_dir == "in"
        assert str(config.output_dir) == "out"
        assert config.engine.model == "small"
        assert config.engine.device == "cuda"
        assert config.engine.translate_to_english
        assert not config.language.detect
        assert config.language.default_language == "ar"
        assert config.language.method == "auto"
        assert config.max_concurrent == 4
        assert config.scheduler.worker_mode == "process"
        assert config.postprocess.min_words_per_line == 5
        assert config.postprocess.max_duplicates == 0
        assert not config.postprocess.deduplicate
        assert config.formats.enabled() == ["srt", "json"]

    def test_unset_args_keep_config(self):
        config = AppConfig()
        config.update_from_args(argparse.Namespace())
        assert config == AppConfig()

    def test_unknown_format(self):
        with pytest.raises(ConfigError, match="mp3"):
            AppConfig().update_from_args(argparse.Namespace(formats="srt,mp3"))
