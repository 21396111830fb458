"""
Tests for the Transcript Writer.
"""

import csv
import json

import pytest
from pipeline.engine import TranscriptSegment, WordTiming
from pipeline.formats import TranscriptWriter


@pytest.fixture
def writer():
    return TranscriptWriter()


@pytest.fixture
def sample_segments():
    return [
        TranscriptSegment(1.2, 4.8, "Hello everyone, welcome to the show.", [
            WordTiming(1.2, 1.6, " Hello", 0.9),
            WordTiming(1.7, 2.4, " everyone,", 0.8),
        ]),
        TranscriptSegment(6.5, 10.2, "Today we're going to talk about something amazing."),
    ]


class TestTimestampFormat:
    """Test timestamp formatting."""

    def test_zero(self, writer):
        assert writer._format_timestamp(0.0) == "00:00:00,000"

    def test_milliseconds(self, writer):
        assert writer._format_timestamp(1.234) == "00:00:01,234"

    def test_hours(self, writer):
        assert writer._format_timestamp(3661.123) == "01:01:01,123"

    def test_negative_clamps_to_zero(self, writer):
        assert writer._format_timestamp(-1.0) == "00:00:00,000"

    def test_vtt_separator(self, writer):
        assert writer._format_timestamp(65.5, ".") == "00:01:05.500"

    def test_lrc(self, writer):
        assert writer._format_lrc_timestamp(65.5) == "01:05.50"
        assert writer._format_lrc_timestamp(3723.0) == "62:03.00"


class TestWriteFormats:
    """Test each output format."""

    def test_srt(self, writer, tmp_path):
        output = tmp_path / "a.srt"
        writer.write_srt([TranscriptSegment(1.2, 4.8, "Hello world.")], output)
        assert output.read_text(encoding="utf-8") == "1\n00:00:01,200 --> 00:00:04,800\nHello world.\n\n"

    def test_srt_sequential_indices(self, writer, sample_segments, tmp_path):
        output = tmp_path / "a.srt"
        writer.write_srt(sample_segments, output)
        lines = output.read_text(encoding="utf-8").strip().split("\n")
        assert [l for l in lines if l.strip().isdigit()] == ["1", "2"]

    def test_vtt(self, writer, tmp_path):
        output = tmp_path / "a.vtt"
        writer.write_vtt([TranscriptSegment(1.2, 4.8, "Hello world.")], output)
        assert output.read_text(encoding="utf-8") == (
            "WEBVTT\n\n00:00:01.200 --> 00:00:04.800\nHello world.\n\n"
        )

    def test_json(self, writer, sample_segments, tmp_path):
        output = tmp_path / "a.json"
        writer.write_json(sample_segments, output, language="en")
        data = json.loads(output.read_text(encoding="utf-8"))
        assert data["language"] == "en"
        assert len(data["segments"]) == 2
        assert data["segments"][0]["words"][0]["word"] == " Hello"
        assert data["segments"][1]["words"] == []

    def test_text(self, writer, sample_segments, tmp_path):
        output = tmp_path / "a.txt"
        writer.write_text(sample_segments, output)
        assert output.read_text(encoding="utf-8").splitlines() == [s.text for s in sample_segments]

    def test_words(self, writer, sample_segments, tmp_path):
        output = tmp_path / "a.wts"
        writer.write_words(sample_segments, output)
        lines = output.read_text(encoding="utf-8").splitlines()
        assert lines[0] == "00:00:01,200 --> 00:00:01,600 Hello"
        # Segment without word timings is written as a whole
        assert lines[-1].endswith("something amazing.")

    def test_lrc(self, writer, sample_segments, tmp_path):
        output = tmp_path / "a.lrc"
        writer.write_lrc(sample_segments, output)
        assert output.read_text(encoding="utf-8").splitlines()[0] == (
            "[00:01.20]Hello everyone, welcome to the show."
        )

    def test_csv(self, writer, sample_segments, tmp_path):
        output = tmp_path / "a.csv"
        writer.write_csv(sample_segments, output)
        with open(output, encoding="utf-8", newline="") as f:
            rows = list(csv.reader(f))
        assert rows[0] == ["start", "end", "text"]
        assert rows[1] == ["1200", "4800", "Hello everyone, welcome to the show."]

    def test_utf8(self, writer, tmp_path):
        output = tmp_path / "utf8.srt"
        writer.write_srt([TranscriptSegment(0.0, 1.0, "مرحبا — ñ")], output)
        assert "مرحبا — ñ" in output.read_text(encoding="utf-8")


class TestWriteAll:
    """Test writing several formats at once."""

    def test_paths_in_order(self, writer, sample_segments, tmp_path):
        paths = writer.write_all(sample_segments, tmp_path / "out", "talk-viAB1", ["vtt", "srt", "text"])
        assert [p.name for p in paths] == ["talk-viAB1.vtt", "talk-viAB1.srt", "talk-viAB1.txt"]
        assert all(p.exists() for p in paths)


class TestPreview:
    """Test the preview formatter."""

    def test_preview_limits_entries(self, writer, sample_segments):
        preview = writer.write_preview(sample_segments, max_entries=1)
        lines = preview.strip().split("\n")
        assert len(lines) == 2
        assert "1 more" in lines[-1]

    def test_preview_truncates_long_text(self, writer):
        preview = writer.write_preview([TranscriptSegment(0.0, 1.0, "A" * 100)])
        assert "..." in preview

    def test_preview_empty(self, writer):
        assert writer.write_preview([]) == ""
