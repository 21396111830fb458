"""
Tests for caption parsing and the Caption Grouper.
"""

import pytest
from pipeline.captions import CaptionEntry, parse_srt, parse_vtt
from pipeline.grouping import CaptionGrouper, count_words, group_srt, group_vtt


def srt(*entries):
    """Build SRT content from (timing, text) pairs."""
    blocks = [f"{i}\n{timing}\n{text}" for i, (timing, text) in enumerate(entries, start=1)]
    return "\n\n".join(blocks) + "\n\n"


T1 = "00:00:00,000 --> 00:00:01,000"
T2 = "00:00:01,000 --> 00:00:02,000"
T3 = "00:00:02,000 --> 00:00:03,000"
T4 = "00:00:03,000 --> 00:00:04,000"


@pytest.fixture
def grouper():
    return CaptionGrouper(min_words_per_line=5)


class TestCountWords:
    """Test whitespace word counting."""

    def test_simple(self):
        assert count_words("one two three") == 3

    def test_extra_whitespace(self):
        assert count_words("  one \t two\n three  ") == 3

    def test_empty(self):
        assert count_words("") == 0
        assert count_words("   ") == 0

    def test_arabic(self):
        assert count_words("مرحبا بكم في الدرس") == 4

    def test_unsegmented_cjk_counts_as_one(self):
        assert count_words("这是一个测试") == 1


class TestParsing:
    """Test SRT / VTT entry parsing."""

    def test_parse_srt_joins_text_lines(self):
        entries = parse_srt(f"1\n{T1}\nfirst line\nsecond line\n\n")
        assert entries == [CaptionEntry(T1, "first line second line", 1)]

    def test_parse_srt_crlf(self):
        content = f"1\r\n{T1}\r\nHello\r\n\r\n2\r\n{T2}\r\nWorld\r\n\r\n"
        entries = parse_srt(content)
        assert [e.text for e in entries] == ["Hello", "World"]
        assert entries[1].timing == T2

    def test_parse_srt_skips_malformed(self):
        content = f"1\n{T1}\nHello\n\ngarbage\n\n3\n{T3}\nWorld\n\n"
        assert [e.text for e in parse_srt(content)] == ["Hello", "World"]

    def test_parse_srt_with_bom(self):
        entries = parse_srt("\ufeff" + srt((T1, "Hello"), (T2, "World")))
        assert [e.text for e in entries] == ["Hello", "World"]
        assert entries[0].ordinal == 1

    def test_bom_first_cue_kept_when_grouping(self, grouper):
        content = "\ufeff" + srt((T1, "Hello"), (T2, "there"))
        assert grouper.group_srt(content) == f"1\n{T1}\nHello there\n\n"

    def test_parse_vtt_header_and_entries(self):
        content = "WEBVTT\n\n00:00.000 --> 00:01.000\nHello\n\n00:01.000 --> 00:02.000\nWorld\n\n"
        header, entries = parse_vtt(content)
        assert header == "WEBVTT"
        assert [e.timing for e in entries] == ["00:00.000 --> 00:01.000", "00:01.000 --> 00:02.000"]
        assert all(e.ordinal is None for e in entries)


class TestGroupingRules:
    """Test the fragment accumulation rules."""

    def test_fragments_then_full_line(self, grouper):
        content = srt((T1, "H"), (T2, "e"), (T3, "llo there my good friend today"))
        assert grouper.group_srt(content) == (
            f"1\n{T1}\nH e\n\n"
            f"2\n{T3}\nllo there my good friend today\n\n"
        )

    def test_short_word_count_line_joins_group(self, grouper):
        # "llo there friend today" has only 4 words, so it is a fragment too
        content = srt((T1, "H"), (T2, "e"), (T3, "llo there friend today"))
        assert grouper.group_srt(content) == f"1\n{T1}\nH e llo there friend today\n\n"

    @pytest.mark.parametrize("texts", [
        ["a"],
        ["one two", "three", "four five six"],
        ["مرحبا", "بكم", "في", "الدرس"],
        ["x"] * 20,
    ])
    def test_all_fragments_make_one_entry(self, grouper, texts):
        timings = [f"00:00:{i:02d},000 --> 00:00:{i + 1:02d},000" for i in range(len(texts))]
        entries = [CaptionEntry(t, text) for t, text in zip(timings, texts)]

        result = grouper.group(entries)

        assert result == [CaptionEntry(timings[0], " ".join(texts))]

    def test_full_line_passes_through(self, grouper):
        content = srt((T1, "this line has enough words already"))
        assert grouper.group_srt(content) == f"1\n{T1}\nthis line has enough words already\n\n"

    def test_trailing_group_flushed(self, grouper):
        content = srt((T1, "this line has enough words already"), (T2, "short"), (T3, "bits"))
        assert grouper.group_srt(content) == (
            f"1\n{T1}\nthis line has enough words already\n\n"
            f"2\n{T2}\nshort bits\n\n"
        )

    def test_groups_between_full_lines(self, grouper):
        content = srt(
            (T1, "a"),
            (T2, "first full line with five words"),
            (T3, "b"),
            (T4, "second full line with five words"),
        )
        result = parse_srt(grouper.group_srt(content))
        assert [(e.ordinal, e.timing, e.text) for e in result] == [
            (1, T1, "a"),
            (2, T2, "first full line with five words"),
            (3, T3, "b"),
            (4, T4, "second full line with five words"),
        ]

    def test_three_characters_is_always_fragment(self):
        grouper = CaptionGrouper(min_words_per_line=1)
        content = srt((T1, "Hi"), (T2, "Yes"), (T3, "Okay"))
        assert grouper.group_srt(content) == (
            f"1\n{T1}\nHi Yes\n\n"
            f"2\n{T3}\nOkay\n\n"
        )

    def test_timing_never_rewritten(self, grouper):
        odd_timing = "00:00:00,000 --> 00:00:09,999 position:10%"
        content = srt((odd_timing, "x"), (T2, "y"))
        assert parse_srt(grouper.group_srt(content))[0].timing == odd_timing

    def test_default_threshold_is_five(self):
        content = srt((T1, "one two three four"), (T2, "one two three four five"))
        result = parse_srt(group_srt(content))
        assert [e.text for e in result] == ["one two three four", "one two three four five"]

    def test_empty_input(self, grouper):
        assert grouper.group([]) == []
        assert grouper.group_srt("") == "\n\n"


class TestVtt:
    """Test WebVTT grouping."""

    def test_header_kept_and_no_ordinals(self):
        content = (
            "WEBVTT\n\n"
            "00:00.000 --> 00:01.000\nH\n\n"
            "00:01.000 --> 00:02.000\ni\n\n"
            "00:02.000 --> 00:03.000\nthis line is long enough to stand\n\n"
        )
        assert group_vtt(content, 5) == (
            "WEBVTT\n\n"
            "00:00.000 --> 00:01.000\nH i\n\n"
            "00:02.000 --> 00:03.000\nthis line is long enough to stand\n\n"
        )

    def test_header_line_verbatim(self):
        content = "WEBVTT - lecture\n\n00:00.000 --> 00:01.000\nHello\n\n"
        assert group_vtt(content, 5).startswith("WEBVTT - lecture\n\n")
