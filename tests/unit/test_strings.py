"""Unit tests for leakscan/scanner/strings.py."""

from __future__ import annotations

from leakscan.scanner.strings import (
    extract_meaningful_strings,
    has_repeating_pattern,
    is_likely_garbage,
    is_meaningful,
    iter_ascii_runs,
    iter_utf16_runs,
)


class TestAsciiRuns:
    def test_runs_split_on_non_printables(self) -> None:
        data = b"\x00password=abc123\x01short\x02database_host\xff"
        assert list(iter_ascii_runs(data)) == ["password=abc123", "database_host"]

    def test_minimum_length_is_eight(self) -> None:
        assert list(iter_ascii_runs(b"\x001234567\x00")) == []
        assert list(iter_ascii_runs(b"\x0012345678\x00")) == ["12345678"]


class TestUtf16Runs:
    def test_aligned_utf16le_run(self) -> None:
        data = b"\x00\x00" + "user=admin1".encode("utf-16-le") + b"\x00\x00"
        assert list(iter_utf16_runs(data)) == ["user=admin1"]

    def test_misaligned_run_not_found(self) -> None:
        data = b"\x00" + "user=admin1".encode("utf-16-le") + b"\x00\x00\x00"
        assert "user=admin1" not in list(iter_utf16_runs(data))

    def test_short_buffer(self) -> None:
        assert list(iter_utf16_runs(b"a\x00b\x00")) == []

    def test_ascii_bytes_do_not_form_utf16_runs(self) -> None:
        assert list(iter_utf16_runs(b"password=abc123\x00")) == []


class TestGarbage:
    def test_short_strings_never_garbage(self) -> None:
        assert is_likely_garbage("\x01\x02\x03") is False

    def test_high_non_text_ratio(self) -> None:
        assert is_likely_garbage("abc\x01\x02\x03\x04\x05def") is True

    def test_whitespace_controls_count_as_text(self) -> None:
        assert is_likely_garbage("key\tvalue\r\nmore") is False

    def test_repeating_run_early_in_long_string(self) -> None:
        assert has_repeating_pattern("password=aaaaaaaaaaaaaaaa") is True
        assert is_likely_garbage("password=aaaaaaaaaaaaaaaa") is True

    def test_repeating_run_near_end_is_tolerated(self) -> None:
        # len 21: only runs starting before index 11 count.
        assert has_repeating_pattern("password=xyz12345aaaa") is False

    def test_repeat_check_needs_twenty_chars(self) -> None:
        assert has_repeating_pattern("aaaaaaaaaaaaaaaaaaa") is False


class TestIsMeaningful:
    def test_keyword_case_insensitive(self) -> None:
        assert is_meaningful("PASSWORD=hunter22") is True

    def test_structural_marker(self) -> None:
        assert is_meaningful("Data Source=db01;") is True
        assert is_meaningful("https://example.org") is True

    def test_no_keyword_rejected(self) -> None:
        assert is_meaningful("just some text") is False

    def test_length_bounds(self) -> None:
        assert is_meaningful("key=1") is False
        assert is_meaningful("token=" + "ab" * 300) is False

    def test_localized_keyword(self) -> None:
        assert is_meaningful("账号: admin01") is True


class TestExtractMeaningfulStrings:
    def test_ascii_before_utf16_and_dedup(self) -> None:
        utf16 = "server=db.local".encode("utf-16-le")
        data = (
            b"\x00\x00password=abc123\x00\x00\x00"
            + utf16
            + b"\x00\x00password=abc123\x00\x00"
            + b"connect to host\x00\x00"
        )
        assert extract_meaningful_strings(data) == [
            "password=abc123",
            "connect to host",
            "server=db.local",
        ]

    def test_same_string_in_both_streams_kept_once(self) -> None:
        data = (
            b"\x00\x00password=abc123\x00\x00\x00"
            + "password=abc123".encode("utf-16-le")
            + b"\x00\x00"
        )
        assert extract_meaningful_strings(data).count("password=abc123") == 1

    def test_empty_buffer(self) -> None:
        assert extract_meaningful_strings(b"") == []
