"""Candidate string extraction from raw bytes.

Two streams are scanned independently over the same buffer:

  - ASCII runs: maximal runs of bytes in ``[0x20, 0x7E]``.
  - UTF-16LE runs: maximal runs of 2-byte aligned little-endian code units whose
    value lies in ``[0x20, 0x7E]``.

Runs of at least MIN_STRING_LENGTH are filtered through ``is_meaningful()`` and
deduplicated in first-seen order (ASCII stream first, then UTF-16).

IMPORT RULES:
  - ``import re2`` ONLY — ``import re`` is PROHIBITED in this file.
"""

from __future__ import annotations

from typing import Iterator

from leakscan.constants import (
    GARBAGE_MIN_LENGTH,
    GARBAGE_RATIO,
    MAX_STRING_LENGTH,
    MIN_STRING_LENGTH,
    REPEAT_MIN_LENGTH,
    REPEAT_RUN,
)
from leakscan.scanner.definitions import (
    ASCII_RUN_PATTERN,
    MEANINGFUL_KEYWORDS,
    STRUCTURAL_MARKERS,
    TEXT_RUN_PATTERN,
)

_TEXT_CONTROLS = frozenset("\t\n\r")


def iter_ascii_runs(data: bytes) -> Iterator[str]:
    """Yield every printable ASCII run of at least MIN_STRING_LENGTH bytes."""
    for m in ASCII_RUN_PATTERN.finditer(data):
        yield m.group(0).decode("ascii")


def iter_utf16_runs(data: bytes) -> Iterator[str]:
    """Yield every aligned UTF-16LE printable run of at least MIN_STRING_LENGTH units.

    The aligned prefix of the buffer is decoded as UTF-16LE with replacement, so each
    code unit outside the printable range (including unpaired surrogates) becomes a
    non-printable character that terminates the run.
    """
    usable = len(data) - (len(data) % 2)
    if usable < 2 * MIN_STRING_LENGTH:
        return
    text = data[:usable].decode("utf-16-le", errors="replace")
    for m in TEXT_RUN_PATTERN.finditer(text):
        yield m.group(0)


def has_repeating_pattern(s: str) -> bool:
    """True when REPEAT_RUN identical characters start before position ``len - 10``."""
    if len(s) < REPEAT_MIN_LENGTH:
        return False
    for i in range(len(s) - GARBAGE_MIN_LENGTH):
        if s[i:i + REPEAT_RUN] == s[i] * REPEAT_RUN:
            return True
    return False


def is_likely_garbage(s: str) -> bool:
    if len(s) < GARBAGE_MIN_LENGTH:
        return False
    special = sum(
        1 for ch in s
        if not (" " <= ch <= "~") and ch not in _TEXT_CONTROLS
    )
    if special / len(s) > GARBAGE_RATIO:
        return True
    return has_repeating_pattern(s)


def is_meaningful(s: str) -> bool:
    """Relevance filter applied to every candidate before it is retained.

    Rejects strings outside ``[MIN_STRING_LENGTH, MAX_STRING_LENGTH]`` and likely
    garbage; accepts only strings that mention a credential-related keyword
    (case-insensitive) or a connection-string marker.
    """
    if len(s) > MAX_STRING_LENGTH or len(s) < MIN_STRING_LENGTH:
        return False
    if is_likely_garbage(s):
        return False
    lowered = s.lower()
    if any(keyword in lowered for keyword in MEANINGFUL_KEYWORDS):
        return True
    return any(marker in s for marker in STRUCTURAL_MARKERS)


def extract_meaningful_strings(data: bytes) -> list[str]:
    """Extract the deduplicated, order-preserving candidate list for one buffer."""
    seen: set[str] = set()
    results: list[str] = []
    for stream in (iter_ascii_runs(data), iter_utf16_runs(data)):
        for candidate in stream:
            if candidate in seen or not is_meaningful(candidate):
                continue
            seen.add(candidate)
            results.append(candidate)
    return results
