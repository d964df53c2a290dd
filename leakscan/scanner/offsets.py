"""Offset and context resolution for binary findings.

Offset resolution is best-effort: a ranked tuple of strategies is tried in order,
each producing a needle to byte-search in the buffer. The first needle found wins;
if none is found the offset is unresolved (None).

Context is a printable window of the bytes around a resolved offset, with every
byte outside ``[0x20, 0x7E]`` rendered as ``.``.
"""

from __future__ import annotations

from typing import Callable, Optional, Sequence

from leakscan.constants import OFFSET_PREFIX_LENGTH
from leakscan.scanner.regex_engine import RuleMatch

#: A strategy maps a rule hit to a needle, or None when it does not apply.
OffsetStrategy = Callable[[RuleMatch], Optional[str]]


def _full_match(hit: RuleMatch) -> Optional[str]:
    return hit.full_match


def _captured_value(hit: RuleMatch) -> Optional[str]:
    return hit.value


def _enclosing_candidate(hit: RuleMatch) -> Optional[str]:
    return hit.source


def _value_prefix(hit: RuleMatch) -> Optional[str]:
    if len(hit.value) > OFFSET_PREFIX_LENGTH:
        return hit.value[:OFFSET_PREFIX_LENGTH]
    return None


OFFSET_STRATEGIES: tuple[OffsetStrategy, ...] = (
    _full_match,
    _captured_value,
    _enclosing_candidate,
    _value_prefix,
)


def find_offset(data: bytes, needle: str) -> Optional[int]:
    """Return the first byte offset of the UTF-8 encoding of ``needle`` in ``data``."""
    if not needle:
        return None
    pos = data.find(needle.encode("utf-8"))
    return pos if pos >= 0 else None


def resolve_offset(
    data: bytes,
    hit: RuleMatch,
    strategies: Sequence[OffsetStrategy] = OFFSET_STRATEGIES,
) -> Optional[int]:
    for strategy in strategies:
        needle = strategy(hit)
        if needle is None:
            continue
        offset = find_offset(data, needle)
        if offset is not None:
            return offset
    return None


def printable_window(data: bytes, offset: int, context_length: int) -> str:
    """Render ``data[offset - n : offset + n]`` (clamped) as printable ASCII."""
    start = max(0, offset - context_length)
    end = min(len(data), offset + context_length)
    return "".join(
        chr(b) if 0x20 <= b <= 0x7E else "." for b in data[start:end]
    )


def truncate_middle(s: str, max_len: int) -> str:
    """Keep both ends of ``s`` around ``...`` when it exceeds ``max_len``."""
    if len(s) <= max_len:
        return s
    half = max_len // 2
    if half == 0:
        return "..."
    return s[:half] + "..." + s[-half:]


def extract_context(
    data: bytes,
    offset: Optional[int],
    context_length: int,
    fallback: str,
) -> str:
    """Context for a finding: the printable window, or a truncated fallback text.

    ``fallback`` is used when the offset is unresolved; it is the enclosing candidate
    string for rule and keyword findings and a synthesized encoded/decoded summary for
    base64 findings.
    """
    if offset is None:
        return truncate_middle(fallback, context_length)
    return printable_window(data, offset, context_length)
