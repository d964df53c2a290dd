"""Binary credential-detection engine.

Provides ``scan_binary()``: the single entry point for PE buffers. The pipeline is

  1. ``is_valid_pe()`` — fail-closed gate; invalid buffers yield no findings
  2. ``extract_meaningful_strings()`` — ASCII + UTF-16LE candidates
  3. rule pass    — detection corpus over every candidate
  4. keyword pass — caller keywords over every candidate (first keyword per string)
  5. base64 pass  — detection corpus over decoded base64 runs in the raw bytes

A per-file set of offsets is shared by passes 3–5 in that order: a finding
whose offset was already recorded is dropped, even when a different rule produced
it. Two distinct rules resolving to the same byte offset therefore report only the
first. Unresolved offsets count as one shared slot: only the first unresolved
finding of a file survives.

IMPORT RULES:
  - ``import re2`` ONLY — ``import re`` is PROHIBITED in this file.
"""

from __future__ import annotations

from typing import Iterator, Optional, Sequence

from leakscan.constants import DEFAULT_CONTEXT_LENGTH
from leakscan.models.scan import MatchResult, MatchType, RiskLevel
from leakscan.scanner.base64_layer import iter_base64_hits
from leakscan.scanner.offsets import extract_context, find_offset, resolve_offset, truncate_middle
from leakscan.scanner.pe_format import is_valid_pe
from leakscan.scanner.regex_engine import match_rules
from leakscan.scanner.strings import extract_meaningful_strings
from leakscan.utils.logger import get_logger

logger = get_logger(__name__)

KEYWORD_RULE_NAME = "keyword match"
BASE64_RULE_SUFFIX = " (Base64)"
BASE64_DESCRIPTION_SUFFIX = " - base64 encoded"

# Dedup slot shared by every finding whose offset could not be resolved.
UNRESOLVED_OFFSET = -1


class OffsetDeduplicator:
    """Per-file record of offsets already reported.

    Unresolved findings share one sentinel slot, so only the first unresolved
    finding of a file is kept.
    """

    def __init__(self) -> None:
        self._seen: set[int] = set()

    def admit(self, offset: Optional[int]) -> bool:
        """Return True (and record the offset) if a finding at ``offset`` is new."""
        if offset is None:
            offset = UNRESOLVED_OFFSET
        if offset in self._seen:
            return False
        self._seen.add(offset)
        return True


# ─── Passes ───────────────────────────────────────────────────────────────────


def _rule_pass(data: bytes, candidates: Sequence[str], context_length: int) -> Iterator[MatchResult]:
    for candidate in candidates:
        for hit in match_rules(candidate):
            offset = resolve_offset(data, hit)
            yield MatchResult(
                rule_name=hit.rule.name,
                rule_description=hit.rule.description,
                risk_level=hit.rule.risk_level,
                matched_value=hit.value,
                offset=offset,
                context=extract_context(data, offset, context_length, fallback=candidate),
                match_type=MatchType.RULE,
            )


def _keyword_pass(
    data: bytes,
    candidates: Sequence[str],
    keywords: Sequence[str],
    context_length: int,
) -> Iterator[MatchResult]:
    for candidate in candidates:
        keyword = next((kw for kw in keywords if kw and kw in candidate), None)
        if keyword is None:
            continue
        offset = find_offset(data, candidate)
        yield MatchResult(
            rule_name=KEYWORD_RULE_NAME,
            rule_description=f"matched keyword: {keyword}",
            risk_level=RiskLevel.MEDIUM,
            matched_value=candidate,
            offset=offset,
            context=extract_context(data, offset, context_length, fallback=candidate),
            match_type=MatchType.KEYWORD,
        )


def _base64_pass(data: bytes, context_length: int) -> Iterator[MatchResult]:
    half = context_length // 2
    for b64 in iter_base64_hits(data):
        rule = b64.match.rule
        fallback = "Base64: {} -> {}".format(
            truncate_middle(b64.encoded, half),
            truncate_middle(b64.decoded, half),
        )
        yield MatchResult(
            rule_name=rule.name + BASE64_RULE_SUFFIX,
            rule_description=rule.description + BASE64_DESCRIPTION_SUFFIX,
            risk_level=rule.risk_level,
            matched_value=b64.match.value,
            offset=b64.start,
            context=extract_context(data, b64.start, context_length, fallback=fallback),
            match_type=MatchType.BASE64,
        )


# ─── Entry points ─────────────────────────────────────────────────────────────


def scan_binary(
    file_path: str,
    data: bytes,
    keywords: Sequence[str] = (),
    context_length: int = DEFAULT_CONTEXT_LENGTH,
    verbose: bool = False,
) -> list[MatchResult]:
    """Scan one PE buffer and return its ordered, offset-deduplicated findings.

    Never raises for malformed input: a buffer that fails ``is_valid_pe()`` is not
    applicable and yields an empty list.

    Args:
        file_path:      Path of the scanned file (logging only).
        data:           Raw file bytes.
        keywords:       Caller keywords for the keyword pass (may be empty).
        context_length: Bytes on each side of an offset included in the context.
        verbose:        Log progress at INFO instead of DEBUG.

    Returns:
        Findings in pass order: rule matches, keyword matches, base64 matches.
    """
    log = logger.info if verbose else logger.debug

    if not is_valid_pe(data):
        log("Not a valid PE file, skipping", file_path=file_path, size=len(data))
        return []

    log(
        "Analyzing binary file",
        file_path=file_path,
        size_mb=round(len(data) / 1024 / 1024, 2),
    )

    candidates = extract_meaningful_strings(data)
    dedup = OffsetDeduplicator()
    results: list[MatchResult] = []

    passes = (
        _rule_pass(data, candidates, context_length),
        _keyword_pass(data, candidates, keywords, context_length),
        _base64_pass(data, context_length),
    )
    for findings in passes:
        for result in findings:
            if dedup.admit(result.offset):
                results.append(result)

    log(
        "Binary analysis complete",
        file_path=file_path,
        candidates=len(candidates),
        findings=len(results),
    )
    return results


def scan_binary_lines(
    file_path: str,
    data: bytes,
    keywords: Sequence[str] = (),
    context_length: int = DEFAULT_CONTEXT_LENGTH,
    verbose: bool = False,
) -> list[str]:
    """``scan_binary()`` serialized to ``BINARY|...`` tagged lines."""
    return [
        result.to_line()
        for result in scan_binary(file_path, data, keywords, context_length, verbose)
    ]
