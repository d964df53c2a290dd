"""Base64 layer — decode base64 runs in raw bytes and re-apply the rule corpus.

Decode failures and non-text payloads are silently discarded; they are expected
for the many base64-alphabet runs that are not base64 at all.

IMPORT RULES:
  - ``import re2`` ONLY — ``import re`` is PROHIBITED in this file.
"""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass
from typing import Iterator, Optional

from leakscan.constants import BASE64_TEXT_RATIO
from leakscan.scanner.definitions import BASE64_RUN_PATTERN
from leakscan.scanner.regex_engine import RuleMatch, match_rules

_TEXT_CONTROL_BYTES = frozenset((0x09, 0x0A, 0x0D))


@dataclass(frozen=True)
class Base64Hit:
    """A rule hit found in the decoded form of a base64 run.

    Fields:
        start:    Byte offset of the encoded run in the original buffer.
        encoded:  The encoded run as found in the buffer.
        decoded:  The decoded payload as text.
        match:    The accepted rule hit inside ``decoded``.
    """

    start: int
    encoded: str
    decoded: str
    match: RuleMatch


def is_text(payload: bytes) -> bool:
    """True when more than BASE64_TEXT_RATIO of ``payload`` is printable or whitespace."""
    if not payload:
        return False
    printable = sum(
        1 for b in payload
        if 0x20 <= b <= 0x7E or b in _TEXT_CONTROL_BYTES
    )
    return printable / len(payload) > BASE64_TEXT_RATIO


def decode_run(encoded: bytes) -> Optional[str]:
    """Strictly decode one base64 run; None when it is invalid or not text."""
    try:
        payload = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError):
        return None
    if not is_text(payload):
        return None
    return payload.decode("utf-8", errors="replace")


def iter_base64_hits(data: bytes) -> Iterator[Base64Hit]:
    """Yield rule hits from every decodable base64 run, in buffer order."""
    for m in BASE64_RUN_PATTERN.finditer(data):
        decoded = decode_run(m.group(0))
        if decoded is None:
            continue
        encoded = m.group(0).decode("ascii")
        for hit in match_rules(decoded):
            yield Base64Hit(start=m.start(), encoded=encoded, decoded=decoded, match=hit)
