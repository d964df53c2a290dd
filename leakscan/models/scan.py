"""Scan data models: RiskLevel, MatchType, FileKind, MatchResult, ScanTask.

``MatchResult`` is the engine's output record. It is immutable once created and is
serialized to the pipe-delimited ``BINARY|...`` line by ``to_line()``; the text and
document parsers emit their own tagged lines (``TEXT|``, ``CSV|``, ``WORD|``,
``EXCEL|``) that share the same convention.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from leakscan.constants import BINARY_EXTENSIONS

#: Serialized form of an offset that could not be located in the buffer.
UNRESOLVED_OFFSET_TEXT = "0x-1"


class RiskLevel(str, Enum):
    """Risk classification of a finding."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class MatchType(str, Enum):
    """Pass that produced a binary finding.

    The values are part of the serialized result format and must not change.
    """

    RULE = "规则匹配"
    KEYWORD = "关键字"
    BASE64 = "Base64编码"


class FileKind(str, Enum):
    """Closed set of file kinds, resolved once per file at dispatch time."""

    BINARY = "binary"
    WORD = "word"
    XLSX = "xlsx"
    XLS = "xls"
    CSV = "csv"
    TEXT = "text"

    @classmethod
    def from_path(cls, path: str) -> "FileKind":
        lowered = path.lower()
        if lowered.endswith(BINARY_EXTENSIONS):
            return cls.BINARY
        if lowered.endswith(".docx"):
            return cls.WORD
        if lowered.endswith(".xlsx"):
            return cls.XLSX
        if lowered.endswith(".xls"):
            return cls.XLS
        if lowered.endswith(".csv"):
            return cls.CSV
        return cls.TEXT


@dataclass(frozen=True)
class MatchResult:
    """One finding produced by the binary detection engine.

    Fields:
        rule_name:        Detection rule name (suffixed `` (Base64)`` for base64 hits).
        rule_description: Human-readable rule description.
        risk_level:       RiskLevel of the rule (keyword hits are always MEDIUM).
        matched_value:    Captured credential value, or the candidate for keyword hits.
        offset:           Byte offset into the scanned buffer; None when unresolved.
        context:          Printable rendering of the bytes around ``offset``.
        match_type:       Pass that produced the finding.
    """

    rule_name: str
    rule_description: str
    risk_level: RiskLevel
    matched_value: str
    offset: Optional[int]
    context: str
    match_type: MatchType = MatchType.RULE

    @property
    def offset_text(self) -> str:
        if self.offset is None:
            return UNRESOLVED_OFFSET_TEXT
        return f"0x{self.offset:X}"

    def to_line(self) -> str:
        """Serialize as ``BINARY|type|rule|risk|value|0xOFFSET|context``."""
        # Context is written in full; it was bounded when extracted and is not
        # truncated again here.
        return "|".join((
            "BINARY",
            self.match_type.value,
            self.rule_name,
            self.risk_level.value,
            self.matched_value,
            self.offset_text,
            self.context,
        ))


@dataclass(frozen=True)
class ScanTask:
    """One file to scan plus the shared read-only scan settings."""

    path: str
    keywords: tuple[str, ...] = ()
    context_length: int = 150
    verbose: bool = False

    @property
    def kind(self) -> FileKind:
        return FileKind.from_path(self.path)
