"""Console rendering of scan results.

``ResultFormatter`` turns tagged result lines into boxed, human-readable blocks.
Widths are measured in terminal cells: East Asian wide and fullwidth characters
count as two.
"""

from __future__ import annotations

import unicodedata
from typing import Mapping, Sequence

from leakscan.constants import CONSOLE_WIDTH, DISPLAY_VALUE_MAX
from leakscan.output.records import ResultRecord, parse_record, risk_icon

RISK_LABELS = (
    ("critical", "🔴 critical"),
    ("high", "🟠 high"),
    ("medium", "🟡 medium"),
    ("low", "🟢 low"),
)


def char_width(ch: str) -> int:
    return 2 if unicodedata.east_asian_width(ch) in ("W", "F") else 1


def display_width(text: str) -> int:
    return sum(char_width(ch) for ch in text)


def split_by_width(text: str, max_width: int) -> list[str]:
    """Split ``text`` into chunks no wider than ``max_width`` cells."""
    lines: list[str] = []
    current: list[str] = []
    width = 0
    for ch in text:
        w = char_width(ch)
        if width + w > max_width and current:
            lines.append("".join(current))
            current = []
            width = 0
        current.append(ch)
        width += w
    if current:
        lines.append("".join(current))
    return lines


def truncate_path(path: str, max_len: int) -> str:
    if len(path) <= max_len:
        return path
    return "..." + path[len(path) - max_len + 3:]


def truncate_value(value: str, max_len: int = DISPLAY_VALUE_MAX) -> str:
    if len(value) <= max_len:
        return value
    return value[:max_len] + "..."


class ResultFormatter:
    """Formats file headers, per-finding blocks and the run summary."""

    def __init__(self, width: int = CONSOLE_WIDTH):
        self.width = width

    def rule(self, char: str) -> str:
        return char * self.width + "\n"

    def center(self, text: str) -> str:
        text_width = display_width(text)
        if text_width >= self.width:
            return text + "\n"
        return " " * ((self.width - text_width) // 2) + text + "\n"

    def wrap(self, text: str, prefix: str = "    ") -> str:
        max_width = self.width - len(prefix) - 2
        if display_width(text) <= max_width:
            return prefix + text + "\n"
        return "".join(prefix + line + "\n" for line in split_by_width(text, max_width))

    def format_file_header(self, file_path: str, count: int) -> str:
        return (
            "\n"
            + self.rule("═")
            + self.center(f"📄 File: {truncate_path(file_path, 80)}")
            + self.center(f"🔍 {count} finding(s)")
            + self.rule("═")
            + "\n"
        )

    def format_binary(self, index: int, record: ResultRecord) -> str:
        icon = risk_icon(record.risk_level)
        out = [
            f"\n[{index}] {icon} {record.title}\n",
            self.rule("─"),
            f"  Type:    {record.kind}\n",
            f"  Risk:    {icon} {record.risk_level}\n",
            f"  Match:   {truncate_value(record.matched_value)}\n",
        ]
        if record.has_offset:
            out.append(f"  Offset:  {record.offset}\n")
        out.append("  Context:\n")
        out.append(self.wrap(record.content))
        out.append("\n")
        return "".join(out)

    def format_keyword(self, index: int, record: ResultRecord) -> str:
        icon = "🔑" if record.tag == "TEXT" else "📋"
        return "".join((
            f"\n[{index}] {icon} {record.title}\n",
            self.rule("─"),
            f"  Type:     {record.kind}\n",
            f"  Location: {record.location}\n",
            "  Content:\n",
            self.wrap(record.content),
            "\n",
        ))

    def format_result(self, index: int, raw: str) -> str:
        """Render one tagged line; unparseable lines are returned unchanged."""
        record = parse_record(raw)
        if record is None:
            return raw + "\n"
        if record.tag == "BINARY":
            return self.format_binary(index, record)
        return self.format_keyword(index, record)

    def format_file_block(self, file_path: str, lines: Sequence[str], start_index: int = 1) -> str:
        """Header plus every finding of one file, numbered from ``start_index``."""
        parts = [self.format_file_header(file_path, len(lines))]
        for offset, raw in enumerate(lines):
            parts.append(self.format_result(start_index + offset, raw))
        return "".join(parts)

    def format_summary(
        self,
        total_files: int,
        files_with_findings: int,
        total_findings: int,
        elapsed_s: float,
        stats: Mapping[str, int],
    ) -> str:
        out = [
            "\n",
            self.rule("═"),
            self.center("📊 Scan complete"),
            self.rule("═"),
            f"  Files scanned:       {total_files}\n",
            f"  Files with findings: {files_with_findings}\n",
            f"  Findings:            {total_findings}\n",
            f"  Elapsed:             {elapsed_s:.2f}s\n",
        ]
        if any(stats.values()):
            out.append("\n  Risk distribution:\n")
            for level, label in RISK_LABELS:
                if stats.get(level, 0) > 0:
                    out.append(f"    {label}: {stats[level]}\n")
        out.append(self.rule("═"))
        return "".join(out)
