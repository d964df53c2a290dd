"""Parse serialized result lines back into display records.

Every tag kind is split with a bounded ``split`` so ``|`` characters inside the
trailing free-text field (content or context) survive. Lines with an unknown tag or
too few fields are not records; callers pass them through raw.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from leakscan.models.scan import RiskLevel, UNRESOLVED_OFFSET_TEXT

RISK_ICONS = {
    RiskLevel.CRITICAL.value: "🔴",
    RiskLevel.HIGH.value: "🟠",
    RiskLevel.MEDIUM.value: "🟡",
    RiskLevel.LOW.value: "🟢",
}
UNKNOWN_RISK_ICON = "⚪"


def risk_icon(risk_level: str) -> str:
    return RISK_ICONS.get(risk_level.lower(), UNKNOWN_RISK_ICON)


@dataclass(frozen=True)
class ResultRecord:
    """One parsed result line, normalized across tag kinds."""

    tag: str
    title: str
    kind: str
    risk_level: str
    matched_value: str
    content: str
    location: str = ""
    offset: str = ""

    @property
    def has_offset(self) -> bool:
        return bool(self.offset) and self.offset != UNRESOLVED_OFFSET_TEXT


def parse_record(raw: str) -> Optional[ResultRecord]:
    tag, _, rest = raw.partition("|")
    medium = RiskLevel.MEDIUM.value

    if tag == "TEXT":
        parts = rest.split("|", 2)
        if len(parts) == 3:
            keyword, line_no, content = parts
            return ResultRecord(
                tag=tag, title=f"keyword match: {keyword}", kind="text file",
                risk_level=medium, matched_value=keyword, content=content,
                location=f"line {line_no}",
            )
    elif tag == "WORD":
        parts = rest.split("|", 2)
        if len(parts) == 3:
            location, keyword, content = parts
            return ResultRecord(
                tag=tag, title=f"keyword match: {keyword}", kind="Word document",
                risk_level=medium, matched_value=keyword, content=content,
                location=location,
            )
    elif tag == "EXCEL":
        parts = rest.split("|", 2)
        if len(parts) == 3:
            sheet_type, keyword, content = parts
            return ResultRecord(
                tag=tag, title=f"keyword match: {keyword}", kind=f"Excel workbook ({sheet_type})",
                risk_level=medium, matched_value=keyword, content=content,
                location="cell",
            )
    elif tag == "CSV":
        parts = rest.split("|", 1)
        if len(parts) == 2:
            keyword, content = parts
            return ResultRecord(
                tag=tag, title=f"keyword match: {keyword}", kind="CSV file",
                risk_level=medium, matched_value=keyword, content=content,
                location="field",
            )
    elif tag == "BINARY":
        parts = rest.split("|", 5)
        if len(parts) == 6:
            match_type, rule_name, risk_level, value, offset, context = parts
            return ResultRecord(
                tag=tag, title=rule_name, kind=match_type,
                risk_level=risk_level.lower(), matched_value=value, content=context,
                offset=offset,
            )
    return None


def risk_distribution(lines: Iterable[str]) -> dict[str, int]:
    """Count parsed records per risk level (all four levels always present)."""
    stats = {level.value: 0 for level in RiskLevel}
    for raw in lines:
        record = parse_record(raw)
        if record is not None and record.risk_level in stats:
            stats[record.risk_level] += 1
    return stats
