"""HTML report generation.

The report is a single self-contained page: run metadata, totals, the risk
distribution and one section per file with a row per finding. Every value taken
from a scanned file is HTML-escaped.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from html import escape
from typing import Mapping, Optional, Sequence

from leakscan.models.scan import RiskLevel
from leakscan.output.records import ResultRecord, parse_record, risk_icon
from leakscan.output.writer import UTF8_BOM


@dataclass
class FileSection:
    path: str
    records: list[ResultRecord]


@dataclass
class HTMLReport:
    scan_directory: str
    duration_s: float
    generated_at: str
    files: list[FileSection] = field(default_factory=list)
    risk_counts: dict[str, int] = field(
        default_factory=lambda: {level.value: 0 for level in RiskLevel}
    )

    @property
    def total_files(self) -> int:
        return len(self.files)

    @property
    def total_findings(self) -> int:
        return sum(len(section.records) for section in self.files)


def build_html_report(
    scan_directory: str,
    duration_s: float,
    file_results: Mapping[str, Sequence[str]],
    generated_at: Optional[str] = None,
) -> HTMLReport:
    """Parse every result line into a report model; files are listed by path."""
    report = HTMLReport(
        scan_directory=scan_directory,
        duration_s=duration_s,
        generated_at=generated_at or time.strftime("%Y-%m-%d %H:%M:%S"),
    )
    for path in sorted(file_results):
        records = [r for r in (parse_record(raw) for raw in file_results[path]) if r is not None]
        if not records:
            continue
        for record in records:
            if record.risk_level in report.risk_counts:
                report.risk_counts[record.risk_level] += 1
        report.files.append(FileSection(path=path, records=records))
    return report


_STYLE = """
        body { font-family: Arial, sans-serif; margin: 20px; background: #f5f5f5; }
        .header { background: #2c3e50; color: white; padding: 20px; border-radius: 5px; }
        .section { background: white; padding: 15px; margin: 20px 0; border-radius: 5px; box-shadow: 0 2px 4px rgba(0,0,0,0.1); }
        .stats { display: flex; justify-content: space-around; }
        .stat-box { text-align: center; padding: 20px; background: #ecf0f1; border-radius: 5px; flex: 1; margin: 0 10px; }
        .stat-number { font-size: 2em; font-weight: bold; color: #2c3e50; }
        .stat-label { color: #7f8c8d; margin-top: 5px; }
        table { width: 100%; border-collapse: collapse; table-layout: fixed; }
        th { background: #34495e; color: white; padding: 10px; text-align: left; }
        td { padding: 8px; border-bottom: 1px solid #ddd; vertical-align: top; word-wrap: break-word; }
        .context { font-family: monospace; white-space: pre-wrap; background: #f4f4f4; }
        .critical { color: #c0392b; font-weight: bold; }
        .high { color: #d35400; font-weight: bold; }
        .medium { color: #b7950b; }
        .low { color: #27ae60; }
"""


def _stat_box(value: object, label: str) -> str:
    return (
        '            <div class="stat-box">\n'
        f'                <div class="stat-number">{escape(str(value))}</div>\n'
        f'                <div class="stat-label">{escape(label)}</div>\n'
        "            </div>\n"
    )


def _record_row(index: int, record: ResultRecord) -> str:
    position = record.offset if record.tag == "BINARY" else record.location
    level = escape(record.risk_level)
    return (
        "            <tr>\n"
        f"                <td>{index}</td>\n"
        f"                <td>{risk_icon(record.risk_level)} {escape(record.title)}</td>\n"
        f"                <td>{escape(record.kind)}</td>\n"
        f'                <td class="{level}">{level}</td>\n'
        f"                <td>{escape(record.matched_value)}</td>\n"
        f"                <td>{escape(position)}</td>\n"
        f'                <td class="context">{escape(record.content)}</td>\n'
        "            </tr>\n"
    )


def render_html_report(report: HTMLReport) -> str:
    html = f"""<!DOCTYPE html>
<html>
<head>
    <title>leakscan Report</title>
    <meta charset="UTF-8">
    <style>{_STYLE}    </style>
</head>
<body>
    <div class="header">
        <h1>leakscan Report</h1>
        <p>Directory: {escape(report.scan_directory)}</p>
        <p>Generated: {escape(report.generated_at)}</p>
        <p>Duration: {report.duration_s:.2f}s</p>
    </div>

    <div class="section">
        <h2>Summary</h2>
        <div class="stats">
"""
    html += _stat_box(report.total_files, "Files with findings")
    html += _stat_box(report.total_findings, "Findings")
    for level in RiskLevel:
        html += _stat_box(report.risk_counts.get(level.value, 0), level.value.capitalize())
    html += """        </div>
    </div>
"""

    for section in report.files:
        html += f"""
    <div class="section">
        <h2>📄 {escape(section.path)} ({len(section.records)})</h2>
        <table>
            <tr><th style="width:4%">#</th><th style="width:16%">Rule</th><th style="width:10%">Type</th>"""
        html += """<th style="width:8%">Risk</th><th style="width:16%">Match</th><th style="width:8%">Position</th><th>Context</th></tr>
"""
        for index, record in enumerate(section.records, start=1):
            html += _record_row(index, record)
        html += """        </table>
    </div>
"""

    html += """</body>
</html>
"""
    return html


def write_html_report(path: str, report: HTMLReport) -> None:
    """Write the rendered report, replacing any existing file.

    Raises:
        OSError: If the file cannot be written.
    """
    with open(path, "w", encoding="utf-8") as fh:
        fh.write(UTF8_BOM)
        fh.write(render_html_report(report))
