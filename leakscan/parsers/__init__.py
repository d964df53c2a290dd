"""File-kind dispatch.

``parse_file()`` resolves a task's ``FileKind`` once and routes it to the binary
engine or to the matching text/document parser. Every route returns serialized,
tagged result lines.

Parsers raise on I/O or format errors; the caller (the scan worker) decides how to
report them.
"""

from __future__ import annotations

from typing import Callable, Sequence

from leakscan.models.scan import FileKind, ScanTask
from leakscan.parsers.csv_parser import parse_csv
from leakscan.parsers.documents import parse_docx, parse_xls, parse_xlsx
from leakscan.parsers.text import parse_text
from leakscan.scanner.engine import scan_binary_lines
from leakscan.utils.logger import get_logger

logger = get_logger(__name__)

KeywordParser = Callable[[str, Sequence[str]], list]

KEYWORD_PARSERS: dict[FileKind, KeywordParser] = {
    FileKind.WORD: parse_docx,
    FileKind.XLSX: parse_xlsx,
    FileKind.XLS: parse_xls,
    FileKind.CSV: parse_csv,
    FileKind.TEXT: parse_text,
}


def parse_binary(task: ScanTask) -> list[str]:
    with open(task.path, "rb") as fh:
        data = fh.read()
    return scan_binary_lines(
        task.path,
        data,
        keywords=task.keywords,
        context_length=task.context_length,
        verbose=task.verbose,
    )


def parse_file(task: ScanTask) -> list[str]:
    """Scan one file and return its tagged result lines (possibly empty)."""
    kind = task.kind
    logger.debug("Dispatching file", file_path=task.path, kind=kind.value)
    if kind is FileKind.BINARY:
        return parse_binary(task)
    return KEYWORD_PARSERS[kind](task.path, task.keywords)
