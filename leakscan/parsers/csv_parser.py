"""Cell-oriented keyword scan for CSV files."""

from __future__ import annotations

import csv
from typing import Sequence

from leakscan.parsers.text import first_keyword


def format_csv_line(keyword: str, content: str) -> str:
    return f"CSV|{keyword}|{content}"


def parse_csv(path: str, keywords: Sequence[str]) -> list[str]:
    """Report every cell that contains a keyword (first matching keyword only).

    Raises:
        OSError:   If the file cannot be opened or read.
        csv.Error: If the file is not well-formed CSV.
    """
    results: list[str] = []
    if not keywords:
        return results
    with open(path, newline="", encoding="utf-8-sig", errors="replace") as fh:
        for row in csv.reader(fh):
            for cell in row:
                keyword = first_keyword(cell, keywords)
                if keyword is not None:
                    results.append(format_csv_line(keyword, cell))
    return results
