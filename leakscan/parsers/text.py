"""Line-oriented keyword scan for plain-text files."""

from __future__ import annotations

from typing import Optional, Sequence


def first_keyword(text: str, keywords: Sequence[str]) -> Optional[str]:
    """Return the first keyword (in caller order) contained in ``text``."""
    for keyword in keywords:
        if keyword and keyword in text:
            return keyword
    return None


def format_text_line(keyword: str, line_number: int, content: str) -> str:
    return f"TEXT|{keyword}|{line_number}|{content}"


def parse_text(path: str, keywords: Sequence[str]) -> list[str]:
    """Report each line that contains a keyword, at most once per line.

    Lines are numbered from 1. The file is read as UTF-8 with undecodable bytes
    replaced, so binary noise never aborts the scan.

    Raises:
        OSError: If the file cannot be opened or read.
    """
    results: list[str] = []
    if not keywords:
        return results
    with open(path, encoding="utf-8", errors="replace") as fh:
        for line_number, line in enumerate(fh, start=1):
            line = line.rstrip("\r\n")
            keyword = first_keyword(line, keywords)
            if keyword is not None:
                results.append(format_text_line(keyword, line_number, line))
    return results
