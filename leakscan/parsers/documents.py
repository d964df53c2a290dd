"""Keyword scan for Office documents: Word (.docx) and Excel (.xlsx, .xls).

Parsing is delegated to python-docx, openpyxl (Open XML workbooks) and xlrd
(legacy BIFF workbooks).

Word output:  ``WORD|<location>|<keyword>|<text>`` where location is
``paragraph N`` for body paragraphs (numbered from 1), ``table N`` for any paragraph
inside the N-th body table (nested tables included), and ``header N`` /
``footer N`` for the header and footer of section N.

Excel output: ``EXCEL|<xlsx|xls>|<keyword>|<cell value>`` for every matching cell of
every worksheet, in workbook order.
"""

from __future__ import annotations

from typing import Iterator, Sequence

import docx
import openpyxl
import xlrd
from docx.document import Document as DocxDocument
from docx.oxml.ns import qn
from docx.table import Table
from docx.text.paragraph import Paragraph

from leakscan.parsers.text import first_keyword

_PARAGRAPH_TAG = qn("w:p")
_TABLE_TAG = qn("w:tbl")


def format_word_line(location: str, keyword: str, content: str) -> str:
    return f"WORD|{location}|{keyword}|{content}"


def format_excel_line(sheet_type: str, keyword: str, content: str) -> str:
    return f"EXCEL|{sheet_type}|{keyword}|{content}"


def _match_lines(texts: Iterator[str], keywords: Sequence[str], sheet_type: str) -> list[str]:
    results: list[str] = []
    for text in texts:
        keyword = first_keyword(text, keywords)
        if keyword is not None:
            results.append(format_excel_line(sheet_type, keyword, text))
    return results


# ─── Word ─────────────────────────────────────────────────────────────────────


def _table_texts(table: Table) -> Iterator[str]:
    """Yield paragraph text of every cell, descending into nested tables.

    Merged cells are reported once.
    """
    seen = set()
    for row in table.rows:
        for cell in row.cells:
            if cell._tc in seen:
                continue
            seen.add(cell._tc)
            for paragraph in cell.paragraphs:
                yield paragraph.text
            for nested in cell.tables:
                yield from _table_texts(nested)


def _body_blocks(document: DocxDocument) -> Iterator[tuple[str, str]]:
    paragraph_no = 0
    table_no = 0
    for child in document.element.body.iterchildren():
        if child.tag == _PARAGRAPH_TAG:
            paragraph_no += 1
            yield f"paragraph {paragraph_no}", Paragraph(child, document).text
        elif child.tag == _TABLE_TAG:
            table_no += 1
            for text in _table_texts(Table(child, document)):
                yield f"table {table_no}", text


def _header_footer_blocks(document: DocxDocument) -> Iterator[tuple[str, str]]:
    for section_no, section in enumerate(document.sections, start=1):
        for kind, part in (("header", section.header), ("footer", section.footer)):
            # A linked header/footer repeats the previous section's content.
            if part.is_linked_to_previous:
                continue
            for paragraph in part.paragraphs:
                yield f"{kind} {section_no}", paragraph.text
            for table in part.tables:
                for text in _table_texts(table):
                    yield f"{kind} {section_no}", text


def iter_docx_paragraphs(path: str) -> Iterator[tuple[str, str]]:
    """Yield ``(location, text)`` for every non-empty paragraph, body first."""
    document = docx.Document(path)
    for location, text in _body_blocks(document):
        if text:
            yield location, text
    for location, text in _header_footer_blocks(document):
        if text:
            yield location, text


def parse_docx(path: str, keywords: Sequence[str]) -> list[str]:
    """Raises whatever python-docx raises for a missing or corrupt package."""
    results: list[str] = []
    if not keywords:
        return results
    for location, text in iter_docx_paragraphs(path):
        keyword = first_keyword(text, keywords)
        if keyword is not None:
            results.append(format_word_line(location, keyword, text))
    return results


# ─── Excel ────────────────────────────────────────────────────────────────────


def _cell_text(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def iter_xlsx_cells(path: str) -> Iterator[str]:
    """Yield every non-empty cell value, sheet by sheet in workbook order, row by row."""
    workbook = openpyxl.load_workbook(path, read_only=True, data_only=True)
    try:
        for sheet in workbook.worksheets:
            for row in sheet.iter_rows(values_only=True):
                for value in row:
                    text = _cell_text(value)
                    if text:
                        yield text
    finally:
        workbook.close()


def iter_xls_cells(path: str) -> Iterator[str]:
    """Same as ``iter_xlsx_cells`` for legacy BIFF (.xls) workbooks."""
    book = xlrd.open_workbook(path, on_demand=True)
    try:
        for index in range(book.nsheets):
            sheet = book.sheet_by_index(index)
            for row_no in range(sheet.nrows):
                for cell in sheet.row(row_no):
                    if cell.ctype in (xlrd.XL_CELL_EMPTY, xlrd.XL_CELL_BLANK):
                        continue
                    text = _cell_text(cell.value)
                    if text:
                        yield text
            book.unload_sheet(index)
    finally:
        book.release_resources()


def parse_xlsx(path: str, keywords: Sequence[str]) -> list[str]:
    if not keywords:
        return []
    return _match_lines(iter_xlsx_cells(path), keywords, "xlsx")


def parse_xls(path: str, keywords: Sequence[str]) -> list[str]:
    if not keywords:
        return []
    return _match_lines(iter_xls_cells(path), keywords, "xls")
