"""Unit tests for leakscan/parsers/: text, CSV, Word, Excel and kind dispatch."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import docx
import openpyxl
import pytest
import xlrd
from docx.opc.exceptions import PackageNotFoundError
from xlrd.sheet import Cell

from leakscan.models.scan import ScanTask
from leakscan.parsers import parse_file
from leakscan.parsers.csv_parser import parse_csv
from leakscan.parsers.documents import (
    iter_docx_paragraphs,
    iter_xls_cells,
    iter_xlsx_cells,
    parse_docx,
    parse_xls,
    parse_xlsx,
)
from leakscan.parsers.text import first_keyword, parse_text
from leakscan.scanner.pool import scan_file

KEYWORDS = ("password=", "jdbc:", "密码")


# ---------------------------------------------------------------------------
# Text
# ---------------------------------------------------------------------------


class TestFirstKeyword:
    def test_caller_order_wins(self) -> None:
        assert first_keyword("jdbc: password=x", KEYWORDS) == "password="

    def test_no_match(self) -> None:
        assert first_keyword("nothing here", KEYWORDS) is None

    def test_empty_keyword_ignored(self) -> None:
        assert first_keyword("anything", ("", "any")) == "any"


class TestParseText:
    def test_reports_matching_lines(self, tmp_path) -> None:
        path = tmp_path / "app.conf"
        path.write_text("host=db\npassword=hunter2\r\nurl=jdbc:mysql://db\n", encoding="utf-8")
        assert parse_text(str(path), KEYWORDS) == [
            "TEXT|password=|2|password=hunter2",
            "TEXT|jdbc:|3|url=jdbc:mysql://db",
        ]

    def test_one_result_per_line(self, tmp_path) -> None:
        path = tmp_path / "a.txt"
        path.write_text("password=x jdbc:y\n", encoding="utf-8")
        assert len(parse_text(str(path), KEYWORDS)) == 1

    def test_non_ascii_keyword(self, tmp_path) -> None:
        path = tmp_path / "notes.txt"
        path.write_text("数据库密码: abc\n", encoding="utf-8")
        assert parse_text(str(path), KEYWORDS) == ["TEXT|密码|1|数据库密码: abc"]

    def test_undecodable_bytes_do_not_abort(self, tmp_path) -> None:
        path = tmp_path / "mixed.log"
        path.write_bytes(b"\xff\xfe junk\npassword=ok\n")
        assert parse_text(str(path), KEYWORDS) == ["TEXT|password=|2|password=ok"]

    def test_no_keywords(self, tmp_path) -> None:
        path = tmp_path / "a.txt"
        path.write_text("password=x\n", encoding="utf-8")
        assert parse_text(str(path), ()) == []

    def test_missing_file_raises(self, tmp_path) -> None:
        with pytest.raises(OSError):
            parse_text(str(tmp_path / "missing.txt"), KEYWORDS)


# ---------------------------------------------------------------------------
# CSV
# ---------------------------------------------------------------------------


class TestParseCsv:
    def test_reports_matching_cells(self, tmp_path) -> None:
        path = tmp_path / "users.csv"
        path.write_text(
            'name,secret\nalice,password=abc\nbob,"jdbc:mysql://h,db"\n', encoding="utf-8"
        )
        assert parse_csv(str(path), KEYWORDS) == [
            "CSV|password=|password=abc",
            "CSV|jdbc:|jdbc:mysql://h,db",
        ]

    def test_bom_is_stripped(self, tmp_path) -> None:
        path = tmp_path / "bom.csv"
        path.write_bytes("\ufeffpassword=1,x\n".encode("utf-8"))
        assert parse_csv(str(path), KEYWORDS) == ["CSV|password=|password=1"]


# ---------------------------------------------------------------------------
# Word
# ---------------------------------------------------------------------------


class TestParseDocx:
    def test_paragraphs_and_tables(self, tmp_path) -> None:
        document = docx.Document()
        document.add_paragraph("Intro")
        document.add_paragraph("db password=s3cret")
        table = document.add_table(rows=1, cols=2)
        table.cell(0, 0).text = "cell password=t1"
        table.cell(0, 1).text = "plain"
        document.add_paragraph("jdbc:h2:mem")
        path = str(tmp_path / "report.docx")
        document.save(path)

        assert list(iter_docx_paragraphs(path)) == [
            ("paragraph 1", "Intro"),
            ("paragraph 2", "db password=s3cret"),
            ("table 1", "cell password=t1"),
            ("table 1", "plain"),
            ("paragraph 3", "jdbc:h2:mem"),
        ]
        assert parse_docx(path, KEYWORDS) == [
            "WORD|paragraph 2|password=|db password=s3cret",
            "WORD|table 1|password=|cell password=t1",
            "WORD|paragraph 3|jdbc:|jdbc:h2:mem",
        ]

    def test_runs_are_joined(self, tmp_path) -> None:
        document = docx.Document()
        paragraph = document.add_paragraph()
        paragraph.add_run("pass")
        paragraph.add_run("word=x")
        path = str(tmp_path / "split.docx")
        document.save(path)
        assert parse_docx(path, KEYWORDS) == ["WORD|paragraph 1|password=|password=x"]

    def test_nested_table_keeps_outer_number(self, tmp_path) -> None:
        document = docx.Document()
        document.add_table(rows=1, cols=1).cell(0, 0).text = "first"
        outer = document.add_table(rows=1, cols=1)
        inner = outer.cell(0, 0).add_table(rows=1, cols=1)
        inner.cell(0, 0).text = "jdbc:inner"
        path = str(tmp_path / "nested.docx")
        document.save(path)
        assert parse_docx(path, KEYWORDS) == ["WORD|table 2|jdbc:|jdbc:inner"]

    def test_merged_cells_reported_once(self, tmp_path) -> None:
        document = docx.Document()
        table = document.add_table(rows=1, cols=2)
        merged = table.cell(0, 0).merge(table.cell(0, 1))
        merged.text = "password=merged"
        path = str(tmp_path / "merged.docx")
        document.save(path)
        assert parse_docx(path, KEYWORDS) == ["WORD|table 1|password=|password=merged"]

    def test_header_and_footer(self, tmp_path) -> None:
        document = docx.Document()
        document.add_paragraph("body")
        section = document.sections[0]
        section.header.is_linked_to_previous = False
        section.header.add_paragraph("header password=h")
        section.footer.is_linked_to_previous = False
        section.footer.add_paragraph("footer jdbc:f")
        path = str(tmp_path / "hf.docx")
        document.save(path)
        assert parse_docx(path, KEYWORDS) == [
            "WORD|header 1|password=|header password=h",
            "WORD|footer 1|jdbc:|footer jdbc:f",
        ]

    def test_no_keywords(self, tmp_path) -> None:
        document = docx.Document()
        document.add_paragraph("password=x")
        path = str(tmp_path / "a.docx")
        document.save(path)
        assert parse_docx(path, ()) == []

    def test_not_a_package(self, tmp_path) -> None:
        path = tmp_path / "fake.docx"
        path.write_bytes(b"not a zip")
        with pytest.raises(PackageNotFoundError):
            parse_docx(str(path), KEYWORDS)


# ---------------------------------------------------------------------------
# Excel
# ---------------------------------------------------------------------------


class TestParseXlsx:
    def test_cells_in_workbook_order(self, tmp_path) -> None:
        workbook = openpyxl.Workbook()
        first = workbook.active
        first.title = "Zeta"
        first.append(["user", "password=abc"])
        first.append([42, None, "jdbc:pg://x"])
        second = workbook.create_sheet("Alpha")
        second.append(["second password=def", 2.5])
        path = str(tmp_path / "book.xlsx")
        workbook.save(path)

        assert list(iter_xlsx_cells(path)) == [
            "user", "password=abc", "42", "jdbc:pg://x", "second password=def", "2.5",
        ]
        assert parse_xlsx(path, KEYWORDS) == [
            "EXCEL|xlsx|password=|password=abc",
            "EXCEL|xlsx|jdbc:|jdbc:pg://x",
            "EXCEL|xlsx|password=|second password=def",
        ]

    def test_no_keywords(self, tmp_path) -> None:
        workbook = openpyxl.Workbook()
        workbook.active.append(["password=abc"])
        path = str(tmp_path / "b.xlsx")
        workbook.save(path)
        assert parse_xlsx(path, ()) == []


def _fake_xls_book(sheets: list[list[list[Cell]]]) -> MagicMock:
    book = MagicMock()
    book.nsheets = len(sheets)
    sheet_mocks = []
    for rows in sheets:
        sheet = MagicMock()
        sheet.nrows = len(rows)
        sheet.row.side_effect = lambda index, rows=rows: rows[index]
        sheet_mocks.append(sheet)
    book.sheet_by_index.side_effect = lambda index: sheet_mocks[index]
    return book


class TestParseXls:
    def test_cells_in_workbook_order(self) -> None:
        book = _fake_xls_book([
            [
                [Cell(xlrd.XL_CELL_TEXT, "user"), Cell(xlrd.XL_CELL_TEXT, "password=abc")],
                [Cell(xlrd.XL_CELL_NUMBER, 42.0), Cell(xlrd.XL_CELL_EMPTY, "")],
            ],
            [
                [Cell(xlrd.XL_CELL_BLANK, ""), Cell(xlrd.XL_CELL_TEXT, "jdbc:oracle:thin")],
            ],
        ])
        with patch("leakscan.parsers.documents.xlrd.open_workbook", return_value=book) as opener:
            assert list(iter_xls_cells("legacy.xls")) == [
                "user", "password=abc", "42", "jdbc:oracle:thin",
            ]
        opener.assert_called_once_with("legacy.xls", on_demand=True)
        book.release_resources.assert_called_once()

    def test_emits_xls_lines(self) -> None:
        book = _fake_xls_book([[[Cell(xlrd.XL_CELL_TEXT, "db password=old")]]])
        with patch("leakscan.parsers.documents.xlrd.open_workbook", return_value=book):
            assert parse_xls("legacy.xls", KEYWORDS) == ["EXCEL|xls|password=|db password=old"]

    def test_resources_released_on_error(self) -> None:
        book = _fake_xls_book([[]])
        book.sheet_by_index.side_effect = xlrd.XLRDError("corrupt sheet")
        with patch("leakscan.parsers.documents.xlrd.open_workbook", return_value=book):
            with pytest.raises(xlrd.XLRDError):
                parse_xls("legacy.xls", KEYWORDS)
        book.release_resources.assert_called_once()


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------


class TestParseFile:
    def test_text_route(self, tmp_path) -> None:
        path = tmp_path / "a.ini"
        path.write_text("password=x\n", encoding="utf-8")
        assert parse_file(ScanTask(path=str(path), keywords=KEYWORDS)) == [
            "TEXT|password=|1|password=x"
        ]

    def test_binary_route(self, tmp_path, make_pe) -> None:
        path = tmp_path / "app.dll"
        path.write_bytes(make_pe(b"password=Secr3t!123"))
        lines = parse_file(ScanTask(path=str(path)))
        assert len(lines) == 1
        assert lines[0].startswith("BINARY|规则匹配|Password Field|critical|Secr3t!123|")

    def test_binary_route_non_pe(self, tmp_path) -> None:
        path = tmp_path / "lib.so"
        path.write_bytes(b"\x7fELF" + b"password=Secr3t!123")
        assert parse_file(ScanTask(path=str(path))) == []

    def test_xls_route(self) -> None:
        book = _fake_xls_book([[[Cell(xlrd.XL_CELL_TEXT, "password=abc")]]])
        with patch("leakscan.parsers.documents.xlrd.open_workbook", return_value=book):
            assert parse_file(ScanTask(path="legacy.xls", keywords=KEYWORDS)) == [
                "EXCEL|xls|password=|password=abc"
            ]

    def test_corrupt_xls_is_skipped_by_worker(self, tmp_path) -> None:
        path = tmp_path / "legacy.xls"
        path.write_bytes(b"\xd0\xcf\x11\xe0password=abc")
        assert scan_file(ScanTask(path=str(path), keywords=KEYWORDS)) == []

    def test_csv_route(self, tmp_path) -> None:
        path = tmp_path / "a.csv"
        path.write_text("jdbc:x\n", encoding="utf-8")
        assert parse_file(ScanTask(path=str(path), keywords=KEYWORDS)) == ["CSV|jdbc:|jdbc:x"]
