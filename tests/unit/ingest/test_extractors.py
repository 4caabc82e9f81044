"""Tests for document text extractors."""

from __future__ import annotations

import datetime
import zipfile
from pathlib import Path
from unittest.mock import MagicMock, patch

import docx
import openpyxl
import pytest
import xlrd

from ragdesk.errors import ExtractionError, UnsupportedTypeError
from ragdesk.ingest.extractors import SUPPORTED_TYPES, extract_text, file_type_of


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------


def _mock_reader(page_texts: list[str | None]):
    """Return a mock PdfReader with pages that yield the given texts."""
    pages = []
    for text in page_texts:
        page = MagicMock()
        page.extract_text.return_value = text
        pages.append(page)
    reader = MagicMock()
    reader.pages = pages
    return reader


def _write_docx(path: Path, paragraphs: list[str]) -> None:
    document = docx.Document()
    for text in paragraphs:
        document.add_paragraph(text)
    document.save(str(path))


def _write_xlsx(path: Path) -> None:
    workbook = openpyxl.Workbook()
    sales = workbook.active
    sales.title = "Sales"
    sales.append(["Region", "Total"])
    sales.append(["North", 42])
    costs = workbook.create_sheet("Costs")
    costs.append(["Rent", None, 9])
    workbook.save(str(path))


def _xls_book(rows: list[list[xlrd.sheet.Cell]], datemode: int = 0) -> MagicMock:
    sheet = MagicMock()
    sheet.nrows = len(rows)
    sheet.row.side_effect = lambda i: rows[i]
    book = MagicMock()
    book.datemode = datemode
    book.sheets.return_value = [sheet]
    return book


# ------------------------------------------------------------------
# Dispatch
# ------------------------------------------------------------------


def test_file_type_of():
    assert file_type_of("Report.PDF") == "pdf"
    assert file_type_of(Path("a/b/data.xlsx")) == "xlsx"
    assert file_type_of("noext") == ""


def test_unsupported_type_raises(tmp_path: Path):
    p = tmp_path / "image.png"
    p.write_bytes(b"\x89PNG")
    with pytest.raises(UnsupportedTypeError, match="png"):
        extract_text(p)


def test_unsupported_type_is_validation_category(tmp_path: Path):
    with pytest.raises(UnsupportedTypeError) as excinfo:
        extract_text(tmp_path / "x.exe")
    assert excinfo.value.category == "validation"


@pytest.mark.parametrize("ext", ["txt", "log", "report", "csv"])
def test_text_types_read_verbatim(tmp_path: Path, ext: str):
    p = tmp_path / f"notes.{ext}"
    p.write_text("line one\nline two", encoding="utf-8")
    assert extract_text(p) == "line one\nline two"


def test_declared_type_overrides_extension(tmp_path: Path):
    p = tmp_path / "upload.bin"
    p.write_text("plain words", encoding="utf-8")
    assert extract_text(p, "txt") == "plain words"


def test_missing_file_raises_extraction_error(tmp_path: Path):
    with pytest.raises(ExtractionError):
        extract_text(tmp_path / "gone.txt")


# ------------------------------------------------------------------
# PDF
# ------------------------------------------------------------------


def test_pdf_pages_joined_and_empty_pages_skipped():
    with patch("ragdesk.ingest.extractors.pypdf") as mock_pypdf:
        mock_pypdf.PdfReader.return_value = _mock_reader(["Page one.", "", None, "  Page four. "])
        text = extract_text("doc.pdf")
    assert text == "Page one.\n\nPage four."


def test_pdf_no_text_returns_empty():
    with patch("ragdesk.ingest.extractors.pypdf") as mock_pypdf:
        mock_pypdf.PdfReader.return_value = _mock_reader([None, ""])
        assert extract_text("scan.pdf") == ""


def test_pdf_parser_error_wrapped(tmp_path: Path):
    p = tmp_path / "broken.pdf"
    p.write_bytes(b"this is not a pdf")
    with pytest.raises(ExtractionError):
        extract_text(p)


# ------------------------------------------------------------------
# DOCX
# ------------------------------------------------------------------


def test_docx_paragraphs(tmp_path: Path):
    p = tmp_path / "memo.docx"
    _write_docx(p, ["Quarterly report", "Revenue grew 12%."])
    assert extract_text(p) == "Quarterly report\nRevenue grew 12%."


def test_docx_not_a_zip_raises(tmp_path: Path):
    p = tmp_path / "fake.docx"
    p.write_text("not a zip", encoding="utf-8")
    with pytest.raises(ExtractionError):
        extract_text(p)


def test_docx_missing_document_part_raises(tmp_path: Path):
    p = tmp_path / "empty.docx"
    with zipfile.ZipFile(p, "w") as zf:
        zf.writestr("other.xml", "<x/>")
    with pytest.raises(ExtractionError):
        extract_text(p)


def test_docx_given_a_workbook_raises(tmp_path: Path):
    p = tmp_path / "book.xlsx"
    _write_xlsx(p)
    with pytest.raises(ExtractionError):
        extract_text(p, "docx")


# ------------------------------------------------------------------
# XLSX
# ------------------------------------------------------------------


def test_xlsx_sheets_rendered_as_csv(tmp_path: Path):
    p = tmp_path / "book.xlsx"
    _write_xlsx(p)
    assert extract_text(p) == "Region,Total\nNorth,42\nRent,,9"


def test_xlsx_dates_and_numbers_formatted(tmp_path: Path):
    p = tmp_path / "ledger.xlsx"
    workbook = openpyxl.Workbook()
    workbook.active.append([datetime.date(2023, 7, 16), 12.0, 0.5, True])
    workbook.save(str(p))
    assert extract_text(p) == "2023-07-16,12,0.5,TRUE"


def test_xlsx_not_a_workbook_raises(tmp_path: Path):
    p = tmp_path / "book.xlsx"
    p.write_text("a,b\n1,2", encoding="utf-8")
    with pytest.raises(ExtractionError):
        extract_text(p)


# ------------------------------------------------------------------
# XLS
# ------------------------------------------------------------------


def test_xls_sheet_rendered_as_csv():
    rows = [
        [xlrd.sheet.Cell(xlrd.XL_CELL_TEXT, "Invoice"), xlrd.sheet.Cell(xlrd.XL_CELL_TEXT, "Due")],
        [xlrd.sheet.Cell(xlrd.XL_CELL_NUMBER, 1001.0), xlrd.sheet.Cell(xlrd.XL_CELL_DATE, 45123.0)],
        [xlrd.sheet.Cell(xlrd.XL_CELL_TEXT, "void"), xlrd.sheet.Cell(xlrd.XL_CELL_EMPTY, "")],
    ]
    book = _xls_book(rows)
    with patch("ragdesk.ingest.extractors.xlrd.open_workbook", return_value=book) as open_wb:
        text = extract_text("legacy.xls")

    assert text == "Invoice,Due\n1001,2023-07-16\nvoid,"
    open_wb.assert_called_once_with("legacy.xls")
    book.release_resources.assert_called_once()


def test_xls_reader_error_wrapped(tmp_path: Path):
    p = tmp_path / "broken.xls"
    p.write_bytes(b"definitely not BIFF")
    with pytest.raises(ExtractionError):
        extract_text(p)


def test_xls_is_supported_type():
    assert "xls" in SUPPORTED_TYPES
