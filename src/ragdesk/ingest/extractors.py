"""Document text extractors, dispatched by file type.

Supported types:
  pdf                → pypdf, page by page
  docx               → python-docx paragraphs
  xlsx               → openpyxl, one CSV block per sheet
  xls                → xlrd, one CSV block per sheet
  csv                → read as text
  txt / log / report → read as text (UTF-8, undecodable bytes replaced)
"""

from __future__ import annotations

import csv
import datetime
import io
import zipfile
from pathlib import Path

import docx
import openpyxl
import pypdf
import xlrd
from docx.opc.exceptions import PackageNotFoundError
from openpyxl.utils.exceptions import InvalidFileException
from pypdf.errors import PyPdfError

from ragdesk.errors import ExtractionError, UnsupportedTypeError

_TEXT_TYPES = {"txt", "log", "report", "csv"}
SUPPORTED_TYPES: frozenset[str] = frozenset({"pdf", "docx", "xlsx", "xls"} | _TEXT_TYPES)

_PARSER_ERRORS = (
    OSError,
    ValueError,
    KeyError,
    zipfile.BadZipFile,
    PyPdfError,
    PackageNotFoundError,
    InvalidFileException,
    xlrd.XLRDError,
)


def file_type_of(path: Path | str) -> str:
    """Return the lower-cased extension of *path* without the dot."""
    return Path(path).suffix.lower().lstrip(".")


def extract_text(path: Path | str, file_type: str | None = None) -> str:
    """Extract plain text from the document at *path*.

    Args:
        path: Document location.
        file_type: Declared type tag; defaults to the file extension.

    Raises:
        UnsupportedTypeError: If no extractor exists for the type.
        ExtractionError: If the parser fails.
    """
    ftype = (file_type or file_type_of(path)).lower().lstrip(".")
    if ftype not in SUPPORTED_TYPES:
        raise UnsupportedTypeError(
            f"Unsupported file type '{ftype or '(none)'}'. "
            f"Supported: {', '.join(sorted(SUPPORTED_TYPES))}"
        )

    path = Path(path)
    try:
        if ftype == "pdf":
            return _extract_pdf(path)
        if ftype == "docx":
            return _extract_docx(path)
        if ftype == "xlsx":
            return _extract_xlsx(path)
        if ftype == "xls":
            return _extract_xls(path)
        return path.read_text(encoding="utf-8", errors="replace")
    except _PARSER_ERRORS as exc:
        raise ExtractionError(f"Failed to extract text from '{path}': {exc}") from exc


# ------------------------------------------------------------------
# PDF
# ------------------------------------------------------------------


def _extract_pdf(path: Path) -> str:
    """Extract all page text; pages without text (scans) are skipped."""
    reader = pypdf.PdfReader(str(path))
    parts: list[str] = []
    for page in reader.pages:
        page_text = (page.extract_text() or "").strip()
        if page_text:
            parts.append(page_text)
    return "\n\n".join(parts)


# ------------------------------------------------------------------
# DOCX
# ------------------------------------------------------------------


def _extract_docx(path: Path) -> str:
    """Return body paragraph text, one line per paragraph."""
    document = docx.Document(str(path))
    return "\n".join(para.text for para in document.paragraphs)


# ------------------------------------------------------------------
# Spreadsheets
# ------------------------------------------------------------------


def _extract_xlsx(path: Path) -> str:
    """Render every worksheet as CSV text, joined by newlines."""
    workbook = openpyxl.load_workbook(str(path), read_only=True, data_only=True)
    try:
        blocks = [
            _rows_to_csv(
                [_cell_text(value) for value in row]
                for row in sheet.iter_rows(values_only=True)
            )
            for sheet in workbook.worksheets
        ]
    finally:
        workbook.close()
    return "\n".join(blocks)


def _extract_xls(path: Path) -> str:
    """Render every sheet of a legacy BIFF workbook as CSV text."""
    book = xlrd.open_workbook(str(path))
    try:
        blocks = [
            _rows_to_csv(
                [_xls_cell_text(cell, book.datemode) for cell in sheet.row(i)]
                for i in range(sheet.nrows)
            )
            for sheet in book.sheets()
        ]
    finally:
        book.release_resources()
    return "\n".join(blocks)


def _xls_cell_text(cell: xlrd.sheet.Cell, datemode: int) -> str:
    if cell.ctype == xlrd.XL_CELL_DATE:
        return _cell_text(xlrd.xldate_as_datetime(cell.value, datemode))
    if cell.ctype == xlrd.XL_CELL_BOOLEAN:
        return "TRUE" if cell.value else "FALSE"
    if cell.ctype in (xlrd.XL_CELL_EMPTY, xlrd.XL_CELL_BLANK, xlrd.XL_CELL_ERROR):
        return ""
    return _cell_text(cell.value)


def _cell_text(value: object) -> str:
    """Format one cell value the way a spreadsheet displays it."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, datetime.datetime):
        if value.time() == datetime.time(0):
            return value.date().isoformat()
        return value.isoformat(sep=" ")
    if isinstance(value, (datetime.date, datetime.time)):
        return value.isoformat()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _rows_to_csv(rows) -> str:
    out = io.StringIO()
    writer = csv.writer(out, lineterminator="\n")
    writer.writerows(rows)
    return out.getvalue().rstrip("\n")
