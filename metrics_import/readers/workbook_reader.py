"""
metrics_import/readers/workbook_reader.py

Decodes an uploaded workbook into raw, uninterpreted sheet rows.

Header policy (applies to every sheet):
- the first row holding at least one non-blank cell is the header row;
- blank header cells are named __EMPTY, __EMPTY_1, __EMPTY_2, ...;
- repeated headers get _1, _2, ... suffixes in column order, so no column
  ever overwrites another.

Rows whose cells are all blank are skipped and blank cells are left out of
the row record. Every other value is passed through as read: no numeric or
date coercion happens here.
"""

from __future__ import annotations

import csv
import io
import logging
from collections.abc import Iterable, Sequence
from datetime import date, datetime, time
from pathlib import PurePosixPath
from typing import Any

from openpyxl import load_workbook

from metrics_import.domain.spreadsheet_import import CellValue, RawRow, RawSheet
from metrics_import.errors import UnsupportedFileTypeError, WorkbookReadError

logger = logging.getLogger(__name__)

EXCEL_EXTENSIONS = frozenset({".xlsx", ".xlsm"})
CSV_EXTENSIONS = frozenset({".csv"})
SUPPORTED_EXTENSIONS = EXCEL_EXTENSIONS | CSV_EXTENSIONS

_BLANK_HEADER = "__EMPTY"


def file_extension(file_name: str) -> str:
    return PurePosixPath((file_name or "").strip().replace("\\", "/")).suffix.lower()


def read_workbook(content: bytes, file_name: str) -> dict[str, RawSheet]:
    """
    Read every sheet of a workbook, keeping physical sheet/row/column order.

    Raises UnsupportedFileTypeError for unknown extensions and
    WorkbookReadError when the content cannot be decoded.
    """

    extension = file_extension(file_name)
    if extension in EXCEL_EXTENSIONS:
        sheets = _read_excel(content)
    elif extension in CSV_EXTENSIONS:
        sheets = _read_csv(content, sheet_name=PurePosixPath(file_name).stem or "Sheet1")
    else:
        raise UnsupportedFileTypeError(f"Unsupported file type: {extension or 'none'}")

    logger.info(
        "Workbook parsed file=%s sheets=%s",
        file_name,
        ", ".join(f"{name}: {sheet.row_count} rows" for name, sheet in sheets.items()) or "none",
    )
    return sheets


def _read_excel(content: bytes) -> dict[str, RawSheet]:
    if not content:
        raise WorkbookReadError("Uploaded workbook is empty.")

    try:
        workbook = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    except Exception as exc:  # noqa: BLE001
        raise WorkbookReadError(f"Unable to read workbook: {exc}") from exc

    sheets: dict[str, RawSheet] = {}
    try:
        for worksheet in workbook.worksheets:
            rows = worksheet.iter_rows(values_only=True)
            sheets[worksheet.title] = build_sheet(worksheet.title, rows)
    except Exception as exc:  # noqa: BLE001
        raise WorkbookReadError(f"Unable to read workbook: {exc}") from exc
    finally:
        workbook.close()

    return sheets


def _read_csv(content: bytes, *, sheet_name: str) -> dict[str, RawSheet]:
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise WorkbookReadError("CSV must be UTF-8 encoded.") from exc

    try:
        rows = list(csv.reader(io.StringIO(text, newline="")))
    except csv.Error as exc:
        raise WorkbookReadError(f"Invalid CSV format: {exc}") from exc

    return {sheet_name: build_sheet(sheet_name, rows)}


def build_sheet(name: str, rows: Iterable[Sequence[Any]]) -> RawSheet:
    """
    Turn physical rows (header row first) into a RawSheet.
    """

    headers: list[str] | None = None
    records: list[RawRow] = []

    for raw_row in rows:
        values = list(raw_row or ())
        if all(_is_blank(value) for value in values):
            continue

        if headers is None:
            headers = dedupe_headers(values)
            continue

        if len(values) > len(headers):
            headers = dedupe_headers(headers + [None] * (len(values) - len(headers)))

        record: RawRow = {}
        for header, value in zip(headers, values):
            if _is_blank(value):
                continue
            record[header] = _as_cell_value(value)
        records.append(record)

    return RawSheet(name=name, headers=tuple(headers or ()), rows=tuple(records))


def dedupe_headers(raw_headers: Sequence[Any]) -> list[str]:
    """
    Name blank headers positionally and suffix repeated ones, in column order.
    """

    result: list[str] = []
    used: set[str] = set()
    for raw in raw_headers:
        base = _BLANK_HEADER if _is_blank(raw) else _header_text(raw)
        candidate = base
        suffix = 0
        while candidate in used:
            suffix += 1
            candidate = f"{base}_{suffix}"
        used.add(candidate)
        result.append(candidate)
    return result


def _header_text(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, datetime):
        return value.date().isoformat() if value.time() == datetime.min.time() else value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value).strip()


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


def _as_cell_value(value: Any) -> CellValue:
    # Formula errors and other exotic cell payloads are kept as text.
    if isinstance(value, (bool, int, float, str, datetime, date, time)):
        return value
    return str(value)
