from __future__ import annotations

import io
import logging
import re
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, Dict, List, Union

import pandas as pd

from core.table import TabularModel, is_empty_cell, normalize_cell, trim_row

logger = logging.getLogger(__name__)

EXCEL_SUFFIXES = {".xlsx", ".xlsm"}
CSV_SUFFIXES = {".csv"}
MAX_SHEET_NAME = 31
INVALID_SHEET_CHARS = re.compile(r"[\[\]:*?/\\]")

Source = Union[bytes, BinaryIO, Path, str]


class WorkbookError(ValueError):
    """The uploaded file could not be decoded into tables."""


@dataclass
class Workbook:
    file_name: str
    sheet_names: List[str] = field(default_factory=list)
    sheets: Dict[str, TabularModel] = field(default_factory=dict)
    import_ms: float = 0.0

    def table(self, sheet: str) -> TabularModel:
        return self.sheets[sheet]


def _read_source(source: Source) -> bytes:
    if isinstance(source, bytes):
        return source
    if isinstance(source, (str, Path)):
        return Path(source).read_bytes()
    return source.read()


def frame_to_table(df: pd.DataFrame) -> TabularModel:
    matrix = [trim_row(row) for row in df.itertuples(index=False, name=None)]
    while matrix and not matrix[-1]:
        matrix.pop()
    if not matrix:
        return TabularModel()
    return TabularModel(header=matrix[0], rows=matrix[1:])


def _decode_excel(raw: bytes) -> Dict[str, TabularModel]:
    sheets: Dict[str, TabularModel] = {}
    with pd.ExcelFile(io.BytesIO(raw), engine="openpyxl") as xls:
        for name in xls.sheet_names:
            df = xls.parse(name, header=None, dtype=object, keep_default_na=False, na_values=[])
            sheets[str(name)] = frame_to_table(df)
    return sheets


def _decode_csv(raw: bytes, sheet_name: str) -> Dict[str, TabularModel]:
    try:
        text = raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        text = raw.decode("latin-1")
    if not text.strip():
        return {sheet_name: TabularModel()}
    df = pd.read_csv(io.StringIO(text), header=None, dtype=object, keep_default_na=False, skip_blank_lines=False)
    return {sheet_name: frame_to_table(df)}


def read_workbook(source: Source, file_name: str) -> Workbook:
    """Decode an uploaded spreadsheet into one table per sheet.

    Raises WorkbookError for unsupported extensions and for files the reader
    cannot parse; nothing is returned for a partially decoded file.
    """
    suffix = Path(file_name).suffix.lower()
    if suffix not in EXCEL_SUFFIXES | CSV_SUFFIXES:
        raise WorkbookError(f"Unsupported file type: {suffix or file_name}")

    started = time.perf_counter()
    try:
        raw = _read_source(source)
        if suffix in CSV_SUFFIXES:
            sheets = _decode_csv(raw, Path(file_name).stem or "Sheet1")
        else:
            sheets = _decode_excel(raw)
    except WorkbookError:
        raise
    except Exception as exc:
        logger.warning("Failed to decode %s: %s", file_name, exc)
        raise WorkbookError(f"Error parsing {file_name}. Please check the file format.") from exc
    elapsed = (time.perf_counter() - started) * 1000

    if not sheets:
        raise WorkbookError(f"{file_name} contains no sheets")

    logger.info("Imported %s: %d sheet(s) in %.2f ms", file_name, len(sheets), elapsed)
    return Workbook(file_name=file_name, sheet_names=list(sheets), sheets=sheets, import_ms=elapsed)


def safe_sheet_name(name: str) -> str:
    cleaned = INVALID_SHEET_CHARS.sub("_", name or "").strip("'")
    return (cleaned or "Sheet1")[:MAX_SHEET_NAME]


def export_file_name(file_name: str) -> str:
    stem = Path(file_name).stem if file_name else ""
    return f"{stem or 'export'}_modified.xlsx"


def _export_cell(value: object) -> object:
    value = normalize_cell(value)
    if is_empty_cell(value):
        return None
    return value


def export_table(table: TabularModel, sheet_name: str) -> bytes:
    """Serialize a table (header row first, ragged rows kept) to xlsx bytes."""
    matrix = [[_export_cell(v) for v in row] for row in table.to_matrix()]
    df = pd.DataFrame(matrix, dtype=object)
    buf = io.BytesIO()
    with pd.ExcelWriter(buf, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name=safe_sheet_name(sheet_name), index=False, header=False)
    return buf.getvalue()
