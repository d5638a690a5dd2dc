from __future__ import annotations

import copy
import math
from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Any, Iterable, List, Optional, Sequence, Union

Cell = Union[str, int, float, None]
Row = List[Cell]

NOT_FOUND = -1


def is_empty_cell(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    if isinstance(value, str) and value == "":
        return True
    return False


def stringify_cell(value: object) -> str:
    """Canonical text form of a cell, shared by counting, search and display."""
    if is_empty_cell(value):
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float):
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, datetime):
        if value.time() == time(0, 0):
            return value.date().isoformat()
        return value.isoformat(sep=" ")
    if isinstance(value, (date, time)):
        return value.isoformat()
    return str(value)


def _is_missing(value: object) -> bool:
    # NaN and NaT are the only values unequal to themselves
    try:
        return bool(value != value)
    except (TypeError, ValueError):
        return False


def normalize_cell(value: Any) -> Cell:
    """Reduce a decoded cell (numpy/pandas scalars included) to a primitive value."""
    if value is None or _is_missing(value):
        return None
    if isinstance(value, str):
        return value if value != "" else None
    if isinstance(value, bool):
        return stringify_cell(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return None if math.isnan(value) else float(value)
    if isinstance(value, (datetime, date, time)):
        return stringify_cell(value)
    # numpy / pandas scalars
    item = getattr(value, "item", None)
    if callable(item):
        try:
            return normalize_cell(item())
        except (TypeError, ValueError):
            pass
    if hasattr(value, "to_pydatetime"):
        try:
            return stringify_cell(value.to_pydatetime())
        except (TypeError, ValueError):
            return None
    text = str(value)
    if text in {"NaT", "nan", "<NA>"}:
        return None
    return text


def trim_row(row: Iterable[Any]) -> Row:
    cells = [normalize_cell(v) for v in row]
    while cells and cells[-1] is None:
        cells.pop()
    return cells


def resolve_column(header: Sequence[Cell], name: str) -> int:
    """Position of the first header cell equal to ``name``, or ``NOT_FOUND``."""
    for idx, cell in enumerate(header):
        if isinstance(cell, str) and cell == name:
            return idx
    return NOT_FOUND


def cell_at(row: Sequence[Cell], index: int) -> Cell:
    if index < 0 or index >= len(row):
        return None
    return row[index]


@dataclass
class TabularModel:
    header: Row = field(default_factory=list)
    rows: List[Row] = field(default_factory=list)

    @classmethod
    def from_matrix(cls, matrix: Sequence[Sequence[Any]]) -> "TabularModel":
        if not matrix:
            return cls()
        header = [normalize_cell(v) for v in matrix[0]]
        rows = [trim_row(r) for r in matrix[1:]]
        return cls(header=header, rows=rows)

    def to_matrix(self) -> List[Row]:
        return [list(self.header)] + [list(r) for r in self.rows]

    def to_dict(self) -> dict:
        return {"header": list(self.header), "rows": [list(r) for r in self.rows]}

    @classmethod
    def from_dict(cls, raw: dict) -> "TabularModel":
        header = raw.get("header")
        rows = raw.get("rows")
        if not isinstance(header, list) or not isinstance(rows, list):
            raise ValueError("table requires 'header' and 'rows' lists")
        if any(not isinstance(r, list) for r in rows):
            raise ValueError("every row must be a list")
        return cls(header=[normalize_cell(v) for v in header], rows=[[normalize_cell(v) for v in r] for r in rows])

    def copy(self) -> "TabularModel":
        return copy.deepcopy(self)

    @property
    def width(self) -> int:
        return len(self.header)

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def column(self, name: str) -> int:
        return resolve_column(self.header, name)

    def header_labels(self) -> List[str]:
        return [stringify_cell(h) or f"Column {i + 1}" for i, h in enumerate(self.header)]

    def display_rows(self, rows: Optional[Sequence[Row]] = None) -> List[List[str]]:
        """Rows padded to the header width, every cell stringified."""
        source = self.rows if rows is None else rows
        width = max(self.width, max((len(r) for r in source), default=0))
        out: List[List[str]] = []
        for row in source:
            cells = [stringify_cell(v) for v in row]
            cells.extend([""] * (width - len(cells)))
            out.append(cells)
        return out
