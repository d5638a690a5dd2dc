from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from core.table import Cell, stringify_cell


@dataclass(frozen=True)
class DashboardFilters:
    sheet: Optional[str] = None
    search_query: str = ""


def row_matches(row: Sequence[Cell], needle: str) -> bool:
    for cell in row:
        text = stringify_cell(cell)
        if text and needle in text.lower():
            return True
    return False


def filter_rows(rows: Iterable[Sequence[Cell]], query: str) -> List[Sequence[Cell]]:
    """Rows where any cell contains ``query``, ignoring case. An empty query keeps every row."""
    if not query:
        return list(rows)
    needle = query.lower()
    return [row for row in rows if row_matches(row, needle)]


def normalize_filters(raw: dict, *, available_sheets: Optional[List[str]] = None) -> DashboardFilters:
    available_sheets = list(available_sheets or [])

    sheet = raw.get("sheet")
    sheet = str(sheet) if sheet not in (None, "") else None
    if sheet is None and available_sheets:
        sheet = available_sheets[0]

    search_query = raw.get("search_query") or ""
    if not isinstance(search_query, str):
        search_query = str(search_query)

    return DashboardFilters(sheet=sheet, search_query=search_query)
