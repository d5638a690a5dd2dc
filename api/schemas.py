from __future__ import annotations

from typing import List, Optional, Union

from pydantic import BaseModel, Field

CellValue = Union[str, int, float, None]


class DashboardFiltersModel(BaseModel):
    sheet: Optional[str] = None
    search_query: str = ""


class SelectSourceModel(BaseModel):
    name: str


class SaveSnapshotModel(BaseModel):
    name: str = Field(min_length=1)


class TableResponse(BaseModel):
    name: Optional[str] = None
    header: List[str]
    rows: List[List[str]]
    total_rows: int
    visible_rows: int


class SnapshotSummary(BaseModel):
    name: str
    saved_at: str
    rows: int
    active: bool = False


class SnapshotDetail(BaseModel):
    name: str
    saved_at: str
    header: List[CellValue]
    rows: List[List[CellValue]]


class WorkbookResponse(BaseModel):
    file_name: str
    sheet_names: List[str]
    selected_sheet: Optional[str] = None
    import_ms: float
