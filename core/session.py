from __future__ import annotations

import logging
import threading
from typing import Any, Dict, List, Optional, Sequence, Tuple

from core.data import Source, Workbook, export_file_name, export_table, read_workbook
from core.filters import filter_rows
from core.snapshots import Snapshot, SnapshotRegistry
from core.table import Cell, TabularModel

logger = logging.getLogger(__name__)


class NoTableError(LookupError):
    """No sheet or snapshot is currently displayed."""


class DashboardSession:
    """What the user is looking at: one workbook sheet or one loaded snapshot.

    The displayed table is always a copy; editing it never touches the
    workbook or a saved snapshot.
    """

    def __init__(self, registry: SnapshotRegistry):
        self.registry = registry
        self.workbook: Optional[Workbook] = None
        self.selected_sheet: Optional[str] = None
        self.active_snapshot: Optional[str] = None
        self.search_query: str = ""
        self._snapshot_table: Optional[TabularModel] = None
        self._lock = threading.RLock()

    # ---- ingestion ----
    def ingest(self, source: Source, file_name: str) -> Workbook:
        workbook = read_workbook(source, file_name)
        with self._lock:
            self.workbook = workbook
            self.selected_sheet = workbook.sheet_names[0]
            self.active_snapshot = None
            self._snapshot_table = None
        return workbook

    @property
    def sheet_names(self) -> List[str]:
        return list(self.workbook.sheet_names) if self.workbook else []

    def select_sheet(self, name: str) -> TabularModel:
        with self._lock:
            if self.workbook is None or name not in self.workbook.sheets:
                raise KeyError(name)
            self.selected_sheet = name
            self.active_snapshot = None
            self._snapshot_table = None
            return self.current_table()

    def select_source(self, name: str) -> TabularModel:
        """Load a saved snapshot by name, falling back to a workbook sheet of that name."""
        if name in self.registry:
            return self.load_snapshot(name)
        return self.select_sheet(name)

    # ---- current table ----
    @property
    def has_table(self) -> bool:
        return self._snapshot_table is not None or (self.workbook is not None and self.selected_sheet is not None)

    def current_table(self) -> TabularModel:
        with self._lock:
            if self._snapshot_table is not None:
                return self._snapshot_table.copy()
            if self.workbook is None or self.selected_sheet is None:
                raise NoTableError("No sheet or saved dashboard is loaded")
            return self.workbook.table(self.selected_sheet).copy()

    @property
    def current_name(self) -> Optional[str]:
        return self.active_snapshot or self.selected_sheet

    def set_search(self, query: Optional[str]) -> None:
        self.search_query = query or ""

    def visible_rows(self, query: Optional[str] = None) -> List[Sequence[Cell]]:
        table = self.current_table()
        return filter_rows(table.rows, self.search_query if query is None else query)

    # ---- snapshots ----
    def save_snapshot(self, name: str) -> Snapshot:
        return self.registry.save((name or "").strip(), self.current_table())

    def load_snapshot(self, name: str) -> TabularModel:
        snapshot = self.registry.get(name)
        if snapshot is None:
            raise KeyError(name)
        with self._lock:
            self._snapshot_table = snapshot.data
            self.active_snapshot = snapshot.name
        logger.info("Loaded snapshot %r", name)
        return snapshot.data.copy()

    def delete_snapshot(self, name: str) -> bool:
        removed = self.registry.delete(name)
        with self._lock:
            if removed and self.active_snapshot == name:
                self.active_snapshot = None
                self._snapshot_table = None
        return removed

    def list_snapshots(self) -> List[Dict[str, Any]]:
        return [
            {"name": s.name, "saved_at": s.saved_at, "rows": s.data.row_count, "active": s.name == self.active_snapshot}
            for s in self.registry.list()
        ]

    # ---- export ----
    def export(self) -> Tuple[str, bytes]:
        table = self.current_table()
        sheet = self.current_name or "Sheet1"
        base = self.workbook.file_name if self.workbook else f"{sheet}.xlsx"
        return export_file_name(base), export_table(table, sheet)
