from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from core.charts import ChartKind, series_chart_spec
from core.counts import CategoryCounts, count_tokens, count_values
from core.series import build_series, summarize_counts
from core.table import TabularModel


@dataclass(frozen=True)
class TrackedField:
    key: str
    title: str
    column: str
    chart: ChartKind = "bar"
    prefixes: Optional[Tuple[str, ...]] = None

    @property
    def is_token_field(self) -> bool:
        return self.prefixes is not None


CMAN_PREFIXES = ("FS", "SEC")
SERVICENOW_PREFIXES = ("CHG",)

TRACKED_FIELDS: List[TrackedField] = [
    TrackedField("development_status", "Development Status", "Development Status", "bar"),
    TrackedField("testing_status", "Testing Status", "Testing Status", "bar"),
    TrackedField("project_status", "Project Status", "Project Status", "bar"),
    TrackedField("approval_status", "Functional Requirements Approval", "Requirements Approval Status", "pie"),
    TrackedField("sme_reviews", "SME Reviews", "SME Design Required?", "pie"),
    TrackedField("uat_extensions", "UAT Extensions", "Extension Required?", "pie"),
    TrackedField("cman_packages", "CMAN Packages", "CMAN Package(s)", "bar", CMAN_PREFIXES),
    TrackedField("servicenow_changes", "ServiceNow Changes", "ServiceNow Change(s)", "bar", SERVICENOW_PREFIXES),
]


def count_field(table: TabularModel, tracked: TrackedField) -> CategoryCounts:
    idx = table.column(tracked.column)
    if tracked.is_token_field:
        return count_tokens(table.rows, idx, tracked.prefixes or ())
    return count_values(table.rows, idx)


def compute_field_counts(table: TabularModel, fields: Optional[List[TrackedField]] = None) -> Dict[str, CategoryCounts]:
    return {f.key: count_field(table, f) for f in (fields or TRACKED_FIELDS)}


def compute_dashboard(
    table: TabularModel,
    *,
    fields: Optional[List[TrackedField]] = None,
    include_charts: bool = True,
) -> Dict[str, Any]:
    if table.row_count == 0:
        return {"total_projects": 0, "has_data": False, "cards": []}

    cards: List[Dict[str, Any]] = []
    for tracked in fields or TRACKED_FIELDS:
        counts = count_field(table, tracked)
        card = summarize_counts(counts, tracked.title)
        card.update(
            {
                "key": tracked.key,
                "column": tracked.column,
                "chart_type": tracked.chart,
                "column_present": table.column(tracked.column) >= 0,
            }
        )
        if include_charts:
            card["chart"] = series_chart_spec(build_series(counts), tracked.title, tracked.chart)
        cards.append(card)

    return {"total_projects": table.row_count, "has_data": True, "cards": cards}
