from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from core.counts import CategoryCounts


@dataclass(frozen=True)
class Series:
    labels: Tuple[str, ...] = field(default_factory=tuple)
    values: Tuple[int, ...] = field(default_factory=tuple)

    @property
    def total(self) -> int:
        return sum(self.values)

    @property
    def is_empty(self) -> bool:
        return self.total == 0

    def items(self) -> List[Tuple[str, int]]:
        return list(zip(self.labels, self.values))


def build_series(counts: CategoryCounts) -> Series:
    # sorted() is stable: equal counts keep the mapping's iteration order
    entries = sorted(counts.items(), key=lambda kv: kv[1])
    return Series(labels=tuple(k for k, _ in entries), values=tuple(v for _, v in entries))


def series_percentages(series: Series) -> Optional[List[float]]:
    """Share of each entry in percent, or ``None`` when there is nothing to divide by."""
    total = series.total
    if total == 0:
        return None
    return [value / total * 100 for value in series.values]


def format_percentage(pct: float) -> str:
    return f"{pct:.1f}%"


def summarize_counts(counts: CategoryCounts, title: str) -> Dict[str, Any]:
    series = build_series(counts)
    pcts = series_percentages(series)
    entries = []
    for idx, (label, value) in enumerate(series.items()):
        entries.append(
            {
                "label": label,
                "count": value,
                "percentage": round(pcts[idx], 1) if pcts is not None else None,
                "display": f"{value} ({format_percentage(pcts[idx])})" if pcts is not None else str(value),
            }
        )
    return {
        "title": title,
        "total": series.total,
        "has_data": pcts is not None,
        "labels": list(series.labels),
        "values": list(series.values),
        "percentages": [round(p, 1) for p in pcts] if pcts is not None else None,
        "entries": entries,
    }
