from __future__ import annotations

from typing import Dict, Iterable, List, Sequence

from core.table import Cell, cell_at, is_empty_cell, stringify_cell

CategoryCounts = Dict[str, int]

NOT_SPECIFIED = "Not Specified"


def count_values(rows: Iterable[Sequence[Cell]], column_index: int) -> CategoryCounts:
    """Count each row under its cell's text, or under ``NOT_SPECIFIED`` when absent.

    A missing column (``column_index == NOT_FOUND``) or a row shorter than the
    header falls into the ``NOT_SPECIFIED`` bucket, so the counts always sum to
    the number of rows.
    """
    counts: CategoryCounts = {}
    for row in rows:
        value = cell_at(row, column_index)
        label = NOT_SPECIFIED if is_empty_cell(value) else stringify_cell(value)
        counts[label] = counts.get(label, 0) + 1
    return counts


def split_tokens(value: Cell) -> List[str]:
    if is_empty_cell(value):
        return []
    return [token.strip() for token in stringify_cell(value).split(",")]


def count_tokens(rows: Iterable[Sequence[Cell]], column_index: int, prefixes: Sequence[str]) -> CategoryCounts:
    """Count comma-separated tokens that start with one of ``prefixes``.

    Empty cells contribute nothing. Matching is case-sensitive and tokens
    without an allowed prefix are dropped rather than bucketed.
    """
    allowed = tuple(p for p in prefixes if p)
    counts: CategoryCounts = {}
    if not allowed:
        return counts
    for row in rows:
        for token in split_tokens(cell_at(row, column_index)):
            if token.startswith(allowed):
                counts[token] = counts.get(token, 0) + 1
    return counts
