# tests/test_table.py
"""Tests for the tabular model, cell stringify and column lookup."""

from datetime import datetime

import numpy as np
import pandas as pd

from core.table import (
    NOT_FOUND,
    TabularModel,
    is_empty_cell,
    normalize_cell,
    resolve_column,
    stringify_cell,
)


class TestStringifyCell:
    def test_integral_float_drops_decimal(self):
        assert stringify_cell(3.0) == "3"

    def test_fractional_float(self):
        assert stringify_cell(2.5) == "2.5"

    def test_text_untouched(self):
        assert stringify_cell("  Done ") == "  Done "

    def test_empty_values(self):
        assert stringify_cell(None) == ""
        assert stringify_cell(float("nan")) == ""
        assert stringify_cell("") == ""

    def test_bool_and_dates(self):
        assert stringify_cell(True) == "TRUE"
        assert stringify_cell(datetime(2026, 3, 1)) == "2026-03-01"
        assert stringify_cell(datetime(2026, 3, 1, 9, 30)) == "2026-03-01 09:30:00"

    def test_zero_is_not_empty(self):
        assert not is_empty_cell(0)
        assert stringify_cell(0) == "0"


class TestNormalizeCell:
    def test_numpy_scalars(self):
        assert normalize_cell(np.int64(4)) == 4
        assert isinstance(normalize_cell(np.int64(4)), int)
        assert normalize_cell(np.float64(1.5)) == 1.5

    def test_missing_markers(self):
        assert normalize_cell(np.nan) is None
        assert normalize_cell(pd.NaT) is None
        assert normalize_cell(pd.NA) is None
        assert normalize_cell("") is None

    def test_timestamp_becomes_text(self):
        assert normalize_cell(pd.Timestamp("2026-01-05")) == "2026-01-05"


class TestResolveColumn:
    def test_found(self):
        assert resolve_column(["Status", "Name"], "Status") == 0
        assert resolve_column(["Status", "Name"], "Name") == 1

    def test_missing_returns_sentinel(self):
        assert resolve_column(["Status", "Name"], "Owner") == NOT_FOUND

    def test_exact_case_sensitive(self):
        assert resolve_column(["status", "Status "], "Status") == NOT_FOUND

    def test_first_match_wins(self):
        assert resolve_column(["A", "B", "A"], "A") == 0


class TestTabularModel:
    def test_from_matrix_splits_header(self):
        table = TabularModel.from_matrix([["a", "b"], [1, None], ["x"]])
        assert table.header == ["a", "b"]
        assert table.rows == [[1], ["x"]]
        assert table.row_count == 2

    def test_from_empty_matrix(self):
        table = TabularModel.from_matrix([])
        assert table.header == []
        assert table.rows == []

    def test_copy_is_deep(self):
        table = TabularModel(header=["a"], rows=[["x"]])
        clone = table.copy()
        clone.rows[0][0] = "changed"
        clone.header.append("b")
        assert table.rows == [["x"]]
        assert table.header == ["a"]

    def test_dict_round_trip(self):
        table = TabularModel(header=["a", "b"], rows=[[1, "y"], []])
        assert TabularModel.from_dict(table.to_dict()) == table

    def test_display_rows_pads_ragged(self):
        table = TabularModel(header=["a", "b", "c"], rows=[[1.0], ["x", None, 2.5]])
        assert table.display_rows() == [["1", "", ""], ["x", "", "2.5"]]

    def test_header_labels_fill_blanks(self):
        table = TabularModel(header=["a", None, "c"])
        assert table.header_labels() == ["a", "Column 2", "c"]
