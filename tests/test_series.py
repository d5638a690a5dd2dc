# tests/test_series.py
"""Tests for series building and percentage annotation."""

import pytest

from core.series import build_series, format_percentage, series_percentages, summarize_counts


class TestBuildSeries:
    def test_sorted_ascending(self):
        series = build_series({"Done": 5, "Blocked": 1, "In Progress": 3})
        assert series.labels == ("Blocked", "In Progress", "Done")
        assert series.values == (1, 3, 5)

    def test_ties_keep_mapping_order(self):
        series = build_series({"b": 2, "a": 2, "c": 1})
        assert series.labels == ("c", "b", "a")

    def test_total_preserved_and_non_decreasing(self):
        counts = {"x": 7, "y": 0, "z": 3, "w": 3}
        series = build_series(counts)
        assert sum(series.values) == sum(counts.values())
        assert list(series.values) == sorted(series.values)
        assert len(set(series.labels)) == len(series.labels)

    def test_empty_map(self):
        series = build_series({})
        assert series.labels == ()
        assert series.is_empty


class TestPercentages:
    def test_shares(self):
        pcts = series_percentages(build_series({"a": 1, "b": 3}))
        assert pcts == pytest.approx([25.0, 75.0])

    def test_no_data_is_none(self):
        assert series_percentages(build_series({})) is None

    def test_one_decimal(self):
        assert format_percentage(100 / 3) == "33.3%"
        assert format_percentage(50) == "50.0%"


class TestSummarizeCounts:
    def test_card_payload(self):
        card = summarize_counts({"Yes": 3, "No": 1}, "SME Reviews")
        assert card["title"] == "SME Reviews"
        assert card["total"] == 4
        assert card["has_data"] is True
        assert card["labels"] == ["No", "Yes"]
        assert card["percentages"] == [25.0, 75.0]
        assert card["entries"][1]["display"] == "3 (75.0%)"

    def test_empty_card_has_no_percentages(self):
        card = summarize_counts({}, "CMAN Packages")
        assert card["has_data"] is False
        assert card["percentages"] is None
        assert card["total"] == 0
        assert card["entries"] == []
