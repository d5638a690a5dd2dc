"""Core (UI-agnostic) tracker dashboard logic.

This package contains:
- the tabular model and column lookup
- category and token counting per tracked column
- sorted, percentage-annotated chart series (Altair -> Vega-Lite spec dict)
- row search
- the named snapshot registry
- workbook import/export (XLSX/CSV <-> tables via pandas)
"""
