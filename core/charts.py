from __future__ import annotations

from typing import Any, Dict, Literal, Optional

import altair as alt
import pandas as pd

from core.series import Series, format_percentage, series_percentages

alt.data_transformers.disable_max_rows()

ChartKind = Literal["bar", "pie"]

PALETTE = ["#36a2eb", "#4bc0c0", "#9966ff", "#ff9f40", "#ff6384"]


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def series_frame(series: Series) -> pd.DataFrame:
    pcts = series_percentages(series) or [0.0] * len(series.values)
    return pd.DataFrame(
        {
            "order": range(len(series.labels)),
            "label": list(series.labels),
            "count": list(series.values),
            "percentage": [format_percentage(p) for p in pcts],
        }
    )


def series_chart(series: Series, title: str, kind: ChartKind = "bar", *, height: int = 250) -> Optional[alt.Chart | alt.LayerChart]:
    if series.is_empty:
        return None
    df = series_frame(series)
    order_labels = list(series.labels)
    color = alt.Color(
        "label:N",
        title=None,
        sort=order_labels,
        scale=alt.Scale(range=PALETTE),
        legend=alt.Legend(orient="bottom"),
    )
    tooltip = [
        alt.Tooltip("label:N", title=title),
        alt.Tooltip("count:Q", title="Count", format=","),
        alt.Tooltip("percentage:N", title="Share"),
    ]

    if kind == "pie":
        base = alt.Chart(df).encode(
            theta=alt.Theta("count:Q", stack=True),
            order=alt.Order("order:Q"),
            color=color,
            tooltip=tooltip,
        )
        arcs = base.mark_arc(outerRadius=100)
        labels = base.mark_text(radius=70, fontWeight="bold", fontSize=11).encode(text="percentage:N", color=alt.value("#fff"))
        return (arcs + labels).properties(title=title, height=height)

    bars = (
        alt.Chart(df)
        .mark_bar()
        .encode(
            x=alt.X("label:N", title=None, sort=order_labels),
            y=alt.Y("count:Q", title="Count", axis=alt.Axis(format="d", gridDash=[4, 4], domain=False, ticks=False)),
            color=color,
            tooltip=tooltip,
        )
    )
    return bars.properties(title=title, height=height)


def series_chart_spec(series: Series, title: str, kind: ChartKind = "bar") -> Optional[Dict[str, Any]]:
    chart = series_chart(series, title, kind)
    return to_vega_spec(chart) if chart is not None else None
