import altair as alt
import pandas as pd
import streamlit as st
from contextlib import contextmanager
from typing import Any, Dict, Optional, Tuple

from core.charts import series_chart
from core.config import configure_logging, load_settings
from core.data import WorkbookError
from core.metrics_overview import TRACKED_FIELDS, compute_dashboard, count_field
from core.series import build_series
from core.session import DashboardSession, NoTableError
from core.snapshots import JsonFileStorage, PersistenceError, SnapshotRegistry

alt.data_transformers.disable_max_rows()


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .card {border: 1px solid #e5e7eb;border-radius: 12px;padding: 16px;background: #ffffff;
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}
        .card-header {display: flex;justify-content: space-between;align-items: center;margin-bottom: 8px;}
        .card-title {font-weight: 600;font-size: 0.9rem;color: #6b7280;}
        .stat-row {display: flex;font-size: 0.85rem;color: #4b5563;}
        .stat-row .stat-label {min-width: 200px;}
        .stat-row .stat-value {font-weight: 600;color: #1f2937;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str):
    container = st.container()
    container.markdown(
        f"""
        <div class="card">
          <div class="card-header"><div class="card-title">{title}</div></div>
        """,
        unsafe_allow_html=True,
    )
    body = container.container()
    with body:
        yield body
    container.markdown("</div>", unsafe_allow_html=True)


@st.cache_resource
def get_registry() -> SnapshotRegistry:
    settings = load_settings()
    configure_logging(settings)
    return SnapshotRegistry(JsonFileStorage(settings.snapshot_path), key=settings.storage_key)


def get_session() -> DashboardSession:
    if "dashboard_session" not in st.session_state:
        st.session_state["dashboard_session"] = DashboardSession(get_registry())
    return st.session_state["dashboard_session"]


def render_status_card(table, tracked, card_payload: Dict[str, Any]):
    with card(f"{card_payload['title']} (Total: {card_payload['total']})"):
        if not card_payload["has_data"]:
            st.info("No data")
            return
        series = build_series(count_field(table, tracked))
        chart = series_chart(series, tracked.title, tracked.chart)
        if chart is not None:
            st.altair_chart(chart, use_container_width=True)
        rows = "".join(
            f"<div class='stat-row'><div class='stat-label'>{e['label']}</div><div class='stat-value'>{e['display']}</div></div>"
            for e in card_payload["entries"]
        )
        st.markdown(rows, unsafe_allow_html=True)


def render_dashboard(session: DashboardSession):
    table = session.current_table()
    payload = compute_dashboard(table, include_charts=False)
    if not payload["has_data"]:
        st.info("No data rows found")
        return
    st.metric("Total Projects", payload["total_projects"])
    by_key = {c["key"]: c for c in payload["cards"]}
    cols = st.columns(3)
    for idx, tracked in enumerate(TRACKED_FIELDS):
        with cols[idx % 3]:
            render_status_card(table, tracked, by_key[tracked.key])


def render_table(session: DashboardSession):
    table = session.current_table()
    visible = session.visible_rows()
    if not table.header and not table.rows:
        st.info("No data available")
        return
    rows = table.display_rows(visible)
    labels = table.header_labels()
    width = max(len(labels), max((len(r) for r in rows), default=0))
    columns = []
    for i, label in enumerate(labels + [f"Column {i + 1}" for i in range(len(labels), width)]):
        # dataframe columns must be unique
        columns.append(label if label not in columns else f"{label} ({i + 1})")
    display = pd.DataFrame(rows, columns=columns)
    st.caption(f"Showing {len(visible)} of {table.row_count} rows")
    st.dataframe(display, use_container_width=True, hide_index=True)


def render_snapshot_controls(session: DashboardSession):
    st.markdown("### Saved dashboards")
    name = st.text_input("Dashboard name", value="", key="snapshot_name")
    if st.button("Save dashboard", disabled=not session.has_table):
        try:
            snap = session.save_snapshot(name)
            st.success(f"Saved '{snap.name}' at {snap.saved_at}")
        except ValueError as exc:
            st.warning(str(exc))
        except PersistenceError as exc:
            st.error(f"Could not save dashboard: {exc}")

    saved = session.list_snapshots()
    if saved:
        to_delete = st.selectbox("Delete a saved dashboard", options=[s["name"] for s in saved], index=None)
        if to_delete and st.button("Delete"):
            try:
                session.delete_snapshot(to_delete)
                st.rerun()
            except PersistenceError as exc:
                st.error(f"Could not delete dashboard: {exc}")


SourceKey = Tuple[str, str]


def source_options(session: DashboardSession) -> Dict[SourceKey, Optional[str]]:
    """Saved dashboards first, then workbook sheets; a shared name appears once per kind."""
    options: Dict[SourceKey, Optional[str]] = {}
    for snap in session.list_snapshots():
        options[("snapshot", snap["name"])] = snap["saved_at"]
    for name in session.sheet_names:
        options[("sheet", name)] = None
    return options


def current_source(session: DashboardSession) -> Optional[SourceKey]:
    if session.active_snapshot is not None:
        return ("snapshot", session.active_snapshot)
    if session.selected_sheet is not None:
        return ("sheet", session.selected_sheet)
    return None


# ---------- UI setup ----------
st.set_page_config(page_title="Excel File Viewer", layout="wide")
inject_base_styles()
st.title("Excel File Viewer")

session = get_session()

with st.sidebar:
    uploaded = st.file_uploader("Upload Excel File", type=["xlsx", "xlsm", "csv"])
    if uploaded is not None and st.session_state.get("_ingested_file") != (uploaded.name, uploaded.size):
        try:
            session.ingest(uploaded.getvalue(), uploaded.name)
            st.session_state["_ingested_file"] = (uploaded.name, uploaded.size)
        except WorkbookError as exc:
            st.error(str(exc))

    if session.workbook is not None:
        st.caption(f"Current file: **{session.workbook.file_name}**")
        st.caption(f"Import time: **{session.workbook.import_ms:.2f}ms**")

    options = source_options(session)
    if options:
        keys = list(options)
        current = current_source(session)
        choice = st.selectbox(
            "Sheet",
            options=keys,
            index=keys.index(current) if current in options else 0,
            format_func=lambda k: k[1] if options[k] is None else f"{k[1]} (Saved: {options[k]})",
        )
        if choice != current:
            kind, name = choice
            if kind == "snapshot":
                session.load_snapshot(name)
            else:
                session.select_sheet(name)

    st.markdown("---")
    render_snapshot_controls(session)

if not session.has_table:
    st.info("Upload an Excel file to view and edit its contents. Supported formats: .xlsx and .csv")
    st.stop()

query = st.text_input("Search in sheet...", value=session.search_query)
session.set_search(query)

try:
    render_dashboard(session)
    render_table(session)
    export_name, export_bytes = session.export()
    st.download_button(
        "Export Modified",
        data=export_bytes,
        file_name=export_name,
        mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    )
except NoTableError:
    st.info("Select a sheet or saved dashboard.")
