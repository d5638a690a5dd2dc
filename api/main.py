from __future__ import annotations

import logging
import math
from typing import Optional

import numpy as np
import pandas as pd
from fastapi import FastAPI, File, Query, UploadFile
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from api.schemas import (
    DashboardFiltersModel,
    SaveSnapshotModel,
    SelectSourceModel,
    SnapshotDetail,
    SnapshotSummary,
    TableResponse,
    WorkbookResponse,
)
from core.config import configure_logging, load_settings
from core.data import WorkbookError
from core.filters import normalize_filters
from core.metrics_overview import compute_dashboard
from core.session import DashboardSession, NoTableError
from core.snapshots import JsonFileStorage, PersistenceError, SnapshotRegistry

settings = load_settings()
configure_logging(settings)

app = FastAPI(title="Tracker Dashboard API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_session: Optional[DashboardSession] = None


def get_session() -> DashboardSession:
    global _session
    if _session is None:
        registry = SnapshotRegistry(JsonFileStorage(settings.snapshot_path), key=settings.storage_key)
        _session = DashboardSession(registry)
    return _session


def _json(data: object, status_code: int = 200) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except Exception:
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
            },
        ),
    )


def _error(exc: Exception, where: str) -> JSONResponse:
    if isinstance(exc, WorkbookError):
        status = 400
    elif isinstance(exc, NoTableError):
        status = 409
    elif isinstance(exc, KeyError):
        status = 404
    elif isinstance(exc, ValueError):
        status = 422
    elif isinstance(exc, PersistenceError):
        status = 503
    else:
        status = 500
    if status == 500:
        logger.exception("%s failed", where)
    else:
        logger.warning("%s failed: %s", where, exc)
    message = exc.args[0] if isinstance(exc, KeyError) and exc.args else str(exc)
    return JSONResponse(status_code=status, content={"error": str(message), "type": type(exc).__name__})


def _workbook_payload(session: DashboardSession) -> dict:
    wb = session.workbook
    return WorkbookResponse(
        file_name=wb.file_name if wb else "",
        sheet_names=session.sheet_names,
        selected_sheet=session.selected_sheet,
        import_ms=round(wb.import_ms, 2) if wb else 0.0,
    ).model_dump()


@app.post("/workbook")
async def upload_workbook(file: UploadFile = File(...)):
    try:
        raw = await file.read()
        session = get_session()
        session.ingest(raw, file.filename or "upload.xlsx")
        return _json(_workbook_payload(session))
    except Exception as exc:
        return _error(exc, "upload_workbook")


@app.get("/meta/sheets")
def meta_sheets():
    try:
        session = get_session()
        return _json(
            {
                "sheets": session.sheet_names,
                "selected": session.current_name,
                "saved_dashboards": [s["name"] for s in session.list_snapshots()],
            }
        )
    except Exception as exc:
        return _error(exc, "meta_sheets")


@app.post("/select")
def select_source(body: SelectSourceModel):
    try:
        session = get_session()
        table = session.select_source(body.name)
        return _json({"selected": session.current_name, "rows": table.row_count, "snapshot": session.active_snapshot})
    except Exception as exc:
        return _error(exc, "select_source")


@app.get("/dashboard")
def dashboard(include_charts: bool = Query(default=True)):
    try:
        session = get_session()
        payload = compute_dashboard(session.current_table(), include_charts=include_charts)
        payload["source"] = session.current_name
        return _json(payload)
    except Exception as exc:
        return _error(exc, "dashboard")


@app.post("/table")
def table(filters: DashboardFiltersModel):
    try:
        session = get_session()
        f = normalize_filters(filters.model_dump(), available_sheets=session.sheet_names)
        if filters.sheet and f.sheet and f.sheet != session.current_name:
            session.select_source(f.sheet)
        session.set_search(f.search_query)
        current = session.current_table()
        visible = session.visible_rows()
        return _json(
            TableResponse(
                name=session.current_name,
                header=current.header_labels(),
                rows=current.display_rows(visible),
                total_rows=current.row_count,
                visible_rows=len(visible),
            ).model_dump()
        )
    except Exception as exc:
        return _error(exc, "table")


@app.get("/snapshots")
def list_snapshots():
    try:
        snapshots = [SnapshotSummary(**s).model_dump() for s in get_session().list_snapshots()]
        return _json({"snapshots": snapshots})
    except Exception as exc:
        return _error(exc, "list_snapshots")


@app.post("/snapshots")
def save_snapshot(body: SaveSnapshotModel):
    try:
        snapshot = get_session().save_snapshot(body.name)
        return _json({"name": snapshot.name, "saved_at": snapshot.saved_at, "rows": snapshot.data.row_count}, status_code=201)
    except Exception as exc:
        return _error(exc, "save_snapshot")


@app.get("/snapshots/{name}")
def get_snapshot(name: str):
    try:
        snapshot = get_session().registry.get(name)
        if snapshot is None:
            raise KeyError(f"No saved dashboard named {name!r}")
        return _json(
            SnapshotDetail(
                name=snapshot.name,
                saved_at=snapshot.saved_at,
                header=snapshot.data.header,
                rows=snapshot.data.rows,
            ).model_dump()
        )
    except Exception as exc:
        return _error(exc, "get_snapshot")


@app.post("/snapshots/{name}/load")
def load_snapshot(name: str):
    try:
        session = get_session()
        table = session.load_snapshot(name)
        return _json({"selected": session.current_name, "rows": table.row_count, "snapshot": session.active_snapshot})
    except Exception as exc:
        return _error(exc, "load_snapshot")


@app.delete("/snapshots/{name}")
def delete_snapshot(name: str):
    try:
        removed = get_session().delete_snapshot(name)
        return _json({"name": name, "deleted": removed})
    except Exception as exc:
        return _error(exc, "delete_snapshot")


@app.get("/export")
def export():
    try:
        filename, content = get_session().export()
    except Exception as exc:
        return _error(exc, "export")
    return Response(
        content=content,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
