from __future__ import annotations

import logging
import math
from typing import Any, Dict, List

import numpy as np
import pandas as pd
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from starlette.concurrency import run_in_threadpool

from destajo.export import EmptyExportError, export_view
from destajo.filters import FilterState, apply_filters, distinct_values, normalize_filters
from destajo.render import IncrementalRenderer, TableSurface
from destajo.sources import SourceConfigError, SourceUnavailableError, load_rows, source_download_url
from destajo.store import CONDUCTOR, RECIBIDOR, DatasetStore
from destajo_api.schemas import FilterStateModel, MetaListResponse, SourceInfoResponse, ViewResponse


XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

app = FastAPI(title="Destajo Viewer API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Replaced by tests; called with no arguments, returns raw rows.
app.state.row_loader = load_rows
app.state.store = None


def _get_store(request: Request) -> DatasetStore:
    store = request.app.state.store
    if store is None:
        store = DatasetStore()
        store.load(request.app.state.row_loader())
        request.app.state.store = store
    return store


def _filters_from_model(model: FilterStateModel) -> FilterState:
    return normalize_filters(model.model_dump())


def _error(exc: Exception, status_code: int = 500) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": str(exc), "type": type(exc).__name__})


def _json(data: object) -> JSONResponse:
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
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                pd.Timestamp: lambda ts: ts.isoformat(),
            },
        )
    )


@app.get("/meta/drivers", response_model=MetaListResponse)
def meta_drivers(request: Request):
    try:
        store = _get_store(request)
        return _json({"values": distinct_values(store.get_all(), CONDUCTOR)})
    except SourceUnavailableError as exc:
        logger.exception("meta_drivers: no data source")
        return _error(exc, status_code=503)
    except Exception as exc:
        logger.exception("meta_drivers failed")
        return _error(exc)


@app.get("/meta/receivers", response_model=MetaListResponse)
def meta_receivers(request: Request):
    try:
        store = _get_store(request)
        return _json({"values": distinct_values(store.get_all(), RECIBIDOR)})
    except SourceUnavailableError as exc:
        logger.exception("meta_receivers: no data source")
        return _error(exc, status_code=503)
    except Exception as exc:
        logger.exception("meta_receivers failed")
        return _error(exc)


@app.get("/meta/source", response_model=SourceInfoResponse)
def meta_source(request: Request):
    try:
        store = _get_store(request)
        try:
            download_url = source_download_url()
        except SourceConfigError:
            download_url = None
        loaded_at = store.loaded_at.isoformat() if store.loaded_at else None
        return _json({"rows": len(store), "loaded_at": loaded_at, "download_url": download_url})
    except SourceUnavailableError as exc:
        logger.exception("meta_source: no data source")
        return _error(exc, status_code=503)
    except Exception as exc:
        logger.exception("meta_source failed")
        return _error(exc)


@app.post("/view", response_model=ViewResponse)
async def view(request: Request, filters: FilterStateModel):
    try:
        # first load goes over HTTP; keep it off the event loop
        store = await run_in_threadpool(_get_store, request)
        f = _filters_from_model(filters)
        current = apply_filters(store.get_all(), f)
        surface = TableSurface()
        await IncrementalRenderer(surface).render(current)
        rows: List[Dict[str, Any]] = surface.to_records()
        return _json({"filters": filters.model_dump(), "count": len(rows), "summary": surface.summary, "rows": rows})
    except SourceUnavailableError as exc:
        logger.exception("view: no data source")
        return _error(exc, status_code=503)
    except Exception as exc:
        logger.exception("view failed")
        return _error(exc)


@app.post("/export")
def export(request: Request, filters: FilterStateModel):
    try:
        store = _get_store(request)
        f = _filters_from_model(filters)
        result = export_view(apply_filters(store.get_all(), f), f.date)
    except EmptyExportError as exc:
        return _error(exc, status_code=400)
    except SourceUnavailableError as exc:
        logger.exception("export: no data source")
        return _error(exc, status_code=503)
    except Exception as exc:
        logger.exception("export failed")
        return _error(exc)
    return Response(
        content=result.content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f"attachment; filename={result.filename}"},
    )


@app.post("/reload")
def reload(request: Request):
    try:
        store = DatasetStore()
        store.load(request.app.state.row_loader())
        request.app.state.store = store
        return _json({"rows": len(store)})
    except SourceUnavailableError as exc:
        logger.exception("reload: no data source")
        return _error(exc, status_code=503)
    except Exception as exc:
        logger.exception("reload failed")
        return _error(exc)
