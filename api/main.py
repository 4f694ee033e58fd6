from __future__ import annotations

import logging
import math
from typing import Literal, Optional

import numpy as np
import pandas as pd
from fastapi import FastAPI, Query
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, Response

from api.schemas import DashboardFiltersModel, MetaProductsResponse, NarrativeResponse, ProductModel
from core.data import available_codes, load_dashboard_data, prepare_context
from core.filters import DashboardFilters, normalize_filters
from core.metrics_narrative import compute_narrative, random_narrative
from core.metrics_summary import compute_summary


app = FastAPI(title="NEISS Injury Explorer API", version="0.1.0")
logger = logging.getLogger(__name__)


def _filters_from_model(model: DashboardFiltersModel, *, codes: list[int]) -> DashboardFilters:
    raw = model.model_dump()
    return normalize_filters(raw, available_codes=codes)


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
                np.ndarray: lambda arr: arr.tolist(),
                pd.Timestamp: lambda ts: ts.isoformat(),
            },
        )
    )


def _error(exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=500, content={"error": str(exc), "type": type(exc).__name__})


@app.get("/meta/products")
def meta_products():
    try:
        data_ctx = load_dashboard_data()
        choices = data_ctx.get("choices") or {}
        products = [ProductModel(prod_code=code, title=title) for title, code in choices.items()]
        return _json(MetaProductsResponse(products=products).model_dump())
    except Exception as exc:
        logger.exception("meta_products failed")
        return _error(exc)


@app.post("/summary")
def summary(filters: DashboardFiltersModel):
    try:
        data_ctx = load_dashboard_data()
        f = _filters_from_model(filters, codes=available_codes(data_ctx))
        ctx = prepare_context(f, data_ctx)
        return _json(compute_summary(f, ctx))
    except Exception as exc:
        logger.exception("summary failed")
        return _error(exc)


@app.post("/narrative")
def narrative(
    filters: DashboardFiltersModel,
    forward_count: int = Query(default=0, ge=0),
    backward_count: int = Query(default=0, ge=0),
):
    try:
        data_ctx = load_dashboard_data()
        f = _filters_from_model(filters, codes=available_codes(data_ctx))
        ctx = prepare_context(f, data_ctx)
        payload = compute_narrative(f, ctx, forward_count=forward_count, backward_count=backward_count)
        return _json(NarrativeResponse(**payload).model_dump())
    except Exception as exc:
        logger.exception("narrative failed")
        return _error(exc)


@app.post("/narrative/random")
def narrative_random(filters: DashboardFiltersModel, seed: Optional[int] = Query(default=None)):
    try:
        data_ctx = load_dashboard_data()
        f = _filters_from_model(filters, codes=available_codes(data_ctx))
        ctx = prepare_context(f, data_ctx)
        payload = random_narrative(ctx["selected"], np.random.default_rng(seed))
        return _json(NarrativeResponse(prod_code=f.prod_code, **payload).model_dump())
    except Exception as exc:
        logger.exception("narrative_random failed")
        return _error(exc)


@app.post("/export/{table}")
def export_table(table: Literal["diag", "body_part", "location", "age_sex", "selected"], filters: DashboardFiltersModel):
    data_ctx = load_dashboard_data()
    f = _filters_from_model(filters, codes=available_codes(data_ctx))
    ctx = prepare_context(f, data_ctx)

    if table == "selected":
        export_df = ctx.get("selected")
    elif table == "age_sex":
        export_df = ctx.get("age_sex")
    else:
        export_df = ctx["tables"].get(table)

    if export_df is None or not hasattr(export_df, "to_csv"):
        export_df = pd.DataFrame()
    csv_bytes = export_df.to_csv(index=False).encode("utf-8")
    filename = f"{table}_{f.prod_code}.csv"
    return Response(content=csv_bytes, media_type="text/csv", headers={"Content-Disposition": f"attachment; filename={filename}"})
