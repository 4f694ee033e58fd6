from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List, Optional

import pandas as pd

from core.charts import age_sex_chart, to_vega_spec
from core.data import SUMMARY_FIELDS
from core.filters import DashboardFilters


def _records(df: pd.DataFrame) -> List[Dict[str, Any]]:
    if df.empty:
        return []
    out = df.astype(object).where(df.notna(), None)
    return out.to_dict(orient="records")


def _metric_value(value: Any) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    return float(value)


def compute_summary(filters: DashboardFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    selected: pd.DataFrame = ctx.get("selected", pd.DataFrame())
    tables: Dict[str, pd.DataFrame] = ctx.get("tables", {}) or {}
    age_sex: pd.DataFrame = ctx.get("age_sex", pd.DataFrame())

    payload: Dict[str, Any] = {
        "filters": asdict(filters),
        "product": {"prod_code": filters.prod_code, "title": ctx.get("title")},
        "n_selected": int(len(selected)),
        "kpis": {"estimated_total": None, "missing_rate_rows": 0},
        "tables": {field: _records(tables.get(field, pd.DataFrame())) for field in SUMMARY_FIELDS},
        "age_sex": [],
        "charts": {},
    }
    if selected.empty:
        return payload

    payload["kpis"] = {
        "estimated_total": _metric_value(selected["weight"].sum()),
        "missing_rate_rows": int(age_sex["rate"].isna().sum()) if not age_sex.empty else 0,
    }
    payload["age_sex"] = _records(age_sex)
    if not age_sex.empty:
        payload["charts"]["age_sex"] = to_vega_spec(age_sex_chart(age_sex, filters.y_axis))
    return payload
