from __future__ import annotations

from typing import Any, Dict

import altair as alt
import pandas as pd

alt.data_transformers.disable_max_rows()

Y_AXIS_TITLES = {
    "count": "Estimated number of injuries",
    "rate": "Injuries per 10,000 people",
}


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def age_sex_chart(summary: pd.DataFrame, y_axis: str = "rate") -> alt.Chart:
    y_col = "n" if y_axis == "count" else "rate"
    data = summary[["age", "sex", "n", "population", "rate"]].copy()
    if y_col == "rate":
        data = data.dropna(subset=["rate"])
    data["sex"] = data["sex"].astype(object).where(data["sex"].notna(), "unknown")
    return (
        alt.Chart(data)
        .mark_line()
        .encode(
            x=alt.X("age:Q", title="Age"),
            y=alt.Y(f"{y_col}:Q", title=Y_AXIS_TITLES.get(y_axis, Y_AXIS_TITLES["rate"])),
            color=alt.Color("sex:N", title="Sex"),
            tooltip=[
                alt.Tooltip("age:Q", title="Age"),
                alt.Tooltip("sex:N", title="Sex"),
                alt.Tooltip("n:Q", title="Injuries", format=",.0f"),
                alt.Tooltip("rate:Q", title="Rate", format=".2f"),
            ],
        )
        .properties(height=320)
    )
