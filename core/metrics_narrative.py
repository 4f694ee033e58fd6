from __future__ import annotations

from typing import Any, Dict, Optional

import numpy as np
import pandas as pd

from core.filters import DashboardFilters
from core.stepper import narrative_index

NO_NARRATIVE_TEXT = "No narrative available for this product."


def narrative_at(selected: pd.DataFrame, index: Optional[int]) -> Optional[str]:
    """Narrative of the record at 1-based ``index``; None when there is nothing to show."""
    if index is None or selected.empty or "narrative" not in selected.columns:
        return None
    value = selected["narrative"].iloc[index - 1]
    return None if pd.isna(value) else str(value)


def compute_narrative(
    filters: DashboardFilters,
    ctx: Dict[str, Any],
    *,
    forward_count: int = 0,
    backward_count: int = 0,
) -> Dict[str, Any]:
    selected: pd.DataFrame = ctx.get("selected", pd.DataFrame())
    total = int(len(selected))
    index = narrative_index(forward_count, backward_count, total, wrap=filters.wrap)
    return {
        "prod_code": filters.prod_code,
        "index": index,
        "total": total,
        "narrative": narrative_at(selected, index),
    }


def random_narrative(selected: pd.DataFrame, rng: Optional[np.random.Generator] = None) -> Dict[str, Any]:
    """Pick one narrative uniformly at random ("Tell me a story")."""
    total = int(len(selected))
    if total == 0:
        return {"index": None, "total": 0, "narrative": None}
    rng = rng or np.random.default_rng()
    index = int(rng.integers(1, total + 1))
    return {"index": index, "total": total, "narrative": narrative_at(selected, index)}
