from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional

from core.stepper import DEFAULT_WRAP, WRAP_POLICIES

Y_AXIS_OPTIONS = ("rate", "count")
N_ROWS_DEFAULT = 4
N_ROWS_MIN = 2
N_ROWS_MAX = 10


@dataclass(frozen=True)
class DashboardFilters:
    prod_code: Optional[int] = None
    y_axis: str = "rate"
    n_rows: int = N_ROWS_DEFAULT
    wrap: str = DEFAULT_WRAP

    @property
    def n_factors(self) -> int:
        # One table row is reserved for "Other".
        return self.n_rows - 1


def _as_int(value: object) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except Exception:
        return None


def normalize_filters(raw: dict, *, available_codes: Optional[Iterable[int]] = None) -> DashboardFilters:
    codes: List[int] = [int(c) for c in (available_codes or [])]

    prod_code = _as_int(raw.get("prod_code"))
    if codes and prod_code not in codes:
        prod_code = codes[0]

    y_axis = str(raw.get("y_axis") or "rate").strip().lower()
    if y_axis not in Y_AXIS_OPTIONS:
        y_axis = "rate"

    n_rows = _as_int(raw.get("n_rows", N_ROWS_DEFAULT))
    if n_rows is None:
        n_rows = N_ROWS_DEFAULT
    n_rows = max(N_ROWS_MIN, min(N_ROWS_MAX, n_rows))

    wrap = str(raw.get("wrap") or DEFAULT_WRAP).strip().lower()
    if wrap not in WRAP_POLICIES:
        wrap = DEFAULT_WRAP

    return DashboardFilters(prod_code=prod_code, y_axis=y_axis, n_rows=n_rows, wrap=wrap)
