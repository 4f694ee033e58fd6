"""Per-session dashboard state.

A session owns its narrative stepper and memoizes the last prepared context,
so a change of y axis only redraws the chart while a change of product or
row count re-derives the selection and tables.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from core.data import prepare_context
from core.filters import DashboardFilters
from core.metrics_narrative import narrative_at
from core.stepper import NarrativeStepper


@dataclass
class DashboardSession:
    data_ctx: Dict[str, Any]
    stepper: NarrativeStepper = field(default_factory=NarrativeStepper)
    filters: Optional[DashboardFilters] = None
    _ctx: Optional[Dict[str, Any]] = field(default=None, repr=False)
    _ctx_key: Optional[tuple] = field(default=None, repr=False)

    def context(self, filters: DashboardFilters) -> Dict[str, Any]:
        # y_axis and wrap do not affect the derived frames.
        key = (filters.prod_code, filters.n_rows)
        if self._ctx is None or key != self._ctx_key:
            self._ctx = prepare_context(filters, self.data_ctx)
            self._ctx_key = key
        self.filters = filters
        self._ctx = {**self._ctx, "filters": filters}
        return self._ctx

    def next_story(self) -> None:
        self.stepper.next()

    def previous_story(self) -> None:
        self.stepper.previous()

    def current_index(self) -> Optional[int]:
        if self._ctx is None or self.filters is None:
            return None
        return self.stepper.index(len(self._ctx["selected"]), wrap=self.filters.wrap)

    def current_narrative(self) -> Optional[str]:
        if self._ctx is None:
            return None
        return narrative_at(self._ctx["selected"], self.current_index())
