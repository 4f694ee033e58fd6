from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class DashboardFiltersModel(BaseModel):
    prod_code: Optional[int] = None
    y_axis: Literal["rate", "count"] = "rate"
    n_rows: int = Field(default=4, ge=2, le=10)
    wrap: Literal["reset", "modulo"] = "reset"


class ProductModel(BaseModel):
    prod_code: int
    title: str


class MetaProductsResponse(BaseModel):
    products: List[ProductModel]


class NarrativeResponse(BaseModel):
    prod_code: Optional[int] = None
    index: Optional[int] = None
    total: int
    narrative: Optional[str] = None
