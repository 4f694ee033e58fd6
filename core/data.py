from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

import pandas as pd

from core.filters import DashboardFilters, normalize_filters

logger = logging.getLogger(__name__)

DATA_DIR = Path(os.environ.get("NEISS_DATA_DIR") or Path(__file__).resolve().parents[1])

INJURIES_FILE = "injuries.tsv.gz"
PRODUCTS_FILE = "products.tsv"
POPULATION_FILE = "population.tsv"

INJURY_COLUMNS = [
    "trmt_date",
    "age",
    "sex",
    "race",
    "body_part",
    "diag",
    "location",
    "prod_code",
    "weight",
    "narrative",
]
SUMMARY_FIELDS = ("diag", "body_part", "location")

OTHER_LABEL = "Other"
MISSING_LABEL = "(missing)"
RATE_SCALE = 1e4


def get_source_files(data_dir: Optional[Path] = None) -> List[Path]:
    base = Path(data_dir or DATA_DIR)
    files = [base / INJURIES_FILE, base / PRODUCTS_FILE, base / POPULATION_FILE]
    return [f for f in files if f.exists()]


def file_signature(files: List[Path]) -> Tuple[Tuple[str, float], ...]:
    return tuple((f.name, f.stat().st_mtime) for f in files)


def numericize(df: pd.DataFrame, cols: Iterable[str]) -> pd.DataFrame:
    for col in cols:
        if col in df.columns:
            df[col] = pd.to_numeric(df[col], errors="coerce")
    return df


def coerce_str_safe(df: pd.DataFrame, cols: Iterable[str]) -> pd.DataFrame:
    for col in cols:
        if col in df.columns:
            series = df[col].astype("string").str.strip()
            series = series.replace({"nan": pd.NA, "None": pd.NA, "": pd.NA})
            df[col] = series
    return df


def _read_tsv(path: Path) -> pd.DataFrame:
    if not path.exists():
        logger.warning("data file not found: %s", path)
        return pd.DataFrame()
    try:
        return pd.read_csv(path, sep="\t")
    except pd.errors.EmptyDataError:
        logger.warning("data file is empty: %s", path)
        return pd.DataFrame()


def load_injuries(data_dir: Optional[Path] = None) -> pd.DataFrame:
    df = _read_tsv(Path(data_dir or DATA_DIR) / INJURIES_FILE)
    if df.empty:
        return pd.DataFrame(columns=INJURY_COLUMNS)
    if "trmt_date" in df.columns:
        df["trmt_date"] = pd.to_datetime(df["trmt_date"], errors="coerce")
    df = numericize(df, ["age", "prod_code", "weight"])
    df = coerce_str_safe(df, ["sex", "race", "body_part", "diag", "location", "narrative"])
    df = df.dropna(subset=["prod_code"]).reset_index(drop=True)
    df["prod_code"] = df["prod_code"].astype(int)
    df["weight"] = df["weight"].fillna(0.0)
    logger.info("loaded %d injury records", len(df))
    return df


def load_products(data_dir: Optional[Path] = None) -> pd.DataFrame:
    df = _read_tsv(Path(data_dir or DATA_DIR) / PRODUCTS_FILE)
    if df.empty:
        return pd.DataFrame(columns=["prod_code", "title"])
    df = numericize(df, ["prod_code"]).dropna(subset=["prod_code"]).copy()
    df["prod_code"] = df["prod_code"].astype(int)
    df["title"] = df["title"].astype(str).str.strip()
    logger.info("loaded %d products", len(df))
    return df[["prod_code", "title"]].reset_index(drop=True)


def load_population(data_dir: Optional[Path] = None) -> pd.DataFrame:
    df = _read_tsv(Path(data_dir or DATA_DIR) / POPULATION_FILE)
    if df.empty:
        return pd.DataFrame(columns=["age", "sex", "population"])
    df = numericize(df, ["age", "population"])
    df = coerce_str_safe(df, ["sex"])
    logger.info("loaded %d population rows", len(df))
    return df[["age", "sex", "population"]]


def product_choices(products: pd.DataFrame) -> Dict[str, int]:
    """Map human-readable product titles to product codes, ordered by title."""
    if products.empty:
        return {}
    ordered = products.sort_values("title")
    return {str(t): int(c) for t, c in zip(ordered["title"], ordered["prod_code"])}


def product_title(products: pd.DataFrame, prod_code: Optional[int]) -> Optional[str]:
    if prod_code is None or products.empty:
        return None
    match = products.loc[products["prod_code"] == prod_code, "title"]
    return str(match.iloc[0]) if not match.empty else None


def select_product(injuries: pd.DataFrame, prod_code: Optional[int]) -> pd.DataFrame:
    """Exact-match filter on product code. Keeps record order; index is reset to 0..n-1."""
    if injuries.empty or prod_code is None or "prod_code" not in injuries.columns:
        return injuries.head(0).copy()
    return injuries[injuries["prod_code"] == prod_code].reset_index(drop=True)


def count_top(df: pd.DataFrame, var: str, n: int = 5) -> pd.DataFrame:
    """Weighted top-``n`` frequency table for ``var``.

    Categories are ranked by total weight. Everything beyond the first ``n`` is
    collapsed into a single "Other" row that is always appended last,
    regardless of its own weight. Counts are truncated to integers.
    """
    if df.empty or var not in df.columns:
        return pd.DataFrame({var: pd.Series(dtype=object), "n": pd.Series(dtype=int)})

    n = max(0, int(n))
    keys = df[var].astype(object).where(df[var].notna(), MISSING_LABEL).astype(str).rename(var)
    totals = df["weight"].groupby(keys).sum().reset_index()
    totals.columns = [var, "n"]
    # ties fall back to label order
    totals = totals.sort_values(["n", var], ascending=[False, True], kind="mergesort")

    top = totals.head(n).reset_index(drop=True)
    rest = totals.iloc[n:]
    if not rest.empty:
        top = pd.concat([top, pd.DataFrame({var: [OTHER_LABEL], "n": [rest["n"].sum()]})], ignore_index=True)
    top["n"] = top["n"].astype(float).astype(int)
    return top


def rate_by_age_sex(df: pd.DataFrame, population: pd.DataFrame) -> pd.DataFrame:
    """Weighted injury counts per (age, sex) joined to population, with rate per 10,000.

    Groups without a population row keep a missing ``population`` and ``rate``.
    """
    columns = ["age", "sex", "n", "population", "rate"]
    if df.empty:
        return pd.DataFrame(columns=columns)

    counts = df.groupby(["age", "sex"], dropna=False, sort=True)["weight"].sum().reset_index(name="n")
    if population.empty:
        counts["population"] = float("nan")
    else:
        pop = population.drop_duplicates(subset=["age", "sex"])
        counts = counts.merge(pop[["age", "sex", "population"]], on=["age", "sex"], how="left")
    counts["population"] = pd.to_numeric(counts["population"], errors="coerce")
    counts["rate"] = counts["n"] / counts["population"] * RATE_SCALE
    return counts[columns]


# ---------------- Public API (Streamlit parity + FastAPI use) ----------------
@lru_cache(maxsize=4)
def _load_dashboard_data_cached(data_dir: str, files_sig: Tuple[Tuple[str, float], ...]) -> Dict[str, object]:
    injuries = load_injuries(Path(data_dir))
    products = load_products(Path(data_dir))
    population = load_population(Path(data_dir))
    return {
        "files": [name for name, _ in files_sig],
        "injuries": injuries,
        "products": products,
        "population": population,
        "choices": product_choices(products),
    }


def load_dashboard_data(data_dir: Optional[Path] = None) -> Dict[str, object]:
    base = Path(data_dir or DATA_DIR)
    files = get_source_files(base)
    if not files:
        logger.warning("no data files found in %s", base)
        return {
            "files": [],
            "injuries": pd.DataFrame(columns=INJURY_COLUMNS),
            "products": pd.DataFrame(columns=["prod_code", "title"]),
            "population": pd.DataFrame(columns=["age", "sex", "population"]),
            "choices": {},
        }
    return _load_dashboard_data_cached(str(base), file_signature(files))


def available_codes(data_ctx: Dict[str, object]) -> List[int]:
    return list((data_ctx.get("choices") or {}).values())


def prepare_context(filters: dict | DashboardFilters, data_ctx: Dict[str, object]) -> Dict[str, object]:
    """Derive every filter-dependent value: selection -> top-k tables and age/sex summary."""
    filt = filters if isinstance(filters, DashboardFilters) else normalize_filters(filters, available_codes=available_codes(data_ctx))

    injuries: pd.DataFrame = data_ctx.get("injuries", pd.DataFrame())
    products: pd.DataFrame = data_ctx.get("products", pd.DataFrame())
    population: pd.DataFrame = data_ctx.get("population", pd.DataFrame())

    selected = select_product(injuries, filt.prod_code)
    tables = {field: count_top(selected, field, filt.n_factors) for field in SUMMARY_FIELDS}
    age_sex = rate_by_age_sex(selected, population)

    return {
        "filters": filt,
        "title": product_title(products, filt.prod_code),
        "selected": selected,
        "tables": tables,
        "age_sex": age_sex,
    }
