"""
KPI computation functions — pure functions with no side effects.

Provides efficiency calculation, RAG classification and the monthly
plan/actual rollup for one category.
"""

import logging

import pandas as pd

from .config import EFFICIENCY_AMBER, EFFICIENCY_GREEN
from .transforms import filter_category_month

logger = logging.getLogger(__name__)


def calc_efficiency(plan: float, actual: float) -> float:
    """Return actual / plan * 100, or 0.0 when nothing was planned.

    No plan means 0% efficiency, not undefined and not 100%.
    """
    if plan > 0:
        return (actual / plan) * 100
    return 0.0


def calc_variance(actual: float, plan: float) -> tuple[float, float | None]:
    """Return (absolute_variance, pct_variance).

    pct_variance is None if plan == 0.
    """
    absolute = actual - plan
    if plan == 0:
        return absolute, None
    return absolute, (absolute / plan) * 100


def classify_efficiency(efficiency: float) -> str:
    """Return 'green', 'amber' or 'red' for an efficiency percentage.

    Logic
    -----
    green  if efficiency >= 100
    amber  if efficiency >= 75
    red    otherwise
    """
    if pd.isna(efficiency):
        return "grey"
    if efficiency >= EFFICIENCY_GREEN:
        return "green"
    if efficiency >= EFFICIENCY_AMBER:
        return "amber"
    return "red"


def summarise_month(df_entries: pd.DataFrame, category: str, month: str) -> dict:
    """Monthly plan/actual totals for one category.

    Parameters
    ----------
    df_entries : Entry frame from transforms.entries_to_frame().
    category : Exact category to match.
    month : Month key (YYYY-MM).

    Returns
    -------
    {"category": ..., "month": ..., "plan": int, "actual": int,
     "variance": int, "variance_pct": float | None,
     "efficiency": float, "rag": str, "entry_count": int}
    """
    df = filter_category_month(df_entries, category, month)

    plan = int(df["plan_quantity"].sum()) if not df.empty else 0
    actual = int(df["actual_quantity"].sum()) if not df.empty else 0
    efficiency = calc_efficiency(plan, actual)
    variance, variance_pct = calc_variance(actual, plan)

    return {
        "category": category,
        "month": month,
        "plan": plan,
        "actual": actual,
        "variance": variance,
        "variance_pct": variance_pct,
        "efficiency": efficiency,
        "rag": classify_efficiency(efficiency),
        "entry_count": len(df),
    }
