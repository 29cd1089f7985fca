"""
Dashboard-ready output functions.

These are the primary entry points for the Streamlit front end and the
CLI. Each function returns plain dicts/lists suitable for rendering
cards, the process chart and the daily production log.
"""

import logging

import pandas as pd

from .config import PROCESSES
from .dates import format_display_date
from .kpis import calc_efficiency, calc_variance, classify_efficiency, summarise_month
from .models import OffDay, ProductionEntry
from .transforms import (
    entries_to_frame,
    filter_category,
    filter_category_month,
    off_days_to_frame,
)

logger = logging.getLogger(__name__)


def get_process_breakdown(
    df_entries: pd.DataFrame,
    category: str,
    month: str,
    processes: list[str] | None = None,
) -> list[dict]:
    """Plan/actual per process for one category and month.

    Every known process is present (zeros when it has no entries), in
    display order, followed by any other process found in the data in
    order of first appearance.

    Returns
    -------
    List of {"process", "plan", "actual", "variance", "efficiency", "rag"}
    dicts. variance is actual minus plan.
    """
    known = list(PROCESSES if processes is None else processes)
    df = filter_category_month(df_entries, category, month)

    order = known + [p for p in df["process"].unique().tolist() if p not in known]
    totals = (
        df.groupby("process", sort=False)[["plan_quantity", "actual_quantity"]].sum()
        if not df.empty
        else pd.DataFrame(columns=["plan_quantity", "actual_quantity"])
    )

    breakdown = []
    for process in order:
        if process in totals.index:
            plan = int(totals.at[process, "plan_quantity"])
            actual = int(totals.at[process, "actual_quantity"])
        else:
            plan, actual = 0, 0
        efficiency = calc_efficiency(plan, actual)
        variance, _ = calc_variance(actual, plan)
        breakdown.append({
            "process": process,
            "plan": plan,
            "actual": actual,
            "variance": variance,
            "efficiency": efficiency,
            "rag": classify_efficiency(efficiency),
        })

    return breakdown


def get_daily_groups(
    entries: list[ProductionEntry],
    off_days: list[OffDay],
    category: str,
    month: str,
) -> list[dict]:
    """Entries for a category/month bucketed by date, newest first.

    Off-days in the month get a bucket even with no entries so the log
    can show the holiday.

    Returns
    -------
    List of dicts:
        {"date", "display_date", "total_actual", "entries", "off_day"}
    where `entries` are the ProductionEntry objects for that date and
    `off_day` is the holiday description or None.
    """
    df = filter_category_month(entries_to_frame(entries), category, month)
    df_off = off_days_to_frame(off_days)
    df_off = df_off[df_off["month"] == month]
    holidays = dict(zip(df_off["date"], df_off["description"]))

    buckets: dict[str, dict] = {}
    for date, group in df.groupby("date", sort=False):
        buckets[date] = {
            "entries": [entries[i] for i in group.index],
            "total_actual": int(group["actual_quantity"].sum()),
        }

    dates = sorted(set(buckets) | set(holidays), reverse=True)

    groups = []
    for date in dates:
        bucket = buckets.get(date, {"entries": [], "total_actual": 0})
        groups.append({
            "date": date,
            "display_date": format_display_date(date),
            "total_actual": bucket["total_actual"],
            "entries": bucket["entries"],
            "off_day": holidays.get(date),
        })

    return groups


def get_category_entries(entries: list[ProductionEntry], category: str) -> list[ProductionEntry]:
    """All entries for a category, newest date first (the report base)."""
    df = filter_category(entries_to_frame(entries), category)
    return [entries[i] for i in df.index]


def get_available_months(entries: list[ProductionEntry], category: str | None = None) -> list[str]:
    """Month keys with data, newest first, for the month picker."""
    df = entries_to_frame(entries)
    if category is not None:
        df = df[df["category"] == category]
    if df.empty:
        return []
    return sorted(df["month"].unique().tolist(), reverse=True)


def get_monthly_overview(
    entries: list[ProductionEntry],
    off_days: list[OffDay],
    category: str,
    month: str,
) -> dict:
    """Single entry point the front end calls to populate the dashboard.

    Returns
    -------
    {
        "category": "Cosmetic",
        "month": "2025-01",
        "totals": {"plan": ..., "actual": ..., "efficiency": ..., "rag": ...},
        "processes": [{"process": "Mixing", "plan": ..., "actual": ...}, ...],
        "daily": [{"date": "2025-01-05", "total_actual": ..., "entries": [...]}, ...],
    }
    """
    df = entries_to_frame(entries)
    totals = summarise_month(df, category, month)

    overview = {
        "category": category,
        "month": month,
        "totals": totals,
        "processes": get_process_breakdown(df, category, month),
        "daily": get_daily_groups(entries, off_days, category, month),
    }
    logger.info(
        "Built overview for %s %s: plan=%d actual=%d",
        category, month, totals["plan"], totals["actual"],
    )
    return overview
