"""
Data transforms: turn store records into DataFrames and apply the
category/month filters shared by the KPI, dashboard and report code.

Frames built here keep the source list position as their index, so a
filtered frame can be mapped back to the original record objects.
"""

import logging

import pandas as pd

from .models import OffDay, ProductionEntry

logger = logging.getLogger(__name__)

ENTRY_COLUMNS = [
    "id", "date", "month", "category", "process", "product_name",
    "plan_quantity", "actual_quantity", "batch_no", "manpower",
    "last_updated_by", "updated_at",
]


def entries_to_frame(entries: list[ProductionEntry]) -> pd.DataFrame:
    """Build the entry fact table.

    Returns
    -------
    DataFrame indexed by list position with columns:
        id, date, month, category, process, product_name, plan_quantity,
        actual_quantity, batch_no, manpower, last_updated_by, updated_at
    """
    # Quantities stay Python ints (object dtype): sheet cells can exceed
    # int64, and sums must not wrap.
    if not entries:
        return pd.DataFrame(columns=ENTRY_COLUMNS, dtype=object)

    rows = []
    for entry in entries:
        rows.append({
            "id": str(entry.id),
            "date": entry.date,
            "month": entry.date[:7],
            "category": entry.category,
            "process": entry.process,
            "product_name": entry.product_name,
            "plan_quantity": entry.plan_quantity,
            "actual_quantity": entry.actual_quantity,
            "batch_no": entry.batch_no,
            "manpower": entry.manpower,
            "last_updated_by": entry.last_updated_by,
            "updated_at": entry.updated_at,
        })

    return pd.DataFrame(rows, columns=ENTRY_COLUMNS, dtype=object)


def off_days_to_frame(off_days: list[OffDay]) -> pd.DataFrame:
    """Off-day dimension table with columns date, month, description."""
    if not off_days:
        return pd.DataFrame(columns=["date", "month", "description"])

    df = pd.DataFrame([{"date": od.date, "description": od.description} for od in off_days])
    df.insert(1, "month", df["date"].str[:7])
    # one off-day per date; the first record for a date wins
    return df.drop_duplicates(subset="date", keep="first")


def sort_by_date_desc(df: pd.DataFrame) -> pd.DataFrame:
    """Descending by date string; stable so same-day rows keep their order."""
    return df.sort_values("date", ascending=False, kind="mergesort")


def filter_category(df_entries: pd.DataFrame, category: str) -> pd.DataFrame:
    """Entries with an exact category match, newest date first."""
    return sort_by_date_desc(df_entries[df_entries["category"] == category])


def filter_category_month(df_entries: pd.DataFrame, category: str, month: str) -> pd.DataFrame:
    """Entries with an exact category match in month `month` (YYYY-MM)."""
    mask = (df_entries["category"] == category) & (df_entries["month"] == month)
    return df_entries[mask]
