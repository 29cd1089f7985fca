"""
CSV production report export.

Fields go through pandas' CSV writer, so product names or batch numbers
containing commas or quotes are quoted instead of splitting the row.
"""

import logging

import pandas as pd

from .config import CSV_HEADERS
from .dashboard import get_category_entries
from .models import ProductionEntry

logger = logging.getLogger(__name__)


def build_report_frame(
    entries: list[ProductionEntry],
    category: str,
    month: str | None = None,
) -> pd.DataFrame:
    """Report rows for a category, newest date first.

    The report covers every month of the category unless `month` is given.
    """
    selected = get_category_entries(entries, category)
    if month is not None:
        selected = [e for e in selected if e.month == month]

    rows = [
        [e.date, e.process, e.product_name, e.plan_quantity, e.actual_quantity, e.batch_no, e.manpower]
        for e in selected
    ]
    # object dtype keeps ints as ints when manpower has gaps
    return pd.DataFrame(rows, columns=CSV_HEADERS, dtype=object)


def export_csv(
    entries: list[ProductionEntry],
    category: str,
    month: str | None = None,
) -> str:
    """Render the production report as CSV text with a fixed header row."""
    df = build_report_frame(entries, category, month)
    logger.info("Exported %d report rows for %s", len(df), category)
    return df.to_csv(index=False, lineterminator="\n")


def report_filename(category: str, month: str) -> str:
    safe_category = "".join(c if c.isalnum() else "_" for c in category)
    return f"Production_Report_{safe_category}_{month}.csv"
