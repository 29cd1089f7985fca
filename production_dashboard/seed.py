"""
Seed data generator for a fresh local cache.

Generates plausible plan/actual rows for the current and previous month.
All values are synthetic and deterministic for a given seed.
"""

import numpy as np
import pandas as pd

from .config import CATEGORIES, PROCESSES
from .models import OffDay, ProductionEntry

# ---------------------------------------------------------------------------
# Typical line parameters
# ---------------------------------------------------------------------------
_PRODUCTS = {
    "Cosmetic": ["Herbal Face Cream 50g", "Aloe Vera Gel 100ml", "Rose Toner 150ml"],
    "Pharma": ["Pain Relief Gel 50g", "Vitamin C 500mg", "Cough Syrup 120ml"],
    "Food": ["Honey Sachet 15g", "Black Seed Paste 250g", "Ginger Drink 20s"],
}
_PLAN_RANGE = (500, 2500)
_ACTUAL_RATIO = {"mean": 0.93, "std": 0.08}
_MANPOWER_RANGE = (3, 12)
_PROCESSES_PER_DAY = 2
_SEED_USER = "1"


def generate_seed_entries(
    today: str,
    n_months: int = 2,
    off_days: list[OffDay] | None = None,
    seed: int = 42,
) -> list[ProductionEntry]:
    """Generate seed entries for the `n_months` months ending at `today`.

    Sundays and off-days are skipped. Dates before `today` get actuals;
    `today` itself is plan-only.
    """
    rng = np.random.default_rng(seed)
    today_ts = pd.Timestamp(today)
    start = (today_ts.to_period("M") - (n_months - 1)).to_timestamp()
    blocked = {od.date for od in off_days or []}

    entries = []
    for day in pd.date_range(start, today_ts, freq="D"):
        date = day.strftime("%Y-%m-%d")
        if day.dayofweek == 6 or date in blocked:
            continue

        for category in CATEGORIES:
            processes = rng.choice(PROCESSES, size=_PROCESSES_PER_DAY, replace=False)
            for process in processes:
                product = str(rng.choice(_PRODUCTS.get(category, ["Generic Product"])))
                plan = int(rng.integers(*_PLAN_RANGE) // 50 * 50)

                actual = 0
                batch_no = None
                manpower = None
                if day < today_ts:
                    ratio = rng.normal(_ACTUAL_RATIO["mean"], _ACTUAL_RATIO["std"])
                    actual = max(int(round(plan * ratio)), 0)
                    batch_no = f"B-{day.strftime('%Y%m%d')}-{int(rng.integers(0, 10000))}"
                    manpower = int(rng.integers(*_MANPOWER_RANGE))

                entries.append(ProductionEntry(
                    id=f"seed-{date}-{len(entries)}",
                    date=date,
                    category=category,
                    process=str(process),
                    product_name=product,
                    plan_quantity=plan,
                    actual_quantity=actual,
                    batch_no=batch_no,
                    manpower=manpower,
                    last_updated_by=_SEED_USER,
                    updated_at=f"{date}T08:00:00.000Z",
                ))

    return entries
