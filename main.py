"""
Production Tracking Dashboard — end-to-end smoke run.

Builds the record store, optionally pulls from the sheet endpoint, and
prints the monthly overview for one category before writing the CSV
report.

Usage:
    python main.py [--category Cosmetic] [--month 2025-01] [--sync] [--out DIR]
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from production_dashboard.config import CATEGORIES, SITE_NAME, load_settings
from production_dashboard.dashboard import get_available_months, get_monthly_overview
from production_dashboard.dates import current_month_iso, is_valid_month_key
from production_dashboard.reports import export_csv, report_filename
from production_dashboard.store import RecordStore

# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=f"{SITE_NAME} production summary")
    parser.add_argument("--category", default=CATEGORIES[0], help="category to summarise")
    parser.add_argument("--month", default=None, help="month key YYYY-MM (default: current month)")
    parser.add_argument("--sync", action="store_true", help="pull from the sheet endpoint first")
    parser.add_argument("--out", default=".", help="directory for the CSV report")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    """Run the summary pipeline and print smoke-test outputs."""
    args = parse_args(argv)
    settings = load_settings()
    month = args.month or current_month_iso(settings.timezone)

    if not is_valid_month_key(month):
        logger.error("Invalid month '%s', expected YYYY-MM", month)
        return 2

    print("=" * 70)
    print(f"  {SITE_NAME.upper()} — Production Tracking Dashboard")
    print("=" * 70)
    print()

    with RecordStore.from_settings(settings) as store:
        # ------------------------------------------------------------------
        # 1. Sync
        # ------------------------------------------------------------------
        print("[ 1 ] REMOTE SYNC")
        print("-" * 40)
        if args.sync:
            result = asyncio.run(store.sync())
            print(f"  entries overwritten:  {result.entries}")
            print(f"  off-days overwritten: {result.off_days}")
        else:
            state = "enabled" if store.adapter.is_enabled() else "disabled"
            print(f"  skipped (endpoint {state})")

        entries = store.get_entries()
        off_days = store.get_off_days()
        print(f"\n  {len(entries)} production entries, {len(off_days)} off-days in local cache")

        # ------------------------------------------------------------------
        # 2. Monthly overview
        # ------------------------------------------------------------------
        print("\n")
        print(f"[ 2 ] MONTHLY OVERVIEW — {args.category} / {month}")
        print("-" * 40)

        overview = get_monthly_overview(entries, off_days, args.category, month)
        totals = overview["totals"]
        print(f"\n  Plan:       {totals['plan']:,}")
        print(f"  Actual:     {totals['actual']:,}")
        pct = totals["variance_pct"]
        pct_text = f" ({pct:+.1f}%)" if pct is not None else ""
        print(f"  Variance:   {totals['variance']:+,}{pct_text}")
        print(f"  Efficiency: {totals['efficiency']:.1f}% ({totals['rag']})")

        print("\n  Process breakdown:")
        for proc in overview["processes"]:
            print(
                f"    {proc['process']:12s} | plan {proc['plan']:>8,} | "
                f"actual {proc['actual']:>8,} | var {proc['variance']:>+8,} | "
                f"{proc['efficiency']:6.1f}%"
            )

        print("\n  Daily log:")
        for group in overview["daily"]:
            note = f"  [OFF: {group['off_day']}]" if group["off_day"] else ""
            print(
                f"    {group['display_date']:22s} | {len(group['entries']):3d} entries | "
                f"actual {group['total_actual']:>8,}{note}"
            )

        months = get_available_months(entries, args.category)
        print(f"\n  Months with data: {months}")

        # ------------------------------------------------------------------
        # 3. Report
        # ------------------------------------------------------------------
        print("\n")
        print("[ 3 ] CSV REPORT")
        print("-" * 40)
        out_dir = Path(args.out)
        out_dir.mkdir(parents=True, exist_ok=True)
        path = out_dir / report_filename(args.category, month)
        path.write_text(export_csv(entries, args.category), encoding="utf-8")
        print(f"\n  Wrote {path}")

    print("\n" + "=" * 70)
    print("  Done.")
    print("=" * 70)
    return 0


if __name__ == "__main__":
    sys.exit(main())
