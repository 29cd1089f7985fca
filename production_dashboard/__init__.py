"""
Production Tracking Dashboard

Record store, remote sheet sync and monthly aggregation for a
manufacturing site's plan-vs-actual production log.

To point the store at a spreadsheet-backed endpoint:
    Set PRODUCTION_SHEETS_URL (or call RecordStore.set_endpoint) to the
    web-app URL. Reads use ``?action=getProduction`` / ``getOffDays``;
    writes POST ``{action, data, timestamp}``.

To connect to Streamlit:
    Build one RecordStore with RecordStore.from_settings() and call
    dashboard.get_monthly_overview(entries, off_days, category, month) to
    get a plain dict for cards, the process chart and the daily log.

To add a new process or category:
    Append it to config.PROCESSES / config.CATEGORIES. Processes seen in
    the data but missing from the list still show up in the breakdown.
"""

__version__ = "0.1.0"
