import csv
import io

from production_dashboard.config import CSV_HEADERS
from production_dashboard.reports import export_csv, report_filename

from conftest import make_entry


def read_rows(text):
    return list(csv.reader(io.StringIO(text)))


def test_export_header_and_order():
    entries = [
        make_entry(id="1", date="2025-01-05", batch_no="B-1", manpower=4),
        make_entry(id="2", date="2025-02-01"),
        make_entry(id="3", date="2025-02-01", category="B"),
    ]
    rows = read_rows(export_csv(entries, "A"))

    assert rows[0] == CSV_HEADERS
    assert [r[0] for r in rows[1:]] == ["2025-02-01", "2025-01-05"]
    assert rows[2] == ["2025-01-05", "Mixing", "Gel 50g", "100", "80", "B-1", "4"]


def test_missing_optional_fields_are_blank():
    rows = read_rows(export_csv([make_entry(), make_entry(id="2", manpower=3)], "A"))
    assert rows[1][5:] == ["", ""]
    assert rows[2][6] == "3"


def test_commas_in_free_text_are_quoted():
    entries = [make_entry(product_name="Cream, Rose 50g", batch_no='B "x", 1')]
    text = export_csv(entries, "A")
    rows = read_rows(text)

    assert len(rows[1]) == len(CSV_HEADERS)
    assert rows[1][2] == "Cream, Rose 50g"
    assert rows[1][5] == 'B "x", 1'


def test_month_filter_is_optional():
    entries = [make_entry(id="1", date="2025-01-05"), make_entry(id="2", date="2025-02-01")]
    assert len(read_rows(export_csv(entries, "A", month="2025-01"))) == 2


def test_empty_report_has_header_only():
    assert read_rows(export_csv([], "A")) == [CSV_HEADERS]


def test_report_filename():
    assert report_filename("Food & Drink", "2025-01") == "Production_Report_Food___Drink_2025-01.csv"
