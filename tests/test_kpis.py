import pytest

from production_dashboard.kpis import calc_efficiency, calc_variance, classify_efficiency, summarise_month
from production_dashboard.transforms import entries_to_frame

from conftest import make_entry


@pytest.mark.parametrize("actual", [0, 1, 500])
def test_efficiency_is_zero_without_plan(actual):
    assert calc_efficiency(0, actual) == 0.0


def test_efficiency_ratio():
    assert calc_efficiency(100, 120) == pytest.approx(120.0)
    assert calc_efficiency(100, 80) == pytest.approx(80.0)


def test_variance():
    assert calc_variance(80, 100) == (-20, -20.0)
    assert calc_variance(5, 0) == (5, None)


def test_summarise_month_reports_variance():
    summary = summarise_month(entries_to_frame([make_entry()]), "A", "2025-01")
    assert summary["variance"] == -20
    assert summary["variance_pct"] == pytest.approx(-20.0)


def test_classify_efficiency_thresholds():
    assert classify_efficiency(100.0) == "green"
    assert classify_efficiency(75.0) == "amber"
    assert classify_efficiency(74.9) == "red"
    assert classify_efficiency(0.0) == "red"


def test_summarise_month_filters_category_and_month():
    df = entries_to_frame([
        make_entry(id="1"),
        make_entry(id="2", category="B", plan_quantity=999),
        make_entry(id="3", date="2025-02-01", plan_quantity=999),
        make_entry(id="4", date="2025-01-20", plan_quantity=50, actual_quantity=0),
    ])
    summary = summarise_month(df, "A", "2025-01")

    assert summary["plan"] == 150
    assert summary["actual"] == 80
    assert summary["efficiency"] == pytest.approx(80 / 150 * 100)
    assert summary["entry_count"] == 2


def test_summarise_month_empty():
    summary = summarise_month(entries_to_frame([]), "A", "2025-01")
    assert summary["plan"] == 0
    assert summary["actual"] == 0
    assert summary["efficiency"] == 0.0
