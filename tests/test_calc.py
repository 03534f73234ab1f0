import logging
from datetime import date

import pytest

import calc
from calc import WorkdayEntry


def test_scenario_month_and_totals(sample_workdays):
    reference = date(2024, 3, 10)
    assert calc.monthly_days(sample_workdays, reference) == 2
    assert calc.monthly_earnings(sample_workdays, reference, 800) == 1800
    assert calc.total_days(sample_workdays) == 3
    assert calc.total_earnings(sample_workdays, 800) == 2600


def test_empty_mapping_is_zero():
    assert calc.monthly_days({}, date(2024, 1, 1)) == 0
    assert calc.monthly_earnings({}, date(2024, 1, 1), 800) == 0
    assert calc.total_days({}) == 0
    assert calc.total_earnings({}, 800) == 0


def test_totals_match_unbounded_interval(sample_workdays):
    assert calc.total_days(sample_workdays) == calc.worked_days_in_interval(sample_workdays, None, None)
    assert calc.total_earnings(sample_workdays, 500) == calc.earnings_in_interval(sample_workdays, None, None, 500)


@pytest.mark.parametrize("reference", [date(2024, 3, 31), date(2024, 4, 1), date(2023, 12, 5)])
def test_monthly_never_exceeds_total(sample_workdays, reference):
    assert calc.monthly_days(sample_workdays, reference) <= calc.total_days(sample_workdays)


def test_unworked_values_never_count():
    workdays = {
        "2024-03-01": False,
        "2024-03-02": None,
        "2024-03-03": {"worked": False, "rate": 999},
        "2024-03-04": {"rate": 500},
    }
    assert calc.total_days(workdays) == 0
    assert calc.total_earnings(workdays, 800) == 0


def test_zero_rate_counts_day_but_not_money():
    workdays = {"2024-05-02": {"worked": True, "rate": 0}}
    assert calc.total_days(workdays) == 1
    assert calc.total_earnings(workdays, 800) == 0


def test_missing_rate_uses_default():
    workdays = {"2024-05-02": {"worked": True}}
    assert calc.total_earnings(workdays, 750) == 750


def test_interval_is_inclusive(sample_workdays):
    assert calc.worked_days_in_interval(sample_workdays, date(2024, 3, 1), date(2024, 3, 15)) == 2
    assert calc.worked_days_in_interval(sample_workdays, date(2024, 3, 2), date(2024, 3, 14)) == 0
    assert calc.earnings_in_interval(sample_workdays, date(2024, 3, 15), None, 800) == 1800


def test_malformed_keys_are_skipped_and_logged(caplog):
    workdays = {
        "2024-03-01": True,
        "not-a-date": True,
        "2024-02-30": True,
        "2024-3-5": True,
    }
    with caplog.at_level(logging.WARNING, logger="calc"):
        assert calc.total_days(workdays) == 1
        assert calc.monthly_earnings(workdays, date(2024, 3, 1), 800) == 800
    assert "not-a-date" in caplog.text


def test_bad_values_are_skipped():
    workdays = {
        "2024-03-01": {"worked": True, "rate": -5},
        "2024-03-02": {"worked": True, "rate": "lots"},
        "2024-03-03": "yes",
        "2024-03-04": {"worked": True, "rate": 100},
    }
    assert calc.total_days(workdays) == 1
    assert calc.total_earnings(workdays, 800) == 100


@pytest.mark.parametrize("key,expected", [
    ("2024-02-29", date(2024, 2, 29)),
    ("2023-02-29", None),
    ("20240301", None),
    ("2024-03-01T00:00", None),
    (20240301, None),
])
def test_parse_day_key(key, expected):
    assert calc.parse_day_key(key) == expected


def test_entry_from_raw_shapes():
    assert WorkdayEntry.from_raw(True) == WorkdayEntry(worked=True)
    assert WorkdayEntry.from_raw(None) == WorkdayEntry(worked=False)
    assert WorkdayEntry.from_raw({"worked": True, "rate": 1000}) == WorkdayEntry(True, 1000)
    entry = WorkdayEntry(True, 5)
    assert WorkdayEntry.from_raw(entry) is entry
    with pytest.raises(TypeError):
        WorkdayEntry.from_raw(["2024-03-01"])


def test_entry_rate_is_validated():
    with pytest.raises(ValueError):
        WorkdayEntry(rate=-1)
    with pytest.raises(TypeError):
        WorkdayEntry(rate=True)


def test_entry_to_document():
    assert WorkdayEntry(True, 1200).to_document() == {"worked": True, "rate": 1200}
    assert WorkdayEntry(True).to_document() == {"worked": True}


def test_marked_days(sample_workdays):
    workdays = dict(sample_workdays, **{"2024-03-20": False, "bogus": True})
    assert calc.marked_days(workdays) == {date(2024, 3, 1), date(2024, 3, 15), date(2024, 4, 1)}


def test_month_interval_handles_leap_february():
    assert calc.month_interval(date(2024, 2, 10)) == (date(2024, 2, 1), date(2024, 2, 29))
    assert calc.month_interval(date(2023, 12, 31)) == (date(2023, 12, 1), date(2023, 12, 31))


def test_month_grid_pads_with_none():
    grid = calc.month_grid(2024, 3)
    assert all(len(week) == 7 for week in grid)
    # March 2024 starts on a Friday
    assert grid[0][:4] == [None] * 4
    assert grid[0][4] == date(2024, 3, 1)
    assert [d for week in grid for d in week if d][-1] == date(2024, 3, 31)


def test_add_months_clamps_day():
    assert calc.add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
    assert calc.add_months(date(2024, 1, 1), -1) == date(2023, 12, 1)
    assert calc.add_months(date(2023, 11, 30), 14) == date(2025, 1, 30)
    assert calc.get_month_name(3) == "March"


def test_format_money():
    assert calc.format_money(1800, "UAH") == "1,800 UAH"
    assert calc.format_money(1800.0, "UAH") == "1,800 UAH"
    assert calc.format_money(12.5, "UAH") == "12.50 UAH"
