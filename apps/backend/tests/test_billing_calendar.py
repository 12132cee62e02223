from datetime import date

import pytest

from cardledger.models import RecurrenceInterval
from cardledger.utils.billing_calendar import (
    add_months,
    add_months_rolling,
    first_occurrence_on_or_after,
    invoice_date,
    iter_occurrences,
    month_bounds,
    next_occurrence,
    shift_month,
)


@pytest.mark.parametrize(
    "purchase,expected",
    [
        (date(2024, 1, 3), date(2024, 1, 10)),
        (date(2024, 1, 5), date(2024, 1, 10)),
        (date(2024, 1, 10), date(2024, 2, 10)),
        (date(2024, 1, 31), date(2024, 2, 10)),
        (date(2023, 12, 31), date(2024, 1, 10)),
    ],
)
def test_invoice_date_closing_day_boundary(purchase, expected):
    assert invoice_date(purchase, closing_day=5, due_day=10) == expected


def test_invoice_due_day_past_month_end_spills_over():
    # purchase after closing on Jan 28 rolls to February, which has no 31st
    assert invoice_date(date(2024, 1, 28), closing_day=25, due_day=31) == date(2024, 3, 2)
    assert invoice_date(date(2023, 1, 28), closing_day=25, due_day=31) == date(2023, 3, 3)
    assert invoice_date(date(2024, 3, 28), closing_day=25, due_day=31) == date(2024, 5, 1)
    assert invoice_date(date(2024, 11, 28), closing_day=25, due_day=31) == date(2024, 12, 31)


def test_shift_month_crosses_years():
    assert shift_month(2024, 12, 1) == (2025, 1)
    assert shift_month(2024, 1, -1) == (2023, 12)
    assert shift_month(2024, 3, 24) == (2026, 3)


def test_add_months_clamps_short_months():
    assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
    assert add_months(date(2024, 1, 31), 3) == date(2024, 4, 30)
    assert add_months(date(2024, 11, 15), 3) == date(2025, 2, 15)


def test_add_months_rolling_spills_short_months():
    assert add_months_rolling(date(2024, 1, 31), 1) == date(2024, 3, 2)
    assert add_months_rolling(date(2023, 1, 31), 1) == date(2023, 3, 3)
    assert add_months_rolling(date(2024, 1, 31), 3) == date(2024, 5, 1)
    assert add_months_rolling(date(2024, 12, 15), 2) == date(2025, 2, 15)


def test_month_bounds():
    assert month_bounds(2024, 2) == (date(2024, 2, 1), date(2024, 2, 29))
    assert month_bounds(2023, 12) == (date(2023, 12, 1), date(2023, 12, 31))


def test_monthly_schedule_keeps_anchor_day():
    anchor = date(2024, 1, 31)
    feb = next_occurrence(anchor, RecurrenceInterval.MONTH, 1, anchor)
    mar = next_occurrence(anchor, RecurrenceInterval.MONTH, 1, feb)
    assert feb == date(2024, 2, 29)
    # back on the 31st once the month allows it
    assert mar == date(2024, 3, 31)


def test_next_occurrence_day_week_year():
    anchor = date(2024, 2, 29)
    assert next_occurrence(anchor, RecurrenceInterval.DAY, 3) == date(2024, 3, 3)
    assert next_occurrence(anchor, RecurrenceInterval.WEEK, 2) == date(2024, 3, 14)
    assert next_occurrence(anchor, RecurrenceInterval.YEAR, 1) == date(2025, 2, 28)


def test_iter_occurrences_is_inclusive():
    anchor = date(2024, 1, 15)
    dates = list(iter_occurrences(anchor, RecurrenceInterval.MONTH, 1, anchor, date(2024, 4, 15)))
    assert dates == [date(2024, 1, 15), date(2024, 2, 15), date(2024, 3, 15), date(2024, 4, 15)]


def test_first_occurrence_on_or_after():
    anchor = date(2024, 1, 1)
    assert first_occurrence_on_or_after(
        anchor, RecurrenceInterval.WEEK, 1, anchor, date(2024, 1, 20)
    ) == date(2024, 1, 22)
    assert first_occurrence_on_or_after(
        anchor, RecurrenceInterval.MONTH, 1, anchor, date(2024, 3, 1)
    ) == date(2024, 3, 1)
