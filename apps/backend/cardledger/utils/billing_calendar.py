"""
Billing calendar arithmetic

Pure date functions behind invoice assignment, installment dating and
recurrence schedules. Everything works on plain ``datetime.date`` values;
no time-of-day or UTC offset is involved.
"""

from __future__ import annotations

import calendar
from datetime import date, timedelta
from typing import Iterator

from cardledger.models import RecurrenceInterval


def shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    total = year * 12 + (month - 1) + delta
    new_year = total // 12
    new_month = total % 12 + 1
    return new_year, new_month


def _clamp_day(year: int, month: int, day: int) -> date:
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day, last_day))


def _roll_day(year: int, month: int, day: int) -> date:
    # days past the end of the month spill into the next one (31 Feb -> 2 or 3 Mar)
    return date(year, month, 1) + timedelta(days=day - 1)


def add_months(value: date, months: int, day: int | None = None) -> date:
    """
    Shift ``value`` by ``months`` calendar months.

    The resulting day of month is ``day`` (or ``value.day``), clamped to the
    length of the target month, so 31 January + 1 month is the last day of
    February and 31 January + 2 months is 31 March again when the caller
    keeps passing the anchor day.

    Example:
        >>> add_months(date(2024, 1, 31), 1)
        datetime.date(2024, 2, 29)
        >>> add_months(date(2024, 11, 15), 3)
        datetime.date(2025, 2, 15)
    """
    year, month = shift_month(value.year, value.month, months)
    return _clamp_day(year, month, day if day is not None else value.day)


def add_months_rolling(value: date, months: int) -> date:
    """
    Shift ``value`` by ``months`` calendar months, letting a day past the end
    of the target month spill over into the following month.

    Installment dates are derived this way from the purchase day, so each
    installment is computed from the original day rather than the previous
    installment.

    Example:
        >>> add_months_rolling(date(2024, 1, 31), 1)
        datetime.date(2024, 3, 2)
        >>> add_months_rolling(date(2024, 1, 31), 2)
        datetime.date(2024, 3, 31)
    """
    year, month = shift_month(value.year, value.month, months)
    return _roll_day(year, month, value.day)


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """First and last calendar day of ``year``/``month``."""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def invoice_month(purchase_date: date, closing_day: int) -> tuple[int, int]:
    """Year and month of the invoice a card purchase is billed under."""
    if purchase_date.day <= closing_day:
        return purchase_date.year, purchase_date.month
    return shift_month(purchase_date.year, purchase_date.month, 1)


def invoice_window(year: int, month: int, closing_day: int) -> tuple[date, date]:
    """
    First and last purchase day billed on the invoice of ``year``/``month``.

    The window runs from the day after the previous closing through this
    month's closing day; a closing day past the end of a month closes on
    that month's last day.

    Example:
        >>> invoice_window(2024, 2, closing_day=5)
        (datetime.date(2024, 1, 6), datetime.date(2024, 2, 5))
        >>> invoice_window(2024, 3, closing_day=30)
        (datetime.date(2024, 3, 1), datetime.date(2024, 3, 30))
    """
    prev_year, prev_month = shift_month(year, month, -1)
    start = _clamp_day(prev_year, prev_month, closing_day) + timedelta(days=1)
    return start, _clamp_day(year, month, closing_day)


def invoice_date(purchase_date: date, closing_day: int, due_day: int) -> date:
    """
    Due date of the invoice a card purchase is billed under.

    A purchase on or before the closing day belongs to the invoice due in
    the purchase month; later purchases roll to the following month
    (December rolls into January of the next year). A due day past the end
    of the invoice month spills into the month after it, so a card due on
    the 31st has its February invoice due on 2 or 3 March.

    Example:
        >>> invoice_date(date(2024, 1, 3), closing_day=5, due_day=10)
        datetime.date(2024, 1, 10)
        >>> invoice_date(date(2023, 12, 31), closing_day=5, due_day=10)
        datetime.date(2024, 1, 10)
        >>> invoice_date(date(2024, 1, 28), closing_day=25, due_day=31)
        datetime.date(2024, 3, 2)
    """
    year, month = invoice_month(purchase_date, closing_day)
    return _roll_day(year, month, due_day)


def current_invoice_date(today: date, closing_day: int, due_day: int) -> date:
    """Due date of the invoice that is open on ``today``."""
    return invoice_date(today, closing_day, due_day)


def invoice_due_date(year: int, month: int, due_day: int) -> date:
    """Due date of the invoice of ``year``/``month``, spilling over like ``invoice_date``."""
    return _roll_day(year, month, due_day)


def next_due_invoice(today: date, closing_day: int, due_day: int) -> tuple[int, int]:
    """
    Year and month of the first invoice due on or after ``today``.

    Between closing and due day that is the invoice that already closed;
    otherwise it is the open one.

    Example:
        >>> next_due_invoice(date(2024, 1, 7), closing_day=5, due_day=10)
        (2024, 1)
        >>> next_due_invoice(date(2024, 1, 20), closing_day=5, due_day=10)
        (2024, 2)
    """
    year, month = shift_month(*invoice_month(today, closing_day), -1)
    while invoice_due_date(year, month, due_day) < today:
        year, month = shift_month(year, month, 1)
    return year, month


def next_occurrence(
    anchor: date,
    interval: RecurrenceInterval,
    interval_count: int,
    last: date | None = None,
) -> date:
    """
    Occurrence following ``last`` (or ``anchor`` when nothing was generated).

    DAY and WEEK add plain days. MONTH and YEAR keep the anchor's day of
    month, clamped for short months, so a schedule anchored on the 31st
    returns to the 31st whenever the month allows it instead of drifting.
    """
    base = last or anchor
    if interval == RecurrenceInterval.DAY:
        return base + timedelta(days=interval_count)
    if interval == RecurrenceInterval.WEEK:
        return base + timedelta(days=7 * interval_count)
    if interval == RecurrenceInterval.MONTH:
        return add_months(base, interval_count, day=anchor.day)
    if interval == RecurrenceInterval.YEAR:
        return add_months(base, 12 * interval_count, day=anchor.day)
    raise ValueError(f"Unsupported recurrence interval: {interval!r}")


def iter_occurrences(
    anchor: date,
    interval: RecurrenceInterval,
    interval_count: int,
    start: date,
    until: date,
) -> Iterator[date]:
    """Yield schedule dates ``d`` with ``start <= d <= until``.

    ``start`` must itself lie on the schedule (the anchor or a previously
    computed occurrence).
    """
    current = start
    while current <= until:
        yield current
        current = next_occurrence(anchor, interval, interval_count, current)


def first_occurrence_on_or_after(
    anchor: date,
    interval: RecurrenceInterval,
    interval_count: int,
    start: date,
    target: date,
) -> date:
    """First schedule date ``>= target``, walking from ``start``."""
    current = start
    while current < target:
        current = next_occurrence(anchor, interval, interval_count, current)
    return current
