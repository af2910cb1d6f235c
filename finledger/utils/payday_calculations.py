import calendar
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterator, Optional

from finledger.core.exceptions import ValidationError

FIXED_DAY = "fixed_day"
LAST_WORKING_DAY = "last_working_day"
PAYDAY_RULES = (FIXED_DAY, LAST_WORKING_DAY)

MONTH_NAMES = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
               "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]


@dataclass(frozen=True)
class Payday:
    month: int
    year: int
    date: date


@dataclass(frozen=True)
class Cycle:
    start: date
    end: date
    label: str


def clamp_day(year: int, month: int, day: int) -> date:
    last = calendar.monthrange(year, month)[1]
    return date(year, month, min(day, last))


def shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    idx = year * 12 + (month - 1) + delta
    return idx // 12, idx % 12 + 1


def last_working_day(year: int, month: int) -> date:
    """Last Mon-Fri of the month. Weekends only, no holiday calendar."""
    d = clamp_day(year, month, 31)
    while d.weekday() >= 5:
        d -= timedelta(days=1)
    return d


def payday_for_month(year: int, month: int, rule: str, fixed_day: Optional[int] = None) -> date:
    # fixed_day is only clamped to the month end and stays put on weekends;
    # skipping weekends is what last_working_day is for
    if rule == FIXED_DAY:
        if not fixed_day:
            raise ValidationError("fixed_day is required when payday_rule is fixed_day")
        return clamp_day(year, month, fixed_day)
    if rule == LAST_WORKING_DAY:
        return last_working_day(year, month)
    raise ValidationError(f"Unknown payday_rule: {rule}")


def iter_paydays(
        rule: str,
        fixed_day: Optional[int],
        count: int,
        today: Optional[date] = None,
) -> Iterator[Payday]:
    """Paydays for `count` months starting with the current month."""
    today = today or date.today()
    year, month = today.year, today.month
    for _ in range(max(0, count)):
        yield Payday(month=month, year=year, date=payday_for_month(year, month, rule, fixed_day))
        year, month = shift_month(year, month, 1)


def past_paydays(
        rule: str,
        fixed_day: Optional[int],
        count: int,
        today: Optional[date] = None,
) -> list[Payday]:
    """Paydays of the `count` months before the current one, newest first."""
    today = today or date.today()
    out = []
    for back in range(1, max(0, count) + 1):
        year, month = shift_month(today.year, today.month, -back)
        out.append(Payday(month=month, year=year, date=payday_for_month(year, month, rule, fixed_day)))
    return out


def cycle_label(start: date, end: date) -> str:
    if start.month == end.month and start.year == end.year:
        return f"{MONTH_NAMES[start.month - 1]} {start.year}"
    return f"{MONTH_NAMES[start.month - 1]} {start.day} - {MONTH_NAMES[end.month - 1]} {end.day}"


def current_cycle(month_cycle_start_day: Optional[int], today: Optional[date] = None) -> Cycle:
    """
    [start_day of current or previous month, start_day of next month - 1 day].
    The start day is clamped per month, so `today` always falls inside.
    """
    today = today or date.today()
    start_day = month_cycle_start_day or 1
    if not 1 <= start_day <= 31:
        raise ValidationError("month_cycle_start_day must be between 1 and 31")

    this_start = clamp_day(today.year, today.month, start_day)
    if today >= this_start:
        start = this_start
    else:
        py, pm = shift_month(today.year, today.month, -1)
        start = clamp_day(py, pm, start_day)

    ny, nm = shift_month(start.year, start.month, 1)
    end = clamp_day(ny, nm, start_day) - timedelta(days=1)

    return Cycle(start=start, end=end, label=cycle_label(start, end))


def calendar_month(today: Optional[date] = None) -> Cycle:
    today = today or date.today()
    start = today.replace(day=1)
    end = clamp_day(today.year, today.month, 31)
    return Cycle(start=start, end=end, label=cycle_label(start, end))


def salary_day_cycle(
        rule: str,
        fixed_day: Optional[int],
        today: Optional[date] = None,
        last_pay_date: Optional[date] = None,
) -> Cycle:
    """
    Cycle anchored on the salary itself: [payday, next payday - 1 day].

    A recorded `last_pay_date` from this month or the month before wins
    while `today` sits between it and the payday that follows it, or between
    the expected payday of the month before it and it. Otherwise the cycle
    runs between the expected paydays around `today`.
    """
    today = today or date.today()

    def payday(year: int, month: int) -> date:
        return payday_for_month(year, month, rule, fixed_day)

    def span(start: date, next_start: date) -> Cycle:
        end = next_start - timedelta(days=1)
        return Cycle(start=start, end=end, label=cycle_label(start, end))

    next_pay = payday(*shift_month(today.year, today.month, 1))

    prev_month = shift_month(today.year, today.month, -1)
    recent = last_pay_date is not None and (
        (last_pay_date.year, last_pay_date.month) in ((today.year, today.month), prev_month)
    )

    if recent:
        pay_after = payday(*shift_month(last_pay_date.year, last_pay_date.month, 1))
        if last_pay_date <= today < pay_after:
            return span(last_pay_date, pay_after)
        prev_pay = payday(*shift_month(last_pay_date.year, last_pay_date.month, -1))
        if prev_pay <= today < last_pay_date:
            return span(prev_pay, last_pay_date)

    this_pay = payday(today.year, today.month)
    if today >= this_pay:
        return span(this_pay, next_pay)
    return span(payday(*prev_month), this_pay)
