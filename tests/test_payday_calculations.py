"""Tests for payday rules and salary-cycle bounds."""

from datetime import date

import pytest

from finledger.core.exceptions import ValidationError
from finledger.utils.payday_calculations import (
    calendar_month,
    current_cycle,
    iter_paydays,
    last_working_day,
    past_paydays,
    payday_for_month,
    salary_day_cycle,
)


class TestPaydayRules:
    def test_fixed_day_clamps_in_short_month(self):
        # April has 30 days
        assert payday_for_month(2026, 4, "fixed_day", 31) == date(2026, 4, 30)

    def test_fixed_day_february(self):
        assert payday_for_month(2026, 2, "fixed_day", 30) == date(2026, 2, 28)
        assert payday_for_month(2028, 2, "fixed_day", 30) == date(2028, 2, 29)

    def test_fixed_day_is_not_moved_off_weekends(self):
        # 2026-10-31 is a Saturday
        assert payday_for_month(2026, 10, "fixed_day", 31) == date(2026, 10, 31)

    def test_last_working_day_skips_saturday(self):
        assert last_working_day(2026, 10) == date(2026, 10, 30)

    def test_last_working_day_skips_sunday(self):
        # 2026-05-31 is a Sunday
        assert last_working_day(2026, 5) == date(2026, 5, 29)

    def test_last_working_day_on_weekday(self):
        assert last_working_day(2026, 12) == date(2026, 12, 31)

    def test_fixed_day_requires_day(self):
        with pytest.raises(ValidationError):
            payday_for_month(2026, 4, "fixed_day", None)

    def test_unknown_rule(self):
        with pytest.raises(ValidationError):
            payday_for_month(2026, 4, "nth_weekday", None)


class TestPaydaySequences:
    def test_next_paydays_roll_over_year(self):
        paydays = list(iter_paydays("last_working_day", None, 3, today=date(2026, 11, 5)))

        assert [p.date for p in paydays] == [date(2026, 11, 30), date(2026, 12, 31), date(2027, 1, 29)]
        assert [(p.month, p.year) for p in paydays] == [(11, 2026), (12, 2026), (1, 2027)]

    def test_next_paydays_fixed_day(self):
        paydays = list(iter_paydays("fixed_day", 31, 3, today=date(2026, 4, 10)))

        assert [p.date for p in paydays] == [date(2026, 4, 30), date(2026, 5, 31), date(2026, 6, 30)]

    def test_next_paydays_is_lazy(self):
        gen = iter_paydays("fixed_day", 1, 1000, today=date(2026, 1, 1))
        assert next(gen).date == date(2026, 1, 1)

    def test_zero_count(self):
        assert list(iter_paydays("fixed_day", 1, 0, today=date(2026, 1, 1))) == []

    def test_past_paydays_newest_first(self):
        paydays = past_paydays("fixed_day", 15, 2, today=date(2026, 1, 10))

        assert [p.date for p in paydays] == [date(2025, 12, 15), date(2025, 11, 15)]


class TestCurrentCycle:
    def test_day_one_is_calendar_month(self):
        cycle = current_cycle(1, date(2026, 10, 18))

        assert (cycle.start, cycle.end) == (date(2026, 10, 1), date(2026, 10, 31))
        assert cycle.label == "Oct 2026"

    def test_before_start_day_uses_previous_month(self):
        cycle = current_cycle(25, date(2026, 10, 5))

        assert (cycle.start, cycle.end) == (date(2026, 9, 25), date(2026, 10, 24))
        assert cycle.label == "Sep 25 - Oct 24"

    def test_on_start_day(self):
        cycle = current_cycle(25, date(2026, 12, 25))

        assert (cycle.start, cycle.end) == (date(2026, 12, 25), date(2027, 1, 24))

    def test_start_day_clamped_in_short_months(self):
        cycle = current_cycle(31, date(2026, 3, 30))

        assert (cycle.start, cycle.end) == (date(2026, 2, 28), date(2026, 3, 30))

    @pytest.mark.parametrize("start_day", [1, 5, 15, 28, 29, 30, 31])
    def test_today_always_inside(self, start_day):
        day = date(2026, 1, 1)
        while day.year == 2026:
            cycle = current_cycle(start_day, day)
            assert cycle.start <= day <= cycle.end
            day = date.fromordinal(day.toordinal() + 1)

    def test_invalid_start_day(self):
        with pytest.raises(ValidationError):
            current_cycle(32, date(2026, 1, 1))

    def test_calendar_month(self):
        cycle = calendar_month(date(2026, 2, 14))

        assert (cycle.start, cycle.end) == (date(2026, 2, 1), date(2026, 2, 28))


class TestSalaryDayCycle:
    # last working days: 2026-09-30 (Wed), 2026-10-30 (Fri), 2026-11-30 (Mon)

    def test_before_this_months_payday(self):
        cycle = salary_day_cycle("last_working_day", None, today=date(2026, 10, 5))

        assert (cycle.start, cycle.end) == (date(2026, 9, 30), date(2026, 10, 29))
        assert cycle.label == "Sep 30 - Oct 29"

    def test_on_payday_starts_new_cycle(self):
        cycle = salary_day_cycle("last_working_day", None, today=date(2026, 10, 30))

        assert (cycle.start, cycle.end) == (date(2026, 10, 30), date(2026, 11, 29))

    def test_fixed_day_payday(self):
        cycle = salary_day_cycle("fixed_day", 25, today=date(2026, 10, 5))

        assert (cycle.start, cycle.end) == (date(2026, 9, 25), date(2026, 10, 24))

    def test_recorded_pay_date_opens_cycle(self):
        cycle = salary_day_cycle(
            "last_working_day", None, today=date(2026, 10, 29), last_pay_date=date(2026, 10, 28)
        )

        assert (cycle.start, cycle.end) == (date(2026, 10, 28), date(2026, 11, 29))
        assert cycle.label == "Oct 28 - Nov 29"

    def test_recorded_pay_date_closes_cycle(self):
        cycle = salary_day_cycle(
            "last_working_day", None, today=date(2026, 10, 20), last_pay_date=date(2026, 10, 28)
        )

        assert (cycle.start, cycle.end) == (date(2026, 9, 30), date(2026, 10, 27))

    def test_early_salary_last_month(self):
        cycle = salary_day_cycle(
            "last_working_day", None, today=date(2026, 10, 5), last_pay_date=date(2026, 9, 28)
        )

        assert (cycle.start, cycle.end) == (date(2026, 9, 28), date(2026, 10, 29))

    def test_stale_pay_date_is_ignored(self):
        cycle = salary_day_cycle(
            "last_working_day", None, today=date(2026, 10, 5), last_pay_date=date(2026, 6, 30)
        )

        assert (cycle.start, cycle.end) == (date(2026, 9, 30), date(2026, 10, 29))

    @pytest.mark.parametrize("day", [1, 15, 28, 31])
    def test_today_always_inside(self, day):
        for month in range(1, 13):
            today = date(2026, month, min(day, 28))
            cycle = salary_day_cycle("fixed_day", day, today=today)
            assert cycle.start <= today <= cycle.end
