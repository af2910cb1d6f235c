import calendar
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, ROUND_HALF_UP, ROUND_DOWN
from typing import Iterator, Optional

from finledger.core.exceptions import ValidationError

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def money(x) -> Decimal:
    """Always return 2-decimal Decimal with HALF_UP rounding."""
    if x is None:
        x = 0
    if not isinstance(x, Decimal):
        x = Decimal(str(x))
    return x.quantize(CENT, rounding=ROUND_HALF_UP)


def monthly_rate(annual_rate_percent: Decimal) -> Decimal:
    """r = R / 1200, kept unrounded."""
    return Decimal(str(annual_rate_percent)) / Decimal("1200")


def add_months(start: date, months: int, day: Optional[int] = None) -> date:
    """
    start advanced by `months` calendar months, landing on `day`
    (default start.day) clamped to the last day of the target month.

    Example:
      add_months(date(2026, 1, 31), 1) => 2026-02-28
    """
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day or start.day, last_day))


def validate_terms(principal, interest_rate_percent, tenure_months) -> None:
    if principal is None or Decimal(str(principal)) <= 0:
        raise ValidationError("principal_amount must be > 0")
    if tenure_months is None or int(tenure_months) <= 0:
        raise ValidationError("tenure must be > 0")
    if interest_rate_percent is None or Decimal(str(interest_rate_percent)) < 0:
        raise ValidationError("interest_rate must be >= 0")


def compute_emi(
        principal: Decimal,
        interest_rate_percent: Decimal,
        tenure_months: int,
) -> Decimal:
    """
    REDUCING BALANCE:
      EMI = P * r * (1+r)^N / ((1+r)^N - 1),  r = rate% / 1200

    Zero rate:
      EMI = P / N, rounded DOWN to cents (the remainder goes to the last row)

    Example:
      principal=120000, rate=12, tenure=12 => 10661.85
    """
    validate_terms(principal, interest_rate_percent, tenure_months)

    principal = money(principal)
    n = int(tenure_months)
    r = monthly_rate(interest_rate_percent)

    if r == 0:
        return (principal / n).quantize(CENT, rounding=ROUND_DOWN)

    growth = (1 + r) ** n
    return money(principal * r * growth / (growth - 1))


@dataclass(frozen=True)
class ScheduledInstallment:
    installment_number: int
    due_date: date
    emi_amount: Decimal
    principal_amount: Decimal
    interest_amount: Decimal
    closing_balance: Decimal


def build_amortization_schedule(
        principal: Decimal,
        interest_rate_percent: Decimal,
        tenure_months: int,
        start_date: date,
        emi_day: Optional[int] = None,
        emi_amount: Optional[Decimal] = None,
        first_number: int = 1,
) -> Iterator[ScheduledInstallment]:
    """
    Yields the installments that repay `principal` over `tenure_months`.

    - interest_i  = balance_{i-1} * r   (HALF_UP to cents)
    - principal_i = EMI - interest_i
    - the last row takes the whole remaining balance as principal, so the
      principal column always sums to `principal` exactly
    - a supplied `emi_amount` larger than the formula EMI ends the schedule
      early; one that does not cover the first month's interest is rejected

    Numbering starts at `first_number`; installment k is due on
    start_date + k months (day = emi_day, clamped to month end), so a
    rebuilt tail lands on the same dates as the original schedule.
    """
    validate_terms(principal, interest_rate_percent, tenure_months)

    balance = money(principal)
    n = int(tenure_months)
    r = monthly_rate(interest_rate_percent)

    if emi_amount is None:
        emi = compute_emi(balance, interest_rate_percent, n)
    else:
        emi = money(emi_amount)
        if emi <= money(balance * r) or emi <= 0:
            raise ValidationError("emi_amount does not cover the monthly interest")

    due_day = emi_day or start_date.day

    for offset in range(n):
        number = first_number + offset
        interest = money(balance * r)
        principal_part = emi - interest

        is_last = offset == n - 1 or principal_part >= balance
        if is_last:
            principal_part = balance

        balance = balance - principal_part

        yield ScheduledInstallment(
            installment_number=number,
            due_date=add_months(start_date, number, due_day),
            emi_amount=money(principal_part + interest),
            principal_amount=money(principal_part),
            interest_amount=interest,
            closing_balance=money(balance),
        )

        if is_last:
            return


def outstanding_after_payments(principal: Decimal, paid_principal_parts) -> Decimal:
    """outstanding = principal - sum(principal component of paid installments)"""
    total = sum((money(p) for p in paid_principal_parts), ZERO)
    return money(money(principal) - total)


def repayment_progress(principal: Decimal, outstanding: Decimal) -> Decimal:
    """Percent of principal repaid, 2 decimals."""
    principal = money(principal)
    if principal <= 0:
        return ZERO
    return money((principal - money(outstanding)) * 100 / principal)
