"""Cross-loan dashboard summary. Read-only, recomputed per request."""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from finledger.models.loan_installment_model import LoanInstallment, PENDING
from finledger.models.loan_model import Loan
from finledger.services import salary_service
from finledger.utils.loan_calculations import ZERO, money
from finledger.utils.payday_calculations import Cycle, calendar_month

MONTH = "month"
CYCLE = "cycle"


@dataclass
class NextEmi:
    loan_id: int
    loan_name: str
    installment_id: int
    installment_number: int
    due_date: date
    amount: Decimal  # EMI of the installment


@dataclass
class LoanSummary:
    total_loans: int
    total_outstanding: Decimal
    total_emi_this_month: Decimal
    window_start: date
    window_end: date
    next_emi_due: Optional[NextEmi] = None


def summary_window(db: Session, window: str, today: date) -> Cycle:
    if window == CYCLE:
        return salary_service.cycle_for(db, today)
    return calendar_month(today)


def loan_summary(db: Session, today: Optional[date] = None, window: str = MONTH) -> LoanSummary:
    """
    - totalLoans / totalOutstanding over active loans
    - totalEmiThisMonth: pending EMIs of active loans due inside the window
    - nextEmiDue: earliest pending row due today or later; ties go to the
      lowest loan id, then the lowest installment number
    """
    today = today or date.today()
    span = summary_window(db, window, today)

    loans = db.query(Loan).filter(Loan.status == "active").order_by(Loan.id.asc()).all()

    total_outstanding = ZERO
    emi_due = ZERO
    best: Optional[tuple[date, int, int, Loan, LoanInstallment]] = None

    for loan in loans:
        total_outstanding += money(loan.outstanding_amount)
        for inst in loan.installments:
            if inst.status != PENDING:
                continue
            if span.start <= inst.due_date <= span.end:
                emi_due += money(inst.emi_amount)
            if inst.due_date >= today:
                key = (inst.due_date, loan.id, inst.installment_number)
                if best is None or key < best[:3]:
                    best = (*key, loan, inst)

    next_emi = None
    if best is not None:
        loan, inst = best[3], best[4]
        next_emi = NextEmi(
            loan_id=loan.id,
            loan_name=loan.name,
            installment_id=inst.id,
            installment_number=inst.installment_number,
            due_date=inst.due_date,
            amount=money(inst.emi_amount),
        )

    return LoanSummary(
        total_loans=len(loans),
        total_outstanding=money(total_outstanding),
        total_emi_this_month=money(emi_due),
        window_start=span.start,
        window_end=span.end,
        next_emi_due=next_emi,
    )
