"""
Installment ledger: builds, rebuilds and settles the EMI rows of a loan.

All writes start with `lock_loan`, and the router commits (or rolls back)
once per request, so a generate / regenerate is all-or-nothing.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from finledger.core.exceptions import AlreadyPaidError, ConflictError, NotFoundError, ValidationError
from finledger.core.logging import get_logger
from finledger.models.account_model import Account
from finledger.models.loan_installment_model import LoanInstallment, PAID, PENDING
from finledger.models.loan_model import Loan
from finledger.models.transaction_model import Transaction
from finledger.schemas.loan_schema import LoanUpdate
from finledger.services import loan_service
from finledger.services.account_service import get_account
from finledger.utils.loan_calculations import (
    ScheduledInstallment,
    build_amortization_schedule,
    compute_emi,
    money,
)

logger = get_logger(__name__)


@dataclass
class PaymentResult:
    installment: LoanInstallment
    loan: Loan
    transaction: Optional[Transaction] = None
    account: Optional[Account] = None


def _to_row(s: ScheduledInstallment) -> LoanInstallment:
    return LoanInstallment(
        installment_number=s.installment_number,
        due_date=s.due_date,
        emi_amount=s.emi_amount,
        principal_amount=s.principal_amount,
        interest_amount=s.interest_amount,
        status=PENDING,
    )


def list_installments(db: Session, loan_id: int) -> list[LoanInstallment]:
    loan_service.get_loan(db, loan_id)
    return (
        db.query(LoanInstallment)
        .filter(LoanInstallment.loan_id == loan_id)
        .order_by(LoanInstallment.installment_number.asc())
        .all()
    )


def generate(db: Session, loan_id: int) -> list[LoanInstallment]:
    """Full schedule for a loan that has no installments yet."""
    loan = loan_service.lock_loan(db, loan_id)

    if loan.installments:
        raise ConflictError("Installments already exist for this loan")

    schedule = list(build_amortization_schedule(
        principal=loan.principal_amount,
        interest_rate_percent=loan.interest_rate,
        tenure_months=loan.tenure,
        start_date=loan.start_date,
        emi_day=loan.emi_day,
        emi_amount=loan.emi_amount,
    ))

    rows = [_to_row(s) for s in schedule]
    loan.installments.extend(rows)

    if loan.emi_amount is None:
        loan.emi_amount = compute_emi(loan.principal_amount, loan.interest_rate, loan.tenure)
    loan.end_date = schedule[-1].due_date

    db.flush()
    logger.info("Loan %s: generated %s installments, emi=%s", loan.id, len(rows), loan.emi_amount,
                extra={"loan_id": loan.id})
    return rows


def regenerate(db: Session, loan_id: int, emi_amount: Optional[Decimal] = None) -> list[LoanInstallment]:
    """
    Drop every pending row and rebuild the tail from the current outstanding
    balance over the remaining tenure. Paid rows are never touched; new rows
    are numbered after the last paid one and keep the loan's due-date grid.

    With `emi_amount` the tail is built on that EMI instead of the formula one.
    """
    loan = loan_service.lock_loan(db, loan_id)

    paid = [i for i in loan.installments if i.status == PAID]
    pending = [i for i in loan.installments if i.status != PAID]

    for inst in pending:
        loan.installments.remove(inst)
    # deletes must hit the table before the re-numbered inserts
    db.flush()

    last_paid_no = max((i.installment_number for i in paid), default=0)
    outstanding = money(loan.outstanding_amount)

    rows: list[LoanInstallment] = []
    if outstanding > 0:
        remaining = max(loan.tenure - last_paid_no, 1)
        schedule = list(build_amortization_schedule(
            principal=outstanding,
            interest_rate_percent=loan.interest_rate,
            tenure_months=remaining,
            start_date=loan.start_date,
            emi_day=loan.emi_day,
            emi_amount=emi_amount,
            first_number=last_paid_no + 1,
        ))
        rows = [_to_row(s) for s in schedule]
        loan.installments.extend(rows)
        if emi_amount is not None:
            loan.emi_amount = money(emi_amount)
        else:
            loan.emi_amount = compute_emi(outstanding, loan.interest_rate, remaining)
        loan.end_date = schedule[-1].due_date
    elif paid:
        loan.end_date = max(i.due_date for i in paid)

    db.flush()
    logger.info(
        "Loan %s: regenerated installments, removed=%s created=%s outstanding=%s",
        loan.id, len(pending), len(rows), outstanding,
        extra={"loan_id": loan.id},
    )
    return rows


def update_loan(db: Session, loan_id: int, payload: LoanUpdate) -> Loan:
    """
    PATCH a loan. A change to any term rebuilds the pending tail, so the
    pending principal always adds up to the new outstanding balance.
    """
    loan = loan_service.update_loan(db, loan_id, payload)

    data = payload.model_dump(exclude_unset=True)
    if any(data.get(field) is not None for field in loan_service.TERM_FIELDS):
        regenerate(db, loan_id, emi_amount=data.get("emi_amount"))
    return loan


def mark_paid(
        db: Session,
        installment_id: int,
        paid_amount: Optional[Decimal] = None,
        paid_date: Optional[date] = None,
        create_transaction: bool = False,
        affect_balance: Optional[bool] = None,
        account_id: Optional[int] = None,
) -> PaymentResult:
    """
    pending -> paid, exactly once.

    The outstanding balance drops by the row's principal component, not by
    `paid_amount`; over- and under-payments only show up in paid_amount and
    in the optional account / transaction side effects.
    """
    inst = db.query(LoanInstallment).filter(LoanInstallment.id == installment_id).first()
    if not inst:
        raise NotFoundError("Installment not found")

    loan = loan_service.lock_loan(db, inst.loan_id)
    db.refresh(inst)

    if inst.status == PAID:
        logger.warning("Installment %s already paid (loan %s)", inst.id, loan.id,
                       extra={"loan_id": loan.id, "installment_id": inst.id})
        raise AlreadyPaidError()

    if money(inst.principal_amount) > money(loan.outstanding_amount):
        logger.warning(
            "Installment %s principal %s exceeds outstanding %s (loan %s)",
            inst.id, inst.principal_amount, loan.outstanding_amount, loan.id,
            extra={"loan_id": loan.id, "installment_id": inst.id},
        )
        raise ConflictError("Installment principal exceeds the outstanding balance; regenerate the schedule")

    amount = money(paid_amount) if paid_amount is not None else money(inst.emi_amount)
    pay_date = paid_date or date.today()
    if affect_balance is None:
        affect_balance = bool(loan.affect_balance)

    account = None
    if create_transaction or affect_balance:
        target = account_id or loan.account_id
        if target is None:
            raise ValidationError("accountId is required to record a transaction or debit a balance")
        account = get_account(db, target)

    inst.status = PAID
    inst.paid_date = pay_date
    inst.paid_amount = amount

    loan_service.apply_principal_payment(loan, inst.principal_amount)

    txn = None
    if create_transaction:
        txn = Transaction(
            account_id=account.id,
            type="debit",
            amount=amount,
            description=f"EMI {inst.installment_number}/{loan.tenure} - {loan.name}",
            transaction_date=pay_date,
            loan_installment_id=inst.id,
        )
        db.add(txn)
        db.flush()
        inst.transaction_id = txn.id

    if affect_balance:
        account.balance = money(money(account.balance) - amount)

    db.flush()
    logger.info(
        "Installment %s paid: loan=%s principal=%s paid_amount=%s outstanding=%s",
        inst.id, loan.id, inst.principal_amount, amount, loan.outstanding_amount,
        extra={
            "loan_id": loan.id,
            "installment_id": inst.id,
            "account_id": account.id if account else None,
        },
    )
    return PaymentResult(installment=inst, loan=loan, transaction=txn, account=account)
