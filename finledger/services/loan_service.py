"""
Loan aggregate: the only place that writes a loan's outstanding balance
and status.

    outstanding = principal - sum(principal component of paid installments)
"""

from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from finledger.core.exceptions import InvariantViolation, NotFoundError, ValidationError
from finledger.core.logging import get_logger
from finledger.models.loan_installment_model import PAID
from finledger.models.loan_model import Loan
from finledger.schemas.loan_schema import LoanCreate, LoanUpdate
from finledger.services.account_service import ensure_account
from finledger.utils.loan_calculations import money, outstanding_after_payments, validate_terms

logger = get_logger(__name__)

ACTIVE = "active"
CLOSED = "closed"

# outstanding below one currency unit counts as repaid
CLOSE_TOLERANCE = Decimal("1.00")

TERM_FIELDS = ("principal_amount", "interest_rate", "tenure", "emi_amount", "emi_day", "start_date")


def get_loan(db: Session, loan_id: int) -> Loan:
    loan = db.query(Loan).filter(Loan.id == loan_id).first()
    if not loan:
        raise NotFoundError("Loan not found")
    return loan


def lock_loan(db: Session, loan_id: int) -> Loan:
    """
    Row lock on the loan (SELECT ... FOR UPDATE). Every write to a loan's
    installment set goes through here first, so generate / regenerate /
    mark-paid on the same loan are serialized.
    """
    loan = (
        db.query(Loan)
        .filter(Loan.id == loan_id)
        .populate_existing()
        .with_for_update()
        .first()
    )
    if not loan:
        raise NotFoundError("Loan not found")
    return loan


def list_loans(db: Session, status: Optional[str] = None, loan_type: Optional[str] = None) -> list[Loan]:
    q = db.query(Loan)
    if status:
        q = q.filter(Loan.status == status)
    if loan_type:
        q = q.filter(Loan.type == loan_type)
    return q.order_by(Loan.id.desc()).all()


def create_loan(db: Session, payload: LoanCreate) -> Loan:
    """Persists the loan row only; the caller generates the schedule."""
    validate_terms(payload.principal_amount, payload.interest_rate, payload.tenure)
    ensure_account(db, payload.account_id)

    principal = money(payload.principal_amount)
    loan = Loan(
        name=payload.name.strip(),
        type=payload.type,
        lender_name=payload.lender_name,
        loan_account_number=payload.loan_account_number,
        principal_amount=principal,
        outstanding_amount=principal,
        interest_rate=Decimal(str(payload.interest_rate)),
        tenure=payload.tenure,
        emi_amount=money(payload.emi_amount) if payload.emi_amount is not None else None,
        emi_day=payload.emi_day or payload.start_date.day,
        start_date=payload.start_date,
        account_id=payload.account_id,
        affect_balance=payload.affect_balance,
        status=ACTIVE,
        notes=payload.notes,
    )
    db.add(loan)
    db.flush()

    logger.info("Loan %s created: principal=%s rate=%s tenure=%s", loan.id, principal,
                loan.interest_rate, loan.tenure, extra={"loan_id": loan.id})
    return loan


def update_loan(db: Session, loan_id: int, payload: LoanUpdate) -> Loan:
    """
    PATCH semantics. Term changes do not touch the schedule (that is what
    regenerate is for) but the outstanding balance is recomputed against
    the new principal.
    """
    loan = lock_loan(db, loan_id)
    data = payload.model_dump(exclude_unset=True)

    if "account_id" in data:
        ensure_account(db, data["account_id"])

    for field in ("name", "type", "lender_name", "loan_account_number", "account_id",
                  "affect_balance", "notes"):
        if field in data:
            setattr(loan, field, data[field])

    terms_changed = False
    for field in TERM_FIELDS:
        if field in data and data[field] is not None:
            value = money(data[field]) if field in ("principal_amount", "emi_amount") else data[field]
            setattr(loan, field, value)
            terms_changed = True

    if terms_changed:
        validate_terms(loan.principal_amount, loan.interest_rate, loan.tenure)
        outstanding = recompute_outstanding(loan)
        if outstanding < 0:
            raise ValidationError("principal_amount is below the principal already repaid")
        loan.outstanding_amount = outstanding
        refresh_status(loan)

    if data.get("status"):
        loan.status = data["status"]

    db.flush()
    logger.info("Loan %s updated: fields=%s", loan.id, sorted(data), extra={"loan_id": loan.id})
    return loan


def delete_loan(db: Session, loan_id: int) -> None:
    loan = lock_loan(db, loan_id)
    db.delete(loan)  # installments go with it (cascade)
    db.flush()
    logger.info("Loan %s deleted", loan_id, extra={"loan_id": loan_id})


def recompute_outstanding(loan: Loan) -> Decimal:
    """From scratch: principal minus the principal part of every paid row."""
    return outstanding_after_payments(
        loan.principal_amount,
        (i.principal_amount for i in loan.installments if i.status == PAID),
    )


def refresh_status(loan: Loan) -> None:
    outstanding = money(loan.outstanding_amount)
    if loan.status == ACTIVE and outstanding < CLOSE_TOLERANCE:
        loan.status = CLOSED
        logger.info("Loan %s closed: outstanding=%s", loan.id, outstanding, extra={"loan_id": loan.id})


def apply_principal_payment(loan: Loan, principal_part: Decimal) -> Decimal:
    """
    Decrement the outstanding balance by a paid installment's principal
    component. The paid row must already carry status=paid.
    """
    new_outstanding = money(money(loan.outstanding_amount) - money(principal_part))

    if new_outstanding < 0:
        raise InvariantViolation(
            f"Outstanding for loan {loan.id} would go negative ({new_outstanding})"
        )

    expected = recompute_outstanding(loan)
    if expected != new_outstanding:
        raise InvariantViolation(
            f"Outstanding drift on loan {loan.id}: incremental={new_outstanding} recomputed={expected}"
        )

    loan.outstanding_amount = new_outstanding
    refresh_status(loan)
    return new_outstanding
