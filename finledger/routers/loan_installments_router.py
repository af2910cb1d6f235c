from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from finledger.utils.database import get_db
from finledger.schemas.loan_schema import InstallmentOut, MarkPaidIn, MarkPaidOut
from finledger.services import installment_service

router = APIRouter(prefix="/api/loan-installments", tags=["Loan Installments"])


@router.post("/{installment_id}/mark-paid", response_model=MarkPaidOut)
def mark_paid(installment_id: int, payload: MarkPaidIn, db: Session = Depends(get_db)):
    try:
        result = installment_service.mark_paid(
            db,
            installment_id,
            paid_amount=payload.paid_amount,
            paid_date=payload.paid_date,
            create_transaction=payload.create_transaction,
            affect_balance=payload.affect_balance,
            account_id=payload.account_id,
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    return MarkPaidOut(
        installment=InstallmentOut.model_validate(result.installment),
        loan_id=result.loan.id,
        outstanding_amount=result.loan.outstanding_amount,
        loan_status=result.loan.status,
        transaction_id=result.transaction.id if result.transaction else None,
        account_balance=result.account.balance if result.account else None,
    )
