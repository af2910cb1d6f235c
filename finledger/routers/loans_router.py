from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from starlette import status

from finledger.utils.database import get_db
from finledger.schemas.loan_schema import (
    LoanCreate,
    LoanUpdate,
    LoanOut,
    InstallmentOut,
    LoanStatus,
    LoanType,
)
from finledger.services import installment_service, loan_service

router = APIRouter(prefix="/api/loans", tags=["Loans"])


@router.get("", response_model=list[LoanOut])
def list_loans(
        status_filter: Optional[LoanStatus] = Query(None, alias="status"),
        type_filter: Optional[LoanType] = Query(None, alias="type"),
        db: Session = Depends(get_db),
):
    return loan_service.list_loans(db, status=status_filter, loan_type=type_filter)


# =================================================
# 🔹 LOAN CREATION (schedule generated in the same transaction)
# =================================================
@router.post("", response_model=LoanOut, status_code=status.HTTP_201_CREATED)
def create_loan(payload: LoanCreate, db: Session = Depends(get_db)):
    try:
        loan = loan_service.create_loan(db, payload)
        installment_service.generate(db, loan.id)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(loan)
    return loan


@router.get("/{loan_id}", response_model=LoanOut)
def get_loan(loan_id: int, db: Session = Depends(get_db)):
    return loan_service.get_loan(db, loan_id)


@router.patch("/{loan_id}", response_model=LoanOut)
def update_loan(loan_id: int, payload: LoanUpdate, db: Session = Depends(get_db)):
    try:
        loan = installment_service.update_loan(db, loan_id, payload)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(loan)
    return loan


@router.delete("/{loan_id}")
def delete_loan(loan_id: int, db: Session = Depends(get_db)):
    try:
        loan_service.delete_loan(db, loan_id)
        db.commit()
    except Exception:
        db.rollback()
        raise
    return {"message": "Loan deleted successfully"}


# =================================================
# 🔹 INSTALLMENTS
# =================================================
@router.get("/{loan_id}/installments", response_model=list[InstallmentOut])
def list_installments(loan_id: int, db: Session = Depends(get_db)):
    return installment_service.list_installments(db, loan_id)


@router.post("/{loan_id}/generate-installments", response_model=list[InstallmentOut],
             status_code=status.HTTP_201_CREATED)
def generate_installments(loan_id: int, db: Session = Depends(get_db)):
    try:
        installment_service.generate(db, loan_id)
        db.commit()
    except Exception:
        db.rollback()
        raise
    return installment_service.list_installments(db, loan_id)


@router.post("/{loan_id}/regenerate-installments", response_model=LoanOut)
def regenerate_installments(loan_id: int, db: Session = Depends(get_db)):
    try:
        installment_service.regenerate(db, loan_id)
        db.commit()
    except Exception:
        db.rollback()
        raise

    return loan_service.get_loan(db, loan_id)
