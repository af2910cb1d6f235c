from datetime import date
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from finledger.utils.database import get_db
from finledger.schemas.loan_schema import LoanSummaryOut
from finledger.services import summary_service

router = APIRouter(prefix="/api/loan-summary", tags=["Loan Summary"])


@router.get("", response_model=LoanSummaryOut)
def loan_summary(
        as_on: Optional[date] = Query(None),
        window: Literal["month", "cycle"] = Query("month"),
        db: Session = Depends(get_db),
):
    return LoanSummaryOut.model_validate(
        summary_service.loan_summary(db, today=as_on, window=window)
    )
