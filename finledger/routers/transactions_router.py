from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from finledger.utils.database import get_db
from finledger.schemas.account_schema import TransactionOut
from finledger.services import account_service

router = APIRouter(prefix="/api/transactions", tags=["Transactions"])


@router.get("", response_model=list[TransactionOut])
def list_transactions(
        account_id: Optional[int] = Query(None),
        limit: int = Query(100, ge=1, le=500),
        db: Session = Depends(get_db),
):
    return account_service.list_transactions(db, account_id=account_id, limit=limit)
