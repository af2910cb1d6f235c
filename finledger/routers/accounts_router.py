from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from starlette import status

from finledger.utils.database import get_db
from finledger.schemas.account_schema import AccountCreate, AccountOut
from finledger.services import account_service

router = APIRouter(prefix="/api/accounts", tags=["Accounts"])


@router.post("", response_model=AccountOut, status_code=status.HTTP_201_CREATED)
def create_account(payload: AccountCreate, db: Session = Depends(get_db)):
    try:
        account = account_service.create_account(db, payload)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(account)
    return account


@router.get("", response_model=list[AccountOut])
def list_accounts(db: Session = Depends(get_db)):
    return account_service.list_accounts(db)


@router.get("/{account_id}", response_model=AccountOut)
def get_account(account_id: int, db: Session = Depends(get_db)):
    return account_service.get_account(db, account_id)
