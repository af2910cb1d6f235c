from typing import Optional

from sqlalchemy.orm import Session

from finledger.core.exceptions import NotFoundError, ValidationError
from finledger.models.account_model import Account
from finledger.models.transaction_model import Transaction
from finledger.schemas.account_schema import AccountCreate
from finledger.utils.loan_calculations import money


def get_account(db: Session, account_id: int) -> Account:
    account = db.query(Account).filter(Account.id == account_id).first()
    if not account:
        raise NotFoundError("Account not found")
    return account


def ensure_account(db: Session, account_id: Optional[int]) -> None:
    """Reject a dangling account reference on loans / salary profiles."""
    if account_id is None:
        return
    if not db.query(Account.id).filter(Account.id == account_id).first():
        raise ValidationError("Invalid account_id")


def create_account(db: Session, payload: AccountCreate) -> Account:
    account = Account(
        name=payload.name.strip(),
        type=payload.type,
        balance=money(payload.balance),
    )
    db.add(account)
    db.flush()
    return account


def list_accounts(db: Session) -> list[Account]:
    return db.query(Account).order_by(Account.id.asc()).all()


def list_transactions(db: Session, account_id: Optional[int] = None, limit: int = 100) -> list[Transaction]:
    q = db.query(Transaction)
    if account_id is not None:
        q = q.filter(Transaction.account_id == account_id)
    return q.order_by(Transaction.transaction_date.desc(), Transaction.id.desc()).limit(limit).all()
