from pydantic import Field
from datetime import date
from typing import Optional, Literal

from finledger.schemas.common import ApiModel, Money


class AccountCreate(ApiModel):
    name: str = Field(min_length=1, max_length=100)
    type: Literal["bank", "credit_card", "cash", "wallet"] = "bank"
    balance: Money = 0


class AccountOut(ApiModel):
    id: int
    name: str
    type: str
    balance: Money


class TransactionOut(ApiModel):
    id: int
    account_id: Optional[int] = None
    type: str
    amount: Money
    description: Optional[str] = None
    transaction_date: date
    loan_installment_id: Optional[int] = None
