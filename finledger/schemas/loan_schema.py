from pydantic import AliasChoices, Field, field_validator
from datetime import date
from decimal import Decimal
from typing import Optional, List, Literal

from finledger.schemas.common import ApiModel, Money

LoanType = Literal["home_loan", "personal_loan", "credit_card_loan", "item_emi"]
LoanStatus = Literal["active", "closed", "defaulted"]


class LoanCreate(ApiModel):
    name: str = Field(min_length=1, max_length=200)
    type: LoanType
    lender_name: Optional[str] = None
    loan_account_number: Optional[str] = None

    principal_amount: Money = Field(gt=0)
    interest_rate: Decimal = Field(ge=0, le=100, decimal_places=4)
    tenure: int = Field(gt=0, le=600)
    emi_amount: Optional[Money] = Field(default=None, gt=0)
    emi_day: Optional[int] = Field(default=None, ge=1, le=31)

    start_date: date
    account_id: Optional[int] = None
    affect_balance: bool = False
    notes: Optional[str] = None

    @field_validator("lender_name", "loan_account_number", "notes", mode="before")
    def empty_to_none(cls, v):
        if v is None:
            return None
        v = str(v).strip()
        return v or None


class LoanUpdate(ApiModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    type: Optional[LoanType] = None
    lender_name: Optional[str] = None
    loan_account_number: Optional[str] = None

    principal_amount: Optional[Money] = Field(default=None, gt=0)
    interest_rate: Optional[Decimal] = Field(default=None, ge=0, le=100, decimal_places=4)
    tenure: Optional[int] = Field(default=None, gt=0, le=600)
    emi_amount: Optional[Money] = Field(default=None, gt=0)
    emi_day: Optional[int] = Field(default=None, ge=1, le=31)

    start_date: Optional[date] = None
    account_id: Optional[int] = None
    affect_balance: Optional[bool] = None
    status: Optional[LoanStatus] = None
    notes: Optional[str] = None


class InstallmentOut(ApiModel):
    id: int
    loan_id: int
    installment_number: int
    due_date: date

    emi_amount: Money
    principal_amount: Money
    interest_amount: Money

    status: str
    paid_date: Optional[date] = None
    paid_amount: Optional[Money] = None
    transaction_id: Optional[int] = None

    @field_validator("status")
    def overdue_view(cls, v, info):
        # overdue is derived from the due date at read time
        due = info.data.get("due_date")
        if v == "pending" and due is not None and due < date.today():
            return "overdue"
        return v


class LoanOut(ApiModel):
    id: int
    name: str
    type: str
    lender_name: Optional[str] = None
    loan_account_number: Optional[str] = None

    principal_amount: Money
    outstanding_amount: Money
    interest_rate: Decimal
    tenure: int
    emi_amount: Optional[Money] = None
    emi_day: Optional[int] = None

    start_date: date
    end_date: Optional[date] = None
    account_id: Optional[int] = None
    affect_balance: bool
    status: str
    notes: Optional[str] = None

    paid_installments: int = 0
    total_installments: int = 0
    progress_percent: Money = 0

    installments: List[InstallmentOut] = []


class MarkPaidIn(ApiModel):
    paid_amount: Optional[Money] = Field(default=None, gt=0)
    paid_date: Optional[date] = None
    account_id: Optional[int] = None
    create_transaction: bool = Field(
        default=False,
        validation_alias=AliasChoices("createTransaction", "affectTransaction", "create_transaction"),
    )
    affect_balance: Optional[bool] = Field(
        default=None,
        validation_alias=AliasChoices("affectBalance", "affectAccountBalance", "affect_balance"),
    )


class MarkPaidOut(ApiModel):
    installment: InstallmentOut
    loan_id: int
    outstanding_amount: Money
    loan_status: str
    transaction_id: Optional[int] = None
    account_balance: Optional[Money] = None


class NextEmiOut(ApiModel):
    loan_id: int
    loan_name: str
    installment_id: int
    installment_number: int
    due_date: date
    amount: Money


class LoanSummaryOut(ApiModel):
    total_loans: int
    total_outstanding: Money
    total_emi_this_month: Money
    window_start: date
    window_end: date
    next_emi_due: Optional[NextEmiOut] = None
