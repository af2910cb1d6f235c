# finledger/models/loan_model.py

from sqlalchemy import (
    Column,
    Integer,
    String,
    Date,
    DateTime,
    Numeric,
    Boolean,
    Text,
    ForeignKey,
    Index,
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from finledger.utils.database import Base
from finledger.utils.loan_calculations import repayment_progress

LOAN_TYPES = ("home_loan", "personal_loan", "credit_card_loan", "item_emi")
LOAN_STATUSES = ("active", "closed", "defaulted")


class Loan(Base):
    __tablename__ = "loans"

    __table_args__ = (
        Index("ix_loans_status", "status"),
        Index("ix_loans_type_status", "type", "status"),
    )

    id = Column(Integer, primary_key=True, index=True)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True)

    name = Column(String(200), nullable=False)
    type = Column(String(30), nullable=False)
    lender_name = Column(String(100), nullable=True)
    loan_account_number = Column(String(100), nullable=True)

    principal_amount = Column(Numeric(14, 2), nullable=False)
    # principal - sum(principal component of PAID installments)
    outstanding_amount = Column(Numeric(14, 2), nullable=False)
    interest_rate = Column(Numeric(7, 4), nullable=False)  # annual %, up to 4 decimals
    tenure = Column(Integer, nullable=False)  # months
    emi_amount = Column(Numeric(12, 2), nullable=True)
    emi_day = Column(Integer, nullable=True)  # 1-31, defaults to start_date.day

    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)

    # default for the mark-paid "affect account balance" toggle
    affect_balance = Column(Boolean, nullable=False, server_default="false", default=False)

    # active / closed / defaulted
    status = Column(String(20), nullable=False, server_default="active", default="active")
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    installments = relationship(
        "LoanInstallment",
        back_populates="loan",
        cascade="all, delete-orphan",
        lazy="selectin",
        passive_deletes=True,
        order_by="LoanInstallment.installment_number",
    )

    # read-side progress figures
    @property
    def paid_installments(self) -> int:
        return sum(1 for i in self.installments if i.status == "paid")

    @property
    def total_installments(self) -> int:
        return len(self.installments)

    @property
    def progress_percent(self):
        return repayment_progress(self.principal_amount, self.outstanding_amount)
