from sqlalchemy import (
    Column, Integer, String, Date, DateTime, Numeric, Text, ForeignKey
)
from sqlalchemy.sql import func
from finledger.utils.database import Base


class Transaction(Base):
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True, index=True)

    type = Column(String(10), nullable=False)  # debit / credit
    amount = Column(Numeric(12, 2), nullable=False)
    description = Column(Text, nullable=True)
    transaction_date = Column(Date, nullable=False)

    # set when the row was created by paying an EMI
    loan_installment_id = Column(Integer, nullable=True, index=True)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
