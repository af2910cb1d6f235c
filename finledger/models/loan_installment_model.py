from sqlalchemy import (
    Column, Integer, String, Date, DateTime, Numeric, Text, ForeignKey, UniqueConstraint
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from finledger.utils.database import Base

PENDING = "pending"
PAID = "paid"
OVERDUE = "overdue"  # read-time view only, never stored


class LoanInstallment(Base):
    __tablename__ = "loan_installments"
    __table_args__ = (
        UniqueConstraint("loan_id", "installment_number", name="uq_loan_installment_number"),
    )

    id = Column(Integer, primary_key=True, index=True)
    loan_id = Column(Integer, ForeignKey("loans.id", ondelete="CASCADE"), nullable=False, index=True)

    installment_number = Column(Integer, nullable=False)
    due_date = Column(Date, nullable=False, index=True)

    emi_amount = Column(Numeric(12, 2), nullable=False)
    principal_amount = Column(Numeric(12, 2), nullable=False)
    interest_amount = Column(Numeric(12, 2), nullable=False)

    # pending / paid
    status = Column(String(20), nullable=False, default=PENDING, server_default=PENDING)
    paid_date = Column(Date, nullable=True)
    paid_amount = Column(Numeric(12, 2), nullable=True)

    transaction_id = Column(Integer, ForeignKey("transactions.id", ondelete="SET NULL"), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    loan = relationship("Loan", back_populates="installments")

