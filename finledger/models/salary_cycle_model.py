from sqlalchemy import (
    Column, Integer, Date, DateTime, Numeric, Text, ForeignKey, UniqueConstraint
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from finledger.utils.database import Base


class SalaryCycle(Base):
    __tablename__ = "salary_cycles"
    __table_args__ = (
        UniqueConstraint("salary_profile_id", "year", "month", name="uq_salary_cycle_month"),
    )

    id = Column(Integer, primary_key=True, index=True)
    salary_profile_id = Column(
        Integer, ForeignKey("salary_profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )

    month = Column(Integer, nullable=False)  # 1-12
    year = Column(Integer, nullable=False)

    expected_pay_date = Column(Date, nullable=False)
    actual_pay_date = Column(Date, nullable=True)
    expected_amount = Column(Numeric(12, 2), nullable=True)
    actual_amount = Column(Numeric(12, 2), nullable=True)

    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    profile = relationship("SalaryProfile", back_populates="cycles")
