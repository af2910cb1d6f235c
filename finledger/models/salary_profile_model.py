from sqlalchemy import Column, Integer, String, Numeric, Boolean, DateTime, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from finledger.utils.database import Base


class SalaryProfile(Base):
    __tablename__ = "salary_profiles"

    id = Column(Integer, primary_key=True, index=True)
    # one profile per user
    user_id = Column(Integer, unique=True, nullable=False)

    # fixed_day / last_working_day
    payday_rule = Column(String(30), nullable=False, default="last_working_day",
                         server_default="last_working_day")
    fixed_day = Column(Integer, nullable=True)
    monthly_amount = Column(Numeric(12, 2), nullable=True)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True)
    # fixed_day: cycle starts on month_cycle_start_day; salary_day: on the last payday
    month_cycle_start_rule = Column(String(20), nullable=False, default="fixed_day",
                                    server_default="fixed_day")
    month_cycle_start_day = Column(Integer, nullable=False, default=1, server_default="1")

    is_active = Column(Boolean, nullable=False, default=True, server_default="true")

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    cycles = relationship(
        "SalaryCycle",
        back_populates="profile",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
