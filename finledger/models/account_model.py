from sqlalchemy import Column, Integer, String, Numeric, DateTime
from sqlalchemy.sql import func
from finledger.utils.database import Base

ACCOUNT_TYPES = ("bank", "credit_card", "cash", "wallet")


class Account(Base):
    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    type = Column(String(20), nullable=False, default="bank", server_default="bank")
    balance = Column(Numeric(14, 2), nullable=False, default=0, server_default="0")

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
