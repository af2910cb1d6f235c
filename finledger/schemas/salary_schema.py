from pydantic import Field, model_validator
from datetime import date
from typing import Optional, Literal

from finledger.schemas.common import ApiModel, Money

PaydayRule = Literal["fixed_day", "last_working_day"]
CycleStartRule = Literal["fixed_day", "salary_day"]


class SalaryProfileIn(ApiModel):
    payday_rule: PaydayRule = "last_working_day"
    fixed_day: Optional[int] = Field(default=None, ge=1, le=31)
    monthly_amount: Optional[Money] = Field(default=None, ge=0)
    account_id: Optional[int] = None
    month_cycle_start_rule: CycleStartRule = "fixed_day"
    month_cycle_start_day: int = Field(default=1, ge=1, le=31)
    is_active: bool = True

    @model_validator(mode="after")
    def fixed_day_required(self):
        if self.payday_rule == "fixed_day" and self.fixed_day is None:
            raise ValueError("fixedDay is required when paydayRule is fixed_day")
        return self


class SalaryProfilePatch(ApiModel):
    payday_rule: Optional[PaydayRule] = None
    fixed_day: Optional[int] = Field(default=None, ge=1, le=31)
    monthly_amount: Optional[Money] = Field(default=None, ge=0)
    account_id: Optional[int] = None
    month_cycle_start_rule: Optional[CycleStartRule] = None
    month_cycle_start_day: Optional[int] = Field(default=None, ge=1, le=31)
    is_active: Optional[bool] = None


class SalaryProfileOut(ApiModel):
    id: int
    payday_rule: str
    fixed_day: Optional[int] = None
    monthly_amount: Optional[Money] = None
    account_id: Optional[int] = None
    month_cycle_start_rule: str
    month_cycle_start_day: int
    is_active: bool


class PaydayOut(ApiModel):
    month: int
    year: int
    date: date


class CycleOut(ApiModel):
    start: date
    end: date
    label: str


class SalaryCycleCreate(ApiModel):
    month: int = Field(ge=1, le=12)
    year: int = Field(ge=2000, le=2100)
    actual_pay_date: Optional[date] = None
    actual_amount: Optional[Money] = Field(default=None, ge=0)
    notes: Optional[str] = None


class SalaryCyclePatch(ApiModel):
    actual_pay_date: Optional[date] = None
    actual_amount: Optional[Money] = Field(default=None, ge=0)
    notes: Optional[str] = None


class SalaryCycleOut(ApiModel):
    id: int
    month: int
    year: int
    expected_pay_date: date
    actual_pay_date: Optional[date] = None
    expected_amount: Optional[Money] = None
    actual_amount: Optional[Money] = None
    notes: Optional[str] = None
