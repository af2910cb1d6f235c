"""Salary profile (one per user, upsert) and recorded salary cycles."""

from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from finledger.core.config import DEFAULT_USER_ID
from finledger.core.exceptions import ConflictError, NotFoundError, ValidationError
from finledger.core.logging import get_logger
from finledger.models.salary_cycle_model import SalaryCycle
from finledger.models.salary_profile_model import SalaryProfile
from finledger.schemas.salary_schema import (
    SalaryProfileIn,
    SalaryProfilePatch,
    SalaryCycleCreate,
    SalaryCyclePatch,
)
from finledger.services.account_service import ensure_account
from finledger.utils.loan_calculations import money
from finledger.utils.payday_calculations import (
    FIXED_DAY,
    Cycle,
    Payday,
    current_cycle,
    iter_paydays,
    past_paydays,
    salary_day_cycle,
    payday_for_month,
)

logger = get_logger(__name__)

SALARY_DAY = "salary_day"


def get_profile(db: Session, user_id: int = DEFAULT_USER_ID) -> Optional[SalaryProfile]:
    return db.query(SalaryProfile).filter(SalaryProfile.user_id == user_id).first()


def require_profile(db: Session, user_id: int = DEFAULT_USER_ID) -> SalaryProfile:
    profile = get_profile(db, user_id)
    if not profile:
        raise NotFoundError("Salary profile not found")
    return profile


def _check_rule(profile: SalaryProfile) -> None:
    if profile.payday_rule == FIXED_DAY and not profile.fixed_day:
        raise ValidationError("fixed_day is required when payday_rule is fixed_day")


def upsert_profile(db: Session, payload: SalaryProfileIn, user_id: int = DEFAULT_USER_ID) -> tuple[SalaryProfile, bool]:
    """Create the profile if absent, else overwrite it. Returns (profile, created)."""
    ensure_account(db, payload.account_id)

    profile = get_profile(db, user_id)
    created = profile is None
    if created:
        profile = SalaryProfile(user_id=user_id)
        db.add(profile)

    profile.payday_rule = payload.payday_rule
    profile.fixed_day = payload.fixed_day if payload.payday_rule == FIXED_DAY else None
    profile.monthly_amount = money(payload.monthly_amount) if payload.monthly_amount is not None else None
    profile.account_id = payload.account_id
    profile.month_cycle_start_rule = payload.month_cycle_start_rule
    profile.month_cycle_start_day = payload.month_cycle_start_day
    profile.is_active = payload.is_active

    _check_rule(profile)
    db.flush()
    logger.info("Salary profile %s %s: rule=%s", profile.id, "created" if created else "replaced",
                profile.payday_rule)
    return profile, created


def patch_profile(
        db: Session,
        payload: SalaryProfilePatch,
        user_id: int = DEFAULT_USER_ID,
        profile_id: Optional[int] = None,
) -> SalaryProfile:
    profile = require_profile(db, user_id)
    # the id form of the route must name the owner's own profile
    if profile_id is not None and profile.id != profile_id:
        raise NotFoundError("Salary profile not found")

    data = payload.model_dump(exclude_unset=True)

    if "account_id" in data:
        ensure_account(db, data["account_id"])
    if "monthly_amount" in data and data["monthly_amount"] is not None:
        data["monthly_amount"] = money(data["monthly_amount"])
    # non-nullable columns: an explicit null means "leave as is"
    for key in ("payday_rule", "month_cycle_start_rule", "month_cycle_start_day", "is_active"):
        if key in data and data[key] is None:
            data.pop(key)

    for k, v in data.items():
        setattr(profile, k, v)

    if profile.payday_rule != FIXED_DAY:
        profile.fixed_day = None

    _check_rule(profile)
    db.flush()
    logger.info("Salary profile %s patched: fields=%s", profile.id, sorted(data))
    return profile


def next_paydays(db: Session, count: int, today: Optional[date] = None) -> list[Payday]:
    profile = require_profile(db)
    return list(iter_paydays(profile.payday_rule, profile.fixed_day, count, today))


def previous_paydays(db: Session, count: int, today: Optional[date] = None) -> list[Payday]:
    profile = require_profile(db)
    return past_paydays(profile.payday_rule, profile.fixed_day, count, today)


def last_recorded_pay_date(db: Session, profile: SalaryProfile) -> Optional[date]:
    cycle = (
        db.query(SalaryCycle)
        .filter(
            SalaryCycle.salary_profile_id == profile.id,
            SalaryCycle.actual_pay_date.isnot(None),
        )
        .order_by(SalaryCycle.year.desc(), SalaryCycle.month.desc())
        .first()
    )
    return cycle.actual_pay_date if cycle else None


def cycle_for(db: Session, today: Optional[date] = None) -> Cycle:
    """
    Current salary cycle. Calendar month without an active profile;
    otherwise anchored on month_cycle_start_day or, with the salary_day
    rule, on the paydays (the last recorded actual pay date first).
    """
    profile = get_profile(db)
    if not profile or not profile.is_active:
        return current_cycle(1, today)

    if profile.month_cycle_start_rule == SALARY_DAY:
        return salary_day_cycle(
            profile.payday_rule,
            profile.fixed_day,
            today,
            last_pay_date=last_recorded_pay_date(db, profile),
        )
    return current_cycle(profile.month_cycle_start_day, today)


# -------------------------------------------------
# Salary cycles (recorded salary history)
# -------------------------------------------------
def list_cycles(db: Session, limit: int = 12) -> list[SalaryCycle]:
    profile = require_profile(db)
    return (
        db.query(SalaryCycle)
        .filter(SalaryCycle.salary_profile_id == profile.id)
        .order_by(SalaryCycle.year.desc(), SalaryCycle.month.desc())
        .limit(limit)
        .all()
    )


def record_cycle(db: Session, payload: SalaryCycleCreate) -> SalaryCycle:
    profile = require_profile(db)

    exists = (
        db.query(SalaryCycle)
        .filter(
            SalaryCycle.salary_profile_id == profile.id,
            SalaryCycle.year == payload.year,
            SalaryCycle.month == payload.month,
        )
        .first()
    )
    if exists:
        raise ConflictError("Salary cycle for this month already exists")

    cycle = SalaryCycle(
        salary_profile_id=profile.id,
        month=payload.month,
        year=payload.year,
        expected_pay_date=payday_for_month(payload.year, payload.month, profile.payday_rule, profile.fixed_day),
        expected_amount=profile.monthly_amount,
        actual_pay_date=payload.actual_pay_date,
        actual_amount=money(payload.actual_amount) if payload.actual_amount is not None else None,
        notes=payload.notes,
    )
    db.add(cycle)
    db.flush()
    logger.info("Salary cycle %s-%02d recorded", cycle.year, cycle.month)
    return cycle


def update_cycle(db: Session, cycle_id: int, payload: SalaryCyclePatch) -> SalaryCycle:
    profile = require_profile(db)
    cycle = (
        db.query(SalaryCycle)
        .filter(SalaryCycle.id == cycle_id, SalaryCycle.salary_profile_id == profile.id)
        .first()
    )
    if not cycle:
        raise NotFoundError("Salary cycle not found")

    data = payload.model_dump(exclude_unset=True)
    if data.get("actual_amount") is not None:
        data["actual_amount"] = money(data["actual_amount"])
    for k, v in data.items():
        setattr(cycle, k, v)

    db.flush()
    return cycle
