from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session
from starlette import status

from finledger.core.config import NEXT_PAYDAYS_COUNT
from finledger.utils.database import get_db
from finledger.schemas.salary_schema import (
    SalaryProfileIn,
    SalaryProfilePatch,
    SalaryProfileOut,
    PaydayOut,
    CycleOut,
)
from finledger.services import salary_service

router = APIRouter(prefix="/api/salary-profile", tags=["Salary"])


@router.get("", response_model=SalaryProfileOut)
def get_profile(db: Session = Depends(get_db)):
    return salary_service.require_profile(db)


# upsert: 201 when created, 200 when an existing profile was replaced
@router.post("", response_model=SalaryProfileOut)
def upsert_profile(payload: SalaryProfileIn, response: Response, db: Session = Depends(get_db)):
    try:
        profile, created = salary_service.upsert_profile(db, payload)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(profile)
    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    return profile


@router.patch("", response_model=SalaryProfileOut)
def patch_profile(payload: SalaryProfilePatch, db: Session = Depends(get_db)):
    try:
        profile = salary_service.patch_profile(db, payload)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(profile)
    return profile


@router.patch("/{profile_id}", response_model=SalaryProfileOut)
def patch_profile_by_id(profile_id: int, payload: SalaryProfilePatch, db: Session = Depends(get_db)):
    try:
        profile = salary_service.patch_profile(db, payload, profile_id=profile_id)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(profile)
    return profile


@router.get("/next-paydays", response_model=list[PaydayOut])
def next_paydays(
        count: int = Query(NEXT_PAYDAYS_COUNT, ge=1, le=24),
        as_on: Optional[date] = Query(None),
        db: Session = Depends(get_db),
):
    return [PaydayOut.model_validate(p) for p in salary_service.next_paydays(db, count, as_on)]


@router.get("/past-paydays", response_model=list[PaydayOut])
def past_paydays(
        count: int = Query(3, ge=1, le=24),
        as_on: Optional[date] = Query(None),
        db: Session = Depends(get_db),
):
    return [PaydayOut.model_validate(p) for p in salary_service.previous_paydays(db, count, as_on)]


@router.get("/current-cycle", response_model=CycleOut)
def current_cycle(as_on: Optional[date] = Query(None), db: Session = Depends(get_db)):
    return CycleOut.model_validate(salary_service.cycle_for(db, as_on))
