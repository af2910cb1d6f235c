from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from starlette import status

from finledger.utils.database import get_db
from finledger.schemas.salary_schema import SalaryCycleCreate, SalaryCyclePatch, SalaryCycleOut
from finledger.services import salary_service

router = APIRouter(prefix="/api/salary-cycles", tags=["Salary"])


@router.get("", response_model=list[SalaryCycleOut])
def list_cycles(limit: int = Query(12, ge=1, le=120), db: Session = Depends(get_db)):
    return salary_service.list_cycles(db, limit)


@router.post("", response_model=SalaryCycleOut, status_code=status.HTTP_201_CREATED)
def record_cycle(payload: SalaryCycleCreate, db: Session = Depends(get_db)):
    try:
        cycle = salary_service.record_cycle(db, payload)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(cycle)
    return cycle


@router.patch("/{cycle_id}", response_model=SalaryCycleOut)
def update_cycle(cycle_id: int, payload: SalaryCyclePatch, db: Session = Depends(get_db)):
    try:
        cycle = salary_service.update_cycle(db, cycle_id, payload)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(cycle)
    return cycle
