from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

import finledger.models  # ensure models are registered
from finledger.core.config import CORS_ORIGINS, LOG_FORMAT, LOG_LEVEL
from finledger.core.exceptions import FinLedgerError, InvariantViolation
from finledger.core.logging import get_logger, setup_logging
from finledger.utils.database import engine, Base

from finledger.routers import (
    accounts_router,
    loan_installments_router,
    loans_router,
    salary_cycles_router,
    salary_router,
    summary_router,
    transactions_router,
)

setup_logging(LOG_LEVEL, LOG_FORMAT)
logger = get_logger("finledger")

app = FastAPI(title="FinLedger Loans & Salary API", version="1.0")

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(accounts_router.router)
app.include_router(transactions_router.router)
app.include_router(loans_router.router)
app.include_router(loan_installments_router.router)
app.include_router(summary_router.router)
app.include_router(salary_router.router)
app.include_router(salary_cycles_router.router)


# -------------------------------------------------
# Error mapping
# -------------------------------------------------
@app.exception_handler(FinLedgerError)
async def finledger_error_handler(request: Request, exc: FinLedgerError):
    if isinstance(exc, InvariantViolation) or exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail, exc_info=exc)
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    if exc.status_code >= 409:
        logger.warning("%s %s rejected: %s", request.method, request.url.path, exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError):
    logger.warning("%s %s hit a database constraint: %s", request.method, request.url.path,
                   getattr(exc, "orig", exc))
    return JSONResponse(
        status_code=409,
        content={"detail": "Unable to save due to database constraints."},
    )


@app.on_event("startup")
def on_startup():
    # DEV ONLY – use migrations in production
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ensured")


@app.get("/")
def root():
    return {"message": "FinLedger backend is running!!"}
