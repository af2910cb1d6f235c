"""Pytest configuration and fixtures."""

import os

# never touch a real database from the test suite
os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import finledger.models  # noqa: F401  registers tables
from finledger.schemas.loan_schema import LoanCreate
from finledger.services import installment_service, loan_service
from finledger.utils.database import Base, get_db
from main import app


@pytest.fixture
def engine():
    """Fresh in-memory SQLite database per test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_conn, _record):
        dbapi_conn.execute("PRAGMA foreign_keys=ON")

    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    """TestClient wired to the in-memory database."""

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_loan(db):
    """Create a loan and its schedule through the services, committed."""

    def _make(
            principal="120000",
            rate="12",
            tenure=12,
            start=date(2026, 1, 15),
            **extra,
    ):
        payload = LoanCreate(
            name=extra.pop("name", "Test loan"),
            type=extra.pop("type", "personal_loan"),
            principal_amount=Decimal(principal),
            interest_rate=Decimal(rate),
            tenure=tenure,
            start_date=start,
            **extra,
        )
        loan = loan_service.create_loan(db, payload)
        installment_service.generate(db, loan.id)
        db.commit()
        return loan

    return _make


@pytest.fixture
def loan_payload():
    """camelCase body the web client posts to /api/loans."""
    return {
        "name": "Car loan",
        "type": "personal_loan",
        "lenderName": "HDFC",
        "principalAmount": "120000",
        "interestRate": "12",
        "tenure": 12,
        "startDate": "2026-01-15",
    }
