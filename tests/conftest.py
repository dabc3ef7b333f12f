"""Pytest fixtures for testing"""

import pytest
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Generator, Optional
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from budget_confidence.api.main import create_app
from budget_confidence.api.dependencies import get_clock
from budget_confidence.infrastructure.database import models as orm
from budget_confidence.infrastructure.database.models import Base
from budget_confidence.infrastructure.database.session import get_db
from budget_confidence.services.confidence import ConfidenceService


# Fixed reference time so projections don't depend on when tests run
NOW = datetime(2025, 6, 1, 12, 0, 0)


def fixed_clock() -> datetime:
    return NOW


# Test database: one shared in-memory connection, usable from worker threads
TEST_DATABASE_URL = "sqlite://"
engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def service(db: Session) -> ConfidenceService:
    return ConfidenceService(db, clock=fixed_clock, currency_symbol="₱")


@pytest.fixture
def client(db: Session) -> TestClient:
    """Create FastAPI test client with test database"""
    app = create_app(session_factory=TestingSessionLocal)

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: fixed_clock
    return TestClient(app)


class Factory:
    """Inserts committed rows for tests"""

    def __init__(self, db: Session):
        self.db = db

    def _save(self, row):
        self.db.add(row)
        self.db.commit()
        return row

    def user(self, user_id: str = "user_1") -> orm.User:
        return self._save(orm.User(id=user_id, email=f"{user_id}@example.com"))

    def wallet(self, user_id: str = "user_1", balance: str = "0", is_active: bool = True, **kwargs) -> orm.Wallet:
        return self._save(orm.Wallet(user_id=user_id, balance=Decimal(balance), is_active=is_active, **kwargs))

    def income(
        self,
        user_id: str = "user_1",
        amount: str = "0",
        frequency: str = "MONTHLY",
        wallet_id: Optional[str] = None,
        is_active: bool = True,
    ) -> orm.IncomeSource:
        return self._save(
            orm.IncomeSource(
                user_id=user_id,
                amount=Decimal(amount),
                frequency=frequency,
                wallet_id=wallet_id,
                is_active=is_active,
            )
        )

    def transaction(
        self,
        wallet_id: str,
        user_id: str = "user_1",
        amount: str = "0",
        type: str = "EXPENSE",
        days_ago: int = 1,
    ) -> orm.Transaction:
        return self._save(
            orm.Transaction(
                user_id=user_id,
                wallet_id=wallet_id,
                amount=Decimal(amount),
                type=type,
                date=NOW - timedelta(days=days_ago),
            )
        )

    def planned_expense(
        self,
        user_id: str = "user_1",
        amount: str = "0",
        due_in_days: int = 30,
        status: str = "PLANNED",
        wallet_id: Optional[str] = None,
        **kwargs,
    ) -> orm.PlannedExpense:
        return self._save(
            orm.PlannedExpense(
                user_id=user_id,
                amount=Decimal(amount),
                target_date=NOW + timedelta(days=due_in_days),
                status=status,
                wallet_id=wallet_id,
                **kwargs,
            )
        )


@pytest.fixture
def factory(db: Session) -> Factory:
    return Factory(db)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def clock():
    return fixed_clock


@pytest.fixture
def session_factory():
    return TestingSessionLocal
