"""
Pytest configuration and fixtures
"""
from datetime import date

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlalchemy.engine import Engine
from app.main import app
from app.db.base import Base
from app.core.deps import get_db, get_policy_context
from app.services.policy_context import LeavePolicyContext

# Import all models to ensure they're registered with Base.metadata
from app.models import (
    Employee,
    WorkSchedule,
    AuditLog,
    LeaveRequest,
    ApprovalRecord,
    LeaveApprovalChainStep,
)  # noqa


# Use in-memory SQLite for testing
SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

# Enable foreign keys for SQLite
@event.listens_for(Engine, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db():
    """Create a fresh database for each test"""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def policy():
    """Default leave policy parameters"""
    return LeavePolicyContext()


@pytest.fixture(scope="function")
def client(db, policy):
    """Test client fixture with database override"""
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_policy_context] = lambda: policy
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_employee(db):
    """Factory creating employees; supervisor is another Employee or None"""
    counter = {"n": 0}

    def _make(name="Employee", supervisor=None, hire_date=date(2015, 1, 1), gender=None, active=True):
        counter["n"] += 1
        employee = Employee(
            emp_code=f"EMP{counter['n']:03d}",
            name=name,
            supervisor_id=supervisor.id if supervisor else None,
            hire_date=hire_date,
            gender=gender,
            active=active,
        )
        db.add(employee)
        db.commit()
        db.refresh(employee)
        return employee

    return _make


@pytest.fixture
def make_schedule(db):
    """Factory creating a work schedule row for one date"""
    def _make(employee, work_date, clock_in="09:00", clock_out="18:00"):
        schedule = WorkSchedule(
            employee_id=employee.id,
            work_date=work_date,
            clock_in=clock_in,
            clock_out=clock_out,
        )
        db.add(schedule)
        db.commit()
        return schedule

    return _make
