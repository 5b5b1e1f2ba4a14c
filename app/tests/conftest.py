"""
Pytest configuration and fixtures
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from app.main import app
from app.db.base import Base
from app.core.deps import get_db
from app.core.security import create_access_token
from app.services.events import event_bus
from app.services.notification_service import NotificationDispatcher

# Import all models to ensure they're registered with Base.metadata
from app.models import (
    Department,
    User,
    Role,
    Level,
    Entitlement,
    LevelEntitlement,
    EntitlementType,
    Approver,
    ApproverRole,
)  # noqa


def _set_sqlite_pragma(dbapi_conn, connection_record):
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest.fixture(scope="function")
def engine():
    """Fresh in-memory database for each test"""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    event.listen(engine, "connect", _set_sqlite_pragma)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.rollback()
        db.close()


@pytest.fixture(scope="function")
def mail_outbox():
    """Mail payloads handed to the mail sender, as (kind, LeaveMail) tuples"""
    return []


@pytest.fixture(scope="function", autouse=True)
def notification_dispatcher(session_factory, mail_outbox):
    dispatcher = NotificationDispatcher(
        session_factory,
        mail_sender=lambda kind, mail: mail_outbox.append((kind, mail)),
    )
    dispatcher.register(event_bus)
    yield dispatcher
    event_bus.clear()


@pytest.fixture(scope="function")
def client(db):
    """Test client fixture with database override"""
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    def _headers(user: User) -> dict:
        token = create_access_token({"sub": str(user.id)})
        return {"Authorization": f"Bearer {token}"}
    return _headers


@pytest.fixture
def level(db):
    level = Level(name="Staff", description="Regular staff")
    db.add(level)
    db.commit()
    db.refresh(level)
    return level


@pytest.fixture
def annual_leave(db, level):
    """Annual Leave granted to the Staff level with 10 days"""
    entitlement = Entitlement(name="Annual Leave", unit="days", type=EntitlementType.LEAVE)
    db.add(entitlement)
    db.flush()
    db.add(LevelEntitlement(level_id=level.id, entitlement_id=entitlement.id, value=10))
    db.commit()
    db.refresh(entitlement)
    return entitlement


@pytest.fixture
def engineering(db):
    dept = Department(name="Engineering", active=True)
    db.add(dept)
    db.commit()
    db.refresh(dept)
    return dept


@pytest.fixture
def finance(db):
    dept = Department(name="Finance", active=True)
    db.add(dept)
    db.commit()
    db.refresh(dept)
    return dept


@pytest.fixture
def make_user(db, level):
    def _make(first_name, department=None, roles=None, with_level=True, head=False):
        user = User(
            email=f"{first_name.lower()}@example.com",
            first_name=first_name,
            last_name="Test",
            user_roles=roles or [Role.EMPLOYEE.value],
            department_id=department.id if department else None,
            level_id=level.id if with_level else None,
            active=True,
        )
        db.add(user)
        db.flush()
        if head:
            department.head_id = user.id
        db.commit()
        db.refresh(user)
        return user
    return _make


@pytest.fixture
def make_approver(db):
    def _make(user, role, department=None, is_active=True):
        approver = Approver(
            user_id=user.id,
            role=role,
            department_id=department.id if department else None,
            is_active=is_active,
        )
        db.add(approver)
        db.commit()
        db.refresh(approver)
        return approver
    return _make


@pytest.fixture
def manager(make_user, make_approver, engineering):
    """Head and DEPT_MANAGER approver of Engineering"""
    user = make_user("Mary", engineering, head=True)
    make_approver(user, ApproverRole.DEPT_MANAGER, engineering)
    return user


@pytest.fixture
def finance_head(make_user, make_approver, finance):
    """Head and DEPT_MANAGER approver of Finance"""
    user = make_user("Fred", finance, head=True)
    make_approver(user, ApproverRole.DEPT_MANAGER, finance)
    return user


@pytest.fixture
def hr_user(make_user, make_approver):
    """Global HR approver outside any department"""
    user = make_user("Hana")
    make_approver(user, ApproverRole.HR)
    return user


@pytest.fixture
def employee(make_user, engineering, annual_leave):
    """Engineering member holding 10 days of Annual Leave"""
    return make_user("Eve", engineering)
