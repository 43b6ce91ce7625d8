import pytest
import os
import tempfile
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set env before importing app components
os.environ["APP_ENV"] = "testing"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["BOOTSTRAP_ADMIN"] = "false"
os.environ["EMAIL_PROVIDER"] = "mock"
os.environ["STORAGE_PROVIDER"] = "local"
os.environ["LOCAL_STORAGE_DIR"] = tempfile.mkdtemp(prefix="hrms-test-uploads-")

import app.database as database
from app.core.config import settings
from app.database import Base, get_db
from app.main import app
from app.models.employee import Employee
from app.models.user import User, UserRole
from app.services import auth as auth_service
from app.services.storage import StorageService, get_storage
from fastapi.testclient import TestClient

# SQLite in-memory database configuration
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


# pysqlite defers BEGIN on its own; take it over so SAVEPOINT rollback really isolates tests
@event.listens_for(engine, "connect")
def _disable_pysqlite_transactions(dbapi_connection, connection_record):
    dbapi_connection.isolation_level = None


@event.listens_for(engine, "begin")
def _emit_begin(conn):
    conn.exec_driver_sql("BEGIN")

# Services commit; inside a test those commits only release savepoints
TestingSessionLocal = sessionmaker(
    autocommit=False, autoflush=False, bind=engine, join_transaction_mode="create_savepoint"
)

DEFAULT_PASSWORD = "Password123!"


@pytest.fixture(scope="session", autouse=True)
def setup_database():
    """Create tables once for the whole test session."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(monkeypatch):
    """Get a clean database session for each test function with rollback safety."""
    connection = engine.connect()
    transaction = connection.begin()
    session = TestingSessionLocal(bind=connection)

    # Background email delivery opens its own session; keep it on this connection
    monkeypatch.setattr(
        database,
        "SessionLocal",
        sessionmaker(autocommit=False, autoflush=False, bind=connection, join_transaction_mode="create_savepoint"),
    )

    yield session

    session.close()
    transaction.rollback()
    connection.close()


@pytest.fixture(scope="function")
def storage(tmp_path):
    """Local-disk storage rooted in a per-test directory."""
    return StorageService(settings.storage.model_copy(update={"provider": "local", "local_dir": str(tmp_path)}))


def create_person(db, email, role=UserRole.EMPLOYEE, full_name="Test Person", monthly_salary=None,
                  department="Engineering", designation="Engineer", with_profile=True):
    user = User(
        email=email,
        hashed_password=auth_service.get_password_hash(DEFAULT_PASSWORD),
        full_name=full_name,
        role=role,
        is_active=True,
    )
    db.add(user)
    db.flush()
    if with_profile:
        count = db.query(Employee).count()
        db.add(Employee(
            user_id=user.id,
            employee_code=f"EMP{1001 + count}",
            email=email,
            full_name=full_name,
            department=department,
            designation=designation,
            monthly_salary=monthly_salary,
        ))
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture(scope="function")
def admin_user(db_session):
    """HR admin without an employee profile."""
    return create_person(db_session, "admin@example.com", UserRole.ADMIN, "System Admin", with_profile=False)


@pytest.fixture(scope="function")
def manager_user(db_session):
    return create_person(db_session, "manager@example.com", UserRole.MANAGER, "Maya Manager", monthly_salary=60000)


@pytest.fixture(scope="function")
def employee_user(db_session):
    return create_person(db_session, "employee@example.com", UserRole.EMPLOYEE, "Ravi Kumar", monthly_salary=31000)


@pytest.fixture(scope="function")
def other_employee(db_session):
    return create_person(db_session, "other@example.com", UserRole.EMPLOYEE, "Asha Rao", monthly_salary=45000)


@pytest.fixture(scope="function")
def get_token():
    """Helper fixture to create access tokens for a user."""
    def _get_token(user):
        profile = user.employee_profile
        return auth_service.create_access_token(data={
            "sub": user.email,
            "role": user.role.value,
            "user_id": user.id,
            "employee_id": profile.id if profile else None,
        })
    return _get_token


@pytest.fixture(scope="function")
def auth_headers(get_token):
    def _headers(user):
        return {"Authorization": f"Bearer {get_token(user)}"}
    return _headers


@pytest.fixture(scope="function")
def client(db_session, storage):
    """Get a TestClient that uses the test database session via dependency override."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: storage
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
