"""Shared test fixtures for all test modules."""

import contextlib
import uuid

import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import buildtrack.models  # noqa: F401
from buildtrack.core import database as db_module
from buildtrack.core.database import Base
from buildtrack.repositories.user_role_repository import UserRoleRepository
from buildtrack.services.auth_service import AuthService

# Create an in-memory SQLite engine with StaticPool so all connections
# share the same database state and there are no file-locking issues.
_test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
_TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_test_engine)

# Well-known identities used across tests
ADMIN_USER_ID = uuid.UUID("00000000-0000-0000-0000-00000000000a")
MEMBER_USER_ID = uuid.UUID("00000000-0000-0000-0000-00000000000b")


def auth_headers(user_id: uuid.UUID, email: str | None = None) -> dict[str, str]:
    """Bearer headers carrying a valid session token for ``user_id``."""
    token = AuthService.generate_token(user_id, email or f"{user_id.hex[-4:]}@example.com")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(autouse=True)
def setup_database():
    """Create tables before each test and truncate all data after.

    Patches the module-level engine and SessionLocal so all application code
    uses the in-memory test database. Clears data after each test.
    """
    original_engine = db_module.engine
    original_session = db_module.SessionLocal
    db_module.engine = _test_engine
    db_module.SessionLocal = _TestSessionLocal

    Base.metadata.create_all(bind=_test_engine)

    yield
    with _test_engine.connect() as conn:
        conn.execute(text("PRAGMA foreign_keys = OFF"))
        for table in reversed(Base.metadata.sorted_tables):
            with contextlib.suppress(OperationalError):
                conn.execute(table.delete())
        conn.execute(text("PRAGMA foreign_keys = ON"))
        conn.commit()

    db_module.engine = original_engine
    db_module.SessionLocal = original_session


@pytest.fixture
def db_session():
    """Create a database session for direct repository testing."""
    gen = db_module.get_db()
    db = next(gen)
    try:
        yield db
    finally:
        for _ in gen:
            pass


@pytest.fixture
def admin_id(db_session):
    """Grant the admin role to ADMIN_USER_ID and return it."""
    UserRoleRepository(db_session).grant(ADMIN_USER_ID)
    return ADMIN_USER_ID


@pytest.fixture
def admin_headers(admin_id):
    return auth_headers(admin_id, "admin@example.com")


@pytest.fixture
def member_headers():
    return auth_headers(MEMBER_USER_ID, "member@example.com")
