"""Shared test fixtures — async DB, client, auth helpers, factories.

Reusable across all test modules (auth, core_hr, attendance, leave, salary).
Uses SQLite + aiosqlite for fast isolated tests without PostgreSQL.
"""

from __future__ import annotations

import os
import tempfile

# Set test settings before any other import touches pydantic-settings
os.environ.setdefault("JWT_SECRET", "test-secret-for-ci-do-not-use-in-production")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="dayflow-uploads-"))
os.environ.setdefault("ENVIRONMENT", "test")

import hashlib
import uuid
from datetime import date, datetime, timedelta, timezone
from typing import AsyncGenerator, Optional

import bcrypt
import pytest
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from dayflow.common.constants import UserRole
from dayflow.config import settings
from dayflow.database import Base, get_db
from dayflow.main import create_app

# Import ALL model modules so SQLAlchemy can resolve cross-module relationships
# (e.g. Employee → LeaveBalance, SalaryInfo, etc.)
import dayflow.auth.models  # noqa: F401
import dayflow.core_hr.models  # noqa: F401
import dayflow.leave.models  # noqa: F401
import dayflow.attendance.models  # noqa: F401
import dayflow.salary.models  # noqa: F401
import dayflow.common.audit  # noqa: F401

# ── SQLite compat: compile PG-specific types to TEXT/BLOB ───────────

from sqlalchemy.dialects.postgresql import INET, JSONB, UUID as PG_UUID
from sqlalchemy.ext.compiler import compiles


@compiles(JSONB, "sqlite")
def _jsonb_sqlite(element, compiler, **kw):
    return "TEXT"


@compiles(INET, "sqlite")
def _inet_sqlite(element, compiler, **kw):
    return "TEXT"


@compiles(PG_UUID, "sqlite")
def _uuid_sqlite(element, compiler, **kw):
    return "CHAR(36)"


# ── Test database (SQLite in-memory) ────────────────────────────────

TEST_DATABASE_URL = "sqlite+aiosqlite://"

engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


# Register PG-compatible functions for SQLite
@event.listens_for(engine.sync_engine, "connect")
def _register_sqlite_functions(dbapi_conn, connection_record):
    """Register NOW() and uuid_generate_v4() as SQLite custom functions."""
    dbapi_conn.create_function(
        "NOW", 0, lambda: datetime.now(timezone.utc).isoformat(),
    )
    dbapi_conn.create_function(
        "uuid_generate_v4", 0, lambda: str(uuid.uuid4()),
    )
    dbapi_conn.create_function(
        "gen_random_uuid", 0, lambda: str(uuid.uuid4()),
    )

TestSessionFactory = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False,
)


@pytest.fixture(autouse=True)
async def _setup_db():
    """Create all tables before each test, drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture(autouse=True)
def _reset_rate_limiter():
    """Reset rate limiter storage between tests to prevent cross-test interference."""
    from dayflow.common.rate_limit import limiter

    limiter.reset()
    yield


async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── FastAPI test client ─────────────────────────────────────────────

@pytest.fixture
async def app():
    """Create a fresh app instance with DB dependency overridden."""
    application = create_app()
    application.dependency_overrides[get_db] = _override_get_db
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client wired to the test app."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


# ── Database session (for direct DB operations in tests) ────────────

@pytest.fixture
async def db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        yield session
        await session.commit()


# ── Model factories ─────────────────────────────────────────────────

DEFAULT_PASSWORD = "Passw0rd!23"

# Computed once: bcrypt is deliberately slow
_DEFAULT_PASSWORD_HASH = bcrypt.hashpw(DEFAULT_PASSWORD.encode(), bcrypt.gensalt(rounds=4)).decode()


def _make_company(*, name: str = "Acme Industries", prefix: str = "AC") -> dict:
    return dict(
        id=uuid.uuid4(),
        name=name,
        prefix=prefix,
        created_at=datetime.now(timezone.utc),
        updated_at=datetime.now(timezone.utc),
    )


def _make_user(
    *,
    company_id: uuid.UUID,
    email: str,
    role: UserRole = UserRole.employee,
    must_change_password: bool = False,
    is_active: bool = True,
) -> dict:
    return dict(
        id=uuid.uuid4(),
        company_id=company_id,
        email=email,
        password_hash=_DEFAULT_PASSWORD_HASH,
        role=role,
        is_active=is_active,
        must_change_password=must_change_password,
        created_at=datetime.now(timezone.utc),
    )


def _make_employee(
    *,
    company_id: uuid.UUID,
    user_id: Optional[uuid.UUID],
    email: str,
    login_id: str,
    first_name: str = "Test",
    last_name: str = "User",
    department: Optional[str] = "Engineering",
    date_of_joining: date = date(2024, 1, 15),
) -> dict:
    return dict(
        id=uuid.uuid4(),
        company_id=company_id,
        user_id=user_id,
        login_id=login_id,
        joining_year=date_of_joining.year,
        joining_serial=1,
        first_name=first_name,
        last_name=last_name,
        email=email,
        department=department,
        job_position="Engineer",
        date_of_joining=date_of_joining,
        skills=[],
        certifications=[],
        created_at=datetime.now(timezone.utc),
        updated_at=datetime.now(timezone.utc),
    )


async def create_company(db: AsyncSession, **kwargs) -> dict:
    from dayflow.core_hr.models import Company

    data = _make_company(**kwargs)
    db.add(Company(**data))
    await db.commit()
    return data


async def create_person(
    db: AsyncSession,
    company: dict,
    *,
    email: str,
    login_id: str,
    role: UserRole = UserRole.employee,
    first_name: str = "Test",
    last_name: str = "User",
    department: Optional[str] = "Engineering",
) -> dict:
    """Insert a User + linked Employee; returns ids and identity fields."""
    from dayflow.auth.models import User
    from dayflow.core_hr.models import Employee

    user_data = _make_user(company_id=company["id"], email=email, role=role)
    db.add(User(**user_data))
    await db.flush()

    emp_data = _make_employee(
        company_id=company["id"],
        user_id=user_data["id"],
        email=email,
        login_id=login_id,
        first_name=first_name,
        last_name=last_name,
        department=department,
    )
    db.add(Employee(**emp_data))
    await db.commit()
    return {
        "user_id": user_data["id"],
        "employee_id": emp_data["id"],
        "company_id": company["id"],
        "email": email,
        "login_id": login_id,
        "role": role,
        "first_name": first_name,
        "last_name": last_name,
    }


# ── Auth helpers ────────────────────────────────────────────────────

def create_access_token(
    user_id: uuid.UUID,
    role: UserRole = UserRole.employee,
    company_id: Optional[uuid.UUID] = None,
    expired: bool = False,
    token_type: str = "access",
) -> str:
    """Generate a JWT access token for testing."""
    if expired:
        exp = datetime.now(timezone.utc) - timedelta(hours=1)
    else:
        exp = datetime.now(timezone.utc) + timedelta(hours=settings.JWT_EXPIRY_HOURS)
    payload = {
        "sub": str(user_id),
        "role": role.value,
        "company_id": str(company_id) if company_id else None,
        "type": token_type,
        "jti": uuid.uuid4().hex,
        "exp": exp,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


async def login_headers(db: AsyncSession, person: dict) -> dict[str, str]:
    """Bearer headers for *person* backed by a live session row."""
    from dayflow.auth.models import UserSession

    token = create_access_token(person["user_id"], person["role"], person["company_id"])
    db.add(UserSession(
        id=uuid.uuid4(),
        user_id=person["user_id"],
        token_hash=hashlib.sha256(token.encode()).hexdigest(),
        expires_at=datetime.now(timezone.utc) + timedelta(hours=settings.JWT_EXPIRY_HOURS),
        is_revoked=False,
        created_at=datetime.now(timezone.utc),
    ))
    await db.commit()
    return {"Authorization": f"Bearer {token}"}


# ── Fixtures ────────────────────────────────────────────────────────

@pytest.fixture
async def company(db) -> dict:
    return await create_company(db)


@pytest.fixture
async def admin(db, company) -> dict:
    return await create_person(
        db, company,
        email="admin@acme.io",
        login_id="ACADMIN001",
        role=UserRole.admin,
        first_name="Asha",
        last_name="Admin",
        department="Management",
    )


@pytest.fixture
async def employee(db, company) -> dict:
    return await create_person(
        db, company,
        email="john.doe@acme.io",
        login_id="ACJODO20240001",
        first_name="John",
        last_name="Doe",
    )


@pytest.fixture
async def admin_headers(db, admin) -> dict[str, str]:
    return await login_headers(db, admin)


@pytest.fixture
async def auth_headers(db, employee) -> dict[str, str]:
    """Return Bearer auth headers for the plain employee."""
    return await login_headers(db, employee)


@pytest.fixture
async def other_company(db) -> dict:
    return await create_company(db, name="Globex Corp", prefix="GL")


@pytest.fixture
async def outsider(db, other_company) -> dict:
    """Employee of a different tenant."""
    return await create_person(
        db, other_company,
        email="hank@globex.io",
        login_id="GLHASC20240001",
        first_name="Hank",
        last_name="Scorpio",
    )
