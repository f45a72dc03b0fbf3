"""Auth service — password hashing, company sign-up, JWT management, session lifecycle."""

from __future__ import annotations

import hashlib
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
from jose import jwt
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from dayflow.attendance.service import local_today
from dayflow.auth.models import User, UserSession
from dayflow.common.audit import create_audit_entry
from dayflow.common.constants import UserRole
from dayflow.common.exceptions import (
    ConflictError,
    UnauthorizedException,
    ValidationException,
)
from dayflow.config import settings
from dayflow.core_hr.identifiers import PREFIX_LENGTH, admin_login_id, company_prefix_from_name
from dayflow.core_hr.models import Company, Employee
from dayflow.leave.service import LeaveService

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials."

# bcrypt only hashes the first 72 bytes and newer releases reject longer input
BCRYPT_MAX_BYTES = 72


# ── Passwords ───────────────────────────────────────────────────────

def hash_password(password: str) -> str:
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    if len(password.encode("utf-8")) > BCRYPT_MAX_BYTES:
        return False
    return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))


def validate_password_strength(password: str, field: str = "password") -> None:
    if len(password) < settings.MIN_PASSWORD_LENGTH:
        raise ValidationException(
            {field: [f"Password must be at least {settings.MIN_PASSWORD_LENGTH} characters."]}
        )
    if len(password.encode("utf-8")) > BCRYPT_MAX_BYTES:
        raise ValidationException(
            {field: [f"Password must be at most {BCRYPT_MAX_BYTES} bytes."]}
        )


# ── Sign-up ─────────────────────────────────────────────────────────

async def sign_up_company(
    db: AsyncSession,
    *,
    company_name: str,
    first_name: str,
    last_name: str,
    email: str,
    password: str,
    company_prefix: Optional[str] = None,
    logo_url: Optional[str] = None,
    ip: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> User:
    """Create a company together with its first administrator.

    The administrator gets a User (role admin), an Employee with login ID
    ``<PREFIX>ADMIN001`` and default leave balances for the current year.
    """
    validate_password_strength(password)
    email = email.lower()
    prefix = (company_prefix or company_prefix_from_name(company_name)).upper()
    if len(prefix) != PREFIX_LENGTH:
        raise ValidationException(
            {"company_prefix": ["Company name has fewer than two letters; supply a two-letter prefix."]}
        )

    existing = await db.execute(select(User.id).where(func.lower(User.email) == email))
    if existing.scalars().first() is not None:
        raise ConflictError("email", email)

    taken = await db.execute(select(Company.id).where(Company.prefix == prefix))
    if taken.scalars().first() is not None:
        raise ConflictError("company_prefix", prefix)

    company = Company(name=company_name.strip(), prefix=prefix, logo_url=logo_url)
    db.add(company)
    await db.flush()

    user = User(
        company_id=company.id,
        email=email,
        password_hash=hash_password(password),
        role=UserRole.admin,
        is_active=True,
        must_change_password=False,
    )
    db.add(user)
    await db.flush()

    today = local_today()
    employee = Employee(
        company_id=company.id,
        user_id=user.id,
        login_id=admin_login_id(prefix),
        first_name=first_name.strip(),
        last_name=last_name.strip(),
        email=email,
        date_of_joining=today,
        joining_year=today.year,
        skills=[],
        certifications=[],
    )
    db.add(employee)
    await db.flush()

    await LeaveService.ensure_balance(db, employee.id, today.year)

    await create_audit_entry(
        db,
        action="sign_up",
        entity_type="company",
        entity_id=company.id,
        actor_id=user.id,
        company_id=company.id,
        new_values={"name": company.name, "prefix": prefix, "admin_email": email},
        ip_address=ip,
        user_agent=user_agent,
    )
    logger.info("Company %s (%s) signed up with admin %s", company.name, prefix, employee.login_id)
    return user


# ── Sign-in ─────────────────────────────────────────────────────────

async def authenticate(db: AsyncSession, identifier: str, password: str) -> User:
    """Resolve *identifier* (email or login ID) and verify *password*.

    Every failure mode yields the same 401 so callers cannot tell which
    identifiers exist.
    """
    identifier = identifier.strip()
    if "@" in identifier:
        stmt = select(User).where(func.lower(User.email) == identifier.lower())
    else:
        stmt = (
            select(User)
            .join(Employee, Employee.user_id == User.id)
            .where(func.upper(Employee.login_id) == identifier.upper())
        )
    user = (await db.execute(stmt)).scalars().first()

    if user is None or not user.is_active or not verify_password(password, user.password_hash):
        logger.info("Failed sign-in for identifier %s", identifier)
        raise UnauthorizedException(INVALID_CREDENTIALS)

    user.last_login_at = datetime.now(timezone.utc)
    await db.flush()
    return user


async def change_password(
    db: AsyncSession,
    user: User,
    current_password: str,
    new_password: str,
) -> None:
    if not verify_password(current_password, user.password_hash):
        raise ValidationException({"current_password": ["Current password is incorrect."]})
    validate_password_strength(new_password, field="new_password")

    user.password_hash = hash_password(new_password)
    user.must_change_password = False
    await db.flush()

    await create_audit_entry(
        db,
        action="change_password",
        entity_type="user",
        entity_id=user.id,
        actor_id=user.id,
        company_id=user.company_id,
    )


# ── JWT helpers ─────────────────────────────────────────────────────

def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


def create_access_token(user: User) -> tuple[str, int]:
    """Return (encoded_jwt, expires_in_seconds)."""
    expires_in = settings.JWT_EXPIRY_HOURS * 3600
    payload = {
        "sub": str(user.id),
        "role": user.role.value,
        "company_id": str(user.company_id),
        "type": "access",
        "jti": uuid.uuid4().hex,  # Distinct session hash for same-second sign-ins
        "exp": datetime.now(timezone.utc) + timedelta(hours=settings.JWT_EXPIRY_HOURS),
    }
    token = jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
    return token, expires_in


# ── Session management ──────────────────────────────────────────────

async def create_session(
    db: AsyncSession,
    user: User,
    ip: Optional[str],
    user_agent: Optional[str],
) -> tuple[str, int]:
    """Issue an access token and persist its session.  Returns (token, expires_in)."""
    access_token, expires_in = create_access_token(user)

    session = UserSession(
        user_id=user.id,
        token_hash=hash_token(access_token),
        ip_address=ip,
        user_agent=user_agent,
        expires_at=datetime.now(timezone.utc) + timedelta(seconds=expires_in),
    )
    db.add(session)
    await db.flush()

    return access_token, expires_in


async def revoke_session(db: AsyncSession, token_hash: str) -> None:
    """Mark a session as revoked by its token hash."""
    result = await db.execute(
        select(UserSession).where(UserSession.token_hash == token_hash),
    )
    session = result.scalars().first()
    if session:
        session.is_revoked = True
        await db.flush()
