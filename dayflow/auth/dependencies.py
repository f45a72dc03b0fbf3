"""Auth dependencies — JWT validation, RBAC enforcement.

``get_current_user`` returns an explicit :class:`AuthContext`; nothing is
stashed on ``request.state``.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

from fastapi import Depends, Request
from jose import ExpiredSignatureError, JWTError, jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from dayflow.auth.models import User, UserSession
from dayflow.auth.service import hash_token
from dayflow.common.constants import PERMISSIONS, UserRole
from dayflow.common.exceptions import ForbiddenException, UnauthorizedException
from dayflow.config import settings
from dayflow.core_hr.models import Employee
from dayflow.database import get_db

# Role hierarchy — each role implicitly includes lower roles
_ROLE_HIERARCHY: dict[UserRole, set[UserRole]] = {
    UserRole.admin: {UserRole.admin, UserRole.employee},
    UserRole.employee: {UserRole.employee},
}


@dataclass
class AuthContext:
    """The authenticated caller, resolved once per request."""

    user: User
    employee: Employee
    token: str

    @property
    def role(self) -> UserRole:
        return self.user.role

    @property
    def company_id(self) -> uuid.UUID:
        return self.user.company_id

    @property
    def is_admin(self) -> bool:
        return self.user.role == UserRole.admin

    @property
    def permissions(self) -> list[str]:
        return PERMISSIONS.get(self.user.role, [])


def _extract_bearer(request: Request) -> str:
    """Extract Bearer token from Authorization header."""
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise UnauthorizedException("Missing or invalid Authorization header.")
    return auth_header[7:]


# ── Core dependency ─────────────────────────────────────────────────

async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> AuthContext:
    """Validate JWT, verify session, return the caller's AuthContext."""
    token = _extract_bearer(request)

    # Decode JWT
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
        )
    except ExpiredSignatureError:
        raise UnauthorizedException("Token has expired.")
    except JWTError:
        raise UnauthorizedException("Invalid token.")

    if payload.get("type") != "access":
        raise UnauthorizedException("Invalid token type.")

    # Verify session exists, not revoked, not expired
    result = await db.execute(
        select(UserSession).where(
            UserSession.token_hash == hash_token(token),
            UserSession.is_revoked.is_(False),
            UserSession.expires_at > datetime.now(timezone.utc),
        ),
    )
    if result.scalars().first() is None:
        raise UnauthorizedException("Session invalid or expired.")

    try:
        user_id = uuid.UUID(payload["sub"])
    except (KeyError, ValueError):
        raise UnauthorizedException("Invalid token.")

    user_result = await db.execute(
        select(User)
        .where(User.id == user_id, User.is_active.is_(True))
        .options(selectinload(User.employee).selectinload(Employee.company)),
    )
    user = user_result.scalars().first()
    if user is None or user.employee is None:
        raise UnauthorizedException("User account is inactive or not found.")

    return AuthContext(user=user, employee=user.employee, token=token)


# ── Role-based dependency ───────────────────────────────────────────

def require_role(*allowed_roles: UserRole) -> Callable:
    """Return a FastAPI dependency that enforces role membership.

    Respects hierarchy — admin can access employee endpoints.
    """

    async def _check(ctx: AuthContext = Depends(get_current_user)) -> AuthContext:
        effective_roles = _ROLE_HIERARCHY.get(ctx.role, {ctx.role})
        if not effective_roles.intersection(set(allowed_roles)):
            raise ForbiddenException(
                detail=f"Role '{ctx.role.value}' is not permitted. Required: {[r.value for r in allowed_roles]}.",
            )
        return ctx

    return _check


# ── Permission-based dependency ─────────────────────────────────────

def require_permission(permission: str) -> Callable:
    """Return a FastAPI dependency that enforces a specific permission string."""

    async def _check(ctx: AuthContext = Depends(get_current_user)) -> AuthContext:
        if permission not in ctx.permissions:
            raise ForbiddenException(
                detail=f"Permission '{permission}' is not granted to role '{ctx.role.value}'.",
            )
        return ctx

    return _check
