"""Auth router — company sign-up, sign-in, logout, current user, password change."""

from typing import Optional

from fastapi import APIRouter, Depends, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from dayflow.auth.dependencies import AuthContext, get_current_user
from dayflow.auth.models import User
from dayflow.auth.schemas import (
    ChangePasswordRequest,
    CompanyInfo,
    MeResponse,
    SignInRequest,
    SignUpRequest,
    TokenResponse,
    UserInfo,
)
from dayflow.auth.service import (
    authenticate,
    change_password,
    create_session,
    hash_token,
    revoke_session,
    sign_up_company,
)
from dayflow.common.audit import create_audit_entry
from dayflow.common.constants import HOME_ROUTES
from dayflow.common.rate_limit import limiter
from dayflow.core_hr.models import Employee
from dayflow.database import get_db

router = APIRouter(prefix="", tags=["auth"])


def _client(request: Request) -> tuple[Optional[str], Optional[str]]:
    ip = request.client.host if request.client else None
    return ip, request.headers.get("user-agent")


def _user_info(user: User) -> UserInfo:
    employee = user.employee
    company = employee.company
    return UserInfo(
        id=user.id,
        employee_id=employee.id,
        login_id=employee.login_id,
        display_name=employee.full_name,
        email=user.email,
        role=user.role.value,
        must_change_password=user.must_change_password,
        profile_picture=employee.profile_picture,
        company=CompanyInfo(
            id=company.id,
            name=company.name,
            prefix=company.prefix,
            logo_url=company.logo_url,
        ),
    )


async def _issue_token(db: AsyncSession, user: User, request: Request) -> TokenResponse:
    ip, user_agent = _client(request)
    access_token, expires_in = await create_session(db, user, ip, user_agent)

    # Eager-load employee + company for the response
    result = await db.execute(
        select(User)
        .where(User.id == user.id)
        .options(selectinload(User.employee).selectinload(Employee.company))
        .execution_options(populate_existing=True),
    )
    user = result.scalars().first()

    return TokenResponse(
        access_token=access_token,
        expires_in=expires_in,
        redirect_to=HOME_ROUTES[user.role],
        user=_user_info(user),
    )


# ── POST /sign-up — Create company + administrator ──────────────────

@router.post("/sign-up", response_model=TokenResponse, status_code=201)
@limiter.limit("5/minute")
async def sign_up(
    request: Request,
    body: SignUpRequest,
    db: AsyncSession = Depends(get_db),
):
    ip, user_agent = _client(request)
    user = await sign_up_company(
        db,
        company_name=body.company_name,
        company_prefix=body.company_prefix,
        first_name=body.first_name,
        last_name=body.last_name,
        email=body.email,
        password=body.password,
        logo_url=body.logo_url,
        ip=ip,
        user_agent=user_agent,
    )
    return await _issue_token(db, user, request)


# ── POST /sign-in — Email or login ID + password ───────────────────

@router.post("/sign-in", response_model=TokenResponse)
@limiter.limit("10/minute")
async def sign_in(
    request: Request,
    body: SignInRequest,
    db: AsyncSession = Depends(get_db),
):
    user = await authenticate(db, body.identifier, body.password)
    ip, user_agent = _client(request)

    await create_audit_entry(
        db,
        action="login",
        entity_type="user_session",
        entity_id=user.id,
        actor_id=user.id,
        company_id=user.company_id,
        new_values={"ip": ip, "user_agent": user_agent},
        ip_address=ip,
        user_agent=user_agent,
    )
    return await _issue_token(db, user, request)


# ── POST /logout — Revoke current session ──────────────────────────

@router.post("/logout")
async def logout(
    request: Request,
    ctx: AuthContext = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await revoke_session(db, hash_token(ctx.token))

    ip, user_agent = _client(request)
    await create_audit_entry(
        db,
        action="logout",
        entity_type="user_session",
        entity_id=ctx.user.id,
        actor_id=ctx.user.id,
        company_id=ctx.company_id,
        ip_address=ip,
        user_agent=user_agent,
    )

    return {"message": "Logged out successfully"}


# ── GET /me — Current user profile ─────────────────────────────────

@router.get("/me", response_model=MeResponse)
async def me(ctx: AuthContext = Depends(get_current_user)):
    info = _user_info(ctx.user)
    return MeResponse(**info.model_dump(), permissions=ctx.permissions)


# ── POST /change-password ──────────────────────────────────────────

@router.post("/change-password")
async def change_password_endpoint(
    body: ChangePasswordRequest,
    ctx: AuthContext = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await change_password(db, ctx.user, body.current_password, body.new_password)
    return {"message": "Password changed successfully"}
