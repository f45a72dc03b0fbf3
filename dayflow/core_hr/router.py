"""Core HR router — employee directory, profiles and company settings.

Routes:
    /employees                        — List (any user), create (admin)
    /employees/{id}                   — Get, update (owner or admin), delete (admin)
    /employees/{id}/profile-picture   — Upload a profile picture
    /company                          — Current tenant
    /company/logo                     — Upload the company logo (admin)
    /company/audit-log                — Recent audit entries (admin)
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, File, Query, Response, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from dayflow.auth.dependencies import (
    AuthContext,
    get_current_user,
    require_permission,
    require_role,
)
from dayflow.common.constants import UserRole
from dayflow.common.pagination import PaginationParams
from dayflow.core_hr.schemas import (
    AuditEntryOut,
    CompanyBrief,
    EmployeeCreate,
    EmployeeCredentials,
    EmployeeDetail,
    EmployeeListResponse,
    EmployeeUpdate,
)
from dayflow.core_hr.service import CompanyService, EmployeeService
from dayflow.database import get_db


# ═════════════════════════════════════════════════════════════════════
# Routers
# ═════════════════════════════════════════════════════════════════════

employees_router = APIRouter(prefix="", tags=["employees"])
company_router = APIRouter(prefix="", tags=["company"])


# ═════════════════════════════════════════════════════════════════════
# Employee Endpoints
# ═════════════════════════════════════════════════════════════════════


# ── GET /employees — Directory ──────────────────────────────────────

@employees_router.get("", response_model=EmployeeListResponse)
async def list_employees(
    pagination: PaginationParams = Depends(),
    search: Optional[str] = Query(None, max_length=100, description="Name, email or login ID"),
    department: Optional[str] = Query(None, max_length=150),
    location: Optional[str] = Query(None, max_length=150),
    ctx: AuthContext = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Company directory with today's presence badge on every card."""
    return await EmployeeService.list_employees(
        db,
        ctx.company_id,
        pagination,
        search=search,
        department=department,
        location=location,
    )


# ── POST /employees — Onboard ───────────────────────────────────────

@employees_router.post("", response_model=EmployeeCredentials, status_code=201)
async def create_employee(
    body: EmployeeCreate,
    ctx: AuthContext = Depends(require_permission("profile:create")),
    db: AsyncSession = Depends(get_db),
):
    """Create an employee; the generated login ID and temporary password are returned once."""
    company = await CompanyService.get_company(db, ctx.company_id)
    return await EmployeeService.create_employee(db, company, body, actor_id=ctx.user.id)


# ── GET /employees/{id} ─────────────────────────────────────────────

@employees_router.get("/{employee_id}", response_model=EmployeeDetail)
async def get_employee(
    employee_id: uuid.UUID,
    ctx: AuthContext = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Full profile; private and bank fields only for the owner and admins."""
    return await EmployeeService.get_employee(
        db,
        ctx.company_id,
        employee_id,
        viewer_employee_id=ctx.employee.id,
        viewer_is_admin=ctx.is_admin,
    )


# ── PATCH /employees/{id} ───────────────────────────────────────────

@employees_router.patch("/{employee_id}", response_model=EmployeeDetail)
async def update_employee(
    employee_id: uuid.UUID,
    body: EmployeeUpdate,
    ctx: AuthContext = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await EmployeeService.update_employee(
        db,
        ctx.company_id,
        employee_id,
        body,
        actor_id=ctx.user.id,
        actor_employee_id=ctx.employee.id,
        is_admin=ctx.is_admin,
    )


# ── POST /employees/{id}/profile-picture ────────────────────────────

@employees_router.post("/{employee_id}/profile-picture", response_model=EmployeeDetail)
async def upload_profile_picture(
    employee_id: uuid.UUID,
    file: UploadFile = File(...),
    ctx: AuthContext = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await EmployeeService.upload_profile_picture(
        db,
        ctx.company_id,
        employee_id,
        file,
        actor_id=ctx.user.id,
        actor_employee_id=ctx.employee.id,
        is_admin=ctx.is_admin,
    )


# ── DELETE /employees/{id} ──────────────────────────────────────────

@employees_router.delete("/{employee_id}", status_code=204)
async def delete_employee(
    employee_id: uuid.UUID,
    ctx: AuthContext = Depends(require_permission("profile:delete")),
    db: AsyncSession = Depends(get_db),
):
    await EmployeeService.delete_employee(
        db,
        ctx.company_id,
        employee_id,
        actor_id=ctx.user.id,
        actor_employee_id=ctx.employee.id,
    )
    return Response(status_code=204)


# ═════════════════════════════════════════════════════════════════════
# Company Endpoints
# ═════════════════════════════════════════════════════════════════════


@company_router.get("", response_model=CompanyBrief)
async def get_company(
    ctx: AuthContext = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await CompanyService.get_company_brief(db, ctx.company_id)


@company_router.post("/logo", response_model=CompanyBrief)
async def upload_logo(
    file: UploadFile = File(...),
    ctx: AuthContext = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    return await CompanyService.update_logo(db, ctx.company_id, file, actor_id=ctx.user.id)


@company_router.get("/audit-log", response_model=list[AuditEntryOut])
async def audit_log(
    entity_type: Optional[str] = Query(None, max_length=50),
    entity_id: Optional[uuid.UUID] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    ctx: AuthContext = Depends(require_permission("audit:read")),
    db: AsyncSession = Depends(get_db),
):
    return await CompanyService.audit_log(
        db,
        ctx.company_id,
        entity_type=entity_type,
        entity_id=entity_id,
        limit=limit,
    )
