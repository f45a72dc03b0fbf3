"""Salary router — pay-structure configuration and breakdowns.

All endpoints require authentication. Admins read and configure any
employee of their company; employees read only their own breakdown.
"""

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from dayflow.auth.dependencies import AuthContext, get_current_user, require_permission
from dayflow.common.exceptions import ForbiddenException
from dayflow.core_hr.service import EmployeeService
from dayflow.database import get_db
from dayflow.salary.schemas import SalaryBreakdownOut, SalaryConfigIn, SalaryConfigOut
from dayflow.salary.service import SalaryService

router = APIRouter(prefix="", tags=["salary"])


async def _authorize_read(db: AsyncSession, ctx: AuthContext, employee_id: uuid.UUID) -> uuid.UUID:
    if employee_id == ctx.employee.id:
        return employee_id
    if not ctx.is_admin:
        raise ForbiddenException("You can only view your own salary information.")
    target = await EmployeeService.get_employee_model(db, ctx.company_id, employee_id)
    return target.id


# ── GET /defaults ────────────────────────────────────────────────────

@router.get("/defaults", response_model=SalaryConfigOut)
async def get_defaults(
    ctx: AuthContext = Depends(get_current_user),
):
    """Default pay structure used to prefill a new configuration."""
    return SalaryService.defaults()


# ── POST /preview ────────────────────────────────────────────────────

@router.post("/preview", response_model=SalaryBreakdownOut)
async def preview(
    body: SalaryConfigIn,
    ctx: AuthContext = Depends(require_permission("salary:configure")),
):
    """Breakdown of an unsaved configuration; nothing is stored."""
    return SalaryService.preview(body)


# ── GET /me ──────────────────────────────────────────────────────────

@router.get("/me", response_model=SalaryBreakdownOut)
async def my_salary(
    ctx: AuthContext = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await SalaryService.get_breakdown(db, ctx.employee.id)


# ── GET /{employee_id} ──────────────────────────────────────────────

@router.get("/{employee_id}", response_model=SalaryBreakdownOut)
async def get_salary(
    employee_id: uuid.UUID,
    ctx: AuthContext = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    target_id = await _authorize_read(db, ctx, employee_id)
    return await SalaryService.get_breakdown(db, target_id)


# ── PUT /{employee_id} ──────────────────────────────────────────────

@router.put("/{employee_id}", response_model=SalaryBreakdownOut)
async def save_salary(
    employee_id: uuid.UUID,
    body: SalaryConfigIn,
    ctx: AuthContext = Depends(require_permission("salary:configure")),
    db: AsyncSession = Depends(get_db),
):
    """Create or update the employee's pay structure."""
    target = await EmployeeService.get_employee_model(db, ctx.company_id, employee_id)
    return await SalaryService.upsert_config(
        db,
        target.id,
        body,
        actor_id=ctx.user.id,
        company_id=ctx.company_id,
    )
