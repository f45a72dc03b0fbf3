"""Leave router — balances, applications, attachments, approvals.

All endpoints require authentication. Admins see and review every request
of their company; employees see only their own.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from dayflow.auth.dependencies import AuthContext, get_current_user, require_role
from dayflow.common.constants import LeaveStatus, UserRole
from dayflow.common.exceptions import ForbiddenException
from dayflow.common.pagination import PaginationParams
from dayflow.core_hr.service import EmployeeService
from dayflow.database import get_db
from dayflow.leave.schemas import (
    AttachmentUploadOut,
    LeaveBalanceOut,
    LeaveRequestCreate,
    LeaveRequestListResponse,
    LeaveRequestOut,
    LeaveReviewRequest,
)
from dayflow.leave.service import LeaveService

router = APIRouter(prefix="", tags=["leave"])


# ── GET /balance ─────────────────────────────────────────────────────

@router.get("/balance", response_model=LeaveBalanceOut)
async def get_balance(
    year: Optional[int] = Query(None, ge=2000, le=2100),
    employee_id: Optional[uuid.UUID] = Query(None),
    ctx: AuthContext = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Own balance, or any company employee's balance for admins."""
    target_id = ctx.employee.id
    if employee_id and employee_id != ctx.employee.id:
        if not ctx.is_admin:
            raise ForbiddenException("You can only view your own leave balance.")
        target = await EmployeeService.get_employee_model(db, ctx.company_id, employee_id)
        target_id = target.id
    return await LeaveService.get_balance(db, target_id, year)


# ── GET "" — list requests ──────────────────────────────────────────

@router.get("", response_model=LeaveRequestListResponse)
async def list_requests(
    status: Optional[LeaveStatus] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    pagination: PaginationParams = Depends(),
    ctx: AuthContext = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await LeaveService.list_requests(
        db,
        company_id=ctx.company_id,
        params=pagination,
        employee_id=None if ctx.is_admin else ctx.employee.id,
        status=status,
        search=search,
    )


# ── POST "" — apply ─────────────────────────────────────────────────

@router.post("", response_model=LeaveRequestOut, status_code=201)
async def apply_leave(
    body: LeaveRequestCreate,
    ctx: AuthContext = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await LeaveService.apply_leave(db, ctx.employee, body)


# ── POST /attachments ───────────────────────────────────────────────

@router.post("/attachments", response_model=AttachmentUploadOut, status_code=201)
async def upload_attachment(
    file: UploadFile = File(...),
    ctx: AuthContext = Depends(get_current_user),
):
    """Upload a supporting document (e.g. a medical certificate)."""
    url = await LeaveService.upload_attachment(file)
    return AttachmentUploadOut(attachment_url=url)


# ── GET /{request_id} ───────────────────────────────────────────────

@router.get("/{request_id}", response_model=LeaveRequestOut)
async def get_request(
    request_id: uuid.UUID,
    ctx: AuthContext = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await LeaveService.get_request(
        db,
        request_id,
        company_id=ctx.company_id,
        employee_id=ctx.employee.id,
        is_admin=ctx.is_admin,
    )


# ── POST /{request_id}/approve | /reject ────────────────────────────

@router.post("/{request_id}/approve", response_model=LeaveRequestOut)
async def approve_request(
    request_id: uuid.UUID,
    body: Optional[LeaveReviewRequest] = None,
    ctx: AuthContext = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    return await LeaveService.approve(
        db,
        request_id,
        company_id=ctx.company_id,
        reviewer_id=ctx.user.id,
        comment=body.comment if body else None,
    )


@router.post("/{request_id}/reject", response_model=LeaveRequestOut)
async def reject_request(
    request_id: uuid.UUID,
    body: Optional[LeaveReviewRequest] = None,
    ctx: AuthContext = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    return await LeaveService.reject(
        db,
        request_id,
        company_id=ctx.company_id,
        reviewer_id=ctx.user.id,
        comment=body.comment if body else None,
    )
