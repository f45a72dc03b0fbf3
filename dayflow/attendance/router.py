"""Attendance router — check-in/out and day/month views.

All endpoints require authentication; the company-wide list is admin only.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from dayflow.attendance.schemas import (
    AttendanceRangeOut,
    AttendanceRecordOut,
    TodayStateOut,
)
from dayflow.attendance.service import AttendanceService
from dayflow.auth.dependencies import AuthContext, get_current_user, require_role
from dayflow.common.constants import AttendanceView, UserRole
from dayflow.database import get_db

router = APIRouter(prefix="", tags=["attendance"])


# ── GET /today ───────────────────────────────────────────────────────

@router.get("/today", response_model=TodayStateOut)
async def today(
    ctx: AuthContext = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Next available action (check-in / check-out / done) for the caller."""
    return await AttendanceService.get_today_state(db, ctx.employee)


# ── POST /check-in | /check-out ──────────────────────────────────────

@router.post("/check-in", response_model=AttendanceRecordOut, status_code=201)
async def check_in(
    ctx: AuthContext = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await AttendanceService.check_in(db, ctx.employee)


@router.post("/check-out", response_model=AttendanceRecordOut)
async def check_out(
    ctx: AuthContext = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await AttendanceService.check_out(db, ctx.employee)


# ── GET /me ──────────────────────────────────────────────────────────

@router.get("/me", response_model=AttendanceRangeOut)
async def my_attendance(
    view: AttendanceView = Query(AttendanceView.month),
    on: Optional[date] = Query(None, description="Anchor date (defaults to today)"),
    ctx: AuthContext = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await AttendanceService.my_attendance(db, ctx.employee, view=view, on=on)


# ── GET "" — company-wide (admin) ───────────────────────────────────

@router.get("", response_model=AttendanceRangeOut)
async def list_attendance(
    view: AttendanceView = Query(AttendanceView.day),
    on: Optional[date] = Query(None, description="Anchor date (defaults to today)"),
    search: Optional[str] = Query(None, max_length=100),
    ctx: AuthContext = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    return await AttendanceService.list_attendance(
        db, ctx.company_id, view=view, on=on, search=search,
    )
