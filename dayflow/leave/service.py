"""Leave service layer — balances, applications, approvals.

Business logic:
  - Per-year balances created on first access from configured defaults
  - Application with date, overlap and available-balance validation
  - Admin approval/rejection from ``pending`` only; approval deducts the
    balance and marks the covered attendance days as ``leave``
"""

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, timedelta, timezone
from typing import Optional

from fastapi import UploadFile
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from dayflow.attendance.models import AttendanceRecord
from dayflow.attendance.service import local_today
from dayflow.auth.models import User
from dayflow.common.audit import create_audit_entry
from dayflow.common.constants import AttendanceStatus, LeaveStatus, LeaveType
from dayflow.common.exceptions import (
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from dayflow.common.filters import apply_search
from dayflow.common.pagination import PaginationParams, paginate
from dayflow.common.storage import DOCUMENT_TYPES, save_upload
from dayflow.config import settings
from dayflow.core_hr.models import Employee
from dayflow.leave.models import LeaveBalance, LeaveRequest
from dayflow.leave.schemas import (
    EmployeeBrief,
    LeaveBalanceOut,
    LeaveRequestCreate,
    LeaveRequestListResponse,
    LeaveRequestOut,
    ReviewerBrief,
)

logger = logging.getLogger(__name__)

# Statuses that block a new request over the same days
_ACTIVE_STATUSES = (LeaveStatus.pending, LeaveStatus.approved)


def calculate_allocation(start_date: date, end_date: date) -> int:
    """Inclusive day count; a range ending before it starts is rejected."""
    days = (end_date - start_date).days + 1
    if days <= 0:
        raise ValidationException(
            {"end_date": ["End date must be after start date."]}
        )
    return days


# ═════════════════════════════════════════════════════════════════════
# LeaveService
# ═════════════════════════════════════════════════════════════════════


class LeaveService:
    """Business logic for time-off operations."""

    # ─────────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    def _build_employee_brief(emp: Employee) -> EmployeeBrief:
        return EmployeeBrief(
            id=emp.id,
            login_id=emp.login_id,
            display_name=emp.full_name,
            profile_picture=emp.profile_picture,
        )

    @staticmethod
    def _build_request_response(req: LeaveRequest) -> LeaveRequestOut:
        """Build LeaveRequestOut; ``employee`` and ``reviewer`` must be eager-loaded."""
        reviewer = None
        if req.reviewer is not None:
            reviewer = ReviewerBrief(
                id=req.reviewer.id,
                email=req.reviewer.email,
                display_name=req.reviewer.employee.full_name if req.reviewer.employee else None,
            )
        return LeaveRequestOut(
            id=req.id,
            employee_id=req.employee_id,
            leave_type=req.leave_type,
            start_date=req.start_date,
            end_date=req.end_date,
            allocation=req.allocation,
            remarks=req.remarks,
            attachment_url=req.attachment_url,
            status=req.status,
            admin_comment=req.admin_comment,
            reviewed_by=req.reviewed_by,
            reviewed_at=req.reviewed_at,
            created_at=req.created_at,
            employee=LeaveService._build_employee_brief(req.employee),
            reviewer=reviewer,
        )

    @staticmethod
    def _request_query():
        return select(LeaveRequest).options(
            selectinload(LeaveRequest.employee),
            selectinload(LeaveRequest.reviewer).selectinload(User.employee),
        )

    @staticmethod
    async def _load_request(
        db: AsyncSession,
        request_id: uuid.UUID,
        company_id: uuid.UUID,
    ) -> LeaveRequest:
        result = await db.execute(
            LeaveService._request_query()
            .join(Employee, Employee.id == LeaveRequest.employee_id)
            .where(LeaveRequest.id == request_id, Employee.company_id == company_id)
            .execution_options(populate_existing=True)
        )
        leave_req = result.scalars().first()
        if leave_req is None:
            raise NotFoundException("LeaveRequest", str(request_id))
        return leave_req

    @staticmethod
    async def _get_pending_days(
        db: AsyncSession,
        employee_id: uuid.UUID,
        leave_type: LeaveType,
        year: int,
    ) -> int:
        """Sum allocation of pending requests of *leave_type* starting in *year*."""
        result = await db.execute(
            select(func.coalesce(func.sum(LeaveRequest.allocation), 0)).where(
                LeaveRequest.employee_id == employee_id,
                LeaveRequest.leave_type == leave_type,
                LeaveRequest.status == LeaveStatus.pending,
                LeaveRequest.start_date >= date(year, 1, 1),
                LeaveRequest.start_date <= date(year, 12, 31),
            )
        )
        return int(result.scalar_one())

    # ─────────────────────────────────────────────────────────────────
    # Balances
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def ensure_balance(
        db: AsyncSession,
        employee_id: uuid.UUID,
        year: int,
    ) -> LeaveBalance:
        """Return the (employee, year) balance, creating the default allotment."""
        result = await db.execute(
            select(LeaveBalance).where(
                LeaveBalance.employee_id == employee_id,
                LeaveBalance.year == year,
            )
        )
        balance = result.scalars().first()
        if balance is None:
            balance = LeaveBalance(
                employee_id=employee_id,
                year=year,
                paid_leave=settings.DEFAULT_PAID_LEAVE_DAYS,
                sick_leave=settings.DEFAULT_SICK_LEAVE_DAYS,
                unpaid_leave=0,
            )
            db.add(balance)
            await db.flush()
        return balance

    @staticmethod
    async def get_balance(
        db: AsyncSession,
        employee_id: uuid.UUID,
        year: Optional[int] = None,
    ) -> LeaveBalanceOut:
        year = year or local_today().year
        balance = await LeaveService.ensure_balance(db, employee_id, year)
        out = LeaveBalanceOut.model_validate(balance)
        out.pending_paid = await LeaveService._get_pending_days(
            db, employee_id, LeaveType.paid, year,
        )
        out.pending_sick = await LeaveService._get_pending_days(
            db, employee_id, LeaveType.sick, year,
        )
        return out

    # ─────────────────────────────────────────────────────────────────
    # Apply
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def apply_leave(
        db: AsyncSession,
        employee: Employee,
        data: LeaveRequestCreate,
    ) -> LeaveRequestOut:
        """Apply for time off:
        - End date not before start date
        - No overlap with own pending/approved requests
        - Enough available paid/sick days (balance minus pending)
        """
        allocation = calculate_allocation(data.start_date, data.end_date)

        # ── Check overlapping leaves ────────────────────────────────
        overlap = await db.execute(
            select(LeaveRequest.id).where(
                LeaveRequest.employee_id == employee.id,
                LeaveRequest.status.in_(_ACTIVE_STATUSES),
                LeaveRequest.start_date <= data.end_date,
                LeaveRequest.end_date >= data.start_date,
            )
        )
        if overlap.scalars().first() is not None:
            raise ValidationException(
                {"start_date": ["You already have time off requested for these dates."]}
            )

        # ── Available balance ───────────────────────────────────────
        if data.leave_type != LeaveType.unpaid:
            year = data.start_date.year
            balance = await LeaveService.ensure_balance(db, employee.id, year)
            pending = await LeaveService._get_pending_days(
                db, employee.id, data.leave_type, year,
            )
            available = balance.days_for(data.leave_type) - pending
            if allocation > available:
                raise ValidationException(
                    {"leave_type": [
                        f"Insufficient {data.leave_type.value} leave balance. "
                        f"Available: {available}, requested: {allocation}."
                    ]}
                )

        leave_req = LeaveRequest(
            employee_id=employee.id,
            leave_type=data.leave_type,
            start_date=data.start_date,
            end_date=data.end_date,
            allocation=allocation,
            remarks=data.remarks,
            attachment_url=data.attachment_url,
            status=LeaveStatus.pending,
        )
        db.add(leave_req)
        await db.flush()

        await create_audit_entry(
            db,
            action="create",
            entity_type="leave_request",
            entity_id=leave_req.id,
            actor_id=employee.user_id,
            company_id=employee.company_id,
            new_values={
                "leave_type": data.leave_type.value,
                "start_date": data.start_date.isoformat(),
                "end_date": data.end_date.isoformat(),
                "allocation": allocation,
            },
        )
        logger.info(
            "Leave requested: %s %s %s..%s (%d days)",
            employee.login_id, data.leave_type.value,
            data.start_date, data.end_date, allocation,
        )

        leave_req = await LeaveService._load_request(db, leave_req.id, employee.company_id)
        return LeaveService._build_request_response(leave_req)

    @staticmethod
    async def upload_attachment(file: UploadFile) -> str:
        """Store a supporting document; the URL goes into ``attachment_url``."""
        return await save_upload(file, "leave-attachments", DOCUMENT_TYPES)

    # ─────────────────────────────────────────────────────────────────
    # Review
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def _mark_attendance_as_leave(db: AsyncSession, leave_req: LeaveRequest) -> None:
        """Flag every covered day without a check-in as ``leave``."""
        result = await db.execute(
            select(AttendanceRecord).where(
                AttendanceRecord.employee_id == leave_req.employee_id,
                AttendanceRecord.date >= leave_req.start_date,
                AttendanceRecord.date <= leave_req.end_date,
            )
        )
        existing = {rec.date: rec for rec in result.scalars().all()}

        day = leave_req.start_date
        while day <= leave_req.end_date:
            record = existing.get(day)
            if record is None:
                db.add(AttendanceRecord(
                    employee_id=leave_req.employee_id,
                    date=day,
                    status=AttendanceStatus.leave,
                ))
            elif record.check_in is None:
                record.status = AttendanceStatus.leave
            day += timedelta(days=1)
        await db.flush()

    @staticmethod
    async def _review(
        db: AsyncSession,
        request_id: uuid.UUID,
        *,
        company_id: uuid.UUID,
        reviewer_id: uuid.UUID,
        new_status: LeaveStatus,
        comment: Optional[str],
    ) -> LeaveRequest:
        leave_req = await LeaveService._load_request(db, request_id, company_id)

        if leave_req.status != LeaveStatus.pending:
            raise ValidationException(
                {"status": [f"Leave request is already {leave_req.status.value}."]}
            )

        # Deduct on approval
        if new_status == LeaveStatus.approved:
            balance = await LeaveService.ensure_balance(
                db, leave_req.employee_id, leave_req.start_date.year,
            )
            if leave_req.leave_type == LeaveType.paid:
                if balance.paid_leave < leave_req.allocation:
                    raise ValidationException(
                        {"leave_type": ["Insufficient paid leave balance."]}
                    )
                balance.paid_leave -= leave_req.allocation
            elif leave_req.leave_type == LeaveType.sick:
                if balance.sick_leave < leave_req.allocation:
                    raise ValidationException(
                        {"leave_type": ["Insufficient sick leave balance."]}
                    )
                balance.sick_leave -= leave_req.allocation
            else:
                balance.unpaid_leave += leave_req.allocation
            await LeaveService._mark_attendance_as_leave(db, leave_req)

        old_status = leave_req.status.value
        leave_req.status = new_status
        leave_req.reviewed_by = reviewer_id
        leave_req.reviewed_at = datetime.now(timezone.utc)
        leave_req.admin_comment = comment
        await db.flush()

        await create_audit_entry(
            db,
            action="approve" if new_status == LeaveStatus.approved else "reject",
            entity_type="leave_request",
            entity_id=leave_req.id,
            actor_id=reviewer_id,
            company_id=company_id,
            old_values={"status": old_status},
            new_values={"status": new_status.value, "comment": comment},
        )
        logger.info("Leave request %s %s by %s", leave_req.id, new_status.value, reviewer_id)

        return await LeaveService._load_request(db, leave_req.id, company_id)

    @staticmethod
    async def approve(
        db: AsyncSession,
        request_id: uuid.UUID,
        *,
        company_id: uuid.UUID,
        reviewer_id: uuid.UUID,
        comment: Optional[str] = None,
    ) -> LeaveRequestOut:
        leave_req = await LeaveService._review(
            db, request_id,
            company_id=company_id,
            reviewer_id=reviewer_id,
            new_status=LeaveStatus.approved,
            comment=comment,
        )
        return LeaveService._build_request_response(leave_req)

    @staticmethod
    async def reject(
        db: AsyncSession,
        request_id: uuid.UUID,
        *,
        company_id: uuid.UUID,
        reviewer_id: uuid.UUID,
        comment: Optional[str] = None,
    ) -> LeaveRequestOut:
        leave_req = await LeaveService._review(
            db, request_id,
            company_id=company_id,
            reviewer_id=reviewer_id,
            new_status=LeaveStatus.rejected,
            comment=comment,
        )
        return LeaveService._build_request_response(leave_req)

    # ─────────────────────────────────────────────────────────────────
    # Read
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def list_requests(
        db: AsyncSession,
        *,
        company_id: uuid.UUID,
        params: PaginationParams,
        employee_id: Optional[uuid.UUID] = None,
        status: Optional[LeaveStatus] = None,
        search: Optional[str] = None,
    ) -> LeaveRequestListResponse:
        """Requests of the company (or of one employee when *employee_id* is set), newest first."""
        scope = (
            select(LeaveRequest)
            .join(Employee, Employee.id == LeaveRequest.employee_id)
            .where(Employee.company_id == company_id)
        )
        if employee_id:
            scope = scope.where(LeaveRequest.employee_id == employee_id)

        pending_q = scope.where(LeaveRequest.status == LeaveStatus.pending)
        pending_count = (
            await db.execute(select(func.count()).select_from(pending_q.subquery()))
        ).scalar_one()

        query = scope.options(
            selectinload(LeaveRequest.employee),
            selectinload(LeaveRequest.reviewer).selectinload(User.employee),
        )
        if status:
            query = query.where(LeaveRequest.status == status)
        query = apply_search(query, Employee, search, ["first_name", "last_name", "login_id"])
        query = query.order_by(LeaveRequest.created_at.desc())

        page = await paginate(db, query, params, model=LeaveRequest)
        return LeaveRequestListResponse(
            data=[LeaveService._build_request_response(r) for r in page.data],
            meta=page.meta,
            pending_count=pending_count,
        )

    @staticmethod
    async def get_request(
        db: AsyncSession,
        request_id: uuid.UUID,
        *,
        company_id: uuid.UUID,
        employee_id: uuid.UUID,
        is_admin: bool,
    ) -> LeaveRequestOut:
        leave_req = await LeaveService._load_request(db, request_id, company_id)
        if not is_admin and leave_req.employee_id != employee_id:
            raise ForbiddenException("You can only view your own leave requests.")
        return LeaveService._build_request_response(leave_req)
