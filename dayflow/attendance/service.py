"""Attendance service layer — daily check-in/out and day/month views.

One AttendanceRecord per employee per day. Times are kept at minute
granularity in the company timezone; work hours are the check-in to
check-out span and extra hours whatever exceeds the standard day.
"""

from __future__ import annotations

import calendar
import logging
import uuid
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Optional, Sequence
from zoneinfo import ZoneInfo

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from dayflow.attendance.models import AttendanceRecord
from dayflow.attendance.schemas import (
    AttendanceRangeOut,
    AttendanceRecordOut,
    EmployeeBrief,
    TodayStateOut,
)
from dayflow.common.audit import create_audit_entry
from dayflow.common.constants import (
    TIMEZONE,
    AttendanceState,
    AttendanceStatus,
    AttendanceView,
)
from dayflow.common.exceptions import ConflictError, ValidationException
from dayflow.common.filters import apply_search
from dayflow.config import settings
from dayflow.core_hr.models import Employee

logger = logging.getLogger(__name__)


# ── Clock ───────────────────────────────────────────────────────────

def local_now() -> datetime:
    return datetime.now(ZoneInfo(TIMEZONE))


def local_today() -> date:
    return local_now().date()


# ── Pure helpers ────────────────────────────────────────────────────

def calculate_work_hours(check_in: time, check_out: time) -> float:
    """Hours between two HH:MM times, rounded to 2 places; never negative."""
    minutes = (check_out.hour * 60 + check_out.minute) - (check_in.hour * 60 + check_in.minute)
    return round(max(minutes, 0) / 60, 2)


def calculate_extra_hours(work_hours: float) -> float:
    return round(max(0.0, work_hours - settings.STANDARD_WORK_HOURS), 2)


def resolve_range(view: AttendanceView, on: date) -> tuple[date, date]:
    """Day view: exactly *on*. Month view: first..last day of *on*'s month."""
    if view == AttendanceView.day:
        return on, on
    last_day = calendar.monthrange(on.year, on.month)[1]
    return on.replace(day=1), on.replace(day=last_day)


def previous_anchor(view: AttendanceView, on: date) -> date:
    if view == AttendanceView.day:
        return on - timedelta(days=1)
    return (on.replace(day=1) - timedelta(days=1)).replace(day=1)


def next_anchor(view: AttendanceView, on: date) -> date:
    if view == AttendanceView.day:
        return on + timedelta(days=1)
    last_day = calendar.monthrange(on.year, on.month)[1]
    return on.replace(day=last_day) + timedelta(days=1)


def today_state(record: Optional[AttendanceRecord]) -> AttendanceState:
    if record is None or record.check_in is None:
        return AttendanceState.check_in
    if record.check_out is None:
        return AttendanceState.check_out
    return AttendanceState.done


def _to_minute(moment: datetime) -> time:
    return time(moment.hour, moment.minute)


# ═════════════════════════════════════════════════════════════════════
# AttendanceService
# ═════════════════════════════════════════════════════════════════════


class AttendanceService:
    """Async attendance operations: check in/out, read views."""

    # ── Helpers ─────────────────────────────────────────────────────

    @staticmethod
    def _build_record_response(
        record: AttendanceRecord,
        *,
        employee: Optional[Employee] = None,
    ) -> AttendanceRecordOut:
        out = AttendanceRecordOut(
            id=record.id,
            employee_id=record.employee_id,
            date=record.date,
            check_in=record.check_in,
            check_out=record.check_out,
            work_hours=float(record.work_hours or 0),
            extra_hours=float(record.extra_hours or 0),
            status=record.status,
        )
        if employee is not None:
            out.employee = EmployeeBrief(
                id=employee.id,
                login_id=employee.login_id,
                display_name=employee.full_name,
                department=employee.department,
                profile_picture=employee.profile_picture,
            )
        return out

    @staticmethod
    def _build_range(
        view: AttendanceView,
        on: date,
        records: Sequence[AttendanceRecord],
        *,
        with_employee: bool,
    ) -> AttendanceRangeOut:
        start, end = resolve_range(view, on)
        data = [
            AttendanceService._build_record_response(
                r, employee=r.employee if with_employee else None,
            )
            for r in records
        ]
        return AttendanceRangeOut(
            view=view,
            start_date=start,
            end_date=end,
            previous=previous_anchor(view, on),
            next=next_anchor(view, on),
            data=data,
            total_work_hours=round(sum(d.work_hours for d in data), 2),
            total_extra_hours=round(sum(d.extra_hours for d in data), 2),
        )

    @staticmethod
    async def _get_record(
        db: AsyncSession,
        employee_id: uuid.UUID,
        day: date,
    ) -> Optional[AttendanceRecord]:
        result = await db.execute(
            select(AttendanceRecord).where(
                AttendanceRecord.employee_id == employee_id,
                AttendanceRecord.date == day,
            )
        )
        return result.scalars().first()

    # ── Today ───────────────────────────────────────────────────────

    @staticmethod
    async def get_today_state(
        db: AsyncSession,
        employee: Employee,
        *,
        now: Optional[datetime] = None,
    ) -> TodayStateOut:
        today = (now or local_now()).date()
        record = await AttendanceService._get_record(db, employee.id, today)
        return TodayStateOut(
            date=today,
            state=today_state(record),
            record=AttendanceService._build_record_response(record) if record else None,
        )

    @staticmethod
    async def check_in(
        db: AsyncSession,
        employee: Employee,
        *,
        now: Optional[datetime] = None,
    ) -> AttendanceRecordOut:
        """Start today's record. A day already checked into cannot be checked into again."""
        now = now or local_now()
        today = now.date()

        record = await AttendanceService._get_record(db, employee.id, today)
        if record is not None and record.check_in is not None:
            raise ConflictError("check_in", today.isoformat(), detail="Already checked in today.")

        if record is None:
            record = AttendanceRecord(employee_id=employee.id, date=today)
            db.add(record)
        record.check_in = _to_minute(now)
        record.check_out = None
        record.work_hours = Decimal("0")
        record.extra_hours = Decimal("0")
        record.status = AttendanceStatus.present
        await db.flush()

        await create_audit_entry(
            db,
            action="check_in",
            entity_type="attendance_record",
            entity_id=record.id,
            actor_id=employee.user_id,
            company_id=employee.company_id,
            new_values={"date": today.isoformat(), "check_in": record.check_in.isoformat()},
        )
        logger.info("Check-in: %s at %s", employee.login_id, record.check_in)
        return AttendanceService._build_record_response(record)

    @staticmethod
    async def check_out(
        db: AsyncSession,
        employee: Employee,
        *,
        now: Optional[datetime] = None,
    ) -> AttendanceRecordOut:
        """Close today's record and compute work/extra hours."""
        now = now or local_now()
        today = now.date()

        record = await AttendanceService._get_record(db, employee.id, today)
        if record is None or record.check_in is None:
            raise ValidationException({"check_out": ["You have not checked in today."]})
        if record.check_out is not None:
            raise ConflictError("check_out", today.isoformat(), detail="Already checked out today.")

        record.check_out = _to_minute(now)
        work_hours = calculate_work_hours(record.check_in, record.check_out)
        record.work_hours = Decimal(str(work_hours))
        record.extra_hours = Decimal(str(calculate_extra_hours(work_hours)))
        await db.flush()

        await create_audit_entry(
            db,
            action="check_out",
            entity_type="attendance_record",
            entity_id=record.id,
            actor_id=employee.user_id,
            company_id=employee.company_id,
            new_values={
                "check_out": record.check_out.isoformat(),
                "work_hours": work_hours,
            },
        )
        logger.info("Check-out: %s at %s (%.2fh)", employee.login_id, record.check_out, work_hours)
        return AttendanceService._build_record_response(record)

    # ── Views ───────────────────────────────────────────────────────

    @staticmethod
    async def my_attendance(
        db: AsyncSession,
        employee: Employee,
        *,
        view: AttendanceView = AttendanceView.month,
        on: Optional[date] = None,
    ) -> AttendanceRangeOut:
        on = on or local_today()
        start, end = resolve_range(view, on)
        result = await db.execute(
            select(AttendanceRecord)
            .where(
                AttendanceRecord.employee_id == employee.id,
                AttendanceRecord.date >= start,
                AttendanceRecord.date <= end,
            )
            .order_by(AttendanceRecord.date.desc())
        )
        return AttendanceService._build_range(
            view, on, result.scalars().all(), with_employee=False,
        )

    @staticmethod
    async def list_attendance(
        db: AsyncSession,
        company_id: uuid.UUID,
        *,
        view: AttendanceView = AttendanceView.day,
        on: Optional[date] = None,
        search: Optional[str] = None,
    ) -> AttendanceRangeOut:
        """Records of every company employee in the range, newest first."""
        on = on or local_today()
        start, end = resolve_range(view, on)
        query = (
            select(AttendanceRecord)
            .join(Employee, Employee.id == AttendanceRecord.employee_id)
            .where(
                Employee.company_id == company_id,
                AttendanceRecord.date >= start,
                AttendanceRecord.date <= end,
            )
            .options(selectinload(AttendanceRecord.employee))
        )
        query = apply_search(query, Employee, search, ["first_name", "last_name"])
        query = query.order_by(
            AttendanceRecord.date.desc(), Employee.first_name, Employee.last_name,
        )
        result = await db.execute(query)
        return AttendanceService._build_range(
            view, on, result.scalars().all(), with_employee=True,
        )
